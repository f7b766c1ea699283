# fleetdesk/routers/maintenance.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import require_route
from fleetdesk.schemas.maintenance import MaintenanceLogIn, MaintenanceLogOut, WorkItemOut
from fleetdesk.services import maintenance_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()
guard = require_route("/maintenance")


@router.get("/maintenance", response_model=list[MaintenanceLogOut], summary="Service history")
def list_logs(vehicle_id: Optional[str] = None, db: Session = Depends(get_db),
              session: AuthSession = Depends(guard)):
    return maintenance_service.list_logs(db, session, vehicle_id)


@router.post("/maintenance", response_model=MaintenanceLogOut, status_code=201, summary="Log maintenance work")
def create_log(body: MaintenanceLogIn, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return maintenance_service.create_log(db, session, body.model_dump())


@router.get("/maintenance/{log_id}/work-items", response_model=list[WorkItemOut], summary="Work items of one log")
def work_items(log_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return maintenance_service.list_work_items(db, session, log_id)
