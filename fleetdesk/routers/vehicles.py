# fleetdesk/routers/vehicles.py
"""Vehicle inventory, health, mileage and the activity trail."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import require_route
from fleetdesk.schemas.vehicle import (
    ActivityOut, HealthUpdate, MileageLogOut, MileageUpdate, VehicleCreate, VehicleOut, VehicleSnagSummary,
    VehicleUpdate,
)
from fleetdesk.services import activity_service, vehicle_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()
guard = require_route("/vehicles")


@router.get("/vehicles", response_model=list[VehicleOut], summary="List vehicles in scope")
def list_vehicles(include_drafts: bool = False, include_personal: bool = False,
                  db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return vehicle_service.list_vehicles(db, session, include_drafts, include_personal)


@router.get("/vehicles/snag-summary", response_model=list[VehicleSnagSummary],
            summary="Vehicles with open snag counts and next booking")
def snag_summary(db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    rows = vehicle_service.vehicles_with_snag_counts(db, session)
    return [
        VehicleSnagSummary(
            vehicle=VehicleOut.model_validate(row["vehicle"]),
            snag_counts=row["snag_counts"],
            next_booking_id=row["next_booking"].id if row["next_booking"] else None,
            next_booking_start=row["next_booking"].start_datetime if row["next_booking"] else None,
            days_to_next_booking=row["days_to_next_booking"],
        )
        for row in rows
    ]


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Get one vehicle")
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return vehicle_service.get_vehicle(db, vehicle_id, session)


@router.post("/vehicles", response_model=VehicleOut, status_code=201, summary="Add a vehicle")
def create_vehicle(body: VehicleCreate, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return vehicle_service.create_vehicle(db, session, body.model_dump())


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Edit a vehicle")
def update_vehicle(vehicle_id: str, body: VehicleUpdate, db: Session = Depends(get_db),
                   session: AuthSession = Depends(guard)):
    return vehicle_service.update_vehicle(db, session, vehicle_id, body.model_dump(exclude_unset=True))


@router.put("/vehicles/{vehicle_id}/health", response_model=VehicleOut, summary="Set health manually")
def update_health(vehicle_id: str, body: HealthUpdate, db: Session = Depends(get_db),
                  session: AuthSession = Depends(guard)):
    return vehicle_service.update_health(db, session, vehicle_id, body.health_flag, body.notes)


@router.put("/vehicles/{vehicle_id}/mileage", response_model=VehicleOut, summary="Record a mileage reading")
def update_mileage(vehicle_id: str, body: MileageUpdate, db: Session = Depends(get_db),
                   session: AuthSession = Depends(guard)):
    return vehicle_service.update_mileage(db, session, vehicle_id, body.mileage)


@router.delete("/vehicles/{vehicle_id}", summary="Remove a vehicle")
def delete_vehicle(vehicle_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    vehicle_service.delete_vehicle(db, session, vehicle_id)
    return {"status": "deleted", "id": vehicle_id}


@router.get("/vehicles/{vehicle_id}/activity", response_model=list[ActivityOut], summary="Vehicle activity log")
def activity(vehicle_id: str, field: Optional[str] = None, limit: Optional[int] = None,
             db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    vehicle = vehicle_service.get_vehicle(db, vehicle_id, session)
    return activity_service.list_activity(db, vehicle.id, field, limit)


@router.get("/vehicles/{vehicle_id}/mileage-logs", response_model=list[MileageLogOut], summary="Mileage readings")
def mileage_logs(vehicle_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    vehicle = vehicle_service.get_vehicle(db, vehicle_id, session)
    return vehicle_service.list_mileage_logs(db, vehicle.id)
