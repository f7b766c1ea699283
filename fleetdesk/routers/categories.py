# fleetdesk/routers/categories.py
"""Vehicle categories (settings)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import get_current_session, require_route
from fleetdesk.schemas.category import CategoryIn, CategoryOut, CategoryUpdate
from fleetdesk.services import category_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()
guard = require_route("/settings")


@router.get("/categories", response_model=list[CategoryOut], summary="List vehicle categories")
def list_categories(db: Session = Depends(get_db), session: AuthSession = Depends(get_current_session)):
    usage = category_service.usage_by_category(db)
    result = []
    for category in category_service.list_categories(db):
        out = CategoryOut.model_validate(category)
        out.vehicles = usage.get(category.id, 0)
        result.append(out)
    return result


@router.post("/categories", response_model=CategoryOut, status_code=201, summary="Add a category")
def create_category(body: CategoryIn, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return category_service.create_category(db, session, body.category_name, body.description)


@router.patch("/categories/{category_id}", response_model=CategoryOut, summary="Edit a category")
def update_category(category_id: str, body: CategoryUpdate, db: Session = Depends(get_db),
                    session: AuthSession = Depends(guard)):
    return category_service.update_category(db, session, category_id, body.model_dump(exclude_unset=True))


@router.delete("/categories/{category_id}", summary="Delete an unused category")
def delete_category(category_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    category_service.delete_category(db, session, category_id)
    return {"status": "deleted", "id": category_id}
