# fleetdesk/services/category_service.py
"""Vehicle categories. Deletion is blocked while live vehicles use the category."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.models.vehicle_category import VehicleCategory
from fleetdesk.services.permissions import require
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)


def category_delete_blocker(vehicle_count: int):
    if vehicle_count <= 0:
        return None
    verb = "vehicles are" if vehicle_count != 1 else "vehicle is"
    return (f"Cannot delete category: {vehicle_count} {verb} currently assigned to this category. "
            f"Please reassign or delete those vehicles first.")


def list_categories(db: Session):
    return db.query(VehicleCategory).order_by(VehicleCategory.category_name).all()


def get_category(db: Session, category_id: str) -> VehicleCategory:
    category = db.query(VehicleCategory).filter(VehicleCategory.id == category_id).first()
    if not category:
        raise NotFoundError(f"Category '{category_id}' not found")
    return category


def vehicle_count(db: Session, category_id: str) -> int:
    return db.query(Vehicle).filter(Vehicle.category_id == category_id, Vehicle.deleted_at.is_(None)).count()


def usage_by_category(db: Session) -> dict:
    rows = (
        db.query(Vehicle.category_id, func.count(Vehicle.id))
        .filter(Vehicle.deleted_at.is_(None), Vehicle.category_id.isnot(None))
        .group_by(Vehicle.category_id)
        .all()
    )
    return {category_id: count for category_id, count in rows}


def create_category(db: Session, session, category_name: str, description: str = None) -> VehicleCategory:
    require(session, "can_manage_branches")
    if not (category_name or "").strip():
        raise ValidationError("Category name is required")
    category = VehicleCategory(category_name=category_name.strip(), description=description)
    db.add(category)
    commit_or_rollback(db, "add category")
    db.refresh(category)
    return category


def update_category(db: Session, session, category_id: str, data: dict) -> VehicleCategory:
    require(session, "can_manage_branches")
    category = get_category(db, category_id)
    if "category_name" in data:
        if not (data["category_name"] or "").strip():
            raise ValidationError("Category name is required")
        category.category_name = data["category_name"].strip()
    if "description" in data:
        category.description = data["description"]
    commit_or_rollback(db, "update category")
    db.refresh(category)
    return category


def delete_category(db: Session, session, category_id: str):
    require(session, "can_manage_branches")
    category = get_category(db, category_id)
    blocker = category_delete_blocker(vehicle_count(db, category_id))
    if blocker:
        logger.warning(f"[SETTINGS] Delete of category {category.category_name} blocked")
        raise ConflictError(blocker)
    db.delete(category)
    commit_or_rollback(db, "delete category")
    logger.info(f"[SETTINGS] Category deleted: {category.category_name}")
