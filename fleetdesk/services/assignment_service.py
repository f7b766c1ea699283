# fleetdesk/services/assignment_service.py
"""Snag assignment records. Creation goes through snag_workflow.assign_snag."""

from datetime import datetime
from sqlalchemy import nullslast
from sqlalchemy.orm import Session

from fleetdesk.models.snag_assignment import SnagAssignment, OPEN_ASSIGNMENT_STATUSES


def open_assignment(db: Session, snag_id: str):
    return (
        db.query(SnagAssignment)
        .filter(SnagAssignment.snag_id == snag_id, SnagAssignment.status.in_(OPEN_ASSIGNMENT_STATUSES))
        .order_by(SnagAssignment.assigned_at.desc())
        .first()
    )


def assignments_for_snag(db: Session, snag_id: str):
    return (
        db.query(SnagAssignment)
        .filter(SnagAssignment.snag_id == snag_id)
        .order_by(SnagAssignment.assigned_at.desc())
        .all()
    )


def assignments_for_user(db: Session, user_id: str):
    """Open work for one user, soonest deadline first, no deadline last."""
    return (
        db.query(SnagAssignment)
        .filter(SnagAssignment.assigned_to == user_id, SnagAssignment.status.in_(OPEN_ASSIGNMENT_STATUSES))
        .order_by(nullslast(SnagAssignment.deadline.asc()))
        .all()
    )


def close_assignment(assignment: SnagAssignment, status: str = "completed"):
    """Mark an assignment finished. Caller commits."""
    assignment.status = status
    if status == "completed":
        assignment.completed_at = datetime.utcnow()
    return assignment
