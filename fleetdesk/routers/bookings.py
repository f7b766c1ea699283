# fleetdesk/routers/bookings.py
"""Bookings. Admins and managers only."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import require_route
from fleetdesk.schemas.booking import BookingCreate, BookingOut, BookingUpdate
from fleetdesk.services import booking_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()
guard = require_route("/bookings")


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings in scope")
def list_bookings(vehicle_id: Optional[str] = None, status: Optional[str] = None,
                  db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return booking_service.list_bookings(db, session, vehicle_id, status)


@router.get("/bookings/{booking_id}", response_model=BookingOut, summary="Get one booking")
def get_booking(booking_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return booking_service.get_booking(db, booking_id, session)


@router.post("/bookings", response_model=BookingOut, status_code=201, summary="Create a booking")
def create_booking(body: BookingCreate, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return booking_service.create_booking(db, session, body.model_dump())


@router.patch("/bookings/{booking_id}", response_model=BookingOut, summary="Edit a booking")
def update_booking(booking_id: str, body: BookingUpdate, db: Session = Depends(get_db),
                   session: AuthSession = Depends(guard)):
    return booking_service.update_booking(db, session, booking_id, body.model_dump(exclude_unset=True))


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut, summary="Cancel a booking")
def cancel_booking(booking_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return booking_service.cancel_booking(db, session, booking_id)
