# tests/test_booking_service.py
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime

from conftest import build_db, build_session
from fleetdesk.exceptions import ConflictError, PermissionDeniedError, ValidationError
from fleetdesk.models.booking import Booking
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.services.booking_service import create_booking, has_conflict, update_booking


def booking(start, end, status="Active", id="BK1"):
    return Booking(id=id, vehicle_id="V1", branch_id="B1", client_name="Ann", contact="0700",
                   start_datetime=start, end_datetime=end, status=status)


def vehicle(branch_id="B1"):
    return Vehicle(id="V1", reg_number="AB12CDE", branch_id=branch_id, health_flag="OK")


MAY_1 = datetime(2024, 5, 1, 9)
MAY_3 = datetime(2024, 5, 3, 9)
MAY_5 = datetime(2024, 5, 5, 9)


class TestConflicts:
    def test_overlap_detected(self):
        assert has_conflict([booking(MAY_1, MAY_5)], MAY_3, datetime(2024, 5, 7))

    def test_back_to_back_allowed(self):
        assert not has_conflict([booking(MAY_1, MAY_3)], MAY_3, MAY_5)

    def test_cancelled_ignored(self):
        assert not has_conflict([booking(MAY_1, MAY_5, status="Cancelled")], MAY_3, MAY_5)

    def test_own_booking_excluded(self):
        assert not has_conflict([booking(MAY_1, MAY_5)], MAY_1, MAY_3, exclude_id="BK1")


class TestCreateBooking:
    def data(self, **overrides):
        values = dict(vehicle_id="V1", client_name="Ann", contact="0700", start_datetime=MAY_1, end_datetime=MAY_3)
        values.update(overrides)
        return values

    def test_create_takes_vehicle_branch_and_health(self):
        db = build_db({Vehicle: [vehicle()]})
        created = create_booking(db, build_session(), self.data())
        assert created.branch_id == "B1"
        assert created.health_at_booking == "OK"
        assert created.status == "Draft"
        assert created.booking_reference.startswith("BK-")
        db.commit.assert_called_once()

    def test_overlapping_booking_rejected(self):
        db = build_db({Vehicle: [vehicle()], Booking: [booking(MAY_1, MAY_5)]})
        with pytest.raises(ConflictError, match="already booked"):
            create_booking(db, build_session(), self.data(start_datetime=MAY_3, end_datetime=datetime(2024, 5, 8)))
        db.add.assert_not_called()

    def test_end_before_start(self):
        with pytest.raises(ValidationError):
            create_booking(build_db(), build_session(), self.data(start_datetime=MAY_3, end_datetime=MAY_1))

    def test_other_branch_denied(self):
        db = build_db({Vehicle: [vehicle("B2")]})
        with pytest.raises(PermissionDeniedError):
            create_booking(db, build_session(branch_id="B1"), self.data())

    def test_cancel_skips_overlap_check(self):
        existing = booking(MAY_1, MAY_3, id="BK2")
        other = booking(MAY_1, MAY_5, id="BK3")
        db = build_db({Booking: [existing, other]})
        update_booking(db, build_session(), "BK2", {"status": "Cancelled", "end_datetime": MAY_5})
        assert existing.status == "Cancelled"


class TestUpdateBooking:
    def test_reactivating_into_taken_slot_rejected(self):
        cancelled = booking(MAY_1, MAY_5, status="Cancelled", id="BK1")
        taken = booking(MAY_3, datetime(2024, 5, 8), id="BK2")
        db = build_db({Booking: [cancelled, taken]})

        with pytest.raises(ConflictError, match="already booked"):
            update_booking(db, build_session(), "BK1", {"status": "Active"})
        assert cancelled.status == "Cancelled"
        db.commit.assert_not_called()

    def test_reactivating_into_free_slot_allowed(self):
        cancelled = booking(MAY_1, MAY_3, status="Cancelled", id="BK1")
        db = build_db({Booking: [cancelled]})

        update_booking(db, build_session(), "BK1", {"status": "Active"})
        assert cancelled.status == "Active"

    def test_notes_only_edit_skips_overlap_check(self):
        active = booking(MAY_1, MAY_5, id="BK1")
        clash = booking(MAY_3, datetime(2024, 5, 8), id="BK2")
        db = build_db({Booking: [active, clash]})

        update_booking(db, build_session(), "BK1", {"notes": "Customer will collect"})
        assert active.notes == "Customer will collect"
