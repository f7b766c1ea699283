# tests/test_vehicle_service.py
"""Vehicle health, mileage and snag summary."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date, datetime, timedelta

from conftest import build_db, build_session
from fleetdesk.exceptions import PermissionDeniedError, ValidationError
from fleetdesk.models.booking import Booking
from fleetdesk.models.snag import Snag
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.services.vehicle_service import (
    calculate_vehicle_health, refresh_health_flag, update_health, update_mileage, vehicles_with_snag_counts,
)


def snag(priority, status="Open", deleted=False, vehicle_id="V1"):
    return Snag(vehicle_id=vehicle_id, branch_id="B1", description="x", priority=priority, status=status,
                date_opened=date(2024, 1, 1), deleted_at=datetime(2024, 1, 2) if deleted else None)


def vehicle(**overrides):
    values = dict(id="V1", reg_number="AB12CDE", branch_id="B1", health_flag="Excellent",
                  health_override=False, current_mileage=1000, is_draft=False, is_personal=False)
    values.update(overrides)
    return Vehicle(**values)


class TestHealthCalculation:
    def test_no_snags_is_excellent(self):
        assert calculate_vehicle_health([]) == "Excellent"

    def test_open_dangerous_grounds(self):
        assert calculate_vehicle_health([snag("Aesthetic"), snag("Dangerous", "Assigned")]) == "Grounded"

    def test_three_important_is_ok(self):
        assert calculate_vehicle_health([snag("Important")] * 3) == "OK"
        assert calculate_vehicle_health([snag("Important")] * 2) == "Excellent"

    def test_resolved_and_deleted_ignored(self):
        snags = [snag("Dangerous", "Resolved"), snag("Dangerous", deleted=True)]
        assert calculate_vehicle_health(snags) == "Excellent"

    def test_manual_override_not_recomputed(self):
        v = vehicle(health_flag="OK", health_override=True)
        db = build_db({Vehicle: [v], Snag: [snag("Dangerous")]})
        refresh_health_flag(db, "V1")
        assert v.health_flag == "OK"

    def test_refresh_updates_flag(self):
        v = vehicle()
        db = build_db({Vehicle: [v], Snag: [snag("Dangerous")]})
        refresh_health_flag(db, "V1")
        assert v.health_flag == "Grounded"


class TestUpdates:
    def test_manual_health_sets_override(self):
        v = vehicle()
        db = build_db({Vehicle: [v]})
        update_health(db, build_session(role="mechanic"), "V1", "Grounded", "Gearbox noise")
        assert v.health_flag == "Grounded"
        assert v.health_override is True
        db.commit.assert_called_once()

    def test_mechanic_other_branch_denied(self):
        db = build_db({Vehicle: [vehicle(branch_id="B2")]})
        with pytest.raises(PermissionDeniedError):
            update_health(db, build_session(role="mechanic", branch_id="B1"), "V1", "OK")

    def test_invalid_health_flag(self):
        with pytest.raises(ValidationError):
            update_health(build_db(), build_session(), "V1", "Broken")

    def test_mileage_cannot_go_down(self):
        db = build_db({Vehicle: [vehicle(current_mileage=5000)]})
        with pytest.raises(ValidationError):
            update_mileage(db, build_session(role="driver"), "V1", 4000)
        db.commit.assert_not_called()

    def test_driver_records_mileage(self):
        v = vehicle(current_mileage=5000)
        db = build_db({Vehicle: [v]})
        update_mileage(db, build_session(role="driver"), "V1", 5200)
        assert v.current_mileage == 5200
        assert v.last_mileage_update is not None


class TestSnagSummary:
    def test_counts_per_priority_and_next_booking(self):
        v = vehicle()
        snags = [snag("Dangerous"), snag("Important"), snag("Important"), snag(None)]
        upcoming = Booking(id="BK1", vehicle_id="V1", branch_id="B1", client_name="A", contact="1",
                           status="Active", start_datetime=datetime.utcnow() + timedelta(days=2, hours=1),
                           end_datetime=datetime.utcnow() + timedelta(days=4))
        db = build_db({Vehicle: [v], Snag: snags, Booking: [upcoming]})

        [row] = vehicles_with_snag_counts(db, build_session())

        assert row["vehicle"] is v
        assert row["snag_counts"]["total"] == 4
        assert row["snag_counts"]["dangerous"] == 1
        assert row["snag_counts"]["important"] == 2
        assert row["snag_counts"]["unallocated"] == 1
        assert row["next_booking"] is upcoming
        assert row["days_to_next_booking"] == 3

    def test_no_vehicles(self):
        assert vehicles_with_snag_counts(build_db(), build_session()) == []
