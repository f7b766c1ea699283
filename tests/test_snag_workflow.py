# tests/test_snag_workflow.py
"""Report → assign → resolve, including the resolve + maintenance log sequencing."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date
from sqlalchemy.exc import SQLAlchemyError

from conftest import build_db, build_session
from fleetdesk.exceptions import ConflictError, PermissionDeniedError, ValidationError
from fleetdesk.models.maintenance_log import MaintenanceLog
from fleetdesk.models.snag import Snag
from fleetdesk.models.snag_assignment import SnagAssignment
from fleetdesk.models.snag_resolution import SnagResolution
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.services.snag_workflow import (
    IssueEntry, PARTIAL_LOG_WARNING, assign_snag, report_snags, resolve_snag,
)


def make_vehicle(branch_id="B1"):
    return Vehicle(id="V1", reg_number="AB12CDE", branch_id=branch_id,
                   health_flag="Excellent", health_override=False)


def make_snag(status="Open", branch_id="B1", priority="Important"):
    return Snag(id="S1", vehicle_id="V1", branch_id=branch_id, description="Flat tire",
                priority=priority, status=status, date_opened=date(2024, 5, 1))


def added(db, model):
    return [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], model)]


LOG = {
    "vehicle_id": "V1",
    "branch_id": "B1",
    "service_date": date(2024, 5, 2),
    "mileage": 12000,
    "work_done": "Replaced tire",
    "performed_by": "Jane",
}


class TestReportSnags:
    def test_blank_entries_dropped_and_vehicle_branch_used(self):
        db = build_db({Vehicle: [make_vehicle("B1")]})
        admin = build_session(role="admin", branch_id=None)

        snags = report_snags(db, admin, "V1", [IssueEntry("Flat tire"), IssueEntry("")])

        assert len(snags) == 1
        assert snags[0].description == "Flat tire"
        assert snags[0].branch_id == "B1"
        assert snags[0].status == "Open"
        assert len(added(db, Snag)) == 1
        db.commit.assert_called_once()

    def test_one_snag_per_issue_sharing_context(self):
        db = build_db({Vehicle: [make_vehicle("B1")]})
        manager = build_session(role="manager", branch_id="B1")
        issues = [IssueEntry("Flat tire", "Dangerous"), IssueEntry("Scratched door", "Aesthetic"),
                  IssueEntry("Wiper noise")]

        snags = report_snags(db, manager, "V1", issues, mileage=48210)

        assert [s.description for s in snags] == ["Flat tire", "Scratched door", "Wiper noise"]
        assert {s.vehicle_id for s in snags} == {"V1"}
        assert {s.branch_id for s in snags} == {"B1"}
        assert {s.mileage_reported for s in snags} == {48210}
        assert len({s.date_opened for s in snags}) == 1
        assert snags[2].priority is None

    def test_all_blank_rejected_before_any_query(self):
        db = build_db()
        with pytest.raises(ValidationError):
            report_snags(db, build_session(), "V1", [IssueEntry(""), IssueEntry("   ")])
        db.query.assert_not_called()
        db.commit.assert_not_called()

    def test_branchless_vehicle_without_branch_requires_selection(self):
        db = build_db({Vehicle: [make_vehicle(branch_id=None)]})
        admin = build_session(role="admin", branch_id=None)

        with pytest.raises(ValidationError, match="select a branch"):
            report_snags(db, admin, "V1", [IssueEntry("Flat tire")])
        assert added(db, Snag) == []
        db.commit.assert_not_called()

    def test_explicit_branch_used_when_nothing_else_known(self):
        db = build_db({Vehicle: [make_vehicle(branch_id=None)]})
        admin = build_session(role="admin", branch_id=None)

        snags = report_snags(db, admin, "V1", [IssueEntry("Flat tire")], branch_id="B7")
        assert snags[0].branch_id == "B7"

    def test_caller_branch_takes_precedence(self):
        db = build_db({Vehicle: [make_vehicle("B2")]})
        mechanic = build_session(role="mechanic", branch_id="B1")

        snags = report_snags(db, mechanic, "V1", [IssueEntry("Flat tire")], branch_id="B3")
        assert snags[0].branch_id == "B1"

    def test_driver_cannot_report(self):
        db = build_db({Vehicle: [make_vehicle()]})
        with pytest.raises(PermissionDeniedError):
            report_snags(db, build_session(role="driver"), "V1", [IssueEntry("Flat tire")])
        db.query.assert_not_called()

    def test_invalid_priority_rejected(self):
        with pytest.raises(ValidationError):
            report_snags(build_db(), build_session(), "V1", [IssueEntry("Flat tire", "Urgent")])

    def test_dangerous_snag_grounds_vehicle(self):
        vehicle = make_vehicle()
        reported = make_snag(priority="Dangerous")
        db = build_db({Vehicle: [vehicle], Snag: [reported]})

        report_snags(db, build_session(), "V1", [IssueEntry("Brakes failing", "Dangerous")])
        assert vehicle.health_flag == "Grounded"


class TestAssignSnag:
    def test_assign_open_snag(self):
        snag = make_snag()
        assignee = User(id="U2", full_name="Sam Mechanic", role="mechanic", branch_id="B1", status="active")
        db = build_db({Snag: [snag], User: [assignee]})

        assignment = assign_snag(db, build_session(), "S1", "U2", deadline=date(2024, 6, 1), notes=" Today ")

        assert assignment.status == "assigned"
        assert assignment.assigned_by == "U1"
        assert assignment.assignment_notes == "Today"
        assert snag.status == "Assigned"
        assert snag.assigned_to == "U2"
        assert snag.assignment_deadline == date(2024, 6, 1)
        db.commit.assert_called_once()

    def test_reassign_closes_previous(self):
        snag = make_snag(status="Assigned")
        previous = SnagAssignment(id="A1", snag_id="S1", assigned_to="U3", assigned_by="U1", status="assigned")
        assignee = User(id="U2", full_name="Sam", role="mechanic", branch_id="B1", status="active")
        db = build_db({Snag: [snag], User: [assignee], SnagAssignment: [previous]})

        assign_snag(db, build_session(), "S1", "U2")

        assert previous.status == "reassigned"
        assert len(added(db, SnagAssignment)) == 1
        assert snag.assigned_to == "U2"

    def test_resolved_snag_cannot_be_assigned(self):
        db = build_db({Snag: [make_snag(status="Resolved")]})
        with pytest.raises(ConflictError):
            assign_snag(db, build_session(), "S1", "U2")
        db.commit.assert_not_called()

    def test_inactive_assignee_rejected(self):
        assignee = User(id="U2", full_name="Pending", role="mechanic", branch_id="B1", status="inactive")
        db = build_db({Snag: [make_snag()], User: [assignee]})
        with pytest.raises(ValidationError):
            assign_snag(db, build_session(), "S1", "U2")

    def test_other_branch_denied(self):
        db = build_db({Snag: [make_snag(branch_id="B2")]})
        with pytest.raises(PermissionDeniedError):
            assign_snag(db, build_session(role="manager", branch_id="B1"), "S1", "U2")


class TestResolveSnag:
    def test_resolve_without_log(self):
        snag = make_snag()
        db = build_db({Snag: [snag], Vehicle: [make_vehicle()]})

        outcome = resolve_snag(db, build_session(), "S1", "Repaired", "Replaced tire")

        assert snag.status == "Resolved"
        assert snag.date_closed == date.today()
        assert outcome.maintenance_log is None
        assert outcome.warning is None
        assert outcome.resolution.resolution_method == "Repaired"
        assert added(db, MaintenanceLog) == []
        assert len(added(db, SnagResolution)) == 1

    def test_resolve_with_log(self):
        snag = make_snag()
        db = build_db({Snag: [snag], Vehicle: [make_vehicle()]})

        outcome = resolve_snag(db, build_session(), "S1", "Repaired", "Replaced tire", maintenance_log=LOG)

        assert snag.status == "Resolved"
        assert outcome.maintenance_log is not None
        assert outcome.maintenance_log.mileage == 12000
        assert outcome.maintenance_log.performed_by == "Jane"
        assert outcome.resolution.maintenance_log_id == outcome.maintenance_log.id
        assert len(added(db, SnagResolution)) == 1
        assert len(added(db, MaintenanceLog)) == 1
        assert db.commit.call_count == 2

    def test_log_failure_keeps_resolution_and_warns(self):
        snag = make_snag()
        db = build_db({Snag: [snag], Vehicle: [make_vehicle()]})
        db.commit.side_effect = [None, SQLAlchemyError("insert failed")]

        outcome = resolve_snag(db, build_session(), "S1", "Repaired", "Replaced tire", maintenance_log=LOG)

        assert snag.status == "Resolved"
        assert outcome.partial
        assert outcome.warning == PARTIAL_LOG_WARNING
        assert outcome.maintenance_log is None
        db.rollback.assert_called()

    def test_resolution_failure_writes_nothing_further(self):
        db = build_db({Snag: [make_snag()], Vehicle: [make_vehicle()]})
        db.commit.side_effect = SQLAlchemyError("down")

        with pytest.raises(SQLAlchemyError):
            resolve_snag(db, build_session(), "S1", "Repaired", "Replaced tire", maintenance_log=LOG)
        assert added(db, MaintenanceLog) == []

    def test_resolves_exactly_once(self):
        snag = make_snag()
        db = build_db({Snag: [snag], Vehicle: [make_vehicle()]})

        resolve_snag(db, build_session(), "S1", "Repaired", "Replaced tire")
        with pytest.raises(ConflictError):
            resolve_snag(db, build_session(), "S1", "Repaired", "Again")
        assert len(added(db, SnagResolution)) == 1

    def test_open_assignment_completed(self):
        assignment = SnagAssignment(id="A1", snag_id="S1", assigned_to="U1", assigned_by="U9", status="assigned")
        db = build_db({Snag: [make_snag(status="Assigned")], Vehicle: [make_vehicle()],
                       SnagAssignment: [assignment]})

        resolve_snag(db, build_session(role="mechanic"), "S1", "Replaced Part", "New wiper blade")

        assert assignment.status == "completed"
        assert assignment.completed_at is not None

    def test_notes_required_before_any_query(self):
        db = build_db()
        with pytest.raises(ValidationError):
            resolve_snag(db, build_session(), "S1", "Repaired", "   ")
        db.query.assert_not_called()

    def test_unknown_method_rejected(self):
        with pytest.raises(ValidationError):
            resolve_snag(build_db(), build_session(), "S1", "Prayed", "Fixed itself")

    def test_incomplete_log_rejected_before_any_query(self):
        db = build_db()
        partial_log = dict(LOG, mileage=None, performed_by="")
        with pytest.raises(ValidationError, match="Mileage, Performed by"):
            resolve_snag(db, build_session(), "S1", "Repaired", "Replaced tire", maintenance_log=partial_log)
        db.query.assert_not_called()

    def test_driver_can_resolve_but_not_log(self):
        db = build_db({Snag: [make_snag()], Vehicle: [make_vehicle()]})
        driver = build_session(role="driver", branch_id="B1")

        with pytest.raises(PermissionDeniedError):
            resolve_snag(db, driver, "S1", "No Action Needed", "Tyre was fine", maintenance_log=LOG)
        outcome = resolve_snag(db, driver, "S1", "No Action Needed", "Tyre was fine")
        assert outcome.snag.status == "Resolved"
