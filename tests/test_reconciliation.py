"""
Tests for duplicate collapse, undated leave purge and the per-day reset.

Legacy rows are written directly with stored instants that differ from the
reference-midnight convention but fall on the same reference-zone day, which
is the shape older revisions left behind.
"""

from datetime import date, datetime

import pytest
from sqlmodel import select

from app.models.attendance import Attendance, AttendanceStatus
from app.models.leave import LeaveRequest
from app.services.attendance_ledger import AttendanceLedger
from app.services.reconciliation import ReconciliationService


@pytest.fixture
def reconciliation(session, days):
    return ReconciliationService(session, days)


def _attendance(session, employee_id, day, created_at, check_in=None, check_out=None):
    record = Attendance(
        employee_id=employee_id,
        day=day,
        check_in_time=check_in,
        check_out_time=check_out,
        status=AttendanceStatus.PRESENT if check_in else AttendanceStatus.ABSENT,
        created_at=created_at,
        updated_at=created_at,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def _remaining(session, employee_id):
    return session.exec(select(Attendance).where(Attendance.employee_id == employee_id)).all()


def test_most_complete_record_wins(reconciliation, session):
    """
    Three rows for 2025-03-10 (reference midnight, UTC midnight and server
    local midnight): the one with both times is kept.
    """
    # Arrange
    _attendance(session, 1, datetime(2025, 3, 9, 18, 30), datetime(2025, 3, 10, 3, 0))
    complete = _attendance(
        session,
        1,
        datetime(2025, 3, 10, 0, 0),
        datetime(2025, 3, 10, 4, 0),
        check_in=datetime(2025, 3, 10, 3, 30),
        check_out=datetime(2025, 3, 10, 12, 0),
    )
    _attendance(
        session,
        1,
        datetime(2025, 3, 10, 5, 0),
        datetime(2025, 3, 10, 5, 0),
        check_in=datetime(2025, 3, 10, 5, 0),
    )

    # Act
    removed = reconciliation.repair_duplicate_attendance(1)

    # Assert
    assert removed == 2
    assert [r.id for r in _remaining(session, 1)] == [complete.id]


def test_tie_goes_to_earliest_created(reconciliation, session):
    # Arrange
    earliest = _attendance(
        session,
        1,
        datetime(2025, 3, 10, 0, 0),
        datetime(2025, 3, 10, 1, 0),
        check_in=datetime(2025, 3, 10, 3, 30),
    )
    _attendance(
        session,
        1,
        datetime(2025, 3, 9, 18, 30),
        datetime(2025, 3, 10, 2, 0),
        check_in=datetime(2025, 3, 10, 3, 45),
    )

    # Act
    reconciliation.repair_duplicate_attendance(1)

    # Assert
    assert [r.id for r in _remaining(session, 1)] == [earliest.id]


def test_repair_is_idempotent_and_scoped(reconciliation, session):
    """A second run deletes nothing, and other employees are untouched."""
    # Arrange
    _attendance(session, 1, datetime(2025, 3, 9, 18, 30), datetime(2025, 3, 10, 3, 0))
    _attendance(session, 1, datetime(2025, 3, 10, 0, 0), datetime(2025, 3, 10, 4, 0))
    _attendance(session, 2, datetime(2025, 3, 9, 18, 30), datetime(2025, 3, 10, 3, 0))
    _attendance(session, 2, datetime(2025, 3, 10, 0, 0), datetime(2025, 3, 10, 4, 0))

    # Act
    first = reconciliation.repair_duplicate_attendance(1)
    second = reconciliation.repair_duplicate_attendance(1)

    # Assert
    assert (first, second) == (1, 0)
    assert len(_remaining(session, 2)) == 2


def test_different_days_are_not_duplicates(reconciliation, session):
    _attendance(session, 1, datetime(2025, 3, 9, 18, 30), datetime(2025, 3, 10, 3, 0))
    _attendance(session, 1, datetime(2025, 3, 10, 18, 30), datetime(2025, 3, 11, 3, 0))

    assert reconciliation.repair_duplicate_attendance(1) == 0


def test_repair_restores_point_lookup(reconciliation, session, days):
    """After repair the ledger sees the surviving record for the day."""
    # Arrange
    _attendance(session, 1, datetime(2025, 3, 10, 0, 0), datetime(2025, 3, 10, 3, 0))
    complete = _attendance(
        session,
        1,
        datetime(2025, 3, 9, 18, 30),
        datetime(2025, 3, 10, 4, 0),
        check_in=datetime(2025, 3, 10, 3, 30),
    )

    # Act
    reconciliation.repair_duplicate_attendance(1)

    # Assert
    assert AttendanceLedger(session, days).get_for_day(1, date(2025, 3, 10)).id == complete.id


def test_repair_all_reports_per_employee(reconciliation, session):
    _attendance(session, 1, datetime(2025, 3, 9, 18, 30), datetime(2025, 3, 10, 3, 0))
    _attendance(session, 1, datetime(2025, 3, 10, 0, 0), datetime(2025, 3, 10, 4, 0))
    _attendance(session, 2, datetime(2025, 3, 9, 18, 30), datetime(2025, 3, 10, 3, 0))

    assert reconciliation.repair_all_attendance() == {1: 1}


def test_purge_null_leave_days(reconciliation, session):
    # Arrange
    session.add(LeaveRequest(employee_id=1, leave_day=None, reason="legacy"))
    session.add(LeaveRequest(employee_id=1, leave_day=None, reason="legacy 2"))
    session.add(LeaveRequest(employee_id=1, leave_day=datetime(2025, 3, 19, 18, 30), reason="ok"))
    session.commit()

    # Act
    purged = reconciliation.purge_null_leave_days()

    # Assert
    assert purged == 2
    assert [r.reason for r in session.exec(select(LeaveRequest)).all()] == ["ok"]
    assert reconciliation.purge_null_leave_days() == 0


def test_reset_day_removes_only_that_day(reconciliation, session):
    # Arrange
    _attendance(session, 1, datetime(2025, 3, 11, 18, 30), datetime(2025, 3, 12, 3, 30))
    _attendance(session, 1, datetime(2025, 3, 12, 0, 0), datetime(2025, 3, 12, 3, 31))
    other_day = _attendance(session, 1, datetime(2025, 3, 10, 18, 30), datetime(2025, 3, 11, 3, 0))
    other_employee = _attendance(
        session, 2, datetime(2025, 3, 11, 18, 30), datetime(2025, 3, 12, 3, 30)
    )

    # Act
    deleted = reconciliation.reset_day(1, date(2025, 3, 12))

    # Assert
    assert deleted is True
    assert [r.id for r in _remaining(session, 1)] == [other_day.id]
    assert [r.id for r in _remaining(session, 2)] == [other_employee.id]
    assert reconciliation.reset_day(1, date(2025, 3, 12)) is False
