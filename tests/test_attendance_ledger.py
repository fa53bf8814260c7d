"""
Tests for the attendance ledger: check-in/out and admin corrections.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlmodel import select

from app.core.exceptions import (
    AlreadyCompleted,
    Conflict,
    InvalidInput,
    PreconditionFailed,
)
from app.models.attendance import Attendance, AttendanceStatus
from app.models.notification import Notification, NotificationType
from app.services.attendance_ledger import AttendanceLedger


@pytest.fixture
def ledger(session, days):
    return AttendanceLedger(session, days)


def _rows(session, employee_id):
    return session.exec(select(Attendance).where(Attendance.employee_id == employee_id)).all()


def _stale_first_lookup(monkeypatch):
    """Make the first get_for_day miss, as if another request inserted after it."""
    original = AttendanceLedger.get_for_day
    calls = []

    def stale_first_read(self, employee_id, day):
        calls.append(day)
        if len(calls) == 1:
            return None
        return original(self, employee_id, day)

    monkeypatch.setattr(AttendanceLedger, "get_for_day", stale_first_read)


def test_check_in_creates_present_record(ledger, session):
    """First check-in of the day creates a Present record."""
    # Act
    record = ledger.check_in(1)

    # Assert
    assert record.id is not None
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in_time == datetime(2025, 3, 12, 3, 30)
    assert record.check_out_time is None
    assert record.day == datetime(2025, 3, 11, 18, 30)
    assert len(_rows(session, 1)) == 1


def test_check_in_is_idempotent(ledger, session, clock):
    """A second check-in returns the first record unchanged."""
    # Arrange
    first = ledger.check_in(1)
    clock.set(clock.current + timedelta(hours=2))

    # Act
    second = ledger.check_in(1)

    # Assert
    assert second.id == first.id
    assert second.check_in_time == datetime(2025, 3, 12, 3, 30)
    assert len(_rows(session, 1)) == 1


def test_check_in_after_reference_midnight_is_a_new_day(ledger, session, clock):
    """
    19:00 UTC on the 12th is the 13th in Kolkata, so it is a separate
    record even though the UTC date has not changed.
    """
    # Arrange
    ledger.check_in(1)
    clock.set(datetime(2025, 3, 12, 19, 0, tzinfo=timezone.utc))

    # Act
    record = ledger.check_in(1)

    # Assert
    assert record.day == datetime(2025, 3, 12, 18, 30)
    assert len(_rows(session, 1)) == 2


def test_check_in_fills_existing_status_only_record(ledger, session):
    """An admin-created record without times gets the check-in recorded."""
    # Arrange
    existing = ledger.upsert_status(1, date(2025, 3, 12), "Absent")

    # Act
    record = ledger.check_in(1)

    # Assert
    assert record.id == existing.id
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in_time is not None
    assert len(_rows(session, 1)) == 1


def test_concurrent_check_in_returns_winner(ledger, session, days, monkeypatch):
    """
    When the pre-insert lookup misses a row inserted concurrently, the unique
    constraint rejects the insert and the winner is returned.
    """
    # Arrange: another request has already inserted today's row
    winner = Attendance(
        employee_id=1,
        day=days.start_of(date(2025, 3, 12)),
        check_in_time=datetime(2025, 3, 12, 3, 29),
        status=AttendanceStatus.PRESENT,
    )
    session.add(winner)
    session.commit()
    session.refresh(winner)
    _stale_first_lookup(monkeypatch)

    # Act
    record = ledger.check_in(1)

    # Assert
    assert record.id == winner.id
    assert record.check_in_time == datetime(2025, 3, 12, 3, 29)
    assert len(_rows(session, 1)) == 1


def test_concurrent_check_in_without_visible_winner_is_conflict(
    ledger, session, days, monkeypatch
):
    """If the winner cannot be re-read, the caller gets a Conflict."""
    # Arrange
    session.add(Attendance(employee_id=1, day=days.start_of(date(2025, 3, 12))))
    session.commit()
    monkeypatch.setattr(AttendanceLedger, "get_for_day", lambda self, e, d: None)

    # Act / Assert
    with pytest.raises(Conflict):
        ledger.check_in(1)


def test_concurrent_check_in_fills_status_only_winner(ledger, session, days, monkeypatch):
    """
    When the row that won the race is a status-only correction, the check-in
    is still recorded on it.
    """
    # Arrange: an admin marked the day Absent after the lookup missed
    session.add(
        Attendance(
            employee_id=1,
            day=days.start_of(date(2025, 3, 12)),
            status=AttendanceStatus.ABSENT,
        )
    )
    session.commit()
    _stale_first_lookup(monkeypatch)

    # Act
    record = ledger.check_in(1)

    # Assert
    assert record.check_in_time == datetime(2025, 3, 12, 3, 30)
    assert record.status == AttendanceStatus.PRESENT
    assert len(_rows(session, 1)) == 1


def test_check_out_completes_record(ledger, clock):
    # Arrange
    ledger.check_in(1)
    clock.set(clock.current + timedelta(hours=8, minutes=15))

    # Act
    record = ledger.check_out(1)

    # Assert
    assert record.check_out_time == datetime(2025, 3, 12, 11, 45)
    assert record.check_out_time - record.check_in_time == timedelta(hours=8, minutes=15)


def test_check_out_without_check_in(ledger):
    """Checking out before checking in is refused."""
    with pytest.raises(PreconditionFailed, match="Please check in first"):
        ledger.check_out(1)


def test_check_out_on_status_only_record(ledger):
    """A record created by an admin correction has no check-in to close."""
    ledger.upsert_status(1, date(2025, 3, 12), "Present")

    with pytest.raises(PreconditionFailed, match="Please check in first"):
        ledger.check_out(1)


def test_double_check_out(ledger, clock):
    """The second check-out is refused and the first time is kept."""
    # Arrange
    ledger.check_in(1)
    clock.set(clock.current + timedelta(hours=8))
    first = ledger.check_out(1)
    clock.set(clock.current + timedelta(hours=1))

    # Act / Assert
    with pytest.raises(AlreadyCompleted, match="Already checked out today"):
        ledger.check_out(1)
    assert ledger.get_for_day(1, date(2025, 3, 12)).check_out_time == first.check_out_time


def test_check_out_before_check_in_is_rejected(ledger):
    """A clock that moved backwards cannot produce a negative day."""
    # Arrange
    ledger.check_in(1)

    # Act / Assert
    with pytest.raises(PreconditionFailed, match="earlier than check-in"):
        ledger.check_out(1, now=datetime(2025, 3, 12, 3, 0, tzinfo=timezone.utc))


def test_upsert_status_creates_then_updates(ledger, session):
    """Status upsert keeps one record per day and leaves times untouched."""
    # Arrange
    checked_in = ledger.check_in(1)

    # Act
    updated = ledger.upsert_status(1, "2025-03-12", "Half-Day")
    created = ledger.upsert_status(1, "2025-03-10", "On Leave")

    # Assert
    assert updated.id == checked_in.id
    assert updated.status == AttendanceStatus.HALF_DAY
    assert updated.check_in_time == checked_in.check_in_time
    assert created.status == AttendanceStatus.ON_LEAVE
    assert created.check_in_time is None
    assert created.day == datetime(2025, 3, 9, 18, 30)
    assert len(_rows(session, 1)) == 2


def test_upsert_status_rejects_unknown_status(ledger):
    with pytest.raises(InvalidInput):
        ledger.upsert_status(1, "2025-03-12", "Sick")


def test_concurrent_upsert_updates_the_winner(ledger, session, days, monkeypatch):
    """A row inserted between lookup and insert is updated instead of duplicated."""
    # Arrange: a check-in lands after the correction's lookup
    session.add(
        Attendance(
            employee_id=1,
            day=days.start_of(date(2025, 3, 12)),
            check_in_time=datetime(2025, 3, 12, 3, 29),
            status=AttendanceStatus.PRESENT,
        )
    )
    session.commit()
    _stale_first_lookup(monkeypatch)

    # Act
    record = ledger.upsert_status(1, date(2025, 3, 12), "Half-Day")

    # Assert
    assert record.status == AttendanceStatus.HALF_DAY
    assert record.check_in_time == datetime(2025, 3, 12, 3, 29)
    rows = _rows(session, 1)
    assert len(rows) == 1
    assert rows[0].status == AttendanceStatus.HALF_DAY


def test_concurrent_upsert_without_visible_winner_is_conflict(
    ledger, session, days, monkeypatch
):
    # Arrange
    session.add(Attendance(employee_id=1, day=days.start_of(date(2025, 3, 12))))
    session.commit()
    monkeypatch.setattr(AttendanceLedger, "get_for_day", lambda self, e, d: None)

    # Act / Assert
    with pytest.raises(Conflict):
        ledger.upsert_status(1, date(2025, 3, 12), "Absent")


def test_correct_status_notifies_employee(ledger, session):
    """An admin correction leaves a notification naming the day and status."""
    # Act
    record, notified = ledger.correct_status(1, date(2025, 3, 12), "Absent")

    # Assert
    assert record.status == AttendanceStatus.ABSENT
    assert notified.ok
    notification = session.exec(select(Notification)).one()
    assert notification.employee_id == 1
    assert notification.type == NotificationType.ATTENDANCE
    assert notification.message == (
        'Your attendance for March 12, 2025 has been marked as "Absent" by admin.'
    )


def test_correct_status_survives_notification_failure(ledger, monkeypatch):
    """A failed notification does not undo the correction."""
    # Arrange
    def broken_append(*args, **kwargs):
        raise InvalidInput("outbox unavailable")

    monkeypatch.setattr(ledger.outbox, "append", broken_append)

    # Act
    record, notified = ledger.correct_status(1, date(2025, 3, 12), "Present")

    # Assert
    assert not notified.ok
    assert ledger.get_for_day(1, date(2025, 3, 12)).status == AttendanceStatus.PRESENT
    assert record.id is not None


def test_month_view_only_returns_the_month(ledger):
    # Arrange
    ledger.upsert_status(1, "2025-02-28", "Present")
    ledger.upsert_status(1, "2025-03-01", "Present")
    ledger.upsert_status(1, "2025-03-11", "Absent")
    ledger.upsert_status(2, "2025-03-05", "Present")

    # Act
    records = ledger.month_view(1, 2025, 3)

    # Assert
    assert [r.day for r in records] == [
        datetime(2025, 2, 28, 18, 30),
        datetime(2025, 3, 10, 18, 30),
    ]


def test_records_for_day_covers_all_employees(ledger):
    ledger.upsert_status(1, "2025-03-12", "Present")
    ledger.upsert_status(2, "2025-03-12", "Absent")
    ledger.upsert_status(2, "2025-03-13", "Present")

    records = ledger.records_for_day(date(2025, 3, 12))

    assert sorted(r.employee_id for r in records) == [1, 2]
