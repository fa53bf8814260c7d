"""
Attendance ledger.

Owns every write to the attendance table and enforces one record per
(employee, day). Check-in is idempotent: repeating it returns the record
created by the first call, and a concurrent duplicate insert rejected by the
unique constraint is answered by re-reading the winner.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.core.days import DayNormalizer, to_storage, utcnow
from app.core.exceptions import (
    AlreadyCompleted,
    Conflict,
    InvalidInput,
    PreconditionFailed,
)
from app.core.logging import get_logger
from app.models.attendance import Attendance, AttendanceStatus
from app.models.notification import NotificationType
from app.services.best_effort import BestEffortResult
from app.services.notification_outbox import NotificationOutbox

logger = get_logger(__name__)


def parse_attendance_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise InvalidInput(f"Invalid status '{value}'. Expected one of: {allowed}")


class AttendanceLedger:
    def __init__(
        self,
        session: Session,
        days: DayNormalizer,
        outbox: Optional[NotificationOutbox] = None,
    ):
        self.session = session
        self.days = days
        self.outbox = outbox or NotificationOutbox(session)

    def get_for_day(self, employee_id: int, day: date) -> Optional[Attendance]:
        """Point lookup over the day's instant range."""
        start, end = self.days.day_range(day)
        statement = (
            select(Attendance)
            .where(
                (Attendance.employee_id == employee_id)
                & (Attendance.day >= start)
                & (Attendance.day < end)
            )
            .order_by(col(Attendance.created_at), col(Attendance.id))
        )
        return self.session.exec(statement).first()

    def _check_in_existing(self, record: Attendance, check_in_time: datetime) -> Attendance:
        """Record a check-in on a row that already exists for the day."""
        if record.check_in_time is not None:
            logger.info(
                f"Employee {record.employee_id} already checked in at {record.check_in_time}"
            )
            return record

        logger.info(f"Recording check-in on existing record {record.id}")
        record.check_in_time = check_in_time
        record.status = AttendanceStatus.PRESENT
        record.updated_at = utcnow()
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def check_in(self, employee_id: int, now: Optional[datetime] = None) -> Attendance:
        now = now or self.days.now()
        day = self.days.normalize(now)
        check_in_time = to_storage(now)

        existing = self.get_for_day(employee_id, day)
        if existing:
            return self._check_in_existing(existing, check_in_time)

        logger.info(f"Creating check-in for employee {employee_id} on {day}")
        record = Attendance(
            employee_id=employee_id,
            day=self.days.start_of(day),
            check_in_time=check_in_time,
            status=AttendanceStatus.PRESENT,
        )
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race: a check-in or a status-only row was written first
            self.session.rollback()
            logger.warning(
                f"Duplicate check-in for employee {employee_id} on {day}, re-reading"
            )
            winner = self.get_for_day(employee_id, day)
            if winner is None:
                raise Conflict("Already checked in today. Please try refreshing the page.")
            return self._check_in_existing(winner, check_in_time)

        self.session.refresh(record)
        logger.info(f"Employee {employee_id} checked in at {check_in_time}")
        return record

    def check_out(self, employee_id: int, now: Optional[datetime] = None) -> Attendance:
        now = now or self.days.now()
        day = self.days.normalize(now)
        check_out_time = to_storage(now)

        record = self.get_for_day(employee_id, day)
        if not record or record.check_in_time is None:
            raise PreconditionFailed("Please check in first")
        if record.check_out_time is not None:
            raise AlreadyCompleted("Already checked out today")
        if check_out_time < record.check_in_time:
            raise PreconditionFailed("Check-out cannot be earlier than check-in")

        record.check_out_time = check_out_time
        record.updated_at = utcnow()
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        logger.info(f"Employee {employee_id} checked out at {check_out_time}")
        return record

    def _set_status(self, record: Attendance, status: AttendanceStatus) -> Attendance:
        record.status = status
        record.updated_at = utcnow()
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def upsert_status(self, employee_id: int, day: date, status) -> Attendance:
        """
        Create-or-update the record for (employee, day) with ``status``.

        Check-in/check-out times are left untouched on an existing record;
        a fresh record starts with both null. A row inserted concurrently
        for the same day is updated instead.

        Raises:
            InvalidInput: unknown status or unparseable day
            Conflict: the insert was rejected but no row can be re-read
        """
        status = parse_attendance_status(status)
        day = self.days.normalize(day)

        record = self.get_for_day(employee_id, day)
        if record is not None:
            record = self._set_status(record, status)
        else:
            record = Attendance(
                employee_id=employee_id, day=self.days.start_of(day), status=status
            )
            self.session.add(record)
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                logger.warning(
                    f"Concurrent write to attendance of employee {employee_id} on {day}, re-reading"
                )
                winner = self.get_for_day(employee_id, day)
                if winner is None:
                    raise Conflict("Attendance for this day was changed concurrently")
                record = self._set_status(winner, status)
            else:
                self.session.refresh(record)

        logger.info(f"Attendance for employee {employee_id} on {day} set to {status.value}")
        return record

    def correct_status(
        self, employee_id: int, day: date, status
    ) -> tuple[Attendance, BestEffortResult]:
        """Admin correction: upsert, then notify the employee."""
        record = self.upsert_status(employee_id, day, status)
        day = self.days.normalize(day)
        message = (
            f"Your attendance for {day.strftime('%B %d, %Y')} has been marked as "
            f'"{record.status.value}" by admin.'
        )
        notified = self.outbox.try_append(employee_id, message, NotificationType.ATTENDANCE)
        return record, notified

    def records_between(
        self, start_day: date, end_day: date, employee_id: Optional[int] = None
    ) -> list[Attendance]:
        """Records with start_day <= day < end_day, ascending by day."""
        statement = select(Attendance).where(
            (Attendance.day >= self.days.start_of(start_day))
            & (Attendance.day < self.days.start_of(end_day))
        )
        if employee_id is not None:
            statement = statement.where(Attendance.employee_id == employee_id)
        statement = statement.order_by(col(Attendance.day), col(Attendance.id))
        return list(self.session.exec(statement).all())

    def month_view(self, employee_id: int, year: int, month: int) -> list[Attendance]:
        """True records for the month; gaps are not filled here."""
        first, next_first = self.days.month_range(year, month)
        return self.records_between(first, next_first, employee_id=employee_id)

    def records_for_day(self, day: date) -> list[Attendance]:
        return self.records_between(day, day + timedelta(days=1))
