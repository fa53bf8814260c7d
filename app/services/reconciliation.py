"""
Reconciliation of ledger rows that break the one-per-day invariants.

Older revisions of the service bucketed days inconsistently (server-local
midnight in one place, UTC midnight in another) and sometimes saved leave
requests without a date. The unique constraints cannot catch two rows whose
stored instants differ but fall on the same reference-zone day, so these
routines group by DayKey and collapse what they find.

Both repairs are idempotent: a second run deletes nothing.
"""

from collections import defaultdict
from datetime import date

from sqlmodel import Session, col, select

from app.core.days import DayNormalizer
from app.core.logging import get_logger
from app.models.attendance import Attendance
from app.models.leave import LeaveRequest

logger = get_logger(__name__)


def completeness(record: Attendance) -> int:
    return (record.check_in_time is not None) + (record.check_out_time is not None)


class ReconciliationService:
    def __init__(self, session: Session, days: DayNormalizer):
        self.session = session
        self.days = days

    def repair_duplicate_attendance(self, employee_id: int) -> int:
        """
        Keep the most complete record per day and delete the others.

        Ties go to the earliest created record.

        Returns:
            Number of records deleted
        """
        records = self.session.exec(
            select(Attendance).where(Attendance.employee_id == employee_id)
        ).all()

        by_day: dict[date, list[Attendance]] = defaultdict(list)
        for record in records:
            by_day[self.days.normalize(record.day)].append(record)

        deleted = 0
        for day, group in sorted(by_day.items()):
            if len(group) < 2:
                continue
            group.sort(key=lambda r: (-completeness(r), r.created_at, r.id))
            keeper, duplicates = group[0], group[1:]
            logger.info(
                f"Employee {employee_id} has {len(group)} records for {day}, "
                f"keeping {keeper.id}"
            )
            for duplicate in duplicates:
                self.session.delete(duplicate)
                deleted += 1

        if deleted:
            self.session.commit()
        logger.info(f"Removed {deleted} duplicate attendance record(s) for employee {employee_id}")
        return deleted

    def repair_all_attendance(self) -> dict[int, int]:
        """Run the duplicate repair for every employee with attendance rows."""
        employee_ids = self.session.exec(
            select(Attendance.employee_id).distinct()
        ).all()
        results = {}
        for employee_id in sorted(employee_ids):
            removed = self.repair_duplicate_attendance(employee_id)
            if removed:
                results[employee_id] = removed
        return results

    def purge_null_leave_days(self) -> int:
        """Delete leave requests that were saved without a date."""
        broken = self.session.exec(
            select(LeaveRequest).where(col(LeaveRequest.leave_day).is_(None))
        ).all()
        for request in broken:
            self.session.delete(request)
        if broken:
            self.session.commit()
        logger.info(f"Removed {len(broken)} leave request(s) with no date")
        return len(broken)

    def reset_day(self, employee_id: int, day: date) -> bool:
        """
        Force-delete the employee's attendance for ``day``.

        Manual escape hatch for a check-in that cannot otherwise be unblocked.
        Returns True if anything was deleted.
        """
        day = self.days.normalize(day)
        start, end = self.days.day_range(day)
        records = self.session.exec(
            select(Attendance).where(
                (Attendance.employee_id == employee_id)
                & (Attendance.day >= start)
                & (Attendance.day < end)
            )
        ).all()
        for record in records:
            self.session.delete(record)
        if records:
            self.session.commit()
            logger.warning(
                f"Reset attendance for employee {employee_id} on {day}: "
                f"deleted {len(records)} record(s)"
            )
        return bool(records)
