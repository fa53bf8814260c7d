"""
Read-side shaping of attendance for the API.

The ledger only returns rows that exist. Admin screens want one entry per
employee per day, so days without a row are filled with transient
``Absent`` placeholders (``id = None``) that are never persisted.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from app.core.days import DayNormalizer, from_storage
from app.models.attendance import Attendance, AttendanceEntry, AttendanceStatus
from app.models.employee import EmployeePublic, EmployeeSummary
from app.models.leave import LeaveRequest, LeaveRequestPublic
from app.models.notification import Notification, NotificationPublic


def summarize(employee: Optional[EmployeePublic]) -> Optional[EmployeeSummary]:
    if employee is None:
        return None
    return EmployeeSummary(
        id=employee.id,
        full_name=employee.full_name,
        email=employee.email,
        employee_code=employee.employee_code,
    )


def to_entry(
    record: Attendance,
    days: DayNormalizer,
    employee: Optional[EmployeePublic] = None,
) -> AttendanceEntry:
    return AttendanceEntry(
        id=record.id,
        employee_id=record.employee_id,
        day=days.normalize(record.day),
        check_in_time=from_storage(record.check_in_time),
        check_out_time=from_storage(record.check_out_time),
        status=record.status,
        created_at=from_storage(record.created_at),
        updated_at=from_storage(record.updated_at),
        employee=summarize(employee),
    )


def placeholder(
    employee_id: int, day: date, employee: Optional[EmployeePublic] = None
) -> AttendanceEntry:
    return AttendanceEntry(
        id=None,
        employee_id=employee_id,
        day=day,
        status=AttendanceStatus.ABSENT,
        employee=summarize(employee),
    )


def roster_for_day(
    records: Iterable[Attendance],
    employees: Iterable[EmployeePublic],
    day: date,
    days: DayNormalizer,
) -> list[AttendanceEntry]:
    """One entry per roster employee for ``day``, real or placeholder."""
    by_employee: dict[int, Attendance] = {}
    for record in records:
        # Records arrive ordered, so the first one per employee wins
        by_employee.setdefault(record.employee_id, record)

    entries = []
    for employee in employees:
        record = by_employee.get(employee.id)
        if record is not None:
            entries.append(to_entry(record, days, employee))
        else:
            entries.append(placeholder(employee.id, day, employee))
    return entries


def fill_month(
    records: Iterable[Attendance],
    employee_id: int,
    year: int,
    month: int,
    days: DayNormalizer,
    employee: Optional[EmployeePublic] = None,
) -> list[AttendanceEntry]:
    """
    Every day of the month up to today, ascending.

    Days with a record use it; past days without one get an ``Absent``
    placeholder. Days after today are omitted.
    """
    by_day: dict[date, Attendance] = {}
    for record in records:
        by_day.setdefault(days.normalize(record.day), record)

    first, next_first = days.month_range(year, month)
    entries = []
    current = first
    while current < next_first:
        if days.is_future(current):
            break
        record = by_day.get(current)
        if record is not None:
            entries.append(to_entry(record, days, employee))
        else:
            entries.append(placeholder(employee_id, current, employee))
        current += timedelta(days=1)
    return entries


def leave_to_public(
    request: LeaveRequest,
    days: DayNormalizer,
    employee: Optional[EmployeePublic] = None,
) -> LeaveRequestPublic:
    return LeaveRequestPublic(
        id=request.id,
        employee_id=request.employee_id,
        leave_date=days.normalize(request.leave_day),
        reason=request.reason,
        status=request.status,
        created_at=from_storage(request.created_at),
        updated_at=from_storage(request.updated_at),
        employee=summarize(employee),
    )


def notification_to_public(notification: Notification) -> NotificationPublic:
    return NotificationPublic(
        id=notification.id,
        employee_id=notification.employee_id,
        message=notification.message,
        type=notification.type,
        read=notification.read,
        created_at=from_storage(notification.created_at),
    )
