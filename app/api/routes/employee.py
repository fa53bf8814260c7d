"""
Employee self-service endpoints: check-in/out, leave requests, own
attendance and notifications, and self-scoped repair of today's record.
"""

from fastapi import APIRouter, HTTPException

from app.api.dependencies import (
    AttendanceLedgerDep,
    DaysDep,
    EmployeeDirectoryDep,
    EmployeeIdDep,
    LeaveLedgerDep,
    OutboxDep,
    ReconciliationDep,
)
from app.core.days import from_storage
from app.core.events import (
    AttendanceCheckinEvent,
    AttendanceCheckoutEvent,
    AttendanceDeletedEvent,
    EventType,
    LeaveRequestedEvent,
    create_event,
)
from app.core.kafka import publish_event_safely
from app.core.logging import get_logger
from app.core.topics import KafkaTopics
from app.models.attendance import AttendanceEntry, RepairResponse, ResetDayResponse
from app.models.employee import EmployeePublic
from app.models.leave import LeaveRequestCreate, LeaveRequestPublic
from app.models.notification import NotificationPublic
from app.services.attendance_views import (
    leave_to_public,
    notification_to_public,
    to_entry,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/employee", tags=["employee"])


@router.get("/me", response_model=EmployeePublic)
async def get_me(employee_id: EmployeeIdDep, directory: EmployeeDirectoryDep):
    """
    Directory entry for the authenticated employee.

    Raises:
        HTTPException: 404 if the employee is unknown or no longer active
    """
    employee = await directory.get_active_employee(employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.post("/check-in", response_model=AttendanceEntry)
async def check_in(
    employee_id: EmployeeIdDep, ledger: AttendanceLedgerDep, days: DaysDep
):
    """
    Check in for today.

    Idempotent: a second call returns the record created by the first one
    without changing its check-in time. A status-only record for today
    (an admin correction) gets the check-in recorded on it.

    Args:
        employee_id: Authenticated employee from the bearer token
        ledger: Attendance ledger bound to the request session
        days: Reference-zone day normalizer

    Returns:
        AttendanceEntry: Today's record with its check-in time

    Raises:
        HTTPException: 400 if a concurrent check-in cannot be re-read
    """
    logger.info(f"Check-in attempt for employee {employee_id}")
    record = ledger.check_in(employee_id)

    event = create_event(
        EventType.ATTENDANCE_CHECKIN,
        AttendanceCheckinEvent(
            attendance_id=record.id,
            employee_id=employee_id,
            day=days.normalize(record.day),
            check_in_time=from_storage(record.check_in_time),
        ),
        actor_user_id=str(employee_id),
        actor_role="employee",
    )
    await publish_event_safely(KafkaTopics.ATTENDANCE_CHECKIN, event, key=str(employee_id))

    return to_entry(record, days)


@router.post("/check-out", response_model=AttendanceEntry)
async def check_out(
    employee_id: EmployeeIdDep, ledger: AttendanceLedgerDep, days: DaysDep
):
    """
    Check out for today.

    Args:
        employee_id: Authenticated employee from the bearer token
        ledger: Attendance ledger bound to the request session
        days: Reference-zone day normalizer

    Returns:
        AttendanceEntry: Today's record with both times set

    Raises:
        HTTPException: 400 if not checked in, already checked out, or the
            check-out would precede the check-in
    """
    logger.info(f"Check-out attempt for employee {employee_id}")
    record = ledger.check_out(employee_id)

    worked = record.check_out_time - record.check_in_time
    event = create_event(
        EventType.ATTENDANCE_CHECKOUT,
        AttendanceCheckoutEvent(
            attendance_id=record.id,
            employee_id=employee_id,
            day=days.normalize(record.day),
            check_in_time=from_storage(record.check_in_time),
            check_out_time=from_storage(record.check_out_time),
            hours_worked=round(worked.total_seconds() / 3600, 2),
        ),
        actor_user_id=str(employee_id),
        actor_role="employee",
    )
    await publish_event_safely(KafkaTopics.ATTENDANCE_CHECKOUT, event, key=str(employee_id))

    return to_entry(record, days)


@router.post("/leave-request", response_model=LeaveRequestPublic)
async def submit_leave_request(
    request: LeaveRequestCreate,
    employee_id: EmployeeIdDep,
    ledger: LeaveLedgerDep,
    days: DaysDep,
):
    """
    Submit a leave request for one day.

    Args:
        request: Leave date and reason
        employee_id: Authenticated employee from the bearer token
        ledger: Leave ledger bound to the request session
        days: Reference-zone day normalizer

    Returns:
        LeaveRequestPublic: The stored request, status ``Pending``

    Raises:
        HTTPException: 400 if the date or reason is missing, or a request
            already exists for that day
    """
    leave = ledger.submit(employee_id, request.leave_date, request.reason)
    public = leave_to_public(leave, days)

    event = create_event(
        EventType.LEAVE_REQUESTED,
        LeaveRequestedEvent(
            leave_request_id=leave.id,
            employee_id=employee_id,
            leave_date=public.leave_date,
            reason=leave.reason,
        ),
        actor_user_id=str(employee_id),
        actor_role="employee",
    )
    await publish_event_safely(KafkaTopics.LEAVE_REQUESTED, event, key=str(employee_id))

    return public


@router.get("/attendance", response_model=list[AttendanceEntry])
async def get_my_attendance(
    employee_id: EmployeeIdDep, ledger: AttendanceLedgerDep, days: DaysDep
):
    """Current month's attendance records, oldest first. Gaps are not filled."""
    today = days.today()
    records = ledger.month_view(employee_id, today.year, today.month)
    return [to_entry(r, days) for r in records]


@router.get("/notifications", response_model=list[NotificationPublic])
async def get_my_notifications(employee_id: EmployeeIdDep, outbox: OutboxDep):
    return [notification_to_public(n) for n in outbox.list_recent(employee_id)]


@router.post("/notifications/{notification_id}/read", response_model=NotificationPublic)
async def mark_notification_read(
    notification_id: int, employee_id: EmployeeIdDep, outbox: OutboxDep
):
    return notification_to_public(outbox.mark_read(employee_id, notification_id))


@router.post("/reset-today", response_model=ResetDayResponse)
async def reset_today(
    employee_id: EmployeeIdDep, reconciliation: ReconciliationDep, days: DaysDep
):
    """
    Delete the caller's attendance for today.

    Manual escape hatch when a check-in is stuck; only ever touches the
    authenticated employee's own record.
    """
    today = days.today()
    deleted = reconciliation.reset_day(employee_id, today)

    if deleted:
        event = create_event(
            EventType.ATTENDANCE_DELETED,
            AttendanceDeletedEvent(employee_id=employee_id, day=today, reason="reset"),
            actor_user_id=str(employee_id),
            actor_role="employee",
        )
        await publish_event_safely(KafkaTopics.ATTENDANCE_DELETED, event, key=str(employee_id))

    message = (
        "Today's attendance was reset. You can check in again."
        if deleted
        else "No attendance record found for today."
    )
    return ResetDayResponse(success=True, deleted=deleted, message=message)


@router.post("/fix-attendance", response_model=RepairResponse)
async def fix_my_attendance(employee_id: EmployeeIdDep, reconciliation: ReconciliationDep):
    """Collapse duplicate day records for the caller."""
    cleaned = reconciliation.repair_duplicate_attendance(employee_id)

    if cleaned:
        event = create_event(
            EventType.ATTENDANCE_DELETED,
            AttendanceDeletedEvent(
                employee_id=employee_id, records_deleted=cleaned, reason="duplicate_repair"
            ),
            actor_user_id=str(employee_id),
            actor_role="employee",
        )
        await publish_event_safely(KafkaTopics.ATTENDANCE_DELETED, event, key=str(employee_id))

    return RepairResponse(
        success=True,
        records_cleaned=cleaned,
        message=f"Database fixed. Cleaned {cleaned} duplicate records.",
    )
