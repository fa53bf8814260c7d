"""
Admin endpoints: roster, daily and monthly attendance views, status
corrections, leave decisions and on-demand reconciliation.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Query

from app.api.dependencies import (
    AdminDep,
    AttendanceLedgerDep,
    DaysDep,
    EmployeeDirectoryDep,
    LeaveLedgerDep,
    ReconciliationDep,
)
from app.core.events import (
    AttendanceUpdatedEvent,
    EventType,
    LeaveDecidedEvent,
    create_event,
)
from app.core.exceptions import InvalidInput
from app.core.kafka import publish_event_safely
from app.core.logging import get_logger
from app.core.topics import KafkaTopics
from app.models.attendance import (
    AttendanceEntry,
    AttendanceStatusUpdate,
    ReconcileResponse,
)
from app.models.employee import EmployeePublic
from app.models.leave import LeaveDecision, LeaveRequestPublic
from app.services.attendance_views import (
    fill_month,
    leave_to_public,
    roster_for_day,
    to_entry,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _parse_employee_filter(value: Optional[str]) -> Optional[int]:
    if value is None or value == "" or value == "all":
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidInput("Invalid employeeId")


@router.get("/employees", response_model=list[EmployeePublic])
async def list_employees(admin: AdminDep, directory: EmployeeDirectoryDep):
    return await directory.list_employees()


@router.get("/attendance", response_model=list[AttendanceEntry])
async def get_attendance_for_day(
    admin: AdminDep,
    ledger: AttendanceLedgerDep,
    directory: EmployeeDirectoryDep,
    days: DaysDep,
    date: Annotated[Optional[str], Query()] = None,
):
    """
    One entry per active employee for the given day (default today).

    Employees without a record get an unsaved ``Absent`` placeholder.
    """
    day = days.normalize(date) if date else days.today()
    records = ledger.records_for_day(day)
    employees = await directory.list_employees()
    return roster_for_day(records, employees, day, days)


@router.get("/attendance/monthly", response_model=list[AttendanceEntry])
async def get_monthly_attendance(
    admin: AdminDep,
    ledger: AttendanceLedgerDep,
    directory: EmployeeDirectoryDep,
    days: DaysDep,
    year: Annotated[Optional[int], Query(ge=1970, le=9999)] = None,
    month: Annotated[Optional[int], Query(ge=1, le=12)] = None,
    employee_filter: Annotated[Optional[str], Query(alias="employeeId")] = None,
):
    """
    Attendance for a month.

    For a single employee every past day of the month is present, with
    placeholders for missing days. For ``employeeId=all`` (or none) only
    stored records are returned.

    Args:
        year: Calendar year, defaults to the current one
        month: Month 1-12, defaults to the current one
        employee_filter: Employee id, ``all`` or omitted

    Returns:
        list[AttendanceEntry]: Entries ordered by day

    Raises:
        HTTPException: 400 if employeeId is not a number or ``all``
        HTTPException: 401 if the caller is not an admin
    """
    today = days.today()
    year = year or today.year
    month = month or today.month
    employee_id = _parse_employee_filter(employee_filter)
    first, next_first = days.month_range(year, month)

    if employee_id is None:
        records = ledger.records_between(first, next_first)
        roster = {e.id: e for e in await directory.list_employees()}
        return [to_entry(r, days, roster.get(r.employee_id)) for r in records]

    records = ledger.records_between(first, next_first, employee_id=employee_id)
    employee = await directory.get_employee(employee_id)
    if employee is None:
        # Unknown employee: no roster to fill against
        return [to_entry(r, days) for r in records]
    return fill_month(records, employee_id, year, month, days, employee)


@router.post("/attendance/update", response_model=AttendanceEntry)
async def update_attendance_status(
    update: AttendanceStatusUpdate,
    admin: AdminDep,
    ledger: AttendanceLedgerDep,
    directory: EmployeeDirectoryDep,
    days: DaysDep,
):
    """
    Set an employee's status for a day and notify them.

    Args:
        update: Employee id, day and new status

    Returns:
        AttendanceEntry: The created or updated record

    Raises:
        HTTPException: 400 if a field is missing or the status is unknown
        HTTPException: 404 if the employee does not exist
    """
    if update.employee_id is None or not update.date or not update.status:
        raise InvalidInput("Missing required fields")

    employee = await directory.get_employee(update.employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")

    day = days.normalize(update.date)
    record, notified = ledger.correct_status(update.employee_id, day, update.status)
    if not notified.ok:
        logger.warning(f"Attendance for employee {update.employee_id} updated without notification")

    event = create_event(
        EventType.ATTENDANCE_UPDATED,
        AttendanceUpdatedEvent(
            attendance_id=record.id,
            employee_id=record.employee_id,
            day=day,
            status=record.status.value,
            reason="admin_correction",
        ),
        actor_user_id=admin.sub,
        actor_role=admin.role,
    )
    await publish_event_safely(KafkaTopics.ATTENDANCE_UPDATED, event, key=str(record.employee_id))

    return to_entry(record, days, employee)


@router.get("/leave-requests", response_model=list[LeaveRequestPublic])
async def list_leave_requests(
    admin: AdminDep,
    ledger: LeaveLedgerDep,
    directory: EmployeeDirectoryDep,
    days: DaysDep,
):
    """All dated leave requests, newest first."""
    requests = ledger.list_all()
    roster = {e.id: e for e in await directory.list_employees()}
    return [leave_to_public(r, days, roster.get(r.employee_id)) for r in requests]


@router.post("/leave-requests/update", response_model=LeaveRequestPublic)
async def decide_leave_request(
    decision: LeaveDecision,
    admin: AdminDep,
    ledger: LeaveLedgerDep,
    days: DaysDep,
):
    """
    Approve or reject a pending request.

    The employee is notified and, on approval, the day is booked in the
    attendance ledger. Neither side effect can fail the decision itself.

    Args:
        decision: Leave request id and ``Approved`` or ``Rejected``

    Returns:
        LeaveRequestPublic: The decided request

    Raises:
        HTTPException: 400 if a field is missing, the status is invalid, or
            the request is undated or already decided
        HTTPException: 404 if the leave request does not exist
    """
    if decision.leave_id is None or not decision.status:
        raise InvalidInput("Missing required fields")

    outcome = ledger.decide(decision.leave_id, decision.status)
    request = outcome.request
    public = leave_to_public(request, days)

    event = create_event(
        EventType.LEAVE_DECIDED,
        LeaveDecidedEvent(
            leave_request_id=request.id,
            employee_id=request.employee_id,
            leave_date=public.leave_date,
            status=request.status.value,
            attendance_updated=outcome.attendance is not None and outcome.attendance.ok,
            notification_sent=outcome.notification is not None and outcome.notification.ok,
        ),
        actor_user_id=admin.sub,
        actor_role=admin.role,
    )
    await publish_event_safely(KafkaTopics.LEAVE_DECIDED, event, key=str(request.employee_id))

    if outcome.attendance is not None and outcome.attendance.ok:
        record = outcome.attendance.value
        event = create_event(
            EventType.ATTENDANCE_UPDATED,
            AttendanceUpdatedEvent(
                attendance_id=record.id,
                employee_id=record.employee_id,
                day=public.leave_date,
                status=record.status.value,
                reason="leave_approved",
            ),
            actor_user_id=admin.sub,
            actor_role=admin.role,
        )
        await publish_event_safely(
            KafkaTopics.ATTENDANCE_UPDATED, event, key=str(record.employee_id)
        )

    return public


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile(admin: AdminDep, reconciliation: ReconciliationDep):
    """Collapse duplicate day records for everyone and purge undated leave."""
    by_employee = reconciliation.repair_all_attendance()
    purged = reconciliation.purge_null_leave_days()
    return ReconcileResponse(
        duplicates_removed=sum(by_employee.values()),
        null_leave_days_removed=purged,
        by_employee=by_employee,
    )
