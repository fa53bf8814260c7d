"""
Leave ledger.

One leave request per (employee, day). A request is created Pending and is
decided exactly once. Approval records the day as ``Absent`` in the
attendance ledger; the notification and the attendance write are
best-effort and never undo the decision.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.core.days import DayNormalizer, utcnow
from app.core.exceptions import Conflict, InvalidInput, NotFound, PreconditionFailed
from app.core.logging import get_logger
from app.models.attendance import AttendanceStatus
from app.models.leave import LeaveRequest, LeaveStatus
from app.models.notification import NotificationType
from app.services.attendance_ledger import AttendanceLedger
from app.services.best_effort import BestEffortResult, run_best_effort
from app.services.notification_outbox import NotificationOutbox

logger = get_logger(__name__)

DUPLICATE_LEAVE_MESSAGE = "You already have a leave request for this date"

# Approved leave is booked as an absence, not as "On Leave"
APPROVED_LEAVE_ATTENDANCE_STATUS = AttendanceStatus.ABSENT


@dataclass(frozen=True)
class LeaveDecisionOutcome:
    request: LeaveRequest
    notification: Optional[BestEffortResult] = None
    attendance: Optional[BestEffortResult] = None


class LeaveLedger:
    def __init__(
        self,
        session: Session,
        days: DayNormalizer,
        attendance: Optional[AttendanceLedger] = None,
        outbox: Optional[NotificationOutbox] = None,
    ):
        self.session = session
        self.days = days
        self.outbox = outbox or NotificationOutbox(session)
        self.attendance = attendance or AttendanceLedger(session, days, self.outbox)

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        return self.session.get(LeaveRequest, request_id)

    def find_for_day(self, employee_id: int, day) -> Optional[LeaveRequest]:
        start, end = self.days.day_range(day)
        statement = select(LeaveRequest).where(
            (LeaveRequest.employee_id == employee_id)
            & (LeaveRequest.leave_day >= start)
            & (LeaveRequest.leave_day < end)
        )
        return self.session.exec(statement).first()

    def submit(self, employee_id: int, day, reason: Optional[str]) -> LeaveRequest:
        """
        Create a Pending leave request.

        Raises:
            InvalidInput: day missing/unparseable or reason blank
            Conflict: a request already exists for (employee, day)
        """
        if day is None:
            raise InvalidInput("Leave date is required")
        leave_day = self.days.normalize(day)
        if not reason or not reason.strip():
            raise InvalidInput("Reason is required")

        if self.find_for_day(employee_id, leave_day):
            raise Conflict(DUPLICATE_LEAVE_MESSAGE)

        request = LeaveRequest(
            employee_id=employee_id,
            leave_day=self.days.start_of(leave_day),
            reason=reason.strip(),
            status=LeaveStatus.PENDING,
        )
        self.session.add(request)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise Conflict(DUPLICATE_LEAVE_MESSAGE)
        self.session.refresh(request)
        logger.info(f"Leave request {request.id} submitted by employee {employee_id} for {leave_day}")
        return request

    def decide(self, request_id: int, decision) -> LeaveDecisionOutcome:
        try:
            decision = LeaveStatus(decision)
        except ValueError:
            decision = None
        if decision not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            raise InvalidInput("Status must be Approved or Rejected")

        request = self.get(request_id)
        if request is None:
            raise NotFound("Leave request not found")
        if request.leave_day is None:
            raise PreconditionFailed("Leave request has no date")

        if request.status == decision:
            logger.info(f"Leave request {request_id} already {decision.value}")
            return LeaveDecisionOutcome(request=request)
        if request.status != LeaveStatus.PENDING:
            raise PreconditionFailed(f"Leave request was already {request.status.value.lower()}")

        request.status = decision
        request.updated_at = utcnow()
        self.session.add(request)
        self.session.commit()
        self.session.refresh(request)
        logger.info(f"Leave request {request_id} {decision.value.lower()}")

        employee_id = request.employee_id
        leave_day = self.days.normalize(request.leave_day)

        message = (
            f"Your leave request for {leave_day.strftime('%B %d, %Y')} "
            f"has been {decision.value.lower()}."
        )
        notified = self.outbox.try_append(employee_id, message, NotificationType.LEAVE)

        booked = None
        if decision == LeaveStatus.APPROVED:
            booked = run_best_effort(
                self.session,
                f"attendance update for leave request {request_id}",
                lambda: self.attendance.upsert_status(
                    employee_id, leave_day, APPROVED_LEAVE_ATTENDANCE_STATUS
                ),
            )

        self.session.refresh(request)
        return LeaveDecisionOutcome(request=request, notification=notified, attendance=booked)

    def list_all(self) -> list[LeaveRequest]:
        """Every request with a usable day, newest first."""
        statement = (
            select(LeaveRequest)
            .where(col(LeaveRequest.leave_day).is_not(None))
            .order_by(col(LeaveRequest.created_at).desc(), col(LeaveRequest.id).desc())
        )
        return list(self.session.exec(statement).all())
