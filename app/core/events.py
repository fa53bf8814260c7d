"""
Event definitions for the Attendance & Leave Service.

Every attendance or leave transition is published as an EventEnvelope so
that audit and notification-delivery services can follow the ledgers.
Publishing is best-effort and never affects the HTTP response.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """All event types produced by the Attendance & Leave Service."""

    ATTENDANCE_CHECKIN = "attendance.checkin"
    ATTENDANCE_CHECKOUT = "attendance.checkout"
    ATTENDANCE_UPDATED = "attendance.updated"
    ATTENDANCE_DELETED = "attendance.deleted"

    LEAVE_REQUESTED = "leave.requested"
    LEAVE_DECIDED = "leave.decided"


class EventMetadata(BaseModel):
    """Metadata attached to every event for tracing and correlation."""

    source_service: str = "attendance-leave-service"
    correlation_id: str = Field(default_factory=lambda: str(uuid4()))
    actor_user_id: Optional[str] = None
    actor_role: Optional[str] = None


class EventEnvelope(BaseModel):
    """
    Standard envelope for all events.
    Provides consistent structure for Kafka messages.
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: EventType
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    version: str = "1.0"
    data: dict[str, Any]
    metadata: EventMetadata = Field(default_factory=EventMetadata)


# Attendance Event Data Models


class AttendanceCheckinEvent(BaseModel):
    """Data for attendance.checkin event."""

    attendance_id: int
    employee_id: int
    day: date
    check_in_time: datetime


class AttendanceCheckoutEvent(BaseModel):
    """Data for attendance.checkout event."""

    attendance_id: int
    employee_id: int
    day: date
    check_in_time: datetime
    check_out_time: datetime
    hours_worked: float


class AttendanceUpdatedEvent(BaseModel):
    """Data for attendance.updated event (admin correction or leave approval)."""

    attendance_id: int
    employee_id: int
    day: date
    status: str
    reason: Optional[str] = None


class AttendanceDeletedEvent(BaseModel):
    """Data for attendance.deleted event (reset or reconciliation)."""

    employee_id: int
    day: Optional[date] = None
    records_deleted: Optional[int] = None
    reason: str


# Leave Event Data Models


class LeaveRequestedEvent(BaseModel):
    leave_request_id: int
    employee_id: int
    leave_date: date
    reason: str


class LeaveDecidedEvent(BaseModel):
    leave_request_id: int
    employee_id: int
    leave_date: date
    status: str
    attendance_updated: Optional[bool] = None
    notification_sent: Optional[bool] = None


def create_event(
    event_type: EventType,
    data: BaseModel,
    actor_user_id: Optional[str] = None,
    actor_role: Optional[str] = None,
) -> EventEnvelope:
    """
    Wrap event data in an envelope with metadata.

    Args:
        event_type: Type of the event
        data: Event data as a Pydantic model
        actor_user_id: ID of the user performing the action
        actor_role: Role of the user performing the action ("employee"/"admin")
    """
    return EventEnvelope(
        event_type=event_type,
        data=data.model_dump(mode="json"),
        metadata=EventMetadata(actor_user_id=actor_user_id, actor_role=actor_role),
    )
