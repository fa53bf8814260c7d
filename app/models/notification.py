"""
Employee notification model.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.days import utcnow


class NotificationType(str, Enum):
    ATTENDANCE = "Attendance"
    LEAVE = "Leave"


class Notification(SQLModel, table=True):
    """Append-only message to an employee. Only ``read`` ever changes."""

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(index=True, nullable=False)
    message: str = Field(max_length=500)
    type: NotificationType
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)


class NotificationPublic(SQLModel):
    id: int
    employee_id: int
    message: str
    type: NotificationType
    read: bool
    created_at: datetime
