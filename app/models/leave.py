"""
Leave request database model and schemas.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.core.days import utcnow
from app.models.employee import EmployeeSummary


class LeaveStatus(str, Enum):
    """Lifecycle of a leave request."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveRequest(SQLModel, table=True):
    """
    ORM model for leave requests.

    ``leave_day`` is nullable only so that corrupt legacy rows can be loaded
    and purged; the ledger never writes a null day. SQL unique constraints
    ignore NULLs, so the constraint applies to non-null days only.
    """

    __tablename__ = "leave_requests"
    __table_args__ = (
        UniqueConstraint("employee_id", "leave_day", name="uq_leave_employee_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(index=True, nullable=False)
    leave_day: Optional[datetime] = Field(
        default=None, sa_type=DateTime, index=True, nullable=True
    )
    reason: str = Field(max_length=500)
    status: LeaveStatus = Field(default=LeaveStatus.PENDING)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)


class LeaveRequestCreate(BaseModel):
    """Employee leave submission. Validation happens in the ledger."""

    model_config = ConfigDict(populate_by_name=True)

    leave_date: Optional[str] = PydanticField(default=None, alias="leaveDate")
    reason: Optional[str] = None


class LeaveDecision(BaseModel):
    """Admin decision on a leave request."""

    model_config = ConfigDict(populate_by_name=True)

    leave_id: Optional[int] = PydanticField(default=None, alias="leaveId")
    status: Optional[str] = None


class LeaveRequestPublic(BaseModel):
    id: int
    employee_id: int
    leave_date: date
    reason: str
    status: LeaveStatus
    created_at: datetime
    updated_at: datetime
    employee: Optional[EmployeeSummary] = None
