"""
Attendance database model and schemas.

One row per employee per calendar day. ``day`` holds the UTC instant of the
reference-zone midnight for the DayKey (see app.core.days); the unique
constraint on (employee_id, day) is what makes check-in at-most-once.

Every datetime column is declared with a plain ``DateTime`` type: values are
stored as naive UTC, whatever type sqlmodel would infer for ``datetime``.
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


class AttendanceStatus(str, Enum):
    """Status of attendance record."""

    PRESENT = "Present"
    ABSENT = "Absent"
    HALF_DAY = "Half-Day"
    ON_LEAVE = "On Leave"


# Database Model


class Attendance(SQLModel, table=True):
    """ORM model for the attendance ledger."""

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("employee_id", "day", name="uq_attendance_employee_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    employee_id: int = Field(index=True, nullable=False)
    day: datetime = Field(sa_type=DateTime, index=True, nullable=False)

    check_in_time: Optional[datetime] = Field(default=None, sa_type=DateTime, nullable=True)
    check_out_time: Optional[datetime] = Field(default=None, sa_type=DateTime, nullable=True)

    status: AttendanceStatus = Field(default=AttendanceStatus.ABSENT)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)


# Request Schemas


class AttendanceStatusUpdate(BaseModel):
    """Admin correction of one employee's status for one day."""

    model_config = ConfigDict(populate_by_name=True)

    employee_id: Optional[int] = PydanticField(default=None, alias="employeeId")
    date: Optional[str] = None
    status: Optional[str] = None


# Response Schemas


class AttendanceEntry(BaseModel):
    """
    Attendance as returned by the API.

    Placeholders synthesised for days without a record carry ``id = None``
    and null timestamps.
    """

    id: Optional[int] = None
    employee_id: int
    day: date
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    status: AttendanceStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employee: Optional[EmployeeSummary] = None


class ResetDayResponse(BaseModel):
    success: bool
    deleted: bool
    message: str


class RepairResponse(BaseModel):
    success: bool
    records_cleaned: int
    message: str


class ReconcileResponse(BaseModel):
    """Result of an admin-triggered reconciliation sweep."""

    duplicates_removed: int
    null_leave_days_removed: int
    by_employee: dict[int, int] = {}
