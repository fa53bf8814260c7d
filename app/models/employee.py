"""
Employee cache model.

Employees are owned by the Employee Management Service. This table is a
local, read-only copy kept in sync from its Kafka lifecycle events so that
rosters and existence checks do not need an HTTP call per request.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.days import utcnow

# Statuses that count as a current member of the workforce
ACTIVE_STATUSES = ("active", "on_leave")


class EmployeeCache(SQLModel, table=True):
    """Employee cache table, synchronised from employee events."""

    __tablename__ = "employee_cache"

    id: int = Field(primary_key=True, description="Employee ID from employee service")
    email: str = Field(index=True, max_length=255)
    full_name: str = Field(max_length=511)
    employee_code: Optional[str] = Field(default=None, index=True, max_length=50)
    position: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)
    status: str = Field(default="active", max_length=50, index=True)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    synced_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class EmployeePublic(SQLModel):
    id: int
    email: str
    full_name: str
    employee_code: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class EmployeeSummary(BaseModel):
    """Employee fields embedded in admin attendance views."""

    id: int
    full_name: str
    email: str
    employee_code: Optional[str] = None
