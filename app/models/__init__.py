"""
Database models and schemas module.
Contains all SQLModel table definitions and Pydantic schemas.
"""

from app.models.attendance import (
    Attendance,
    AttendanceEntry,
    AttendanceStatus,
    AttendanceStatusUpdate,
)
from app.models.employee import (
    EmployeeCache,
    EmployeePublic,
    EmployeeSummary,
)
from app.models.leave import (
    LeaveDecision,
    LeaveRequest,
    LeaveRequestCreate,
    LeaveRequestPublic,
    LeaveStatus,
)
from app.models.notification import (
    Notification,
    NotificationPublic,
    NotificationType,
)

__all__ = [
    "EmployeeCache",
    "EmployeePublic",
    "EmployeeSummary",
    "Attendance",
    "AttendanceEntry",
    "AttendanceStatus",
    "AttendanceStatusUpdate",
    "LeaveRequest",
    "LeaveRequestCreate",
    "LeaveRequestPublic",
    "LeaveDecision",
    "LeaveStatus",
    "Notification",
    "NotificationPublic",
    "NotificationType",
]
