"""
Attendance and leave business logic.
"""

from app.services.attendance_ledger import AttendanceLedger
from app.services.leave_ledger import LeaveLedger
from app.services.notification_outbox import NotificationOutbox
from app.services.reconciliation import ReconciliationService

__all__ = [
    "AttendanceLedger",
    "LeaveLedger",
    "NotificationOutbox",
    "ReconciliationService",
]
