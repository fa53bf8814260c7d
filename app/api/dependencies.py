"""
Shared API dependencies.
Contains reusable dependency functions for FastAPI endpoints: database
sessions, the day normalizer, authenticated identity and the ledgers.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_session
from app.core.days import DayNormalizer
from app.core.employee_service import EmployeeDirectory
from app.core.security import (
    TokenData,
    get_current_employee_id,
    require_admin,
)
from app.services.attendance_ledger import AttendanceLedger
from app.services.leave_ledger import LeaveLedger
from app.services.notification_outbox import NotificationOutbox
from app.services.reconciliation import ReconciliationService


@lru_cache
def get_day_normalizer() -> DayNormalizer:
    return DayNormalizer(settings.REFERENCE_TIMEZONE)


# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]

DaysDep = Annotated[DayNormalizer, Depends(get_day_normalizer)]

# Identity
EmployeeIdDep = Annotated[int, Depends(get_current_employee_id)]
AdminDep = Annotated[TokenData, Depends(require_admin)]


def get_outbox(session: SessionDep) -> NotificationOutbox:
    return NotificationOutbox(session)


OutboxDep = Annotated[NotificationOutbox, Depends(get_outbox)]


def get_attendance_ledger(
    session: SessionDep, days: DaysDep, outbox: OutboxDep
) -> AttendanceLedger:
    return AttendanceLedger(session, days, outbox)


AttendanceLedgerDep = Annotated[AttendanceLedger, Depends(get_attendance_ledger)]


def get_leave_ledger(
    session: SessionDep,
    days: DaysDep,
    attendance: AttendanceLedgerDep,
    outbox: OutboxDep,
) -> LeaveLedger:
    return LeaveLedger(session, days, attendance, outbox)


LeaveLedgerDep = Annotated[LeaveLedger, Depends(get_leave_ledger)]


def get_reconciliation(session: SessionDep, days: DaysDep) -> ReconciliationService:
    return ReconciliationService(session, days)


ReconciliationDep = Annotated[ReconciliationService, Depends(get_reconciliation)]


def get_employee_directory(session: SessionDep) -> EmployeeDirectory:
    return EmployeeDirectory(session)


EmployeeDirectoryDep = Annotated[EmployeeDirectory, Depends(get_employee_directory)]
