"""
Best-effort side effects.

Notifications and the attendance upsert triggered by a leave approval are
secondary writes: when they fail, the primary operation has already been
committed and must still report success. ``run_best_effort`` executes such
a write, rolls the session back on failure so it stays usable, logs a
warning, and hands the outcome back to the caller.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.exceptions import LedgerError
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BestEffortResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def run_best_effort(
    session: Session, label: str, operation: Callable[[], Any]
) -> BestEffortResult:
    try:
        return BestEffortResult(ok=True, value=operation())
    except (SQLAlchemyError, LedgerError) as e:
        session.rollback()
        logger.warning(f"Best-effort {label} failed: {e}")
        return BestEffortResult(ok=False, error=str(e))
