"""
Notification outbox: append-only employee messages.
"""

from sqlmodel import Session, col, select

from app.core.config import settings
from app.core.exceptions import NotFound
from app.core.logging import get_logger
from app.models.notification import Notification, NotificationType
from app.services.best_effort import BestEffortResult, run_best_effort

logger = get_logger(__name__)


class NotificationOutbox:
    def __init__(self, session: Session):
        self.session = session

    def append(
        self, employee_id: int, message: str, type: NotificationType
    ) -> Notification:
        notification = Notification(
            employee_id=employee_id, message=message, type=NotificationType(type)
        )
        self.session.add(notification)
        self.session.commit()
        self.session.refresh(notification)
        logger.info(f"Notification {notification.id} queued for employee {employee_id}")
        return notification

    def try_append(
        self, employee_id: int, message: str, type: NotificationType
    ) -> BestEffortResult:
        """Append without letting a storage failure escape."""
        return run_best_effort(
            self.session,
            f"notification for employee {employee_id}",
            lambda: self.append(employee_id, message, type),
        )

    def list_recent(self, employee_id: int, limit: int | None = None) -> list[Notification]:
        """Newest first, at most ``limit`` (defaults to NOTIFICATION_LIMIT)."""
        if limit is None:
            limit = settings.NOTIFICATION_LIMIT
        statement = (
            select(Notification)
            .where(Notification.employee_id == employee_id)
            .order_by(col(Notification.created_at).desc(), col(Notification.id).desc())
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def mark_read(self, employee_id: int, notification_id: int) -> Notification:
        notification = self.session.get(Notification, notification_id)
        # Someone else's notification is reported exactly like a missing one
        if not notification or notification.employee_id != employee_id:
            raise NotFound("Notification not found")
        if not notification.read:
            notification.read = True
            self.session.add(notification)
            self.session.commit()
            self.session.refresh(notification)
        return notification
