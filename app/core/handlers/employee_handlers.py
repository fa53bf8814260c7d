"""
Employee event handlers.

Consume employee lifecycle events from the Employee Management Service and
keep the local employee cache current. Rosters and existence checks in the
attendance and leave endpoints read from this cache.
"""

from typing import Any, Optional

from sqlmodel import Session

from app.core.config import settings
from app.core.database import engine
from app.core.days import utcnow
from app.core.kafka import KafkaConsumer
from app.core.logging import get_logger
from app.core.topics import KafkaTopics
from app.models.employee import EmployeeCache

logger = get_logger(__name__)

# Event fields copied onto the cache row, keyed by cache attribute
_FIELD_SOURCES = {
    "email": ("email",),
    "employee_code": ("employee_code", "emCode"),
    "position": ("position", "job_title"),
    "department": ("department",),
}


def _full_name(data: dict[str, Any], fallback: str = "") -> str:
    if data.get("full_name"):
        return data["full_name"]
    name = f"{data.get('first_name', '')} {data.get('last_name', '')}".strip()
    return name or data.get("name") or fallback


def _apply_fields(employee: EmployeeCache, data: dict[str, Any]) -> None:
    for attribute, keys in _FIELD_SOURCES.items():
        for key in keys:
            if key in data:
                setattr(employee, attribute, data[key])
                break
    if any(k in data for k in ("full_name", "first_name", "last_name", "name")):
        employee.full_name = _full_name(data, employee.full_name)


def _employee_id(event_data: dict[str, Any], event_name: str) -> Optional[int]:
    employee_id = event_data.get("data", {}).get("employee_id")
    if not employee_id:
        logger.error(f"Employee {event_name} event missing employee_id")
        return None
    logger.info(f"Processing employee.{event_name} event for employee {employee_id}")
    return int(employee_id)


def handle_employee_created(event_data: dict[str, Any]):
    """
    Handle employee.created.

    Creates the cache row, or refreshes it when the event is redelivered.
    """
    try:
        employee_id = _employee_id(event_data, "created")
        if employee_id is None:
            return
        data = event_data.get("data", {})

        with Session(engine) as session:
            employee = session.get(EmployeeCache, employee_id)
            if employee:
                logger.warning(
                    f"Employee {employee_id} already exists in cache, updating instead"
                )
            else:
                employee = EmployeeCache(
                    id=employee_id, email="", full_name=_full_name(data)
                )
            _apply_fields(employee, data)
            employee.status = "active"
            employee.updated_at = utcnow()
            employee.synced_at = utcnow()
            session.add(employee)
            session.commit()
            logger.info(f"Cached employee {employee_id} ({employee.email})")

    except Exception as e:
        logger.error(f"Error handling employee.created event: {e}", exc_info=True)


def handle_employee_updated(event_data: dict[str, Any]):
    """
    Handle employee.updated.

    Changed fields arrive under ``updated_fields``. If the creation event was
    missed, the row is created from whatever the event carries.
    """
    try:
        employee_id = _employee_id(event_data, "updated")
        if employee_id is None:
            return
        data = event_data.get("data", {})
        updated_fields = data.get("updated_fields", {})

        with Session(engine) as session:
            employee = session.get(EmployeeCache, employee_id)
            if not employee:
                if not data.get("email"):
                    logger.warning(
                        f"Employee {employee_id} not in cache and event has no email, skipping"
                    )
                    return
                employee = EmployeeCache(
                    id=employee_id, email=data["email"], full_name=_full_name(data)
                )
                _apply_fields(employee, data)
                logger.info(f"Created missing employee cache for {employee_id} from update event")

            _apply_fields(employee, updated_fields)
            if "status" in updated_fields:
                employee.status = updated_fields["status"]
            employee.updated_at = utcnow()
            employee.synced_at = utcnow()
            session.add(employee)
            session.commit()
            logger.info(f"Updated employee cache for {employee_id}")

    except Exception as e:
        logger.error(f"Error handling employee.updated event: {e}", exc_info=True)


def _set_status(event_data: dict[str, Any], event_name: str, status: str):
    try:
        employee_id = _employee_id(event_data, event_name)
        if employee_id is None:
            return

        with Session(engine) as session:
            employee = session.get(EmployeeCache, employee_id)
            if not employee:
                logger.warning(f"Employee {employee_id} not found in cache")
                return

            # Soft status change: attendance history keeps its employee
            employee.status = status
            employee.updated_at = utcnow()
            employee.synced_at = utcnow()
            session.add(employee)
            session.commit()
            logger.info(f"Marked employee {employee_id} as {status} in cache")

    except Exception as e:
        logger.error(f"Error handling employee.{event_name} event: {e}", exc_info=True)


def handle_employee_deleted(event_data: dict[str, Any]):
    _set_status(event_data, "deleted", "deleted")


def handle_employee_terminated(event_data: dict[str, Any]):
    _set_status(event_data, "terminated", "terminated")


def register_employee_handlers():
    """
    Register the employee handlers with the Kafka consumer.
    Called once during application startup.
    """
    if not settings.KAFKA_ENABLED:
        logger.info("Kafka is disabled, skipping employee handler registration")
        return

    KafkaConsumer.register_handler(KafkaTopics.EMPLOYEE_CREATED, handle_employee_created)
    KafkaConsumer.register_handler(KafkaTopics.EMPLOYEE_UPDATED, handle_employee_updated)
    KafkaConsumer.register_handler(KafkaTopics.EMPLOYEE_DELETED, handle_employee_deleted)
    KafkaConsumer.register_handler(
        KafkaTopics.EMPLOYEE_TERMINATED, handle_employee_terminated
    )

    logger.info(
        f"Registered handlers for topics: {', '.join(KafkaTopics.employee_topics())}"
    )
