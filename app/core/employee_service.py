"""
Employee lookup for attendance and leave operations.

Two tiers:
1. The local employee cache (synchronised via Kafka)
2. HTTP calls to the employee management service when the cache misses

Only active employees (``active`` / ``on_leave``) count as existing.
"""

from typing import Any, Optional

from sqlmodel import Session, col, select

from app.api.clients.employee_service import EmployeeServiceClient, employee_service
from app.core.logging import get_logger
from app.models.employee import ACTIVE_STATUSES, EmployeeCache, EmployeePublic

logger = get_logger(__name__)


def employee_from_remote(data: dict[str, Any]) -> Optional[EmployeePublic]:
    """Build an EmployeePublic from an employee-service payload."""
    employee_id = data.get("id") or data.get("employee_id")
    if not employee_id:
        return None
    full_name = (
        data.get("full_name")
        or data.get("name")
        or f"{data.get('first_name', '')} {data.get('last_name', '')}".strip()
    )
    return EmployeePublic(
        id=int(employee_id),
        email=data.get("email", ""),
        full_name=full_name,
        employee_code=data.get("employee_code") or data.get("emCode"),
        position=data.get("position") or data.get("job_title"),
        department=data.get("department"),
        status=data.get("status", "active"),
    )


class EmployeeDirectory:
    """Cache-first employee lookups with HTTP fallback."""

    def __init__(
        self, session: Session, client: Optional[EmployeeServiceClient] = None
    ):
        self.session = session
        self.client = client or employee_service

    async def get_employee(self, employee_id: int) -> Optional[EmployeePublic]:
        cached = self.session.get(EmployeeCache, employee_id)
        if cached:
            logger.debug(f"Employee {employee_id} found in cache")
            return EmployeePublic.model_validate(cached, from_attributes=True)

        logger.info(f"Employee {employee_id} not in cache, falling back to HTTP")
        data = await self.client.get_employee(employee_id)
        return employee_from_remote(data) if data else None

    async def get_active_employee(self, employee_id: int) -> Optional[EmployeePublic]:
        employee = await self.get_employee(employee_id)
        if employee is None or not employee.is_active:
            return None
        return employee

    async def list_employees(self) -> list[EmployeePublic]:
        """Active roster, ordered by id. Uses HTTP only if the cache is empty."""
        statement = (
            select(EmployeeCache)
            .where(col(EmployeeCache.status).in_(ACTIVE_STATUSES))
            .order_by(col(EmployeeCache.id))
        )
        cached = self.session.exec(statement).all()
        if cached:
            return [
                EmployeePublic.model_validate(e, from_attributes=True) for e in cached
            ]

        logger.warning("Employee cache is empty, loading roster via HTTP")
        remote = await self.client.get_employees_list() or []
        employees = [employee_from_remote(item) for item in remote]
        return sorted(
            (e for e in employees if e is not None and e.is_active), key=lambda e: e.id
        )
