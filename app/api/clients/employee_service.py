"""
HTTP client for the Employee Management Service.

Used only when the local employee cache cannot answer. Every failure
(transport error, non-200, unparseable body) is logged and reported as
``None`` so callers can treat the directory as unavailable.
"""

from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

INTERNAL_PREFIX = "/api/v1/employees/internal"


class EmployeeServiceClient:
    """
    Client for the service-to-service employee endpoints.

    Args:
        base_url: Base URL of the employee management service
        timeout: Request timeout in seconds
        transport: Optional httpx transport; tests pass a MockTransport
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _get_json(self, path: str, **params: Any) -> Optional[Any]:
        url = f"{self.base_url}{INTERNAL_PREFIX}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url, params=params or None)
        except httpx.HTTPError as e:
            logger.error(f"Employee service request to {path} failed: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"Employee service returned {response.status_code} for {path}")
            return None
        try:
            return response.json()
        except ValueError:
            logger.error(f"Employee service sent a non-JSON body for {path}")
            return None

    async def get_employee(self, employee_id: int) -> Optional[dict]:
        employee = await self._get_json(f"/{employee_id}")
        if employee is not None:
            logger.info(f"Fetched employee {employee_id} from employee service")
        return employee

    async def get_employees_list(
        self, offset: int = 0, limit: int = 1000
    ) -> Optional[list]:
        """One page of employees, or None if the service could not be read."""
        employees = await self._get_json("/list", offset=offset, limit=limit)
        if employees is not None:
            logger.info(f"Fetched {len(employees)} employees from employee service")
        return employees


employee_service = EmployeeServiceClient(
    base_url=settings.EMPLOYEE_SERVICE_URL,
    timeout=settings.EMPLOYEE_SERVICE_TIMEOUT,
)
