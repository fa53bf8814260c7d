"""
Credential validation.

Tokens are issued by the external auth service as HS256 JWTs signed with a
shared secret. Employee tokens carry ``employeeId`` (older clients nest it
as ``employee.id``); admin tokens carry ``admin: true``. The token is read
from ``Authorization: Bearer`` or, for older clients, ``x-auth-token``.
"""

from typing import Annotated, Any, Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    sub: Optional[str] = None
    employee_id: Optional[int] = None
    admin: bool = False

    @property
    def role(self) -> str:
        return "admin" if self.admin else "employee"


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


def decode_token(token: str) -> TokenData:
    try:
        payload: dict[str, Any] = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Token is not valid")

    employee_id = payload.get("employeeId")
    nested = payload.get("employee")
    if employee_id is None and isinstance(nested, dict):
        employee_id = nested.get("id")

    try:
        employee_id = int(employee_id) if employee_id is not None else None
    except (TypeError, ValueError):
        raise _unauthorized("Token is not valid")

    admin = payload.get("admin") is True
    if employee_id is None and not admin:
        raise _unauthorized("Token is not valid")

    return TokenData(sub=payload.get("sub"), employee_id=employee_id, admin=admin)


async def get_current_user(
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)
    ],
    x_auth_token: Annotated[Optional[str], Header()] = None,
) -> TokenData:
    token = credentials.credentials if credentials else x_auth_token
    if not token:
        raise _unauthorized("No token, authorization denied")
    return decode_token(token)


async def get_current_employee_id(
    current_user: Annotated[TokenData, Depends(get_current_user)],
) -> int:
    if current_user.employee_id is None:
        raise _unauthorized("Not authorized as employee")
    return current_user.employee_id


async def require_admin(
    current_user: Annotated[TokenData, Depends(get_current_user)],
) -> TokenData:
    if not current_user.admin:
        logger.warning(f"Non-admin token used on admin route (employee {current_user.employee_id})")
        raise _unauthorized("Not authorized as admin")
    return current_user
