from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from shared.utils.app_status_code import AppStatusCode
from shared.core.config import settings
from shared.helpers.json_response_helper import error_response
from shared.core.schemas import TenantContext

security = HTTPBearer()


def create_access_token(
    tenant_id: UUID,
    property_id: UUID,
    user_id: Optional[UUID] = None,
    name: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload = {
        "tenant_id": str(tenant_id),
        "property_id": str(property_id),
        "user_id": str(user_id) if user_id else None,
        "name": name,
        "exp": expires,
    }
    return jwt.encode(payload, settings.JWT_SECRET,
                      algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> TenantContext:
    """Verify and decode a JWT token into the caller's tenant context."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return error_response(
            message="Invalid or expired token",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED,
            http_status=status.HTTP_401_UNAUTHORIZED
        )

    try:
        return TenantContext(
            tenant_id=payload.get("tenant_id"),
            property_id=payload.get("property_id"),
            actor_id=payload.get("user_id"),
            name=payload.get("name"),
            exp=payload.get("exp"),
        )
    except PydanticValidationError:
        return error_response(
            message="Invalid token structure",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )


def validate_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> TenantContext:
    return verify_token(credentials.credentials)
