"""
Tubely Authentication Module

Bearer token authentication for the API. Tokens are locally issued JWTs
signed with the configured secret; the "sub" claim holds the user's UUID.

Usage in routes:
    ```python
    @router.get("/videos")
    async def list_videos(user_id: UUID = Depends(get_current_user_id)):
        ...
    ```
"""

import logging

from datetime import timedelta
from typing import Any
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tubely.config import Settings, get_settings
from tubely.core.exceptions import Unauthorized
from tubely.utils.security import generate_jwt_token, validate_jwt_token


logger = logging.getLogger(__name__)


# =============================================================================
# Security Scheme
# =============================================================================

# auto_error is off so a missing header is reported through Unauthorized and
# rendered like every other application error
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication.",
    auto_error=False,
)


# =============================================================================
# Token Helpers
# =============================================================================


def create_access_token(user_id: UUID | str, settings: Settings | None = None) -> str:
    """
    Create an access token for the given user.

    Args:
        user_id: The user's UUID.
        settings: Optional Settings instance. If not provided, uses get_settings().

    Returns:
        str: The encoded JWT access token.
    """
    if settings is None:
        settings = get_settings()
    return generate_jwt_token(
        {"sub": str(user_id)},
        settings.secret_key,
        expires_delta=timedelta(hours=settings.jwt_expiration_hours),
        algorithm=settings.jwt_algorithm,
    )


def validate_local_jwt(token: str, settings: Settings) -> dict[str, Any]:
    """
    Validate a locally issued JWT.

    Raises:
        Unauthorized: If the signature, expiry or claims are invalid.
    """
    payload = validate_jwt_token(token, settings.secret_key, settings.jwt_algorithm)
    if payload is None:
        raise Unauthorized("Couldn't validate JWT")
    return payload


# =============================================================================
# FastAPI Dependencies
# =============================================================================


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> UUID:
    """
    Resolve the authenticated user's id from the Authorization header.

    Returns:
        UUID: The "sub" claim of the validated token.

    Raises:
        Unauthorized: Missing header, invalid token, or a subject that is
            not a UUID.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Couldn't find JWT")

    payload = validate_local_jwt(credentials.credentials, settings)

    try:
        return UUID(str(payload.get("sub")))
    except ValueError as e:
        logger.warning("Token subject is not a UUID")
        raise Unauthorized("Couldn't validate JWT") from e
