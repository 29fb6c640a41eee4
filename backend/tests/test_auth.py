"""
Tubely Authentication Test Suite

Covers tubely/core/auth.py and the JWT helpers in tubely/utils/security.py:
- Local HS256 token creation and validation
- Expiry, signature and claim checks
- The get_current_user_id FastAPI dependency
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from tubely.config import Settings
from tubely.core.auth import create_access_token, get_current_user_id, validate_local_jwt
from tubely.core.exceptions import Unauthorized
from tubely.utils.security import generate_jwt_token, validate_jwt_token


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


# =============================================================================
# Token Creation
# =============================================================================


@pytest.mark.unit
class TestAccessTokenCreation:
    """Tests for create_access_token and generate_jwt_token."""

    def test_subject_is_user_id(self, mock_settings: Settings, user_id: UUID) -> None:
        token = create_access_token(user_id, mock_settings)

        payload = jwt.decode(token, mock_settings.secret_key, algorithms=["HS256"])
        assert payload["sub"] == str(user_id)

    def test_expiration_follows_settings(self, mock_settings: Settings, user_id: UUID) -> None:
        token = create_access_token(user_id, mock_settings)

        payload = jwt.decode(token, mock_settings.secret_key, algorithms=["HS256"])
        lifetime = payload["exp"] - payload["iat"]
        assert lifetime == mock_settings.jwt_expiration_hours * 3600

    def test_empty_secret_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            generate_jwt_token({"sub": "x"}, "")


# =============================================================================
# Token Validation
# =============================================================================


@pytest.mark.unit
class TestTokenValidation:
    """Tests for validate_jwt_token and validate_local_jwt."""

    def test_valid_token(self, mock_settings: Settings, test_jwt_token: str, user_id: UUID) -> None:
        payload = validate_local_jwt(test_jwt_token, mock_settings)
        assert payload["sub"] == str(user_id)

    def test_expired_token(self, mock_settings: Settings) -> None:
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": str(uuid4()), "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1)},
            mock_settings.secret_key,
            algorithm="HS256",
        )

        assert validate_jwt_token(token, mock_settings.secret_key) is None
        with pytest.raises(Unauthorized):
            validate_local_jwt(token, mock_settings)

    def test_wrong_signature(self, mock_settings: Settings, user_id: UUID) -> None:
        token = generate_jwt_token({"sub": str(user_id)}, "another-secret-key-with-32-characters!!")

        assert validate_jwt_token(token, mock_settings.secret_key) is None

    def test_missing_subject(self, mock_settings: Settings) -> None:
        token = generate_jwt_token({"role": "viewer"}, mock_settings.secret_key)

        assert validate_jwt_token(token, mock_settings.secret_key) is None

    def test_malformed_token(self, mock_settings: Settings) -> None:
        assert validate_jwt_token("not.a.jwt", mock_settings.secret_key) is None
        assert validate_jwt_token("", mock_settings.secret_key) is None


# =============================================================================
# FastAPI Dependency
# =============================================================================


@pytest.mark.unit
class TestGetCurrentUserId:
    """Tests for the get_current_user_id dependency."""

    @pytest.mark.asyncio
    async def test_returns_subject_uuid(
        self, mock_settings: Settings, test_jwt_token: str, user_id: UUID
    ) -> None:
        result = await get_current_user_id(_bearer(test_jwt_token), mock_settings)

        assert result == user_id

    @pytest.mark.asyncio
    async def test_missing_credentials(self, mock_settings: Settings) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            await get_current_user_id(None, mock_settings)

        assert exc_info.value.message == "Couldn't find JWT"

    @pytest.mark.asyncio
    async def test_invalid_token(self, mock_settings: Settings) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            await get_current_user_id(_bearer("garbage"), mock_settings)

        assert exc_info.value.message == "Couldn't validate JWT"

    @pytest.mark.asyncio
    async def test_subject_must_be_uuid(self, mock_settings: Settings) -> None:
        token = generate_jwt_token({"sub": "user-42"}, mock_settings.secret_key)

        with pytest.raises(Unauthorized):
            await get_current_user_id(_bearer(token), mock_settings)
