"""
Token and identifier helpers for Tubely.

- generate_jwt_token / validate_jwt_token: HMAC-signed access tokens
  (python-jose) whose "sub" claim is the user's UUID
- generate_random_identifier / generate_object_key: unguessable names for
  stored videos and thumbnail files
"""

import base64
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)

# Bytes of entropy behind every generated object key and asset name
RANDOM_IDENTIFIER_BYTES = 32

_DECODE_OPTIONS = {
    "verify_exp": True,
    "verify_iat": True,
    "verify_nbf": True,
    "require_exp": True,
    "require_iat": True,
    "require_sub": True,
}


# ==============================================================================
# ACCESS TOKENS
# ==============================================================================


def generate_jwt_token(
    data: Dict[str, Any],
    secret_key: str,
    expires_delta: Optional[timedelta] = None,
    algorithm: str = "HS256",
) -> str:
    """
    Sign `data` as a JWT, adding iat, nbf and exp claims.

    Args:
        data: Claims to sign, normally {"sub": "<user uuid>"}
        secret_key: HMAC key
        expires_delta: Token lifetime, 24 hours when omitted
        algorithm: HS256, HS384 or HS512

    Raises:
        ValueError: If there is no key or no claims

    Example:
        >>> token = generate_jwt_token({"sub": str(user_id)}, settings.secret_key)
    """
    if not secret_key:
        raise ValueError("A signing key is required")
    if data is None:
        raise ValueError("Claims are required")

    issued_at = datetime.now(timezone.utc)
    claims = {
        **data,
        "iat": issued_at,
        "nbf": issued_at,
        "exp": issued_at + (expires_delta or DEFAULT_TOKEN_LIFETIME),
    }
    return jwt.encode(claims, secret_key, algorithm=algorithm)


def validate_jwt_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> Optional[Dict[str, Any]]:
    """
    Verify a token's signature, lifetime and required claims.

    Returns:
        The claims, or None when the token is rejected (the reason is logged)
    """
    if not token or not secret_key:
        return None

    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm], options=_DECODE_OPTIONS)
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
    except JWTClaimsError as e:
        logger.info("Rejected token with invalid claims", extra={"reason": str(e)})
    except JWTError as e:
        logger.info("Rejected unverifiable token", extra={"reason": str(e)})
    return None


# ==============================================================================
# RANDOM IDENTIFIERS
# ==============================================================================


def generate_random_identifier(num_bytes: int = RANDOM_IDENTIFIER_BYTES) -> str:
    """
    Generate a URL-safe random identifier.

    The identifier is `num_bytes` of cryptographically secure randomness,
    URL-safe base64 encoded without padding (43 characters for 32 bytes).

    Returns:
        str: Identifier containing only [A-Za-z0-9_-].
    """
    if num_bytes <= 0:
        raise ValueError("num_bytes must be a positive integer")

    raw = secrets.token_bytes(num_bytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_object_key(prefix: str, extension: str) -> str:
    """
    Build a storage object key of the form "<prefix>/<random><extension>".

    Keys are never checked for collisions; 256 bits of randomness make a
    clash negligible.

    Args:
        prefix: Namespace segment, e.g. the aspect classification "wide"
        extension: File extension including the leading dot, e.g. ".mp4"

    Example:
        >>> generate_object_key("tall", ".mp4")
        'tall/kq3V...Zs.mp4'
    """
    return f"{prefix}/{generate_random_identifier()}{extension}"
