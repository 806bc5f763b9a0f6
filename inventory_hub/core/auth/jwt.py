"""JWT token creation and validation utilities."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from inventory_hub.core.auth.permissions import ADMIN_ROLE, DIRECT_EXECUTION_PERMISSIONS
from inventory_hub.core.config_file import get_settings


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    token_type: str = "access",
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary containing token payload (sub, name, roles, permissions).
        expires_delta: Optional expiration time delta. Defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
        token_type: Value of the 'type' claim.

    Returns:
        Encoded JWT token string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "type": token_type,
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
        }
    )
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_system_token(approving_user_id: str, approving_user_name: str) -> str:
    """
    Mint the short-lived credential used to replay one approved request.

    The token asserts the Admin role and exactly DIRECT_EXECUTION_PERMISSIONS,
    bound to the approving admin's identity. Callers must not persist or log it.

    Args:
        approving_user_id: Id of the admin who approved the request.
        approving_user_name: Display name of the approving admin.

    Returns:
        Encoded JWT token string.
    """
    settings = get_settings()
    data = {
        "sub": str(approving_user_id),
        "name": approving_user_name,
        "roles": [ADMIN_ROLE],
        "permissions": list(DIRECT_EXECUTION_PERMISSIONS),
    }
    return create_access_token(
        data,
        expires_delta=timedelta(minutes=settings.SYSTEM_TOKEN_EXPIRE_MINUTES),
        token_type="system",
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string to decode.

    Returns:
        Decoded token payload if valid, None otherwise.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError:
        return None


def get_unverified_expiry(token: str) -> datetime | None:
    """Read the 'exp' claim without verifying the signature.

    Used for tokens issued by the identity service, whose signing key
    this process may not hold.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)
