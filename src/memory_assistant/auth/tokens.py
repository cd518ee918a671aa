"""Bearer token issuing and verification.

The ``sub`` claim is the owner id every store call is scoped by.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pydantic import BaseModel

from memory_assistant.core.config import Settings, settings


class Token(BaseModel):
    """Token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenData(BaseModel):
    """Token payload data."""
    owner_id: str
    scopes: list[str] = []


def create_access_token(
    owner_id: str,
    expires_delta: timedelta | None = None,
    scopes: list[str] | None = None,
    config: Settings | None = None,
) -> Token:
    """Create a JWT access token for ``owner_id``."""
    config = config or settings
    expires_delta = expires_delta or timedelta(minutes=config.access_token_expire_minutes)
    to_encode = {
        "sub": owner_id,
        "scopes": scopes or [],
        "exp": datetime.now(UTC) + expires_delta,
    }
    encoded_jwt = jwt.encode(to_encode, config.jwt_secret_key, algorithm=config.jwt_algorithm)
    return Token(access_token=encoded_jwt, expires_in=int(expires_delta.total_seconds()))


def verify_token(token: str, config: Settings | None = None) -> TokenData | None:
    """Verify and decode a JWT token. Returns None if it is invalid or expired."""
    config = config or settings
    try:
        payload = jwt.decode(token, config.jwt_secret_key, algorithms=[config.jwt_algorithm])
    except JWTError:
        return None
    owner_id = payload.get("sub")
    if not owner_id:
        return None
    return TokenData(owner_id=owner_id, scopes=payload.get("scopes", []))
