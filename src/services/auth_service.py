"""Request identity for the rentals API.

Provides unified helpers for:
- Bearer token verification (python-jose JWT, subject id + role claims)
- Per-request IdentityContext passed explicitly into every ledger call
- Role gating for landlord-only and renter-only endpoints
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from src.models.user import User, UserRole
from src.services.config import get_settings
from src.services.errors import AuthorizationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class IdentityContext:
    """Verified identity of whoever issued a command."""

    subject_id: int
    """User id from the token subject."""

    role: UserRole
    """Role claimed in the token."""

    email: str | None = None

    @property
    def is_landlord(self) -> bool:
        return self.role == UserRole.LANDLORD

    @property
    def is_renter(self) -> bool:
        return self.role == UserRole.RENTER


def identity_for(user: User) -> IdentityContext:
    """Build an IdentityContext straight from a stored user (CLI, seeding, tests)."""
    return IdentityContext(subject_id=user.id, role=UserRole(user.role), email=user.email)


def create_access_token(user: User) -> str:
    """Mint a bearer token for a user.

    Token payload stays small: subject id, email and role only.
    """
    settings = get_settings()
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expires_minutes)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": UserRole(user.role).value,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> IdentityContext:
    """Verify a bearer token and return the identity it carries.

    Raises:
        HTTPException 401: Signature, expiry or claims are invalid
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        subject_id = int(payload["sub"])
        role = UserRole(payload.get("role", UserRole.RENTER.value))
    except (JWTError, KeyError, ValueError, TypeError) as e:
        logger.warning("Rejected bearer token: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from e

    return IdentityContext(subject_id=subject_id, role=role, email=payload.get("email"))


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
) -> IdentityContext:
    """FastAPI dependency: identity from the Authorization header.

    Raises:
        HTTPException 401: Header missing or token invalid
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Auth required")
    return decode_access_token(credentials.credentials)


def require_role(role: UserRole):
    """Build a dependency that only lets one role through.

    Raises:
        AuthorizationError: Identity has another role
    """

    async def _require_role(
        identity: IdentityContext = Depends(get_identity),  # noqa: B008
    ) -> IdentityContext:
        if identity.role != role:
            logger.warning(
                "Role check failed: user_id=%s role=%s needed=%s",
                identity.subject_id,
                identity.role.value,
                role.value,
            )
            raise AuthorizationError(f"Only {role.value}s can do this action.")
        return identity

    return _require_role


__all__ = [
    "IdentityContext",
    "identity_for",
    "create_access_token",
    "decode_access_token",
    "get_identity",
    "require_role",
]
