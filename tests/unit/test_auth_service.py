"""Unit tests for src.services.auth_service."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from src.models.user import User, UserRole
from src.services.auth_service import (
    IdentityContext,
    create_access_token,
    decode_access_token,
    get_identity,
    identity_for,
    require_role,
)
from src.services.config import get_settings
from src.services.errors import AuthorizationError


@pytest.fixture
def stored_landlord():
    return User(id=7, email="boss@example.com", role=UserRole.LANDLORD.value)


@pytest.mark.unit
def test_identity_for_user(stored_landlord):
    identity = identity_for(stored_landlord)

    assert identity == IdentityContext(subject_id=7, role=UserRole.LANDLORD, email="boss@example.com")
    assert identity.is_landlord
    assert not identity.is_renter


@pytest.mark.unit
def test_token_round_trip(stored_landlord):
    identity = decode_access_token(create_access_token(stored_landlord))

    assert identity.subject_id == 7
    assert identity.role == UserRole.LANDLORD
    assert identity.email == "boss@example.com"


@pytest.mark.unit
def test_tampered_token_rejected(stored_landlord):
    token = create_access_token(stored_landlord) + "x"

    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)
    assert exc.value.status_code == 401


@pytest.mark.unit
def test_expired_token_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": "1", "role": "renter", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)
    assert exc.value.status_code == 401


@pytest.mark.unit
def test_unknown_role_rejected():
    settings = get_settings()
    token = jwt.encode({"sub": "1", "role": "admin"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    with pytest.raises(HTTPException):
        decode_access_token(token)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_identity_requires_credentials():
    with pytest.raises(HTTPException) as exc:
        await get_identity(None)
    assert exc.value.status_code == 401
    assert exc.value.detail == "Auth required"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_identity_from_bearer(stored_landlord):
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=create_access_token(stored_landlord))

    identity = await get_identity(credentials)

    assert identity.subject_id == 7


@pytest.mark.unit
@pytest.mark.asyncio
async def test_require_role():
    check = require_role(UserRole.LANDLORD)
    renter = IdentityContext(subject_id=2, role=UserRole.RENTER)
    landlord = IdentityContext(subject_id=1, role=UserRole.LANDLORD)

    assert await check(landlord) is landlord
    with pytest.raises(AuthorizationError, match="Only landlords can do this action."):
        await check(renter)
