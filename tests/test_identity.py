import asyncio
import uuid
from datetime import timedelta

import pytest

from app.core.exceptions import AuthenticationError
from app.core.redis_client import revoke_token
from app.core.security import create_access_token, decode_access_token
from app.domain.entities import User
from app.domain.identity import AnonymousDevice, AuthenticatedUser, Unidentified
from app.services.identity import IdentityResolver


class InMemoryUsers:
    def __init__(self, *users):
        self.users = {u.id: u for u in users}

    async def get_by_id(self, user_id):
        return self.users.get(user_id)


@pytest.fixture
def user():
    return User(id=uuid.uuid4(), email="ursula@example.com", username="ursula", hashed_password="x")


@pytest.fixture
def resolver(user, fake_redis):
    return IdentityResolver(InMemoryUsers(user), fake_redis)


def bearer(user_id, **kwargs):
    return f"Bearer {create_access_token({'sub': str(user_id)}, **kwargs)}"


def test_valid_token_resolves_user(resolver, user):
    owner = asyncio.run(resolver.resolve(bearer(user.id), "device-1"))
    assert owner == AuthenticatedUser(user_id=user.id)
    assert owner.kind == "user"


def test_device_only_and_nothing():
    resolver = IdentityResolver(InMemoryUsers(), None)
    assert asyncio.run(resolver.resolve(None, " device-1 ")) == AnonymousDevice("device-1")
    assert asyncio.run(resolver.resolve(None, "   ")) == Unidentified()
    assert asyncio.run(resolver.resolve(None, None)).kind == "none"


@pytest.mark.parametrize(
    "header",
    [
        "Bearer not-a-jwt",
        "Basic dXNlcjpwYXNz",
        "Bearer",
    ],
)
def test_bad_credentials_never_fall_back_to_device(resolver, header):
    with pytest.raises(AuthenticationError) as exc:
        asyncio.run(resolver.resolve(header, "device-1"))
    assert exc.value.status_code == 401


def test_expired_token_is_rejected(resolver, user):
    header = bearer(user.id, expires_delta=timedelta(seconds=-5))
    with pytest.raises(AuthenticationError):
        asyncio.run(resolver.resolve(header, None))


def test_unknown_or_inactive_subject_is_rejected(resolver, user):
    with pytest.raises(AuthenticationError):
        asyncio.run(resolver.resolve(bearer(uuid.uuid4()), None))
    user.is_active = False
    with pytest.raises(AuthenticationError):
        asyncio.run(resolver.resolve(bearer(user.id), None))


def test_revoked_token_is_rejected(resolver, user, fake_redis):
    header = bearer(user.id)
    claims = decode_access_token(header.split()[1])
    assert asyncio.run(revoke_token(fake_redis, claims)) > 0
    with pytest.raises(AuthenticationError, match="revoked"):
        asyncio.run(resolver.resolve(header, None))


def test_lenient_resolution_downgrades_bad_tokens(resolver, user):
    assert asyncio.run(resolver.resolve_lenient("Bearer junk", "device-1")) == Unidentified()
    assert asyncio.run(resolver.resolve_lenient(None, "device-1")) == AnonymousDevice("device-1")
    assert asyncio.run(resolver.resolve_lenient(bearer(user.id), None)).kind == "user"


def test_revoke_skips_claims_without_jti(fake_redis):
    assert asyncio.run(revoke_token(fake_redis, {"sub": "x", "exp": 9999999999})) is None
    assert fake_redis.store == {}
