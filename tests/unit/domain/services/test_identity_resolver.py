"""Unit tests for IdentityResolver."""

import pytest

from studybuddy.domain.entities import Identity
from studybuddy.domain.errors import ConflictError, UnauthorizedError
from studybuddy.domain.services import IdentityResolver, hex_prefix_user_id

SUBJECT = "5e3f9a10-1111-4222-8333-444455556666"


def test_hex_prefix_user_id():
    assert hex_prefix_user_id(SUBJECT) == 0x5E3F9A10
    assert hex_prefix_user_id("ABCDEF01-rest") == 0xABCDEF01


@pytest.mark.parametrize("subject", ["", "short", "zz000000-0000"])
def test_hex_prefix_rejects_bad_subjects(subject):
    with pytest.raises(UnauthorizedError):
        hex_prefix_user_id(subject)


def test_unknown_strategy():
    with pytest.raises(ValueError):
        IdentityResolver(session=None, strategy="guess")


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized(db_session):
    with pytest.raises(UnauthorizedError):
        await IdentityResolver(db_session).resolve(None)


@pytest.mark.asyncio
async def test_first_login_provisions_once(db_session):
    resolver = IdentityResolver(db_session)
    identity = Identity(SUBJECT, "dana@example.com", "Dana")

    first = await resolver.resolve(identity)
    second = await resolver.resolve(identity)

    assert first.id == second.id
    assert first.name == "Dana"


@pytest.mark.asyncio
async def test_provision_uses_email_local_part_without_name(db_session):
    user = await IdentityResolver(db_session).resolve(Identity(SUBJECT, "erin@example.com"))
    assert user.name == "erin"


@pytest.mark.asyncio
async def test_unknown_identity_without_provisioning(db_session):
    with pytest.raises(UnauthorizedError):
        await IdentityResolver(db_session).resolve(
            Identity(SUBJECT, "dana@example.com"), provision=False
        )


@pytest.mark.asyncio
async def test_register_twice_conflicts(db_session):
    resolver = IdentityResolver(db_session)
    identity = Identity(SUBJECT, "dana@example.com")
    await resolver.register(identity, "Dana")

    with pytest.raises(ConflictError):
        await resolver.register(identity, "Dana again")


@pytest.mark.asyncio
async def test_email_taken_by_other_identity_conflicts(db_session):
    resolver = IdentityResolver(db_session)
    await resolver.register(Identity(SUBJECT, "dana@example.com"), "Dana")

    with pytest.raises(ConflictError):
        await resolver.register(
            Identity("99999999-0000-4000-8000-000000000000", "dana@example.com"), "Impostor"
        )


@pytest.mark.asyncio
async def test_legacy_profile_is_linked(db_session, make_user):
    legacy = await make_user("Frank", "frank@example.com")

    user = await IdentityResolver(db_session).resolve(Identity(SUBJECT, "frank@example.com"))

    assert user.id == legacy.id


@pytest.mark.asyncio
async def test_hex_prefix_strategy(db_session):
    resolver = IdentityResolver(db_session, strategy="hex_prefix")

    user = await resolver.resolve(Identity(SUBJECT, "gail@example.com", "Gail"))

    assert user.id == 0x5E3F9A10
    assert (await resolver.resolve(Identity(SUBJECT, "gail@example.com"))).id == user.id
