"""Unit tests for UserService."""

import pytest

from studybuddy.domain.errors import BadRequestError, NotFoundError
from studybuddy.domain.services import UserService


@pytest.mark.asyncio
async def test_update_name_and_avatar(db_session, make_user):
    alice = await make_user("Alice")
    service = UserService(db_session)

    updated = await service.update_user(
        alice.id, {"name": "  Alice B ", "avatar_url": "http://files/a.png"}
    )

    assert updated.name == "Alice B"
    assert updated.avatar_url == "http://files/a.png"


@pytest.mark.asyncio
async def test_update_ignores_email_and_requires_fields(db_session, make_user):
    alice = await make_user("Alice")
    service = UserService(db_session)

    with pytest.raises(BadRequestError):
        await service.update_user(alice.id, {"email": "new@example.com"})
    with pytest.raises(BadRequestError):
        await service.update_user(alice.id, {"name": " "})


@pytest.mark.asyncio
async def test_get_missing_user(db_session):
    with pytest.raises(NotFoundError):
        await UserService(db_session).get_user(31337)
