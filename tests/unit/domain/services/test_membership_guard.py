"""Unit tests for MembershipGuard."""

import pytest

from studybuddy.domain.errors import ForbiddenError, NotFoundError, UnauthorizedError
from studybuddy.domain.services import GroupService, MembershipGuard


@pytest.mark.asyncio
async def test_member_and_owner_checks(db_session, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await GroupService(db_session).create_group(alice.id, "CS101")
    guard = MembershipGuard(db_session)

    assert await guard.is_member(alice.id, group.id)
    assert await guard.is_owner(alice.id, group.id)
    assert not await guard.is_member(bob.id, group.id)

    with pytest.raises(UnauthorizedError):
        await guard.require_member(bob.id, group.id)
    with pytest.raises(ForbiddenError):
        await guard.require_owner(bob.id, group.id)
    assert (await guard.require_owner(alice.id, group.id)).id == group.id


@pytest.mark.asyncio
async def test_require_owner_missing_group(db_session, make_user):
    alice = await make_user("Alice")
    with pytest.raises(NotFoundError):
        await MembershipGuard(db_session).require_owner(alice.id, 77)
