"""Unit tests for GroupService."""

import pytest
from sqlalchemy import func, select

from studybuddy.domain.entities import MembershipRole
from studybuddy.domain.errors import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from studybuddy.domain.services import GroupService
from studybuddy.infrastructure.persistence.models import MembershipModel, MessageModel


@pytest.fixture
def group_service(db_session):
    return GroupService(db_session)


async def owner_memberships(db_session, group_id):
    result = await db_session.execute(
        select(MembershipModel).where(
            MembershipModel.group_id == group_id,
            MembershipModel.role == MembershipRole.OWNER.value,
        )
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_create_group_makes_caller_owner_and_member(group_service, make_user, db_session):
    alice = await make_user("Alice")

    group = await group_service.create_group(alice.id, "  CS101 ", description="Intro")

    assert group.name == "CS101"
    assert group.owner_id == alice.id
    assert group.owner.name == "Alice"
    assert group.is_private is False
    owners = await owner_memberships(db_session, group.id)
    assert [m.user_id for m in owners] == [alice.id]


@pytest.mark.asyncio
async def test_create_group_rejects_blank_name(group_service, make_user):
    alice = await make_user("Alice")
    with pytest.raises(BadRequestError):
        await group_service.create_group(alice.id, "   ")


@pytest.mark.asyncio
async def test_join_then_list_user_groups(group_service, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await group_service.create_group(alice.id, "CS101")

    await group_service.join_group(bob.id, group.id)

    names = [g.name for g in await group_service.list_user_groups(bob.id)]
    assert names == ["CS101"]


@pytest.mark.asyncio
async def test_second_join_fails_and_keeps_one_membership(group_service, make_user, db_session):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await group_service.create_group(alice.id, "CS101")
    await group_service.join_group(bob.id, group.id)

    with pytest.raises(BadRequestError):
        await group_service.join_group(bob.id, group.id)

    count = await db_session.scalar(
        select(func.count())
        .select_from(MembershipModel)
        .where(MembershipModel.user_id == bob.id, MembershipModel.group_id == group.id)
    )
    assert count == 1


@pytest.mark.asyncio
async def test_join_missing_group(group_service, make_user):
    bob = await make_user("Bob")
    with pytest.raises(NotFoundError):
        await group_service.join_group(bob.id, 999)


@pytest.mark.asyncio
async def test_update_group_owner_only(group_service, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await group_service.create_group(alice.id, "CS101")
    await group_service.join_group(bob.id, group.id)

    renamed = await group_service.update_group(alice.id, group.id, {"name": "CS102"})
    assert renamed.name == "CS102"

    with pytest.raises(ForbiddenError):
        await group_service.update_group(bob.id, group.id, {"name": "Hijacked"})
    assert (await group_service.get_group(group.id)).name == "CS102"


@pytest.mark.asyncio
async def test_update_group_requires_fields(group_service, make_user):
    alice = await make_user("Alice")
    group = await group_service.create_group(alice.id, "CS101")

    with pytest.raises(BadRequestError):
        await group_service.update_group(alice.id, group.id, {})
    with pytest.raises(BadRequestError):
        await group_service.update_group(alice.id, group.id, {"owner_id": 42})


@pytest.mark.asyncio
async def test_update_missing_group(group_service, make_user):
    alice = await make_user("Alice")
    with pytest.raises(NotFoundError):
        await group_service.update_group(alice.id, 404, {"name": "x"})


@pytest.mark.asyncio
async def test_delete_group_removes_memberships_and_messages(group_service, make_user, db_session):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await group_service.create_group(alice.id, "CS101")
    await group_service.join_group(bob.id, group.id)
    db_session.add(MessageModel(group_id=group.id, author_id=bob.id, message="hi"))
    await db_session.commit()

    with pytest.raises(ForbiddenError):
        await group_service.delete_group(bob.id, group.id)

    await group_service.delete_group(alice.id, group.id)

    memberships = await db_session.scalar(
        select(func.count()).select_from(MembershipModel).where(MembershipModel.group_id == group.id)
    )
    messages = await db_session.scalar(
        select(func.count()).select_from(MessageModel).where(MessageModel.group_id == group.id)
    )
    assert memberships == 0
    assert messages == 0
    with pytest.raises(NotFoundError):
        await group_service.get_group(group.id)


@pytest.mark.asyncio
async def test_list_all_groups_search_and_order(group_service, make_user):
    alice = await make_user("Alice")
    await group_service.create_group(alice.id, "Linear Algebra")
    await group_service.create_group(alice.id, "Organic Chemistry", description="ALGEBRA free zone")
    await group_service.create_group(alice.id, "History")

    everything = [g.name for g in await group_service.list_all_groups()]
    assert everything == ["History", "Organic Chemistry", "Linear Algebra"]

    matches = [g.name for g in await group_service.list_all_groups("algebra")]
    assert matches == ["Organic Chemistry", "Linear Algebra"]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(group_service, make_user):
    alice = await make_user("Alice")
    await group_service.create_group(alice.id, "100% pass rate")
    await group_service.create_group(alice.id, "Physics")

    assert [g.name for g in await group_service.list_all_groups("%")] == ["100% pass rate"]


@pytest.mark.asyncio
async def test_discover_excludes_private_and_joined(group_service, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    public = await group_service.create_group(alice.id, "Public")
    await group_service.create_group(alice.id, "Secret", is_private=True)
    joined = await group_service.create_group(alice.id, "Joined")
    await group_service.join_group(bob.id, joined.id)

    discovered = await group_service.discover_groups(bob.id)

    assert [g.id for g in discovered] == [public.id]


@pytest.mark.asyncio
async def test_leave_group(group_service, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await group_service.create_group(alice.id, "CS101")
    await group_service.join_group(bob.id, group.id)

    await group_service.leave_group(bob.id, group.id)

    assert await group_service.list_user_groups(bob.id) == []
    with pytest.raises(BadRequestError):
        await group_service.leave_group(bob.id, group.id)


@pytest.mark.asyncio
async def test_owner_cannot_leave(group_service, make_user, db_session):
    alice = await make_user("Alice")
    group = await group_service.create_group(alice.id, "CS101")

    with pytest.raises(ForbiddenError):
        await group_service.leave_group(alice.id, group.id)
    assert len(await owner_memberships(db_session, group.id)) == 1


@pytest.mark.asyncio
async def test_transfer_ownership_keeps_single_owner(group_service, make_user, db_session):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await group_service.create_group(alice.id, "CS101")
    await group_service.join_group(bob.id, group.id)

    updated = await group_service.transfer_ownership(alice.id, group.id, bob.id)

    assert updated.owner_id == bob.id
    owners = await owner_memberships(db_session, group.id)
    assert [m.user_id for m in owners] == [bob.id]
    # The previous owner can now leave
    await group_service.leave_group(alice.id, group.id)


@pytest.mark.asyncio
async def test_transfer_ownership_requires_member_target(group_service, make_user):
    alice = await make_user("Alice")
    carol = await make_user("Carol")
    group = await group_service.create_group(alice.id, "CS101")

    with pytest.raises(BadRequestError):
        await group_service.transfer_ownership(alice.id, group.id, carol.id)
    with pytest.raises(BadRequestError):
        await group_service.transfer_ownership(alice.id, group.id, alice.id)


@pytest.mark.asyncio
async def test_list_members_requires_membership(group_service, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    group = await group_service.create_group(alice.id, "CS101")

    with pytest.raises(UnauthorizedError):
        await group_service.list_members(bob.id, group.id)

    await group_service.join_group(bob.id, group.id)
    members = await group_service.list_members(bob.id, group.id)
    assert {(m.user.name, m.role) for m in members} == {("Alice", "owner"), ("Bob", "member")}
