"""Membership roles."""

from enum import Enum


class MembershipRole(str, Enum):
    """Role a user holds inside a group.

    Exactly one membership per group has the OWNER role and it always
    belongs to the user referenced by the group's owner_id.
    """

    OWNER = "owner"
    MEMBER = "member"
