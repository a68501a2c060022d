"""Persistence repositories for database operations."""

from studybuddy.infrastructure.persistence.repositories.group_repository import GroupRepository
from studybuddy.infrastructure.persistence.repositories.identity_repository import (
    IdentityRepository,
)
from studybuddy.infrastructure.persistence.repositories.membership_repository import (
    MembershipRepository,
)
from studybuddy.infrastructure.persistence.repositories.message_repository import (
    MessageRepository,
)
from studybuddy.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = [
    "GroupRepository",
    "IdentityRepository",
    "MembershipRepository",
    "MessageRepository",
    "UserRepository",
]
