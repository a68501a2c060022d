"""Domain entities for StudyBuddy.

Entities are pure Python types that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from studybuddy.domain.entities.identity import Identity
from studybuddy.domain.entities.membership import MembershipRole

__all__ = [
    "Identity",
    "MembershipRole",
]
