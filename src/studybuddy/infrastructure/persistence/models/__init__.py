"""SQLAlchemy models for StudyBuddy tables.

All models inherit from the Base class defined in database.py and are
automatically created on application startup in development mode.
"""

from studybuddy.infrastructure.persistence.models.group import GroupModel
from studybuddy.infrastructure.persistence.models.identity import IdentityModel
from studybuddy.infrastructure.persistence.models.membership import MembershipModel
from studybuddy.infrastructure.persistence.models.message import MessageModel
from studybuddy.infrastructure.persistence.models.user import UserModel

__all__ = [
    "GroupModel",
    "IdentityModel",
    "MembershipModel",
    "MessageModel",
    "UserModel",
]
