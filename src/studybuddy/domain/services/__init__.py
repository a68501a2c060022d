"""Domain services for StudyBuddy.

Services hold the business rules. Each one works on an AsyncSession (or
an injected collaborator) and raises errors from studybuddy.domain.errors.
"""

from studybuddy.domain.services.attachment_service import AttachmentService, size_limit_for
from studybuddy.domain.services.document_text_service import DocumentTextService
from studybuddy.domain.services.group_service import GroupService
from studybuddy.domain.services.identity_resolver import IdentityResolver, hex_prefix_user_id
from studybuddy.domain.services.membership_guard import MembershipGuard
from studybuddy.domain.services.message_service import MessageService
from studybuddy.domain.services.study_assistant_service import StudyAssistantService
from studybuddy.domain.services.user_service import UserService

__all__ = [
    "AttachmentService",
    "DocumentTextService",
    "GroupService",
    "IdentityResolver",
    "MembershipGuard",
    "MessageService",
    "StudyAssistantService",
    "UserService",
    "hex_prefix_user_id",
    "size_limit_for",
]
