"""API Routes for StudyBuddy."""

from studybuddy.infrastructure.api.routes.ai_router import router as ai_router
from .files_router import download_router as files_download_router
from .files_router import router as files_router
from .groups_router import router as groups_router
from .messages_router import router as messages_router
from .realtime_router import router as realtime_router
from .users_router import router as users_router

__all__ = [
    "ai_router",
    "files_download_router",
    "files_router",
    "groups_router",
    "messages_router",
    "realtime_router",
    "users_router",
]
