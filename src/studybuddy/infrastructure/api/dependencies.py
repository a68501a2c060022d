"""FastAPI dependencies for authentication and shared services.

Tokens come from the external auth provider. ``get_identity`` only verifies
them; ``get_current_user`` additionally resolves (and on first use
provisions) the internal user id every authorization check relies on.
"""

from dataclasses import dataclass
from typing import Annotated

import httpx
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.config import get_settings
from studybuddy.core.logging import bind_log_context, get_logger
from studybuddy.domain.entities import Identity
from studybuddy.domain.errors import UnauthorizedError
from studybuddy.domain.services import IdentityResolver
from studybuddy.infrastructure.ai import CompletionProvider, create_providers
from studybuddy.infrastructure.auth import InvalidTokenError, TokenExpiredError, jwt_service
from studybuddy.infrastructure.persistence.database import get_db_session
from studybuddy.infrastructure.realtime.event_broadcaster import EventBroadcaster
from studybuddy.infrastructure.realtime.realtime_manager import ConnectionManager
from studybuddy.infrastructure.security import RateLimitStorage
from studybuddy.infrastructure.storage import StorageProvider, create_storage_provider

logger = get_logger(__name__)


@dataclass
class CurrentUser:
    """Represents the current authenticated user context.

    ``user_id`` is the internal numeric id; ``subject_id`` is the auth
    provider's opaque id it was resolved from.
    """

    user_id: int
    subject_id: str
    email: str
    name: str


def identity_from_token(token: str) -> Identity:
    """Verify a bearer token and return its identity.

    Raises:
        UnauthorizedError: If the token is expired or invalid.
    """
    try:
        return jwt_service.identity_from_token(token)
    except TokenExpiredError:
        logger.info("Authentication failed: token expired")
        raise UnauthorizedError("Token has expired")
    except InvalidTokenError as e:
        logger.info("Authentication failed: invalid token", error=str(e))
        raise UnauthorizedError("Invalid token")


async def get_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Extract and verify the identity from the Authorization header.

    Raises:
        UnauthorizedError: If the header is missing, malformed or invalid.
    """
    if authorization is None:
        logger.info("Authentication failed: missing Authorization header")
        raise UnauthorizedError("Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.info("Authentication failed: invalid Authorization header format")
        raise UnauthorizedError("Could not validate credentials")

    return identity_from_token(parts[1])


async def resolve_user(identity: Identity, session: AsyncSession) -> CurrentUser:
    """Map an identity to its user, provisioning it on first use."""
    resolver = IdentityResolver(session, get_settings().identity_strategy)
    user = await resolver.resolve(identity)
    bind_log_context(user_id=user.id)
    return CurrentUser(
        user_id=user.id,
        subject_id=identity.subject_id,
        email=user.email,
        name=user.name,
    )


async def get_current_user(
    identity: Annotated[Identity, Depends(get_identity)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> CurrentUser:
    """Resolve the authenticated caller to an internal user."""
    return await resolve_user(identity, session)


# Type aliases for dependency injection
CallerIdentity = Annotated[Identity, Depends(get_identity)]
AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_connection_manager(request: Request) -> ConnectionManager:
    """Get the realtime connection manager from app state."""
    if not hasattr(request.app.state, "connection_manager"):
        request.app.state.connection_manager = ConnectionManager(
            max_subscriptions=get_settings().realtime_max_subscriptions
        )
    return request.app.state.connection_manager


def get_event_broadcaster(request: Request) -> EventBroadcaster:
    """Get the event broadcaster from app state."""
    if not hasattr(request.app.state, "event_broadcaster"):
        request.app.state.event_broadcaster = EventBroadcaster(get_connection_manager(request))
    return request.app.state.event_broadcaster


def get_storage(request: Request) -> StorageProvider:
    """Get the storage provider from app state."""
    if not hasattr(request.app.state, "storage"):
        request.app.state.storage = create_storage_provider(get_settings())
    return request.app.state.storage


def get_rate_limiter(request: Request) -> RateLimitStorage:
    """Get the in-memory rate limit buckets from app state."""
    if not hasattr(request.app.state, "rate_limiter"):
        request.app.state.rate_limiter = RateLimitStorage()
    return request.app.state.rate_limiter


def get_ai_providers(request: Request) -> dict[str, CompletionProvider]:
    """Get the AI providers, creating the shared HTTP client on first use."""
    if not hasattr(request.app.state, "ai_providers"):
        settings = get_settings()
        client = httpx.AsyncClient(timeout=settings.ai_request_timeout)
        request.app.state.http_client = client
        request.app.state.ai_providers = create_providers(client, settings)
    return request.app.state.ai_providers


Broadcaster = Annotated[EventBroadcaster, Depends(get_event_broadcaster)]
Storage = Annotated[StorageProvider, Depends(get_storage)]
