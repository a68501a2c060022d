"""Authentication for WebSocket and SSE connections.

Browsers cannot set headers on EventSource or WebSocket requests, so the
token is also accepted as a ``token`` query parameter.
"""

from fastapi import Request, WebSocket
from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import UnauthorizedError
from studybuddy.infrastructure.api.dependencies import (
    CurrentUser,
    identity_from_token,
    resolve_user,
)

logger = get_logger(__name__)


def get_token_from_request(
    request: Request | None = None,
    websocket: WebSocket | None = None,
) -> str | None:
    """Extract token from query parameters or headers."""
    conn = websocket if websocket is not None else request
    if conn is None:
        return None

    token = conn.query_params.get("token")
    if token:
        return token

    auth_header = conn.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:]
    return None


async def authenticate_realtime(token: str | None, session: AsyncSession) -> CurrentUser:
    """Validate a token and resolve the internal user behind it.

    Raises:
        UnauthorizedError: If the token is missing or invalid.
    """
    if not token:
        raise UnauthorizedError("Missing token")
    identity = identity_from_token(token)
    user = await resolve_user(identity, session)
    logger.info("Realtime client authenticated", user_id=user.user_id)
    return user
