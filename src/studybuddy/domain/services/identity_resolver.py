"""Resolve external auth identities to internal user ids.

The external auth provider only knows opaque subject strings; every
authorization check in StudyBuddy works on the numeric user id. Two
strategies are supported:

* ``mapping`` (default): an explicit ``identities`` table written at first
  login. Collision free and auditable.
* ``hex_prefix``: the first 8 hex characters of the subject parsed as a
  base-16 integer. Kept for data created by the legacy deployment.

A missing identity is always an authentication failure. There is no
fallback user id.
"""

import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.logging import get_logger
from studybuddy.domain.entities import Identity
from studybuddy.domain.errors import ConflictError, UnauthorizedError
from studybuddy.infrastructure.persistence.models import IdentityModel, UserModel
from studybuddy.infrastructure.persistence.repositories import (
    IdentityRepository,
    UserRepository,
)

logger = get_logger(__name__)

_HEX_PREFIX = re.compile(r"^[0-9a-fA-F]{8}")


def hex_prefix_user_id(subject_id: str) -> int:
    """Derive the legacy numeric user id from a subject string.

    Args:
        subject_id: Opaque subject, e.g. a UUID.

    Returns:
        The first 8 hex characters parsed as a base-16 integer.

    Raises:
        UnauthorizedError: If the subject does not start with 8 hex characters.
    """
    if not subject_id or not _HEX_PREFIX.match(subject_id):
        raise UnauthorizedError("Subject cannot be mapped to a user id")
    return int(subject_id[:8], 16)


class IdentityResolver:
    """Maps external identities onto user rows, provisioning on first login."""

    def __init__(self, session: AsyncSession, strategy: str = "mapping") -> None:
        """Initialize the resolver.

        Args:
            session: SQLAlchemy async session.
            strategy: "mapping" or "hex_prefix".
        """
        if strategy not in ("mapping", "hex_prefix"):
            raise ValueError(f"Unknown identity strategy: {strategy}")
        self.session = session
        self.strategy = strategy
        self.user_repo = UserRepository(session)
        self.identity_repo = IdentityRepository(session)

    async def resolve(self, identity: Identity | None, provision: bool = True) -> UserModel:
        """Return the user for an identity.

        Args:
            identity: Identity from the auth provider, or None when the
                request carried no valid credentials.
            provision: Create the user on first login when no mapping exists.

        Raises:
            UnauthorizedError: If there is no identity, or it is unknown and
                provisioning is disabled.
            ConflictError: If provisioning would reuse another identity's email.
        """
        if identity is None:
            raise UnauthorizedError("Authentication required")

        user = await self._lookup(identity)
        if user is not None:
            return user
        if not provision:
            raise UnauthorizedError("Unknown identity")
        return await self.register(identity, identity.display_name)

    async def register(self, identity: Identity, name: str) -> UserModel:
        """Create the user profile (and mapping) for a new identity.

        Raises:
            ConflictError: If the identity already has a profile or the email
                is registered to someone else.
        """
        if await self._lookup(identity) is not None:
            raise ConflictError("A profile already exists for this identity")

        existing = await self.user_repo.get_by_email(identity.email)
        if existing is not None:
            linked = await self.identity_repo.get_by_user_id(existing.id)
            if linked is not None or self.strategy == "hex_prefix":
                raise ConflictError("Email is already registered")

        try:
            if existing is not None:
                # Profile created before identities were tracked: link it
                user = existing
            else:
                user = UserModel(name=name, email=identity.email)
                if self.strategy == "hex_prefix":
                    user.id = hex_prefix_user_id(identity.subject_id)
                await self.user_repo.create(user)

            if self.strategy == "mapping":
                await self.identity_repo.create(
                    IdentityModel(
                        subject_id=identity.subject_id,
                        user_id=user.id,
                        email=identity.email,
                    )
                )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            # A concurrent first request may have provisioned the same subject
            user = await self._lookup(identity)
            if user is None:
                raise ConflictError("Email is already registered")
            return user

        logger.info(
            "User provisioned",
            user_id=user.id,
            strategy=self.strategy,
        )
        return user

    async def _lookup(self, identity: Identity) -> UserModel | None:
        if self.strategy == "hex_prefix":
            return await self.user_repo.get_by_id(hex_prefix_user_id(identity.subject_id))

        mapping = await self.identity_repo.get_by_subject(identity.subject_id)
        if mapping is None:
            return None
        return await self.user_repo.get_by_id(mapping.user_id)
