"""JWT token service.

StudyBuddy does not issue credentials for production use: tokens come from
the external auth provider and are verified here with the shared secret.
``create_token`` mints provider-shaped tokens for local development and
tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from studybuddy.core.config import get_settings
from studybuddy.domain.entities import Identity


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTService:
    """Verifies auth-provider tokens and turns them into identities."""

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        audience: str | None = None,
        issuer: str | None = None,
    ) -> None:
        """Initialize the JWT service.

        Unset arguments fall back to the configured ``jwt_*`` settings at
        call time.
        """
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._audience = audience
        self._issuer = issuer

    @property
    def secret_key(self) -> str:
        if self._secret_key:
            return self._secret_key
        return get_settings().jwt_secret

    @property
    def algorithm(self) -> str:
        return self._algorithm or get_settings().jwt_algorithm

    @property
    def audience(self) -> str | None:
        return self._audience or get_settings().jwt_audience

    @property
    def issuer(self) -> str | None:
        return self._issuer or get_settings().jwt_issuer

    def create_token(
        self,
        subject_id: str,
        email: str,
        name: str | None = None,
        expires_delta: timedelta = timedelta(hours=1),
    ) -> str:
        """Mint a token shaped like the auth provider's access tokens.

        Args:
            subject_id: Opaque subject id (``sub`` claim).
            email: Email claim.
            name: Optional display name, stored in ``user_metadata``.
            expires_delta: Lifetime of the token.

        Returns:
            Encoded JWT.
        """
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": subject_id,
            "email": email,
            "iat": now,
            "exp": now + expires_delta,
        }
        if self.audience:
            payload["aud"] = self.audience
        if self.issuer:
            payload["iss"] = self.issuer
        if name:
            payload["user_metadata"] = {"name": name}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a JWT token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["sub", "exp"], "verify_aud": self.audience is not None},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e

    def identity_from_token(self, token: str) -> Identity:
        """Validate a token and extract the caller's identity.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or lacks an email.
        """
        payload = self.decode_token(token)
        metadata = payload.get("user_metadata") or {}
        try:
            return Identity(
                subject_id=str(payload["sub"]),
                email=payload["email"],
                name=metadata.get("name") or metadata.get("full_name"),
            )
        except (KeyError, ValueError) as e:
            raise InvalidTokenError(f"Token is missing identity claims: {e}") from e


# Default JWT service instance
jwt_service = JWTService()
