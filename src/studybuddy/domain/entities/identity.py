"""Identity entity supplied by the external auth provider."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """An authenticated identity as issued by the external auth provider.

    Attributes:
        subject_id: Opaque, stable subject identifier (the token's ``sub`` claim).
        email: Email address reported by the provider.
        name: Optional display name reported by the provider.
    """

    subject_id: str
    email: str
    name: str | None = None

    def __post_init__(self) -> None:
        """Validate identity data after initialization."""
        if not self.subject_id:
            raise ValueError("Subject ID is required")
        if not self.email:
            raise ValueError("Email is required")

    @property
    def display_name(self) -> str:
        """Name to use for a freshly provisioned profile."""
        return self.name or self.email.split("@", 1)[0]
