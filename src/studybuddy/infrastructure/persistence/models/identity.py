"""SQLAlchemy model for the identities table.

Maps an external auth subject to the internal numeric user id. Rows are
written once, at first login, and never rewritten.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from studybuddy.infrastructure.persistence.database import Base
from studybuddy.infrastructure.persistence.models.user import utcnow


class IdentityModel(Base):
    """External subject → internal user mapping.

    Attributes:
        subject_id: Opaque subject identifier from the auth provider (primary key).
        user_id: Foreign key to users table (unique).
        email: Email reported by the provider at first login.
        created_at: Timestamp of the first login.
    """

    __tablename__ = "identities"

    subject_id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="External auth subject",
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        unique=True,
        comment="Foreign key to users table",
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Identity(subject_id={self.subject_id}, user_id={self.user_id})>"
