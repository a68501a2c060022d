"""SQLAlchemy model for the messages table.

Messages are append-only: they are created and deleted, never edited.
A null group_id marks a personal note visible only to its author.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studybuddy.infrastructure.persistence.database import Base
from studybuddy.infrastructure.persistence.models.user import UserModel, utcnow


class MessageModel(Base):
    """SQLAlchemy model for the messages table.

    Attributes:
        id: Primary key, secondary sort key after created_at.
        group_id: Foreign key to groups table, null for personal notes.
        author_id: Foreign key to users table.
        message: Optional text body.
        attachment_url: Optional public URL of an uploaded file.
        created_at: Timestamp, primary sort key.
    """

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=True,
        comment="Foreign key to groups table (null for personal notes)",
    )
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Foreign key to users table",
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachment_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    author: Mapped[UserModel] = relationship(UserModel, lazy="raise")

    __table_args__ = (
        Index("ix_messages_group_created", "group_id", "created_at", "id"),
        Index("ix_messages_author_group", "author_id", "group_id"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, group_id={self.group_id}, author_id={self.author_id})>"
