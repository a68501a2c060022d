"""SQLAlchemy model for the groups table."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studybuddy.infrastructure.persistence.database import Base
from studybuddy.infrastructure.persistence.models.user import UserModel, utcnow


class GroupModel(Base):
    """SQLAlchemy model for the groups table.

    Every group has exactly one owner, who also holds the group's single
    "owner" membership row.

    Attributes:
        id: Primary key (integer, doubles as the shareable join code).
        name: Group name.
        description: Optional description.
        owner_id: Foreign key to users table.
        is_private: Private groups are hidden from discovery.
        created_at: Timestamp when the group was created.
        updated_at: Timestamp when the group was last updated.
    """

    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Foreign key to users table",
    )
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    owner: Mapped[UserModel] = relationship(UserModel, lazy="raise")

    __table_args__ = (Index("ix_groups_private_created", "is_private", "created_at"),)

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name={self.name}, owner_id={self.owner_id})>"
