"""SQLAlchemy model for the memberships table.

Implements the many-to-many relationship between users and groups,
carrying the member's role.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studybuddy.domain.entities import MembershipRole
from studybuddy.infrastructure.persistence.database import Base
from studybuddy.infrastructure.persistence.models.user import UserModel, utcnow


class MembershipModel(Base):
    """Join record granting a user access to a group.

    Attributes:
        id: Primary key.
        user_id: Foreign key to users table.
        group_id: Foreign key to groups table.
        role: "owner" or "member".
        joined_at: Timestamp when the user joined.
    """

    __tablename__ = "memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Foreign key to users table",
    )
    group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to groups table",
    )
    role: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=MembershipRole.MEMBER.value,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    user: Mapped[UserModel] = relationship(UserModel, lazy="raise")

    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_memberships_user_group"),
    )

    def __repr__(self) -> str:
        return f"<Membership(user_id={self.user_id}, group_id={self.group_id}, role={self.role})>"
