"""
Favorite model - a user's bookmark of a business.
"""
from datetime import datetime, timezone
from uuid import uuid4, UUID

from sqlalchemy import DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from servicehub.lib.db import Base


class Favorite(Base):
    """A (user, business) pair; each pair exists at most once."""
    __tablename__ = "favorites"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    business_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "business_id", name="uq_favorite_user_business"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, business_id={self.business_id})>"
