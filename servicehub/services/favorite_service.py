"""Per-user favorite businesses."""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from servicehub.api.middleware.error_handler import ConflictException, NotFoundException
from servicehub.lib.logging import get_logger
from servicehub.lib.metrics import get_metrics_collector
from servicehub.models.businesses import Business
from servicehub.models.favorites import Favorite
from servicehub.models.users import User

logger = get_logger(__name__)


class FavoriteService:
    """Add, remove, and list a user's favorite businesses."""

    def __init__(self, session: Session):
        self.session = session
        self.metrics = get_metrics_collector()

    def _find(self, user: User, business_id: UUID) -> Optional[Favorite]:
        return self.session.execute(
            select(Favorite).where(Favorite.user_id == user.id, Favorite.business_id == business_id)
        ).scalar_one_or_none()

    def list_favorites(self, user: User) -> List[Business]:
        """Favorited businesses, most recently added first."""
        stmt = (
            select(Business)
            .join(Favorite, Favorite.business_id == Business.id)
            .where(Favorite.user_id == user.id)
            .order_by(Favorite.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def add_favorite(self, user: User, business_id: UUID) -> Favorite:
        """
        Raises:
            NotFoundException: Business does not resolve
            ConflictException: Business is already a favorite
        """
        if self.session.get(Business, business_id) is None:
            raise NotFoundException("Business", str(business_id))
        if self._find(user, business_id) is not None:
            raise ConflictException(
                "Business already in favorites",
                details={"business_id": str(business_id)},
            )

        favorite = Favorite(user_id=user.id, business_id=business_id)
        self.session.add(favorite)
        self.session.commit()

        self.metrics.increment_favorite_changes("added")
        logger.info(
            "Favorite added",
            extra={"extra_fields": {"user_id": str(user.id), "business_id": str(business_id)}},
        )
        return favorite

    def remove_favorite(self, user: User, business_id: UUID) -> None:
        favorite = self._find(user, business_id)
        if favorite is None:
            raise NotFoundException("Favorite", str(business_id))
        self.session.delete(favorite)
        self.session.commit()
        self.metrics.increment_favorite_changes("removed")

    def is_favorite(self, user: User, business_id: UUID) -> bool:
        return self._find(user, business_id) is not None
