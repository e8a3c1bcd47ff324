"""
Rating aggregator - keeps a business's rating statistics derived from its
rated bookings.
"""
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from servicehub.api.middleware.error_handler import NotFoundException
from servicehub.lib.logging import get_logger
from servicehub.models.bookings import Booking
from servicehub.models.businesses import Business

logger = get_logger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    rating: float
    num_reviews: int


class RatingAggregator:
    """
    Recomputes business.rating / business.num_reviews by scanning bookings.

    Writes go into the caller's session without committing, so the caller
    commits the review and the new aggregate as one unit of work.
    """

    def __init__(self, session: Session):
        self.session = session

    def summarize(self, business_id: UUID) -> RatingSummary:
        stmt = select(Booking.rating).where(
            Booking.business_id == business_id,
            Booking.rating.is_not(None),
        )
        ratings = list(self.session.execute(stmt).scalars().all())
        if not ratings:
            return RatingSummary(rating=0.0, num_reviews=0)
        return RatingSummary(rating=sum(ratings) / len(ratings), num_reviews=len(ratings))

    def recompute(self, business_id: UUID) -> RatingSummary:
        """
        Recompute and store the rating aggregate for a business.

        Raises:
            NotFoundException: Business does not exist
        """
        business = self.session.get(Business, business_id)
        if business is None:
            raise NotFoundException("Business", str(business_id))

        # Pending review edits must be visible to the scan
        self.session.flush()
        summary = self.summarize(business_id)

        business.rating = summary.rating
        business.num_reviews = summary.num_reviews
        self.session.flush()

        logger.info(
            "Business rating recomputed",
            extra={
                "extra_fields": {
                    "business_id": str(business_id),
                    "rating": summary.rating,
                    "num_reviews": summary.num_reviews,
                }
            },
        )
        return summary
