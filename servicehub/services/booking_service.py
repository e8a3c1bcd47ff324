"""Booking lifecycle service.

Owns booking creation, status updates, reviews, and the free-slot query.

Status updates are permissive: any enum value is accepted from
any current state, including backward moves such as completed -> pending.
Only the review flow is gated on state (the booking must be completed).

Double booking is not prevented unless `booking_enforce_unique_slots` is
enabled; the free-slot list is advisory and two requests for the same slot
can both succeed.
"""
from datetime import date as date_type, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from servicehub.api.middleware.error_handler import (
    BadRequestException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from servicehub.lib.logging import get_logger
from servicehub.lib.metrics import get_metrics_collector
from servicehub.lib.settings import settings
from servicehub.models.bookings import Booking, BookingStatus, PaymentMethod, PaymentStatus
from servicehub.models.businesses import Business
from servicehub.models.services import Service
from servicehub.models.users import User, UserRole
from servicehub.services.availability_service import (
    FreeSlots,
    TIME_FORMAT,
    compute_free_slots,
    parse_time,
)
from servicehub.services.rating_service import RatingAggregator

logger = get_logger(__name__)


class BookingService:
    """Booking lifecycle operations bound to one database session."""

    def __init__(self, session: Session):
        self.session = session
        self.metrics = get_metrics_collector()

    # ===== Lookups =====

    def _get_booking(self, booking_id: UUID) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundException("Booking", str(booking_id))
        return booking

    def _get_business(self, business_id: UUID) -> Business:
        business = self.session.get(Business, business_id)
        if business is None:
            raise NotFoundException("Business", str(business_id))
        return business

    def _ensure_customer_or_owner(self, caller: User, booking: Booking) -> None:
        """Bookings are visible to their customer and the business owner only."""
        if booking.user_id == caller.id:
            return
        business = self.session.get(Business, booking.business_id)
        if business is not None and business.owner_id == caller.id:
            return
        raise UnauthorizedException("Not authorized")

    # ===== Create =====

    def create_booking(
        self,
        caller: User,
        business_id: UUID,
        service_id: UUID,
        day: date_type,
        start_time: str,
        end_time: Optional[str] = None,
        notes: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> Booking:
        """
        Create a pending booking for the caller.

        total_price and the service snapshot are copied from the service as
        it is now; later price changes do not touch existing bookings.

        Raises:
            NotFoundException: Business or service does not resolve
            BadRequestException: Service is inactive
            ValidationException: Malformed start/end time
            ConflictException: Slot taken (only with unique-slot enforcement)
        """
        business = self._get_business(business_id)

        service = self.session.get(Service, service_id)
        if service is None or service.business_id != business.id:
            raise NotFoundException("Service", str(service_id))
        if not service.active:
            raise BadRequestException("Service is not available for booking")

        start = parse_time(start_time, "start_time")
        if end_time:
            end = parse_time(end_time, "end_time")
        else:
            starts_at = datetime.combine(day, start)
            ends_at = starts_at + timedelta(minutes=service.duration_minutes)
            if ends_at.date() != day:
                raise ValidationException(
                    "Booking would run past the end of the day",
                    errors={"start_time": start_time, "duration_minutes": service.duration_minutes},
                )
            end = ends_at.time()
        if end <= start:
            raise ValidationException(
                "end_time must be after start_time",
                errors={"start_time": start_time, "end_time": end_time},
            )
        start_str = start.strftime(TIME_FORMAT)

        if settings.booking_enforce_unique_slots:
            self._ensure_slot_free(business.id, day, start_str)

        booking = Booking(
            user_id=caller.id,
            business_id=business.id,
            service_id=service.id,
            service_name=service.name,
            service_price=service.price,
            service_duration_minutes=service.duration_minutes,
            date=day,
            start_time=start_str,
            end_time=end.strftime(TIME_FORMAT),
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_method=payment_method,
            total_price=service.price,
            notes=notes,
        )
        self.session.add(booking)
        self.session.commit()

        self.metrics.increment_bookings_created()
        logger.info(
            "Booking created",
            extra={
                "extra_fields": {
                    "booking_id": str(booking.id),
                    "business_id": str(business.id),
                    "date": str(day),
                    "start_time": booking.start_time,
                }
            },
        )
        return booking

    def _ensure_slot_free(self, business_id: UUID, day: date_type, start_time: str) -> None:
        stmt = select(func.count()).select_from(Booking).where(
            Booking.business_id == business_id,
            Booking.date == day,
            Booking.start_time == start_time,
            Booking.status != BookingStatus.CANCELLED,
        )
        if self.session.execute(stmt).scalar_one() > 0:
            raise ConflictException(
                "This time slot is already booked",
                details={"date": str(day), "start_time": start_time},
            )

    # ===== Read =====

    def list_user_bookings(self, user_id: UUID, page: int = 1, limit: int = 10) -> Tuple[List[Booking], int]:
        """Return one page of the user's bookings (newest date first) and the total."""
        return self._paginate(Booking.user_id == user_id, page, limit)

    def list_business_bookings(self, business_id: UUID, page: int = 1, limit: int = 10) -> Tuple[List[Booking], int]:
        return self._paginate(Booking.business_id == business_id, page, limit)

    def _paginate(self, criterion, page: int, limit: int) -> Tuple[List[Booking], int]:
        total = self.session.execute(
            select(func.count()).select_from(Booking).where(criterion)
        ).scalar_one()
        stmt = (
            select(Booking)
            .where(criterion)
            .order_by(Booking.date.desc(), Booking.start_time.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all()), total

    def get_booking(self, caller: User, booking_id: UUID) -> Booking:
        """
        Raises:
            NotFoundException: Booking does not resolve
            UnauthorizedException: Caller is neither the customer nor the owner
        """
        booking = self._get_booking(booking_id)
        self._ensure_customer_or_owner(caller, booking)
        return booking

    # ===== Update =====

    def update_status(self, caller: User, booking_id: UUID, changes: Dict[str, Any]) -> Booking:
        """
        Apply a status update.

        `changes` holds only the fields the client sent. A missing or null
        status keeps the current one; a present cancellation_reason is
        written as given, so an explicit null or empty string clears it.
        """
        booking = self._get_booking(booking_id)
        self._ensure_customer_or_owner(caller, booking)

        previous = booking.status
        new_status = changes.get("status")
        if new_status is not None:
            new_status = BookingStatus(new_status)
            if new_status != booking.status:
                booking.status = new_status

        if "cancellation_reason" in changes:
            reason = changes["cancellation_reason"]
            if reason != booking.cancellation_reason:
                booking.cancellation_reason = reason

        self.session.commit()

        self.metrics.increment_status_changes(previous.value, booking.status.value)
        logger.info(
            "Booking status updated",
            extra={
                "extra_fields": {
                    "booking_id": str(booking.id),
                    "from_status": previous.value,
                    "to_status": booking.status.value,
                }
            },
        )
        return booking

    def add_review(self, caller: User, booking_id: UUID, rating: int, review: Optional[str] = None) -> Booking:
        """
        Attach a rating/review to a completed booking and refresh the
        business rating aggregate in the same transaction.

        Raises:
            NotFoundException: Booking does not resolve
            UnauthorizedException: Caller is not the booking's customer
            BadRequestException: Booking is not completed
            ValidationException: Rating outside 1..5
        """
        booking = self._get_booking(booking_id)

        if booking.user_id != caller.id:
            raise UnauthorizedException("Not authorized")

        if booking.status != BookingStatus.COMPLETED:
            self.metrics.increment_reviews("rejected")
            raise BadRequestException("Booking must be completed before review")

        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationException("Rating must be an integer between 1 and 5", errors={"rating": rating})

        booking.rating = rating
        booking.review = review

        try:
            RatingAggregator(self.session).recompute(booking.business_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            self.metrics.increment_reviews("failed")
            logger.error(
                "Review not saved: rating aggregation failed, review and aggregate rolled back",
                extra={
                    "extra_fields": {
                        "booking_id": str(booking_id),
                    }
                },
                exc_info=True,
            )
            raise

        self.metrics.increment_reviews("accepted")
        return booking

    # ===== Delete =====

    def delete_booking(self, caller: User, booking_id: UUID) -> None:
        """Administrative hard delete. The normal flow never deletes bookings."""
        if caller.role != UserRole.ADMIN:
            raise UnauthorizedException("Not authorized as an admin")
        booking = self._get_booking(booking_id)
        self.session.delete(booking)
        self.session.commit()
        logger.warning(
            "Booking deleted by admin",
            extra={"extra_fields": {"booking_id": str(booking_id), "admin_id": str(caller.id)}},
        )

    # ===== Availability =====

    def available_slots(self, business_id: UUID, day: date_type) -> FreeSlots:
        """
        Free slots for a business on one day. Every booking on the day
        occupies its slot, cancelled ones included.
        """
        business = self._get_business(business_id)
        stmt = select(Booking).where(
            Booking.business_id == business.id,
            Booking.date == day,
        )
        bookings = self.session.execute(stmt).scalars().all()
        return compute_free_slots(business.working_hours, day, bookings)
