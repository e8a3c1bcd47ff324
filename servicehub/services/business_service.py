"""
Business operations: registration, the public directory, profile updates,
service catalogue, analytics, and public reviews.

Access is checked by the caller (see authorization_service); methods that
take a Business assume it has already been resolved and authorized.
"""
from datetime import date as date_type
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, select, func
from sqlalchemy.orm import Session

from servicehub.api.middleware.error_handler import NotFoundException, ValidationException
from servicehub.lib.logging import get_logger
from servicehub.models.bookings import Booking, BookingStatus
from servicehub.models.businesses import Business, BusinessStatus, WEEKDAYS
from servicehub.models.favorites import Favorite
from servicehub.models.services import Service
from servicehub.models.users import User
from servicehub.services.availability_service import parse_time

logger = get_logger(__name__)


PROFILE_FIELDS = ("name", "description", "phone", "email", "status", "working_hours")
REQUIRED_PROFILE_FIELDS = ("name", "status", "working_hours")
SERVICE_FIELDS = ("name", "description", "price", "duration_minutes", "active")
MONTHLY_STATS_MONTHS = 12


def validate_working_hours(working_hours: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a working-hours mapping. Unknown weekday names and malformed
    times are rejected; closed or empty days are kept as given.
    """
    normalized = {}
    for day, entry in (working_hours or {}).items():
        key = day.lower()
        if key not in WEEKDAYS:
            raise ValidationException(f"Unknown weekday '{day}'", errors={"working_hours": day})
        if entry is None:
            normalized[key] = None
            continue
        entry = dict(entry)
        for field in ("open", "close"):
            if entry.get(field):
                parse_time(entry[field], f"{key}.{field}")
        normalized[key] = entry
    return normalized


class BusinessService:
    """Operations on one business's profile, services, and statistics."""

    def __init__(self, session: Session):
        self.session = session

    def get_business(self, business_id: UUID) -> Business:
        business = self.session.get(Business, business_id)
        if business is None:
            raise NotFoundException("Business", str(business_id))
        return business

    # ===== Directory =====

    def create_business(self, owner: User, data: Dict[str, Any]) -> Business:
        """Register a business owned by the caller. New businesses start pending."""
        fields = {k: data[k] for k in PROFILE_FIELDS if data.get(k) is not None}
        fields["working_hours"] = validate_working_hours(fields.get("working_hours"))
        fields.setdefault("status", BusinessStatus.PENDING)

        business = Business(owner_id=owner.id, **fields)
        self.session.add(business)
        self.session.commit()
        logger.info(
            "Business created",
            extra={"extra_fields": {"business_id": str(business.id), "owner_id": str(owner.id)}},
        )
        return business

    def list_businesses(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        status: Optional[BusinessStatus] = None,
    ) -> Tuple[List[Business], int]:
        """
        One page of the public directory and the total count.

        sort_by "rating" lists best rated first, "name" alphabetically;
        anything else lists the newest registrations first.
        """
        criteria = [Business.status == status] if status is not None else []
        total = self.session.execute(
            select(func.count()).select_from(Business).where(*criteria)
        ).scalar_one()

        if sort_by == "rating":
            order = (Business.rating.desc(), Business.name)
        elif sort_by == "name":
            order = (Business.name,)
        else:
            order = (Business.created_at.desc(),)

        stmt = (
            select(Business)
            .where(*criteria)
            .order_by(*order)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all()), total

    def delete_business(self, business: Business) -> None:
        """Remove a business with its services, bookings, and favorites."""
        business_id = business.id
        for model in (Booking, Service, Favorite):
            self.session.execute(delete(model).where(model.business_id == business_id))
        self.session.delete(business)
        self.session.commit()
        logger.warning(
            "Business deleted",
            extra={"extra_fields": {"business_id": str(business_id)}},
        )

    # ===== Profile =====

    def update_profile(self, business: Business, changes: Dict[str, Any]) -> Business:
        """
        Apply only the fields present in `changes`. Present-but-empty values
        are written, so a field can be cleared.
        """
        for field in PROFILE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if value is None and field in REQUIRED_PROFILE_FIELDS:
                raise ValidationException(f"{field} cannot be null", errors={field: None})
            if field == "working_hours":
                value = validate_working_hours(value)
            setattr(business, field, value)

        self.session.commit()
        logger.info(
            "Business profile updated",
            extra={"extra_fields": {"business_id": str(business.id), "fields": sorted(changes)}},
        )
        return business

    # ===== Services =====

    def list_services(self, business: Business) -> List[Service]:
        stmt = select(Service).where(Service.business_id == business.id).order_by(Service.name)
        return list(self.session.execute(stmt).scalars().all())

    def _get_service(self, business: Business, service_id: UUID) -> Service:
        service = self.session.get(Service, service_id)
        if service is None or service.business_id != business.id:
            raise NotFoundException("Service", str(service_id))
        return service

    def create_service(self, business: Business, data: Dict[str, Any]) -> Service:
        service = Service(business_id=business.id, **{k: data[k] for k in SERVICE_FIELDS if k in data})
        self.session.add(service)
        self.session.commit()
        logger.info(
            "Service created",
            extra={"extra_fields": {"business_id": str(business.id), "service_id": str(service.id)}},
        )
        return service

    def update_service(self, business: Business, service_id: UUID, changes: Dict[str, Any]) -> Service:
        """Existing bookings keep their price snapshot."""
        service = self._get_service(business, service_id)
        for field in SERVICE_FIELDS:
            if field not in changes:
                continue
            if changes[field] is None and field != "description":
                raise ValidationException(f"{field} cannot be null", errors={field: None})
            setattr(service, field, changes[field])
        self.session.commit()
        return service

    def delete_service(self, business: Business, service_id: UUID) -> None:
        service = self._get_service(business, service_id)
        self.session.delete(service)
        self.session.commit()
        logger.info(
            "Service removed",
            extra={"extra_fields": {"business_id": str(business.id), "service_id": str(service_id)}},
        )

    # ===== Analytics =====

    def analytics(self, business: Business, today: Optional[date_type] = None) -> Dict[str, Any]:
        """Booking counts per status, revenue from non-cancelled bookings, rating."""
        rows = self.session.execute(
            select(Booking.status, func.count(), func.coalesce(func.sum(Booking.total_price), 0))
            .where(Booking.business_id == business.id)
            .group_by(Booking.status)
        ).all()

        by_status = {status.value: 0 for status in BookingStatus}
        total_bookings = 0
        revenue = 0.0
        for status, count, amount in rows:
            by_status[BookingStatus(status).value] = count
            total_bookings += count
            if status != BookingStatus.CANCELLED:
                revenue += float(amount)

        return {
            "total_bookings": total_bookings,
            "total_revenue": round(revenue, 2),
            "average_rating": business.rating,
            "num_reviews": business.num_reviews,
            "bookings_by_status": by_status,
            "monthly_stats": self.monthly_stats(business, today or date_type.today()),
        }

    def monthly_stats(self, business: Business, today: date_type) -> List[Dict[str, Any]]:
        """
        Bookings and revenue per month for the twelve months ending with the
        month of `today`, oldest first. Months are keyed by the booking's
        service date; empty months are reported with zeros.
        """
        current = today.replace(day=1)
        months = [_shift_month(current, -offset) for offset in reversed(range(MONTHLY_STATS_MONTHS))]
        stats = {m: {"month": m.strftime("%Y-%m"), "bookings": 0, "revenue": 0.0} for m in months}

        rows = self.session.execute(
            select(Booking.date, Booking.status, Booking.total_price).where(
                Booking.business_id == business.id,
                Booking.date >= months[0],
                Booking.date < _shift_month(months[-1], 1),
            )
        ).all()
        for day, status, amount in rows:
            entry = stats[day.replace(day=1)]
            entry["bookings"] += 1
            if status != BookingStatus.CANCELLED:
                entry["revenue"] += float(amount)

        for entry in stats.values():
            entry["revenue"] = round(entry["revenue"], 2)
        return [stats[m] for m in months]

    # ===== Reviews =====

    def list_reviews(self, business_id: UUID) -> List[Booking]:
        business = self.get_business(business_id)
        stmt = (
            select(Booking)
            .where(Booking.business_id == business.id, Booking.rating.is_not(None))
            .order_by(Booking.updated_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())


def _shift_month(first_of_month: date_type, months: int) -> date_type:
    index = first_of_month.year * 12 + first_of_month.month - 1 + months
    return date_type(index // 12, index % 12 + 1, 1)
