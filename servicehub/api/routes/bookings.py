"""Booking routes.

- POST /bookings: create a booking for the caller
- GET /bookings/my: caller's bookings, paginated
- GET /bookings/slots/{business_id}?date=YYYY-MM-DD: free slots for a day
- GET /bookings/{booking_id}: one booking (customer or business owner)
- PUT /bookings/{booking_id}: status update (customer or business owner)
- POST /bookings/{booking_id}/review: rate a completed booking (customer)
- DELETE /bookings/{booking_id}: administrative delete
"""
import math
from datetime import date as date_type, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from servicehub.api.dependencies import get_current_user, get_db
from servicehub.api.middleware.error_handler import BadRequestException
from servicehub.lib.settings import settings
from servicehub.models.bookings import BookingStatus, PaymentMethod, PaymentStatus
from servicehub.models.users import User
from servicehub.services.availability_service import parse_date
from servicehub.services.booking_service import BookingService


router = APIRouter(prefix="/bookings", tags=["bookings"])


# Request/Response Models
class BookingCreateRequest(BaseModel):
    business_id: UUID
    service_id: UUID
    date: date_type = Field(..., description="Calendar day (YYYY-MM-DD)")
    start_time: str = Field(..., description="Local start time (HH:MM)", examples=["09:30"])
    end_time: Optional[str] = Field(
        None,
        description="Local end time (HH:MM); derived from the service duration when omitted",
    )
    notes: Optional[str] = Field(None, max_length=2000)
    payment_method: Optional[PaymentMethod] = None


class BookingStatusUpdateRequest(BaseModel):
    """Only fields present in the body are applied."""
    status: Optional[BookingStatus] = None
    cancellation_reason: Optional[str] = Field(None, max_length=1000)


class BookingReviewRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=2000)


class BookingResponse(BaseModel):
    id: UUID
    user_id: UUID
    business_id: UUID
    service_id: Optional[UUID] = None
    service_name: str
    service_price: float
    service_duration_minutes: int
    date: date_type
    start_time: str
    end_time: str
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    total_price: float
    rating: Optional[int] = None
    review: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    total: int
    page: int
    pages: int


class AvailableSlotsResponse(BaseModel):
    business_id: UUID
    date: date_type
    slots: List[datetime]


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def paginated(bookings, total: int, page: int, limit: int) -> BookingListResponse:
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=page,
        pages=math.ceil(total / limit) if total else 0,
    )


# Routes
@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreateRequest,
    caller: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Create a pending booking. The slot is not re-checked unless unique-slot enforcement is on."""
    booking = service.create_booking(
        caller,
        business_id=request.business_id,
        service_id=request.service_id,
        day=request.date,
        start_time=request.start_time,
        end_time=request.end_time,
        notes=request.notes,
        payment_method=request.payment_method,
    )
    return BookingResponse.model_validate(booking)


@router.get("/my", response_model=BookingListResponse)
def list_my_bookings(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings, total = service.list_user_bookings(caller.id, page=page, limit=limit)
    return paginated(bookings, total, page, limit)


@router.get("/slots/{business_id}", response_model=AvailableSlotsResponse)
def get_available_slots(
    business_id: UUID,
    date: Optional[str] = Query(None, description="Day to check (YYYY-MM-DD)"),
    caller: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> AvailableSlotsResponse:
    """
    Free 30-minute slots for a business on one day. Closed days return an
    empty list.
    """
    if not date:
        raise BadRequestException("Date is required")
    day = parse_date(date)
    slots = service.available_slots(business_id, day)
    return AvailableSlotsResponse(business_id=business_id, date=day, slots=list(slots))


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: UUID,
    caller: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return BookingResponse.model_validate(service.get_booking(caller, booking_id))


@router.put("/{booking_id}", response_model=BookingResponse)
def update_booking_status(
    booking_id: UUID,
    request: BookingStatusUpdateRequest,
    caller: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Update status and/or cancellation reason. Any status value is accepted
    from any current state; re-sending the current status is a no-op.
    """
    changes = request.model_dump(include=request.model_fields_set)
    booking = service.update_status(caller, booking_id, changes)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/review", response_model=BookingResponse)
def add_booking_review(
    booking_id: UUID,
    request: BookingReviewRequest,
    caller: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Rate a completed booking; the business rating is refreshed in the same transaction."""
    booking = service.add_review(caller, booking_id, request.rating, request.review)
    return BookingResponse.model_validate(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_200_OK)
def delete_booking(
    booking_id: UUID,
    caller: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    service.delete_booking(caller, booking_id)
    return {"message": "Booking removed"}
