"""
Business routes gated by the authorization resolver.

Provides:
- GET /businesses: public directory, paginated
- POST /businesses: register a business owned by the caller
- GET /businesses/{business_id}: public profile
- PUT /businesses/{business_id}: profile update (edit_profile)
- DELETE /businesses/{business_id}: removal (owner or admin)
- GET /businesses/{business_id}/bookings: booking list (manage_bookings)
- GET /businesses/{business_id}/analytics: statistics (view_analytics)
- GET/POST /businesses/{business_id}/services, PUT/DELETE .../{service_id}
  (listing needs any relationship; changes need manage_services)
- GET /businesses/{business_id}/reviews: public reviews
"""
import math
from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from servicehub.api.dependencies import (
    get_current_user,
    get_db,
    require_business_access,
    require_business_owner,
)
from servicehub.api.routes.bookings import BookingListResponse, get_booking_service, paginated
from servicehub.lib.settings import settings
from servicehub.models.businesses import BusinessStatus, Capability
from servicehub.models.users import User
from servicehub.services.authorization_service import AccessDecision
from servicehub.services.booking_service import BookingService
from servicehub.services.business_service import BusinessService


router = APIRouter(prefix="/businesses", tags=["businesses"])


# Schemas
class DaySchedule(BaseModel):
    open: Optional[str] = Field(None, examples=["09:00"])
    close: Optional[str] = Field(None, examples=["17:00"])
    is_open: bool = True


class BusinessResponse(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    status: BusinessStatus
    working_hours: Dict[str, Optional[DaySchedule]] = Field(default_factory=dict)
    rating: float
    num_reviews: int

    model_config = {"from_attributes": True}


class BusinessListResponse(BaseModel):
    businesses: List[BusinessResponse]
    total: int
    page: int
    pages: int


class BusinessCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    working_hours: Dict[str, Optional[DaySchedule]] = Field(default_factory=dict)


class BusinessUpdateRequest(BaseModel):
    """Partial update: absent fields are untouched, present ones are written as sent."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    status: Optional[BusinessStatus] = None
    working_hours: Optional[Dict[str, Optional[DaySchedule]]] = None


class ServiceResponse(BaseModel):
    id: UUID
    business_id: UUID
    name: str
    description: Optional[str] = None
    price: float
    duration_minutes: int
    active: bool = True

    model_config = {"from_attributes": True}


class ServiceCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    price: float = Field(..., ge=0)
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    active: bool = True


class ServiceUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[float] = Field(None, ge=0)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    active: Optional[bool] = None


class MonthlyStat(BaseModel):
    month: str = Field(..., examples=["2030-01"])
    bookings: int
    revenue: float


class AnalyticsResponse(BaseModel):
    total_bookings: int
    total_revenue: float
    average_rating: float
    num_reviews: int
    bookings_by_status: Dict[str, int]
    monthly_stats: List[MonthlyStat]


class ReviewResponse(BaseModel):
    booking_id: UUID
    user_id: UUID
    rating: int
    comment: Optional[str] = None
    updated_at: datetime


def get_business_service(db: Session = Depends(get_db)) -> BusinessService:
    return BusinessService(db)


# Directory
@router.get("", response_model=BusinessListResponse)
def list_businesses(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort_by: Literal["newest", "rating", "name"] = Query("newest"),
    status_filter: Optional[BusinessStatus] = Query(None, alias="status"),
    service: BusinessService = Depends(get_business_service),
) -> BusinessListResponse:
    items, total = service.list_businesses(page=page, limit=limit, sort_by=sort_by, status=status_filter)
    return BusinessListResponse(
        businesses=[BusinessResponse.model_validate(b) for b in items],
        total=total,
        page=page,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.post("", response_model=BusinessResponse, status_code=status.HTTP_201_CREATED)
def create_business(
    request: BusinessCreateRequest,
    caller: User = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
) -> BusinessResponse:
    business = service.create_business(caller, request.model_dump())
    return BusinessResponse.model_validate(business)


# Profile
@router.get("/{business_id}", response_model=BusinessResponse)
def get_business(
    business_id: UUID,
    service: BusinessService = Depends(get_business_service),
) -> BusinessResponse:
    return BusinessResponse.model_validate(service.get_business(business_id))


@router.put("/{business_id}", response_model=BusinessResponse)
def update_business(
    request: BusinessUpdateRequest,
    decision: AccessDecision = Depends(require_business_access(Capability.EDIT_PROFILE)),
    service: BusinessService = Depends(get_business_service),
) -> BusinessResponse:
    changes = request.model_dump(include=request.model_fields_set)
    business = service.update_profile(decision.business, changes)
    return BusinessResponse.model_validate(business)


@router.delete("/{business_id}")
def delete_business(
    decision: AccessDecision = Depends(require_business_owner("Not authorized")),
    service: BusinessService = Depends(get_business_service),
) -> dict:
    service.delete_business(decision.business)
    return {"message": "Business removed"}


# Bookings and analytics
@router.get("/{business_id}/bookings", response_model=BookingListResponse)
def list_business_bookings(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    decision: AccessDecision = Depends(require_business_access(Capability.MANAGE_BOOKINGS)),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    items, total = bookings.list_business_bookings(decision.business.id, page=page, limit=limit)
    return paginated(items, total, page, limit)


@router.get("/{business_id}/analytics", response_model=AnalyticsResponse)
def get_business_analytics(
    decision: AccessDecision = Depends(require_business_access(Capability.VIEW_ANALYTICS)),
    service: BusinessService = Depends(get_business_service),
) -> AnalyticsResponse:
    return AnalyticsResponse(**service.analytics(decision.business))


# Services
@router.get("/{business_id}/services", response_model=List[ServiceResponse])
def list_business_services(
    decision: AccessDecision = Depends(require_business_access()),
    service: BusinessService = Depends(get_business_service),
) -> List[ServiceResponse]:
    return [ServiceResponse.model_validate(s) for s in service.list_services(decision.business)]


@router.post(
    "/{business_id}/services",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_business_service(
    request: ServiceCreateRequest,
    decision: AccessDecision = Depends(require_business_access(Capability.MANAGE_SERVICES)),
    service: BusinessService = Depends(get_business_service),
) -> ServiceResponse:
    created = service.create_service(decision.business, request.model_dump())
    return ServiceResponse.model_validate(created)


@router.put("/{business_id}/services/{service_id}", response_model=ServiceResponse)
def update_business_service(
    service_id: UUID,
    request: ServiceUpdateRequest,
    decision: AccessDecision = Depends(require_business_access(Capability.MANAGE_SERVICES)),
    service: BusinessService = Depends(get_business_service),
) -> ServiceResponse:
    changes = request.model_dump(include=request.model_fields_set)
    updated = service.update_service(decision.business, service_id, changes)
    return ServiceResponse.model_validate(updated)


@router.delete("/{business_id}/services/{service_id}")
def delete_business_service(
    service_id: UUID,
    decision: AccessDecision = Depends(require_business_access(Capability.MANAGE_SERVICES)),
    service: BusinessService = Depends(get_business_service),
) -> dict:
    service.delete_service(decision.business, service_id)
    return {"message": "Service removed"}


# Reviews
@router.get("/{business_id}/reviews", response_model=List[ReviewResponse])
def list_business_reviews(
    business_id: UUID,
    service: BusinessService = Depends(get_business_service),
) -> List[ReviewResponse]:
    return [
        ReviewResponse(
            booking_id=b.id,
            user_id=b.user_id,
            rating=b.rating,
            comment=b.review,
            updated_at=b.updated_at,
        )
        for b in service.list_reviews(business_id)
    ]
