"""
Unit tests for the business directory, profile, service catalogue, and analytics.
"""
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from servicehub.api.middleware.error_handler import NotFoundException, ValidationException
from servicehub.models.bookings import Booking, BookingStatus
from servicehub.models.businesses import BusinessEmployee, BusinessStatus
from servicehub.models.favorites import Favorite
from servicehub.models.services import Service
from servicehub.models.users import UserRole
from servicehub.services.business_service import BusinessService, validate_working_hours


@pytest.fixture
def businesses(db_session):
    return BusinessService(db_session)


@pytest.mark.unit
def test_validate_working_hours_normalizes_day_names():
    result = validate_working_hours({"Monday": {"open": "08:00", "close": "12:00"}, "sunday": None})

    assert result == {"monday": {"open": "08:00", "close": "12:00"}, "sunday": None}


@pytest.mark.unit
def test_validate_working_hours_rejects_bad_input():
    with pytest.raises(ValidationException):
        validate_working_hours({"funday": {"open": "08:00", "close": "12:00"}})

    with pytest.raises(ValidationException):
        validate_working_hours({"monday": {"open": "8 o'clock", "close": "12:00"}})


@pytest.mark.unit
def test_update_profile_applies_only_present_fields(businesses, make_business):
    business = make_business()
    business.description = "Old text"

    businesses.update_profile(business, {"phone": "+8801700000000", "description": ""})

    assert business.phone == "+8801700000000"
    assert business.description == ""
    assert business.name == "Clean & Shine"
    assert business.status == BusinessStatus.ACTIVE


@pytest.mark.unit
def test_update_profile_rejects_null_required_field(businesses, make_business):
    with pytest.raises(ValidationException):
        businesses.update_profile(make_business(), {"name": None})


@pytest.mark.unit
def test_service_crud(businesses, make_business):
    business = make_business()

    created = businesses.create_service(
        business, {"name": "Window Cleaning", "price": 30.0, "duration_minutes": 45, "active": True}
    )
    assert [s.id for s in businesses.list_services(business)] == [created.id]

    updated = businesses.update_service(business, created.id, {"price": 35.5, "description": None})
    assert updated.price == 35.5
    assert updated.description is None

    with pytest.raises(ValidationException):
        businesses.update_service(business, created.id, {"duration_minutes": None})

    businesses.delete_service(business, created.id)
    assert businesses.list_services(business) == []


@pytest.mark.unit
def test_service_of_another_business_is_not_found(businesses, make_business, make_service):
    business = make_business()
    foreign = make_service(make_business())

    with pytest.raises(NotFoundException):
        businesses.delete_service(business, foreign.id)

    with pytest.raises(NotFoundException):
        businesses.update_service(business, uuid4(), {"name": "x"})


@pytest.mark.unit
def test_analytics(businesses, make_business, make_service, make_user, make_booking):
    business = make_business()
    offering = make_service(business, price="40.00")
    customer = make_user()
    make_booking(customer, business, offering, start_time="09:00", status=BookingStatus.COMPLETED)
    make_booking(customer, business, offering, start_time="10:00", status=BookingStatus.PENDING)
    make_booking(customer, business, offering, start_time="11:00", status=BookingStatus.CANCELLED)

    stats = businesses.analytics(business)

    assert stats["total_bookings"] == 3
    assert stats["total_revenue"] == 80.0
    assert stats["bookings_by_status"] == {
        "pending": 1,
        "confirmed": 0,
        "completed": 1,
        "cancelled": 1,
    }
    assert stats["num_reviews"] == 0


@pytest.mark.unit
def test_list_reviews_only_rated(businesses, make_business, make_service, make_user, make_booking):
    business = make_business()
    offering = make_service(business)
    rated = make_booking(make_user(), business, offering, status=BookingStatus.COMPLETED, rating=5)
    make_booking(make_user(), business, offering, status=BookingStatus.COMPLETED)

    assert [b.id for b in businesses.list_reviews(business.id)] == [rated.id]

    with pytest.raises(NotFoundException):
        businesses.list_reviews(uuid4())


@pytest.mark.unit
def test_create_business_is_owned_by_caller_and_pending(businesses, make_user):
    owner = make_user(role=UserRole.BUSINESS)

    business = businesses.create_business(
        owner,
        {"name": "Fresh Fold", "phone": "555-0199", "working_hours": {"Tuesday": {"open": "08:00", "close": "12:00"}}},
    )

    assert business.owner_id == owner.id
    assert business.status == BusinessStatus.PENDING
    assert business.working_hours == {"tuesday": {"open": "08:00", "close": "12:00"}}
    assert business.rating == 0.0

    with pytest.raises(ValidationException):
        businesses.create_business(owner, {"name": "Bad Hours", "working_hours": {"monday": {"open": "late"}}})


@pytest.mark.unit
def test_list_businesses_sorts_and_paginates(businesses, make_business, db_session):
    for name, rating in (("Bravo Baths", 3.5), ("Alpha Air", 4.8), ("Charlie Carpets", 4.1)):
        business = make_business(name=name)
        business.rating = rating
    db_session.commit()

    by_name, total = businesses.list_businesses(sort_by="name")
    assert total == 3
    assert [b.name for b in by_name] == ["Alpha Air", "Bravo Baths", "Charlie Carpets"]

    by_rating, _ = businesses.list_businesses(sort_by="rating", limit=2)
    assert [b.name for b in by_rating] == ["Alpha Air", "Charlie Carpets"]

    second_page, _ = businesses.list_businesses(sort_by="rating", page=2, limit=2)
    assert [b.name for b in second_page] == ["Bravo Baths"]

    pending, pending_total = businesses.list_businesses(status=BusinessStatus.PENDING)
    assert pending == [] and pending_total == 0


@pytest.mark.unit
def test_delete_business_removes_dependents(businesses, make_business, make_service, make_user, make_booking, make_employee, db_session):
    business = make_business()
    offering = make_service(business)
    customer = make_user()
    make_booking(customer, business, offering)
    make_employee(business, make_user())
    db_session.add(Favorite(user_id=customer.id, business_id=business.id))
    db_session.commit()
    business_id = business.id

    businesses.delete_business(business)

    with pytest.raises(NotFoundException):
        businesses.get_business(business_id)
    for model in (Booking, Service, BusinessEmployee, Favorite):
        assert db_session.query(model).filter(model.business_id == business_id).count() == 0


@pytest.mark.unit
def test_monthly_stats_cover_last_twelve_months(businesses, make_business, make_service, make_user, make_booking):
    business = make_business()
    offering = make_service(business, price="40.00")
    customer = make_user()
    make_booking(customer, business, offering, day=date(2030, 1, 7), status=BookingStatus.COMPLETED)
    make_booking(customer, business, offering, day=date(2030, 1, 8), status=BookingStatus.CANCELLED)
    make_booking(customer, business, offering, day=date(2029, 12, 2))
    make_booking(customer, business, offering, day=date(2029, 3, 31))
    make_booking(customer, business, offering, day=date(2030, 4, 1))

    months = businesses.monthly_stats(business, today=date(2030, 3, 15))

    assert len(months) == 12
    assert months[0]["month"] == "2029-04"
    assert months[-1] == {"month": "2030-03", "bookings": 0, "revenue": 0.0}
    by_month = {m["month"]: m for m in months}
    assert by_month["2029-12"] == {"month": "2029-12", "bookings": 1, "revenue": 40.0}
    assert by_month["2030-01"] == {"month": "2030-01", "bookings": 2, "revenue": 40.0}
    assert sum(m["bookings"] for m in months) == 3


@pytest.mark.unit
def test_analytics_includes_monthly_stats(businesses, make_business):
    stats = businesses.analytics(make_business(), today=date(2030, 1, 20))

    assert [m["month"] for m in stats["monthly_stats"]][-2:] == ["2029-12", "2030-01"]
