"""
Shared fixtures: an in-memory SQLite database, the FastAPI test client,
and small factories for users, businesses, services, and bookings.
"""
import os

# Must be set before servicehub is imported: the engine is built at import time
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_JSON", "false")

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from servicehub.api.app import app
from servicehub.lib.db import SessionLocal, drop_db, get_db, init_db
from servicehub.lib.jwt import create_access_token
from servicehub.lib.metrics import reset_metrics
from servicehub.models.bookings import Booking, BookingStatus
from servicehub.models.businesses import (
    Business,
    BusinessEmployee,
    BusinessStatus,
    DEFAULT_PERMISSIONS,
    EmployeeRole,
    WEEKDAYS,
)
from servicehub.models.services import Service
from servicehub.models.users import User, UserRole


MONDAY = date(2030, 1, 7)


def weekly_hours(open_at="09:00", close_at="17:00"):
    return {day: {"open": open_at, "close": close_at, "is_open": True} for day in WEEKDAYS}


@pytest.fixture(autouse=True)
def clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def db_session():
    """Fresh schema per test; the app shares this session through get_db."""
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_db()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make(role=UserRole.USER, email=None, name="Test User", is_active=True):
        user = User(
            name=name,
            email=email or f"{uuid4().hex[:10]}@example.com",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_business(db_session, make_user):
    def _make(owner=None, working_hours=None, name="Clean & Shine"):
        owner = owner or make_user(role=UserRole.BUSINESS)
        business = Business(
            owner_id=owner.id,
            name=name,
            status=BusinessStatus.ACTIVE,
            working_hours=weekly_hours() if working_hours is None else working_hours,
        )
        db_session.add(business)
        db_session.commit()
        return business

    return _make


@pytest.fixture
def make_service(db_session):
    def _make(business, name="Deep Cleaning", price="50.00", duration_minutes=60, active=True):
        service = Service(
            business_id=business.id,
            name=name,
            price=Decimal(price),
            duration_minutes=duration_minutes,
            active=active,
        )
        db_session.add(service)
        db_session.commit()
        return service

    return _make


@pytest.fixture
def make_booking(db_session):
    def _make(user, business, service, day=MONDAY, start_time="09:00",
              status=BookingStatus.PENDING, rating=None):
        booking = Booking(
            user_id=user.id,
            business_id=business.id,
            service_id=service.id,
            service_name=service.name,
            service_price=service.price,
            service_duration_minutes=service.duration_minutes,
            date=day,
            start_time=start_time,
            end_time="23:59",
            status=status,
            total_price=service.price,
            rating=rating,
        )
        db_session.add(booking)
        db_session.commit()
        return booking

    return _make


@pytest.fixture
def make_employee(db_session):
    def _make(business, user, role=EmployeeRole.STAFF, **flags):
        permissions = dict(DEFAULT_PERMISSIONS)
        permissions.update(flags)
        employee = BusinessEmployee(
            user_id=user.id,
            role=role,
            position=len(business.employees),
            **permissions,
        )
        business.employees.append(employee)
        db_session.commit()
        return employee

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token(str(user.id), user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers
