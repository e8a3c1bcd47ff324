"""
Unit tests for the business authorization resolver.
"""
from uuid import uuid4

import pytest

from servicehub.api.middleware.error_handler import NotFoundException, UnauthorizedException
from servicehub.lib.metrics import get_metrics_collector
from servicehub.models.businesses import Capability
from servicehub.models.users import UserRole
from servicehub.services.authorization_service import AccessOutcome, AuthorizationService


@pytest.fixture
def authz(db_session):
    return AuthorizationService(db_session)


@pytest.mark.unit
def test_owner_passes_every_capability(authz, make_business):
    business = make_business()

    for capability in [None, *Capability]:
        decision = authz.resolve(business.owner_id, UserRole.BUSINESS, business.id, capability)
        assert decision.outcome == AccessOutcome.OWNER
        assert decision.allowed


@pytest.mark.unit
def test_admin_passes_without_relationship(authz, make_business, make_user):
    business = make_business()
    admin = make_user(role=UserRole.ADMIN)

    decision = authz.resolve(admin.id, "admin", business.id, Capability.EDIT_PROFILE)

    assert decision.outcome == AccessOutcome.ADMIN
    assert decision.is_owner_or_admin


@pytest.mark.unit
def test_stranger_is_denied(authz, make_business, make_user):
    business = make_business()
    stranger = make_user()

    decision = authz.resolve(stranger.id, UserRole.USER, business.id)

    assert decision.outcome == AccessOutcome.DENIED
    assert decision.reason == "Not authorized to access this business"


@pytest.mark.unit
def test_employee_needs_the_capability(authz, make_business, make_user, make_employee):
    business = make_business()
    staff = make_user()
    make_employee(business, staff, manage_services=False, view_analytics=True)

    allowed = authz.resolve(staff.id, UserRole.USER, business.id, Capability.VIEW_ANALYTICS)
    assert allowed.outcome == AccessOutcome.EMPLOYEE
    assert allowed.employee.user_id == staff.id

    denied = authz.resolve(staff.id, UserRole.USER, business.id, Capability.MANAGE_SERVICES)
    assert denied.outcome == AccessOutcome.DENIED
    assert denied.reason == "You don't have permission to manage_services"


@pytest.mark.unit
def test_employee_without_required_capability_passes_relationship_only(authz, make_business, make_user, make_employee):
    business = make_business()
    staff = make_user()
    make_employee(business, staff, manage_bookings=False, manage_services=False,
                  view_analytics=False, edit_profile=False)

    decision = authz.resolve(staff.id, UserRole.USER, business.id)

    assert decision.allowed
    assert decision.acting_as_employee


@pytest.mark.unit
def test_unknown_business_is_not_found(authz, make_user):
    user = make_user()

    with pytest.raises(NotFoundException):
        authz.resolve(user.id, UserRole.USER, uuid4())

    with pytest.raises(NotFoundException):
        authz.resolve(user.id, UserRole.USER, "not-a-uuid")


@pytest.mark.unit
def test_business_id_given_as_string(authz, make_business):
    business = make_business()

    decision = authz.resolve(business.owner_id, UserRole.BUSINESS, str(business.id))

    assert decision.outcome == AccessOutcome.OWNER
    assert decision.business.id == business.id
    assert authz.load_business(str(business.id).upper()).id == business.id


@pytest.mark.unit
def test_authorize_raises_and_counts_denials(authz, make_business, make_user, make_employee):
    business = make_business()
    staff = make_user()
    make_employee(business, staff, edit_profile=False)

    with pytest.raises(UnauthorizedException) as exc_info:
        authz.authorize(staff.id, UserRole.USER, business.id, Capability.EDIT_PROFILE)

    assert exc_info.value.status_code == 401
    assert get_metrics_collector().get_counter_value(
        "authorization_denials_total", {"capability": "edit_profile"}
    ) == 1
