"""
Unit tests for employee roster management.
"""
from uuid import uuid4

import pytest

from servicehub.api.middleware.error_handler import ConflictException, NotFoundException
from servicehub.lib.metrics import get_metrics_collector
from servicehub.lib.settings import settings
from servicehub.models.businesses import DEFAULT_PERMISSIONS, EmployeeRole
from servicehub.services.employee_service import EmployeeService


@pytest.fixture
def roster(db_session):
    return EmployeeService(db_session)


@pytest.mark.unit
def test_add_uses_default_permissions(roster, make_business, make_user):
    business = make_business()
    user = make_user(email="sam@example.com")

    employee = roster.add_employee(business, "sam@example.com")

    assert employee.user_id == user.id
    assert employee.role == EmployeeRole.STAFF
    assert employee.permissions == DEFAULT_PERMISSIONS
    assert get_metrics_collector().get_counter_value("employee_changes_total", {"action": "added"}) == 1


@pytest.mark.unit
def test_add_merges_supplied_flags(roster, make_business, make_user):
    business = make_business()
    make_user(email="lee@example.com")

    employee = roster.add_employee(
        business, "lee@example.com", role=EmployeeRole.MANAGER, permissions={"manage_services": True}
    )

    assert employee.role == EmployeeRole.MANAGER
    assert employee.manage_services is True
    assert employee.manage_bookings is True
    assert employee.edit_profile is False


@pytest.mark.unit
def test_add_unknown_email(roster, make_business):
    with pytest.raises(NotFoundException) as exc_info:
        roster.add_employee(make_business(), "nobody@example.com")

    assert exc_info.value.message == "User not found"


@pytest.mark.unit
def test_owner_cannot_join_own_roster(roster, make_business, make_user):
    owner = make_user(email="owner@example.com")
    business = make_business(owner=owner)

    with pytest.raises(ConflictException):
        roster.add_employee(business, "owner@example.com")


@pytest.mark.unit
def test_duplicate_employee(roster, make_business, make_user):
    business = make_business()
    make_user(email="dup@example.com")
    roster.add_employee(business, "dup@example.com")

    with pytest.raises(ConflictException) as exc_info:
        roster.add_employee(business, "dup@example.com")

    assert exc_info.value.message == "User is already an employee of this business"
    assert len(business.employees) == 1


@pytest.mark.unit
def test_roster_cap(roster, make_business, make_user):
    business = make_business()
    for i in range(settings.max_employees_per_business):
        make_user(email=f"staff{i}@example.com")
        roster.add_employee(business, f"staff{i}@example.com")
    make_user(email="extra@example.com")

    with pytest.raises(ConflictException) as exc_info:
        roster.add_employee(business, "extra@example.com")

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Maximum employee limit reached (4)"
    assert len(business.employees) == 4
    assert [e.position for e in business.employees] == [0, 1, 2, 3]


@pytest.mark.unit
def test_update_merges_flags(roster, make_business, make_user):
    business = make_business()
    make_user(email="kim@example.com")
    employee = roster.add_employee(business, "kim@example.com")

    updated = roster.update_employee(business, employee.id, permissions={"view_analytics": False})

    assert updated.view_analytics is False
    assert updated.manage_bookings is True
    assert updated.role == EmployeeRole.STAFF


@pytest.mark.unit
def test_update_and_remove_unknown_employee(roster, make_business):
    business = make_business()

    with pytest.raises(NotFoundException):
        roster.update_employee(business, uuid4(), role=EmployeeRole.MANAGER)

    with pytest.raises(NotFoundException):
        roster.remove_employee(business, uuid4())


@pytest.mark.unit
def test_remove_employee(roster, make_business, make_user):
    business = make_business()
    make_user(email="ana@example.com")
    employee = roster.add_employee(business, "ana@example.com")

    roster.remove_employee(business, employee.id)

    assert roster.list_employees(business) == []
    assert get_metrics_collector().get_counter_value("employee_changes_total", {"action": "removed"}) == 1
