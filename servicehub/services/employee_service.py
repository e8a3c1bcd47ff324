"""Employee roster management for businesses.

Roster edits are read-modify-write on the business without a version
token, so concurrent edits resolve as last write wins.
"""
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from servicehub.api.middleware.error_handler import ConflictException, NotFoundException
from servicehub.lib.logging import get_logger
from servicehub.lib.metrics import get_metrics_collector
from servicehub.lib.settings import settings
from servicehub.models.businesses import (
    Business,
    BusinessEmployee,
    Capability,
    DEFAULT_PERMISSIONS,
    EmployeeRole,
)
from servicehub.models.users import User

logger = get_logger(__name__)


class EmployeeService:
    """Add, update, and remove employees of one business."""

    def __init__(self, session: Session):
        self.session = session
        self.metrics = get_metrics_collector()

    @property
    def max_employees(self) -> int:
        return settings.max_employees_per_business

    def list_employees(self, business: Business) -> List[BusinessEmployee]:
        return list(business.employees)

    def _find(self, business: Business, employee_id: UUID) -> BusinessEmployee:
        for employee in business.employees:
            if employee.id == employee_id:
                return employee
        raise NotFoundException("Employee", str(employee_id))

    def add_employee(
        self,
        business: Business,
        email: str,
        role: Optional[EmployeeRole] = None,
        permissions: Optional[Dict[str, bool]] = None,
    ) -> BusinessEmployee:
        """
        Add the user with `email` to the roster.

        Raises:
            NotFoundException: No user with this email
            ConflictException: User is the owner, already listed, or the
                roster is full
        """
        user = self.session.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()
        if user is None:
            raise NotFoundException("User")

        if user.id == business.owner_id:
            raise ConflictException("The business owner cannot be added as an employee")

        if business.find_employee(user.id) is not None:
            raise ConflictException("User is already an employee of this business")

        if len(business.employees) >= self.max_employees:
            raise ConflictException(
                f"Maximum employee limit reached ({self.max_employees})",
                details={"limit": self.max_employees},
            )

        # Flags the client leaves out fall back to the defaults
        flags = dict(DEFAULT_PERMISSIONS)
        for name, value in (permissions or {}).items():
            flags[Capability(name).value] = bool(value)

        next_position = max((e.position for e in business.employees), default=-1) + 1
        employee = BusinessEmployee(
            user_id=user.id,
            role=role or EmployeeRole.STAFF,
            position=next_position,
            **flags,
        )
        business.employees.append(employee)
        self.session.commit()

        self.metrics.increment_employee_changes("added")
        logger.info(
            "Employee added",
            extra={
                "extra_fields": {
                    "business_id": str(business.id),
                    "user_id": str(user.id),
                    "role": employee.role.value,
                }
            },
        )
        return employee

    def update_employee(
        self,
        business: Business,
        employee_id: UUID,
        role: Optional[EmployeeRole] = None,
        permissions: Optional[Dict[str, bool]] = None,
    ) -> BusinessEmployee:
        """
        Update role and merge the supplied permission flags; flags not in
        `permissions` keep their current values.
        """
        employee = self._find(business, employee_id)

        if role is not None:
            employee.role = role
        for name, value in (permissions or {}).items():
            capability = Capability(name)
            setattr(employee, capability.value, bool(value))

        self.session.commit()

        self.metrics.increment_employee_changes("updated")
        logger.info(
            "Employee updated",
            extra={
                "extra_fields": {
                    "business_id": str(business.id),
                    "employee_id": str(employee.id),
                    "permissions": employee.permissions,
                }
            },
        )
        return employee

    def remove_employee(self, business: Business, employee_id: UUID) -> None:
        employee = self._find(business, employee_id)
        business.employees.remove(employee)
        self.session.commit()

        self.metrics.increment_employee_changes("removed")
        logger.info(
            "Employee removed",
            extra={
                "extra_fields": {
                    "business_id": str(business.id),
                    "employee_id": str(employee_id),
                }
            },
        )
