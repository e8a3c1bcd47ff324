"""
Authorization resolver for business-scoped actions.

Decides, per request, whether the caller acts on a business as its owner,
as an employee holding the required capability, or as an administrator.

Resolution runs two checks in order:
1. Relationship: admin, owner, or listed employee. Anything else is denied.
2. Capability: only for employees, and only when a capability is required.
   Owners and admins skip this check.
"""
from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID
import enum

from sqlalchemy.orm import Session

from servicehub.api.middleware.error_handler import NotFoundException, UnauthorizedException
from servicehub.lib.logging import get_logger
from servicehub.lib.metrics import get_metrics_collector
from servicehub.models.businesses import Business, BusinessEmployee, Capability
from servicehub.models.users import UserRole

logger = get_logger(__name__)


class AccessOutcome(str, enum.Enum):
    OWNER = "owner"
    EMPLOYEE = "employee"
    ADMIN = "admin"
    DENIED = "denied"


@dataclass
class AccessDecision:
    """Transient authorization outcome for one request."""
    outcome: AccessOutcome
    business: Business
    employee: Optional[BusinessEmployee] = None
    capability: Optional[Capability] = None
    reason: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome != AccessOutcome.DENIED

    @property
    def acting_as_employee(self) -> bool:
        return self.outcome == AccessOutcome.EMPLOYEE

    @property
    def is_owner_or_admin(self) -> bool:
        return self.outcome in (AccessOutcome.OWNER, AccessOutcome.ADMIN)


class AuthorizationService:
    """Resolves caller access to a business. Performs no writes."""

    def __init__(self, session: Session):
        self.session = session

    def load_business(self, business_id: Union[UUID, str]) -> Business:
        business = self.session.get(Business, _as_uuid(business_id, "Business"))
        if business is None:
            raise NotFoundException("Business", str(business_id))
        return business

    def check_relationship(
        self,
        caller_id: UUID,
        caller_role: Union[UserRole, str, None],
        business: Business,
    ) -> AccessDecision:
        """First check: does the caller have any relationship to the business."""
        if _role_value(caller_role) == UserRole.ADMIN.value:
            return AccessDecision(AccessOutcome.ADMIN, business)

        if business.owner_id == caller_id:
            return AccessDecision(AccessOutcome.OWNER, business)

        employee = business.find_employee(caller_id)
        if employee is None:
            return AccessDecision(
                AccessOutcome.DENIED,
                business,
                reason="Not authorized to access this business",
            )
        return AccessDecision(AccessOutcome.EMPLOYEE, business, employee=employee)

    def check_capability(
        self,
        decision: AccessDecision,
        required_capability: Optional[Capability],
    ) -> AccessDecision:
        """Second check: does the relationship carry the required capability."""
        if not decision.acting_as_employee or required_capability is None:
            return decision

        capability = Capability(required_capability)
        decision.capability = capability
        if not decision.employee.has_capability(capability):
            decision.outcome = AccessOutcome.DENIED
            decision.reason = f"You don't have permission to {capability.value}"
        return decision

    def resolve(
        self,
        caller_id: UUID,
        caller_role: Union[UserRole, str, None],
        business_id: Union[UUID, str],
        required_capability: Optional[Capability] = None,
    ) -> AccessDecision:
        """
        Resolve the caller's access to a business.

        Raises:
            NotFoundException: Business does not exist

        Returns:
            AccessDecision; outcome DENIED carries the reason
        """
        business = self.load_business(business_id)
        decision = self.check_relationship(caller_id, caller_role, business)
        if decision.allowed:
            decision = self.check_capability(decision, required_capability)

        if not decision.allowed:
            logger.info(
                "Business access denied",
                extra={
                    "extra_fields": {
                        "caller_id": str(caller_id),
                        "business_id": str(business.id),
                        "capability": required_capability.value if required_capability else None,
                        "reason": decision.reason,
                    }
                },
            )
        return decision

    def authorize(
        self,
        caller_id: UUID,
        caller_role: Union[UserRole, str, None],
        business_id: Union[UUID, str],
        required_capability: Optional[Capability] = None,
    ) -> AccessDecision:
        """Resolve and raise UnauthorizedException unless access is granted."""
        decision = self.resolve(caller_id, caller_role, business_id, required_capability)
        if not decision.allowed:
            get_metrics_collector().increment_authorization_denials(
                required_capability.value if required_capability else None
            )
            raise UnauthorizedException(decision.reason)
        return decision


def _role_value(role: Union[UserRole, str, None]) -> Optional[str]:
    if role is None:
        return None
    return role.value if isinstance(role, UserRole) else str(role).lower()


def _as_uuid(value: Union[UUID, str], resource: str) -> UUID:
    """Ids that cannot be UUIDs cannot resolve, so they are reported as not found."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFoundException(resource, str(value))
