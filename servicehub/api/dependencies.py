"""
API dependencies for FastAPI dependency injection.

Provides database sessions, the authenticated caller, and the
business-scoped authorization gates used by every business route.
"""
from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from servicehub.api.middleware.error_handler import UnauthorizedException
from servicehub.lib.db import get_db as get_db_session
from servicehub.lib.jwt import get_caller_from_token
from servicehub.lib.logging import get_logger
from servicehub.models.businesses import Capability
from servicehub.models.users import User
from servicehub.services.authorization_service import AccessDecision, AuthorizationService

logger = get_logger(__name__)


# Re-export get_db for convenience
get_db = get_db_session


# Missing credentials are reported as 401 by get_current_user, not by the scheme
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get the current caller from the bearer token.

    Raises:
        UnauthorizedException: 401 if the token is missing, invalid, or
            names an unknown or inactive user
    """
    if credentials is None:
        raise UnauthorizedException("Not authorized, no token")

    try:
        user_id, _ = get_caller_from_token(credentials.credentials)
        user_uuid = UUID(str(user_id))
    except Exception as e:
        logger.info("Rejected bearer token", extra={"extra_fields": {"reason": str(e)}})
        raise UnauthorizedException("Not authorized, token failed")

    user = db.get(User, user_uuid)
    if user is None or not user.is_active:
        raise UnauthorizedException("User not found")

    return user


def get_authorization_service(db: Session = Depends(get_db)) -> AuthorizationService:
    return AuthorizationService(db)


def require_business_access(capability: Optional[Capability] = None) -> Callable[..., AccessDecision]:
    """
    Build a dependency that resolves the caller's access to the business
    named by the `business_id` path parameter.

    Owners and admins always pass; employees pass when they hold
    `capability` (or any relationship suffices when it is None).
    """
    def dependency(
        business_id: UUID,
        caller: User = Depends(get_current_user),
        authz: AuthorizationService = Depends(get_authorization_service),
    ) -> AccessDecision:
        return authz.authorize(caller.id, caller.role, business_id, capability)

    return dependency


def require_business_owner(
    message: str = "Not authorized, only the business owner can manage employees",
) -> Callable[..., AccessDecision]:
    """Dependency for actions reserved to the owner (or an admin)."""
    def dependency(
        decision: AccessDecision = Depends(require_business_access()),
    ) -> AccessDecision:
        if not decision.is_owner_or_admin:
            raise UnauthorizedException(message)
        return decision

    return dependency
