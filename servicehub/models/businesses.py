"""
Business model - service providers with working hours, an employee roster,
and derived rating statistics.
"""
from datetime import datetime, timezone
from typing import Optional, List
from uuid import uuid4, UUID
import enum

from sqlalchemy import (
    String,
    Integer,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Uuid,
    Enum as SQLEnum,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from servicehub.lib.db import Base


WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class BusinessStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class EmployeeRole(str, enum.Enum):
    MANAGER = "manager"
    STAFF = "staff"


class Capability(str, enum.Enum):
    """Named permission an employee may hold for a business."""
    MANAGE_BOOKINGS = "manage_bookings"
    MANAGE_SERVICES = "manage_services"
    VIEW_ANALYTICS = "view_analytics"
    EDIT_PROFILE = "edit_profile"


DEFAULT_PERMISSIONS = {
    Capability.MANAGE_BOOKINGS.value: True,
    Capability.MANAGE_SERVICES.value: False,
    Capability.VIEW_ANALYTICS.value: True,
    Capability.EDIT_PROFILE.value: False,
}


class Business(Base):
    """
    Business entity. Exactly one owner; employees are a separate roster.
    rating/num_reviews are recomputed from bookings, never set by clients.
    """
    __tablename__ = "businesses"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    owner_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Profile
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[BusinessStatus] = mapped_column(
        SQLEnum(BusinessStatus, name="business_status"),
        nullable=False,
        default=BusinessStatus.PENDING,
    )

    working_hours: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Schedule: {monday: {open: '09:00', close: '17:00', is_open: true}, ...}",
    )

    # Derived rating statistics
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    num_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    employees: Mapped[List["BusinessEmployee"]] = relationship(
        back_populates="business",
        order_by="BusinessEmployee.position",
        cascade="all, delete-orphan",
    )

    def find_employee(self, user_id: UUID) -> Optional["BusinessEmployee"]:
        """Return the roster entry for a user, if any."""
        for employee in self.employees:
            if employee.user_id == user_id:
                return employee
        return None

    def __repr__(self) -> str:
        return f"<Business(id={self.id}, name={self.name}, rating={self.rating})>"


class BusinessEmployee(Base):
    """
    Roster entry linking a user to a business with a role and capability flags.
    """
    __tablename__ = "business_employees"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    business_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[EmployeeRole] = mapped_column(
        SQLEnum(EmployeeRole, name="employee_role"),
        nullable=False,
        default=EmployeeRole.STAFF,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Capabilities
    manage_bookings: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    manage_services: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    view_analytics: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    edit_profile: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    business: Mapped[Business] = relationship(back_populates="employees")

    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_business_employee_user"),
    )

    def has_capability(self, capability: Capability) -> bool:
        return bool(getattr(self, Capability(capability).value))

    @property
    def permissions(self) -> dict:
        return {c.value: bool(getattr(self, c.value)) for c in Capability}

    def __repr__(self) -> str:
        return f"<BusinessEmployee(business_id={self.business_id}, user_id={self.user_id}, role={self.role})>"
