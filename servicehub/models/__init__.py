"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from servicehub.models.users import User
from servicehub.models.businesses import Business, BusinessEmployee
from servicehub.models.services import Service
from servicehub.models.bookings import Booking
from servicehub.models.favorites import Favorite

__all__ = [
    "User",
    "Business",
    "BusinessEmployee",
    "Service",
    "Booking",
    "Favorite",
]
