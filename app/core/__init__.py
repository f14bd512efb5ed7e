"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from app.core.config import get_settings, Settings, EnvironmentMode
from app.core.exceptions import (
    RestaurantError,
    ValidationError,
    ClosedDayError,
    InvalidTimeSlotError,
    CapacityConflict,
    ConflictError,
    NotFoundError,
    AuthenticationError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "RestaurantError",
    "ValidationError",
    "ClosedDayError",
    "InvalidTimeSlotError",
    "CapacityConflict",
    "ConflictError",
    "NotFoundError",
    "AuthenticationError",
]
