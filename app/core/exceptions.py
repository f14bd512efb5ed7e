"""
Domain Exceptions

Every error the API reports on purpose derives from RestaurantError and
carries the HTTP status it maps to. Anything else reaching the global
handler is treated as an unexpected failure (500).
"""

from typing import Optional


class RestaurantError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "detail": self.field,
        }


class ValidationError(RestaurantError):
    """Missing or malformed input."""
    status_code = 400


class ClosedDayError(ValidationError):
    """Booking attempted on a day without opening hours."""

    def __init__(self, message: str = "Restaurant is closed on selected date"):
        super().__init__(message, field="date")


class InvalidTimeSlotError(ValidationError):
    """
    Requested start time does not fit the day's slot grid.

    Starts must fall inside opening hours and on a slot boundary
    (open + k * duration); a 10:30 request against hourly slots from
    10:00 is rejected even when seats are free.
    """

    def __init__(self, message: str = "Invalid time slot"):
        super().__init__(message, field="time")


class CapacityConflict(RestaurantError):
    """Not enough seats left in the requested slot."""

    status_code = 409

    def __init__(self, available_seats: int, message: str = "Not enough seats available"):
        super().__init__(message)
        self.available_seats = available_seats

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["availableSeats"] = self.available_seats
        return body


class ConflictError(RestaurantError):
    status_code = 409


class NotFoundError(RestaurantError):
    status_code = 404


class AuthenticationError(RestaurantError):
    status_code = 401
