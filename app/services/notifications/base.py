"""
Notification Service Abstract Base Class

Defines interface for sending SMS and Email notifications.
Supports both Mock (development) and Real (production) implementations.

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class ReservationNotice:
    """What a guest is told about a confirmed booking."""
    reservation_id: int
    guest_name: str
    guest_phone: str
    guest_email: Optional[str]
    date: str
    slot_start: str
    slot_end: str
    party_size: int

    def summary(self, restaurant_name: str) -> str:
        guests = "guest" if self.party_size == 1 else "guests"
        return (
            f"Hi {self.guest_name}! Your table for {self.party_size} {guests} is confirmed "
            f"on {self.date} from {self.slot_start} to {self.slot_end}.\n"
            f"Reservation #{self.reservation_id} - {restaurant_name}"
        )


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send an SMS message."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    async def send_reservation_confirmation(
        self,
        notice: ReservationNotice,
    ) -> NotificationResult:
        """Confirm a booking by SMS and, when an address is known, email."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass
