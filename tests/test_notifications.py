"""Guest notifications."""

from app.core.config import EnvironmentMode, get_settings
from app.services.notifications import (
    MockNotificationService,
    ReservationNotice,
    get_notification_service,
    reset_notification_service,
)
from app.services.notifications.real import RealNotificationService

NOTICE = ReservationNotice(
    reservation_id=12,
    guest_name="Jane",
    guest_phone="555-123-4567",
    guest_email="jane@example.com",
    date="2026-11-06",
    slot_start="18:00",
    slot_end="19:00",
    party_size=1,
)


def test_summary_text():
    text = NOTICE.summary("The Garden Table")
    assert "table for 1 guest is confirmed" in text
    assert "18:00 to 19:00" in text
    assert "Reservation #12" in text


async def test_mock_sends_sms_and_email():
    service = MockNotificationService(failure_rate=0, min_latency=0, max_latency=0)

    result = await service.send_reservation_confirmation(NOTICE)

    assert result.success is True
    assert [m["channel"] for m in service.sent] == ["sms", "email"]
    assert service.sent[0]["to"] == "555-123-4567"


async def test_mock_without_email_sends_sms_only():
    service = MockNotificationService(failure_rate=0, min_latency=0, max_latency=0)
    notice = ReservationNotice(**{**NOTICE.__dict__, "guest_email": None})

    await service.send_reservation_confirmation(notice)

    assert [m["channel"] for m in service.sent] == ["sms"]


async def test_mock_failure_is_reported():
    service = MockNotificationService(failure_rate=1, min_latency=0, max_latency=0)

    result = await service.send_reservation_confirmation(NOTICE)

    assert result.success is False
    assert service.sent == []


def test_factory_returns_mock_in_development():
    reset_notification_service()
    try:
        service = get_notification_service()
        assert get_settings().env_mode == EnvironmentMode.DEVELOPMENT
        assert service.provider_name == "mock"
    finally:
        reset_notification_service()


async def test_real_service_unconfigured_is_unhealthy():
    service = RealNotificationService()

    assert service.provider_name == "real"
    assert await service.health_check() is False
    result = await service.send_sms("555", "hi")
    assert result.success is False
