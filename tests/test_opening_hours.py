"""Weekly opening hours and booking config."""

from tests.conftest import next_weekday, week_payload


async def test_public_opening_hours(client):
    response = await client.get("/opening-hours")

    assert response.status_code == 200
    body = response.json()
    assert [h["dayOfWeek"] for h in body["hours"]] == list(range(7))
    assert body["hours"][0] == {
        "dayOfWeek": 0, "isClosed": False, "openTime": "10:00", "closeTime": "22:00",
    }
    assert body["config"] == {"capacityPerSlot": 30, "slotDurationMinutes": 60, "maxPartySize": 10}


async def test_update_requires_admin(client):
    response = await client.put("/admin/opening-hours", json={"hours": week_payload()})
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"

    response = await client.put(
        "/admin/opening-hours",
        json={"hours": week_payload()},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


async def test_update_hours_and_config(client, admin_headers):
    response = await client.put(
        "/admin/opening-hours",
        json={
            "hours": week_payload(closed_days=(0,), open_time="12:00", close_time="15:00"),
            "config": {"capacityPerSlot": 12, "slotDurationMinutes": 90, "maxPartySize": 6},
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    body = (await client.get("/opening-hours")).json()
    assert body["hours"][0]["isClosed"] is True
    assert body["hours"][0]["openTime"] is None
    assert body["hours"][3]["openTime"] == "12:00"
    assert body["config"] == {"capacityPerSlot": 12, "slotDurationMinutes": 90, "maxPartySize": 6}

    slots = (await client.get(
        "/reservations/slots", params={"date": next_weekday(3).isoformat()}
    )).json()["slots"]
    assert [(s["start"], s["end"]) for s in slots] == [("12:00", "13:30"), ("13:30", "15:00")]
    assert slots[0]["capacityPerSlot"] == 12


async def test_missing_config_falls_back_to_defaults(client, admin_headers):
    await client.put(
        "/admin/opening-hours",
        json={"hours": week_payload(), "config": {"capacityPerSlot": 5, "slotDurationMinutes": 30, "maxPartySize": 2}},
        headers=admin_headers,
    )

    response = await client.put("/admin/opening-hours", json={"hours": week_payload()}, headers=admin_headers)

    assert response.status_code == 200
    config = (await client.get("/opening-hours")).json()["config"]
    assert config == {"capacityPerSlot": 30, "slotDurationMinutes": 60, "maxPartySize": 10}


async def assert_rejected_and_unchanged(client, admin_headers, payload, error):
    before = (await client.get("/opening-hours")).json()

    response = await client.put("/admin/opening-hours", json=payload, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == error
    assert (await client.get("/opening-hours")).json() == before


async def test_six_days_rejected(client, admin_headers):
    await assert_rejected_and_unchanged(
        client, admin_headers, {"hours": week_payload()[:6]}, "hours must be an array of 7 days"
    )


async def test_missing_hours_rejected(client, admin_headers):
    await assert_rejected_and_unchanged(
        client, admin_headers, {}, "hours must be an array of 7 days"
    )


async def test_duplicate_day_rejected(client, admin_headers):
    hours = week_payload()
    hours[6]["dayOfWeek"] = 5
    await assert_rejected_and_unchanged(client, admin_headers, {"hours": hours}, "Duplicate dayOfWeek 5")


async def test_day_out_of_range_rejected(client, admin_headers):
    hours = week_payload()
    hours[6]["dayOfWeek"] = 7
    await assert_rejected_and_unchanged(client, admin_headers, {"hours": hours}, "Invalid dayOfWeek")


async def test_open_after_close_rejected(client, admin_headers):
    hours = week_payload()
    hours[2].update(openTime="22:00", closeTime="10:00")
    await assert_rejected_and_unchanged(
        client, admin_headers, {"hours": hours}, "openTime must be before closeTime"
    )


async def test_open_day_without_times_rejected(client, admin_headers):
    hours = week_payload()
    hours[4]["closeTime"] = None
    await assert_rejected_and_unchanged(
        client, admin_headers, {"hours": hours}, "openTime/closeTime required"
    )


async def test_malformed_time_rejected(client, admin_headers):
    hours = week_payload()
    hours[1]["openTime"] = "9am"
    await assert_rejected_and_unchanged(client, admin_headers, {"hours": hours}, "Time must be HH:MM")


async def test_bad_config_rejects_whole_update(client, admin_headers):
    # Valid hours, invalid config: the hours must not be applied either
    await assert_rejected_and_unchanged(
        client,
        admin_headers,
        {
            "hours": week_payload(closed_days=(0, 1, 2)),
            "config": {"capacityPerSlot": 0, "slotDurationMinutes": 60, "maxPartySize": 10},
        },
        "capacityPerSlot must be a positive integer",
    )
