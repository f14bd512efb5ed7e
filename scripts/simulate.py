"""
Booking Race Simulation

Fires many concurrent reservations at the same slot to check that the
API never confirms more seats than the slot holds.
Run from project root: python scripts/simulate.py --date 2026-11-06 --time 19:00

Version: 1.0.0
"""

import asyncio
import sys
import random
import time
import argparse
from datetime import date, timedelta
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:4000"
TOTAL_BOOKINGS = 20

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Wilson", "Taylor"]


def generate_random_guest() -> dict[str, str]:
    """Generate random guest contact info."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "phone": f"555-{random.randint(100,999)}-{random.randint(1000,9999)}",
        "email": f"{first.lower()}.{last.lower()}@example.com",
    }


async def send_booking(
    client: httpx.AsyncClient,
    booking_num: int,
    day: str,
    slot_time: str,
    guests: int,
) -> dict[str, Any]:
    """Send one reservation request."""
    payload = {**generate_random_guest(), "date": day, "time": slot_time, "guests": guests}
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/reservations", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)
        data = response.json()

        return {
            "booking_num": booking_num,
            "status": response.status_code,
            "success": response.status_code == 201,
            "guests": guests,
            "reservation_id": data.get("reservation", {}).get("id") if response.status_code == 201 else None,
            "error": None if response.status_code == 201 else data.get("error"),
            "time": elapsed,
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "booking_num": booking_num,
            "status": None,
            "success": False,
            "guests": guests,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def fetch_slot(client: httpx.AsyncClient, day: str, slot_time: str) -> dict[str, Any] | None:
    response = await client.get(f"{API_BASE_URL}/reservations/slots", params={"date": day})
    response.raise_for_status()
    for slot in response.json().get("slots", []):
        if slot["start"] == slot_time:
            return slot
    return None


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    day: str,
    slot_time: str,
    num_bookings: int = TOTAL_BOOKINGS,
    guests: int = 4,
) -> dict[str, Any]:
    """
    Race `num_bookings` parties of `guests` into one slot.

    Returns a summary; `overbooked` is True if the confirmed seats exceed
    the slot capacity reported by the API.
    """
    print("=" * 70)
    print("🔥 BOOKING RACE - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"📋 Requests: {num_bookings} x {guests} guests")
    print(f"🎯 Target: {API_BASE_URL} {day} {slot_time}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        before = await fetch_slot(client, day, slot_time)
        if before is None:
            print(f"\n❌ {slot_time} is not a bookable slot on {day}")
            return {"total": num_bookings, "successful": 0, "overbooked": False, "results": []}

        print(f"\n🪑 Before: {before['reservedSeats']}/{before['capacityPerSlot']} seats reserved")

        start_time = time.time()
        tasks = [send_booking(client, i + 1, day, slot_time, guests) for i in range(num_bookings)]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        after = await fetch_slot(client, day, slot_time)

    successful = [r for r in results if r["success"]]
    conflicts = [r for r in results if r["status"] == 409]
    other = [r for r in results if not r["success"] and r["status"] != 409]
    booked_seats = sum(r["guests"] for r in successful)
    overbooked = after["reservedSeats"] > after["capacityPerSlot"]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Confirmed: {len(successful)}/{num_bookings} ({booked_seats} seats)")
    print(f"🚫 Slot full (409): {len(conflicts)}")
    print(f"❌ Other failures: {len(other)}")
    print(f"⏱️  Total Time: {total_time}s")
    print(f"\n🪑 After: {after['reservedSeats']}/{after['capacityPerSlot']} seats reserved")

    if overbooked:
        print("\n⚠️  OVERBOOKED: confirmed seats exceed capacity!")
    else:
        print("\n✅ No overbooking")

    for f in other[:5]:
        print(f"   Booking #{f['booking_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 NEXT: python scripts/verify.py to check the Excel export")
    print("=" * 70)

    return {
        "total": num_bookings,
        "successful": len(successful),
        "conflicts": len(conflicts),
        "overbooked": overbooked,
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Booking race simulation")
    parser.add_argument("--date", default=(date.today() + timedelta(days=1)).isoformat(), help="YYYY-MM-DD")
    parser.add_argument("--time", default="19:00", help="Slot start HH:MM")
    parser.add_argument("--bookings", type=int, default=TOTAL_BOOKINGS, help="Number of concurrent requests")
    parser.add_argument("--guests", type=int, default=4, help="Party size per request")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    summary = asyncio.run(run_simulation(args.date, args.time, args.bookings, args.guests))
    sys.exit(1 if summary["overbooked"] else 0)
