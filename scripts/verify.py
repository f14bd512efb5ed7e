"""
Excel Verification Script

Checks the reservation export for duplicates and overbooked slots.
Run from project root: python scripts/verify.py

Version: 1.0.0
"""

import argparse
import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd

from app.core.config import get_settings
from app.services.excel_manager import ExcelManager


def verify_excel(capacity: int) -> bool:
    """Verify the export after a simulation run."""
    excel_file = ExcelManager.reservations_file()

    print("=" * 60)
    print("🔍 EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {excel_file}")
    print(f"🪑 Capacity per slot: {capacity}")
    print("=" * 60)

    if not excel_file.exists():
        print("\n❌ Excel file not found!")
        print("   Make some bookings first: python scripts/simulate.py")
        return False

    df = pd.DataFrame(ExcelManager.get_all_reservations())
    print(f"\n📊 STATISTICS:")
    print(f"   Total Reservations: {len(df)}")

    ok = True
    if "reservation_id" in df.columns:
        duplicates = df["reservation_id"].duplicated().sum()
        if duplicates > 0:
            print(f"\n⚠️ {duplicates} duplicate reservation IDs found!")
            ok = False
        else:
            print("✅ No duplicate reservation IDs")

    totals = ExcelManager.slot_totals(capacity_per_slot=capacity)
    overbooked = totals[totals["overbooked"]]
    if overbooked.empty:
        print("✅ No slot over capacity")
    else:
        print(f"\n⚠️ {len(overbooked)} slot(s) over capacity:")
        print(overbooked.to_string(index=False))
        ok = False

    print(f"\n📋 SEATS PER SLOT:")
    print("-" * 60)
    if len(totals) > 0:
        print(totals.tail(10).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FAILED")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Verify the reservation Excel export")
    parser.add_argument(
        "--capacity",
        type=int,
        default=get_settings().default_capacity_per_slot,
        help="Seats per slot to check against",
    )
    args = parser.parse_args()
    sys.exit(0 if verify_excel(args.capacity) else 1)
