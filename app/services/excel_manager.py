"""
Excel File Manager with Concurrency Control

Process-safe Excel export of confirmed reservations. Several Celery
workers may append at once, so every read-modify-write of the workbook
happens under a file lock.

Version: 1.0.0
"""

from datetime import datetime
from typing import Any, Optional
from pathlib import Path

import pandas as pd
from filelock import FileLock, Timeout

from app.core.config import get_settings
import logging

logger = logging.getLogger(__name__)


class ExcelManager:
    """Lock-guarded Excel workbook of reservations."""

    RESERVATION_COLUMNS = [
        "reservation_id",
        "date",
        "slot_start",
        "slot_end",
        "party_size",
        "name",
        "phone",
        "email",
        "status",
        "created_at",
        "exported_at",
    ]

    @classmethod
    def data_dir(cls) -> Path:
        return Path(get_settings().data_directory)

    @classmethod
    def reservations_file(cls) -> Path:
        return cls.data_dir() / get_settings().excel_filename

    @classmethod
    def lock_file(cls) -> Path:
        return cls.data_dir() / f"{get_settings().excel_filename}.lock"

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir = cls.data_dir()
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path, columns: list) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl", dtype={"slot_start": str, "slot_end": str})
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=columns)
        return pd.DataFrame(columns=columns)

    @classmethod
    def export_reservation(cls, reservation_data: dict[str, Any]) -> dict[str, Any]:
        """Append one reservation row to the workbook under the file lock."""
        cls._ensure_data_dir()

        reservation_id = reservation_data.get("reservation_id", 0)
        timeout = get_settings().excel_lock_timeout
        result = {
            "success": False,
            "message": "",
            "reservation_id": reservation_id,
            "exported_at": None,
        }

        try:
            lock = FileLock(str(cls.lock_file()), timeout=timeout)

            with lock:
                logger.debug(f"Lock acquired for Reservation #{reservation_id}")

                file_path = cls.reservations_file()
                df = cls._load_or_create_df(file_path, cls.RESERVATION_COLUMNS)

                if "reservation_id" in df.columns and reservation_id in set(df["reservation_id"]):
                    result["success"] = True
                    result["message"] = f"Reservation #{reservation_id} already exported"
                    return result

                export_time = datetime.now().isoformat()
                new_row = {
                    "reservation_id": reservation_id,
                    "date": reservation_data.get("date"),
                    "slot_start": reservation_data.get("slot_start"),
                    "slot_end": reservation_data.get("slot_end"),
                    "party_size": reservation_data.get("party_size"),
                    "name": reservation_data.get("name"),
                    "phone": reservation_data.get("phone"),
                    "email": reservation_data.get("email"),
                    "status": reservation_data.get("status", "CONFIRMED"),
                    "created_at": reservation_data.get("created_at", export_time),
                    "exported_at": export_time,
                }

                if df.empty:
                    df = pd.DataFrame([new_row], columns=cls.RESERVATION_COLUMNS)
                else:
                    df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(file_path), index=False, engine="openpyxl")

                logger.info(f"Reservation #{reservation_id} exported to Excel")

                result["success"] = True
                result["message"] = f"Reservation #{reservation_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for Reservation #{reservation_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({timeout}s)"
            logger.error(f"Lock timeout for Reservation #{reservation_id}")

        return result

    @classmethod
    def get_all_reservations(cls) -> list[dict[str, Any]]:
        """Get all exported reservations."""
        file_path = cls.reservations_file()
        if not file_path.exists():
            return []

        df = cls._load_or_create_df(file_path, cls.RESERVATION_COLUMNS)
        return df.to_dict("records")

    @classmethod
    def slot_totals(cls, capacity_per_slot: Optional[int] = None) -> pd.DataFrame:
        """
        Confirmed seats per (date, slot_start).

        With a capacity given, adds an `overbooked` column flagging slots
        whose seats exceed it.
        """
        records = cls.get_all_reservations()
        if not records:
            totals = pd.DataFrame(columns=["date", "slot_start", "party_size"])
        else:
            df = pd.DataFrame(records)
            df = df[df["status"] == "CONFIRMED"]
            totals = (
                df.groupby(["date", "slot_start"], as_index=False)["party_size"]
                .sum()
                .sort_values(["date", "slot_start"])
                .reset_index(drop=True)
            )

        totals = totals.rename(columns={"party_size": "reserved_seats"})
        if capacity_per_slot is not None:
            totals["overbooked"] = totals["reserved_seats"] > capacity_per_slot
        return totals

    @classmethod
    def clear_all(cls) -> bool:
        """Delete the workbook and its lock file."""
        for f in [cls.reservations_file(), cls.lock_file()]:
            if f.exists():
                f.unlink()
        logger.info("Reservation export cleared")
        return True
