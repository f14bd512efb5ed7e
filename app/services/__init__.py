"""
                        Services Module

Business logic behind the API routes.

Services:
    - reservations: Slot generation, booking and opening hours
    - accounts: Admin login
    - menu: Categories and items
    - blog: Posts and slugs
    - uploads: Image storage under /uploads
    - notifications: Mock (development) and Real (production) guest messaging
    - excel_manager: Lock-guarded Excel export
"""

from app.services.excel_manager import ExcelManager

__all__ = ["ExcelManager"]
