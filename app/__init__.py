"""
                Restaurant Website API

Public site backend (menu, opening hours, blog, table reservations)
and admin back-office for a single restaurant.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
