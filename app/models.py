"""
SQLAlchemy Database Models

Tables behind the restaurant website:
- Opening hours (one row per weekday) and the singleton booking config
- Table reservations
- Menu categories and items
- Blog posts
- Admin users

Version: 1.0.0
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Text, Enum, Boolean, Numeric,
    ForeignKey, Index,
)
from sqlalchemy.orm import relationship
from app.database import Base
import enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReservationStatus(str, enum.Enum):
    """Only CONFIRMED reservations consume slot capacity."""
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class BlogStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


# =============================================================================
# OPENING HOURS & BOOKING CONFIG
# =============================================================================

class OpeningHour(Base):
    """
    Weekly opening schedule, one row per weekday.

    day_of_week is Sunday-first (0=Sunday ... 6=Saturday). Times are
    "HH:MM" strings and are NULL when the day is closed.
    """
    __tablename__ = "opening_hours"

    id = Column(Integer, primary_key=True, autoincrement=True)
    day_of_week = Column(Integer, nullable=False, unique=True, index=True)
    is_closed = Column(Boolean, default=False, nullable=False)
    open_time = Column(String(5), nullable=True)
    close_time = Column(String(5), nullable=True)

    def __repr__(self):
        if self.is_closed:
            return f"<OpeningHour {self.day_of_week} closed>"
        return f"<OpeningHour {self.day_of_week} {self.open_time}-{self.close_time}>"


class RestaurantConfig(Base):
    """Singleton booking configuration (always id=1)."""
    __tablename__ = "restaurant_config"

    SINGLETON_ID = 1

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    capacity_per_slot = Column(Integer, nullable=False, default=30)
    slot_duration_minutes = Column(Integer, nullable=False, default=60)
    max_party_size = Column(Integer, nullable=False, default=10)

    def __repr__(self):
        return (
            f"<RestaurantConfig capacity={self.capacity_per_slot} "
            f"slot={self.slot_duration_minutes}m max_party={self.max_party_size}>"
        )


# =============================================================================
# RESERVATIONS
# =============================================================================

class Reservation(Base):
    """
    A confirmed table booking.

    The slot is identified only by date + slot_start; aggregates per slot
    are always recomputed by query.
    """
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Guest
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=False)
    email = Column(String(255), nullable=True)

    # Slot
    date = Column(Date, nullable=False)
    slot_start = Column(String(5), nullable=False)
    slot_end = Column(String(5), nullable=False)
    party_size = Column(Integer, nullable=False)

    status = Column(
        Enum(ReservationStatus),
        default=ReservationStatus.CONFIRMED,
        nullable=False,
        index=True
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_reservations_date_slot", "date", "slot_start"),
    )

    def __repr__(self):
        return f"<Reservation #{self.id} - {self.date} {self.slot_start} x{self.party_size} - {self.status.value}>"


# =============================================================================
# MENU
# =============================================================================

class MenuCategory(Base):
    __tablename__ = "menu_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    items = relationship(
        "MenuItem",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MenuItem.sort_order",
    )

    def __repr__(self):
        return f"<MenuCategory #{self.id} {self.name}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(500), nullable=True)
    available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    category_id = Column(
        Integer,
        ForeignKey("menu_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category = relationship("MenuCategory", back_populates="items")

    def __repr__(self):
        return f"<MenuItem #{self.id} {self.name} {self.price}>"


# =============================================================================
# BLOG
# =============================================================================

class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(220), nullable=False, unique=True, index=True)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    cover_image = Column(String(500), nullable=True)
    status = Column(
        Enum(BlogStatus),
        default=BlogStatus.DRAFT,
        nullable=False,
        index=True
    )
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<BlogPost #{self.id} {self.slug} - {self.status.value}>"


# =============================================================================
# ADMIN USERS
# =============================================================================

class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<AdminUser #{self.id} {self.email}>"
