"""
Pydantic Schemas for Request/Response Validation

Attributes are snake_case in Python and camelCase on the wire
(`availableSeats`, `slotStart`, `dayOfWeek`, ...). Requests accept
either spelling.

Version: 1.0.0
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any
import datetime as dt
from datetime import datetime

from app.models import BlogStatus, ReservationStatus


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, ORM attribute loading."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# SLOTS & RESERVATIONS
# =============================================================================

class SlotResponse(CamelModel):
    """A bookable window derived from opening hours and existing bookings."""
    start: str
    end: str
    capacity_per_slot: int
    reserved_seats: int
    available_seats: int
    is_available: bool


class SlotListResponse(CamelModel):
    date: str
    slots: List[SlotResponse]
    message: Optional[str] = None


class ReservationCreate(CamelModel):
    """
    Public booking request.

    Fields are loosely typed on purpose: the booking service validates them
    in a fixed order and reports the first failing field.
    """
    name: Optional[str] = Field(None, examples=["Jane Doe"])
    phone: Optional[str] = Field(None, examples=["555-123-4567"])
    email: Optional[str] = Field(None, examples=["jane@example.com"])
    guests: Any = Field(None, examples=[4])
    date: Optional[str] = Field(None, examples=["2026-11-06"])
    time: Optional[str] = Field(None, examples=["18:00"])


class ReservationResponse(CamelModel):
    id: int
    name: str
    phone: str
    email: Optional[str]
    date: dt.date
    slot_start: str
    slot_end: str
    party_size: int
    status: ReservationStatus
    created_at: datetime


class ReservationCreateResponse(CamelModel):
    message: str
    reservation: ReservationResponse


class ReservationListResponse(CamelModel):
    total: int
    reservations: List[ReservationResponse]


# =============================================================================
# OPENING HOURS & CONFIG
# =============================================================================

class OpeningHourResponse(CamelModel):
    day_of_week: int
    is_closed: bool
    open_time: Optional[str]
    close_time: Optional[str]


class BookingConfigResponse(CamelModel):
    capacity_per_slot: int
    slot_duration_minutes: int
    max_party_size: int


class OpeningHoursResponse(CamelModel):
    hours: List[OpeningHourResponse]
    config: BookingConfigResponse


class OpeningHourIn(CamelModel):
    day_of_week: Any = None
    is_closed: bool = False
    open_time: Optional[str] = None
    close_time: Optional[str] = None


class BookingConfigIn(CamelModel):
    capacity_per_slot: Any = None
    slot_duration_minutes: Any = None
    max_party_size: Any = None


class OpeningHoursUpdate(CamelModel):
    hours: Optional[List[OpeningHourIn]] = None
    config: Optional[BookingConfigIn] = None


# =============================================================================
# ADMIN AUTH
# =============================================================================

class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminInfo(CamelModel):
    id: int
    email: str


class LoginResponse(CamelModel):
    token: str
    admin: AdminInfo


class AdminMeResponse(CamelModel):
    ok: bool = True
    admin: AdminInfo


# =============================================================================
# MENU
# =============================================================================

class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Starters"])
    sort_order: int = 0


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    sort_order: Optional[int] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    sort_order: int


class MenuItemCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=150, examples=["Garlic Bread"])
    description: Optional[str] = None
    price: float = Field(..., gt=0, examples=[1.99])
    image_url: Optional[str] = None
    available: bool = True
    sort_order: int = 0
    category_id: int


class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    image_url: Optional[str] = None
    available: Optional[bool] = None
    sort_order: Optional[int] = None
    category_id: Optional[int] = None


class MenuItemResponse(CamelModel):
    id: int
    name: str
    description: Optional[str]
    price: float
    image_url: Optional[str]
    available: bool
    sort_order: int
    category_id: int


class MenuCategoryWithItems(CamelModel):
    id: int
    name: str
    sort_order: int
    items: List[MenuItemResponse]


class MenuResponse(CamelModel):
    categories: List[MenuCategoryWithItems]


# =============================================================================
# BLOG
# =============================================================================

class BlogCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: str = Field(..., min_length=1)
    status: BlogStatus = BlogStatus.DRAFT


class BlogUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    status: Optional[BlogStatus] = None


class BlogSummaryResponse(CamelModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str]
    cover_image: Optional[str]
    published_at: Optional[datetime]
    created_at: datetime


class BlogResponse(BlogSummaryResponse):
    content: str
    status: BlogStatus
    updated_at: datetime


# =============================================================================
# GENERIC
# =============================================================================

class OkResponse(CamelModel):
    ok: bool = True


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None
    available_seats: Optional[int] = None


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    notification_service: str
    timestamp: datetime


class DashboardResponse(CamelModel):
    today_reservations: int
    today_guests: int
    upcoming_reservations: int
    menu_items: int
    published_posts: int
