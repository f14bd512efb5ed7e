"""
FastAPI Application Entry Point

Restaurant Website API - public site and admin back-office.

Endpoints:
    - GET  /reservations/slots: Bookable slots for a date
    - POST /reservations: Book a table
    - GET  /opening-hours: Weekly hours and booking config
    - GET  /menu, /blogs, /blogs/{slug}: Public content
    - POST /admin/login: Admin token
    - /admin/...: Menu, blog, opening-hours and reservation management
    - GET  /health: System health check

Version: 1.0.0
"""

import asyncio
import sys
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, File, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import redis

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from app.core.config import get_settings, setup_logging
from app.core.exceptions import NotFoundError, RestaurantError, ValidationError
from app.core.security import AdminIdentity, require_admin
from app.database import async_session_maker, get_db, init_db, engine
from app.models import BlogPost, BlogStatus, MenuItem, Reservation, ReservationStatus
from app.schemas import (
    AdminInfo,
    AdminMeResponse,
    BlogCreate,
    BlogResponse,
    BlogSummaryResponse,
    BlogUpdate,
    BookingConfigResponse,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    DashboardResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    MenuCategoryWithItems,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MenuResponse,
    OkResponse,
    OpeningHourResponse,
    OpeningHoursResponse,
    OpeningHoursUpdate,
    ReservationCreate,
    ReservationCreateResponse,
    ReservationListResponse,
    ReservationResponse,
    SlotListResponse,
    SlotResponse,
)
from app.services import accounts, blog, menu, reservations, uploads
from app.services.notifications import ReservationNotice, get_notification_service
from app.tasks import export_reservation_to_excel

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

UPLOADS_DIR = Path(settings.upload_directory)
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Initialize database and default rows
    await init_db()
    async with async_session_maker() as session:
        await reservations.ensure_booking_defaults(session)
        await accounts.ensure_admin_user(session)
    logger.info("Database initialized")

    notification_service = get_notification_service()
    logger.info(f"Notification Service: {notification_service.provider_name}")
    logger.info(f"Serving uploads from: {UPLOADS_DIR.resolve()}")
    logger.info(f"Allowed origins: {', '.join(settings.web_origins_list) or 'ALL (dev)'}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant website backend: menu, opening hours, blog and table "
        "reservations, plus the admin back-office."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.web_origins_list or ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.mount("/uploads", StaticFiles(directory=str(UPLOADS_DIR)), name="uploads")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def parse_date_param(value: Optional[str]) -> date:
    if not value:
        raise ValidationError("date is required", field="date")
    day = reservations.parse_date_only(value)
    if day is None:
        raise ValidationError("Invalid date format", field="date")
    return day


def queue_reservation_export(reservation: Reservation) -> None:
    """Hand the booking to the Excel export worker; never fails the request."""
    try:
        export_reservation_to_excel.delay({
            "reservation_id": reservation.id,
            "date": reservation.date.isoformat(),
            "slot_start": reservation.slot_start,
            "slot_end": reservation.slot_end,
            "party_size": reservation.party_size,
            "name": reservation.name,
            "phone": reservation.phone,
            "email": reservation.email,
            "status": reservation.status.value,
            "created_at": reservation.created_at.isoformat(),
        })
    except Exception as e:
        logger.error(f"Could not queue export for Reservation #{reservation.id}: {e}")


async def notify_guest(reservation: Reservation) -> None:
    """Send the booking confirmation; failures are logged only."""
    notice = ReservationNotice(
        reservation_id=reservation.id,
        guest_name=reservation.name,
        guest_phone=reservation.phone,
        guest_email=reservation.email,
        date=reservation.date.isoformat(),
        slot_start=reservation.slot_start,
        slot_end=reservation.slot_end,
        party_size=reservation.party_size,
    )
    try:
        result = await get_notification_service().send_reservation_confirmation(notice)
        if not result.success:
            logger.warning(
                f"Confirmation for Reservation #{reservation.id} not delivered: {result.error_message}"
            )
    except Exception:
        logger.exception(f"Error sending confirmation for Reservation #{reservation.id}")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    # Check Redis
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2, socket_connect_timeout=2)
        r.ping()
        r.close()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    # Check notification service
    notification_service = get_notification_service()
    notification_status = "healthy" if await notification_service.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, redis_status, notification_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        notification_service=notification_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ADMIN AUTH
# =============================================================================

@app.post(
    "/admin/login",
    response_model=LoginResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def admin_login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Exchange admin credentials for a Bearer token."""
    token, admin = await accounts.login(db, body.email, body.password)
    logger.info(f"Admin {admin.email} logged in")
    return LoginResponse(token=token, admin=AdminInfo(id=admin.id, email=admin.email))


@app.get("/admin/me", response_model=AdminMeResponse, responses=ERROR_RESPONSES, tags=["Admin"])
async def admin_me(admin: AdminIdentity = Depends(require_admin)) -> AdminMeResponse:
    return AdminMeResponse(admin=AdminInfo(id=admin.id, email=admin.email))


@app.get(
    "/admin/dashboard",
    response_model=DashboardResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_dashboard(db: AsyncSession = Depends(get_db)) -> DashboardResponse:
    """Get aggregated back-office statistics."""
    today = date.today()
    confirmed = Reservation.status == ReservationStatus.CONFIRMED

    today_result = await db.execute(
        select(func.count(Reservation.id), func.coalesce(func.sum(Reservation.party_size), 0))
        .where(confirmed, Reservation.date == today)
    )
    today_count, today_guests = today_result.one()

    upcoming_result = await db.execute(
        select(func.count(Reservation.id)).where(confirmed, Reservation.date >= today)
    )
    items_result = await db.execute(select(func.count(MenuItem.id)))
    posts_result = await db.execute(
        select(func.count(BlogPost.id)).where(BlogPost.status == BlogStatus.PUBLISHED)
    )

    return DashboardResponse(
        today_reservations=today_count or 0,
        today_guests=int(today_guests or 0),
        upcoming_reservations=upcoming_result.scalar() or 0,
        menu_items=items_result.scalar() or 0,
        published_posts=posts_result.scalar() or 0,
    )


# =============================================================================
# OPENING HOURS
# =============================================================================

@app.get("/opening-hours", response_model=OpeningHoursResponse, tags=["Opening Hours"])
async def get_opening_hours(db: AsyncSession = Depends(get_db)) -> OpeningHoursResponse:
    """Weekly hours (Sunday=0) and the booking config."""
    hours = await reservations.get_opening_hours(db)
    config = await reservations.get_booking_config(db)
    return OpeningHoursResponse(
        hours=[OpeningHourResponse.model_validate(h) for h in hours],
        config=BookingConfigResponse(**config.to_dict()),
    )


@app.put(
    "/admin/opening-hours",
    response_model=OkResponse,
    responses=ERROR_RESPONSES,
    tags=["Opening Hours"],
    dependencies=[Depends(require_admin)],
)
async def update_opening_hours(
    body: OpeningHoursUpdate,
    db: AsyncSession = Depends(get_db),
) -> OkResponse:
    """Replace all seven weekdays and the booking config in one transaction."""
    await reservations.update_opening_hours(db, body.hours, body.config)
    return OkResponse()


# =============================================================================
# RESERVATIONS
# =============================================================================

@app.get(
    "/reservations/slots",
    response_model=SlotListResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Reservations"],
)
async def list_slots(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
) -> SlotListResponse:
    """Bookable slots and remaining seats for one day."""
    day = parse_date_param(date)
    day_slots = await reservations.get_slots_for_date(db, day)
    return SlotListResponse(
        date=day.isoformat(),
        slots=[SlotResponse(**slot.to_dict()) for slot in day_slots.slots],
        message=day_slots.message,
    )


@app.post(
    "/reservations",
    status_code=201,
    response_model=ReservationCreateResponse,
    responses=ERROR_RESPONSES,
    tags=["Reservations"],
)
async def create_reservation(
    body: ReservationCreate,
    db: AsyncSession = Depends(get_db),
) -> ReservationCreateResponse:
    """
    Book a table.

    400 for invalid input, closed days or times outside the slot grid;
    409 with `availableSeats` when the slot cannot fit the party.
    """
    logger.info(f"Reservation request: {body.date} {body.time} x{body.guests}")

    reservation = await reservations.create_reservation(
        db,
        name=body.name,
        phone=body.phone,
        guests=body.guests,
        date_value=body.date,
        time_value=body.time,
        email=body.email,
    )

    queue_reservation_export(reservation)
    await notify_guest(reservation)

    return ReservationCreateResponse(
        message="Reservation confirmed",
        reservation=ReservationResponse.model_validate(reservation),
    )


@app.get(
    "/admin/reservations",
    response_model=ReservationListResponse,
    responses=ERROR_RESPONSES,
    tags=["Reservations"],
    dependencies=[Depends(require_admin)],
)
async def admin_list_reservations(
    date: Optional[str] = Query(None, description="Only this day (YYYY-MM-DD)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> ReservationListResponse:
    """All reservations, newest first."""
    day = parse_date_param(date) if date else None
    total, rows = await reservations.list_reservations(db, day=day, skip=skip, limit=limit)
    return ReservationListResponse(
        total=total,
        reservations=[ReservationResponse.model_validate(r) for r in rows],
    )


# =============================================================================
# MENU
# =============================================================================

@app.get("/menu", response_model=MenuResponse, tags=["Menu"])
async def public_menu(db: AsyncSession = Depends(get_db)) -> MenuResponse:
    categories = await menu.get_public_menu(db)
    return MenuResponse(categories=[
        MenuCategoryWithItems(
            id=c["id"],
            name=c["name"],
            sort_order=c["sort_order"],
            items=[MenuItemResponse.model_validate(item) for item in c["items"]],
        )
        for c in categories
    ])


@app.get(
    "/admin/menu/categories",
    response_model=list[CategoryResponse],
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_list_categories(db: AsyncSession = Depends(get_db)) -> list[CategoryResponse]:
    return [CategoryResponse.model_validate(c) for c in await menu.list_categories(db)]


@app.post(
    "/admin/menu/categories",
    response_model=CategoryResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_create_category(
    body: CategoryCreate,
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    category = await menu.create_category(db, body.name, body.sort_order)
    return CategoryResponse.model_validate(category)


@app.put(
    "/admin/menu/categories/{category_id}",
    response_model=CategoryResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_update_category(
    category_id: int,
    body: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    category = await menu.update_category(db, category_id, body.model_dump(exclude_unset=True))
    return CategoryResponse.model_validate(category)


@app.delete(
    "/admin/menu/categories/{category_id}",
    response_model=OkResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_delete_category(category_id: int, db: AsyncSession = Depends(get_db)) -> OkResponse:
    """Delete a category and all of its items."""
    await menu.delete_category(db, category_id)
    return OkResponse()


@app.get(
    "/admin/menu/items",
    response_model=list[MenuItemResponse],
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_list_items(db: AsyncSession = Depends(get_db)) -> list[MenuItemResponse]:
    return [MenuItemResponse.model_validate(i) for i in await menu.list_items(db)]


@app.post(
    "/admin/menu/items",
    response_model=MenuItemResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_create_item(
    body: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = await menu.create_item(db, body.model_dump())
    return MenuItemResponse.model_validate(item)


@app.put(
    "/admin/menu/items/{item_id}",
    response_model=MenuItemResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_update_item(
    item_id: int,
    body: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = await menu.update_item(db, item_id, body.model_dump(exclude_unset=True))
    return MenuItemResponse.model_validate(item)


@app.post(
    "/admin/menu/items/{item_id}/image",
    response_model=MenuItemResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_upload_item_image(
    item_id: int,
    image: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    """Attach an image (jpg/png/webp, max 5MB) to a menu item."""
    previous = (await menu.get_item(db, item_id)).image_url
    image_url = await uploads.save_image(image, "menu", settings.max_menu_image_bytes)
    try:
        item = await menu.set_item_image(db, item_id, image_url)
    except NotFoundError:
        # Item deleted while the file was being written
        uploads.delete_upload(image_url)
        raise
    if previous and previous != image_url:
        uploads.delete_upload(previous)
    return MenuItemResponse.model_validate(item)


@app.delete(
    "/admin/menu/items/{item_id}",
    response_model=OkResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_delete_item(item_id: int, db: AsyncSession = Depends(get_db)) -> OkResponse:
    await menu.delete_item(db, item_id)
    return OkResponse()


# =============================================================================
# BLOG
# =============================================================================

@app.get("/blogs", response_model=list[BlogSummaryResponse], tags=["Blog"])
async def public_blogs(db: AsyncSession = Depends(get_db)) -> list[BlogSummaryResponse]:
    """Published posts, newest first."""
    return [BlogSummaryResponse.model_validate(p) for p in await blog.list_published(db)]


@app.get("/blogs/{slug}", response_model=BlogResponse, responses=ERROR_RESPONSES, tags=["Blog"])
async def public_blog(slug: str, db: AsyncSession = Depends(get_db)) -> BlogResponse:
    return BlogResponse.model_validate(await blog.get_published_by_slug(db, slug))


@app.get(
    "/admin/blogs",
    response_model=list[BlogResponse],
    responses=ERROR_RESPONSES,
    tags=["Blog Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_list_blogs(db: AsyncSession = Depends(get_db)) -> list[BlogResponse]:
    return [BlogResponse.model_validate(p) for p in await blog.list_all(db)]


@app.get(
    "/admin/blogs/{post_id}",
    response_model=BlogResponse,
    responses=ERROR_RESPONSES,
    tags=["Blog Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_get_blog(post_id: int, db: AsyncSession = Depends(get_db)) -> BlogResponse:
    return BlogResponse.model_validate(await blog.get_post(db, post_id))


@app.post(
    "/admin/blogs",
    response_model=BlogResponse,
    responses=ERROR_RESPONSES,
    tags=["Blog Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_create_blog(body: BlogCreate, db: AsyncSession = Depends(get_db)) -> BlogResponse:
    post = await blog.create_post(db, body.model_dump())
    return BlogResponse.model_validate(post)


@app.put(
    "/admin/blogs/{post_id}",
    response_model=BlogResponse,
    responses=ERROR_RESPONSES,
    tags=["Blog Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_update_blog(
    post_id: int,
    body: BlogUpdate,
    db: AsyncSession = Depends(get_db),
) -> BlogResponse:
    post = await blog.update_post(db, post_id, body.model_dump(exclude_unset=True))
    return BlogResponse.model_validate(post)


@app.post(
    "/admin/blogs/{post_id}/cover",
    response_model=BlogResponse,
    responses=ERROR_RESPONSES,
    tags=["Blog Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_upload_blog_cover(
    post_id: int,
    cover: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
) -> BlogResponse:
    """Replace the cover image (max 20MB)."""
    await blog.get_post(db, post_id)
    cover_url = await uploads.save_image(cover, "blog", settings.max_blog_cover_bytes)
    try:
        post, previous = await blog.set_cover(db, post_id, cover_url)
    except NotFoundError:
        uploads.delete_upload(cover_url)
        raise
    if previous:
        uploads.delete_upload(previous)
    return BlogResponse.model_validate(post)


@app.delete(
    "/admin/blogs/{post_id}/cover",
    response_model=BlogResponse,
    responses=ERROR_RESPONSES,
    tags=["Blog Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_remove_blog_cover(post_id: int, db: AsyncSession = Depends(get_db)) -> BlogResponse:
    post, previous = await blog.set_cover(db, post_id, None)
    if previous:
        uploads.delete_upload(previous)
    return BlogResponse.model_validate(post)


@app.delete(
    "/admin/blogs/{post_id}",
    response_model=OkResponse,
    responses=ERROR_RESPONSES,
    tags=["Blog Admin"],
    dependencies=[Depends(require_admin)],
)
async def admin_delete_blog(post_id: int, db: AsyncSession = Depends(get_db)) -> OkResponse:
    cover = await blog.delete_post(db, post_id)
    if cover:
        uploads.delete_upload(cover)
    return OkResponse()


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(RestaurantError)
async def restaurant_error_handler(request: Request, exc: RestaurantError) -> JSONResponse:
    """Expected failures: validation, closed day, capacity, auth, not found."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies/params are reported as 400."""
    errors = exc.errors()
    detail = None
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{location}: {first.get('msg')}" if location else first.get("msg")

    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid payload", "detail": detail},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
