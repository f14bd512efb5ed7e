"""
Seed Script

Creates the admin account, booking config, weekly opening hours and a
small starter menu and blog post. Safe to run more than once.
Run from project root: python scripts/seed.py

Version: 1.0.0
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from sqlalchemy import select

from app.core.config import get_settings
from app.database import async_session_maker, init_db, engine
from app.models import BlogPost, BlogStatus, MenuCategory
from app.services import accounts, blog, menu, reservations

STARTERS = [
    {"name": "Bruschetta", "description": "Grilled bread, tomato, basil", "price": 7.5},
    {"name": "Burrata", "description": "Creamy burrata, olive oil, sea salt", "price": 11.0},
    {"name": "Soup of the Day", "description": None, "price": 6.0},
]

WELCOME_POST = {
    "title": "Welcome to The Garden Table",
    "excerpt": "Seasonal cooking, open kitchen, and a table waiting for you.",
    "content": (
        "We are delighted to open our doors. Book a table online, browse the menu, "
        "and follow this blog for new dishes and events."
    ),
    "status": BlogStatus.PUBLISHED,
}


async def seed() -> None:
    settings = get_settings()

    print("=" * 60)
    print("🌱 SEEDING DATABASE")
    print("=" * 60)

    await init_db()

    async with async_session_maker() as session:
        admin = await accounts.ensure_admin_user(session)
        print(f"👤 Admin: {admin.email}")

        await reservations.ensure_booking_defaults(session)
        config = await reservations.get_booking_config(session)
        print(
            f"🕒 Booking config: {config.capacity_per_slot} seats/slot, "
            f"{config.slot_duration_minutes} min slots, max party {config.max_party_size}"
        )

        result = await session.execute(select(MenuCategory).where(MenuCategory.name == "Starters"))
        category = result.scalar_one_or_none()
        if category is None:
            category = await menu.create_category(session, "Starters", 0)
            for position, item in enumerate(STARTERS):
                await menu.create_item(session, {
                    **item,
                    "category_id": category.id,
                    "available": True,
                    "sort_order": position,
                })
            print(f"🍽️  Menu: Starters with {len(STARTERS)} items")
        else:
            print("🍽️  Menu: Starters already present")

        slug = blog.to_slug(WELCOME_POST["title"])
        result = await session.execute(select(BlogPost).where(BlogPost.slug == slug))
        if result.scalar_one_or_none() is None:
            await blog.create_post(session, dict(WELCOME_POST))
            print(f"📝 Blog: '{WELCOME_POST['title']}' published")
        else:
            print("📝 Blog: welcome post already present")

    await engine.dispose()

    print("=" * 60)
    print(f"✅ Seed complete. Login with {settings.admin_email}")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(seed())
