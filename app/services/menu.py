"""
Menu Service

Public menu listing and admin CRUD for categories and items.
"""

import logging
from typing import Any

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, ValidationError
from app.models import MenuCategory, MenuItem

logger = logging.getLogger(__name__)


async def get_public_menu(session: AsyncSession) -> list[dict[str, Any]]:
    """Categories by sort order, each with its available items by sort order."""
    result = await session.execute(
        select(MenuCategory)
        .options(selectinload(MenuCategory.items))
        .order_by(MenuCategory.sort_order, MenuCategory.id)
    )
    categories = result.scalars().all()

    return [
        {
            "id": category.id,
            "name": category.name,
            "sort_order": category.sort_order,
            "items": [item for item in category.items if item.available],
        }
        for category in categories
    ]


# =============================================================================
# CATEGORIES
# =============================================================================

async def list_categories(session: AsyncSession) -> list[MenuCategory]:
    result = await session.execute(
        select(MenuCategory).order_by(MenuCategory.sort_order, MenuCategory.id)
    )
    return list(result.scalars().all())


async def get_category(session: AsyncSession, category_id: int) -> MenuCategory:
    category = await session.get(MenuCategory, category_id)
    if category is None:
        raise NotFoundError(f"Category #{category_id} not found")
    return category


async def create_category(session: AsyncSession, name: str, sort_order: int = 0) -> MenuCategory:
    category = MenuCategory(name=name.strip(), sort_order=sort_order)
    session.add(category)
    await session.commit()
    await session.refresh(category)
    logger.info(f"Created menu category #{category.id} {category.name}")
    return category


async def update_category(session: AsyncSession, category_id: int, changes: dict[str, Any]) -> MenuCategory:
    category = await get_category(session, category_id)
    for field, value in changes.items():
        if value is None:
            continue
        setattr(category, field, value.strip() if field == "name" else value)
    await session.commit()
    await session.refresh(category)
    return category


async def delete_category(session: AsyncSession, category_id: int) -> None:
    """Delete a category together with its items."""
    category = await get_category(session, category_id)
    await session.execute(delete(MenuItem).where(MenuItem.category_id == category_id))
    await session.delete(category)
    await session.commit()
    logger.info(f"Deleted menu category #{category_id}")


# =============================================================================
# ITEMS
# =============================================================================

async def list_items(session: AsyncSession) -> list[MenuItem]:
    result = await session.execute(
        select(MenuItem).order_by(MenuItem.category_id, MenuItem.sort_order, MenuItem.id)
    )
    return list(result.scalars().all())


async def get_item(session: AsyncSession, item_id: int) -> MenuItem:
    item = await session.get(MenuItem, item_id)
    if item is None:
        raise NotFoundError(f"Menu item #{item_id} not found")
    return item


async def _require_category(session: AsyncSession, category_id: int) -> None:
    if not category_id or await session.get(MenuCategory, category_id) is None:
        raise ValidationError("categoryId is required", field="categoryId")


async def create_item(session: AsyncSession, data: dict[str, Any]) -> MenuItem:
    await _require_category(session, data.get("category_id"))

    item = MenuItem(
        name=data["name"].strip(),
        description=data.get("description") or None,
        price=data["price"],
        image_url=data.get("image_url") or None,
        available=data.get("available", True),
        sort_order=data.get("sort_order", 0),
        category_id=data["category_id"],
    )
    session.add(item)
    await session.commit()
    await session.refresh(item)
    logger.info(f"Created menu item #{item.id} {item.name}")
    return item


async def update_item(session: AsyncSession, item_id: int, changes: dict[str, Any]) -> MenuItem:
    """
    Apply a partial update. `changes` holds only the fields the client sent;
    description and image_url may be cleared with null, other fields ignore null.
    """
    item = await get_item(session, item_id)

    if changes.get("category_id") is not None:
        await _require_category(session, changes["category_id"])

    for field, value in changes.items():
        if value is None and field not in ("description", "image_url"):
            continue
        if field == "name":
            value = value.strip()
        setattr(item, field, value)

    await session.commit()
    await session.refresh(item)
    return item


async def set_item_image(session: AsyncSession, item_id: int, image_url: str) -> MenuItem:
    item = await get_item(session, item_id)
    item.image_url = image_url
    await session.commit()
    await session.refresh(item)
    return item


async def delete_item(session: AsyncSession, item_id: int) -> None:
    item = await get_item(session, item_id)
    await session.delete(item)
    await session.commit()
    logger.info(f"Deleted menu item #{item_id}")
