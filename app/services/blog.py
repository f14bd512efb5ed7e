"""
Blog Service

Published posts for the public site and admin CRUD with the
status -> published_at rules.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import BlogPost, BlogStatus

logger = logging.getLogger(__name__)


def to_slug(value: str) -> str:
    """
    URL slug: lower-case, strip, drop punctuation, spaces -> "-".

    >>> to_slug("  Welcome to Our Restaurant! ")
    'welcome-to-our-restaurant'
    """
    slug = value.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    return re.sub(r"-+", "-", slug)


def _clean_excerpt(excerpt: Optional[str]) -> Optional[str]:
    if excerpt is None:
        return None
    excerpt = excerpt.strip()
    return excerpt or None


async def _ensure_slug_free(session: AsyncSession, slug: str, exclude_id: Optional[int] = None) -> None:
    if not slug:
        raise ValidationError("Slug cannot be empty", field="slug")
    query = select(BlogPost.id).where(BlogPost.slug == slug)
    if exclude_id is not None:
        query = query.where(BlogPost.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise ConflictError(f"Slug '{slug}' is already in use", field="slug")


async def _commit_post(session: AsyncSession, slug: str) -> None:
    """Commit, reporting a slug taken by a concurrent writer as a conflict."""
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info(f"Slug '{slug}' taken concurrently")
        raise ConflictError(f"Slug '{slug}' is already in use", field="slug")


# =============================================================================
# PUBLIC
# =============================================================================

async def list_published(session: AsyncSession) -> list[BlogPost]:
    result = await session.execute(
        select(BlogPost)
        .where(BlogPost.status == BlogStatus.PUBLISHED)
        .order_by(BlogPost.published_at.desc(), BlogPost.id.desc())
    )
    return list(result.scalars().all())


async def get_published_by_slug(session: AsyncSession, slug: str) -> BlogPost:
    result = await session.execute(select(BlogPost).where(BlogPost.slug == slug))
    post = result.scalar_one_or_none()
    if post is None or post.status != BlogStatus.PUBLISHED:
        raise NotFoundError("Blog not found")
    return post


# =============================================================================
# ADMIN
# =============================================================================

async def list_all(session: AsyncSession) -> list[BlogPost]:
    result = await session.execute(
        select(BlogPost).order_by(BlogPost.updated_at.desc(), BlogPost.id.desc())
    )
    return list(result.scalars().all())


async def get_post(session: AsyncSession, post_id: int) -> BlogPost:
    post = await session.get(BlogPost, post_id)
    if post is None:
        raise NotFoundError("Blog not found")
    return post


async def create_post(session: AsyncSession, data: dict[str, Any]) -> BlogPost:
    slug_source = data.get("slug")
    slug = to_slug(slug_source) if slug_source and slug_source.strip() else to_slug(data["title"])
    await _ensure_slug_free(session, slug)

    status = data.get("status") or BlogStatus.DRAFT
    post = BlogPost(
        title=data["title"],
        slug=slug,
        excerpt=_clean_excerpt(data.get("excerpt")),
        content=data["content"],
        status=status,
        published_at=datetime.now(timezone.utc) if status == BlogStatus.PUBLISHED else None,
    )
    session.add(post)
    await _commit_post(session, post.slug)
    await session.refresh(post)
    logger.info(f"Created blog post #{post.id} ({post.slug}, {post.status.value})")
    return post


async def update_post(session: AsyncSession, post_id: int, changes: dict[str, Any]) -> BlogPost:
    """
    Partial update. Setting status PUBLISHED stamps published_at with the
    current time; setting DRAFT clears it.
    """
    post = await get_post(session, post_id)

    if changes.get("title") is not None:
        post.title = changes["title"]
    if changes.get("content") is not None:
        post.content = changes["content"]
    if changes.get("slug"):
        slug = to_slug(changes["slug"])
        await _ensure_slug_free(session, slug, exclude_id=post.id)
        post.slug = slug
    if "excerpt" in changes:
        post.excerpt = _clean_excerpt(changes["excerpt"])

    status = changes.get("status")
    if status == BlogStatus.PUBLISHED:
        post.status = status
        post.published_at = datetime.now(timezone.utc)
    elif status == BlogStatus.DRAFT:
        post.status = status
        post.published_at = None

    await _commit_post(session, post.slug)
    await session.refresh(post)
    return post


async def set_cover(session: AsyncSession, post_id: int, cover_url: Optional[str]) -> tuple[BlogPost, Optional[str]]:
    """Replace (or clear) the cover image. Returns the post and the previous cover URL."""
    post = await get_post(session, post_id)
    previous = post.cover_image
    post.cover_image = cover_url
    await session.commit()
    await session.refresh(post)
    return post, previous


async def delete_post(session: AsyncSession, post_id: int) -> Optional[str]:
    """Delete a post; returns its cover URL so the caller can drop the file."""
    post = await get_post(session, post_id)
    cover = post.cover_image
    await session.delete(post)
    await session.commit()
    logger.info(f"Deleted blog post #{post_id}")
    return cover
