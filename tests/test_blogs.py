"""Blog publishing rules and admin management."""

from pathlib import Path

from app.core.config import get_settings
from app.services.blog import to_slug


async def create_post(client, headers, **fields):
    payload = {"title": "Spring Menu", "content": "New dishes", **fields}
    response = await client.post("/admin/blogs", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_to_slug():
    assert to_slug("  Welcome to Our Restaurant! ") == "welcome-to-our-restaurant"
    assert to_slug("Fish & Chips -- Friday") == "fish-chips-friday"


async def test_draft_is_hidden_from_public(client, admin_headers):
    post = await create_post(client, admin_headers)

    assert post["status"] == "DRAFT"
    assert post["slug"] == "spring-menu"
    assert post["publishedAt"] is None
    assert (await client.get("/blogs")).json() == []
    assert (await client.get("/blogs/spring-menu")).status_code == 404


async def test_publish_then_unpublish(client, admin_headers):
    post = await create_post(client, admin_headers, excerpt="  ")
    assert post["excerpt"] is None

    published = (await client.put(
        f"/admin/blogs/{post['id']}", json={"status": "PUBLISHED"}, headers=admin_headers
    )).json()
    assert published["publishedAt"] is not None

    listing = (await client.get("/blogs")).json()
    assert [p["slug"] for p in listing] == ["spring-menu"]
    assert "content" not in listing[0]
    detail = (await client.get("/blogs/spring-menu")).json()
    assert detail["content"] == "New dishes"

    draft = (await client.put(
        f"/admin/blogs/{post['id']}", json={"status": "DRAFT"}, headers=admin_headers
    )).json()
    assert draft["publishedAt"] is None
    assert (await client.get("/blogs/spring-menu")).status_code == 404


async def test_published_on_create(client, admin_headers):
    post = await create_post(client, admin_headers, status="PUBLISHED", slug="Our Story")

    assert post["slug"] == "our-story"
    assert post["publishedAt"] is not None
    assert (await client.get("/blogs/our-story")).status_code == 200


async def test_duplicate_slug_conflicts(client, admin_headers):
    await create_post(client, admin_headers)

    response = await client.post(
        "/admin/blogs", json={"title": "Spring  Menu!", "content": "x"}, headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "slug"


async def test_slug_change_conflicts_with_other_post(client, admin_headers):
    await create_post(client, admin_headers)
    other = await create_post(client, admin_headers, title="Summer")

    response = await client.put(
        f"/admin/blogs/{other['id']}", json={"slug": "spring-menu"}, headers=admin_headers
    )
    assert response.status_code == 409

    same = await client.put(
        f"/admin/blogs/{other['id']}", json={"slug": "summer", "title": "Summer Nights"}, headers=admin_headers
    )
    assert same.status_code == 200
    assert same.json()["title"] == "Summer Nights"


async def test_title_without_slug_characters_rejected(client, admin_headers):
    response = await client.post("/admin/blogs", json={"title": "!!!", "content": "x"}, headers=admin_headers)
    assert response.status_code == 400


async def test_cover_upload_and_removal(client, admin_headers):
    post = await create_post(client, admin_headers)
    url = f"/admin/blogs/{post['id']}/cover"

    response = await client.post(url, files={"cover": ("cover.webp", b"webp-bytes", "image/webp")}, headers=admin_headers)
    assert response.status_code == 200
    cover = response.json()["coverImage"]
    assert cover.startswith("/uploads/blog/") and cover.endswith(".webp")
    stored = Path(get_settings().upload_directory) / cover[len("/uploads/"):]
    assert stored.exists()

    response = await client.delete(url, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["coverImage"] is None
    assert not stored.exists()


async def test_delete_post_removes_cover(client, admin_headers):
    post = await create_post(client, admin_headers)
    cover = (await client.post(
        f"/admin/blogs/{post['id']}/cover",
        files={"cover": ("c.jpg", b"jpg", "image/jpeg")},
        headers=admin_headers,
    )).json()["coverImage"]

    response = await client.delete(f"/admin/blogs/{post['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert not (Path(get_settings().upload_directory) / cover[len("/uploads/"):]).exists()
    assert (await client.get(f"/admin/blogs/{post['id']}", headers=admin_headers)).status_code == 404


async def test_cover_for_missing_post_is_404(client, admin_headers):
    response = await client.post(
        "/admin/blogs/999/cover", files={"cover": ("c.jpg", b"jpg", "image/jpeg")}, headers=admin_headers
    )
    assert response.status_code == 404


async def test_admin_listing_includes_drafts(client, admin_headers):
    await create_post(client, admin_headers)
    await create_post(client, admin_headers, title="Live", status="PUBLISHED")

    response = await client.get("/admin/blogs", headers=admin_headers)

    assert response.status_code == 200
    assert {p["status"] for p in response.json()} == {"DRAFT", "PUBLISHED"}


async def test_concurrent_duplicate_slug_is_conflict(client, admin_headers, monkeypatch):
    from app.services import blog as blog_service

    await create_post(client, admin_headers)

    # Both writers passed the pre-check; the unique index decides
    async def slug_looked_free(session, slug, exclude_id=None):
        return None

    monkeypatch.setattr(blog_service, "_ensure_slug_free", slug_looked_free)

    response = await client.post(
        "/admin/blogs", json={"title": "Spring Menu", "content": "again"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "slug"

    other = await create_post(client, admin_headers, title="Autumn")
    response = await client.put(
        f"/admin/blogs/{other['id']}", json={"slug": "spring-menu"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert len((await client.get("/admin/blogs", headers=admin_headers)).json()) == 2
