import pytest

from db_mongo import AUDIT_COL, get_db
from pagebook.src.modules.pages_api import router
from settings import settings
from tests.conftest import pages_client
from tests.helpers import create_page


@pytest.mark.asyncio
async def test_create_and_get_page():
    async with pages_client() as client:
        response = await client.post("/api/pages", json={"title": "Solo Page", "body": "Hello there."})
        assert response.status_code == 200
        created = response.json()
        assert created["path"] == "/solo-page"
        assert created["revisions"] == 1
        assert created["trashed"] is None
        assert created["current"]["number"] == 1
        assert created["current"]["editor"] == {"id": "tester", "name": "Tester"}
        assert created["current"]["permissions"] == {"read": "anyone", "write": "anyone"}

        by_id = await client.get(f"/api/pages/{created['id']}")
        assert by_id.status_code == 200
        assert by_id.json()["current"]["content"]["body"] == "Hello there."

        by_path = await client.get("/api/pages/solo-page")
        assert by_path.status_code == 200
        assert by_path.json()["id"] == created["id"]

    audit = get_db()[AUDIT_COL].find_one({"action": "page_create"})
    assert audit["page_id"] == created["id"]
    assert audit["user"] == "tester"


@pytest.mark.asyncio
async def test_missing_page_is_404():
    async with pages_client() as client:
        response = await client.get("/api/pages/nowhere")
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_validates_title_and_path():
    async with pages_client() as client:
        no_title = await client.post("/api/pages", json={"title": "  ", "body": "x"})
        assert no_title.status_code == 400

        reserved = await client.post("/api/pages", json={"title": "Docs", "path": "/api/docs", "body": ""})
        assert reserved.status_code == 400

        bad_level = await client.post("/api/pages", json={"title": "Docs", "read": "owner", "body": ""})
        assert bad_level.status_code == 400

        await create_page(client, "Docs")
        taken = await client.post("/api/pages", json={"title": "Other", "path": "/docs", "body": ""})
        assert taken.status_code == 409


@pytest.mark.asyncio
async def test_anonymous_read_denied_with_401():
    async with pages_client() as client:
        created = await create_page(client, "Members Only", "secret", read="authenticated")
    async with pages_client(auth_token=None) as client:
        response = await client.get(f"/api/pages/{created['id']}")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_signed_in_read_denied_with_403():
    async with pages_client(auth_token="boss-token", user_id="boss", admin=True) as client:
        created = await create_page(client, "Staff Notes", read="admin")
    async with pages_client() as client:
        response = await client.get(f"/api/pages/{created['id']}")
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_requires_write_permission():
    async with pages_client() as client:
        created = await create_page(client, "Guarded", "v1", write="editor")
        denied = await client.post(f"/api/pages/{created['id']}", json={"body": "v2"})
        assert denied.status_code == 403

    async with pages_client(auth_token="ed-token", user_id="ed", editor=True) as client:
        updated = await client.post(f"/api/pages/{created['id']}", json={"body": "v2", "msg": "typo"})
        assert updated.status_code == 200
        payload = updated.json()
        assert payload["revisions"] == 2
        assert payload["path"] == "/guarded"
        assert payload["current"]["content"]["title"] == "Guarded"
        assert payload["current"]["permissions"]["write"] == "editor"
        assert payload["current"]["msg"] == "typo"


@pytest.mark.asyncio
async def test_update_path_conflict():
    async with pages_client() as client:
        await create_page(client, "First")
        second = await create_page(client, "Second")
        response = await client.post(f"/api/pages/{second['id']}", json={"path": "/first"})
        assert response.status_code == 409


@pytest.mark.asyncio
async def test_revision_history_and_compare():
    async with pages_client() as client:
        created = await create_page(client, "Essay", "This is the original version.")
        await client.post(f"/api/pages/{created['id']}", json={"body": "This is the updated version."})

        history = await client.get(f"/api/pages/{created['id']}/revisions")
        assert history.status_code == 200
        assert [rev["number"] for rev in history.json()] == [1, 2]

        first = await client.get(f"/api/pages/{created['id']}/revisions/1")
        assert first.status_code == 200
        assert first.json()["content"]["body"] == "This is the original version."

        compared = await client.get(f"/api/pages/{created['id']}/revisions/1?compare=2")
        assert compared.status_code == 200
        body = compared.json()["diff"]["content"]["body"]
        assert body == [
            {"value": "This is the ", "count": 6},
            {"value": "original", "count": 1, "removed": True},
            {"value": "updated", "count": 1, "added": True},
            {"value": " version.", "count": 3},
        ]


@pytest.mark.asyncio
async def test_bad_revision_numbers():
    async with pages_client() as client:
        created = await create_page(client, "Short")
        missing = await client.get(f"/api/pages/{created['id']}/revisions/4")
        assert missing.status_code == 400
        assert "between 1 and 1" in missing.json()["detail"]

        words = await client.get(f"/api/pages/{created['id']}/revisions/latest")
        assert words.status_code == 400


@pytest.mark.asyncio
async def test_rollback():
    async with pages_client() as client:
        created = await create_page(client, "Notes", "first draft", msg="Initial")
        await client.post(f"/api/pages/{created['id']}", json={"body": "second draft"})

        rolled = await client.post(f"/api/pages/{created['id']}/revisions/1/rollback")
        assert rolled.status_code == 200
        payload = rolled.json()
        assert payload["revisions"] == 3
        assert payload["current"]["content"]["body"] == "first draft"
        assert payload["current"]["msg"] == "Rolling back to revision #1: Initial"

        out_of_range = await client.post(f"/api/pages/{created['id']}/revisions/9/rollback")
        assert out_of_range.status_code == 400


@pytest.mark.asyncio
async def test_trash_and_restore():
    async with pages_client() as client:
        created = await create_page(client, "Old News")
        trashed = await client.delete(f"/api/pages/{created['id']}")
        assert trashed.status_code == 200
        assert trashed.json()["trashed"]

        hidden = await client.get(f"/api/pages/{created['id']}")
        assert hidden.status_code == 404
        restore = await client.post(f"/api/pages/{created['id']}/restore")
        assert restore.status_code == 403

    async with pages_client(auth_token="boss-token", user_id="boss", admin=True) as client:
        seen = await client.get(f"/api/pages/{created['id']}")
        assert seen.status_code == 200

        listed = await client.get("/api/pages?trashed")
        assert [page["id"] for page in listed.json()] == [created["id"]]
        assert listed.headers["x-trashed-count"] == "1"

        restored = await client.post(f"/api/pages/{created['id']}/restore")
        assert restored.status_code == 200
        assert restored.json()["trashed"] is None


@pytest.mark.asyncio
async def test_anonymous_restore_is_401():
    async with pages_client(auth_token=None) as client:
        response = await client.post("/api/pages/anything/restore")
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_search_headers_and_links():
    async with pages_client() as client:
        for title in ("Alpha", "Beta", "Gamma", "Delta", "Epsilon"):
            await create_page(client, title)
        await create_page(client, "Hidden", read="editor")

        response = await client.get("/api/pages?limit=2&offset=2&sort=alphabetical")
        assert response.status_code == 200
        assert [page["path"] for page in response.json()] == ["/delta", "/epsilon"]
        assert response.headers["x-total-count"] == "5"
        assert "x-trashed-count" not in response.headers
        link = response.headers["link"]
        for rel in ("first", "previous", "next", "last"):
            assert f'rel="{rel}"' in link
        assert '</api/pages?limit=2&offset=4&sort=alphabetical>; rel="next"' in link

        first_window = await client.get("/api/pages?limit=5")
        assert "link" not in first_window.headers


@pytest.mark.asyncio
async def test_non_admin_asking_for_trash_gets_live_pages():
    async with pages_client() as client:
        kept = await create_page(client, "Kept")
        gone = await create_page(client, "Gone")
        await client.delete(f"/api/pages/{gone['id']}")

        listed = await client.get("/api/pages?trashed=true")
        assert listed.status_code == 200
        assert [page["id"] for page in listed.json()] == [kept["id"]]


@pytest.mark.asyncio
async def test_nested_paths_resolve_through_every_route():
    async with pages_client() as client:
        created = await create_page(client, "Dragons", "Scaled.", path="/lore/dragons")
        assert created["path"] == "/lore/dragons"

        by_path = await client.get("/api/pages/lore/dragons")
        assert by_path.status_code == 200
        assert by_path.json()["id"] == created["id"]

        edited = await client.post("/api/pages/lore/dragons", json={"body": "Scaled and winged."})
        assert edited.status_code == 200
        assert edited.json()["revisions"] == 2

        history = await client.get("/api/pages/lore/dragons/revisions")
        assert [rev["number"] for rev in history.json()] == [1, 2]
        first = await client.get("/api/pages/lore/dragons/revisions/1")
        assert first.json()["content"]["body"] == "Scaled."

        rolled = await client.post("/api/pages/lore/dragons/revisions/1/rollback")
        assert rolled.status_code == 200
        assert rolled.json()["current"]["content"]["body"] == "Scaled."

        trashed = await client.delete("/api/pages/lore/dragons")
        assert trashed.status_code == 200


@pytest.mark.asyncio
async def test_paths_cannot_use_route_segments():
    async with pages_client() as client:
        response = await client.post("/api/pages", json={"title": "Log", "path": "/notes/revisions", "body": ""})
        assert response.status_code == 400
        response = await client.post("/api/pages", json={"title": "Undo", "path": "/restore", "body": ""})
        assert response.status_code == 400


@pytest.mark.asyncio
async def test_link_relations_point_at_the_router():
    assert router.prefix == f"{settings.api_root.rstrip('/')}/pages"
    async with pages_client() as client:
        for title in ("One", "Two", "Three"):
            await create_page(client, title)
        response = await client.get(f"{router.prefix}?limit=1&sort=alphabetical")
        next_url = response.headers["link"].split(">", 1)[0].lstrip("<")
        assert next_url.startswith(f"{router.prefix}?")

        followed = await client.get(next_url)
        assert followed.status_code == 200
        assert [page["path"] for page in followed.json()] == ["/three"]
        assert followed.headers["x-total-count"] == "3"
