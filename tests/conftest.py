import os
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("CORS_ORIGINS", "http://localhost")
os.environ.setdefault("MONGODB_URI", "mongomock://localhost/pagebook")
os.environ.setdefault("DEFAULT_READ_PERMISSIONS", "anyone")
os.environ.setdefault("DEFAULT_WRITE_PERMISSIONS", "anyone")

from db_mongo import USERS_COL, get_db
from main import app
from pagebook.src.modules.authentification_helpers import SESSIONS


@pytest.fixture(autouse=True)
def clean_state():
    db = get_db()
    for name in db.list_collection_names():
        db.drop_collection(name)
    SESSIONS.clear()
    yield
    SESSIONS.clear()


@asynccontextmanager
async def pages_client(
    auth_token: str | None = "test-token",
    user_id: str = "tester",
    editor: bool = False,
    admin: bool = False,
):
    headers: dict[str, str] = {}
    if auth_token:
        SESSIONS[auth_token] = user_id
        headers["Authorization"] = f"Bearer {auth_token}"
        get_db()[USERS_COL].update_one(
            {"id": user_id},
            {"$set": {"id": user_id, "name": user_id.title(), "editor": editor, "admin": admin}},
            upsert=True,
        )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers) as client:
        yield client
