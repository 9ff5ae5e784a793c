from functools import lru_cache
from urllib.parse import urlparse
from pymongo import MongoClient, ASCENDING
from pymongo.database import Database
from settings import settings
import os

PAGES_COL = "pages"
USERS_COL = "users"
AUDIT_COL = "audit_logs"


def is_mock() -> bool:
    return str(settings.mongodb_uri or "").startswith("mongomock://")

def _db_name_from_uri() -> str:
    u = urlparse(settings.mongodb_uri or "")
    return (u.path or "").lstrip("/") or os.getenv("DB_NAME") or "pagebook"

@lru_cache
def get_client():
    uri = settings.mongodb_uri
    if not uri or "xxxx.mongodb.net" in uri or "example.com" in uri:
        raise RuntimeError("MONGODB_URI is missing or still a placeholder.")
    if is_mock():
        import mongomock
        return mongomock.MongoClient(tz_aware=True)
    return MongoClient(uri, tz_aware=True)

def get_db() -> Database:
    return get_client()[_db_name_from_uri()]

def get_col(name: str):
    return get_db()[name]

def ensure_indexes() -> None:
    db = get_db()
    db[PAGES_COL].create_index([("id", ASCENDING)], unique=True, name="ux_page_id")
    db[PAGES_COL].create_index([("path", ASCENDING)], unique=True, name="ux_page_path")
    db[PAGES_COL].create_index([("created", ASCENDING)], name="ix_page_created")
    db[PAGES_COL].create_index([("updated", ASCENDING)], name="ix_page_updated")
    db[USERS_COL].create_index("id", unique=True)
    if is_mock():
        return
    db[PAGES_COL].create_index(
        [("revisions.0.content.title", "text"), ("revisions.0.content.body", "text")],
        name="tx_page_search",
        default_language="none",
    )
