from __future__ import annotations

from typing import Any
from uuid import uuid4

from db_mongo import PAGES_COL, get_db
from pagebook.src.modules.page_search import RELEVANCE
from pagebook.src.objects.pages import Page


class PageMongoRepo:
    """MongoDB-backed page storage.

    A page is one document; ``save`` replaces the whole document so a single
    write carries every revision appended during the request.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()
        self.pages = self.db[PAGES_COL]

    @staticmethod
    def _doc_without_mongo_id(doc: dict[str, Any] | None) -> dict[str, Any]:
        if not isinstance(doc, dict):
            return {}
        out = dict(doc)
        out.pop("_id", None)
        out.pop("score", None)
        return out

    def _to_page(self, doc: dict[str, Any] | None) -> Page | None:
        clean = self._doc_without_mongo_id(doc)
        if not clean:
            return None
        return Page.from_dict(clean)

    def load_by_id(self, page_id: str) -> Page | None:
        clean_id = str(page_id or "").strip()
        if not clean_id:
            return None
        return self._to_page(self.pages.find_one({"id": clean_id}))

    def load_by_path(self, path: str) -> Page | None:
        clean_path = str(path or "").strip()
        if not clean_path:
            return None
        return self._to_page(self.pages.find_one({"path": clean_path}))

    def path_exists(self, path: str, exclude_id: str = "") -> bool:
        query: dict[str, Any] = {"path": str(path or "").strip()}
        clean_exclude = str(exclude_id or "").strip()
        if clean_exclude:
            query["id"] = {"$ne": clean_exclude}
        return self.pages.find_one(query, {"_id": 1}) is not None

    def save(self, page: Page) -> str:
        if not page.revisions:
            raise ValueError("Cannot save a page without revisions")
        if not page.id:
            page.id = str(uuid4())
        self.pages.replace_one({"id": page.id}, page.to_dict(), upsert=True)
        return page.id

    def delete(self, page_id: str) -> bool:
        result = self.pages.delete_one({"id": str(page_id or "").strip()})
        return bool(result.deleted_count)

    def find(
        self,
        filter: dict[str, Any],
        sort: list[tuple[str, int]] | str,
        offset: int,
        limit: int,
    ) -> tuple[list[Page], int]:
        total = int(self.pages.count_documents(filter))
        if sort == RELEVANCE:
            score = {"score": {"$meta": "textScore"}}
            cursor = self.pages.find(filter, score).sort([("score", {"$meta": "textScore"})])
        else:
            cursor = self.pages.find(filter)
            if sort:
                cursor = cursor.sort(sort)
        rows = list(cursor.skip(int(offset)).limit(int(limit)))
        pages = [page for page in (self._to_page(row) for row in rows) if page is not None]
        return pages, total

    def count_trashed(self) -> int:
        return int(self.pages.count_documents({"trashed": {"$exists": True, "$ne": None}}))
