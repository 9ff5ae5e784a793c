import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError, PyMongoError

from pagebook.src.modules.diff_engine import diff_revisions
from pagebook.src.modules.logging_helpers import write_audit
from pagebook.src.modules.page_auth import require_admin, require_read, require_write, resolve_requester
from pagebook.src.modules.page_query import parse_page_query
from pagebook.src.modules.page_repo import PageMongoRepo
from pagebook.src.modules.page_search import search
from pagebook.src.modules.page_service import (
    normalize_path,
    page_public,
    resolve_revision,
    revision_from_body,
    revision_public,
    validate_path,
)
from pagebook.src.modules.pagination import build_link_relations
from pagebook.src.objects.pages import Page
from pagebook.src.objects.permissions import is_admin
from pagebook.src.objects.users import UserSnapshot, editor_id
from settings import settings

logger = logging.getLogger(__name__)


PAGES_ROOT = f"{settings.api_root.rstrip('/')}/pages"


router = APIRouter(
    prefix=PAGES_ROOT,
    tags=["pages"],
)


class PagePayload(BaseModel):
    title: str | None = None
    path: str | None = None
    body: str | None = None
    read: str | None = None
    write: str | None = None
    msg: str | None = None
    file: dict[str, Any] | None = None
    thumbnail: dict[str, Any] | None = None


def get_repo() -> PageMongoRepo:
    return PageMongoRepo()


def _storage_error_detail(exc: Exception, operation: str) -> str:
    msg = str(exc or "").lower()
    if "not authorized" in msg or "unauthorized" in msg:
        return "Page storage permission error."
    if "timed out" in msg or "serverselectiontimeout" in msg:
        return "Page storage is unreachable."
    return f"Page storage error during {operation}."


def _username(requester: UserSnapshot | None) -> str:
    return editor_id(requester) or "anonymous"


def format_link_header(links: dict[str, str]) -> str:
    return ", ".join(f'<{url}>; rel="{rel}"' for rel, url in links.items())


def _load_page(repo: PageMongoRepo, pid: str, requester: UserSnapshot | None) -> Page:
    try:
        page = repo.load_by_id(pid) or repo.load_by_path(normalize_path(pid))
    except PyMongoError as exc:
        logger.exception("page load failure for %s", pid)
        raise HTTPException(status_code=500, detail=_storage_error_detail(exc, "page lookup"))
    if page is None or page.current() is None:
        raise HTTPException(status_code=404, detail="Page not found")
    if page.is_trashed and not is_admin(requester):
        raise HTTPException(status_code=404, detail="Page not found")
    require_read(page.current().permissions, requester)
    return page


def _check_path(repo: PageMongoRepo, path: str, exclude_id: str | None = None) -> None:
    validation = validate_path(path, repo, exclude_id)
    if not validation.is_valid:
        raise HTTPException(status_code=409 if validation.conflict else 400, detail=validation.reason)


def _save(repo: PageMongoRepo, page: Page, operation: str) -> None:
    try:
        repo.save(page)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail=f"The path {page.path} is already in use")
    except PyMongoError as exc:
        logger.exception("page %s database failure", operation)
        raise HTTPException(status_code=500, detail=_storage_error_detail(exc, operation))


@router.get("")
async def list_pages(request: Request, repo: PageMongoRepo = Depends(get_repo)):
    requester = resolve_requester(request)
    query = parse_page_query(request.query_params)
    try:
        result = search(query, repo, requester)
        trashed = repo.count_trashed() if is_admin(requester) else None
    except PyMongoError as exc:
        logger.exception("page search database failure")
        raise HTTPException(status_code=500, detail=_storage_error_detail(exc, "page search"))

    headers = {"X-Total-Count": str(result.total)}
    links = build_link_relations(PAGES_ROOT, request.query_params, result.window)
    if links:
        headers["Link"] = format_link_header(links)
    if trashed is not None:
        headers["X-Trashed-Count"] = str(trashed)
    return JSONResponse(content=[page_public(page) for page in result.pages], headers=headers)


@router.post("")
async def create_page(
    request: Request,
    payload: PagePayload,
    repo: PageMongoRepo = Depends(get_repo),
):
    requester = resolve_requester(request)
    revision = revision_from_body(payload.model_dump(exclude_none=True), requester)
    _check_path(repo, revision.content.path)
    page = Page(revisions=[revision])
    _save(repo, page, "page creation")
    out = page_public(page)
    write_audit("page_create", _username(requester), page.id, None, out)
    logger.info("page %s created at %s", page.id, page.path)
    return out


@router.post("/{pid:path}/restore")
async def restore_page(
    pid: str,
    repo: PageMongoRepo = Depends(get_repo),
    requester: UserSnapshot = Depends(require_admin),
):
    page = _load_page(repo, pid, requester)
    if not page.is_trashed:
        raise HTTPException(status_code=400, detail="Page is not in the trash")
    before = page_public(page)
    _check_path(repo, page.path, page.id)
    page.restore()
    _save(repo, page, "page restore")
    out = page_public(page)
    write_audit("page_restore", _username(requester), page.id, before, out)
    return out


@router.get("/{pid:path}/revisions")
async def list_revisions(pid: str, request: Request, repo: PageMongoRepo = Depends(get_repo)):
    page = _load_page(repo, pid, resolve_requester(request))
    count = len(page.revisions)
    return [revision_public(page.revisions[index], page.number_of(index)) for index in range(count - 1, -1, -1)]


@router.get("/{pid:path}/revisions/{n}")
async def get_revision(
    pid: str,
    n: str,
    request: Request,
    compare: str | None = None,
    repo: PageMongoRepo = Depends(get_repo),
):
    page = _load_page(repo, pid, resolve_requester(request))
    number, revision = resolve_revision(page, n)
    if compare is None:
        return revision_public(revision, number)
    other_number, other = resolve_revision(page, compare)
    return {
        "from": number,
        "to": other_number,
        "diff": diff_revisions(revision, other).to_dict(),
    }


@router.post("/{pid:path}/revisions/{n}/rollback")
async def rollback_page(
    pid: str,
    n: str,
    request: Request,
    repo: PageMongoRepo = Depends(get_repo),
):
    requester = resolve_requester(request)
    page = _load_page(repo, pid, requester)
    require_write(page.current().permissions, requester)
    number, target = resolve_revision(page, n)
    if target.content.path != page.path:
        _check_path(repo, target.content.path, page.id)
    before = page_public(page)
    page.rollback(number, requester)
    _save(repo, page, "page rollback")
    out = page_public(page)
    write_audit("page_rollback", _username(requester), page.id, before, out)
    return out


# catch-all page routes last: a page path may contain slashes
@router.get("/{pid:path}")
async def get_page(pid: str, request: Request, repo: PageMongoRepo = Depends(get_repo)):
    page = _load_page(repo, pid, resolve_requester(request))
    return page_public(page)


@router.post("/{pid:path}")
async def update_page(
    pid: str,
    request: Request,
    payload: PagePayload,
    repo: PageMongoRepo = Depends(get_repo),
):
    requester = resolve_requester(request)
    page = _load_page(repo, pid, requester)
    current = page.current()
    require_write(current.permissions, requester)
    before = page_public(page)

    revision = revision_from_body(payload.model_dump(exclude_none=True), requester, base=current)
    if revision.content.path != current.content.path:
        _check_path(repo, revision.content.path, page.id)
    page.add_revision(revision)
    _save(repo, page, "page update")
    out = page_public(page)
    write_audit("page_update", _username(requester), page.id, before, out)
    return out


@router.delete("/{pid:path}")
async def trash_page(pid: str, request: Request, repo: PageMongoRepo = Depends(get_repo)):
    requester = resolve_requester(request)
    page = _load_page(repo, pid, requester)
    require_write(page.current().permissions, requester)
    before = page_public(page)
    page.trash()
    _save(repo, page, "page trash")
    out = page_public(page)
    write_audit("page_trash", _username(requester), page.id, before, out)
    return out
