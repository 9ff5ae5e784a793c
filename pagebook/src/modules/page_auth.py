from __future__ import annotations

from fastapi import HTTPException, Request

from pagebook.src.modules.authentification_helpers import (
    find_user,
    get_auth_token,
    get_session_user_id,
)
from pagebook.src.objects.permissions import PermissionRule, is_admin
from pagebook.src.objects.users import UserSnapshot


def resolve_requester(request: Request) -> UserSnapshot | None:
    """Signed-in user for this request, or ``None`` for an anonymous one.

    An unknown or expired token is treated as no token at all.
    """
    user_id = get_session_user_id(get_auth_token(request) or "")
    if not user_id:
        return None
    user_doc = find_user(user_id) or {"id": user_id}
    return UserSnapshot.from_dict(user_doc)


def deny(requester: UserSnapshot | None) -> HTTPException:
    if requester is None:
        return HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return HTTPException(status_code=403, detail="Forbidden")


def require_read(rule: PermissionRule, requester: UserSnapshot | None) -> None:
    if not rule.can_read(requester):
        raise deny(requester)


def require_write(rule: PermissionRule, requester: UserSnapshot | None) -> None:
    if not rule.can_write(requester):
        raise deny(requester)


def require_admin(request: Request) -> UserSnapshot:
    requester = resolve_requester(request)
    if not is_admin(requester):
        raise deny(requester)
    return requester
