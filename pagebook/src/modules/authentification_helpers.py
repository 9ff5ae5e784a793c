from typing import Optional
from fastapi import Request

from db_mongo import USERS_COL, get_col

# token -> user id; issued by whatever signs users in
SESSIONS: dict[str, str] = {}


def get_auth_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip()
    return None

def get_session_user_id(token: str) -> Optional[str]:
    if not token:
        return None
    return SESSIONS.get(token)

def find_user(user_id: str) -> Optional[dict]:
    # always exclude _id when returning data to the app
    return get_col(USERS_COL).find_one({"id": user_id}, {"_id": 0})
