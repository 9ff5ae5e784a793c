import sys, os
# add project root (one level up from /scripts) to import path
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from db_mongo import USERS_COL, get_col

user_id = sys.argv[1] if len(sys.argv) > 1 else "admin"

get_col(USERS_COL).update_one(
    {"id": user_id},
    {"$set": {"id": user_id, "name": user_id.title(), "editor": True, "admin": True}},
    upsert=True
)
print("seeded", user_id)
