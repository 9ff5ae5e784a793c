import logging
import datetime
from db_mongo import AUDIT_COL, get_col

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("pagebook")

def write_audit(action, username, page_id, before, after):
    get_col(AUDIT_COL).insert_one({
        "ts": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "user": username, "action": action, "page_id": page_id,
        "before": before, "after": after
    })
