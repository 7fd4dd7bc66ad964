import logging
from datetime import datetime

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


async def log_audit(
    db,
    actor_id: str,
    actor_role: str,
    action: str,
    metadata: dict | None = None
):
    # Audit trail is secondary to the state change it records
    try:
        await db.audit_logs.insert_one({
            "actor_id": actor_id,
            "actor_role": actor_role,
            "action": action,
            "metadata": metadata or {},
            "created_at": datetime.utcnow()
        })
    except PyMongoError:
        logger.exception("AUDIT_WRITE_ERROR action=%s actor=%s", action, actor_id)
