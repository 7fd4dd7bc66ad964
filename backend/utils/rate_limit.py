import logging
from datetime import datetime, timedelta

from pymongo.errors import PyMongoError

from utils.errors import DependencyError, RateLimited

logger = logging.getLogger(__name__)


async def rate_limit(
    db,
    key: str,
    max_requests: int,
    window_seconds: int,
):
    """
    Fixed-window counter in `rate_limits`, one document per key.
    key = purpose + email / seller id
    """
    now = datetime.utcnow()
    window_start = now - timedelta(seconds=window_seconds)

    try:
        record = await db.rate_limits.find_one({"key": key})

        if record and record["created_at"] < window_start:
            # Window elapsed: start a new one
            await db.rate_limits.update_one(
                {"key": key},
                {"$set": {"count": 1, "created_at": now}},
            )
            return

        if record and record["count"] >= max(1, max_requests):
            raise RateLimited()

        await db.rate_limits.update_one(
            {"key": key},
            {
                "$inc": {"count": 1},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
        )
    except PyMongoError:
        logger.exception("RATE_LIMIT_ERROR key=%s", key)
        raise DependencyError()
