import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from pymongo.errors import PyMongoError

from config.env import SESSION_TTL_MINUTES
from utils.errors import DependencyError

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Binding from an opaque session handle to a seller id and role."""

    @abstractmethod
    async def bind(self, handle: str, seller_id: str, role: str) -> None:
        ...

    @abstractmethod
    async def unbind(self, handle: str) -> None:
        """Drop the binding. Unknown handles are a no-op."""

    @abstractmethod
    async def current_seller_id(self, handle: str) -> Optional[str]:
        ...


class MongoSessionStore(SessionStore):

    def __init__(self, db, ttl_minutes: int = SESSION_TTL_MINUTES):
        self.collection = db.seller_sessions
        self.ttl = timedelta(minutes=ttl_minutes)

    async def bind(self, handle: str, seller_id: str, role: str) -> None:
        now = datetime.utcnow()
        try:
            await self.collection.update_one(
                {"handle": handle},
                {"$set": {
                    "seller_id": seller_id,
                    "role": role,
                    "created_at": now,
                    "expires_at": now + self.ttl,
                }},
                upsert=True,
            )
        except PyMongoError:
            logger.exception("SESSION_BIND_ERROR seller=%s", seller_id)
            raise DependencyError()

    async def unbind(self, handle: str) -> None:
        try:
            await self.collection.delete_one({"handle": handle})
        except PyMongoError:
            logger.exception("SESSION_UNBIND_ERROR")
            raise DependencyError()

    async def current_seller_id(self, handle: str) -> Optional[str]:
        try:
            doc = await self.collection.find_one({"handle": handle})
        except PyMongoError:
            logger.exception("SESSION_READ_ERROR")
            raise DependencyError()
        if not doc:
            return None
        # TTL monitor only sweeps once a minute
        if doc.get("expires_at") and datetime.utcnow() > doc["expires_at"]:
            return None
        return doc.get("seller_id")
