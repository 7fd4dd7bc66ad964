from motor.motor_asyncio import AsyncIOMotorClient

from config.env import MONGO_URI

_client = None
_db = None


def get_db():
    global _client, _db
    if _db is None:
        if not MONGO_URI:
            raise RuntimeError("MONGODB_URI not set")
        _client = AsyncIOMotorClient(MONGO_URI)
        _db = _client.get_default_database()
    return _db
