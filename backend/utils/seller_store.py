"""
Durable seller records.

`SellerStore` is what the auth flows depend on; `MongoSellerStore` is the
production implementation over the `sellers` collection. Uniqueness of
`seller_id` and `email` is enforced by unique indexes (see utils/indexes.py),
so `insert_unique` is the one atomic claim in the signup path.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from models.seller import Seller
from utils.errors import DependencyError, DuplicateKey

logger = logging.getLogger(__name__)

LOOKUP_FIELDS = {"seller_id", "email", "phone_number", "verification_token"}


class SellerStore(ABC):

    @abstractmethod
    async def find_by_field(self, field: str, value) -> Optional[Seller]:
        ...

    @abstractmethod
    async def find_by_id_and_contact(self, seller_id: str, email_or_phone: str) -> Optional[Seller]:
        """Match `seller_id` AND (email OR phone number)."""

    @abstractmethod
    async def insert_unique(self, seller: Seller) -> None:
        """Insert a new record. Raises DuplicateKey(field) on a unique index hit."""

    @abstractmethod
    async def update(self, seller: Seller) -> None:
        """Persist the full record, last writer wins."""


def _duplicate_field(exc: DuplicateKeyError) -> str:
    details = exc.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    if key_pattern:
        return next(iter(key_pattern))
    message = str(exc)
    for field in ("seller_id", "email"):
        if field in message:
            return field
    return "unknown"


class MongoSellerStore(SellerStore):

    def __init__(self, db):
        self.collection = db.sellers

    async def find_by_field(self, field: str, value) -> Optional[Seller]:
        if field not in LOOKUP_FIELDS:
            raise ValueError(f"Unsupported lookup field: {field}")
        try:
            doc = await self.collection.find_one({field: value})
        except PyMongoError:
            logger.exception("SELLER_STORE_READ_ERROR field=%s", field)
            raise DependencyError()
        return Seller.from_document(doc)

    async def find_by_id_and_contact(self, seller_id: str, email_or_phone: str) -> Optional[Seller]:
        try:
            doc = await self.collection.find_one({
                "seller_id": seller_id,
                "$or": [
                    {"email": email_or_phone},
                    {"phone_number": email_or_phone},
                ],
            })
        except PyMongoError:
            logger.exception("SELLER_STORE_READ_ERROR seller=%s", seller_id)
            raise DependencyError()
        return Seller.from_document(doc)

    async def insert_unique(self, seller: Seller) -> None:
        try:
            await self.collection.insert_one(seller.to_document())
        except DuplicateKeyError as e:
            raise DuplicateKey(_duplicate_field(e))
        except PyMongoError:
            logger.exception("SELLER_STORE_INSERT_ERROR seller=%s", seller.seller_id)
            raise DependencyError()

    async def update(self, seller: Seller) -> None:
        seller.updated_at = datetime.utcnow()
        doc = seller.to_document()
        doc.pop("seller_id")
        doc.pop("created_at")
        try:
            await self.collection.update_one(
                {"seller_id": seller.seller_id},
                {"$set": doc},
            )
        except PyMongoError:
            logger.exception("SELLER_STORE_UPDATE_ERROR seller=%s", seller.seller_id)
            raise DependencyError()
