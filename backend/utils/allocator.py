"""
Seller ID allocation.

The pre-check (`find_by_field`) only skips obviously taken candidates. The real
claim is `insert_unique`, which the store backs with a unique index, so two
signups racing for the same candidate cannot both win: the loser sees
DuplicateKey("seller_id") and tries a fresh candidate.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable, Union

from config.constants import SELLER_ID_MAX, SELLER_ID_MIN, SELLER_ID_PREFIX
from config.env import SELLER_ID_MAX_ATTEMPTS
from models.seller import Seller
from utils.errors import DuplicateKey
from utils.seller_store import SellerStore

logger = logging.getLogger(__name__)

_rng = random.SystemRandom()


@dataclass(frozen=True)
class Allocated:
    seller: Seller

    @property
    def seller_id(self) -> str:
        return self.seller.seller_id


@dataclass(frozen=True)
class Exhausted:
    attempts: int


AllocationResult = Union[Allocated, Exhausted]


def random_seller_id() -> str:
    return f"{SELLER_ID_PREFIX}{_rng.randint(SELLER_ID_MIN, SELLER_ID_MAX)}"


async def allocate_seller(
    store: SellerStore,
    build: Callable[[str], Seller],
    *,
    max_attempts: int = SELLER_ID_MAX_ATTEMPTS,
    generate: Callable[[], str] = random_seller_id,
) -> AllocationResult:
    """
    Claim a fresh seller ID by inserting the record `build(seller_id)`.

    DuplicateKey on any field other than seller_id (e.g. email) is not a
    collision and propagates to the caller.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate()

        if await store.find_by_field("seller_id", candidate):
            logger.info("SELLER_ID_TAKEN candidate=%s attempt=%s", candidate, attempt)
            continue

        seller = build(candidate)
        try:
            await store.insert_unique(seller)
        except DuplicateKey as e:
            if e.field != "seller_id":
                raise
            logger.info("SELLER_ID_RACE_LOST candidate=%s attempt=%s", candidate, attempt)
            continue

        return Allocated(seller)

    logger.error("SELLER_ID_EXHAUSTED attempts=%s", max_attempts)
    return Exhausted(max_attempts)
