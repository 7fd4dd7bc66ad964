from typing import Iterable, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from database import get_db
from models.seller import Role, Seller
from utils.errors import Forbidden, NotFound, Unauthenticated
from utils.jwt import session_handle_from_token
from utils.seller_store import MongoSellerStore, SellerStore
from utils.sessions import MongoSessionStore, SessionStore

security = HTTPBearer(auto_error=False)


def get_seller_store(db=Depends(get_db)) -> SellerStore:
    return MongoSellerStore(db)


def get_session_store(db=Depends(get_db)) -> SessionStore:
    return MongoSessionStore(db)


def get_session_handle(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    if not credentials:
        return None
    return session_handle_from_token(credentials.credentials)


async def authorize(
    store: SellerStore,
    sessions: SessionStore,
    handle: Optional[str],
    roles: Iterable[Role | str],
) -> Seller:
    """
    Resolve a session handle to a seller and check its current role.
    Read-only: safe to run on every protected request.
    """
    seller_id = await sessions.current_seller_id(handle) if handle else None
    if not seller_id:
        raise Unauthenticated()

    # Role comes from the stored record, not the token claims
    seller = await store.find_by_field("seller_id", seller_id)
    if not seller:
        raise NotFound()

    allowed = {Role(r) for r in roles}
    if seller.role not in allowed:
        raise Forbidden()

    return seller


def require_role(*roles: Role | str):
    # Unknown role names fail here, at route definition
    roles = tuple(Role(r) for r in roles)

    async def checker(
        handle: Optional[str] = Depends(get_session_handle),
        store: SellerStore = Depends(get_seller_store),
        sessions: SessionStore = Depends(get_session_store),
    ) -> Seller:
        return await authorize(store, sessions, handle, roles)

    return checker


get_current_seller = require_role(Role.SELLER, Role.ADMIN)
