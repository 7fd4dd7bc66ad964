from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Sellers: the unique indexes are what make signup claims atomic
    await _create_index_safe(
        db.sellers,
        [("seller_id", ASCENDING)],
        name="sellers_seller_id_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.sellers,
        [("email", ASCENDING)],
        name="sellers_email_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.sellers,
        [("phone_number", ASCENDING)],
        name="sellers_phone_idx",
    )
    await _create_index_safe(
        db.sellers,
        [("verification_token", ASCENDING)],
        name="sellers_verification_token_idx",
        sparse=True,
    )

    # Sessions
    await _create_index_safe(
        db.seller_sessions,
        [("handle", ASCENDING)],
        name="seller_sessions_handle_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.seller_sessions,
        [("expires_at", ASCENDING)],
        name="seller_sessions_expires_ttl_idx",
        expireAfterSeconds=0,
    )

    # Rate limits
    await _create_index_safe(
        db.rate_limits,
        [("key", ASCENDING)],
        name="rate_limits_key_unique_idx",
        unique=True,
    )

    # Audit
    await _create_index_safe(
        db.audit_logs,
        [("actor_id", ASCENDING), ("created_at", DESCENDING)],
        name="audit_logs_actor_created_at_idx",
    )
