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
    # Sellers
    await _create_index_safe(
        db.sellers,
        [("email", ASCENDING)],
        name="sellers_email_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.sellers,
        [("national_id", ASCENDING)],
        name="sellers_national_id_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.sellers,
        [("status", ASCENDING), ("created_at", DESCENDING)],
        name="sellers_status_created_idx",
    )

    # Products
    await _create_index_safe(
        db.products,
        [("seller_id", ASCENDING), ("created_at", DESCENDING)],
        name="products_seller_created_idx",
    )
    await _create_index_safe(
        db.products,
        [("status", ASCENDING), ("created_at", DESCENDING)],
        name="products_status_created_idx",
    )

    # Orders
    await _create_index_safe(
        db.orders,
        [("items.product_id", ASCENDING)],
        name="orders_item_product_idx",
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
        [("created_at", DESCENDING)],
        name="audit_logs_created_idx",
    )

    # Contact messages
    await _create_index_safe(
        db.messages,
        [("created_at", DESCENDING)],
        name="messages_created_idx",
    )
