from bson import ObjectId


async def seller_product_ids(db, seller_id: ObjectId) -> set:
    cursor = db.products.find({"seller_id": seller_id}, {"_id": 1})
    return {p["_id"] async for p in cursor}


def orders_with_products(product_ids) -> dict:
    """Orders are linked to sellers only through their line items."""
    return {"items.product_id": {"$in": list(product_ids)}}


def seller_line_items_total(order: dict, product_ids: set) -> float:
    return sum(
        (item.get("price") or 0) * (item.get("quantity") or 1)
        for item in order.get("items") or []
        if item.get("product_id") in product_ids
    )


async def seller_order_stats(db, seller_id: ObjectId) -> dict:
    product_ids = await seller_product_ids(db, seller_id)

    order_count = 0
    revenue = 0
    if product_ids:
        async for order in db.orders.find(orders_with_products(product_ids)):
            order_count += 1
            revenue += seller_line_items_total(order, product_ids)

    return {
        "productCount": len(product_ids),
        "orderCount": order_count,
        "totalRevenue": revenue,
    }
