from fastapi import APIRouter, Depends, Query
from typing import Optional
import math

from config.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from database import get_db
from models.product import ProductStatus
from utils.errors import NotFound
from utils.guards import parse_object_id
from utils.serializers import serialize_product
from utils.validators import search_regex

router = APIRouter(prefix="/products", tags=["Products"])


# =========================
# PUBLIC CATALOG
# =========================

@router.get("")
async def list_products(
    search: Optional[str] = Query(None, description="Search query"),
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db=Depends(get_db),
):
    query: dict = {"status": ProductStatus.ACTIVE.value}

    # ---- text search ----
    if search and search.strip():
        pattern = search_regex(search)
        query["$or"] = [
            {"name": pattern},
            {"description": pattern},
            {"category": pattern},
        ]

    # ---- filters ----
    if category:
        query["category"] = category

    total = await db.products.count_documents(query)

    cursor = (
        db.products
        .find(query)
        .sort("created_at", -1)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    products = [serialize_product(p) async for p in cursor]

    return {
        "products": products,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        },
    }


@router.get("/{product_id}")
async def get_product(product_id: str, db=Depends(get_db)):
    product = await db.products.find_one({
        "_id": parse_object_id(product_id, "product id"),
        "status": ProductStatus.ACTIVE.value,
    })

    if not product:
        raise NotFound("Product not found")

    return {"product": serialize_product(product)}
