# backend/routes/uploads.py

import asyncio
import io

from fastapi import APIRouter, Depends, UploadFile, File

from config.constants import MAX_IMAGE_BYTES
from utils.cloudinary import upload_image
from utils.errors import ValidationError
from utils.security import require_approved_seller

router = APIRouter(prefix="/uploads", tags=["Uploads"])


# =========================
# UPLOAD PRODUCT IMAGE
# =========================
@router.post("/product-image")
async def upload_product_image(
    file: UploadFile = File(...),
    seller=Depends(require_approved_seller),
):
    # validate file type
    if not file.content_type or not file.content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed")

    contents = await file.read()
    if not contents:
        raise ValidationError("Image file is empty")
    if len(contents) > MAX_IMAGE_BYTES:
        raise ValidationError("Image must be 5MB or smaller")

    # cloudinary client is blocking
    image_url = await asyncio.to_thread(
        upload_image,
        io.BytesIO(contents),
        f"expressbuy/products/{seller['_id']}",
    )

    # nothing is saved here; the URL is sent with the product create/update call
    return {
        "message": "Product image uploaded",
        "imageUrl": image_url,
    }
