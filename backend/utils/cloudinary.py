import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from config.env import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
)
from utils.errors import ExternalServiceError

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


def upload_image(file, folder: str) -> str:
    """Upload an image and return its secure URL."""
    try:
        result = cloudinary.uploader.upload(
            file,
            folder=folder,
            resource_type="image",
        )
    except cloudinary.exceptions.Error as e:
        raise ExternalServiceError(f"Image upload failed: {e}")

    url = result.get("secure_url")
    if not url:
        raise ExternalServiceError("Image upload failed")
    return url
