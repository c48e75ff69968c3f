from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional
import logging

from database import get_db
from utils.errors import ValidationError
from utils.validators import normalize_email

router = APIRouter(
    prefix="/contact",
    tags=["Contact"]
)

logger = logging.getLogger(__name__)


# ======================================================
# SCHEMAS
# ======================================================

class ContactMessage(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


# ======================================================
# CONTACT FORM
# ======================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_contact_message(
    data: ContactMessage,
    db=Depends(get_db),
):
    if not data.name or not data.email or not data.message:
        raise ValidationError("All required fields must be filled")

    now = datetime.utcnow()
    doc = {
        "name": data.name,
        "email": normalize_email(data.email),
        "subject": data.subject or "",
        "message": data.message,
        "created_at": now,
        "updated_at": now,
    }
    result = await db.messages.insert_one(doc)
    logger.info("Contact message %s stored from %s", result.inserted_id, doc["email"])

    return {
        "success": True,
        "message": "Message saved successfully",
    }
