from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum
from bson import ObjectId

from config.constants import DEFAULT_PRODUCT_STOCK


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

    price: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)

    stock: int = Field(DEFAULT_PRODUCT_STOCK, ge=0)
    image: Optional[str] = None
    insta_video: Optional[str] = Field("", alias="instaVideo")

    model_config = {"populate_by_name": True}


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1)
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None
    image: Optional[str] = None
    insta_video: Optional[str] = Field(None, alias="instaVideo")

    model_config = {"populate_by_name": True, "use_enum_values": True}


class ProductInDB(BaseModel):
    name: str
    description: Optional[str]

    price: float
    category: str

    stock: int
    image: Optional[str] = None
    insta_video: str = ""
    rating: float = 0
    reviews: int = 0

    seller_id: ObjectId
    status: ProductStatus = ProductStatus.ACTIVE

    created_at: datetime
    updated_at: datetime

    model_config = {"arbitrary_types_allowed": True, "use_enum_values": True, "validate_default": True}
