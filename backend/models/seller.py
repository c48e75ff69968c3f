from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum


class SellerStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class BankDetailsInDB(BaseModel):
    bank_name: str
    account_holder: str
    account_number_encrypted: str
    account_number_last4: str
    routing_code: str


class EmailOtpInDB(BaseModel):
    code_hash: Optional[str] = None
    expires_at: Optional[datetime] = None
    attempts: int = 0


class WithdrawalInDB(BaseModel):
    model_config = {"use_enum_values": True, "validate_default": True}

    amount: float = Field(..., gt=0)
    request_date: datetime
    status: WithdrawalStatus = WithdrawalStatus.PENDING
    bank_details: BankDetailsInDB
    completed_date: Optional[datetime] = None
    notes: Optional[str] = None


class SellerInDB(BaseModel):
    model_config = {"use_enum_values": True, "validate_default": True}

    name: str
    email: EmailStr
    phone: str
    password: str                   # bcrypt hash
    national_id: str
    id_document: str
    bank_details: BankDetailsInDB

    # lifecycle
    status: SellerStatus = SellerStatus.PENDING
    is_approved: bool = False
    is_email_verified: bool = False
    email_verification_otp: EmailOtpInDB = EmailOtpInDB()
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None

    # denormalized counters
    total_earnings: float = 0
    total_orders: int = 0
    total_products: int = 0
    rating: float = 0
    review_count: int = 0

    withdrawals: List[WithdrawalInDB] = []

    created_at: datetime
    updated_at: datetime
