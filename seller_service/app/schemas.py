from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from decimal import Decimal
from enum import Enum

from seller_service.app.core.constants import DEFAULT_PAGE_SIZE, MAX_MONEY, MAX_PAGE_SIZE, SELLER_SORT_FIELDS
from seller_service.app.models.seller import BusinessType, SellerStatus, VerificationStatus


def _strip(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


# --- Seller profile ---
class SellerProfileFields(BaseModel):
    business_type: Optional[BusinessType] = None
    business_email: Optional[str] = Field(default=None, max_length=255)
    business_phone: Optional[str] = Field(default=None, max_length=50)
    tax_id: Optional[str] = Field(default=None, max_length=100)
    business_address: Optional[str] = None
    business_city: Optional[str] = Field(default=None, max_length=100)
    business_state: Optional[str] = Field(default=None, max_length=100)
    business_country: Optional[str] = Field(default=None, max_length=100)
    business_postal_code: Optional[str] = Field(default=None, max_length=20)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    website: Optional[str] = Field(default=None, max_length=255)

    @field_validator(
        "business_email", "business_phone", "tax_id", "business_address", "business_city",
        "business_state", "business_country", "business_postal_code", "logo_url", "description",
        "website",
    )
    @classmethod
    def strip_text_fields(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("business_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and ("@" not in v or v.startswith("@") or v.endswith("@")):
            raise ValueError("Invalid business email")
        return v


class SellerCreate(SellerProfileFields):
    business_name: str = Field(..., min_length=1, max_length=255)
    business_type: BusinessType = BusinessType.INDIVIDUAL

    @field_validator("business_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Business name must not be blank")
        return v


class SellerProfileUpdate(SellerProfileFields):
    business_name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator("business_name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class AdminSellerUpdate(SellerProfileUpdate):
    # Range is checked by the service so the error carries a machine-readable code
    commission_rate: Optional[Decimal] = None


class BankingInfoUpdate(BaseModel):
    bank_name: Optional[str] = Field(default=None, max_length=255)
    bank_account_holder: Optional[str] = Field(default=None, max_length=255)
    bank_account_number: Optional[str] = Field(default=None, max_length=255)
    bank_routing_number: Optional[str] = Field(default=None, max_length=50)
    payment_method: Optional[str] = Field(default=None, max_length=50)

    @field_validator("*")
    @classmethod
    def strip_all(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


# --- Listing ---
class SellerFilter(BaseModel):
    status: Optional[SellerStatus] = None
    verification_status: Optional[VerificationStatus] = None
    min_rating: Optional[Decimal] = Field(default=None, ge=0, le=5)
    search: Optional[str] = Field(default=None, max_length=255)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)
    sort_by: str = "created_at"
    sort_order: str = "desc"

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v: str) -> str:
        if v not in SELLER_SORT_FIELDS:
            raise ValueError(f"sort_by must be one of {SELLER_SORT_FIELDS}")
        return v

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, v: str) -> str:
        v = v.lower()
        if v not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'")
        return v

    @field_validator("search")
    @classmethod
    def strip_search(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class SellerListResponse(BaseModel):
    sellers: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int


# --- Lifecycle / metrics bodies ---
class ReasonBody(BaseModel):
    reason: str = ""


class SaleRecord(BaseModel):
    amount: Decimal = Field(..., ge=0, le=MAX_MONEY)


class RatingUpdate(BaseModel):
    rating: Decimal
    review_count: Optional[int] = Field(default=None, ge=0)


# --- Analytics ---
class AnalyticsPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL_TIME = "all_time"


class SalesTrendPoint(BaseModel):
    date: str
    sales: int
    revenue: float
    orders: int
    average_order_value: float
