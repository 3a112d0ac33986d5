import enum
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import DECIMAL, DateTime, Enum, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from seller_service.app.core.base import Base


class SellerStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class VerificationStatus(str, enum.Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class BusinessType(str, enum.Enum):
    INDIVIDUAL = "individual"
    SOLE_PROPRIETOR = "sole_proprietor"
    LLC = "llc"
    CORPORATION = "corporation"
    PARTNERSHIP = "partnership"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


BANKING_FIELDS = (
    "bank_name",
    "bank_account_holder",
    "bank_account_number",
    "bank_routing_number",
    "payment_method",
)


class Seller(Base):
    __tablename__ = 'sellers'
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # One seller account per user of the User Service (no FK, the user lives in another database)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Business information
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    business_type: Mapped[BusinessType] = mapped_column(
        Enum(BusinessType, name="business_type", values_callable=_enum_values),
        default=BusinessType.INDIVIDUAL,
        nullable=False,
    )
    business_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    business_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    tax_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    business_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    business_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    business_state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    business_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    business_postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Public profile
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Lifecycle
    status: Mapped[SellerStatus] = mapped_column(
        Enum(SellerStatus, name="seller_status", values_callable=_enum_values),
        default=SellerStatus.PENDING,
        nullable=False,
    )
    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus, name="verification_status", values_callable=_enum_values),
        default=VerificationStatus.UNVERIFIED,
        nullable=False,
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    verified_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # admin user id
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    suspension_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Ratings & sales metrics
    rating: Mapped[Decimal] = mapped_column(DECIMAL(3, 2), default=Decimal("0"), nullable=False)
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_products: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_sales: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_revenue: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), default=Decimal("0"), nullable=False)
    # null = platform default (PLATFORM_COMMISSION_RATE)
    commission_rate: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(5, 2), nullable=True)

    # Banking (never serialized by default)
    bank_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bank_account_holder: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bank_account_number: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bank_routing_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="bank_transfer")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Optimistic concurrency: bumped on every update
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    __table_args__ = (
        Index('ix_sellers_user_id', 'user_id', unique=True),
        Index('ix_sellers_status', 'status'),
        Index('ix_sellers_verification_status', 'verification_status'),
        Index('ix_sellers_rating', 'rating'),
        Index('ix_sellers_created_at', 'created_at'),
        Index('ix_sellers_business_name', 'business_name'),
    )

    def to_dict(self, include_banking: bool = False) -> Dict[str, Any]:
        """Plain JSON-serialisable snapshot, used for API responses and the cache."""
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "business_name": self.business_name,
            "business_type": _value(self.business_type),
            "business_email": self.business_email,
            "business_phone": self.business_phone,
            "tax_id": self.tax_id,
            "business_address": self.business_address,
            "business_city": self.business_city,
            "business_state": self.business_state,
            "business_country": self.business_country,
            "business_postal_code": self.business_postal_code,
            "logo_url": self.logo_url,
            "description": self.description,
            "website": self.website,
            "status": _value(self.status),
            "verification_status": _value(self.verification_status),
            "verified_at": _iso(self.verified_at),
            "verified_by": self.verified_by,
            "rejection_reason": self.rejection_reason,
            "suspension_reason": self.suspension_reason,
            "rating": float(self.rating) if self.rating is not None else 0.0,
            "total_reviews": self.total_reviews or 0,
            "total_products": self.total_products or 0,
            "total_sales": self.total_sales or 0,
            "total_revenue": float(self.total_revenue) if self.total_revenue is not None else 0.0,
            "commission_rate": float(self.commission_rate) if self.commission_rate is not None else None,
            "has_banking_info": bool(self.bank_account_number),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "last_login_at": _iso(self.last_login_at),
            "version": self.version,
        }
        if include_banking:
            for field in BANKING_FIELDS:
                data[field] = getattr(self, field)
        return data

    def __repr__(self):
        return f"<Seller(id={self.id}, user_id={self.user_id}, status={_value(self.status)})>"


def _value(member) -> Optional[str]:
    if member is None:
        return None
    return member.value if isinstance(member, enum.Enum) else str(member)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
