"""
Seller business rules as plain functions.

Each check returns a list of FieldError (empty = valid) so the service can
report every failed precondition at once before touching state.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from seller_service.app.core.constants import (
    MAX_COMMISSION_RATE,
    MAX_MONEY,
    MAX_RATING,
    MIN_COMMISSION_RATE,
    MIN_RATING,
    VERIFICATION_REQUIRED_FIELDS,
)
from seller_service.app.models.seller import SellerStatus, VerificationStatus


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


STATUS_TRANSITIONS = {
    SellerStatus.PENDING: {SellerStatus.ACTIVE, SellerStatus.REJECTED, SellerStatus.SUSPENDED},
    SellerStatus.ACTIVE: {SellerStatus.SUSPENDED},
    SellerStatus.SUSPENDED: {SellerStatus.ACTIVE},
    SellerStatus.REJECTED: {SellerStatus.PENDING, SellerStatus.SUSPENDED},
}

VERIFICATION_TRANSITIONS = {
    VerificationStatus.UNVERIFIED: {VerificationStatus.PENDING},
    VerificationStatus.PENDING: {VerificationStatus.VERIFIED, VerificationStatus.REJECTED},
    VerificationStatus.VERIFIED: set(),
    VerificationStatus.REJECTED: {VerificationStatus.PENDING},
}


def can_transition_status(current: SellerStatus, new: SellerStatus) -> bool:
    return new in STATUS_TRANSITIONS.get(SellerStatus(current), set())


def can_transition_verification(current: VerificationStatus, new: VerificationStatus) -> bool:
    return new in VERIFICATION_TRANSITIONS.get(VerificationStatus(current), set())


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_for_verification(seller: Mapping[str, Any]) -> List[FieldError]:
    """Every business contact field must be filled before verification."""
    return [
        FieldError(field, label)
        for field, label in VERIFICATION_REQUIRED_FIELDS
        if _is_blank(seller.get(field))
    ]


def validate_reason(reason: Optional[str], field: str = "reason") -> List[FieldError]:
    if _is_blank(reason):
        return [FieldError(field, "Reason is required")]
    return []


def _to_decimal(value: Any) -> Optional[Decimal]:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return result if result.is_finite() else None


def validate_rating(rating: Any) -> List[FieldError]:
    value = _to_decimal(rating)
    if value is None or value < MIN_RATING or value > MAX_RATING:
        return [FieldError("rating", f"Rating must be between {MIN_RATING} and {MAX_RATING}")]
    return []


def validate_review_count(review_count: Optional[int]) -> List[FieldError]:
    if review_count is not None and review_count < 0:
        return [FieldError("review_count", "Review count must not be negative")]
    return []


def validate_commission_rate(rate: Any) -> List[FieldError]:
    if rate is None:
        return []
    value = _to_decimal(rate)
    if value is None or value < MIN_COMMISSION_RATE or value > MAX_COMMISSION_RATE:
        return [FieldError(
            "commission_rate",
            f"Commission rate must be between {MIN_COMMISSION_RATE} and {MAX_COMMISSION_RATE}",
        )]
    return []


def validate_sale_amount(amount: Any, current_revenue: Any = 0) -> List[FieldError]:
    value = _to_decimal(amount)
    if value is None or value < 0:
        return [FieldError("amount", "Sale amount must be a non-negative number")]
    if value > MAX_MONEY:
        return [FieldError("amount", f"Sale amount must not exceed {MAX_MONEY}")]
    revenue = _to_decimal(current_revenue) or Decimal("0")
    if revenue + value > MAX_MONEY:
        return [FieldError("total_revenue", f"Total revenue would exceed {MAX_MONEY}")]
    return []


def validate_can_delete(seller: Mapping[str, Any]) -> List[FieldError]:
    errors = []
    if (seller.get("total_products") or 0) > 0:
        errors.append(FieldError("total_products", "Cannot delete seller with existing products"))
    if (seller.get("total_sales") or 0) > 0:
        errors.append(FieldError("total_sales", "Cannot delete seller with sales history"))
    return errors


def errors_to_dict(errors: List[FieldError]) -> List[Dict[str, str]]:
    return [{"field": e.field, "message": e.message} for e in errors]
