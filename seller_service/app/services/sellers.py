# seller_service/app/services/sellers.py
"""
Seller service - registration, verification workflow, suspension and metrics.

All writes go repository first, cache invalidation second. Reads are
read-through: cache, then repository, then populate the cache.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from seller_service.app.core.constants import ONE_CENT, ZERO
from seller_service.app.core.exceptions import ServiceError
from seller_service.app.core.logging import get_logger
from seller_service.app.models.seller import BANKING_FIELDS, BusinessType, SellerStatus, VerificationStatus
from seller_service.app.repositories.sellers import SellerRepository, StaleSellerError
from seller_service.app.schemas import (
    AdminSellerUpdate,
    BankingInfoUpdate,
    SellerCreate,
    SellerFilter,
    SellerProfileUpdate,
)
from seller_service.app.services.cache import CacheService
from seller_service.app.services.events import EventSink, LoggingEventSink
from seller_service.app.services.users import UserNotFoundError, UserServiceClient
from seller_service.app.services import validation

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SellerServiceError(ServiceError):
    """Base exception for seller service errors."""
    code = "seller_error"


class SellerNotFoundError(SellerServiceError):
    code = "not_found"

    def __init__(self, seller_id: Optional[int] = None, user_id: Optional[int] = None):
        if user_id is not None:
            super().__init__(f"Seller not found for user {user_id}", 404, {"user_id": user_id})
        else:
            super().__init__(f"Seller with id {seller_id} not found", 404, {"seller_id": seller_id})


class SellerExistsError(SellerServiceError):
    code = "conflict"

    def __init__(self, user_id: int):
        super().__init__("User already has a seller account", 409, {"user_id": user_id})


class InvalidUserError(SellerServiceError):
    code = "invalid_user"

    def __init__(self, user_id: int):
        super().__init__(
            "User not found or inactive. Cannot create seller account.", 400, {"user_id": user_id}
        )


class InvalidSellerStateError(SellerServiceError):
    code = "invalid_state"

    def __init__(self, message: str, current: Dict[str, Any], required: Dict[str, Any]):
        super().__init__(message, 400, {"current": current, "required": required})


class MissingFieldsError(SellerServiceError):
    code = "missing_fields"

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(
            f"Cannot submit for verification. Missing required fields: {', '.join(fields)}",
            400,
            {"missing_fields": fields},
        )


class MissingReasonError(SellerServiceError):
    code = "missing_reason"

    def __init__(self, action: str):
        super().__init__(f"{action.capitalize()} reason is required", 400, {"action": action})


class InvalidRangeError(SellerServiceError):
    code = "invalid_range"

    def __init__(self, errors: List[validation.FieldError]):
        super().__init__(
            "; ".join(e.message for e in errors), 400, {"errors": validation.errors_to_dict(errors)}
        )


class AccountSuspendedError(SellerServiceError):
    code = "account_suspended"

    def __init__(self, action: str):
        super().__init__(f"Cannot {action} while account is suspended", 400, {"status": SellerStatus.SUSPENDED.value})


class HasDependentsError(SellerServiceError):
    code = "has_dependents"

    def __init__(self, errors: List[validation.FieldError]):
        super().__init__(
            errors[0].message, 400, {"errors": validation.errors_to_dict(errors)}
        )


class ConcurrentModificationError(SellerServiceError):
    code = "concurrent_modification"

    def __init__(self, seller_id: int):
        super().__init__(
            f"Seller {seller_id} was modified by another request, retry the operation",
            409,
            {"seller_id": seller_id},
        )


def _state(seller: Dict[str, Any]) -> Dict[str, Any]:
    return {"status": seller["status"], "verification_status": seller["verification_status"]}


class SellerService:
    """Service class for the seller lifecycle."""

    def __init__(
        self,
        repository: SellerRepository,
        cache: CacheService,
        user_client: UserServiceClient,
        events: Optional[EventSink] = None,
        platform_commission_rate: Decimal = Decimal("10.00"),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.cache = cache
        self.user_client = user_client
        self.events = events or LoggingEventSink()
        self.platform_commission_rate = platform_commission_rate
        self.clock = clock

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def _present(self, seller: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(seller)
        rate = data.get("commission_rate")
        data["effective_commission_rate"] = (
            rate if rate is not None else float(self.platform_commission_rate)
        )
        return data

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _populate(self, snapshot: Dict[str, Any]):
        """
        Cache a snapshot read from the repository.

        A write that commits between our read and the set has already run its
        invalidation, so the version is re-read after the set and the entry is
        dropped when it no longer matches the row.
        """
        await self.cache.set_seller(snapshot)
        if not self.cache.enabled:
            return
        current = await self.repository.get_version(snapshot["id"])
        if current != snapshot["version"]:
            logger.debug("Seller changed while populating cache", seller_id=snapshot["id"])
            await self.cache.invalidate_seller(snapshot["id"], snapshot["user_id"])

    async def _load(self, seller_id: int) -> Dict[str, Any]:
        cached = await self.cache.get_seller(seller_id)
        if cached:
            logger.debug("Cache hit for seller", seller_id=seller_id)
            return cached

        seller = await self.repository.find_by_id(seller_id)
        if seller is None:
            raise SellerNotFoundError(seller_id)

        snapshot = seller.to_dict()
        await self._populate(snapshot)
        return snapshot

    async def get_seller_by_id(self, seller_id: int) -> Dict[str, Any]:
        """Get seller by id (read-through cache)."""
        return self._present(await self._load(seller_id))

    async def get_seller_by_user_id(self, user_id: int) -> Dict[str, Any]:
        """Get seller by owning user id (read-through cache)."""
        cached = await self.cache.get_seller_by_user(user_id)
        if cached:
            logger.debug("Cache hit for seller by user", user_id=user_id)
            return self._present(cached)

        seller = await self.repository.find_by_user_id(user_id)
        if seller is None:
            raise SellerNotFoundError(user_id=user_id)

        snapshot = seller.to_dict()
        await self._populate(snapshot)
        return self._present(snapshot)

    async def list_sellers(self, filters: Optional[SellerFilter] = None) -> Dict[str, Any]:
        """Filtered, paginated listing. Bypasses the cache."""
        filters = filters or SellerFilter()
        sellers = await self.repository.find_all(filters)
        total = await self.repository.count(filters)
        return {
            "sellers": [self._present(s.to_dict()) for s in sellers],
            "total": total,
            "limit": filters.limit,
            "offset": filters.offset,
        }

    async def get_pending_verification(self) -> List[Dict[str, Any]]:
        """Sellers waiting for an admin decision, oldest first."""
        sellers = await self.repository.find_pending_verification()
        return [self._present(s.to_dict()) for s in sellers]

    async def get_banking_info(self, seller_id: int) -> Dict[str, Any]:
        """Banking details are never cached; always read from the repository."""
        seller = await self.repository.find_by_id(seller_id)
        if seller is None:
            raise SellerNotFoundError(seller_id)
        return {field: getattr(seller, field) for field in BANKING_FIELDS}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _write(self, snapshot: Dict[str, Any], values: Dict[str, Any]) -> Dict[str, Any]:
        """Persist values guarded by the snapshot's version, then invalidate the cache."""
        seller_id = snapshot["id"]
        try:
            updated = await self.repository.update(
                seller_id, values, expected_version=snapshot.get("version")
            )
        except StaleSellerError:
            # The snapshot we validated against is outdated; drop it so a retry reads fresh state
            await self.cache.invalidate_seller(seller_id, snapshot["user_id"])
            if await self.repository.find_by_id(seller_id) is None:
                raise SellerNotFoundError(seller_id)
            logger.warning("Concurrent seller modification", seller_id=seller_id)
            raise ConcurrentModificationError(seller_id)

        await self.cache.invalidate_seller(updated.id, updated.user_id)
        return updated.to_dict()

    async def register_seller(self, user_id: int, data: SellerCreate) -> Dict[str, Any]:
        """
        Register a new seller for a User Service user.

        Initial status is PENDING, verification status UNVERIFIED, all metrics zero.
        UpstreamUnavailableError from the user lookup propagates unchanged.
        """
        logger.debug("Validating user before seller registration", user_id=user_id)
        try:
            is_valid_user = await self.user_client.validate_user(user_id)
        except UserNotFoundError:
            is_valid_user = False

        if not is_valid_user:
            logger.warning("Seller registration failed - user not found or inactive", user_id=user_id)
            raise InvalidUserError(user_id)

        existing = await self.repository.find_by_user_id(user_id)
        if existing is not None:
            logger.warning("Seller registration failed - user already has seller account", user_id=user_id)
            raise SellerExistsError(user_id)

        values = data.model_dump(exclude_none=True)
        values.update(
            user_id=user_id,
            status=SellerStatus.PENDING,
            verification_status=VerificationStatus.UNVERIFIED,
            rating=ZERO,
            total_reviews=0,
            total_products=0,
            total_sales=0,
            total_revenue=ZERO,
            version=1,
        )
        try:
            seller = await self.repository.create(values)
        except IntegrityError as e:
            # Unique index on user_id catches a concurrent registration for the same user
            if await self.repository.find_by_user_id(user_id) is not None:
                raise SellerExistsError(user_id) from e
            raise

        snapshot = seller.to_dict()
        await self._populate(snapshot)

        self.events.emit("seller_registered", {
            "seller_id": seller.id,
            "user_id": seller.user_id,
            "business_name": seller.business_name,
            "status": snapshot["status"],
            "verification_status": snapshot["verification_status"],
        }, actor_id=user_id)
        logger.info("Seller registered", seller_id=seller.id, user_id=user_id)
        return self._present(snapshot)

    async def update_profile(self, seller_id: int, data: SellerProfileUpdate) -> Dict[str, Any]:
        """Seller edits their own profile. Not allowed while suspended."""
        seller = await self._load(seller_id)
        if seller["status"] == SellerStatus.SUSPENDED.value:
            raise AccountSuspendedError("update profile")

        values = data.model_dump(exclude_unset=True)
        if values.get("business_type", BusinessType.INDIVIDUAL) is None:
            values.pop("business_type")
        if "business_name" in values and not values["business_name"]:
            raise MissingFieldsError(["Business Name"])
        if not values:
            return self._present(seller)
        return self._present(await self._write(seller, values))

    async def update_banking_info(self, seller_id: int, data: BankingInfoUpdate) -> Dict[str, Any]:
        """Seller edits payout details. Not allowed while suspended."""
        seller = await self._load(seller_id)
        if seller["status"] == SellerStatus.SUSPENDED.value:
            raise AccountSuspendedError("update banking info")

        values = data.model_dump(exclude_unset=True)
        if not values:
            return self._present(seller)
        updated = await self._write(seller, values)
        logger.info("Seller banking info updated", seller_id=seller_id)
        return self._present(updated)

    async def admin_update_seller(self, seller_id: int, data: AdminSellerUpdate) -> Dict[str, Any]:
        """Admin edit, including the commission override. Lifecycle fields are not editable here."""
        seller = await self._load(seller_id)
        values = data.model_dump(exclude_unset=True)
        if values.get("business_type", BusinessType.INDIVIDUAL) is None:
            values.pop("business_type")

        errors = validation.validate_commission_rate(values.get("commission_rate"))
        if errors:
            raise InvalidRangeError(errors)
        if "business_name" in values and not values["business_name"]:
            raise MissingFieldsError(["Business Name"])
        if not values:
            return self._present(seller)
        return self._present(await self._write(seller, values))

    # ------------------------------------------------------------------
    # Verification workflow
    # ------------------------------------------------------------------

    async def submit_for_verification(self, seller_id: int) -> Dict[str, Any]:
        """UNVERIFIED or REJECTED -> PENDING, once all business contact fields are filled."""
        seller = await self._load(seller_id)
        verification = VerificationStatus(seller["verification_status"])

        if verification == VerificationStatus.PENDING:
            raise InvalidSellerStateError(
                "Verification is already pending",
                _state(seller),
                {"verification_status": ["unverified", "rejected"]},
            )
        if not validation.can_transition_verification(verification, VerificationStatus.PENDING):
            raise InvalidSellerStateError(
                "Seller is already verified",
                _state(seller),
                {"verification_status": ["unverified", "rejected"]},
            )

        missing = validation.validate_for_verification(seller)
        if missing:
            raise MissingFieldsError([e.message for e in missing])

        values: Dict[str, Any] = {"verification_status": VerificationStatus.PENDING}
        # A rejected seller re-enters the workflow as a fresh application
        if validation.can_transition_status(seller["status"], SellerStatus.PENDING):
            values["status"] = SellerStatus.PENDING

        updated = await self._write(seller, values)
        logger.info("Seller submitted for verification", seller_id=seller_id)
        return self._present(updated)

    async def approve_seller(self, seller_id: int, approved_by: int) -> Dict[str, Any]:
        """Admin: PENDING verification -> VERIFIED, status -> ACTIVE."""
        seller = await self._load(seller_id)
        if not validation.can_transition_verification(seller["verification_status"], VerificationStatus.VERIFIED):
            raise InvalidSellerStateError(
                "Seller must be in pending verification status",
                _state(seller),
                {"verification_status": "pending"},
            )

        updated = await self._write(seller, {
            "verification_status": VerificationStatus.VERIFIED,
            "status": SellerStatus.ACTIVE,
            "verified_at": self.clock(),
            "verified_by": approved_by,
            "rejection_reason": None,
        })

        self.events.emit("seller_approved", {
            "seller_id": updated["id"],
            "user_id": updated["user_id"],
            "business_name": updated["business_name"],
            "approved_by": approved_by,
            "verified_at": updated["verified_at"],
        }, actor_id=approved_by)
        logger.info("Seller approved", seller_id=seller_id, approved_by=approved_by)
        return self._present(updated)

    async def reject_seller(self, seller_id: int, reason: str, rejected_by: Optional[int] = None) -> Dict[str, Any]:
        """Admin: PENDING verification -> REJECTED, status -> REJECTED."""
        seller = await self._load(seller_id)
        if not validation.can_transition_verification(seller["verification_status"], VerificationStatus.REJECTED):
            raise InvalidSellerStateError(
                "Seller must be in pending verification status",
                _state(seller),
                {"verification_status": "pending"},
            )
        if validation.validate_reason(reason):
            raise MissingReasonError("rejection")

        reason = reason.strip()
        updated = await self._write(seller, {
            "verification_status": VerificationStatus.REJECTED,
            "status": SellerStatus.REJECTED,
            "rejection_reason": reason,
        })

        self.events.emit("seller_rejected", {
            "seller_id": updated["id"],
            "user_id": updated["user_id"],
            "business_name": updated["business_name"],
            "reason": reason,
        }, actor_id=rejected_by)
        logger.warning("Seller rejected", seller_id=seller_id, reason=reason)
        return self._present(updated)

    # ------------------------------------------------------------------
    # Suspension
    # ------------------------------------------------------------------

    async def suspend_seller(self, seller_id: int, reason: str, suspended_by: Optional[int] = None) -> Dict[str, Any]:
        """Admin: any non-suspended status -> SUSPENDED."""
        seller = await self._load(seller_id)
        if not validation.can_transition_status(seller["status"], SellerStatus.SUSPENDED):
            raise InvalidSellerStateError(
                "Seller is already suspended",
                _state(seller),
                {"status": ["pending", "active", "rejected"]},
            )
        if validation.validate_reason(reason):
            raise MissingReasonError("suspension")

        reason = reason.strip()
        updated = await self._write(seller, {
            "status": SellerStatus.SUSPENDED,
            "suspension_reason": reason,
        })

        self.events.emit("seller_suspended", {
            "seller_id": updated["id"],
            "user_id": updated["user_id"],
            "business_name": updated["business_name"],
            "reason": reason,
        }, actor_id=suspended_by)
        logger.warning("Seller suspended", seller_id=seller_id, reason=reason)
        return self._present(updated)

    async def reactivate_seller(self, seller_id: int, reactivated_by: Optional[int] = None) -> Dict[str, Any]:
        """Admin: SUSPENDED -> ACTIVE, only for verified sellers."""
        seller = await self._load(seller_id)
        if seller["status"] != SellerStatus.SUSPENDED.value:
            raise InvalidSellerStateError(
                "Seller is not suspended",
                _state(seller),
                {"status": "suspended"},
            )
        if seller["verification_status"] != VerificationStatus.VERIFIED.value:
            raise InvalidSellerStateError(
                "Seller must be verified to be reactivated",
                _state(seller),
                {"status": "suspended", "verification_status": "verified"},
            )

        updated = await self._write(seller, {
            "status": SellerStatus.ACTIVE,
            "suspension_reason": None,
        })

        self.events.emit("seller_reactivated", {
            "seller_id": updated["id"],
            "user_id": updated["user_id"],
            "business_name": updated["business_name"],
        }, actor_id=reactivated_by)
        logger.info("Seller reactivated", seller_id=seller_id)
        return self._present(updated)

    async def validate_seller_active(self, seller_id: int) -> bool:
        """Raise unless the seller may trade (active and verified)."""
        seller = await self._load(seller_id)
        if seller["status"] != SellerStatus.ACTIVE.value:
            raise InvalidSellerStateError(
                f"Seller account is {seller['status']}. Only active sellers can perform this action.",
                _state(seller),
                {"status": "active"},
            )
        if seller["verification_status"] != VerificationStatus.VERIFIED.value:
            raise InvalidSellerStateError(
                "Seller must be verified to perform this action",
                _state(seller),
                {"verification_status": "verified"},
            )
        return True

    async def delete_seller(self, seller_id: int) -> bool:
        """Hard delete, only for sellers without products and sales."""
        seller = await self.repository.find_by_id(seller_id)
        if seller is None:
            raise SellerNotFoundError(seller_id)

        snapshot = seller.to_dict()
        blockers = validation.validate_can_delete(snapshot)
        if blockers:
            raise HasDependentsError(blockers)

        deleted = await self.repository.delete(seller_id, expected_version=snapshot["version"])
        await self.cache.invalidate_seller(snapshot["id"], snapshot["user_id"])
        if not deleted:
            current = await self.repository.find_by_id(seller_id)
            if current is None:
                raise SellerNotFoundError(seller_id)
            blockers = validation.validate_can_delete(current.to_dict())
            if blockers:
                raise HasDependentsError(blockers)
            logger.warning("Concurrent seller modification", seller_id=seller_id)
            raise ConcurrentModificationError(seller_id)

        logger.info("Seller deleted", seller_id=seller_id)
        return True

    # ------------------------------------------------------------------
    # Metrics bookkeeping (called by the product and order services)
    # ------------------------------------------------------------------

    async def increment_product_count(self, seller_id: int) -> Dict[str, Any]:
        seller = await self._load(seller_id)
        updated = await self._write(seller, {"total_products": seller["total_products"] + 1})
        return self._present(updated)

    async def decrement_product_count(self, seller_id: int) -> Dict[str, Any]:
        """No-op when the count is already zero."""
        seller = await self._load(seller_id)
        if seller["total_products"] <= 0:
            logger.debug("Product count already zero, skipping decrement", seller_id=seller_id)
            return self._present(seller)
        updated = await self._write(seller, {"total_products": seller["total_products"] - 1})
        return self._present(updated)

    async def record_sale(self, seller_id: int, amount: Any) -> Dict[str, Any]:
        errors = validation.validate_sale_amount(amount)
        if errors:
            raise InvalidRangeError(errors)

        seller = await self._load(seller_id)
        errors = validation.validate_sale_amount(amount, seller["total_revenue"])
        if errors:
            raise InvalidRangeError(errors)
        amount = Decimal(str(amount)).quantize(ONE_CENT)
        revenue = Decimal(str(seller["total_revenue"])).quantize(ONE_CENT) + amount
        updated = await self._write(seller, {
            "total_sales": seller["total_sales"] + 1,
            "total_revenue": revenue,
        })
        return self._present(updated)

    async def update_rating(
        self,
        seller_id: int,
        rating: Any,
        review_count: Optional[int] = None,
    ) -> Dict[str, Any]:
        errors = validation.validate_rating(rating) + validation.validate_review_count(review_count)
        if errors:
            raise InvalidRangeError(errors)

        seller = await self._load(seller_id)
        values: Dict[str, Any] = {"rating": Decimal(str(rating)).quantize(ONE_CENT)}
        if review_count is not None:
            values["total_reviews"] = review_count
        return self._present(await self._write(seller, values))
