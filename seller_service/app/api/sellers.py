from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from seller_service.app.api.deps import get_analytics_service, get_seller_service
from seller_service.app.core.auth import CurrentUser, get_current_user, require_admin
from seller_service.app.core.logging import get_logger
from seller_service.app.models.seller import SellerStatus, VerificationStatus
from seller_service.app.schemas import (
    AdminSellerUpdate,
    AnalyticsPeriod,
    BankingInfoUpdate,
    RatingUpdate,
    ReasonBody,
    SaleRecord,
    SalesTrendPoint,
    SellerCreate,
    SellerFilter,
    SellerListResponse,
    SellerProfileUpdate,
)
from seller_service.app.services.analytics import SellerAnalyticsService
from seller_service.app.services.sellers import SellerService

router = APIRouter()
logger = get_logger(__name__)

# ServiceError subclasses raised below are turned into JSON responses by the
# exception handler registered in main.py.


async def _owned_seller(service: SellerService, seller_id: int, user: CurrentUser) -> Dict[str, Any]:
    """Load a seller and check the caller owns it (admins may act on any seller)."""
    seller = await service.get_seller_by_id(seller_id)
    if seller["user_id"] != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to access this seller")
    return seller


# --- Registration and lookups ---

@router.post("", status_code=201)
async def register_seller(
    data: SellerCreate,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    """Create the caller's seller account."""
    logger.info("Registering seller", user_id=user.id, business_name=data.business_name)
    return await service.register_seller(user.id, data)


@router.get("", response_model=SellerListResponse)
async def list_sellers(
    status: Optional[SellerStatus] = None,
    verification_status: Optional[VerificationStatus] = None,
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    try:
        filters = SellerFilter(
            status=status,
            verification_status=verification_status,
            min_rating=min_rating,
            search=search,
            limit=limit,
            offset=offset,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return await service.list_sellers(filters)


@router.get("/pending-verification")
async def get_pending_verification(
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
) -> List[Dict[str, Any]]:
    return await service.get_pending_verification()


@router.get("/me")
async def get_my_seller(
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    return await service.get_seller_by_user_id(user.id)


@router.get("/user/{user_id}")
async def get_seller_by_user(
    user_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    if user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to access this seller")
    return await service.get_seller_by_user_id(user_id)


@router.get("/{seller_id}")
async def get_seller(
    seller_id: int,
    _user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    return await service.get_seller_by_id(seller_id)


# --- Seller self-service ---

@router.patch("/{seller_id}/profile")
async def update_profile(
    seller_id: int,
    data: SellerProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    await _owned_seller(service, seller_id, user)
    return await service.update_profile(seller_id, data)


@router.get("/{seller_id}/banking")
async def get_banking_info(
    seller_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    await _owned_seller(service, seller_id, user)
    return await service.get_banking_info(seller_id)


@router.patch("/{seller_id}/banking")
async def update_banking_info(
    seller_id: int,
    data: BankingInfoUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    await _owned_seller(service, seller_id, user)
    return await service.update_banking_info(seller_id, data)


@router.post("/{seller_id}/verify")
async def submit_for_verification(
    seller_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
):
    await _owned_seller(service, seller_id, user)
    return await service.submit_for_verification(seller_id)


# --- Admin ---

@router.patch("/{seller_id}")
async def admin_update_seller(
    seller_id: int,
    data: AdminSellerUpdate,
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.admin_update_seller(seller_id, data)


@router.post("/{seller_id}/approve")
async def approve_seller(
    seller_id: int,
    admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.approve_seller(seller_id, admin.id)


@router.post("/{seller_id}/reject")
async def reject_seller(
    seller_id: int,
    body: ReasonBody,
    admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.reject_seller(seller_id, body.reason, rejected_by=admin.id)


@router.post("/{seller_id}/suspend")
async def suspend_seller(
    seller_id: int,
    body: ReasonBody,
    admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.suspend_seller(seller_id, body.reason, suspended_by=admin.id)


@router.post("/{seller_id}/reactivate")
async def reactivate_seller(
    seller_id: int,
    admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.reactivate_seller(seller_id, reactivated_by=admin.id)


@router.delete("/{seller_id}")
async def delete_seller(
    seller_id: int,
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    await service.delete_seller(seller_id)
    return {"status": "deleted"}


# --- Metrics bookkeeping (product and order services, admin-scoped tokens) ---

@router.post("/{seller_id}/metrics/products/increment")
async def increment_product_count(
    seller_id: int,
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.increment_product_count(seller_id)


@router.post("/{seller_id}/metrics/products/decrement")
async def decrement_product_count(
    seller_id: int,
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.decrement_product_count(seller_id)


@router.post("/{seller_id}/metrics/sales")
async def record_sale(
    seller_id: int,
    body: SaleRecord,
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.record_sale(seller_id, body.amount)


@router.post("/{seller_id}/metrics/rating")
async def update_rating(
    seller_id: int,
    body: RatingUpdate,
    _admin: CurrentUser = Depends(require_admin),
    service: SellerService = Depends(get_seller_service),
):
    return await service.update_rating(seller_id, body.rating, body.review_count)


# --- Analytics ---

@router.get("/{seller_id}/analytics/overview")
async def get_analytics_overview(
    seller_id: int,
    period: AnalyticsPeriod = AnalyticsPeriod.ALL_TIME,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
    analytics: SellerAnalyticsService = Depends(get_analytics_service),
):
    await _owned_seller(service, seller_id, user)
    return await analytics.get_analytics_overview(seller_id, period.value, start_date, end_date)


@router.get("/{seller_id}/analytics/sales-trend", response_model=List[SalesTrendPoint])
async def get_sales_trend(
    seller_id: int,
    period: AnalyticsPeriod = AnalyticsPeriod.MONTH,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
    analytics: SellerAnalyticsService = Depends(get_analytics_service),
):
    await _owned_seller(service, seller_id, user)
    return await analytics.get_sales_trend(seller_id, period.value, start_date, end_date)


@router.get("/{seller_id}/analytics/products")
async def get_product_performance(
    seller_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
    analytics: SellerAnalyticsService = Depends(get_analytics_service),
):
    await _owned_seller(service, seller_id, user)
    return await analytics.get_product_performance(seller_id)


@router.get("/{seller_id}/analytics/revenue")
async def get_revenue_breakdown(
    seller_id: int,
    period: AnalyticsPeriod = AnalyticsPeriod.MONTH,
    user: CurrentUser = Depends(get_current_user),
    service: SellerService = Depends(get_seller_service),
    analytics: SellerAnalyticsService = Depends(get_analytics_service),
):
    await _owned_seller(service, seller_id, user)
    return await analytics.get_revenue_breakdown(seller_id, period.value)
