# seller_service/app/services/analytics.py
"""
Seller dashboard analytics.

There is no order ledger in this service, so trend and breakdown figures are
synthesised from the seller's aggregate counters. The numbers are bounded,
non-negative and proportional to the real totals; randomness comes from an
injectable random.Random so results can be reproduced.
"""
import math
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from seller_service.app.core.constants import (
    ALL_TIME_START,
    MAX_TREND_POINTS,
    TREND_AVERAGING_DAYS,
    TREND_VARIANCE,
)
from seller_service.app.core.logging import get_logger
from seller_service.app.schemas import AnalyticsPeriod
from seller_service.app.services.sellers import SellerService, utcnow

logger = get_logger(__name__)


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are converted to UTC and stripped; naive ones are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def calculate_period_dates(
    period: str,
    custom_start: Optional[datetime] = None,
    custom_end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Start and end of an analytics window.

    Custom dates win when both are given. Otherwise the window ends now and
    starts at midnight of: today (day, which also ends at 23:59:59.999999),
    7 days ago (week), one calendar month ago (month), one calendar year ago
    (year), or 2020-01-01 (all_time and anything unrecognised).
    """
    custom_start, custom_end = _naive_utc(custom_start), _naive_utc(custom_end)
    if custom_start is not None and custom_end is not None:
        return custom_start, custom_end

    now = _naive_utc(now) or utcnow()
    period = period.value if isinstance(period, AnalyticsPeriod) else period
    end = now

    if period == AnalyticsPeriod.DAY.value:
        start = _start_of_day(now)
        end = now.replace(hour=23, minute=59, second=59, microsecond=999999)
    elif period == AnalyticsPeriod.WEEK.value:
        start = _start_of_day(now - timedelta(days=7))
    elif period == AnalyticsPeriod.MONTH.value:
        start = _start_of_day(now - relativedelta(months=1))
    elif period == AnalyticsPeriod.YEAR.value:
        start = _start_of_day(now - relativedelta(years=1))
    else:
        start = ALL_TIME_START

    return start, end


def generate_trend_data(
    start: datetime,
    end: datetime,
    granularity: str,
    daily_avg_sales: float,
    daily_avg_revenue: float,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    """
    One synthetic point per day between start and end inclusive (per hour when
    granularity is "day"), each within ±15% of the supplied averages.
    """
    rng = rng or random.Random()
    hourly = granularity == AnalyticsPeriod.DAY.value
    step = timedelta(hours=1) if hourly else timedelta(days=1)
    label_format = "%Y-%m-%dT%H:00" if hourly else "%Y-%m-%d"

    trend: List[Dict[str, Any]] = []
    current = start
    while current <= end and len(trend) < MAX_TREND_POINTS:
        factor = 1 + (rng.random() - 0.5) * TREND_VARIANCE
        sales = max(0, math.floor(daily_avg_sales * factor))
        revenue = max(0.0, round(daily_avg_revenue * factor, 2))
        orders = sales
        average_order_value = round(revenue / orders, 2) if orders > 0 else 0.0

        trend.append({
            "date": current.strftime(label_format),
            "sales": sales,
            "revenue": revenue,
            "orders": orders,
            "average_order_value": average_order_value,
        })
        current += step

    return trend


def calculate_conversion_rate(sales: int) -> float:
    """Placeholder score until view counts exist: one point per sale, capped at 100."""
    if sales <= 0:
        return 0.0
    return round(float(min(sales, 100)), 2)


class SellerAnalyticsService:
    """Dashboard figures for a single seller."""

    def __init__(self, seller_service: SellerService, rng: Optional[random.Random] = None):
        self.seller_service = seller_service
        self.rng = rng or random.Random()

    async def get_analytics_overview(
        self,
        seller_id: int,
        period: str = AnalyticsPeriod.ALL_TIME.value,
        custom_start: Optional[datetime] = None,
        custom_end: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        seller = await self.seller_service.get_seller_by_id(seller_id)
        start, end = calculate_period_dates(period, custom_start, custom_end)

        # Aggregates only: without an order ledger the period figures equal the totals
        period_revenue = seller["total_revenue"]
        period_sales = seller["total_sales"]
        average_order_value = period_revenue / period_sales if period_sales > 0 else 0.0

        logger.debug("Fetched seller analytics", seller_id=seller_id, period=str(period))
        return {
            "seller_id": seller["id"],
            "business_name": seller["business_name"],
            "status": seller["status"],
            "verification_status": seller["verification_status"],
            "total_products": seller["total_products"],
            "total_sales": seller["total_sales"],
            "total_revenue": seller["total_revenue"],
            "rating": seller["rating"],
            "total_reviews": seller["total_reviews"],
            "joined_date": seller["created_at"],
            "verified_at": seller["verified_at"],
            "period": period.value if isinstance(period, AnalyticsPeriod) else period,
            "period_start": start.isoformat(),
            "period_end": end.isoformat(),
            "period_revenue": period_revenue,
            "period_sales": period_sales,
            "average_order_value": round(average_order_value, 2),
            "conversion_rate": calculate_conversion_rate(period_sales),
        }

    async def get_sales_trend(
        self,
        seller_id: int,
        period: str = AnalyticsPeriod.MONTH.value,
        custom_start: Optional[datetime] = None,
        custom_end: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        seller = await self.seller_service.get_seller_by_id(seller_id)
        start, end = calculate_period_dates(period, custom_start, custom_end)
        period = period.value if isinstance(period, AnalyticsPeriod) else period

        daily_avg_sales = seller["total_sales"] / TREND_AVERAGING_DAYS if seller["total_sales"] > 0 else 0.0
        daily_avg_revenue = seller["total_revenue"] / TREND_AVERAGING_DAYS if seller["total_revenue"] > 0 else 0.0

        trend = generate_trend_data(start, end, period, daily_avg_sales, daily_avg_revenue, self.rng)
        logger.debug("Generated sales trend", seller_id=seller_id, period=period, data_points=len(trend))
        return trend

    async def get_product_performance(self, seller_id: int) -> Dict[str, Any]:
        seller = await self.seller_service.get_seller_by_id(seller_id)
        total_products = seller["total_products"]
        active_products = math.floor(total_products * 0.85)

        top_products = []
        for i in range(min(5, total_products)):
            top_products.append({
                "product_id": 1000 + i,
                "product_name": f"Product {i + 1}",
                "units_sold": self.rng.randint(10, 109),
                "revenue": round(self.rng.random() * 10000 + 1000, 2),
                "rating": round(self.rng.random() * 2 + 3, 1),
                "review_count": self.rng.randint(5, 54),
            })
        top_products.sort(key=lambda p: p["revenue"], reverse=True)

        return {
            "total_products": total_products,
            "active_products": active_products,
            "out_of_stock_products": total_products - active_products,
            "top_products": top_products,
            "average_rating": seller["rating"],
            "total_views": seller["total_sales"] * 10,
            "new_products_this_period": math.floor(total_products * 0.1),
        }

    async def get_revenue_breakdown(self, seller_id: int, period: str = AnalyticsPeriod.MONTH.value) -> Dict[str, Any]:
        seller = await self.seller_service.get_seller_by_id(seller_id)
        total_revenue = seller["total_revenue"]
        total_sales = seller["total_sales"]
        average_order_value = total_revenue / total_sales if total_sales > 0 else 0.0

        return {
            "period": period.value if isinstance(period, AnalyticsPeriod) else period,
            "total_revenue": round(total_revenue, 2),
            "completed_revenue": round(total_revenue * 0.95, 2),
            "pending_revenue": round(total_revenue * 0.05, 2),
            "refunded_amount": round(total_revenue * 0.02, 2),
            "average_order_value": round(average_order_value, 2),
            "highest_order_value": round(average_order_value * 5, 2),
            "lowest_order_value": round(average_order_value * 0.2, 2),
            "revenue_by_category": {
                "Electronics": round(total_revenue * 0.4, 2),
                "Clothing": round(total_revenue * 0.3, 2),
                "Home & Garden": round(total_revenue * 0.2, 2),
                "Other": round(total_revenue * 0.1, 2),
            },
        }
