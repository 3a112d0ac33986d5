"""
Tests for seller analytics: period windows, synthetic trend data and the
dashboard aggregations built on the seller's counters.
"""
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from seller_service.app.schemas import AnalyticsPeriod
from seller_service.app.services.analytics import (
    calculate_conversion_rate,
    calculate_period_dates,
    generate_trend_data,
)
from seller_service.app.services.sellers import SellerNotFoundError

NOW = datetime(2024, 3, 31, 15, 45, 30)


# ============================================
# PERIOD DATES
# ============================================

def test_period_day_covers_whole_day():
    start, end = calculate_period_dates("day", now=NOW)
    assert start == datetime(2024, 3, 31, 0, 0, 0)
    assert end == datetime(2024, 3, 31, 23, 59, 59, 999999)


def test_period_week():
    start, end = calculate_period_dates("week", now=NOW)
    assert start == datetime(2024, 3, 24)
    assert end == NOW


def test_period_month_clamps_to_end_of_month():
    start, _ = calculate_period_dates(AnalyticsPeriod.MONTH, now=NOW)
    assert start == datetime(2024, 2, 29)


def test_period_year_from_leap_day():
    start, end = calculate_period_dates("year", now=datetime(2024, 2, 29, 8, 0))
    assert start == datetime(2023, 2, 28)
    assert end == datetime(2024, 2, 29, 8, 0)


def test_period_month_across_year_boundary():
    start, _ = calculate_period_dates("month", now=datetime(2024, 1, 15, 10, 0))
    assert start == datetime(2023, 12, 15)


@pytest.mark.parametrize("period", ["all_time", "fortnight"])
def test_period_all_time_and_unknown(period):
    start, end = calculate_period_dates(period, now=NOW)
    assert start == datetime(2020, 1, 1)
    assert end == NOW


def test_period_custom_dates_used_verbatim():
    custom_start = datetime(2023, 5, 1, 13, 0)
    custom_end = datetime(2023, 5, 3, 9, 0)
    assert calculate_period_dates("day", custom_start, custom_end, now=NOW) == (custom_start, custom_end)


def test_period_needs_both_custom_dates():
    start, _ = calculate_period_dates("week", datetime(2023, 5, 1), None, now=NOW)
    assert start == datetime(2024, 3, 24)


def test_period_custom_dates_mixing_aware_and_naive():
    aware_start = datetime(2024, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
    start, end = calculate_period_dates("week", aware_start, datetime(2024, 1, 7), now=NOW)

    assert start == datetime(2024, 1, 1, 0, 0)
    assert start.tzinfo is None
    assert end == datetime(2024, 1, 7)
    assert len(generate_trend_data(start, end, "week", 10, 100.0, random.Random(1))) == 7


# ============================================
# TREND DATA
# ============================================

def test_trend_seven_day_window():
    trend = generate_trend_data(
        datetime(2024, 1, 1), datetime(2024, 1, 7), "week", 10, 250.0, rng=random.Random(7)
    )

    assert len(trend) == 7
    assert [p["date"] for p in trend] == [f"2024-01-0{d}" for d in range(1, 8)]
    for point in trend:
        assert point["sales"] >= 0
        assert point["orders"] == point["sales"]
        if point["orders"] > 0:
            assert point["average_order_value"] == round(point["revenue"] / point["orders"], 2)
        else:
            assert point["average_order_value"] == 0


def test_trend_values_stay_within_fifteen_percent():
    trend = generate_trend_data(
        datetime(2024, 1, 1), datetime(2024, 3, 1), "month", 100, 1000.0, rng=random.Random(99)
    )
    for point in trend:
        assert 85 <= point["sales"] <= 115
        assert 850.0 <= point["revenue"] <= 1150.0


def test_trend_is_reproducible_with_seed():
    args = (datetime(2024, 1, 1), datetime(2024, 1, 31), "month", 12.5, 480.0)
    assert generate_trend_data(*args, rng=random.Random(3)) == generate_trend_data(*args, rng=random.Random(3))


def test_trend_hourly_for_day_granularity():
    start, end = calculate_period_dates("day", now=NOW)
    trend = generate_trend_data(start, end, "day", 24, 240.0, rng=random.Random(1))

    assert len(trend) == 24
    assert trend[0]["date"] == "2024-03-31T00:00"
    assert trend[-1]["date"] == "2024-03-31T23:00"


def test_trend_capped_at_365_points():
    trend = generate_trend_data(
        datetime(2020, 1, 1), datetime(2024, 1, 1), "all_time", 5, 50.0, rng=random.Random(5)
    )
    assert len(trend) == 365


def test_trend_zero_averages():
    trend = generate_trend_data(
        datetime(2024, 1, 1), datetime(2024, 1, 3), "week", 0, 0.0, rng=random.Random(2)
    )
    assert trend == [
        {"date": f"2024-01-0{d}", "sales": 0, "revenue": 0.0, "orders": 0, "average_order_value": 0.0}
        for d in (1, 2, 3)
    ]


def test_trend_empty_when_end_before_start():
    assert generate_trend_data(datetime(2024, 1, 2), datetime(2024, 1, 1), "week", 10, 10.0) == []


@pytest.mark.parametrize("sales,expected", [(0, 0.0), (-3, 0.0), (42, 42.0), (100, 100.0), (5000, 100.0)])
def test_conversion_rate(sales, expected):
    assert calculate_conversion_rate(sales) == expected


# ============================================
# ANALYTICS SERVICE
# ============================================

@pytest.mark.asyncio
async def test_analytics_overview(analytics_service, seller_factory):
    seller = await seller_factory(total_sales=4, total_revenue=Decimal("200.00"), rating=Decimal("4.20"))

    overview = await analytics_service.get_analytics_overview(seller.id)

    assert overview["seller_id"] == seller.id
    assert overview["business_name"] == "Acme"
    assert overview["period"] == "all_time"
    assert overview["period_start"] == "2020-01-01T00:00:00"
    assert overview["period_sales"] == 4
    assert overview["period_revenue"] == 200.0
    assert overview["average_order_value"] == 50.0
    assert overview["conversion_rate"] == 4.0
    assert overview["rating"] == 4.2


@pytest.mark.asyncio
async def test_analytics_overview_no_sales(analytics_service, test_seller):
    overview = await analytics_service.get_analytics_overview(test_seller.id, "week")
    assert overview["average_order_value"] == 0.0
    assert overview["conversion_rate"] == 0.0


@pytest.mark.asyncio
async def test_analytics_unknown_seller(analytics_service):
    with pytest.raises(SellerNotFoundError):
        await analytics_service.get_analytics_overview(999)


@pytest.mark.asyncio
async def test_sales_trend_uses_thirty_day_average(analytics_service, seller_factory):
    seller = await seller_factory(total_sales=300, total_revenue=Decimal("3000.00"))

    trend = await analytics_service.get_sales_trend(
        seller.id, "month", datetime(2024, 1, 1), datetime(2024, 1, 10)
    )

    assert len(trend) == 10
    for point in trend:
        # daily average is 10 sales / 100.00 revenue
        assert 8 <= point["sales"] <= 11
        assert 85.0 <= point["revenue"] <= 115.0


@pytest.mark.asyncio
async def test_product_performance(analytics_service, seller_factory):
    seller = await seller_factory(total_products=10, total_sales=7)

    performance = await analytics_service.get_product_performance(seller.id)

    assert performance["total_products"] == 10
    assert performance["active_products"] == 8
    assert performance["out_of_stock_products"] == 2
    assert performance["new_products_this_period"] == 1
    assert performance["total_views"] == 70
    revenues = [p["revenue"] for p in performance["top_products"]]
    assert len(revenues) == 5
    assert revenues == sorted(revenues, reverse=True)
    for product in performance["top_products"]:
        assert 10 <= product["units_sold"] <= 109
        assert 3.0 <= product["rating"] <= 5.0


@pytest.mark.asyncio
async def test_product_performance_without_products(analytics_service, test_seller):
    performance = await analytics_service.get_product_performance(test_seller.id)
    assert performance["top_products"] == []
    assert performance["active_products"] == 0


@pytest.mark.asyncio
async def test_revenue_breakdown(analytics_service, seller_factory):
    seller = await seller_factory(total_sales=10, total_revenue=Decimal("1000.00"))

    breakdown = await analytics_service.get_revenue_breakdown(seller.id, AnalyticsPeriod.YEAR)

    assert breakdown["period"] == "year"
    assert breakdown["total_revenue"] == 1000.0
    assert breakdown["completed_revenue"] == 950.0
    assert breakdown["pending_revenue"] == 50.0
    assert breakdown["refunded_amount"] == 20.0
    assert breakdown["average_order_value"] == 100.0
    assert breakdown["highest_order_value"] == 500.0
    assert breakdown["lowest_order_value"] == 20.0
    assert breakdown["revenue_by_category"] == {
        "Electronics": 400.0,
        "Clothing": 300.0,
        "Home & Garden": 200.0,
        "Other": 100.0,
    }
