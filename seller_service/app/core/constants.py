"""
Shared constants for the seller service.
"""
from datetime import datetime
from decimal import Decimal

# ---------------------------------------------------------------------------
# Cache keys
# ---------------------------------------------------------------------------
SELLER_CACHE_KEY_BY_ID = "seller:id:{seller_id}"
SELLER_CACHE_KEY_BY_USER = "seller:userId:{user_id}"
SELLER_CACHE_TTL = 300  # 5 minutes

# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------
# (attribute, label reported back to the caller)
VERIFICATION_REQUIRED_FIELDS = (
    ("business_name", "Business Name"),
    ("business_email", "Business Email"),
    ("business_phone", "Business Phone"),
    ("business_address", "Business Address"),
    ("business_city", "Business City"),
    ("business_state", "Business State/Province"),
    ("business_country", "Business Country"),
)

# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------
MIN_RATING = Decimal("0")
MAX_RATING = Decimal("5")
MIN_COMMISSION_RATE = Decimal("0")
MAX_COMMISSION_RATE = Decimal("100")

# ---------------------------------------------------------------------------
# Decimal helpers
# ---------------------------------------------------------------------------
ZERO = Decimal("0")
ONE_CENT = Decimal("0.01")
# Largest value a DECIMAL(12, 2) column holds
MAX_MONEY = Decimal("9999999999.99")

# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
ALL_TIME_START = datetime(2020, 1, 1)
TREND_VARIANCE = 0.3  # ±15% around the daily average
MAX_TREND_POINTS = 365
TREND_AVERAGING_DAYS = 30

# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
SELLER_SORT_FIELDS = ("created_at", "business_name", "rating", "total_sales", "total_revenue")
