# seller_service/app/services/__init__.py
"""
Services layer for business logic.
Keeps API endpoints thin and business logic testable and reusable.
"""

from seller_service.app.services.sellers import (
    SellerService,
    SellerServiceError,
    SellerNotFoundError,
    SellerExistsError,
    InvalidUserError,
    InvalidSellerStateError,
    MissingFieldsError,
    MissingReasonError,
    InvalidRangeError,
    AccountSuspendedError,
    HasDependentsError,
    ConcurrentModificationError,
)
from seller_service.app.services.analytics import (
    SellerAnalyticsService,
    calculate_conversion_rate,
    calculate_period_dates,
    generate_trend_data,
)
from seller_service.app.services.users import (
    UserServiceClient,
    UserServiceError,
    UserNotFoundError,
    UpstreamUnavailableError,
)
from seller_service.app.services.events import EventSink, LoggingEventSink, RecordingEventSink
from seller_service.app.services.cache import CacheService

__all__ = [
    # Seller service
    "SellerService",
    "SellerServiceError",
    "SellerNotFoundError",
    "SellerExistsError",
    "InvalidUserError",
    "InvalidSellerStateError",
    "MissingFieldsError",
    "MissingReasonError",
    "InvalidRangeError",
    "AccountSuspendedError",
    "HasDependentsError",
    "ConcurrentModificationError",
    # Analytics
    "SellerAnalyticsService",
    "calculate_conversion_rate",
    "calculate_period_dates",
    "generate_trend_data",
    # User Service client
    "UserServiceClient",
    "UserServiceError",
    "UserNotFoundError",
    "UpstreamUnavailableError",
    # Events
    "EventSink",
    "LoggingEventSink",
    "RecordingEventSink",
    # Cache
    "CacheService",
]
