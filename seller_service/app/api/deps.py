from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from seller_service.app.core.database import async_session
from seller_service.app.core.settings import get_settings
from seller_service.app.repositories.sellers import SellerRepository
from seller_service.app.services.analytics import SellerAnalyticsService
from seller_service.app.services.cache import CacheService
from seller_service.app.services.events import EventSink, LoggingEventSink
from seller_service.app.services.sellers import SellerService
from seller_service.app.services.users import UserServiceClient

_event_sink = LoggingEventSink()


# Database session per request
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


# Cache service per request, sharing one Redis connection pool
async def get_cache() -> AsyncGenerator[CacheService, None]:
    settings = get_settings()
    redis = await CacheService.get_redis() if settings.CACHE_ENABLED else None
    yield CacheService(redis, enabled=settings.CACHE_ENABLED, seller_ttl=settings.SELLER_CACHE_TTL)


def get_user_client() -> UserServiceClient:
    settings = get_settings()
    return UserServiceClient(settings.USER_SERVICE_URL, timeout=settings.USER_SERVICE_TIMEOUT)


def get_event_sink() -> EventSink:
    return _event_sink


def get_seller_service(
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache),
    user_client: UserServiceClient = Depends(get_user_client),
    events: EventSink = Depends(get_event_sink),
) -> SellerService:
    return SellerService(
        SellerRepository(session),
        cache,
        user_client,
        events=events,
        platform_commission_rate=get_settings().PLATFORM_COMMISSION_RATE,
    )


def get_analytics_service(
    seller_service: SellerService = Depends(get_seller_service),
) -> SellerAnalyticsService:
    return SellerAnalyticsService(seller_service)
