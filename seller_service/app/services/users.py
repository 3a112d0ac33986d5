"""
User Service client - checks that the user behind a seller account exists and is active.
"""
import httpx
from typing import Optional, Dict, Any

from seller_service.app.core.exceptions import ServiceError
from seller_service.app.core.logging import get_logger
from seller_service.app.core.metrics import user_service_requests_total

logger = get_logger(__name__)


class UserServiceError(ServiceError):
    """Base exception for User Service communication errors."""
    code = "user_service_error"


class UserNotFoundError(UserServiceError):
    code = "user_not_found"

    def __init__(self, user_id: int):
        super().__init__(f"User with id {user_id} not found", 404, {"user_id": user_id})


class UpstreamUnavailableError(UserServiceError):
    """Transient: the User Service could not be reached or failed. Callers may retry."""
    code = "upstream_unavailable"

    def __init__(self, message: str = "User Service is unavailable"):
        super().__init__(message, 503, {"service": "user-service"})


class UserServiceClient:
    """HTTP client for the User Service."""

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get(self, path: str, timeout: Optional[float] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return await self._client.get(url, headers={"Accept": "application/json"}, timeout=timeout or self.timeout)
        async with httpx.AsyncClient(timeout=timeout or self.timeout) as client:
            return await client.get(url, headers={"Accept": "application/json"})

    async def get_user(self, user_id: int) -> Dict[str, Any]:
        """
        Fetch a user by id.

        Raises:
            UserNotFoundError: the User Service answered 404
            UpstreamUnavailableError: timeout, network error or unexpected status
        """
        if not self.base_url:
            logger.error("USER_SERVICE_URL not configured")
            raise UpstreamUnavailableError("User Service is not configured")

        try:
            response = await self._get(f"/users/{user_id}")
        except httpx.TimeoutException:
            user_service_requests_total.labels(outcome="timeout").inc()
            logger.error("User Service timeout", user_id=user_id, timeout=self.timeout)
            raise UpstreamUnavailableError()
        except httpx.RequestError as e:
            user_service_requests_total.labels(outcome="error").inc()
            logger.error("User Service request error", user_id=user_id, error=str(e))
            raise UpstreamUnavailableError("Failed to communicate with User Service")

        if response.status_code == 404:
            user_service_requests_total.labels(outcome="not_found").inc()
            raise UserNotFoundError(user_id)
        if response.status_code >= 400:
            user_service_requests_total.labels(outcome="error").inc()
            logger.error("User Service error", user_id=user_id, status_code=response.status_code)
            raise UpstreamUnavailableError(f"User Service returned status {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            user_service_requests_total.labels(outcome="error").inc()
            raise UpstreamUnavailableError("User Service returned an invalid response")

        user_service_requests_total.labels(outcome="ok").inc()
        # Both {"data": {...}} envelopes and bare user objects are in use
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            return body["data"]
        if not isinstance(body, dict):
            raise UpstreamUnavailableError("User Service returned an invalid response")
        return body

    async def validate_user(self, user_id: int) -> bool:
        """
        True if the user exists and is active.

        UserNotFoundError and UpstreamUnavailableError propagate so callers can
        tell a permanent rejection from a retryable outage.
        """
        user = await self.get_user(user_id)
        is_active = user.get("isActive", user.get("is_active", False))
        return bool(is_active)

    async def health_check(self) -> bool:
        """True if the User Service answers its health endpoint."""
        if not self.base_url:
            return False
        try:
            response = await self._get("/health", timeout=3.0)
        except httpx.HTTPError as e:
            logger.warning("User Service health check failed", error=str(e))
            return False
        return response.is_success
