"""
Unified base exception classes for all services.

Each service extends ServiceError with its own base (e.g. SellerServiceError)
so that handlers can catch either the service base or ServiceError.
"""
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base exception for all service-layer errors."""

    code = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Body for API error responses: message, machine-readable code and details."""
        return {"detail": self.message, "code": self.code, **self.details}
