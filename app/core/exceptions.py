"""Domain exceptions for the marketplace pricing engine."""
from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    def __init__(self, message: str = "An internal error occurred", payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_dict(self) -> Dict[str, Any]:
        rv = dict(self.payload or ())
        rv["message"] = self.message
        rv["status"] = "error"
        return rv


class ValidationError(MarketplaceError):
    """Malformed or missing date, price or quantity input."""


class DivisionDegenerateError(MarketplaceError):
    """Zero-length shelf life. Recovered inside the engine, never surfaced."""

    def __init__(self, message: str = "Shelf life has zero length"):
        super().__init__(message)


class NotFoundError(MarketplaceError):
    """Raised when a product or cart line does not exist."""

    def __init__(self, message: str = "Resource not found", payload: Optional[Dict[str, Any]] = None):
        super().__init__(message, payload)


class ProductUnavailableError(MarketplaceError):
    """Raised when a product cannot be ordered (out of stock or expired)."""

    def __init__(self, product_id: str, reason: str):
        super().__init__(
            f"Product {product_id} is unavailable: {reason}",
            payload={"product_id": product_id, "reason": reason},
        )
        self.product_id = product_id
        self.reason = reason
