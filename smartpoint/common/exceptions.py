"""
Domain error taxonomy.

Every error is an HTTPException so services can raise it directly, the way
route handlers already expect. The exception handler registered in main
renders them as ``{"success": false, "error": <code>, "message": <detail>}``.
"""
from typing import Optional
from fastapi import HTTPException, status

from smartpoint.core.config import settings


class SmartPointError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers
        )


class InvalidInput(SmartPointError):
    code = "invalid_input"
    default_message = "Invalid input"


class NotFound(SmartPointError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class ItemNotFound(NotFound):
    code = "item_not_found"
    default_message = "Item not found"


class SaleNotFound(NotFound):
    code = "sale_not_found"
    default_message = "Sale not found"


class InsufficientStock(SmartPointError):
    code = "insufficient_stock"

    def __init__(self, item_name: str, available: int, requested: int):
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f'Insufficient stock for item "{item_name}". '
            f"Available: {available}, Requested: {requested}"
        )


class Unauthorized(SmartPointError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(SmartPointError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Access denied"


class UnauthorizedScope(Forbidden):
    code = "unauthorized_scope"
    default_message = "Resource does not belong to your store"


class NotRefundable(SmartPointError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_refundable"
    default_message = "Sale not found or cannot be refunded"


class NotLinked(SmartPointError):
    code = "not_linked"
    default_message = "Cashier not properly linked to a manager"


class DuplicateReceipt(SmartPointError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_receipt"

    def __init__(self, receipt_number: str):
        self.receipt_number = receipt_number
        super().__init__(f"A sale with receipt number {receipt_number} already exists")


class InvalidStatusTransition(SmartPointError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_status_transition"
    default_message = "Payment status cannot change from its current value"


def internal_error(exc: Exception, action: str) -> HTTPException:
    """500 for unexpected failures; hides the cause in production."""
    detail = f"Failed to {action}"
    if not settings.is_production:
        detail = f"{detail}: {exc}"
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail
    )
