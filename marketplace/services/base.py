"""
Base classes and utilities for the service layer.

Provides the ServiceResult pattern (a Result type for expected failures),
the BaseService class every marketplace service derives from, the shared
error codes and money rounding.
"""

import logging
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import wraps
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

CENTS = Decimal("0.01")


def quantize_money(amount) -> Decimal:
    """Round an amount to cents, half up."""
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code from ErrorCodes (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)

    Examples:
        >>> result = vendor_service.get_vendor(vendor_id)
        >>> if not result.ok:
        ...     logger.warning(result.error_detail)

        >>> result = service_err(ErrorCodes.VENDOR_NOT_FOUND, "Vendor abc does not exist")
        >>> result.error
        'vendor_not_found'
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None


def service_ok(value: T) -> ServiceResult[T]:
    """Create a successful ServiceResult."""
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., ErrorCodes.CART_EMPTY)
        error_detail: Human-readable error message, defaults to the code
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for all marketplace services.

    Provides a logger named after the concrete class and a performance
    decorator that records elapsed time and the ServiceResult outcome.

    Usage:
        class CommissionService(BaseService):
            @BaseService.log_performance
            def record_commission(self, vendor_id, order_id, amount):
                self.logger.info(f"Recording commission for order {order_id}")
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """Decorator logging execution time and result of a service method."""

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper

    def internal_error(self, operation: str, exc: Exception) -> ServiceResult:
        """Log an unexpected exception and convert it to an INTERNAL_ERROR result."""
        self.logger.error(f"Error during {operation}: {str(exc)}", exc_info=True)
        return service_err(ErrorCodes.INTERNAL_ERROR, str(exc))


class ErrorCodes:
    """Standard error codes used across marketplace services."""

    # Vendor errors
    VENDOR_NOT_FOUND = "vendor_not_found"
    VENDOR_INACTIVE = "vendor_inactive"

    # Cart errors
    CART_EMPTY = "cart_empty"
    INVALID_QUANTITY = "invalid_quantity"

    # Order errors
    ORDER_NOT_FOUND = "order_not_found"
    INVALID_ORDER_STATE = "invalid_order_state"

    # Fulfillment errors
    LOCATION_NOT_FOUND = "location_not_found"
    NO_FULFILLMENT_LOCATION = "no_fulfillment_location"

    # Payout errors
    PAYOUT_NOT_FOUND = "payout_not_found"
    PAYOUT_ACCOUNT_MISSING = "payout_account_missing"
    NO_UNPAID_COMMISSIONS = "no_unpaid_commissions"
    INVALID_PAYOUT_AMOUNT = "invalid_payout_amount"
    INVALID_PAYOUT_STATE = "invalid_payout_state"
    PAYMENT_PROVIDER_ERROR = "payment_provider_error"

    # Age verification errors
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_EXPIRED = "session_expired"
    INVALID_SESSION_STATE = "invalid_session_state"

    # Validation errors
    VALIDATION_ERROR = "validation_error"

    # Internal errors
    INTERNAL_ERROR = "internal_error"
