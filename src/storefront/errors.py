"""Storefront error taxonomy.

Business rule violations extend Protean's ``ValidationError`` so they carry a
``messages`` dict like every other domain validation failure. Access and
lookup failures are plain exceptions.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class StockShortage:
    """One cart line that cannot be satisfied from current stock."""

    product_id: str
    name: str
    color: str
    size: str
    requested: int
    available: int
    issue: str = "Insufficient stock"

    def describe(self) -> str:
        if self.issue != "Insufficient stock":
            return f"{self.name} ({self.color}/{self.size}): {self.issue}"
        return (
            f"{self.name} ({self.color}/{self.size}): Only {self.available} available, "
            f"but {self.requested} requested"
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "variant": {"color": self.color, "size": self.size},
            "issue": self.issue,
            "requested_quantity": self.requested,
            "available_stock": self.available,
        }


class InsufficientStock(ValidationError):
    def __init__(self, shortages):
        self.shortages = list(shortages)
        super().__init__({"stock": [shortage.describe() for shortage in self.shortages]})

    @property
    def available(self) -> int | None:
        """Available quantity when a single line is short."""
        if len(self.shortages) == 1:
            return self.shortages[0].available
        return None


class CouponInactive(ValidationError):
    def __init__(self, code: str):
        self.code = code
        super().__init__({"coupon": [f"Coupon {code} is no longer active"]})


class CouponMinimumNotMet(ValidationError):
    def __init__(self, code: str, min_order_value: float, subtotal: float):
        self.code = code
        self.min_order_value = min_order_value
        self.subtotal = subtotal
        super().__init__({"coupon": [f"This coupon requires a minimum order of ₹{min_order_value:g}"]})


class PaymentLimitExceeded(ValidationError):
    def __init__(self, total: float, limit: float):
        self.total = total
        self.limit = limit
        super().__init__(
            {
                "total": [
                    f"Order total exceeds online payment limit of {limit:,.0f}. "
                    "Please reduce cart value or contact support for a custom payment link."
                ]
            }
        )


class SignatureInvalid(ValidationError):
    """Gateway signature mismatch. The client only ever sees a generic message."""

    def __init__(self):
        super().__init__({"payment": ["Payment verification failed"]})


class PaymentClosed(ValidationError):
    def __init__(self, gateway_order_id: str, status: str):
        self.gateway_order_id = gateway_order_id
        self.status = status
        super().__init__({"payment": [f"Payment for {gateway_order_id} is already {status}"]})


class InvalidTransition(ValidationError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})


class StorefrontError(Exception):
    """Base class for non-validation storefront errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(StorefrontError):
    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class CouponNotFound(NotFound):
    def __init__(self, code: str):
        super().__init__("Coupon", code)


class Forbidden(StorefrontError):
    pass


class GatewayError(StorefrontError):
    """The payment gateway rejected or failed a request."""
