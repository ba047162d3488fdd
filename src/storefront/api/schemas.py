"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class VariantSchema(BaseModel):
    color: str
    size: str


class CartLineSchema(BaseModel):
    product_id: str
    variant: VariantSchema
    quantity: int = Field(ge=1)
    price: float | None = None
    name: str | None = None
    image: str | None = None


class CheckoutItemSchema(BaseModel):
    """A cart line as sent by any client, current or legacy shape."""

    product_id: str
    variant: VariantSchema | None = None
    color: str | None = None  # legacy
    size: str | None = None  # legacy
    quantity: int = Field(ge=1)


class ShippingAddressSchema(BaseModel):
    name: str
    email: str
    phone: str
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(CheckoutItemSchema):
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "variant": {"color": "Red", "size": "M"},
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartItemRequest(CheckoutItemSchema):
    pass


class CartResponse(BaseModel):
    items: list[CartLineSchema]


class ValidateStockRequest(BaseModel):
    items: list[CheckoutItemSchema] | None = None


class StockIssueSchema(BaseModel):
    product_id: str
    name: str
    variant: VariantSchema
    issue: str
    requested_quantity: int
    available_stock: int


class StockValidationResponse(BaseModel):
    valid: bool
    issues: list[StockIssueSchema]


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class ValidateCouponRequest(BaseModel):
    code: str
    subtotal: float | None = Field(default=None, ge=0)


class CouponResponse(BaseModel):
    code: str
    discount_percent: int
    min_order_value: float | None = None
    discount: float | None = None


# ---------------------------------------------------------------------------
# Checkout payments
# ---------------------------------------------------------------------------
class InitiatePaymentRequest(BaseModel):
    items: list[CheckoutItemSchema] | None = None  # defaults to the requester's cart
    coupon_code: str | None = None
    shipping_address: ShippingAddressSchema


class PricingSchema(BaseModel):
    items: list[dict]
    subtotal: float
    discount: float
    discounted_subtotal: float
    shipping: float
    total: float
    coupon: dict | None = None


class PaymentOrderResponse(BaseModel):
    gateway_order_id: str
    amount: float
    amount_minor: int
    currency: str
    key: str
    pricing: PricingSchema


class VerifyPaymentRequest(BaseModel):
    gateway_order_id: str
    gateway_payment_id: str
    gateway_signature: str
    method: str | None = None
    # Sent by clients for reference; the amounts charged come from the stored payment
    items: list[CheckoutItemSchema] | None = None
    coupon_code: str | None = None
    shipping_address: ShippingAddressSchema | None = None


class OrderReferenceResponse(BaseModel):
    order_id: str
    tracking_number: str
    status: str
    payment_status: str
    total: float | None = None
    replayed: bool = False


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Gateway unavailable"


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str


# ---------------------------------------------------------------------------
# Admin: catalogue
# ---------------------------------------------------------------------------
class VariantStockSchema(VariantSchema):
    stock: int = Field(ge=0, default=0)


class CreateProductRequest(BaseModel):
    name: str
    price: float = Field(gt=0)
    slug: str | None = None
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    category: str | None = None
    is_featured: bool = False
    variants: list[VariantStockSchema] = Field(default_factory=list)


class ProductIdResponse(BaseModel):
    product_id: str


class SetStockRequest(BaseModel):
    color: str
    size: str
    stock: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Admin: coupons
# ---------------------------------------------------------------------------
class CreateCouponRequest(BaseModel):
    code: str
    discount_percent: int = Field(ge=1, le=100)
    min_order_value: float | None = Field(default=None, ge=0)
    is_active: bool = True


# ---------------------------------------------------------------------------
# Admin: tracking
# ---------------------------------------------------------------------------
class AppendTrackingStatusRequest(BaseModel):
    status: str
    message: str | None = None
    carrier: str | None = None
    tracking_id: str | None = None
    notes: str | None = None


class UpdateTrackingDetailsRequest(BaseModel):
    carrier: str | None = None
    tracking_id: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Site settings
# ---------------------------------------------------------------------------
class SiteSettingsSchema(BaseModel):
    free_shipping_threshold: float
    flat_shipping_fee: float
    max_online_payment_amount: float


class UpdateSiteSettingsRequest(BaseModel):
    free_shipping_threshold: float | None = Field(default=None, ge=0)
    flat_shipping_fee: float | None = Field(default=None, ge=0)
    max_online_payment_amount: float | None = Field(default=None, ge=0)
