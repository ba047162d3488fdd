"""FastAPI routes for the Storefront — cart, coupons, checkout, orders, tracking and admin."""

import json
import os

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from storefront.api.deps import Requester, admin_requester, current_requester
from storefront.api.schemas import (
    AddCartItemRequest,
    AppendTrackingStatusRequest,
    CartResponse,
    ConfigureGatewayRequest,
    CouponResponse,
    CreateCouponRequest,
    CreateProductRequest,
    GatewayConfigResponse,
    InitiatePaymentRequest,
    OrderReferenceResponse,
    PaymentOrderResponse,
    ProductIdResponse,
    SetStockRequest,
    SiteSettingsSchema,
    StatusResponse,
    StockValidationResponse,
    UpdateCartItemRequest,
    UpdateSiteSettingsRequest,
    UpdateTrackingDetailsRequest,
    ValidateCouponRequest,
    ValidateStockRequest,
    VariantStockSchema,
    VerifyPaymentRequest,
)
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity, get_cart
from storefront.cart.legacy import normalize_item, normalize_items
from storefront.catalogue.lookup import check_stock, load_product
from storefront.catalogue.management import AddProduct, AddVariant, SetVariantStock
from storefront.checkout.pricing import to_money
from storefront.coupon.lookup import lookup
from storefront.coupon.management import ActivateCoupon, CreateCoupon, DeactivateCoupon
from storefront.errors import CouponMinimumNotMet
from storefront.gateway import get_gateway
from storefront.gateway.fake_adapter import FakeGateway
from storefront.order.queries import get_by_order_id, get_by_tracking_number, list_for_user
from storefront.order.repair import repair_missing_tracking
from storefront.order.tracking import AppendTrackingStatus, UpdateTrackingDetails
from storefront.payment.initiation import InitiatePaymentOrder
from storefront.payment.queries import pending_reconciliation
from storefront.payment.verification import finalize_payment
from storefront.settings.management import UpdateSiteSettings
from storefront.settings.site_settings import get_site_settings


def _items_payload(items) -> list[dict]:
    normalized = normalize_items(item.model_dump(exclude_none=True) for item in items)
    for item in normalized:
        _require_variant(item)
    return normalized


def _require_variant(item: dict) -> dict:
    variant = item.get("variant") or {}
    if not variant.get("color") or not variant.get("size"):
        raise HTTPException(status_code=400, detail="Item variant color and size are required")
    return variant


def _settings_schema(settings) -> SiteSettingsSchema:
    return SiteSettingsSchema(
        free_shipping_threshold=settings.free_shipping_threshold,
        flat_shipping_fee=settings.flat_shipping_fee,
        max_online_payment_amount=settings.online_payment_limit,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def read_cart(requester: Requester = Depends(current_requester)) -> CartResponse:
    return CartResponse(items=get_cart(requester.user_id))


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddCartItemRequest, requester: Requester = Depends(current_requester)) -> CartResponse:
    item = normalize_item(body.model_dump(exclude_none=True))
    variant = _require_variant(item)
    command = AddToCart(
        user_id=requester.user_id,
        product_id=item["product_id"],
        color=variant["color"],
        size=variant["size"],
        quantity=item["quantity"],
    )
    lines = current_domain.process(command, asynchronous=False)
    return CartResponse(items=lines)


@cart_router.put("/items", response_model=CartResponse)
async def update_cart_item(
    body: UpdateCartItemRequest, requester: Requester = Depends(current_requester)
) -> CartResponse:
    item = normalize_item(body.model_dump(exclude_none=True))
    variant = _require_variant(item)
    command = UpdateCartQuantity(
        user_id=requester.user_id,
        product_id=item["product_id"],
        color=variant["color"],
        size=variant["size"],
        quantity=item["quantity"],
    )
    lines = current_domain.process(command, asynchronous=False)
    return CartResponse(items=lines)


@cart_router.delete("/items", response_model=CartResponse)
async def remove_cart_item(
    product_id: str,
    color: str,
    size: str,
    requester: Requester = Depends(current_requester),
) -> CartResponse:
    command = RemoveFromCart(user_id=requester.user_id, product_id=product_id, color=color, size=size)
    lines = current_domain.process(command, asynchronous=False)
    return CartResponse(items=lines)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(requester: Requester = Depends(current_requester)) -> CartResponse:
    current_domain.process(ClearCart(user_id=requester.user_id), asynchronous=False)
    return CartResponse(items=[])


@cart_router.post("/validate-stock", response_model=StockValidationResponse)
async def validate_stock(
    body: ValidateStockRequest, requester: Requester = Depends(current_requester)
) -> StockValidationResponse:
    """Report every cart line that can no longer be fulfilled."""
    items = _items_payload(body.items) if body.items is not None else get_cart(requester.user_id)
    issues = [shortage.to_dict() for shortage in check_stock(items)]
    return StockValidationResponse(valid=not issues, issues=issues)


# ---------------------------------------------------------------------------
# Catalogue Router (public reads)
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("/{product_id}")
async def read_product(product_id: str) -> dict:
    product = load_product(product_id)
    return {
        "product_id": str(product.id),
        "name": product.name,
        "slug": product.slug,
        "description": product.description,
        "price": product.price,
        "images": product.image_urls,
        "category": product.category,
        "is_featured": product.is_featured,
        "variants": [{"color": v.color, "size": v.size, "stock": v.stock} for v in product.variants],
    }


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("/validate", response_model=CouponResponse)
async def validate_coupon(body: ValidateCouponRequest) -> CouponResponse:
    coupon = lookup(body.code)
    discount = None
    if body.subtotal is not None:
        min_order_value = coupon.get("min_order_value")
        if min_order_value and body.subtotal < min_order_value:
            raise CouponMinimumNotMet(coupon["code"], min_order_value, body.subtotal)
        discount = float(to_money(body.subtotal * coupon["discount_percent"] / 100))
    return CouponResponse(**coupon, discount=discount)


# ---------------------------------------------------------------------------
# Checkout Payments Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/orders", status_code=201, response_model=PaymentOrderResponse)
async def create_payment_order(
    body: InitiatePaymentRequest, requester: Requester = Depends(current_requester)
) -> PaymentOrderResponse:
    """Price the cart and open a gateway order for it."""
    items = _items_payload(body.items) if body.items is not None else get_cart(requester.user_id)
    command = InitiatePaymentOrder(
        user_id=requester.user_id,
        items=json.dumps(items),
        coupon_code=body.coupon_code,
        shipping_address=json.dumps(body.shipping_address.model_dump()),
    )
    result = current_domain.process(command, asynchronous=False)
    return PaymentOrderResponse(**result)


@payment_router.post("/verify", response_model=OrderReferenceResponse)
async def verify_payment(body: VerifyPaymentRequest, requester: Requester = Depends(current_requester)):
    """Verify the gateway signature and place the order. Safe to repeat."""
    result = finalize_payment(
        user_id=requester.user_id,
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        gateway_signature=body.gateway_signature,
        method=body.method,
    )
    return OrderReferenceResponse(**result)


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("")
async def list_orders(requester: Requester = Depends(current_requester)) -> list[dict]:
    return list_for_user(requester.user_id)


@order_router.get("/{order_id}")
async def read_order(order_id: str, requester: Requester = Depends(current_requester)) -> dict:
    return get_by_order_id(order_id, requester_id=requester.user_id, is_admin=requester.is_admin)


# ---------------------------------------------------------------------------
# Public Tracking Router
# ---------------------------------------------------------------------------
tracking_router = APIRouter(prefix="/tracking", tags=["tracking"])


@tracking_router.get("/{tracking_number}")
async def track_order(tracking_number: str) -> dict:
    return get_by_tracking_number(tracking_number)


# ---------------------------------------------------------------------------
# Site Settings Router (public read)
# ---------------------------------------------------------------------------
settings_router = APIRouter(prefix="/site-settings", tags=["settings"])


@settings_router.get("", response_model=SiteSettingsSchema)
async def read_site_settings() -> SiteSettingsSchema:
    return _settings_schema(get_site_settings())


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def create_product(
    body: CreateProductRequest, requester: Requester = Depends(admin_requester)
) -> ProductIdResponse:
    command = AddProduct(
        name=body.name,
        price=body.price,
        slug=body.slug,
        description=body.description,
        images=json.dumps(body.images),
        category=body.category,
        is_featured=body.is_featured,
        variants=json.dumps([variant.model_dump() for variant in body.variants]),
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@admin_router.post("/products/{product_id}/variants", status_code=201, response_model=StatusResponse)
async def add_product_variant(
    product_id: str, body: VariantStockSchema, requester: Requester = Depends(admin_requester)
) -> StatusResponse:
    command = AddVariant(product_id=product_id, color=body.color, size=body.size, stock=body.stock)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.put("/products/{product_id}/stock", response_model=StatusResponse)
async def set_variant_stock(
    product_id: str, body: SetStockRequest, requester: Requester = Depends(admin_requester)
) -> StatusResponse:
    command = SetVariantStock(product_id=product_id, color=body.color, size=body.size, stock=body.stock)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.post("/coupons", status_code=201, response_model=CouponResponse)
async def create_coupon(body: CreateCouponRequest, requester: Requester = Depends(admin_requester)):
    command = CreateCoupon(
        code=body.code,
        discount_percent=body.discount_percent,
        min_order_value=body.min_order_value,
        is_active=body.is_active,
    )
    code = current_domain.process(command, asynchronous=False)
    return CouponResponse(code=code, discount_percent=body.discount_percent, min_order_value=body.min_order_value)


@admin_router.post("/coupons/{code}/activate", response_model=StatusResponse)
async def activate_coupon(code: str, requester: Requester = Depends(admin_requester)) -> StatusResponse:
    current_domain.process(ActivateCoupon(code=code), asynchronous=False)
    return StatusResponse(status="active")


@admin_router.post("/coupons/{code}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(code: str, requester: Requester = Depends(admin_requester)) -> StatusResponse:
    current_domain.process(DeactivateCoupon(code=code), asynchronous=False)
    return StatusResponse(status="inactive")


@admin_router.get("/orders/{order_id}")
async def admin_read_order(order_id: str, requester: Requester = Depends(admin_requester)) -> dict:
    return get_by_order_id(order_id, requester_id=requester.user_id, is_admin=True)


@admin_router.post("/orders/{order_id}/tracking/status")
async def append_tracking_status(
    order_id: str, body: AppendTrackingStatusRequest, requester: Requester = Depends(admin_requester)
) -> dict:
    command = AppendTrackingStatus(
        order_id=order_id,
        status=body.status,
        message=body.message,
        updated_by=requester.user_id,
        carrier=body.carrier,
        tracking_id=body.tracking_id,
        notes=body.notes,
    )
    return current_domain.process(command, asynchronous=False)


@admin_router.put("/orders/{order_id}/tracking")
async def update_tracking_details(
    order_id: str, body: UpdateTrackingDetailsRequest, requester: Requester = Depends(admin_requester)
) -> dict:
    command = UpdateTrackingDetails(
        order_id=order_id,
        carrier=body.carrier,
        tracking_id=body.tracking_id,
        notes=body.notes,
        updated_by=requester.user_id,
    )
    return current_domain.process(command, asynchronous=False)


@admin_router.post("/orders/repair-tracking")
async def repair_tracking(requester: Requester = Depends(admin_requester)) -> dict:
    return repair_missing_tracking().to_dict()


@admin_router.get("/payments/reconciliation")
async def payments_needing_reconciliation(requester: Requester = Depends(admin_requester)) -> list[dict]:
    return pending_reconciliation()


@admin_router.get("/settings", response_model=SiteSettingsSchema)
async def admin_read_settings(requester: Requester = Depends(admin_requester)) -> SiteSettingsSchema:
    return _settings_schema(get_site_settings())


@admin_router.put("/settings", response_model=SiteSettingsSchema)
async def update_settings(
    body: UpdateSiteSettingsRequest, requester: Requester = Depends(admin_requester)
) -> SiteSettingsSchema:
    command = UpdateSiteSettings(
        free_shipping_threshold=body.free_shipping_threshold,
        flat_shipping_fee=body.flat_shipping_fee,
        max_online_payment_amount=body.max_online_payment_amount,
    )
    current_domain.process(command, asynchronous=False)
    return _settings_schema(get_site_settings())
