"""Shared fixtures for storefront tests.

``store`` is a small driver over the domain's commands so tests can set up
catalogue, coupons, carts and payments in one line each.
"""

import json

import pytest
from protean import current_domain
from storefront.cart.items import AddToCart
from storefront.catalogue.management import AddProduct
from storefront.coupon.management import CreateCoupon
from storefront.gateway import set_gateway
from storefront.gateway.fake_adapter import FakeGateway
from storefront.payment.initiation import InitiatePaymentOrder
from storefront.payment.verification import finalize_payment

SHIPPING_ADDRESS = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "+91 98450 00000",
    "address_line1": "12 Residency Road",
    "address_line2": "Flat 4B",
    "city": "Bengaluru",
    "state": "Karnataka",
    "postal_code": "560025",
    "country": "India",
}


class StoreDriver:
    def __init__(self, gateway: FakeGateway):
        self.gateway = gateway
        self.shipping_address = dict(SHIPPING_ADDRESS)

    def add_product(self, name="Linen Shirt", price=500.0, variants=(("Red", "M", 5),), images=("https://cdn/1.jpg",)):
        return current_domain.process(
            AddProduct(
                name=name,
                price=price,
                images=json.dumps(list(images)),
                variants=json.dumps([{"color": c, "size": s, "stock": stock} for c, s, stock in variants]),
            ),
            asynchronous=False,
        )

    def create_coupon(self, code="SAVE10", discount_percent=10, min_order_value=500.0, is_active=True):
        return current_domain.process(
            CreateCoupon(
                code=code,
                discount_percent=discount_percent,
                min_order_value=min_order_value,
                is_active=is_active,
            ),
            asynchronous=False,
        )

    def add_to_cart(self, user_id, product_id, color="Red", size="M", quantity=1):
        return current_domain.process(
            AddToCart(user_id=user_id, product_id=product_id, color=color, size=size, quantity=quantity),
            asynchronous=False,
        )

    @staticmethod
    def line(product_id, quantity=1, color="Red", size="M"):
        return {"product_id": product_id, "variant": {"color": color, "size": size}, "quantity": quantity}

    def initiate(self, user_id, items, coupon_code=None, shipping_address=None):
        return current_domain.process(
            InitiatePaymentOrder(
                user_id=user_id,
                items=json.dumps(items),
                coupon_code=coupon_code,
                shipping_address=json.dumps(shipping_address or self.shipping_address),
            ),
            asynchronous=False,
        )

    def pay(self, user_id, gateway_order_id, payment_id="pay_001", signature=None):
        """Finalize a payment the way the client does after a successful checkout."""
        return finalize_payment(
            user_id=user_id,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=payment_id,
            gateway_signature=signature if signature is not None else self.gateway.sign(gateway_order_id, payment_id),
            method="upi",
        )

    def checkout(self, user_id, items, coupon_code=None, payment_id="pay_001"):
        payment_order = self.initiate(user_id, items, coupon_code=coupon_code)
        return self.pay(user_id, payment_order["gateway_order_id"], payment_id=payment_id)


@pytest.fixture(autouse=True)
def gateway():
    fake = FakeGateway(key_id="rzp_test_key", secret="test-secret")
    set_gateway(fake)
    return fake


@pytest.fixture
def store(gateway):
    return StoreDriver(gateway)


@pytest.fixture
def shirt(store):
    """Product priced 500 with a single Red/M variant holding 5 units."""
    return store.add_product()


@pytest.fixture
def save10(store):
    """10% off with a minimum order value of 500."""
    return store.create_coupon()


@pytest.fixture
def placed_order(store, shirt):
    """Reference to a paid order for two shirts placed by user-001."""
    return store.checkout("user-001", [store.line(shirt, quantity=2)])
