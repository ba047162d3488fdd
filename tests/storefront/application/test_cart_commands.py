"""Application tests for cart commands against live stock."""

import pytest
from protean import current_domain
from storefront.cart.cart import ShoppingCart
from storefront.cart.items import ClearCart, RemoveFromCart, UpdateCartQuantity, get_cart
from storefront.errors import InsufficientStock, NotFound


class TestAddToCart:
    def test_add_snapshots_live_product(self, store, shirt):
        lines = store.add_to_cart("user-001", shirt, quantity=2)

        assert lines == get_cart("user-001")
        assert lines[0]["quantity"] == 2
        assert lines[0]["price"] == 500.0
        assert lines[0]["name"] == "Linen Shirt"
        assert lines[0]["image"] == "https://cdn/1.jpg"

    def test_cart_created_on_first_add(self, store, shirt):
        store.add_to_cart("user-001", shirt)
        cart = current_domain.repository_for(ShoppingCart).get("user-001")
        assert len(cart.items) == 1

    def test_merged_quantity_checked_against_stock(self, store, shirt):
        store.add_to_cart("user-001", shirt, quantity=4)
        with pytest.raises(InsufficientStock) as exc:
            store.add_to_cart("user-001", shirt, quantity=2)

        assert exc.value.available == 5
        assert get_cart("user-001")[0]["quantity"] == 4

    def test_unknown_variant(self, store, shirt):
        with pytest.raises(NotFound):
            store.add_to_cart("user-001", shirt, color="Green")

    def test_unknown_product(self, store):
        with pytest.raises(NotFound):
            store.add_to_cart("user-001", "missing-product")


class TestUpdateQuantity:
    def test_replaces_quantity(self, store, shirt):
        store.add_to_cart("user-001", shirt, quantity=1)
        current_domain.process(
            UpdateCartQuantity(user_id="user-001", product_id=shirt, color="Red", size="M", quantity=5),
            asynchronous=False,
        )
        assert get_cart("user-001")[0]["quantity"] == 5

    def test_above_stock_fails_without_clamping(self, store, shirt):
        store.add_to_cart("user-001", shirt, quantity=1)
        with pytest.raises(InsufficientStock) as exc:
            current_domain.process(
                UpdateCartQuantity(user_id="user-001", product_id=shirt, color="Red", size="M", quantity=6),
                asynchronous=False,
            )
        assert exc.value.available == 5
        assert get_cart("user-001")[0]["quantity"] == 1

    def test_line_not_in_cart(self, store, shirt):
        with pytest.raises(NotFound):
            current_domain.process(
                UpdateCartQuantity(user_id="user-001", product_id=shirt, color="Red", size="M", quantity=1),
                asynchronous=False,
            )


class TestRemoveAndClear:
    def test_remove_line(self, store, shirt):
        store.add_to_cart("user-001", shirt)
        current_domain.process(
            RemoveFromCart(user_id="user-001", product_id=shirt, color="Red", size="M"),
            asynchronous=False,
        )
        assert get_cart("user-001") == []

    def test_remove_absent_line_is_fine(self, store, shirt):
        result = current_domain.process(
            RemoveFromCart(user_id="user-001", product_id=shirt, color="Red", size="M"),
            asynchronous=False,
        )
        assert result == []

    def test_clear(self, store, shirt):
        other = store.add_product(name="Canvas Tote", price=250.0, variants=(("Natural", "One", 10),))
        store.add_to_cart("user-001", shirt)
        store.add_to_cart("user-001", other, color="Natural", size="One")

        current_domain.process(ClearCart(user_id="user-001"), asynchronous=False)
        assert get_cart("user-001") == []

    def test_carts_are_per_user(self, store, shirt):
        store.add_to_cart("user-001", shirt)
        assert get_cart("user-002") == []


class TestGetCart:
    def test_does_not_revalidate_stock(self, store, shirt):
        from storefront.catalogue.management import SetVariantStock

        store.add_to_cart("user-001", shirt, quantity=3)
        current_domain.process(
            SetVariantStock(product_id=shirt, color="Red", size="M", stock=0),
            asynchronous=False,
        )
        assert get_cart("user-001")[0]["quantity"] == 3
