"""BDD tests for order tracking."""

from pytest_bdd import scenarios

scenarios("features/order_tracking.feature")
