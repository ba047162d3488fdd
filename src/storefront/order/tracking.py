"""Order tracking — admin commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, TrackingStatus
from storefront.order.queries import load_order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class AppendTrackingStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=TrackingStatus)
    message = String(max_length=500)
    updated_by = String(max_length=255)
    carrier = String(max_length=100)
    tracking_id = String(max_length=255)
    notes = Text()


@storefront.command(part_of="Order")
class UpdateTrackingDetails:
    order_id = Identifier(required=True)
    carrier = String(max_length=100)
    tracking_id = String(max_length=255)
    notes = Text()
    updated_by = String(max_length=255)


@storefront.command_handler(part_of=Order)
class OrderTrackingHandler:
    @handle(AppendTrackingStatus)
    def append_tracking_status(self, command):
        repo = current_domain.repository_for(Order)
        order = load_order(command.order_id)
        previous_status = order.status

        order.append_status(
            status=command.status,
            message=command.message,
            updated_by=command.updated_by,
            carrier=command.carrier,
            tracking_id=command.tracking_id,
            notes=command.notes,
        )
        repo.add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            tracking_number=order.tracking_number,
            previous_status=previous_status,
            new_status=order.status,
            updated_by=command.updated_by,
        )
        return order.to_detail()

    @handle(UpdateTrackingDetails)
    def update_tracking_details(self, command):
        repo = current_domain.repository_for(Order)
        order = load_order(command.order_id)
        order.update_tracking_details(
            carrier=command.carrier,
            tracking_id=command.tracking_id,
            notes=command.notes,
            updated_by=command.updated_by,
        )
        repo.add(order)
        return order.to_detail()
