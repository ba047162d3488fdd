"""Repair job for orders with missing tracking data.

Scans every order, backfills a tracking number and tracking history where
they are missing, and reports shipped orders that still have no carrier
tracking id. Safe to run repeatedly.
"""

from dataclasses import dataclass, field

import structlog
from protean.utils.globals import current_domain

from storefront.order.order import Order
from storefront.order.queries import all_orders, unique_tracking_number

logger = structlog.get_logger(__name__)


@dataclass
class RepairReport:
    scanned: int = 0
    repaired: list[str] = field(default_factory=list)
    shipped_missing_tracking_id: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "repaired": self.repaired,
            "repaired_count": len(self.repaired),
            "shipped_missing_tracking_id": self.shipped_missing_tracking_id,
        }


def repair_missing_tracking() -> RepairReport:
    repo = current_domain.repository_for(Order)
    report = RepairReport()

    for order in all_orders():
        report.scanned += 1

        assigned_number = False
        if not order.tracking_number:
            order.tracking_number = unique_tracking_number(order.created_at)
            assigned_number = True
        backfilled = order.backfill_tracking()

        if assigned_number or backfilled:
            repo.add(order)
            report.repaired.append(str(order.id))

        if order.missing_tracking_id:
            report.shipped_missing_tracking_id.append(str(order.id))

    logger.info(
        "Tracking repair finished",
        scanned=report.scanned,
        repaired=len(report.repaired),
        shipped_missing_tracking_id=len(report.shipped_missing_tracking_id),
    )
    return report
