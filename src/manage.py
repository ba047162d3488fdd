"""Storefront database management CLI.

Provides commands to create and drop the database schema of the storefront
domain, and to run the tracking repair job.

Usage:
    python src/manage.py setup-db          # Create all tables
    python src/manage.py drop-db           # Drop all tables
    python src/manage.py repair-tracking   # Backfill missing tracking data
"""

import argparse
import sys


def _init_domain():
    from storefront.domain import storefront

    print("Initializing storefront domain...")
    storefront.init()
    return storefront


def setup_database():
    """Create the database schema for the storefront domain."""
    from storefront.utils.db import setup_db

    domain = _init_domain()
    print("Creating storefront database schema...")
    providers = setup_db(domain)
    if providers:
        print(f"  schema ready on: {', '.join(providers)}")
    else:
        print("  no SQL providers configured, nothing to create.")
    print("Done.")


def drop_database():
    """Drop the database schema for the storefront domain."""
    from storefront.utils.db import drop_db

    domain = _init_domain()
    print("Dropping storefront database schema...")
    providers = drop_db(domain)
    if providers:
        print(f"  schema dropped on: {', '.join(providers)}")
    else:
        print("  no SQL providers configured, nothing to drop.")
    print("Done.")


def repair_tracking():
    """Backfill tracking numbers and history for orders missing them."""
    from storefront.order.repair import repair_missing_tracking

    domain = _init_domain()
    with domain.domain_context():
        report = repair_missing_tracking()

    print(f"Scanned {report.scanned} orders, repaired {len(report.repaired)}.")
    for order_id in report.shipped_missing_tracking_id:
        print(f"  shipped without tracking id: {order_id}")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("repair-tracking", help="Backfill missing order tracking data")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "repair-tracking":
        repair_tracking()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
