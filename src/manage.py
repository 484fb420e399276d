"""Storefront ordering management CLI.

Creates and drops the database schema and seeds stock levels.

Usage:
    python src/manage.py setup-db                      # Create all tables
    python src/manage.py drop-db                       # Drop all tables
    python src/manage.py seed-stock prod-1=10 prod-2=5 # Set available stock
"""

import argparse
import sys


def _parse_stock_pairs(pairs):
    levels = {}
    for pair in pairs:
        product_id, sep, quantity = pair.partition("=")
        if not sep or not product_id or not quantity.isdigit():
            raise argparse.ArgumentTypeError(f"Expected PRODUCT_ID=QUANTITY, got '{pair}'")
        levels[product_id] = int(quantity)
    return levels


def setup_database():
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    setup_db(ordering)
    print("Done.")


def drop_database():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    drop_db(ordering)
    print("Done.")


def seed_stock(levels):
    """Set the available quantity for each product."""
    from ordering.domain import ordering

    ordering.init()
    with ordering.domain_context():
        from ordering.dispatch import process
        from ordering.stock.initialization import InitializeStock

        for product_id, available in levels.items():
            process(InitializeStock(product_id=product_id, available=available))
            print(f"  {product_id}: {available} available")

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront ordering management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed-stock", help="Set available stock for products")
    seed_parser.add_argument("levels", nargs="+", metavar="PRODUCT_ID=QUANTITY")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-stock":
        try:
            levels = _parse_stock_pairs(args.levels)
        except argparse.ArgumentTypeError as exc:
            parser.error(str(exc))
        seed_stock(levels)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
