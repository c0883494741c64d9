"""Packline database management CLI.

Creates and drops the fulfillment schema using the setup_db/drop_db
utilities of the fulfillment domain. The database comes from the active
PROTEAN_ENV overlay in domain.toml.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create tables for every aggregate and entity of the fulfillment domain."""
    from fulfillment.domain import fulfillment
    from fulfillment.utils.db import setup_db

    print("Initializing fulfillment domain...")
    fulfillment.init()
    print("Creating fulfillment database schema...")
    setup_db(fulfillment)
    print("  fulfillment schema ready.")


def drop_database():
    from fulfillment.domain import fulfillment
    from fulfillment.utils.db import drop_db

    print("Initializing fulfillment domain...")
    fulfillment.init()
    print("Dropping fulfillment database schema...")
    drop_db(fulfillment)
    print("  fulfillment schema dropped.")


def main():
    parser = argparse.ArgumentParser(description="Packline database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
