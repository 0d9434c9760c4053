"""Storefront database management CLI.

Provides commands to create and drop database schemas for both domains and
to seed the catalogue.

Usage:
    python src/manage.py setup-db                 # Create all tables
    python src/manage.py drop-db                  # Drop all tables
    python src/manage.py add-product --sku TEE-1 --name "T-shirt" --price 19.99 --stock 25
"""

import argparse
import sys
from decimal import Decimal


def _domains(names=None):
    from catalogue.domain import catalogue
    from ordering.domain import ordering

    all_domains = {"catalogue": catalogue, "ordering": ordering}
    return {name: all_domains[name] for name in names} if names else all_domains


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    for name, domain in _domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Creating {name} database schema...")
        with domain.domain_context():
            domain.setup_database()
        print(f"  {name} schema ready.")

    print("Done.")


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    for name, domain in _domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Dropping {name} database schema...")
        with domain.domain_context():
            domain.drop_database()
        print(f"  {name} schema dropped.")

    print("Done.")


def add_product(sku: str, name: str, price: Decimal, stock: int) -> str:
    """Register a catalogue product so orders can be placed against it."""
    from catalogue.domain import catalogue
    from catalogue.product.registration import AddProduct

    catalogue.init()
    with catalogue.domain_context():
        return catalogue.process(AddProduct(sku=sku, name=name, price=price, stock=stock), asynchronous=False)


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (("setup-db", "Create all database tables"), ("drop-db", "Drop all database tables")):
        command_parser = subparsers.add_parser(command, help=help_text)
        command_parser.add_argument(
            "--domain",
            choices=["catalogue", "ordering"],
            nargs="*",
            help="Specific domain(s) to target (default: all)",
        )

    product_parser = subparsers.add_parser("add-product", help="Add a product to the catalogue")
    product_parser.add_argument("--sku", required=True)
    product_parser.add_argument("--name", required=True)
    product_parser.add_argument("--price", required=True, type=Decimal)
    product_parser.add_argument("--stock", type=int, default=0)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    elif args.command == "add-product":
        product_id = add_product(args.sku, args.name, args.price, args.stock)
        print(f"Product {args.sku} created with id {product_id}.")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
