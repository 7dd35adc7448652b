# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: python -m flask --app stockdesk <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask --app stockdesk system init-db
#   Create any missing tables (idempotent; use `flask db upgrade` for migrations).
# - python -m flask --app stockdesk system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask --app stockdesk system seed-demo
#   Insert a few staff members and products if the catalogue is empty.
#
# Stock inspection/repair:
# - python -m flask --app stockdesk stock low-stock
#   List LOW_STOCK and OUT_OF_STOCK products.
# - python -m flask --app stockdesk stock recompute-status
#   Re-derive every product's status from quantity / min_stock.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, Staff
from .services import products_service
from .services.stock_service import low_stock_products, recompute_all_statuses


DEMO_STAFF = [
    {"employee_id": "EMP-001", "first_name": "Ama", "last_name": "Mensah", "position": "Sales"},
    {"employee_id": "EMP-002", "first_name": "Kofi", "last_name": "Boateng", "position": "Store keeper"},
]

DEMO_PRODUCTS = [
    {"sku": "FEED-LAYER-25", "name": "Layer mash 25kg", "category": "Poultry feed",
     "quantity": 40, "min_stock": 10, "max_stock": 200, "price_per_unit_cents": 18500},
    {"sku": "FEED-BROILER-25", "name": "Broiler starter 25kg", "category": "Poultry feed",
     "quantity": 8, "min_stock": 10, "max_stock": 150, "price_per_unit_cents": 21000},
    {"sku": "FEED-PIG-50", "name": "Pig grower 50kg", "category": "Pig feed",
     "quantity": 0, "min_stock": 5, "max_stock": 80, "price_per_unit_cents": 32000},
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask --app stockdesk system seed-demo' for sample data.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Insert demo staff and products (skipped when products already exist)."""
    if db.session.query(Product.id).first() is not None:
        click.echo("SKIP Products already exist; nothing seeded.")
        return

    for row in DEMO_STAFF:
        if not db.session.query(Staff).filter_by(employee_id=row["employee_id"]).first():
            db.session.add(Staff(**row))
    db.session.commit()
    click.echo(f"PASS Staff: {db.session.query(Staff).count()}")

    for row in DEMO_PRODUCTS:
        product = products_service.create_product(patch=dict(row))
        click.echo(f"PASS Product {product['sku']} ({product['status']}, qty {product['quantity']})")


@click.group('stock')
def stock_group():
    """Stock inspection and repair commands."""


@stock_group.command('low-stock')
@with_appcontext
def list_low_stock():
    """List products at or below their minimum stock."""
    products = low_stock_products()
    if not products:
        click.echo("PASS No products need restocking.")
        return

    click.echo(f"{'SKU':<20} {'Name':<30} {'Qty':>6} {'Min':>6}  Status")
    click.echo("-" * 80)
    for p in products:
        click.echo(f"{p.sku:<20} {p.name[:30]:<30} {p.quantity:>6} {p.min_stock:>6}  {p.status}")


@stock_group.command('recompute-status')
@with_appcontext
def recompute_status():
    """Re-derive product statuses (DISCONTINUED is left alone)."""
    try:
        changed = recompute_all_statuses()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    click.echo(f"PASS {changed} product status(es) updated.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stock_group)
