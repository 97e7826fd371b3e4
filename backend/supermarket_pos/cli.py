# Overview: Flask CLI command groups for bootstrap and catalog inspection.

# backend/supermarket_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default cashier, manager and admin users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask products add --name "Rice 5kg" --price-cents 450000 --stock 25
#   Add a product to the catalog.
# - python -m flask products list
#   List products with price and stock.
# - python -m flask products low-stock [--threshold 10]
#   List products running low.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import catalog_service
from .services.export_service import format_cents
from .validation import ConflictError, ValidationError

DEFAULT_USERS = (
    ("admin", "Administrator", "admin"),
    ("manager", "Store Manager", "manager"),
    ("cashier", "Front Cashier", "cashier"),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the POS database: tables plus one user per role.

    Creates:
    - All tables (no-op if they exist)
    - Users: admin, manager, cashier
    """
    click.echo("START Initializing POS system...")
    db.create_all()
    click.echo("PASS Tables ready")

    for username, full_name, role in DEFAULT_USERS:
        user = db.session.query(User).filter_by(username=username).first()
        if user:
            click.echo(f"PASS User exists: {username} ({user.role})")
            continue
        db.session.add(User(username=username, full_name=full_name, role=role))
        db.session.commit()
        click.echo(f"PASS Created user: {username} ({role})")

    click.echo("DONE System initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('products')
def products_group():
    """Catalog inspection and seeding commands."""


@products_group.command('add')
@click.option('--name', required=True, help='Product name (unique)')
@click.option('--price-cents', required=True, type=int, help='Unit price in cents')
@click.option('--stock', 'stock_quantity', default=0, type=int, help='Units on hand')
@with_appcontext
def add_product(name, price_cents, stock_quantity):
    """Add a product to the catalog."""
    try:
        product = catalog_service.create_product(
            db.session, name=name, price_cents=price_cents, stock_quantity=stock_quantity
        )
    except (ValidationError, ConflictError) as exc:
        raise click.ClickException(str(exc))
    click.echo(f"PASS Created product {product.id}: {product.name}")


def _echo_products(products):
    if not products:
        click.echo("No products found.")
        return
    click.echo(f"{'ID':>5}  {'Name':<30} {'Price':>12} {'Stock':>7}")
    for p in products:
        click.echo(f"{p.id:>5}  {p.name:<30} {format_cents(p.price_cents):>12} {p.stock_quantity:>7}")


@products_group.command('list')
@with_appcontext
def list_products():
    """List products with price and stock."""
    _echo_products(catalog_service.list_products(db.session))


@products_group.command('low-stock')
@click.option('--threshold', default=None, type=int, help='Units below which stock is low')
@with_appcontext
def low_stock(threshold):
    """List products running low."""
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    _echo_products(catalog_service.low_stock_products(db.session, threshold))


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
