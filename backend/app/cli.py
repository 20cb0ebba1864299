# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/app/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Delete all rows (catalog, sales, debits, expenses) but keep the schema.
# - python -m flask system seed-demo
#   Insert a small demo catalog (categories, products, services).
#
# Debit inspection:
# - python -m flask debits list [--status PENDING|PARTIAL|PAID]
#   List debits with paid / total amounts.
#
# Product inspection:
# - python -m flask products low-stock [--threshold 5]
#   List products whose quantity is at or below the threshold.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import (
    Category, Product, Service, Transaction, SellHistory,
    Debit, DebitItem, DailyExpense, SupplyExpense,
)
from .models.debits import DEBIT_STATUSES


def _fmt_cents(cents: int) -> str:
    return f"{cents / 100:,.2f}"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for sample data.")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """
    Delete every row while keeping the schema.

    Removes: debits, sell history, transactions, products, categories,
    services and expenses.
    """
    if not yes:
        click.confirm("WARN This will DELETE all data. Are you sure?", abort=True)

    click.echo("WIPE  Clearing data...")

    # Delete in FK-safe order (children before parents)
    tables = [
        ("DebitItem", DebitItem),
        ("Debit", Debit),
        ("SellHistory", SellHistory),
        ("Transaction", Transaction),
        ("Product", Product),
        ("Category", Category),
        ("Service", Service),
        ("DailyExpense", DailyExpense),
        ("SupplyExpense", SupplyExpense),
    ]

    total_deleted = 0
    for name, model in tables:
        count = db.session.query(model).delete()
        if count:
            click.echo(f"  DELETE {name}: {count} rows")
            total_deleted += count

    db.session.commit()
    click.echo(f"PASS Wipe complete. {total_deleted} rows deleted.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Insert a small demo catalog. Idempotent: skips rows that already exist.
    """
    demo_catalog = {
        "Beverages": [
            ("Mineral Water 500ml", 48, 35, 60),
            ("Orange Juice 1L", 20, 120, 180),
        ],
        "Stationery": [
            ("A4 Notebook", 30, 150, 250),
            ("Ballpoint Pen", 100, 20, 50),
        ],
    }
    demo_services = [
        ("Photocopy", "Per page, black and white", 10),
        ("Lamination", "A4 sheet", 150),
    ]

    created = 0
    for category_name, products in demo_catalog.items():
        category = db.session.query(Category).filter_by(name=category_name).first()
        if not category:
            category = Category(name=category_name)
            db.session.add(category)
            db.session.flush()
            created += 1
        for name, quantity, cost, price in products:
            if db.session.query(Product).filter_by(name=name, category_id=category.id).first():
                continue
            db.session.add(Product(
                category_id=category.id,
                name=name,
                quantity=quantity,
                initial_price_cents=cost,
                selling_price_cents=price,
            ))
            created += 1

    for name, description, price in demo_services:
        if db.session.query(Service).filter_by(name=name).first():
            continue
        db.session.add(Service(name=name, description=description, default_price_cents=price))
        created += 1

    db.session.commit()
    click.echo(f"PASS Demo data seeded ({created} rows created).")


@click.group('debits')
def debits_group():
    """Debit inspection commands."""


@debits_group.command('list')
@click.option('--status', type=click.Choice(sorted(DEBIT_STATUSES), case_sensitive=False), help='Filter by status')
@with_appcontext
def list_debits_cli(status):
    """
    List debits, newest first.

    Example:
        flask debits list
        flask debits list --status PARTIAL
    """
    query = db.session.query(Debit)
    if status:
        query = query.filter(Debit.status == status.upper())
    debits = query.order_by(Debit.created_at.desc(), Debit.id.desc()).all()

    if not debits:
        click.echo("No debits found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Customer':<25} {'Status':<9} {'Paid':>12} {'Total':>12} {'Remaining':>12}")
    click.echo("="*90)

    for debit in debits:
        click.echo(
            f"{debit.id:<5} {(debit.customer_name or '-')[:25]:<25} {debit.status:<9} "
            f"{_fmt_cents(debit.paid_amount_cents):>12} {_fmt_cents(debit.total_amount_cents):>12} "
            f"{_fmt_cents(debit.remaining_cents):>12}"
        )

    click.echo("="*90)
    click.echo(f"Total: {len(debits)} debits\n")


@click.group('products')
def products_group():
    """Product inspection commands."""


@products_group.command('low-stock')
@click.option('--threshold', type=int, default=5, show_default=True, help='Maximum quantity to report')
@with_appcontext
def low_stock_cli(threshold):
    """List products whose quantity is at or below the threshold."""
    products = (
        db.session.query(Product)
        .filter(Product.quantity <= threshold)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )

    if not products:
        click.echo(f"No products at or below {threshold} units.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Name':<35} {'Category':<20} {'Qty':>6}")
    click.echo("="*70)
    for product in products:
        category_name = product.category.name if product.category else "-"
        click.echo(f"{product.id:<5} {product.name[:35]:<35} {category_name[:20]:<20} {product.quantity:>6}")
    click.echo("="*70 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(debits_group)
    app.cli.add_command(products_group)
