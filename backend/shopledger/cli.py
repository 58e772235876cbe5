# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/shopledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to shopledger (PowerShell: $env:FLASK_APP="shopledger").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables and seed the default categories (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Categories:
# - python -m flask categories list
#   List categories in display order (defaults when the table is empty).
# - python -m flask categories seed
#   Persist the 15 default categories when the table is empty.
#
# Inventory:
# - python -m flask products list [--low]
#   List products with stock levels (only low/out of stock with --low).
#
# Ledger:
# - python -m flask ledger summary --period daily --date 2026-01-31
#   Income/expense totals for a day, month or year.
#
# Terminal session:
# - python -m flask session local-admin --enable | --disable
#   Toggle the device-local admin bypass flag.
# - python -m flask session hash-password
#   Print a bcrypt hash for LOCAL_ADMIN_PASSWORD_HASH (prompts for the password).

import click
from datetime import date
from flask.cli import with_appcontext

from .extensions import db
from .services import get_services
from .services.inventory_service import stock_level
from .services.session_service import hash_local_admin_password
from .services.ledger_service import PERIODS
from .time_utils import local_date, utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables and seed default categories."""
    click.echo("START Initializing ShopLedger...")
    db.create_all()
    inserted = get_services().categories.seed_defaults()
    if inserted:
        click.echo(f"PASS Seeded {inserted} default categories")
    else:
        click.echo("PASS Categories already present, skipping seed")
    click.echo("DONE ShopLedger initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    get_services().reset_views()
    click.echo("PASS Database reset")


@click.group('categories')
def categories_group():
    """Category inspection and seeding."""


@categories_group.command('list')
@with_appcontext
def list_categories():
    for c in get_services().categories.list():
        saved = c["id"] or "(default, unsaved)"
        click.echo(f"{c['sort_order']:>3}  {c['type']:<8} {c['name']:<22} {c['label']:<24} {saved}")


@categories_group.command('seed')
@with_appcontext
def seed_categories():
    inserted = get_services().categories.seed_defaults()
    click.echo(f"PASS Seeded {inserted} categories" if inserted else "WARN Categories already present")


@click.group('products')
def products_group():
    """Product inspection."""


@products_group.command('list')
@click.option('--low', is_flag=True, help='Only low or out of stock products')
@with_appcontext
def list_products(low):
    for p in get_services().inventory.list_products():
        level = stock_level(p)
        if low and level == "ok":
            continue
        click.echo(f"{p['name']:<30} {p['category']:<16} stock={p['current_stock']:>5} min={p['min_stock']:>3} [{level}]")


@click.group('ledger')
def ledger_group():
    """Ledger inspection."""


@ledger_group.command('summary')
@click.option('--period', type=click.Choice(PERIODS), default='daily')
@click.option('--date', 'day', default=None, help='Reference date YYYY-MM-DD (default today)')
@with_appcontext
def ledger_summary(period, day):
    ledger = get_services().ledger
    try:
        ref = date.fromisoformat(day) if day else local_date(utcnow(), ledger.zone)
    except ValueError:
        raise click.BadParameter("date must be YYYY-MM-DD", param_hint="--date")

    s = ledger.period_summary(period, ref)
    click.echo(f"{period} {s['start']} .. {s['end']} ({s['count']} transactions)")
    click.echo(f"  income  {s['income']:>12}")
    click.echo(f"  expense {s['expense']:>12}")
    click.echo(f"  net     {s['net']:>12}")
    for row in s["by_category"]:
        click.echo(f"    {row['type']:<8} {row['category']:<22} {row['total']:>12} ({row['count']})")


@click.group('session')
def session_group():
    """Terminal session flags."""


@session_group.command('local-admin')
@click.option('--enable/--disable', default=True)
@with_appcontext
def local_admin(enable):
    session = get_services().session
    snapshot = session.enable_local_admin() if enable else session.disable_local_admin()
    click.echo(f"PASS local admin {'enabled' if snapshot.local_admin else 'disabled'}")


@session_group.command('hash-password')
@click.password_option()
def hash_password(password):
    """Print a bcrypt hash to put in LOCAL_ADMIN_PASSWORD_HASH."""
    click.echo(hash_local_admin_password(password))


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(categories_group)
    app.cli.add_command(products_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(session_group)
