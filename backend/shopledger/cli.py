# Overview: Flask CLI command groups for bootstrap, inspection, and month-end closing.

# backend/shopledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Inspection:
# - python -m flask products list [--search pen]
#   List products in display order with stock and prices.
#
# Reporting:
# - python -m flask reports sales --date 2024-01-17 --period weekly
#   Print the sales/profit summary for the window containing the date.
# - python -m flask reports close-month --month 1 --year 2024
#   Compute the month's report and save it as the monthly snapshot.
# - python -m flask reports snapshots
#   List saved monthly snapshots, newest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import ShopError
from .services import products_service, reporting_service


def _money(cents: int) -> str:
    return f"{cents / 100:,.2f}"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema is ready.")


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

    click.echo("PASS Database reset complete.")


@click.group('products')
def products_group():
    """Product inspection commands."""


@products_group.command('list')
@click.option('--search', default=None, help='Case-insensitive name filter')
@with_appcontext
def list_products(search):
    """List products in display order."""
    products = products_service.list_products(search=search)
    if not products:
        click.echo("No products found.")
        return

    click.echo(f"\n{'ID':<6} {'Name':<30} {'Qty':>6} {'Price':>12} {'Cost':>12} {'Manual':>12}")
    click.echo("=" * 84)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name[:30]:<30} {p.quantity:>6} {_money(p.price_cents):>12} "
            f"{_money(p.purchase_price_cents):>12} {_money(p.manual_price_cents):>12}"
        )
    click.echo("=" * 84 + "\n")


@click.group('reports')
def reports_group():
    """Sales reporting and month-end closing."""


@reports_group.command('sales')
@click.option('--date', 'on', required=True, help='Any date in the window (YYYY-MM-DD)')
@click.option(
    '--period',
    type=click.Choice(list(reporting_service.PERIOD_TYPES)),
    default=reporting_service.PERIOD_DAILY,
    show_default=True,
)
@with_appcontext
def sales_report(on, period):
    """Print the sales/profit summary for a window."""
    try:
        report = reporting_service.sales_report(on, period)
    except ShopError as e:
        raise click.ClickException(e.message)

    click.echo(f"\n{period.title()} report {report['start']} .. {report['end']}")
    click.echo("=" * 60)
    click.echo(f"{'Bills:':<22} {report['bill_count']:>14}")
    click.echo(f"{'Gross sales:':<22} {_money(report['gross_sales_cents']):>14}")
    click.echo(f"{'Returns:':<22} {_money(report['returned_amount_cents']):>14}")
    click.echo(f"{'Net sales:':<22} {_money(report['net_sales_cents']):>14}")
    click.echo(f"{'Cost of goods:':<22} {_money(report['product_value_cents']):>14}")
    click.echo(f"{'Profit:':<22} {_money(report['profit_cents']):>14}")

    if report["products"]:
        click.echo(f"\n{'Product':<30} {'Sold':>6} {'Ret':>6} {'Revenue':>12} {'Profit':>12}")
        click.echo("-" * 70)
        for row in report["products"]:
            name = (row["product_name"] or "")[:30]
            click.echo(
                f"{name:<30} {row['quantity_sold']:>6} {row['quantity_returned']:>6} "
                f"{_money(row['revenue_cents']):>12} {_money(row['profit_cents']):>12}"
            )
    click.echo("=" * 60 + "\n")


@reports_group.command('close-month')
@click.option('--month', type=int, required=True)
@click.option('--year', type=int, required=True)
@with_appcontext
def close_month(month, year):
    """Compute and save the monthly snapshot (overwrites an existing one)."""
    try:
        snapshot = reporting_service.close_month(month, year)
    except ShopError as e:
        raise click.ClickException(e.message)

    click.echo(
        f"PASS Saved {snapshot.year:04d}-{snapshot.month:02d}: "
        f"sales {_money(snapshot.total_sales_cents)}, "
        f"profit {_money(snapshot.total_profit_cents)}, "
        f"returns {_money(snapshot.total_returns_cents)}"
    )


@reports_group.command('snapshots')
@with_appcontext
def list_snapshots():
    """List monthly snapshots, newest period first."""
    snapshots = reporting_service.list_monthly_snapshots()
    if not snapshots:
        click.echo("No snapshots saved.")
        return

    click.echo(f"\n{'Period':<10} {'Sales':>14} {'Profit':>14} {'Returns':>14}  Saved")
    click.echo("=" * 80)
    for s in snapshots:
        click.echo(
            f"{s.year:04d}-{s.month:02d}   {_money(s.total_sales_cents):>14} "
            f"{_money(s.total_profit_cents):>14} {_money(s.total_returns_cents):>14}  {s.saved_at}"
        )
    click.echo("=" * 80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
    app.cli.add_command(reports_group)
