# Overview: Flask CLI command groups for bootstrap, inspection, and reconciliation.

# backend/nexus/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--developer-telegram-id 123] [--no-demo]
#   Create tables, optionally a DEVELOPER user, and seed the demo catalog and clients
#   (only when the catalog is empty).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --telegram-id 123 --name "Jane" --role STAFF
# - python -m flask users set-role <user_id> ADMIN
#
# Reconciliation (read-only):
# - python -m flask reconcile stock
#   Products whose stock differs from the sum of their movements.
# - python -m flask reconcile orders
#   Orders that did not reach 'completed' or have no items.
#
# Snapshot:
# - python -m flask snapshot show
#   Refresh and print collection sizes and the dashboard summary.

import click
from flask.cli import with_appcontext

from .extensions import db
from .permissions import Role
from .seed import DEMO_CLIENTS, DEMO_PRODUCTS
from .services import catalog_service, client_service, identity_service, reconciliation_service
from .services.identity_service import IdentityError
from .services.snapshot_service import get_snapshot
from .services.store_client import StoreError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--developer-telegram-id', type=int, default=None, help='Telegram id of the first DEVELOPER user')
@click.option('--developer-name', default='Developer', help='Display name for the DEVELOPER user')
@click.option('--no-demo', is_flag=True, help='Skip the demo catalog and clients')
@with_appcontext
def init_system(developer_telegram_id, developer_name, no_demo):
    """
    Initialize the Nexus store: schema, first developer, demo data.

    Idempotent: existing users are kept and demo data is only loaded into an
    empty catalog. Demo products go through catalog_service so their initial
    stock is recorded in the ledger.
    """
    click.echo("START Initializing Nexus...")
    db.create_all()
    click.echo("PASS Schema ready")

    if developer_telegram_id is not None:
        try:
            user = identity_service.create_user(
                telegram_id=developer_telegram_id, name=developer_name, role=Role.DEVELOPER
            )
            click.echo(f"PASS Created developer: {user.name} (ID: {user.id})")
        except IdentityError:
            click.echo(f"WARN  Telegram id {developer_telegram_id} already registered, skipping...")

    if no_demo:
        click.echo("DONE Nexus initialized (no demo data)")
        return

    snapshot = get_snapshot()
    snapshot.refresh()
    if snapshot.products:
        click.echo("WARN  Catalog is not empty, skipping demo data...")
    else:
        for product in DEMO_PRODUCTS:
            created = catalog_service.add_product(snapshot=snapshot, product=product)
            click.echo(f"PASS Product {created.sku}: {created.name} (stock {created.stock})")
        for client in DEMO_CLIENTS:
            created = client_service.add_client(snapshot=snapshot, client=client)
            click.echo(f"PASS Client {created.company_name} (balance {created.balance})")

    click.echo("DONE Nexus initialized")


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
    get_snapshot().clear()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and role management."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = identity_service.list_users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<38} {'Name':<24} {'Role':<10} {'Telegram'}")
    click.echo("=" * 90)
    for user in users:
        click.echo(f"{user.id:<38} {user.name[:24]:<24} {user.role:<10} {user.telegram_id or '-'}")
    click.echo("=" * 90 + "\n")


@users_group.command('create')
@click.option('--telegram-id', type=int, required=True, help='Telegram user id')
@click.option('--name', required=True, help='Display name')
@click.option('--role', type=click.Choice([r.value for r in Role], case_sensitive=False), default=Role.GUEST.value)
@with_appcontext
def create_user_cli(telegram_id, name, role):
    try:
        user = identity_service.create_user(telegram_id=telegram_id, name=name, role=role)
    except IdentityError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.name} (ID: {user.id}, role {user.role})")


@users_group.command('set-role')
@click.argument('user_id')
@click.argument('role', type=click.Choice([r.value for r in Role], case_sensitive=False))
@with_appcontext
def set_role_cli(user_id, role):
    try:
        user = identity_service.set_role(user_id, role)
    except IdentityError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {user.name} is now {user.role}")


@click.group('reconcile')
def reconcile_group():
    """Read-only consistency reports for manual repair."""


@reconcile_group.command('stock')
@with_appcontext
def reconcile_stock():
    try:
        rows = reconciliation_service.stock_discrepancies()
    except StoreError as e:
        raise click.ClickException(str(e))
    if not rows:
        click.echo("PASS Stock matches the movement ledger for every product")
        return
    click.echo(f"FAIL {len(rows)} product(s) out of balance:")
    for row in rows:
        archived = " (archived)" if row["archived"] else ""
        click.echo(
            f"  {row['sku']:<12} {row['name'][:30]:<30} stock={row['stock']} "
            f"ledger={row['ledgerTotal']} diff={row['difference']}{archived}"
        )


@reconcile_group.command('orders')
@with_appcontext
def reconcile_orders():
    try:
        rows = reconciliation_service.incomplete_orders()
    except StoreError as e:
        raise click.ClickException(str(e))
    if not rows:
        click.echo("PASS Every order is completed and has items")
        return
    click.echo(f"FAIL {len(rows)} order(s) need review:")
    for row in rows:
        click.echo(
            f"  {row['orderId']} {row['clientName'][:24]:<24} status={row['status']} "
            f"items={row['itemCount']} total={row['totalAmount']:.2f} problems={','.join(row['problems'])}"
        )


@click.group('snapshot')
def snapshot_group():
    """Inspect the domain snapshot."""


@snapshot_group.command('show')
@with_appcontext
def show_snapshot():
    snapshot = get_snapshot()
    report = snapshot.refresh()
    for name, error in report.failed.items():
        click.echo(f"FAIL {name}: {error}")
    summary = snapshot.summary()
    click.echo(f"Products: {summary['productCount']}  Clients: {summary['clientCount']}  Orders: {summary['orderCount']}")
    click.echo(f"Movements: {len(snapshot.stock_movements)}")
    click.echo(f"Stock value: {summary['totalStockValue']:.2f}")
    click.echo(f"Revenue: {summary['totalRevenue']:.2f}")
    click.echo(f"Outstanding debt: {summary['outstandingDebt']:.2f}")
    click.echo(f"Low stock: {summary['lowStockCount']}")
    for product in summary["lowStock"]:
        click.echo(f"  {product['sku']:<12} {product['name']} ({product['stock']} / min {product['minStock']})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reconcile_group)
    app.cli.add_command(snapshot_group)
