# Overview: Flask CLI command groups for setup, inspection and day-to-day operations.

# cajaledger/cli.py
# Commands Legend:
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app cajaledger <group> <command> [options]
#
# System:
# - flask --app cajaledger system init-db
#   Create all tables (idempotent).
# - flask --app cajaledger system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users (identity mirror; credentials live with the auth provider):
# - flask --app cajaledger users create --name "Ana" --email ana@example.com --role EMPLOYEE
# - flask --app cajaledger users list
#
# Permissions:
# - flask --app cajaledger perms list [--role MANAGER] [--category INVENTORY]
#
# Products and stock:
# - flask --app cajaledger products create --actor-id 1 --code A-001 --name "Yerba 1kg" --price 3.50 --stock 20
# - flask --app cajaledger products list --actor-id 1 [--search yerba] [--low-stock]
# - flask --app cajaledger stock move 3 EXIT 2 --actor-id 1 --note "Sold at counter"
# - flask --app cajaledger stock history --actor-id 1 [--limit 20]
# - flask --app cajaledger stock verify
#   Replay every product's movements and report any stock mismatch.
#
# Registers and reports:
# - flask --app cajaledger registers list --actor-id 1 [--date 2026-10-19] [--open-only]
# - flask --app cajaledger reports dashboard --actor-id 1 [--date 2026-10-19]

import click
from flask import current_app
from flask.cli import with_appcontext

from .exceptions import CajaLedgerError
from .permissions import (
    PERMISSION_DEFINITIONS,
    get_permission_definition,
    get_permissions_by_category,
    role_permissions,
)
from .services.permission_service import Actor


def _engine():
    return current_app.extensions["cajaledger"]


def _actor(actor_id: int) -> Actor:
    """CLI operators act as a stored user, with that user's role."""
    user = _engine().users.get_user(actor_id)
    return Actor.of(user.id, user.role)


def _money(cents) -> str:
    if cents is None:
        return "-"
    return f"{cents / 100:.2f}"


def _fail(exc: CajaLedgerError):
    current_app.logger.info("CLI command failed: %s", exc.code)
    raise click.ClickException(f"FAIL [{exc.code}] {exc.message}")


# =============================================================================
# SYSTEM
# =============================================================================

@click.group('system')
def system_group():
    """Database setup commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (safe to run repeatedly)."""
    _engine().gateway.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.confirm("This deletes ALL data. Continue?", abort=True)
    gateway = _engine().gateway
    gateway.drop_all()
    gateway.create_all()
    click.echo("PASS Database reset")


# =============================================================================
# USERS
# =============================================================================

@click.group('users')
def users_group():
    """Identity mirror for ledger attribution."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--role', type=click.Choice(['ADMIN', 'MANAGER', 'EMPLOYEE'], case_sensitive=False),
              default='EMPLOYEE', show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, role):
    try:
        user = _engine().users.create_user(name=name, email=email, role=role)
    except CajaLedgerError as exc:
        _fail(exc)
    click.echo(f"PASS Created user {user.name} (ID: {user.id}, Role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    users = _engine().users.list_users()
    if not users:
        click.echo("No users found")
        return
    for user in users:
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.id:>4}  {user.name:<24} {user.email:<32} {user.role:<9} {status}")


# =============================================================================
# PERMISSIONS
# =============================================================================

@click.group('perms')
def perms_group():
    """Inspect the role capability table."""


@perms_group.command('list')
@click.option('--role', help='Only permissions granted to this role')
@click.option('--category', help='Filter by category')
def list_permissions_cli(role, category):
    perms = get_permissions_by_category(category.upper()) if category else list(PERMISSION_DEFINITIONS)
    if role:
        granted = role_permissions(role)
        perms = [perm for perm in perms if perm[0] in granted]
    for perm in perms:
        definition = get_permission_definition(perm[0])
        click.echo(
            f"{definition['code']:<24} {definition['category']:<10} "
            f"{definition['name']}: {definition['description']}"
        )


# =============================================================================
# PRODUCTS & STOCK
# =============================================================================

@click.group('products')
def products_group():
    """Product catalogue commands."""


@products_group.command('create')
@click.option('--actor-id', type=int, required=True, help='User performing the action')
@click.option('--code', required=True, help='Unique product code (SKU)')
@click.option('--name', required=True, help='Product name')
@click.option('--price', default=None, help='Unit price, e.g. 3.50')
@click.option('--stock', default=None, help='Opening stock (booked as an ENTRY movement)')
@click.option('--unit', default=None, help='Unit of measure')
@click.option('--category', default=None)
@click.option('--supplier', default=None)
@with_appcontext
def create_product_cli(actor_id, code, name, price, stock, unit, category, supplier):
    try:
        product = _engine().create_product(
            _actor(actor_id), code, name,
            price=price, stock=stock, unit=unit, category=category, supplier=supplier,
        )
    except CajaLedgerError as exc:
        _fail(exc)
    click.echo(f"PASS Created product {product.code} (ID: {product.id}, Stock: {product.stock})")


@products_group.command('list')
@click.option('--actor-id', type=int, required=True)
@click.option('--category', default=None)
@click.option('--search', default=None, help='Match on name or code')
@click.option('--low-stock', is_flag=True, help='Only products at or below the low-stock threshold')
@with_appcontext
def list_products_cli(actor_id, category, search, low_stock):
    engine = _engine()
    try:
        actor = _actor(actor_id)
        if low_stock:
            products = engine.products.low_stock_products()
        else:
            products = engine.list_products(actor, category=category, search=search)
    except CajaLedgerError as exc:
        _fail(exc)
    if not products:
        click.echo("No products found")
        return
    for p in products:
        click.echo(f"{p.id:>4}  {p.code:<16} {p.name:<32} stock={p.stock:<6} price={_money(p.price_cents)}")


@click.group('stock')
def stock_group():
    """Stock ledger commands."""


@stock_group.command('move')
@click.argument('product_id', type=int)
@click.argument('movement_type', type=click.Choice(['ENTRY', 'EXIT', 'ADJUST'], case_sensitive=False))
@click.argument('quantity')
@click.option('--actor-id', type=int, required=True, help='User performing the movement')
@click.option('--note', default=None)
@with_appcontext
def move_stock_cli(product_id, movement_type, quantity, actor_id, note):
    try:
        product, movement = _engine().record_movement(
            _actor(actor_id), product_id, movement_type, quantity, note
        )
    except CajaLedgerError as exc:
        _fail(exc)
    click.echo(
        f"PASS {movement.type} {movement.quantity} on {product.code}: "
        f"{movement.previous_stock} -> {movement.new_stock}"
    )


@stock_group.command('history')
@click.option('--actor-id', type=int, required=True, help='Admin user reading the ledger')
@click.option('--limit', type=int, default=None, help='Number of movements (default from config)')
@with_appcontext
def stock_history_cli(actor_id, limit):
    try:
        movements = _engine().list_movements(_actor(actor_id), limit)
    except CajaLedgerError as exc:
        _fail(exc)
    for m in movements:
        row = m.to_dict(include_refs=True)
        click.echo(
            f"{row['created_at']}  {row['type']:<6} {row['quantity']:>6}  "
            f"{row['product_code']:<16} {row['actor_name']}  {row['note'] or ''}"
        )


@stock_group.command('verify')
@with_appcontext
def verify_stock_cli():
    """Replay the ledger and compare with stored stock."""
    mismatches = _engine().verify_stock()
    if not mismatches:
        click.echo("PASS Stock matches ledger replay for every product")
        return
    for row in mismatches:
        click.echo(
            f"FAIL {row['code']} (ID: {row['product_id']}): "
            f"stored={row['stored_stock']} replayed={row['replayed_stock']}"
        )
    raise SystemExit(1)


# =============================================================================
# REGISTERS & REPORTS
# =============================================================================

@click.group('registers')
def registers_group():
    """Cash register inspection."""


@registers_group.command('list')
@click.option('--actor-id', type=int, required=True)
@click.option('--date', 'day', default=None, help='Business day (YYYY-MM-DD)')
@click.option('--owner-id', type=int, default=None, help='Admins only: filter by owner')
@click.option('--open-only', is_flag=True)
@with_appcontext
def list_registers_cli(actor_id, day, owner_id, open_only):
    try:
        records = _engine().list_registers(_actor(actor_id), date=day, owner_id=owner_id, open_only=open_only)
    except CajaLedgerError as exc:
        _fail(exc)
    for r in records:
        flag = " FLAGGED" if r.flagged else ""
        click.echo(
            f"{r.id:>4}  {r.date:%Y-%m-%d %H:%M}  {r.owner.name:<20} {r.status:<6} "
            f"opening={_money(r.opening_cash_cents)} closing={_money(r.closing_cash_cents)} "
            f"diff={_money(r.difference_cents)}{flag}"
        )


@click.group('reports')
def reports_group():
    """Read-only summaries."""


@reports_group.command('dashboard')
@click.option('--actor-id', type=int, required=True)
@click.option('--date', 'day', default=None, help='Business day (YYYY-MM-DD), default today')
@with_appcontext
def dashboard_cli(actor_id, day):
    try:
        summary = _engine().get_dashboard_summary(_actor(actor_id), day)
    except CajaLedgerError as exc:
        _fail(exc)
    click.echo(f"Date:              {summary['date']}")
    click.echo(f"Products:          {summary['total_products']}")
    click.echo(f"Low stock (<= {summary['low_stock_threshold']}): {summary['low_stock_products']}")
    click.echo(f"Inventory value:   {_money(summary['inventory_value_cents'])}")
    click.echo(f"Open registers:    {summary['open_registers']}")
    click.echo(f"Cash sales:        {_money(summary['cash_sales_cents'])}")
    click.echo(f"Card sales:        {_money(summary['card_sales_cents'])}")
    click.echo(f"Transfer sales:    {_money(summary['transfer_sales_cents'])}")
    click.echo(f"Total sales:       {_money(summary['total_sales_cents'])}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(products_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(registers_group)
    app.cli.add_command(reports_group)
