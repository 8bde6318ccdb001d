# Overview: Flask CLI command groups for bootstrap, inspection, and drawer operations.

# backend/daybook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to daybook (PowerShell: $env:FLASK_APP="daybook").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Actor directory:
# - python -m flask users list
#   List all users with roles and active status.
# - python -m flask users create --username owner --role Owner
#   Register an actor.
#
# Cash drawer:
# - python -m flask drawer status --date 2024-01-10
# - python -m flask drawer open --date 2024-01-10 --opening-cents 500000 --actor 1
# - python -m flask drawer expense --date 2024-01-10 --amount-cents 50000 --category SHOP_EXPENSE --actor 1
# - python -m flask drawer close --date 2024-01-10 --actual-cents 650000 --actor 1
# - python -m flask drawer reopen --date 2024-01-10 --reason "Counting mistake" --actor 2
# - python -m flask drawer audit --date 2024-01-10
# - python -m flask drawer history --start 2024-01-01 --end 2024-01-31

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .permissions import Role
from .services import actor_service, cash_drawer_service, drawer_history_service
from .money import format_cents
from .validation import DrawerError


def _fail(error: DrawerError):
    raise click.ClickException(f"{error.code}: {error}")


def _label() -> str:
    return current_app.config.get("CURRENCY_LABEL", "Rs.")


def _echo_summary(summary) -> None:
    if not summary.exists:
        click.echo(f"{summary.business_date}  UNOPENED")
        return

    label = _label()
    click.echo(f"{summary.business_date}  {summary.status}")
    click.echo(f"  Opening balance : {format_cents(summary.opening_balance_cents, label)}")
    click.echo(f"  Cash sales      : {format_cents(summary.cash_sales_cents, label)}")
    click.echo(f"  Cash expenses   : {format_cents(summary.cash_expenses_cents, label)}")
    click.echo(f"  Expected cash   : {format_cents(summary.expected_cash_cents, label)}")
    if summary.actual_cash_cents is not None:
        click.echo(f"  Actual cash     : {format_cents(summary.actual_cash_cents, label)}")
        click.echo(
            f"  Difference      : {format_cents(summary.difference_cents, label, signed=True)}"
            f" ({summary.balance_state})"
        )
    if summary.reopen_reason:
        click.echo(f"  Reopen reason   : {summary.reopen_reason}")


# =============================================================================
# SYSTEM
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including the drawer audit trail!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


# =============================================================================
# USERS
# =============================================================================

@click.group('users')
def users_group():
    """Actor directory commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = actor_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Username':<25} {'Role':<15} {'Active'}")
    click.echo("="*60)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<25} {user.role:<15} {active_str}")

    click.echo("="*60 + "\n")


@users_group.command('create')
@click.option('--username', required=True, help='Username')
@click.option('--role', default=Role.CASHIER.value, show_default=True,
              help=f"One of: {', '.join(r.value for r in Role)} (case-insensitive)")
@with_appcontext
def create_user_cli(username, role):
    """Register an actor."""
    try:
        user = actor_service.create_user(username=username, role=role)
    except DrawerError as e:
        _fail(e)
    click.echo(f"PASS Created user: {user.username} (ID: {user.id}, Role: {user.role})")


# =============================================================================
# CASH DRAWER
# =============================================================================

@click.group('drawer')
def drawer_group():
    """Daily cash drawer commands."""


@drawer_group.command('status')
@click.option('--date', 'business_date', required=True, help='Business date (YYYY-MM-DD)')
@with_appcontext
def drawer_status(business_date):
    """Show the drawer for a business date."""
    try:
        summary = cash_drawer_service.get_status(business_date)
    except DrawerError as e:
        _fail(e)
    _echo_summary(summary)


@drawer_group.command('open')
@click.option('--date', 'business_date', required=True, help='Business date (YYYY-MM-DD)')
@click.option('--opening-cents', required=True, type=int, help='Opening balance in minor units')
@click.option('--actor', 'actor_id', required=True, type=int, help='Acting user ID')
@with_appcontext
def drawer_open(business_date, opening_cents, actor_id):
    """Open the drawer for a business date."""
    try:
        summary = cash_drawer_service.open_drawer(business_date, opening_cents, actor_id)
    except DrawerError as e:
        _fail(e)
    _echo_summary(summary)


@drawer_group.command('expense')
@click.option('--date', 'business_date', required=True, help='Business date (YYYY-MM-DD)')
@click.option('--amount-cents', required=True, type=int, help='Expense amount in minor units')
@click.option('--category', default='SHOP_EXPENSE', show_default=True, help='Expense category')
@click.option('--description', default=None, help='What the cash was used for')
@click.option('--actor', 'actor_id', required=True, type=int, help='Acting user ID')
@with_appcontext
def drawer_expense(business_date, amount_cents, category, description, actor_id):
    """Record a cash expense."""
    try:
        expense = cash_drawer_service.add_expense(
            business_date, amount_cents, category, actor_id, description=description
        )
    except DrawerError as e:
        _fail(e)
    click.echo(
        f"PASS Expense #{expense.sequence} recorded: "
        f"{format_cents(expense.amount_cents, _label())} ({expense.category})"
    )


@drawer_group.command('close')
@click.option('--date', 'business_date', required=True, help='Business date (YYYY-MM-DD)')
@click.option('--actual-cents', required=True, type=int, help='Counted cash in minor units')
@click.option('--notes', default=None, help='Closing notes')
@click.option('--actor', 'actor_id', required=True, type=int, help='Acting user ID')
@with_appcontext
def drawer_close(business_date, actual_cents, notes, actor_id):
    """Close the drawer with a physical count."""
    try:
        summary = cash_drawer_service.close_drawer(business_date, actual_cents, actor_id, notes=notes)
    except DrawerError as e:
        _fail(e)
    _echo_summary(summary)


@drawer_group.command('reopen')
@click.option('--date', 'business_date', required=True, help='Business date (YYYY-MM-DD)')
@click.option('--reason', required=True, help='Why the closed day must be corrected')
@click.option('--actor', 'actor_id', required=True, type=int, help='Acting user ID (Admin/SuperAdmin/Owner)')
@with_appcontext
def drawer_reopen(business_date, reason, actor_id):
    """Reopen a closed drawer (privileged)."""
    try:
        summary = cash_drawer_service.reopen_drawer(business_date, reason, actor_id)
    except DrawerError as e:
        _fail(e)
    _echo_summary(summary)


@drawer_group.command('audit')
@click.option('--date', 'business_date', required=True, help='Business date (YYYY-MM-DD)')
@with_appcontext
def drawer_audit(business_date):
    """Print the audit trail for a business date."""
    try:
        entries = cash_drawer_service.get_audit_log(business_date)
    except DrawerError as e:
        _fail(e)

    click.echo("\n" + "="*80)
    click.echo(f"{'#':<4} {'Action':<15} {'Actor':<15} {'When':<22} {'Note'}")
    click.echo("="*80)
    for entry in entries:
        when = entry.occurred_at.strftime("%Y-%m-%d %H:%M:%S")
        click.echo(f"{entry.sequence:<4} {entry.action:<15} {entry.actor_username:<15} {when:<22} {entry.note or '-'}")
    click.echo("="*80 + "\n")


@drawer_group.command('history')
@click.option('--start', required=True, help='First business date (YYYY-MM-DD)')
@click.option('--end', required=True, help='Last business date (YYYY-MM-DD)')
@with_appcontext
def drawer_history(start, end):
    """Summarise drawers in a date range, newest first."""
    try:
        rows = drawer_history_service.get_history(start, end)
    except DrawerError as e:
        _fail(e)

    if not rows:
        click.echo("No drawers in range.")
        return

    label = _label()
    click.echo("\n" + "="*96)
    click.echo(f"{'Date':<12} {'Status':<10} {'Expected':>18} {'Actual':>18} {'Difference':>18} {'State':<10}")
    click.echo("="*96)
    for row in rows:
        click.echo(
            f"{row.business_date.isoformat():<12} {row.status:<10} "
            f"{format_cents(row.expected_cash_cents, label):>18} "
            f"{format_cents(row.actual_cash_cents, label):>18} "
            f"{format_cents(row.difference_cents, label, signed=True):>18} "
            f"{row.balance_state or '-':<10}"
        )
    click.echo("="*96 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(drawer_group)
