# Overview: Flask CLI command groups for bootstrap, inspection, and ledger maintenance.

# backend/retailpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--username admin] [--password "Password123!"]
#   Idempotent bootstrap: creates tables and the default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with admin and active flags.
# - python -m flask users create --username cashier --email cashier@pos.local --password "Password123!" [--admin]
#   Create a user (prompts if options are omitted).
#
# Cash drawer ledger:
# - python -m flask ledger verify --user-id 1
#   Walk the user's drawer ledger and report every broken link.
# - python -m flask ledger balance --user-id 1
#   Print the current drawer balance.

import click
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import User
from .services import cash_drawer_service
from .services.auth_service import create_user, PasswordValidationError


def _format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{cents // 100}.{cents % 100:02d}"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--username', default='admin', show_default=True, help='Admin username')
@click.option('--email', default='admin@pos.local', show_default=True, help='Admin email')
@click.option('--password', default='Password123!', show_default=True, help='Admin password')
@with_appcontext
def init_system(username, email, password):
    """
    Initialize the POS database and the default admin account.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing POS system...")

    db.create_all()
    click.echo("PASS Database tables ready")

    existing = db.session.query(User).filter_by(username=username).first()
    if existing:
        click.echo(f"PASS Using existing user: {existing.username} (ID: {existing.id})")
        return

    try:
        user = create_user(username=username, email=email, password=password, is_admin=True)
    except PosError as e:
        click.echo(f"FAIL Failed to create admin: {e.message}")
        return

    click.echo(f"PASS Created admin user: {user.username} (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--admin', 'is_admin', is_flag=True, help='Grant admin access')
@with_appcontext
def create_user_cli(username, email, password, is_admin):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(username=username, email=email, password=password, is_admin=is_admin)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except PosError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        return

    role = "admin" if user.is_admin else "user"
    click.echo(f"PASS Created {role}: {user.username} (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active':<8} {'Admin'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        admin_str = "Yes" if user.is_admin else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email or '-':<30} {active_str:<8} {admin_str}")

    click.echo("="*80 + "\n")


@click.group('ledger')
def ledger_group():
    """Cash drawer ledger inspection."""


def _require_user(user_id: int) -> User | None:
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        click.echo(f"FAIL User ID {user_id} not found")
    return user


@ledger_group.command('verify')
@click.option('--user-id', type=int, required=True, help='User whose drawer to verify')
@with_appcontext
def verify_ledger(user_id):
    """Check the chain: dense sequence, linked balances, increasing timestamps."""
    if not _require_user(user_id):
        raise SystemExit(1)

    problems = cash_drawer_service.verify_chain(user_id)
    if not problems:
        click.echo(f"PASS Cash drawer ledger for user {user_id} is intact")
        return

    click.echo(f"FAIL {len(problems)} problem(s) in cash drawer ledger for user {user_id}")
    for problem in problems:
        click.echo(f"     seq={problem['sequence']} id={problem['id']} {problem['problem']}")
    raise SystemExit(1)


@ledger_group.command('balance')
@click.option('--user-id', type=int, required=True, help='User whose drawer balance to print')
@with_appcontext
def ledger_balance(user_id):
    """Print the current cash drawer balance."""
    if not _require_user(user_id):
        raise SystemExit(1)

    balance = cash_drawer_service.get_balance(user_id)
    click.echo(f"PASS Cash drawer balance for user {user_id}: {_format_cents(balance)} ({balance} cents)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(ledger_group)
