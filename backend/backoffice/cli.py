# Overview: Flask CLI command groups for bootstrap, provisioning and stock reconciliation.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migrated databases).
#
# Organizations and branches:
# - python -m flask orgs list
# - python -m flask orgs create --name "Acme Corp" --code "ACME"
# - python -m flask branches create --org-id 1 --name "Head Office" --code "HQ" [--address "..."]
# - python -m flask branches list --org-id 1
#
# Users:
# - python -m flask users create --org-id 1 --name "Admin" --email admin@acme.local --role ORG_ADMIN [--branch-id 1]
# - python -m flask users list [--org-id 1]
#
# Permissions:
# - python -m flask perms list [--category FINANCE]
# - python -m flask perms check STAFF DECIDE_APPROVAL
#
# Stock:
# - python -m flask stock reconcile [--org-id 1]
#   Compare every stock level with its movement history; exits non-zero on drift.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import WorkflowError
from .extensions import db
from .models import Branch, Organization, User
from .permissions import (
    PERMISSION_DEFINITIONS,
    get_minimum_role,
    get_permissions_by_category,
    is_allowed,
    parse_role,
    validate_permission_code,
)
from .permissions.roles import Role
from .services import stock_service, user_service


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema created.")


# =============================================================================
# ORGANIZATION / BRANCH COMMANDS
# =============================================================================

@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = db.session.query(Organization).order_by(Organization.id.asc()).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Branches':<9} {'Users'}")
    click.echo("="*80)

    for org in orgs:
        branch_count = db.session.query(Branch).filter_by(org_id=org.id).count()
        user_count = db.session.query(User).filter_by(org_id=org.id).count()
        active_str = "Yes" if org.is_active else "No"

        click.echo(f"{org.id:<5} {org.name:<30} {org.code or '-':<15} {active_str:<8} {branch_count:<9} {user_count}")

    click.echo("="*80 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--code', required=True, help='Short code (unique)')
@with_appcontext
def create_org_cli(name, code):
    """Create a new organization (tenant)."""
    existing = db.session.query(Organization).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Organization with code '{code}' already exists")
        return

    org = Organization(name=name, code=code, is_active=True)
    db.session.add(org)
    db.session.commit()

    click.echo(f"PASS Created organization: {org.name} (ID: {org.id}, Code: {org.code})")


@click.group('branches')
def branches_group():
    """Branch management commands."""


@branches_group.command('create')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--name', required=True, help='Branch name')
@click.option('--code', required=True, help='Branch code (unique within org)')
@click.option('--address', default=None, help='Street address')
@with_appcontext
def create_branch_cli(org_id, name, code, address):
    """Add a branch to an organization."""
    org = db.session.get(Organization, org_id)
    if not org:
        click.echo(f"FAIL Organization ID {org_id} not found")
        return

    code = code.upper()
    existing = db.session.query(Branch).filter_by(org_id=org_id, code=code).first()
    if existing:
        click.echo(f"FAIL Branch '{code}' already exists in this organization")
        return

    branch = Branch(org_id=org_id, name=name, code=code, address=address)
    db.session.add(branch)
    db.session.commit()

    click.echo(f"PASS Created branch: {branch.name} (ID: {branch.id}) in org '{org.name}'")


@branches_group.command('list')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@with_appcontext
def list_branches_cli(org_id):
    branches = db.session.query(Branch).filter_by(org_id=org_id).order_by(Branch.id.asc()).all()
    if not branches:
        click.echo("No branches found.")
        return
    for branch in branches:
        click.echo(f"{branch.id:<5} {branch.code:<10} {branch.name}")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User provisioning commands."""


@users_group.command('create')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', default=None, help='Password (optional; authentication is handled upstream)')
@click.option('--role', type=click.Choice([r.value for r in Role], case_sensitive=False), prompt=True, help='Role')
@click.option('--branch-id', type=int, default=None, help='Home branch ID')
@with_appcontext
def create_user_cli(org_id, name, email, password, role, branch_id):
    """Create a user."""
    try:
        user = user_service.create_user(
            org_id=org_id,
            name=name,
            email=email,
            role=role,
            password=password,
            branch_id=branch_id,
        )
        db.session.commit()
    except WorkflowError as exc:
        db.session.rollback()
        click.echo(f"FAIL {exc.message}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@click.option('--org-id', type=int, help='Filter by organization ID')
@with_appcontext
def list_users(org_id):
    """List users with role and active status."""
    query = db.session.query(User)
    if org_id:
        query = query.filter_by(org_id=org_id)
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<12} org={user.org_id:<5} active={active_str}")


# =============================================================================
# PERMISSION COMMANDS
# =============================================================================

@click.group('perms')
def perms_group():
    """Action catalogue inspection."""


@perms_group.command('list')
@click.option('--category', default=None, help='Filter by category')
@with_appcontext
def list_perms(category):
    overrides = {"DECIDE_APPROVAL": current_app.config.get("APPROVAL_MIN_ROLE", "MANAGER")}
    definitions = get_permissions_by_category(category.upper()) if category else PERMISSION_DEFINITIONS
    for code, name, _description, perm_category, _minimum in definitions:
        minimum = get_minimum_role(code, overrides)
        click.echo(f"{code:<28} {perm_category:<14} {minimum.value:<12} {name}")


@perms_group.command('check')
@click.argument('role')
@click.argument('action')
@with_appcontext
def check_perm(role, action):
    """Check whether ROLE may perform ACTION."""
    if not validate_permission_code(action):
        click.echo(f"FAIL Unknown action '{action}'")
        return
    try:
        role = parse_role(role)
    except ValueError as exc:
        click.echo(f"FAIL {exc}")
        return
    overrides = {"DECIDE_APPROVAL": current_app.config.get("APPROVAL_MIN_ROLE", "MANAGER")}
    if is_allowed(role, action, overrides):
        click.echo(f"PASS {role.value} may {action}")
    else:
        click.echo(f"DENY {role.value} may not {action}")


# =============================================================================
# STOCK COMMANDS
# =============================================================================

@click.group('stock')
def stock_group():
    """Stock ledger maintenance."""


@stock_group.command('reconcile')
@click.option('--org-id', type=int, default=None, help='Limit to one organization')
@with_appcontext
def reconcile_stock_cli(org_id):
    """Compare stock levels with the movement ledger."""
    discrepancies = stock_service.reconcile_stock(org_id)
    if not discrepancies:
        click.echo("PASS Stock levels match the movement ledger.")
        return

    for row in discrepancies:
        click.echo(
            f"FAIL org={row['org_id']} branch={row['branch_id']} product={row['product_id']} "
            f"level={row['level']} ledger={row['ledger']}"
        )
    raise click.exceptions.Exit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)
    app.cli.add_command(branches_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(stock_group)
