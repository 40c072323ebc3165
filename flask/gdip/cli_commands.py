"""
CLI commands for service management (e.g. create first admin).
Run from the flask/ directory: flask --app run:app create-admin
Or, with FLASK_APP=run:app: flask create-admin
"""

import click

from .errors import ApiError
from .extensions import db
from .models import ROLE_ADMIN, User
from .services.account_service import AccountService


@click.command("init-db")
def init_db_cmd():
    """Create any missing tables for the configured database."""
    db.create_all()
    click.echo("Database tables are in place.")


@click.command("create-admin")
def create_admin_cmd():
    """Create the first admin user (when no admins exist yet)."""
    existing = User.query.filter(User.Role == ROLE_ADMIN).first()
    if existing:
        click.echo("An admin already exists. Log in on the admin service instead.")
        raise SystemExit(1)

    click.echo("Create the first admin user.\n")

    email = click.prompt("Email", type=str)
    password = click.prompt("Password", type=str, hide_input=True, confirmation_prompt=True)
    display_name = click.prompt("Display name (optional)", type=str, default="", show_default=False)

    payload = {"email": email, "password": password}
    if display_name.strip():
        payload["displayName"] = display_name.strip()

    try:
        user = AccountService.register(ROLE_ADMIN, payload)
    except ApiError as e:
        click.echo(f"Error creating admin: {e.message}")
        if e.details:
            for field, problem in e.details.items():
                click.echo(f"  {field}: {problem}")
        raise SystemExit(1)

    click.echo(f"Admin created successfully. UserID={user.UserID}.")
    click.echo("You can log in on the admin service with this email and password.")


def register_cli(app):
    app.cli.add_command(init_db_cmd)
    app.cli.add_command(create_admin_cmd)
