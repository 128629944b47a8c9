"""User administration commands."""

import asyncio

import click

from qcadmin.auth.password import PasswordService
from qcadmin.auth.types import Role
from qcadmin.cli.paths import open_database
from qcadmin.config import Settings
from qcadmin.entities.users import build_user_service
from qcadmin.metadata.loader import EntityConfigLoader


@click.group()
def users():
    """User commands."""
    pass


@users.command("create-admin")
@click.option("--username", required=True)
@click.option("--email", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--name", default="Administrator", show_default=True)
def create_admin(username: str, email: str, password: str, name: str):
    """Create an administrator account (created_by 0, the system)."""
    settings = Settings.from_env()
    loader = EntityConfigLoader(settings.metadata_path)
    loader.load_all()

    database = open_database(create_schema=settings.auto_create_schema)
    try:
        service = build_user_service(
            loader.require_entity("User"),
            database,
            PasswordService(rounds=settings.bcrypt_rounds),
        )
        data = {
            "username": username,
            "email": email,
            "password": password,
            "name": name,
            "role": Role.ADMIN.value,
        }
        result = asyncio.run(service.create(data, 0))
    finally:
        database.close()

    if not result.success:
        click.echo(f"Error: {result.error}", err=True)
        raise SystemExit(1)
    click.echo(f"Created admin '{result.data['username']}' (id {result.data['id']}).")
