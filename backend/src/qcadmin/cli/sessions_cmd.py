"""Session maintenance commands."""

import asyncio

import click

from qcadmin.auth.sessions import SessionStore
from qcadmin.cli.paths import open_database
from qcadmin.config import Settings


@click.group()
def sessions():
    """Session commands."""
    pass


@sessions.command()
def purge():
    """Delete expired sessions."""
    settings = Settings.from_env()
    database = open_database()
    try:
        store = SessionStore(database, settings.session_max_age, settings.remember_me_max_age)
        removed = asyncio.run(store.purge_expired())
    finally:
        database.close()
    click.echo(f"Removed {removed} expired session(s).")
