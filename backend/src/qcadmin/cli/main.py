"""QC Admin CLI entry point."""

import click

from qcadmin.log_config import configure_logging


@click.group()
@click.option("--log-level", default="warning", help="Log level for CLI output.")
def cli(log_level: str):
    """QC Admin: quality-control administration backend CLI."""
    configure_logging(log_level)


# Register subcommand groups
from qcadmin.cli.db_cmd import db  # noqa: E402
from qcadmin.cli.entities_cmd import entities  # noqa: E402
from qcadmin.cli.sessions_cmd import sessions  # noqa: E402
from qcadmin.cli.users_cmd import users  # noqa: E402

cli.add_command(db)
cli.add_command(entities)
cli.add_command(sessions)
cli.add_command(users)
