"""Entity configuration commands."""

import click

from qcadmin.cli.paths import resolve_paths
from qcadmin.metadata.loader import EntityConfigLoader, MetadataError
from qcadmin.metadata.validator import validate_metadata_dir


@click.group()
def entities():
    """Entity configuration commands."""
    pass


@entities.command("list")
def list_entities():
    """Validate and print the entity configurations."""
    _, metadata_path, _ = resolve_paths()

    issues = validate_metadata_dir(metadata_path)
    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour), err=True)

    loader = EntityConfigLoader(metadata_path)
    try:
        loader.load_all()
    except MetadataError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    for name in loader.list_entities():
        config = loader.require_entity(name)
        click.echo(
            f"{config.entity_name:<16} {config.api_path:<24} table={config.table_name} "
            f"limit={config.default_limit}/{config.max_limit} "
            f"search=[{', '.join(config.searchable_fields)}]"
        )
