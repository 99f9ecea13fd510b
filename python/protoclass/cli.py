"""CLI commands for protoclass."""

import logging
from pathlib import Path

import typer

from protoclass.core.types import TYPE_REGISTRY
from protoclass.exceptions import ProtoclassError

app = typer.Typer(
    name="protoclass",
    help="protoclass - inspect kinds and generate table DDL from class configs",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@app.command()
def kinds():
    """
    List every registered kind with its in-memory shape and storage type.
    """
    for (kind, element), descriptor in TYPE_REGISTRY.items():
        if element is not None:
            continue
        typer.echo(
            f"{kind.value:<12} {descriptor.native:<10} {descriptor.sql_type.upper()}"
        )
    typer.echo(f"{'array':<12} {'list':<10} TEXT / MEDIUMTEXT / LONGTEXT by element kind")


@app.command()
def sqlcreate(
    config: Path = typer.Argument(..., help="JSON file holding a list of class configs"),
    class_name: str | None = typer.Option(
        None, "--class", help="Only print the statement for this class"
    ),
):
    """
    Print CREATE TABLE statements for the table-bound classes in CONFIG.

    Classes without a tableName are skipped.
    """
    from protoclass.models.config import load_class_configs
    from protoclass.persistence.schema import build_create_table_sql

    try:
        configs = load_class_configs(config)
    except (OSError, ProtoclassError) as e:
        typer.secho(f"Error reading {config}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if class_name is not None:
        if class_name not in configs:
            typer.secho(f"Unknown class: {class_name}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        selected = [configs[class_name]]
    else:
        selected = [c for c in configs.values() if c.table_name is not None]

    for class_config in selected:
        try:
            typer.echo(build_create_table_sql(class_config) + ";")
        except ProtoclassError as e:
            typer.secho(f"{class_config.class_name}: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)


if __name__ == "__main__":
    app()
