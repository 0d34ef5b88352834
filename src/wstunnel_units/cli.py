"""Command-line interface for wstunnel-units."""

import json
import sys
from pathlib import Path

import click

from . import __version__
from .api import generate, load_config_file
from .certificates import DEFAULT_ACME_DIRECTORY, DirectoryCertificateRegistry
from .common.exceptions import WstunnelUnitsError
from .common.logging import get_logger, setup_logging
from .models import FailurePolicy, GenerationOptions, RestartPolicy
from .validation import validate_config

logger = get_logger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def report_error(error: WstunnelUnitsError) -> None:
    """Print every diagnostic of an error to stderr."""
    if not error.diagnostics:
        click.echo(f"Error: {error}", err=True)
        return
    for diagnostic in error.diagnostics:
        click.echo(
            f"{diagnostic.entry}: [{diagnostic.kind.value}] {diagnostic.message}",
            err=True,
        )


@click.group()
@click.version_option(version=__version__, prog_name="wstunnel-units")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for diagnostics on stderr",
)
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
def cli(log_level: str, json_logs: bool) -> None:
    """Generate systemd services for wstunnel servers and clients."""
    setup_logging(level=log_level, json_format=json_logs)


@cli.command()
@click.argument(
    "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
def validate(config_file: Path) -> None:
    """Check CONFIG_FILE and list every problem found."""
    try:
        config = validate_config(load_config_file(config_file))
    except WstunnelUnitsError as e:
        report_error(e)
        sys.exit(1)

    click.echo(
        f"OK: {len(config.servers)} server(s), {len(config.clients)} client(s)"
        + ("" if config.enable else " (disabled)")
    )


@cli.command()
@click.argument(
    "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["systemd", "json"]),
    default="systemd",
    show_default=True,
    help="Unit files or a JSON registry",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Write files here instead of printing them",
)
@click.option(
    "--acme-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_ACME_DIRECTORY,
    show_default=True,
    help="Directory with one subdirectory per managed certificate",
)
@click.option("--acme-group", help="Group owning managed certificates")
@click.option(
    "--skip-missing-certificates",
    is_flag=True,
    help="Skip servers whose managed certificate is missing instead of failing",
)
@click.option(
    "--restart",
    type=click.Choice([policy.value for policy in RestartPolicy]),
    default=RestartPolicy.NO.value,
    show_default=True,
    help="Restart policy for every service",
)
def render(
    config_file: Path,
    output_format: str,
    output_dir: Path | None,
    acme_dir: Path,
    acme_group: str | None,
    skip_missing_certificates: bool,
    restart: str,
) -> None:
    """Render the services described by CONFIG_FILE."""
    options = GenerationOptions(
        on_missing_certificate=(
            FailurePolicy.SKIP if skip_missing_certificates else FailurePolicy.ABORT
        ),
        restart=RestartPolicy(restart),
    )
    certificates = DirectoryCertificateRegistry(acme_dir, group=acme_group)

    try:
        result = generate(load_config_file(config_file), certificates, options)
    except WstunnelUnitsError as e:
        report_error(e)
        sys.exit(1)

    for diagnostic in result.diagnostics:
        click.echo(f"Skipped {diagnostic.entry}: {diagnostic.message}", err=True)

    if output_format == "json":
        files = {
            "services.json": json.dumps(result.registry.to_supervisor_dict(), indent=2)
            + "\n"
        }
    else:
        files = {
            f"{name}.service": descriptor.to_unit_file()
            for name, descriptor in result.services.items()
        }

    if output_dir is None:
        for filename, content in files.items():
            if output_format == "systemd":
                click.echo(f"# {filename}")
            click.echo(content)
        return

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for filename, content in files.items():
            (output_dir / filename).write_text(content, encoding="utf-8")
            click.echo(str(output_dir / filename))
    except OSError as e:
        click.echo(f"Error: cannot write to {output_dir}: {e}", err=True)
        sys.exit(1)

    logger.info("Wrote service files", directory=str(output_dir), count=len(files))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
