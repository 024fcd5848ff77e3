"""Command-line interface for dicom-json-installer."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from dicom_json_installer import __version__
from dicom_json_installer.core.errors import InstallerError
from dicom_json_installer.core.path_registrar import MANUAL
from dicom_json_installer.core.pipeline import InstallPipeline
from dicom_json_installer.core.platform_resolver import detect_platform
from dicom_json_installer.utils.config import default_install_dir
from dicom_json_installer.utils.config import load_config
from dicom_json_installer.utils.logging import level_from_flags
from dicom_json_installer.utils.logging import setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity (can be used multiple times)"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
def main(verbose: int, quiet: bool) -> None:
    """Install the dicom-json command-line tool from its GitHub releases."""
    setup_logging(level_from_flags(verbose, quiet))
    console.quiet = quiet


@main.command()
@click.option(
    "--install-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to install into (default: ~/.local/bin, or %LOCALAPPDATA%\\dicom-json)",
)
@click.option(
    "--version-tag",
    "tag",
    help="Install this release tag instead of the latest one",
)
@click.option("--sha256", help="Expected SHA-256 digest of the downloaded archive")
@click.option("--repository", help="GitHub repository to install from, as OWNER/NAME")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON configuration file (environment variables are used otherwise)",
)
def install(
    install_dir: Path | None,
    tag: str | None,
    sha256: str | None,
    repository: str | None,
    config_file: Path | None,
) -> None:
    """Download the latest dicom-json release and install it.

    The install directory is added to your user PATH on Windows. On macOS and
    Linux shell profiles are left alone and the line to add is printed instead.
    """
    try:
        config = load_config(config_file).with_overrides(
            install_dir=install_dir,
            tag=tag,
            sha256=sha256,
            repository=repository,
        )
    except (ValidationError, ValueError, OSError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    try:
        result = InstallPipeline(config, console=console).run()
    except InstallerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise click.ClickException(str(e)) from e

    registration = result.registration
    tool = config.tool_name
    console.print()
    if registration.on_path:
        console.print(f"[bold green]{tool} installed and ready![/bold green]")
        console.print(f"[dim]{registration.message}[/dim]")
        console.print()
        console.print(f"Try it: {tool} --help")
    elif registration.status == MANUAL:
        console.print(f"[bold blue]{registration.message}[/bold blue]")
        console.print(f"  {registration.export_line}", markup=False)
        console.print()
        console.print("[bold blue]Or run directly:[/bold blue]")
        console.print(f"  {result.executable} --help", markup=False)
    else:
        console.print(f"[yellow]{registration.message}[/yellow]")
        console.print(f"Run directly: {result.executable} --help", markup=False)


@main.command(name="platform")
def show_platform() -> None:
    """Show the detected platform and the artifact that would be installed."""
    try:
        config = load_config()
        descriptor = detect_platform()
    except InstallerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise click.ClickException(str(e)) from e
    except (ValidationError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    install_dir = config.install_dir or default_install_dir(
        descriptor.is_windows, config.tool_name
    )
    console.print(f"[bold blue]OS:[/bold blue] {descriptor.os}")
    console.print(f"[bold blue]Architecture:[/bold blue] {descriptor.arch}")
    console.print(
        f"[bold blue]Artifact:[/bold blue] {descriptor.artifact_filename(config.tool_name)}"
    )
    console.print(f"[bold blue]Install directory:[/bold blue] {install_dir}")


if __name__ == "__main__":
    main()
