import logging
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from actions import ActionMenu, build_action_env, has_actions
from config import settings
from exceptions import (
    Denied,
    InstallationFailed,
    IPDetectionFailure,
    LicenseGateError,
    NoActionsAvailable,
)
from identity import collect_identity
from installation import run_installation
from license_client import validate_license

app = typer.Typer(
    help="License-gated installer: authorizes this machine, then runs operator actions.",
    add_completion=False,
)

console = Console(soft_wrap=True)
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.LOG_LEVEL.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def info(message: str) -> None:
    console.print(f"[INFO] {message}", markup=False, highlight=False)


def fail(message: str) -> NoReturn:
    console.print(f"[ERROR] {message}", style="red", markup=False, highlight=False)
    raise typer.Exit(code=1)


def print_banner() -> None:
    console.print(Panel("License Authentication Installer", border_style="cyan", expand=False))
    console.print()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"license-gate {settings.APP_VERSION}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    # No command given: behave like `run` with settings from the environment
    if ctx.invoked_subcommand is None:
        run(license_key=None, api=None, key=None, scripts=None, verbose=False)


@app.command()
def run(
    license_key: Optional[str] = typer.Option(
        None, "--license", "-l", help="License key [env: LICENSE_KEY]."
    ),
    api: Optional[str] = typer.Option(
        None, "--api", help="Authorization API base URL [env: API_BASE_URL]."
    ),
    key: Optional[str] = typer.Option(
        None, "--key", help="Installer API key [env: INSTALLER_API_KEY]."
    ),
    scripts: Optional[str] = typer.Option(
        None, "--scripts", help="Action scripts directory [env: SCRIPTS_DIR]."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """
    Authorize this machine against the license server, then show the action
    menu (or run the default installation when there are no actions).

    Options given on the command line take precedence over the matching
    environment variables and .env entries.
    """
    configure_logging(verbose)

    api_base = api or settings.API_BASE_URL
    api_key = key or settings.INSTALLER_API_KEY
    scripts_dir = scripts or settings.SCRIPTS_DIR

    license_key = license_key or settings.LICENSE_KEY
    if not license_key:
        license_key = typer.prompt("Enter your license key", default="", show_default=False)
        license_key = license_key.strip()
    if not license_key:
        fail("License key is required")

    print_banner()

    info("Detecting public IP address...")
    try:
        identity = collect_identity(settings)
    except IPDetectionFailure as e:
        fail(f"Failed to detect public IP: {e}")

    info("Validating license...")
    info(f"License Key: {license_key[:8]}...")
    info(f"Public IP: {identity.public_ip}")
    info(f"Machine ID: {identity.machine_id[:16]}...")

    try:
        validate_license(api_base, api_key, license_key, identity)
    except Denied as e:
        console.print(
            f"[ERROR] License validation failed: {e}", style="red", markup=False, highlight=False
        )
        console.print(
            f"[ERROR] Your IP ({identity.public_ip}) is not authorized for this license",
            style="red",
            markup=False,
            highlight=False,
        )
        fail("Installation aborted")
    except LicenseGateError as e:
        console.print(
            f"[ERROR] License validation failed: {e}", style="red", markup=False, highlight=False
        )
        fail("Installation aborted")

    console.print()
    info(f"✓ License validated successfully! IP address: {identity.public_ip}")

    env = build_action_env(license_key, identity)

    if has_actions(scripts_dir):
        menu = ActionMenu(scripts_dir, env, console=console, interpreter=settings.ACTION_INTERPRETER)
        try:
            menu.run()
        except NoActionsAvailable as e:
            fail(f"Menu error: {e}")
    else:
        info("Running default installation...")
        console.print()
        try:
            run_installation(console)
        except InstallationFailed as e:
            fail(f"Installation failed: {e}")
        console.print()
        info("Installation completed successfully!")


@app.command()
def identity() -> None:
    """Show the public IP and machine ID this installer would report."""
    try:
        detected = collect_identity(settings)
    except IPDetectionFailure as e:
        fail(f"Failed to detect public IP: {e}")

    console.print(f"Public IP:  {detected.public_ip}", markup=False, highlight=False)
    console.print(f"Machine ID: {detected.machine_id}", markup=False, highlight=False)


if __name__ == "__main__":
    app()
