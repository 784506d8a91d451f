"""
CLI entry point for Counter API.
"""

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError as SettingsValidationError

from .config import Settings
from .deployments import scan_ignition_deployments, write_deployments_file
from .errors import ConfigError

app = typer.Typer(
    name="counter-api",
    help="Counter API - HTTP bridge for the on-chain Counter contract",
    add_completion=False,
)


def _load_settings(env_path: Optional[Path]) -> Settings:
    try:
        return Settings(_env_file=env_path) if env_path else Settings()
    except SettingsValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


@app.command()
def serve(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to .env configuration file",
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Override HOST"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Override PORT"),
) -> None:
    """
    Validate configuration and start the API server.
    """
    try:
        settings = _load_settings(config_path)
        if host is not None:
            settings.host = host
        if port is not None:
            settings.port = port
        config = settings.chain_config()
    except ConfigError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Contract Address: {config.contract_address}")
    typer.echo(f"Network: {config.network.value}")
    typer.echo(f"API Server running on http://{settings.host}:{settings.port}")
    typer.echo("")
    typer.echo("Available endpoints:")
    typer.echo("  GET  /value - Get current counter value")
    typer.echo("  POST /increment - Increment by 1")
    typer.echo("  POST /increment-by - Increment by specified amount")
    typer.echo("  POST /decrement - Decrement by 1")
    typer.echo("  POST /decrement-by - Decrement by specified amount")

    from .main import run

    run(settings, env_file=config_path)


@app.command()
def deployments(
    ignition_dir: Path = typer.Argument(
        Path("ignition/deployments"),
        help="Hardhat Ignition deployments directory",
    ),
    output: Path = typer.Option(
        Path("deployments.json"),
        "--output",
        "-o",
        help="Where to write the collected addresses",
    ),
) -> None:
    """
    List deployed Counter addresses and save them to a deployments file.
    """
    try:
        found = scan_ignition_deployments(ignition_dir)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Deploy the contract first:", err=True)
        typer.echo("  npx hardhat ignition deploy ignition/modules/Counter.ts --network sepolia", err=True)
        raise typer.Exit(code=1)

    if not found:
        typer.echo("Error: No deployed contracts found.", err=True)
        raise typer.Exit(code=1)

    typer.echo("Deployed Contract Addresses:\n")
    for deployment in found:
        typer.echo(f"  Network: {deployment.network} (Chain ID: {deployment.chain_id})")
        typer.echo(f"  Address: {deployment.address}\n")

    write_deployments_file(found, output)
    typer.echo(f"Deployment addresses saved to: {output}")


@app.command()
def version() -> None:
    """Show the API version."""
    from counter_api import __version__
    typer.echo(f"counter-api v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
