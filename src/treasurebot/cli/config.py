"""Configuration management CLI commands."""

import json
import os
from pathlib import Path

import click
import yaml

from treasurebot.config import (
    BOT_ENV_FIELDS,
    Config,
    ConfigError,
    get_config_file_path,
    get_environment,
    load_config,
    load_config_from_env,
    validate_config,
)

# Variables outside the bot section, listed by `config env --all`
_GLOBAL_ENV_VARS = (
    "TREASUREBOT_CONFIG",
    "TREASUREBOT_ENVIRONMENT",
    "TREASUREBOT_DEBUG",
    "TREASUREBOT_LOG_LEVEL",
    "TREASUREBOT_LOG_FORMAT",
    "TREASUREBOT_METRICS_PORT",
    "TREASUREBOT_WEB_PORT",
)


@click.group()
def config() -> None:
    """Configuration management."""


@config.command()
@click.argument("config_path", required=False, type=click.Path(path_type=Path))
def validate(config_path: Path | None) -> None:
    """Validate a configuration file, or the environment when none is given."""
    try:
        if config_path:
            click.echo(f"Validating configuration file: {config_path}")
            if not config_path.exists():
                raise click.ClickException(f"Configuration file not found: {config_path}")
            loaded = load_config(config_path)
        else:
            click.echo("Validating configuration from environment variables")
            loaded = load_config_from_env()

        validate_config(loaded)
    except ConfigError as e:
        raise click.ClickException(f"Configuration validation failed: {e}") from e

    click.echo("✓ Configuration is valid")


@config.command()
@click.argument("config_path", required=False, type=click.Path(path_type=Path))
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    help="Output format",
)
def show(config_path: Path | None, format_type: str) -> None:
    """Show the effective configuration (defaults < file < environment)."""
    try:
        config_dict = load_config(config_path or get_config_file_path()).model_dump(
            mode="json"
        )
    except ConfigError as e:
        raise click.ClickException(f"Error loading configuration: {e}") from e

    if format_type == "json":
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.dump(config_dict, default_flow_style=False, sort_keys=True))


@config.command()
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(path_type=Path),
    default=Path("treasurebot.yaml"),
    help="File to write",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(output_path: Path, force: bool) -> None:
    """Write a configuration file holding the defaults."""
    if output_path.exists() and not force:
        raise click.ClickException(
            f"Configuration file already exists: {output_path} (use --force to overwrite)"
        )

    try:
        with open(output_path, "w") as f:
            yaml.dump(
                Config().model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=True,
            )
    except OSError as e:
        raise click.ClickException(f"Error creating configuration file: {e}") from e

    click.echo(f"✓ Configuration file created: {output_path}")


@config.command()
@click.option("--all", "-a", "show_all", is_flag=True, help="Include unset variables")
def env(show_all: bool) -> None:
    """Show the environment and the TREASUREBOT_* variables."""
    try:
        config_file = get_config_file_path()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Environment: {get_environment()}")
    click.echo(f"Config file: {config_file or 'None found'}")
    click.echo()

    names = {name for name in os.environ if name.startswith("TREASUREBOT_")}
    if show_all:
        names.update(_GLOBAL_ENV_VARS, BOT_ENV_FIELDS)

    click.echo("Environment Variables:")
    for name in sorted(names):
        click.echo(f"  {name}={os.getenv(name) or '(not set)'}")


def run_config_command(args: list[str]) -> int:
    """Run a config subcommand and return its exit code."""
    try:
        config.main(
            args=args or ["--help"], prog_name="treasurebot config", standalone_mode=False
        )
        return 0
    except click.ClickException as e:
        click.echo(f"✗ {e.format_message()}")
        return 1
    except click.exceptions.Abort:
        return 1
