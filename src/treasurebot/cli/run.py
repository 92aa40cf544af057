"""CLI for running the bot.

The game client is not part of this package. ``--client`` names a factory
(``package.module:callable``) that receives the loaded configuration and
returns a :class:`~treasurebot.core.client.GameClient`.
"""

import asyncio
import importlib
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from treasurebot.adapters.web import serve_status
from treasurebot.config import (
    Config,
    ConfigError,
    get_config_file_path,
    load_config,
    validate_config,
)
from treasurebot.core.orchestrator import Orchestrator
from treasurebot.utils.telemetry import get_logger, setup_logging, start_metrics_server
from treasurebot.utils.version import VersionGuard


def import_factory(reference: str) -> Callable[..., Any]:
    """Resolve ``package.module:callable``.

    Raises:
        click.BadParameter: If the reference cannot be resolved
    """
    module_name, _, attr = reference.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"Expected module:callable, got {reference!r}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"Cannot import {reference!r}: {e}") from e


async def run_bot(bot: Orchestrator, config: Config) -> None:
    """Run the loop, and the status endpoint when enabled, until stopped."""
    server: asyncio.Task[None] | None = None
    if config.web.enabled:
        server = asyncio.create_task(
            serve_status(
                bot,
                host=config.web.host,
                port=config.web.port,
                log_level=config.logging.level,
            )
        )

    try:
        await bot.loop()
    except asyncio.CancelledError:
        await bot.stop()
        raise
    finally:
        if server is not None:
            server.cancel()
            await asyncio.gather(server, return_exceptions=True)


@click.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option(
    "--client",
    "client_factory",
    required=True,
    help="Game client factory as module:callable, called with the Config",
)
@click.option(
    "--version-source",
    default=None,
    help="Coroutine function as module:callable returning the published version",
)
@click.option("--log-level", default=None, help="Override the configured log level")
def run(
    config_path: Path | None,
    client_factory: str,
    version_source: str | None,
    log_level: str | None,
) -> None:
    """Run the bot until interrupted."""
    try:
        config = load_config(config_path or get_config_file_path())
        validate_config(config)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    setup_logging(
        log_level or config.logging.level,
        enable_redaction=config.logging.enable_redaction,
        log_format=config.logging.format,
    )
    logger = get_logger("treasurebot.cli")

    if config.metrics.enabled:
        start_metrics_server(config.metrics.port)
        logger.info("Metrics server started", port=config.metrics.port)

    client = import_factory(client_factory)(config)
    bot = Orchestrator(client, config.bot)
    if version_source:
        bot.version_guard = VersionGuard(
            import_factory(version_source),
            notify=bot.notifier.send,
            interval_seconds=config.bot.version_check_interval_seconds,
        )

    logger.info(
        "Starting bot",
        network=config.bot.network,
        mode_amazon=config.bot.mode_amazon,
        mode_adventure=config.bot.mode_adventure,
    )
    try:
        asyncio.run(run_bot(bot, config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
