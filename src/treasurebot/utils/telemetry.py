"""Telemetry utilities for logging, metrics, and timing.

This module provides centralized observability infrastructure including:
- Structured logging with credential redaction
- Prometheus metrics collection
- Performance measurement utilities
- Injectable clocks for cooldown and alert bookkeeping
"""

import asyncio
import logging
import re
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Protocol

import structlog
from prometheus_client import Counter, Gauge, Histogram, start_http_server
from structlog.processors import JSONRenderer

# Prometheus metrics
STRIKES_TOTAL = Counter(
    "treasurebot_strikes_total",
    "Total number of strikes dispatched",
    ["mode", "status"],
)

STRIKE_LATENCY = Histogram(
    "treasurebot_strike_duration_seconds",
    "Strike round-trip latency in seconds",
    ["mode"],
    buckets=[0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0, 10.0],
)

ADMISSION_REJECTIONS = Counter(
    "treasurebot_admission_rejections_total",
    "Strikes refused by admission control",
    ["reason"],
)

HOME_MOVES = Counter(
    "treasurebot_home_moves_total",
    "Heroes moved in or out of the house",
    ["direction"],
)

SHIELD_ALERTS = Counter(
    "treasurebot_shield_alerts_total",
    "Shield repair alerts emitted",
)

INCONSISTENCIES = Counter(
    "treasurebot_inconsistencies_total",
    "Deltas that referenced unknown heroes, blocks or enemies",
    ["entity"],
)

MAP_REMAINING_LIFE = Gauge(
    "treasurebot_map_remaining_life",
    "Aggregate remaining hit points on the current map",
)

WORKING_HEROES = Gauge(
    "treasurebot_working_heroes",
    "Number of heroes in the working selection",
)

# Redaction patterns
REDACTION_PATTERNS = {
    "wallet": re.compile(r"\b0x[a-fA-F0-9]{40}\b"),
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),
    "token": re.compile(r"\b[A-Za-z0-9_\-]{32,}\b"),
}


def redact_secrets(text: Any) -> Any:
    """Redact wallet addresses, emails and long tokens from text.

    Args:
        text: Input text that may contain credentials

    Returns:
        Text with matches replaced with [REDACTED_<type>], or original input if not a string

    Example:
        >>> redact_secrets("login 0x52908400098527886E0F7030069857D2E4169EE7")
        'login [REDACTED_WALLET]'
    """
    if not isinstance(text, str):
        return text

    result = text
    for kind, pattern in REDACTION_PATTERNS.items():
        result = pattern.sub(f"[REDACTED_{kind.upper()}]", result)
    return result


def redaction_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor to redact credentials from log events."""

    def redact_value(value: Any) -> Any:
        if isinstance(value, str):
            return redact_secrets(value)
        elif isinstance(value, dict):
            return {k: redact_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [redact_value(item) for item in value]
        return value

    return {key: redact_value(value) for key, value in event_dict.items()}


def setup_logging(
    log_level: str = "INFO", enable_redaction: bool = True, log_format: str = "json"
) -> None:
    """Initialize structured logging with credential redaction.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_redaction: Whether to enable the redaction processor
        log_format: "json" for machine-readable output, "text" for the console renderer
    """
    logging.basicConfig(format="%(message)s", level=log_level.upper())

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if enable_redaction:
        processors.append(redaction_processor)

    if log_format == "text":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **context: Any) -> Any:
    """Get a structured logger with optional context.

    Args:
        name: Logger name
        **context: Additional context to bind to logger

    Returns:
        Bound logger with context
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger


@asynccontextmanager
async def async_performance_timer(
    operation: str, mode: str, logger: Any | None = None
) -> AsyncGenerator[None, None]:
    """Measure a strike round-trip and record it.

    Args:
        operation: Operation name used in the debug log
        mode: Game mode label ("treasure", "amazon", "adventure")
        logger: Logger to use (defaults to the performance logger)
    """
    log = logger or get_logger("treasurebot.performance")
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except BaseException:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start
        STRIKES_TOTAL.labels(mode=mode, status=status).inc()
        STRIKE_LATENCY.labels(mode=mode).observe(duration)
        log.debug(
            "Operation completed",
            operation=operation,
            mode=mode,
            status=status,
            latency_ms=duration * 1000,
        )


def record_admission_rejection(reason: str) -> None:
    """Record a strike refused by admission control.

    Args:
        reason: "cooldown" or "capacity"
    """
    ADMISSION_REJECTIONS.labels(reason=reason).inc()


def record_home_move(direction: str) -> None:
    """Record a hero entering ("in") or leaving ("out") the house."""
    HOME_MOVES.labels(direction=direction).inc()


def record_shield_alert() -> None:
    """Record an emitted shield alert."""
    SHIELD_ALERTS.inc()


def record_inconsistency(entity: str) -> None:
    """Record a delta that referenced an unknown entity."""
    INCONSISTENCIES.labels(entity=entity).inc()


def update_map_remaining_life(total_life: int) -> None:
    """Update the remaining map life gauge."""
    MAP_REMAINING_LIFE.set(total_life)


def update_working_heroes(count: int) -> None:
    """Update the working selection gauge."""
    WORKING_HEROES.set(count)


def start_metrics_server(port: int = 8000) -> None:
    """Start Prometheus metrics HTTP server.

    Args:
        port: Port to serve metrics on
    """
    start_http_server(port)


class Clock(Protocol):
    """Anything that can tell the current time in seconds."""

    def now(self) -> float: ...


class MonotonicClock:
    """Monotonic clock for cooldown measurements.

    Uses asyncio event loop's monotonic time for consistent timing
    that's not affected by system clock adjustments.
    """

    @staticmethod
    def now() -> float:
        """Get current monotonic time in seconds."""
        try:
            loop = asyncio.get_running_loop()
            return loop.time()
        except RuntimeError:
            # No event loop running, fall back to time.monotonic()
            return time.monotonic()


class WallClock:
    """Wall clock for long-horizon bookkeeping such as daily alerts."""

    @staticmethod
    def now() -> float:
        """Get current wall clock time in seconds since epoch."""
        return time.time()
