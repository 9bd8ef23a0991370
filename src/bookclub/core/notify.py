# ABOUTME: Operational alerts for operators: rate limits, extraction failures, quota problems.
# ABOUTME: LoggingNotifier routes alerts to the "bookclub.alerts" logger; other channels plug in.

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from bookclub.metadata.http import RateLimitExceeded


class AlertLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


@runtime_checkable
class Notifier(Protocol):
    """Delivers an alert to operators on some channel."""

    async def notify(
        self,
        level: AlertLevel,
        message: str,
        *,
        operation: str | None = None,
        details: str | None = None,
    ) -> None: ...


_LOG_LEVELS = {
    AlertLevel.ERROR: logging.ERROR,
    AlertLevel.WARNING: logging.WARNING,
    AlertLevel.INFO: logging.INFO,
    AlertLevel.SUCCESS: logging.INFO,
}


class LoggingNotifier:
    """Writes alerts to a dedicated logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("bookclub.alerts")

    async def notify(
        self,
        level: AlertLevel,
        message: str,
        *,
        operation: str | None = None,
        details: str | None = None,
    ) -> None:
        parts = [f"[{level.value.upper()}] {message}"]
        if operation:
            parts.append(f"operation={operation}")
        if details:
            parts.append(details)
        self._logger.log(_LOG_LEVELS[level], " | ".join(parts))


class AlertHooks:
    """Adapts a Notifier to the hook signatures of the fetcher and the pipeline."""

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    async def provider_rate_limited(self, error: RateLimitExceeded) -> None:
        await self._notifier.notify(
            AlertLevel.WARNING,
            "Bibliographic provider rate limit exceeded",
            operation="provider request",
            details=(
                f"Failed after {error.retries} retry attempts. "
                "Consider increasing the delay or reducing request frequency."
            ),
        )

    async def inference_rate_limited(self, error: Exception, operation: str) -> None:
        await self._notifier.notify(
            AlertLevel.WARNING,
            "Inference provider rate limit or quota exceeded",
            operation=operation,
            details=str(error),
        )

    async def inference_failed(self, error: Exception, operation: str) -> None:
        await self._notifier.notify(
            AlertLevel.ERROR,
            f"Extraction tier failed: {type(error).__name__}",
            operation=operation,
            details=str(error) or None,
        )
