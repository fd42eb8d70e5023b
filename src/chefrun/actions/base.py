"""Base class for actions run against a target host."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Callable, Dict, Optional

from chefrun.config import ChefRunConfig

logger = logging.getLogger(__name__)

NotificationHandler = Callable[[str, tuple], None]
TelemetrySink = Callable[[Dict[str, Any]], None]


class Action:
    """
    An operation performed against one target host.

    Subclasses implement ``perform_action``. ``run`` wraps it with
    notifications for progress display and, when telemetry is enabled in the
    config, a timed event handed to ``telemetry_sink``.
    """

    name = "action"

    def __init__(
        self,
        target_host: Any,
        config: Optional[ChefRunConfig] = None,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> None:
        if target_host is None:
            raise ValueError("target_host is required")
        self.target_host = target_host
        self.config = config or ChefRunConfig()
        self.telemetry_sink = telemetry_sink
        self.notification_handler: Optional[NotificationHandler] = None
        self.error: Optional[BaseException] = None

    def perform_action(self) -> None:
        raise NotImplementedError

    def run(self, notification_handler: Optional[NotificationHandler] = None) -> None:
        """Perform the action, notifying ``notification_handler`` of progress."""
        self.notification_handler = notification_handler
        self.error = None
        start = perf_counter()
        try:
            self.perform_action()
        except Exception as e:
            self.error = e
            self.notify("error", e)
            raise
        finally:
            self._capture(perf_counter() - start)

    def notify(self, message: str, *args: Any) -> None:
        """Report progress. Observers cannot affect the action's outcome."""
        if self.notification_handler is None:
            return
        try:
            self.notification_handler(message, args)
        except Exception as e:
            logger.warning(f"Notification handler failed on '{message}': {e}")

    def _capture(self, duration_seconds: float) -> None:
        if not self.config.telemetry_enabled or self.telemetry_sink is None:
            return
        event = {
            "action": self.name,
            "host": getattr(self.target_host, "hostname", None),
            "duration_seconds": duration_seconds,
            "success": self.error is None,
            "error_id": getattr(self.error, "id", None),
        }
        try:
            self.telemetry_sink(event)
        except Exception as e:
            logger.debug(f"Telemetry capture failed: {e}")
