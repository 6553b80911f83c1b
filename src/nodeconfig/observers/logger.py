from __future__ import annotations
import logging
from .events import BaseEvent, NodeConfigFailed

# context fields already carried in the log line prefix or the run log itself
_SKIP = ("ts", "run_id", "instance_id")


class LoggerObserver:
    """One log line per event, prefixed with the instance it belongs to."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        fields = ", ".join(f"{k}={v}" for k, v in event.dict().items() if k not in _SKIP)
        level = logging.ERROR if isinstance(event, NodeConfigFailed) else logging.INFO
        self.logger.log(level, "[%s] %s: %s", event.instance_id, event.__class__.__name__, fields)
