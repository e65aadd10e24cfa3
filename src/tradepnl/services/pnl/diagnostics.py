"""Diagnostic channel for non-fatal anomalies.

One ``Diagnostics`` instance is created per calculation. Messages go to the
caller's optional callback and to the structured log; the calculation never
depends on either.
"""

from typing import Any, Callable, Optional

from tradepnl.system import LoggerFactory

logger = LoggerFactory.get_logger()

DebugCallback = Callable[[str], None]


class Diagnostics:
    """
    Collects anomaly narration for one P&L calculation.

    Example:
        >>> diagnostics = Diagnostics(print)
        >>> diagnostics.emit("pnl.option_without_parent", "Option without parent: weekly call")
        Option without parent: weekly call
    """

    def __init__(self, callback: Optional[DebugCallback] = None) -> None:
        self._callback = callback
        self._messages: list[str] = []

    def emit(self, event: str, message: str, **context: Any) -> None:
        """
        Record a diagnostic.

        Args:
            event: Dotted structlog event name
            message: Human-readable text passed to the callback
            **context: Extra structured fields for the log record
        """
        self._messages.append(message)
        logger.debug(event, detail=message, **context)
        if self._callback is not None:
            self._callback(message)

    @property
    def messages(self) -> list[str]:
        """Messages emitted so far (copy)."""
        return list(self._messages)
