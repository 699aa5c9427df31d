"""Cross-thread bridge between the extraction worker and the Qt UI."""

from __future__ import annotations

import logging
from typing import Any, Callable

from PyQt6.QtCore import QObject, Qt, pyqtSignal


class ExtractionBridge(QObject):
    """Marshals calls and log lines from worker threads onto the Qt main thread.

    Signals (worker -> UI):
        call_requested: Carries a callable and its arguments; dispatched on the
            thread that owns the bridge (the UI thread).
        log_message: Emitted with a formatted log line.

    Qt delivers queued signals to one receiver in emission order, so progress
    updates and the completion call arrive in the order the worker sent them.
    """

    call_requested = pyqtSignal(object, object)
    log_message = pyqtSignal(str)

    def __init__(self) -> None:
        super().__init__()
        self.call_requested.connect(self._dispatch, Qt.ConnectionType.QueuedConnection)

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule fn(*args) on the UI thread. Safe to call from any thread."""
        self.call_requested.emit(fn, args)

    def publish_log(self, message: str) -> None:
        self.log_message.emit(message)

    def _dispatch(self, fn: Callable[..., Any], args: tuple) -> None:
        fn(*args)


class BridgeLogHandler(logging.Handler):
    """Forwards formatted log records to the bridge for the log viewer."""

    def __init__(self, bridge: ExtractionBridge, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._bridge = bridge
        self.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._bridge.publish_log(self.format(record))
        except Exception:
            self.handleError(record)
