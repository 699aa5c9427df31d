"""RegionOcrApplication: runs the Qt UI on the main thread, extraction on a worker."""

from __future__ import annotations

import logging
import sys

from PyQt6.QtWidgets import QApplication

from regionocr.config import AppSettings, load_config
from regionocr.ui.bridge import BridgeLogHandler, ExtractionBridge
from regionocr.ui.main_window import MainWindow

logger = logging.getLogger("regionocr.ui")


class RegionOcrApplication:
    """Owns the QApplication, the cross-thread bridge and the main window."""

    def __init__(self, config_path: str = "config.toml") -> None:
        self._config_path = config_path

    def run(self) -> int:
        """Entry point. Must be called from the main thread.

        Returns the application exit code.
        """
        app = QApplication(sys.argv)
        app.setApplicationName("Region OCR")

        # Created after the QApplication so both live on the GUI thread
        bridge = ExtractionBridge()
        log_handler = BridgeLogHandler(bridge)
        logging.getLogger().addHandler(log_handler)

        settings = AppSettings.from_config(load_config(self._config_path))
        window = MainWindow(settings, bridge, config_path=self._config_path)
        window.show()
        logger.info("Region OCR started (config: %s)", self._config_path)

        try:
            exit_code = app.exec()
        finally:
            # Let a running job finish so its worker thread exits cleanly
            window.orchestrator.shutdown(wait=True)
            logging.getLogger().removeHandler(log_handler)

        return exit_code
