"""Main application window: image panel, controls and extracted text."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QAction, QKeySequence, QTextCursor
from PyQt6.QtWidgets import (
    QApplication,
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QSplitter,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from regionocr.capture.files import (
    IMAGE_FILTER,
    TEXT_FILTER,
    default_save_name,
    ensure_txt_suffix,
    format_file_size,
    load_image,
    save_text,
)
from regionocr.capture.screen_capture import ScreenCapture
from regionocr.config import AppSettings, save_setting
from regionocr.errors import InputError, RegionOcrError
from regionocr.extraction.models import ExtractionSummary
from regionocr.extraction.orchestrator import ExtractionOrchestrator
from regionocr.ocr.engine import LANGUAGES, language_code
from regionocr.ocr.normalizer import text_statistics
from regionocr.ui.bridge import ExtractionBridge
from regionocr.ui.image_view import ImageSelectionView
from regionocr.ui.log_viewer_window import LogViewerWindow

logger = logging.getLogger(__name__)

# Delay before grabbing the screen so the hidden window has disappeared
_CAPTURE_DELAY_MS = 300


class MainWindow(QMainWindow):
    """Image-to-text window built around an ExtractionOrchestrator."""

    def __init__(
        self,
        settings: AppSettings,
        bridge: ExtractionBridge,
        config_path: str = "config.toml",
        orchestrator: ExtractionOrchestrator | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Region OCR")
        self.resize(1200, 800)

        self._settings = settings
        self._bridge = bridge
        self._config_path = config_path
        self._last_directory = settings.last_directory
        self._image_path: Path | None = None
        self._last_progress_at = 0.0
        self._log_window: LogViewerWindow | None = None

        handlers = dict(
            on_progress=self._on_progress,
            on_job_complete=self._on_job_complete,
            on_busy_changed=self._on_busy_changed,
            on_region_consumed=self._on_region_consumed,
            call_soon=bridge.call_soon,
        )
        if orchestrator is None:
            orchestrator = ExtractionOrchestrator.from_settings(settings, **handlers)
        else:
            for name, handler in handlers.items():
                if name != "call_soon":
                    setattr(orchestrator, name, handler)
        self._orchestrator = orchestrator

        self._build_ui()
        self._build_menus()
        self._restore_language()
        self._update_controls(busy=False)
        self.statusBar().showMessage("Ready. Open an image to begin.")

    @property
    def orchestrator(self) -> ExtractionOrchestrator:
        return self._orchestrator

    # --- Layout ---

    def _build_ui(self) -> None:
        central = QWidget()
        layout = QVBoxLayout(central)

        toolbar = QHBoxLayout()
        self._open_btn = QPushButton("Open Image")
        self._open_btn.clicked.connect(self._open_image)
        toolbar.addWidget(self._open_btn)

        self._capture_btn = QPushButton("Capture Screen")
        self._capture_btn.clicked.connect(self._capture_screen)
        toolbar.addWidget(self._capture_btn)

        toolbar.addWidget(QLabel("Language:"))
        self._language = QComboBox()
        self._language.addItems(list(LANGUAGES))
        self._language.currentTextChanged.connect(self._on_language_changed)
        toolbar.addWidget(self._language)

        self._extract_btn = QPushButton("Extract Text")
        self._extract_btn.clicked.connect(self._extract_full_image)
        toolbar.addWidget(self._extract_btn)

        self._clear_sel_btn = QPushButton("Clear Selection")
        self._clear_sel_btn.clicked.connect(self._clear_selection)
        toolbar.addWidget(self._clear_sel_btn)
        toolbar.addStretch()

        self._zoom_label = QLabel("100%")
        toolbar.addWidget(self._zoom_label)
        layout.addLayout(toolbar)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        self._view = ImageSelectionView(self._settings)
        self._view.region_selected.connect(self._on_region_selected)
        self._view.selection_error.connect(self._on_selection_error)
        self._view.file_dropped.connect(self.load_image_file)
        self._view.zoom_changed.connect(
            lambda zoom: self._zoom_label.setText(f"{round(zoom * 100)}%")
        )
        splitter.addWidget(self._view)

        text_panel = QWidget()
        text_layout = QVBoxLayout(text_panel)
        text_layout.setContentsMargins(0, 0, 0, 0)

        self._text = QTextEdit()
        self._text.setPlaceholderText("Extracted text will appear here")
        self._text.textChanged.connect(self._update_statistics)
        text_layout.addWidget(self._text)

        self._stats_label = QLabel()
        text_layout.addWidget(self._stats_label)

        text_buttons = QHBoxLayout()
        self._copy_btn = QPushButton("Copy")
        self._copy_btn.clicked.connect(self._copy_text)
        text_buttons.addWidget(self._copy_btn)

        self._save_btn = QPushButton("Save")
        self._save_btn.clicked.connect(self._save_text)
        text_buttons.addWidget(self._save_btn)

        self._clear_all_btn = QPushButton("Clear All")
        self._clear_all_btn.clicked.connect(self._clear_all)
        text_buttons.addWidget(self._clear_all_btn)
        text_layout.addLayout(text_buttons)

        splitter.addWidget(text_panel)
        splitter.setSizes([750, 450])
        layout.addWidget(splitter, stretch=1)

        self._progress = QProgressBar()
        self._progress.setRange(0, 100)
        self._progress.setVisible(False)
        layout.addWidget(self._progress)

        self.setCentralWidget(central)
        self._update_statistics()

    def _build_menus(self) -> None:
        menu = self.menuBar()

        file_menu = menu.addMenu("&File")
        self._add_action(file_menu, "&Open Image...", self._open_image, QKeySequence.StandardKey.Open)
        self._add_action(file_menu, "&Capture Screen", self._capture_screen)
        self._add_action(file_menu, "&Save Text...", self._save_text, QKeySequence.StandardKey.Save)
        file_menu.addSeparator()
        self._add_action(file_menu, "E&xit", self.close, QKeySequence.StandardKey.Quit)

        edit_menu = menu.addMenu("&Edit")
        self._add_action(edit_menu, "&Extract Text", self._extract_full_image, "Ctrl+E")
        self._add_action(edit_menu, "Clear &Selection", self._clear_selection, "Esc")
        self._add_action(edit_menu, "&Copy Text", self._copy_text, "Ctrl+Shift+C")
        self._add_action(edit_menu, "Clear &All", self._clear_all)

        view_menu = menu.addMenu("&View")
        self._add_action(view_menu, "Zoom &In", self._view.zoom_in, QKeySequence.StandardKey.ZoomIn)
        self._add_action(view_menu, "Zoom &Out", self._view.zoom_out, QKeySequence.StandardKey.ZoomOut)
        self._add_action(view_menu, "&Reset Zoom", self._view.reset_zoom, "Ctrl+0")
        view_menu.addSeparator()
        self._add_action(view_menu, "Show &Log", self._show_log)

        help_menu = menu.addMenu("&Help")
        self._add_action(help_menu, "&About", self._show_about)

    def _add_action(self, menu, text: str, slot, shortcut=None) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(QKeySequence(shortcut))
        action.triggered.connect(slot)
        menu.addAction(action)
        return action

    def _restore_language(self) -> None:
        name = self._settings.last_language
        if name not in LANGUAGES:
            name = next(iter(LANGUAGES))
        self._language.blockSignals(True)
        self._language.setCurrentText(name)
        self._language.blockSignals(False)
        self._orchestrator.set_language(language_code(name))

    # --- Image sources ---

    def _open_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", self._last_directory, IMAGE_FILTER
        )
        if path:
            self.load_image_file(path)

    def load_image_file(self, path: str) -> None:
        if self._orchestrator.busy:
            self.statusBar().showMessage("Wait for the current extraction to finish")
            return
        image = load_image(path)
        if image is None:
            QMessageBox.warning(self, "Open Image", f"Could not load image:\n{path}")
            return

        self._image_path = Path(path)
        self._remember_directory(self._image_path.parent)
        self._set_image(image)
        size = format_file_size(self._image_path.stat().st_size)
        self.statusBar().showMessage(
            f"Loaded {self._image_path.name} ({image.shape[1]}x{image.shape[0]}, {size}). "
            "Drag on the image to extract a region."
        )

    def _capture_screen(self) -> None:
        if self._orchestrator.busy:
            return
        self.hide()
        QTimer.singleShot(_CAPTURE_DELAY_MS, self._finish_capture)

    def _finish_capture(self) -> None:
        try:
            with ScreenCapture() as capture:
                image = capture.grab()
        finally:
            self.show()
            self.activateWindow()

        if image is None:
            QMessageBox.warning(self, "Capture Screen", "Screen capture failed.")
            return
        self._image_path = None
        self._set_image(image)
        self.statusBar().showMessage(
            f"Captured screen ({image.shape[1]}x{image.shape[0]}). "
            "Drag on the image to extract a region."
        )

    def _set_image(self, image: np.ndarray) -> None:
        # A new source starts a new document
        self._orchestrator.clear()
        self._text.clear()
        self._view.set_image(image)
        self._update_controls(busy=False)

    # --- Extraction ---

    def _extract_full_image(self) -> None:
        self._submit(self._view.image, is_region=False)

    def _on_region_selected(self, region: np.ndarray | None) -> None:
        if region is None:
            return
        self._submit(region, is_region=True)

    def _on_selection_error(self, message: str) -> None:
        self.statusBar().showMessage(f"Selection ignored: {message}")

    def _submit(self, bitmap: np.ndarray | None, is_region: bool) -> None:
        try:
            self._orchestrator.submit(bitmap, is_region=is_region)
        except InputError as exc:
            self.statusBar().showMessage(f"Cannot extract: {exc}")
            if is_region:
                self._view.clear_selection()
            return
        self._last_progress_at = 0.0
        self._progress.setValue(0)
        self._progress.setVisible(True)

    def _on_progress(self, percent: int, message: str) -> None:
        now = time.monotonic()
        if percent < 100 and now - self._last_progress_at < self._settings.progress_interval:
            return
        self._last_progress_at = now
        self._progress.setValue(percent)
        self.statusBar().showMessage(message)

    def _on_busy_changed(self, busy: bool) -> None:
        self._update_controls(busy)
        if busy:
            QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        else:
            QApplication.restoreOverrideCursor()

    def _on_region_consumed(self) -> None:
        self._view.clear_selection()

    def _on_job_complete(self, outcome: ExtractionSummary | RegionOcrError) -> None:
        self._progress.setVisible(False)

        if isinstance(outcome, RegionOcrError):
            self.statusBar().showMessage("Extraction failed")
            QMessageBox.critical(self, "Extraction Failed", str(outcome))
            self._release_completed_selection()
            return

        if not outcome.found_text:
            self.statusBar().showMessage("No text found in the selected area")
            QMessageBox.information(
                self,
                "No Text Found",
                "No text was detected. Try a clearer image, a different language "
                "or a tighter selection.",
            )
        else:
            self._text.setPlainText(outcome.text)
            cursor = self._text.textCursor()
            cursor.movePosition(QTextCursor.MoveOperation.End)
            self._text.setTextCursor(cursor)
            self.statusBar().showMessage(
                f"Extracted {outcome.result.word_count} words "
                f"({outcome.extraction_count} extraction(s) total)"
            )
        self._release_completed_selection()

    def _release_completed_selection(self) -> None:
        # Region jobs already cleared theirs via _on_region_consumed
        if self._view.controller.rearm_if_completed():
            self._view.update()

    def _rearm_selection(self) -> None:
        self._view.controller.rearm()
        self._view.update()

    def _update_controls(self, busy: bool) -> None:
        has_image = self._view.image is not None
        self._open_btn.setEnabled(not busy)
        self._capture_btn.setEnabled(not busy)
        self._language.setEnabled(not busy)
        self._extract_btn.setEnabled(not busy and has_image)
        self._clear_sel_btn.setEnabled(not busy and has_image)
        self._clear_all_btn.setEnabled(not busy)
        self._view.controller.enabled = not busy and has_image

    # --- Text actions ---

    def _update_statistics(self) -> None:
        text = self._text.toPlainText()
        stats = text_statistics(text)
        self._stats_label.setText(stats.summary())
        has_text = bool(text.strip())
        self._copy_btn.setEnabled(has_text)
        self._save_btn.setEnabled(has_text)

    def _copy_text(self) -> None:
        text = self._text.toPlainText()
        if not text:
            return
        QApplication.clipboard().setText(text)
        self.statusBar().showMessage("Text copied to clipboard")

    def _save_text(self) -> None:
        text = self._text.toPlainText()
        if not text.strip():
            return
        suggested = str(Path(self._last_directory or ".") / default_save_name(self._image_path))
        path, _ = QFileDialog.getSaveFileName(self, "Save Text", suggested, TEXT_FILTER)
        if not path:
            return
        target = ensure_txt_suffix(path)
        if save_text(text, target):
            self._remember_directory(target.parent)
            self.statusBar().showMessage(f"Text saved to {target.name}")
        else:
            QMessageBox.critical(self, "Save Text", f"Could not save to:\n{target}")

    def _clear_selection(self) -> None:
        self._rearm_selection()
        self.statusBar().showMessage("Selection cleared")

    def _clear_all(self) -> None:
        answer = QMessageBox.question(
            self,
            "Clear All",
            "Clear all extracted text?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if answer != QMessageBox.StandardButton.Yes:
            return
        self._orchestrator.clear()
        self._text.clear()
        self._rearm_selection()
        self.statusBar().showMessage("All text cleared")

    # --- Preferences ---

    def _on_language_changed(self, name: str) -> None:
        self._orchestrator.set_language(language_code(name))
        self._persist("ui", "last_language", name)

    def _remember_directory(self, directory: Path) -> None:
        self._last_directory = str(directory)
        self._persist("ui", "last_directory", self._last_directory)

    def _persist(self, section: str, key: str, value) -> None:
        try:
            save_setting(self._config_path, section, key, value)
        except OSError:
            logger.warning("Could not save %s.%s to %s", section, key, self._config_path)

    # --- Windows ---

    def _show_log(self) -> None:
        if self._log_window is None:
            self._log_window = LogViewerWindow(self._bridge)
        self._log_window.show()
        self._log_window.raise_()
        self._log_window.activateWindow()

    def _show_about(self) -> None:
        QMessageBox.about(
            self,
            "About Region OCR",
            "Region OCR\n\nExtract text from images and screen captures.\n"
            "Drag on the image to extract a region; successive regions are "
            "appended to the text.",
        )

    def closeEvent(self, event) -> None:  # noqa: N802
        if self._orchestrator.busy:
            answer = QMessageBox.question(
                self,
                "Quit",
                "An extraction is still running. Quit anyway?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if answer != QMessageBox.StandardButton.Yes:
                event.ignore()
                return
        if self._log_window is not None:
            self._log_window.close()
        event.accept()
