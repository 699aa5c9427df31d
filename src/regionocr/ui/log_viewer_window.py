"""Tool window showing recent log output of the extraction pipeline."""

from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QApplication,
    QCheckBox,
    QHBoxLayout,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from regionocr.ui.bridge import ExtractionBridge


class LogViewerWindow(QWidget):
    """Scrollable log viewer fed by ExtractionBridge.log_message."""

    MAX_LINES = 1000

    def __init__(self, bridge: ExtractionBridge, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Region OCR — Log")
        self.setWindowFlags(Qt.WindowType.Tool)
        self.setMinimumSize(640, 360)

        layout = QVBoxLayout(self)

        self._text = QPlainTextEdit()
        self._text.setReadOnly(True)
        self._text.setMaximumBlockCount(self.MAX_LINES)
        layout.addWidget(self._text)

        btn_layout = QHBoxLayout()
        self._follow = QCheckBox("Follow")
        self._follow.setChecked(True)
        btn_layout.addWidget(self._follow)
        btn_layout.addStretch()

        copy_btn = QPushButton("Copy All")
        copy_btn.clicked.connect(self._copy_all)
        btn_layout.addWidget(copy_btn)

        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(self._text.clear)
        btn_layout.addWidget(clear_btn)
        layout.addLayout(btn_layout)

        # Records are emitted on the worker thread too; queue them onto ours
        bridge.log_message.connect(self._append_line, Qt.ConnectionType.QueuedConnection)

    def _append_line(self, line: str) -> None:
        self._text.appendPlainText(line)
        if self._follow.isChecked():
            bar = self._text.verticalScrollBar()
            bar.setValue(bar.maximum())

    def _copy_all(self) -> None:
        QApplication.clipboard().setText(self._text.toPlainText())
