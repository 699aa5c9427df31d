"""Image panel with drag-to-select, zoom and file drop."""

from __future__ import annotations

import numpy as np
from PyQt6.QtCore import QRect, QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QColor, QFont, QImage, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import QSizePolicy, QWidget

from regionocr.config import AppSettings
from regionocr.selection.controller import SelectionController, SelectionState

_SELECTION_FILL = QColor(64, 128, 255, 60)
_SELECTION_BORDER = QColor(64, 128, 255)
_BACKGROUND = QColor(45, 45, 48)
_HINT = "Click and drag to select a text region"
_EMPTY = "Open or drop an image to start"


def bgr_to_qpixmap(frame: np.ndarray) -> QPixmap:
    """Convert a BGR/BGRA/grayscale numpy array to a QPixmap."""
    h, w = frame.shape[:2]
    if frame.ndim == 2:
        gray = np.ascontiguousarray(frame)
        qimg = QImage(gray.data, w, h, w, QImage.Format.Format_Grayscale8)
    elif frame.shape[2] == 4:
        rgba = np.ascontiguousarray(frame[:, :, [2, 1, 0, 3]])
        qimg = QImage(rgba.data, w, h, w * 4, QImage.Format.Format_RGBA8888)
    else:
        rgb = np.ascontiguousarray(frame[:, :, ::-1])
        qimg = QImage(rgb.data, w, h, w * 3, QImage.Format.Format_RGB888)
    # copy() detaches the QImage from the numpy buffer
    return QPixmap.fromImage(qimg.copy())


class ImageSelectionView(QWidget):
    """Shows the original image fitted to the panel and forwards pointer events
    to a SelectionController.

    Signals:
        region_selected: Emitted once per completed drag with the original-space
            sub-image (numpy array), or None if it could not be mapped.
        selection_error: Emitted with a message when a drag could not be mapped.
        file_dropped: Emitted with the path of an image file dropped on the view.
        zoom_changed: Emitted with the new zoom level.
    """

    region_selected = pyqtSignal(object)
    selection_error = pyqtSignal(str)
    file_dropped = pyqtSignal(str)
    zoom_changed = pyqtSignal(float)

    def __init__(self, settings: AppSettings, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._controller = SelectionController(
            on_selection_complete=self.region_selected.emit,
            on_error=self.selection_error.emit,
            min_size=settings.min_selection_size,
            zoom_min=settings.zoom_min,
            zoom_max=settings.zoom_max,
            zoom_step=settings.zoom_step,
        )
        self._pixmap: QPixmap | None = None

        self.setMouseTracking(True)
        self.setAcceptDrops(True)
        self.setMinimumSize(400, 300)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

    @property
    def controller(self) -> SelectionController:
        return self._controller

    @property
    def image(self) -> np.ndarray | None:
        return self._controller.image

    def set_image(self, image: np.ndarray | None) -> None:
        self._pixmap = bgr_to_qpixmap(image) if image is not None else None
        self._controller.set_image(image)
        self._controller.resize(self.width(), self.height())
        self.zoom_changed.emit(self._controller.zoom)
        self.update()

    def clear_selection(self) -> None:
        self._controller.clear()
        self.update()

    def zoom_in(self) -> None:
        self._controller.zoom_in()
        self._after_zoom()

    def zoom_out(self) -> None:
        self._controller.zoom_out()
        self._after_zoom()

    def reset_zoom(self) -> None:
        self._controller.reset_zoom()
        self._after_zoom()

    def _after_zoom(self) -> None:
        self.zoom_changed.emit(self._controller.zoom)
        self.update()

    # --- Qt events ---

    def resizeEvent(self, event) -> None:  # noqa: N802
        super().resizeEvent(event)
        self._controller.resize(self.width(), self.height())

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.fillRect(self.rect(), _BACKGROUND)
        transform = self._controller.transform

        if self._pixmap is None or transform is None:
            painter.setPen(QPen(QColor(180, 180, 180)))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, _EMPTY)
            painter.end()
            return

        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        target = QRect(
            transform.offset_x,
            transform.offset_y,
            transform.scaled_width,
            transform.scaled_height,
        )
        painter.drawPixmap(target, self._pixmap)

        state = self._controller.state
        rect = self._controller.selection_rect

        if state is SelectionState.ARMED and rect is None:
            self._draw_badge(painter, _HINT, centered=True)

        if rect is not None and not rect.is_empty:
            qrect = QRectF(rect.x, rect.y, rect.width, rect.height)
            painter.fillRect(qrect, _SELECTION_FILL)
            painter.setPen(QPen(_SELECTION_BORDER, 2))
            painter.drawRect(qrect)
            self._draw_badge(painter, f"{int(rect.width)} × {int(rect.height)}", centered=False)

        painter.end()

    def _draw_badge(self, painter: QPainter, text: str, centered: bool) -> None:
        painter.setFont(QFont("Arial", 11))
        metrics = painter.fontMetrics()
        box_w = metrics.horizontalAdvance(text) + 16
        box_h = metrics.height() + 6
        x = (self.width() - box_w) // 2 if centered else self.width() - box_w - 15
        y = 10
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(0, 0, 0, 150))
        painter.drawRoundedRect(x, y, box_w, box_h, 8, 8)
        painter.setPen(QPen(QColor(255, 255, 255)))
        painter.drawText(x + 8, y + 3 + metrics.ascent(), text)

    def mouseMoveEvent(self, event) -> None:  # noqa: N802
        pos = event.position()
        controller = self._controller
        controller.hover(pos.x(), pos.y())

        if controller.selection_enabled and controller.contains_display_point(pos.x(), pos.y()):
            self.setCursor(Qt.CursorShape.CrossCursor)
        else:
            self.unsetCursor()

        if controller.state is SelectionState.DRAGGING:
            controller.move(pos.x(), pos.y())
        self.update()

    def mousePressEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            self._controller.hover(pos.x(), pos.y())
            if self._controller.press(pos.x(), pos.y()):
                self.update()

    def mouseReleaseEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            self._controller.release(pos.x(), pos.y())
            self.update()

    def wheelEvent(self, event) -> None:  # noqa: N802
        if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            if event.angleDelta().y() > 0:
                self.zoom_in()
            elif event.angleDelta().y() < 0:
                self.zoom_out()
            event.accept()
        else:
            super().wheelEvent(event)

    def dragEnterEvent(self, event) -> None:  # noqa: N802
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event) -> None:  # noqa: N802
        for url in event.mimeData().urls():
            if url.isLocalFile():
                self.file_dropped.emit(url.toLocalFile())
                event.acceptProposedAction()
                return
