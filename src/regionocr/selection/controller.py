"""Drag-to-select state machine, independent of any widget toolkit.

The UI forwards pointer and resize events; the controller keeps the selection
rectangle in display coordinates and, when a drag completes, cuts the
matching region out of the original full-resolution image.

States:
    IDLE       no active selection (image may or may not be loaded)
    ARMED      image loaded and the pointer hovered it, a drag may start
    DRAGGING   pointer is down, rectangle follows the pointer
    COMPLETED  a valid selection was delivered; disabled until rearm/clear
"""

from __future__ import annotations

import enum
import logging
from typing import Callable

import numpy as np

from regionocr.selection.transform import (
    ZOOM_MAX,
    ZOOM_MIN,
    ZOOM_STEP,
    DisplayTransform,
    OriginalRect,
    SelectionRect,
    clamp_to_image,
    clamp_zoom,
    compute_transform,
    display_to_original,
    step_zoom,
)

logger = logging.getLogger(__name__)

MIN_SELECTION_SIZE = 10


class SelectionState(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"
    COMPLETED = "completed"


class SelectionController:
    """Owns the interactive selection over one displayed image.

    Must only be used from the interactive (UI) thread.

    Args:
        on_selection_complete: One-shot handler called with the selected
            original-space sub-image, or None when the mapping failed.
        on_error: Called with a message when a completed drag could not be
            mapped back onto the image.
        min_size: Selections must exceed this size (display pixels) on both axes.
    """

    def __init__(
        self,
        on_selection_complete: Callable[[np.ndarray | None], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        min_size: int = MIN_SELECTION_SIZE,
        zoom_min: float = ZOOM_MIN,
        zoom_max: float = ZOOM_MAX,
        zoom_step: float = ZOOM_STEP,
    ) -> None:
        self.on_selection_complete = on_selection_complete
        self.on_error = on_error
        self.min_size = min_size
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.zoom_step = zoom_step
        # Cleared by the UI while an extraction is running
        self.enabled = True

        self._image: np.ndarray | None = None
        self._panel_size: tuple[int, int] = (0, 0)
        self._zoom = 1.0
        self._transform: DisplayTransform | None = None
        self._state = SelectionState.IDLE
        self._start: tuple[float, float] | None = None
        self._current: tuple[float, float] | None = None
        self._rect: SelectionRect | None = None

    # --- Read-only state ---

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def image(self) -> np.ndarray | None:
        return self._image

    @property
    def transform(self) -> DisplayTransform | None:
        return self._transform

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def selection_rect(self) -> SelectionRect | None:
        """Current selection in display coordinates (may be below threshold)."""
        return self._rect

    @property
    def selection_enabled(self) -> bool:
        return self.enabled and self._state in (SelectionState.ARMED, SelectionState.DRAGGING)

    def has_selection(self) -> bool:
        """True only when the rectangle exceeds the minimum size on both axes."""
        return (
            self._rect is not None
            and self._rect.width > self.min_size
            and self._rect.height > self.min_size
        )

    def contains_display_point(self, x: float, y: float) -> bool:
        if self._transform is None:
            return False
        left, top, right, bottom = self._transform.image_bounds
        return left <= x <= right and top <= y <= bottom

    # --- Image and view geometry ---

    def set_image(self, image: np.ndarray | None) -> None:
        """Show a new original image (or none), resetting zoom and selection."""
        self._image = image
        self._zoom = 1.0
        self._reset_selection()
        self._state = SelectionState.IDLE
        self._recompute()

    def resize(self, panel_width: int, panel_height: int) -> None:
        self._panel_size = (panel_width, panel_height)
        self._recompute()

    def set_zoom(self, zoom: float) -> None:
        self._zoom = clamp_zoom(zoom, self.zoom_min, self.zoom_max)
        self._recompute()

    def zoom_in(self) -> None:
        self.set_zoom(step_zoom(self._zoom, 1, self.zoom_step, self.zoom_min, self.zoom_max))

    def zoom_out(self) -> None:
        self.set_zoom(step_zoom(self._zoom, -1, self.zoom_step, self.zoom_min, self.zoom_max))

    def reset_zoom(self) -> None:
        self.set_zoom(1.0)

    def _recompute(self) -> None:
        if self._image is None:
            self._transform = None
            return

        height, width = self._image.shape[:2]
        self._transform = compute_transform(width, height, *self._panel_size, zoom=self._zoom)

        # Keep the drag alive across resize/zoom: re-clamp, keep the start point
        if self._state is SelectionState.DRAGGING:
            self._update_rect()

    # --- Pointer events ---

    def hover(self, x: float, y: float) -> None:
        """Auto-arm selection when the pointer moves over a loaded image."""
        if self.enabled and self._image is not None and self._state is SelectionState.IDLE:
            self._state = SelectionState.ARMED

    def press(self, x: float, y: float) -> bool:
        """Start a drag. Returns True if the press began a selection."""
        if (
            not self.enabled
            or self._state is not SelectionState.ARMED
            or not self.contains_display_point(x, y)
        ):
            return False
        self._start = (x, y)
        self._current = (x, y)
        self._rect = None
        self._state = SelectionState.DRAGGING
        return True

    def move(self, x: float, y: float) -> None:
        if self._state is not SelectionState.DRAGGING:
            return
        self._current = (x, y)
        self._update_rect()

    def release(self, x: float, y: float) -> np.ndarray | None:
        """Finish the drag and deliver the selected region.

        Returns:
            A copy of the selected original-space region, or None if the
            selection was too small or could not be mapped.
        """
        if self._state is not SelectionState.DRAGGING:
            return None

        self._current = (x, y)
        self._update_rect()

        if not self.has_selection():
            logger.debug("Selection below %dpx, ignoring", self.min_size)
            self._reset_selection()
            self._state = SelectionState.IDLE
            return None

        region = self.selected_region()
        callback = self.on_selection_complete

        if region is None:
            message = "Selected area is too small or outside the image"
            logger.warning(message)
            self._reset_selection()
            self._state = SelectionState.IDLE
            if self.on_error is not None:
                self.on_error(message)
        else:
            self._state = SelectionState.COMPLETED
            logger.info("Region selected: %dx%d", region.shape[1], region.shape[0])

        if callback is not None:
            callback(region)
        return region

    def _update_rect(self) -> None:
        if self._start is None or self._current is None or self._transform is None:
            return
        self._rect = clamp_to_image(*self._start, *self._current, self._transform)

    # --- Selection lifecycle ---

    def mapped_rect(self) -> OriginalRect | None:
        """The current selection in original pixels, or None."""
        if self._rect is None or self._transform is None:
            return None
        return display_to_original(self._rect, self._transform)

    def selected_region(self) -> np.ndarray | None:
        """Copy of the original-image pixels under the current selection."""
        if self._image is None or not self.has_selection():
            return None
        mapped = self.mapped_rect()
        if mapped is None:
            return None
        rows, cols = mapped.as_slices()
        return self._image[rows, cols].copy()

    def clear(self) -> None:
        """Drop any selection and return to IDLE. Never touches extracted text."""
        self._reset_selection()
        self._state = SelectionState.IDLE

    def rearm(self) -> None:
        """Allow a new selection after a completed one."""
        self._reset_selection()
        self._state = SelectionState.ARMED if self._image is not None else SelectionState.IDLE

    def rearm_if_completed(self) -> bool:
        """Rearm only after a delivered selection; other states are left alone."""
        if self._state is not SelectionState.COMPLETED:
            return False
        self.rearm()
        return True

    def _reset_selection(self) -> None:
        self._start = None
        self._current = None
        self._rect = None
