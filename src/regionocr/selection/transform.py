"""Mapping between original-image pixels and the scaled, zoomed, centered view.

The displayed image is fitted into the panel (aspect ratio preserved), then
multiplied by the zoom level and centered, which letterboxes it on one axis:

    scale    = min(panel_w / img_w, panel_h / img_h)
    scaled_w = int(img_w * scale * zoom)
    offset_x = (panel_w - scaled_w) // 2

The transform is always recomputed from the original image dimensions, never
from a previously scaled bitmap, so repeated resize/zoom events cannot drift.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from regionocr.errors import GeometryError

ZOOM_MIN = 0.25
ZOOM_MAX = 4.0
ZOOM_STEP = 0.25

# Used when the panel has not been laid out yet (zero or negative size)
FALLBACK_PANEL_SIZE = (600, 400)


@dataclass(frozen=True)
class DisplayTransform:
    """Display geometry of one image inside one panel at one zoom level."""

    image_width: int
    image_height: int
    panel_width: int
    panel_height: int
    scale: float
    zoom: float
    scaled_width: int
    scaled_height: int
    offset_x: int
    offset_y: int

    @property
    def scale_x(self) -> float:
        """Original pixels per display pixel, horizontally."""
        return self.image_width / self.scaled_width

    @property
    def scale_y(self) -> float:
        """Original pixels per display pixel, vertically."""
        return self.image_height / self.scaled_height

    @property
    def image_bounds(self) -> tuple[int, int, int, int]:
        """(left, top, right, bottom) of the displayed image in panel coordinates."""
        return (
            self.offset_x,
            self.offset_y,
            self.offset_x + self.scaled_width,
            self.offset_y + self.scaled_height,
        )


@dataclass(frozen=True)
class SelectionRect:
    """Axis-aligned rectangle (display or original coordinates)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class OriginalRect:
    """Integer rectangle in original-image pixels, guaranteed inside the image."""

    x: int
    y: int
    width: int
    height: int

    def as_slices(self) -> tuple[slice, slice]:
        """Row/column slices for indexing a numpy image."""
        return (slice(self.y, self.y + self.height), slice(self.x, self.x + self.width))


def clamp_zoom(zoom: float, zoom_min: float = ZOOM_MIN, zoom_max: float = ZOOM_MAX) -> float:
    return max(zoom_min, min(zoom_max, zoom))


def step_zoom(
    zoom: float,
    steps: int,
    zoom_step: float = ZOOM_STEP,
    zoom_min: float = ZOOM_MIN,
    zoom_max: float = ZOOM_MAX,
) -> float:
    """Move the zoom level by a number of steps (negative to zoom out)."""
    # Round to the step grid so repeated float additions do not accumulate error
    grid = round((zoom + steps * zoom_step) / zoom_step) * zoom_step
    return clamp_zoom(grid, zoom_min, zoom_max)


def compute_transform(
    image_width: int,
    image_height: int,
    panel_width: int,
    panel_height: int,
    zoom: float = 1.0,
) -> DisplayTransform:
    """Compute where and how large the image is drawn inside the panel.

    Args:
        image_width: Original image width in pixels.
        image_height: Original image height in pixels.
        panel_width: Panel width; <= 0 means "not laid out yet".
        panel_height: Panel height; <= 0 means "not laid out yet".
        zoom: Zoom multiplier, clamped to [ZOOM_MIN, ZOOM_MAX].

    Returns:
        The DisplayTransform for this configuration.

    Raises:
        GeometryError: If the image has no pixels.
    """
    if image_width <= 0 or image_height <= 0:
        raise GeometryError(f"Invalid image size {image_width}x{image_height}")

    if panel_width <= 0 or panel_height <= 0:
        panel_width, panel_height = FALLBACK_PANEL_SIZE

    zoom = clamp_zoom(zoom)
    scale = min(panel_width / image_width, panel_height / image_height)

    scaled_width = max(1, int(image_width * scale * zoom))
    scaled_height = max(1, int(image_height * scale * zoom))

    return DisplayTransform(
        image_width=image_width,
        image_height=image_height,
        panel_width=panel_width,
        panel_height=panel_height,
        scale=scale,
        zoom=zoom,
        scaled_width=scaled_width,
        scaled_height=scaled_height,
        offset_x=(panel_width - scaled_width) // 2,
        offset_y=(panel_height - scaled_height) // 2,
    )


def original_to_display(x: float, y: float, transform: DisplayTransform) -> tuple[float, float]:
    """Map a point in original pixels to panel coordinates."""
    return (
        transform.offset_x + x / transform.scale_x,
        transform.offset_y + y / transform.scale_y,
    )


def display_point_to_original(
    x: float, y: float, transform: DisplayTransform
) -> tuple[int, int] | None:
    """Map a panel point to the original pixel under it, or None if off-image."""
    adj_x = x - transform.offset_x
    adj_y = y - transform.offset_y
    if not (0 <= adj_x <= transform.scaled_width and 0 <= adj_y <= transform.scaled_height):
        return None
    ox = min(int(math.floor(adj_x * transform.scale_x)), transform.image_width - 1)
    oy = min(int(math.floor(adj_y * transform.scale_y)), transform.image_height - 1)
    return (ox, oy)


def display_to_original(rect: SelectionRect, transform: DisplayTransform) -> OriginalRect | None:
    """Convert a display-space selection to a rectangle of original pixels.

    Returns:
        The clamped OriginalRect, or None if the selection is empty, starts
        outside the displayed image, or is clamped away entirely.
    """
    if rect.is_empty:
        return None

    adj_x = rect.x - transform.offset_x
    adj_y = rect.y - transform.offset_y

    if adj_x < 0 or adj_y < 0 or adj_x > transform.scaled_width or adj_y > transform.scaled_height:
        return None

    x = int(adj_x * transform.scale_x)
    y = int(adj_y * transform.scale_y)
    width = int(rect.width * transform.scale_x)
    height = int(rect.height * transform.scale_y)

    x = max(0, min(x, transform.image_width - 1))
    y = max(0, min(y, transform.image_height - 1))
    width = min(width, transform.image_width - x)
    height = min(height, transform.image_height - y)

    if width <= 0 or height <= 0:
        return None

    return OriginalRect(x=x, y=y, width=width, height=height)


def clamp_to_image(
    x1: float, y1: float, x2: float, y2: float, transform: DisplayTransform
) -> SelectionRect:
    """Bounding box of two panel points, clamped to the displayed image."""
    left, top, right, bottom = transform.image_bounds
    sx = max(left, min(x1, x2))
    sy = max(top, min(y1, y2))
    ex = min(right, max(x1, x2))
    ey = min(bottom, max(y1, y2))
    return SelectionRect(x=sx, y=sy, width=max(0, ex - sx), height=max(0, ey - sy))
