"""Image preprocessing for OCR: bound-resize, polarity inversion, grayscale, contrast."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import cv2
import numpy as np

logger = logging.getLogger(__name__)

MAX_WIDTH = 3000
MAX_HEIGHT = 3000
INVERT_THRESHOLD = 100
CONTRAST_FACTOR = 1.2
BRIGHTNESS_OFFSET = 10.0

STAGES = ("resize", "polarity", "grayscale", "contrast")


def _is_valid_image(image: np.ndarray | None) -> bool:
    if image is None or not isinstance(image, np.ndarray) or image.size == 0:
        return False
    if image.dtype != np.uint8:
        return False
    return image.ndim == 2 or (image.ndim == 3 and image.shape[2] in (3, 4))


def bound_resize(
    image: np.ndarray | None,
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT,
) -> np.ndarray | None:
    """Shrink an image so it fits within max_width x max_height.

    Images already within bounds are returned as-is (the same array).
    Area interpolation is used so text strokes are averaged, not dropped.

    Returns:
        The (possibly resized) image, or None if the input is unusable.
    """
    if not _is_valid_image(image):
        return None

    h, w = image.shape[:2]
    if w <= max_width and h <= max_height:
        return image

    scale = min(max_width / w, max_height / h)
    new_w = max(1, int(w * scale))
    new_h = max(1, int(h * scale))
    logger.debug("Resizing %dx%d -> %dx%d", w, h, new_w, new_h)

    try:
        return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
    except (cv2.error, MemoryError):
        logger.exception("Resize to %dx%d failed", new_w, new_h)
        return None


def average_brightness(image: np.ndarray) -> float:
    """Mean of the per-pixel (B + G + R) // 3 brightness, on a 0-255 scale."""
    if image.ndim == 2:
        return float(image.mean())
    channel_sum = image[:, :, :3].sum(axis=2, dtype=np.uint32)
    return float((channel_sum // 3).mean())


def should_invert(image: np.ndarray, threshold: int = INVERT_THRESHOLD) -> bool:
    """Dark images (light text on dark background) recognise poorly; flip them."""
    return average_brightness(image) < threshold


def invert_colors(image: np.ndarray) -> np.ndarray:
    """Return a new image with colour channels inverted and alpha preserved."""
    if image.ndim == 2:
        return cv2.bitwise_not(image)
    inverted = image.copy()
    inverted[:, :, :3] = 255 - image[:, :, :3]
    return inverted


def fix_polarity(
    image: np.ndarray | None, threshold: int = INVERT_THRESHOLD
) -> tuple[np.ndarray | None, bool]:
    """Invert the image if it is predominantly dark.

    Returns:
        (image, inverted). The image is None if the input is unusable.
    """
    if not _is_valid_image(image):
        return None, False

    brightness = average_brightness(image)
    if brightness < threshold:
        logger.debug("Average brightness %.1f < %d, inverting", brightness, threshold)
        return invert_colors(image), True
    return image, False


def to_grayscale(image: np.ndarray | None) -> np.ndarray | None:
    """Convert to a dedicated single-channel luminance image."""
    if not _is_valid_image(image):
        return None
    try:
        if image.ndim == 2:
            return image.copy()
        code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
        return cv2.cvtColor(image, code)
    except (cv2.error, MemoryError):
        logger.exception("Grayscale conversion failed")
        return None


def enhance_contrast(
    image: np.ndarray | None,
    factor: float = CONTRAST_FACTOR,
    offset: float = BRIGHTNESS_OFFSET,
) -> np.ndarray | None:
    """Linear rescale: clamp(value * factor + offset, 0, 255)."""
    if not _is_valid_image(image):
        return None
    try:
        scaled = image.astype(np.float32) * factor + offset
        return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)
    except MemoryError:
        logger.exception("Contrast enhancement failed")
        return None


@dataclass
class PreprocessOutcome:
    """Result of running the pipeline on one image."""

    image: np.ndarray | None = field(default=None, repr=False)
    failed_stage: str | None = None
    resized: bool = False
    inverted: bool = False

    @property
    def ok(self) -> bool:
        return self.failed_stage is None and self.image is not None


class PreprocessingPipeline:
    """Deterministic preprocessing chain applied before recognition.

    Stages run in a fixed order; each consumes the previous output and the
    chain stops at the first stage that cannot produce an image.

    Args:
        max_width: Images wider than this are scaled down.
        max_height: Images taller than this are scaled down.
        invert_threshold: Average brightness below which colours are inverted.
        contrast_factor: Multiplier of the contrast rescale.
        brightness_offset: Offset of the contrast rescale.
    """

    def __init__(
        self,
        max_width: int = MAX_WIDTH,
        max_height: int = MAX_HEIGHT,
        invert_threshold: int = INVERT_THRESHOLD,
        contrast_factor: float = CONTRAST_FACTOR,
        brightness_offset: float = BRIGHTNESS_OFFSET,
    ) -> None:
        self.max_width = max_width
        self.max_height = max_height
        self.invert_threshold = invert_threshold
        self.contrast_factor = contrast_factor
        self.brightness_offset = brightness_offset

    def run(self, image: np.ndarray | None) -> PreprocessOutcome:
        resized = bound_resize(image, self.max_width, self.max_height)
        if resized is None:
            return self._fail("resize")

        polarized, inverted = fix_polarity(resized, self.invert_threshold)
        if polarized is None:
            return self._fail("polarity")

        gray = to_grayscale(polarized)
        if gray is None:
            return self._fail("grayscale", inverted=inverted)

        enhanced = enhance_contrast(gray, self.contrast_factor, self.brightness_offset)
        if enhanced is None:
            return self._fail("contrast", inverted=inverted)

        return PreprocessOutcome(
            image=enhanced,
            resized=resized is not image,
            inverted=inverted,
        )

    @staticmethod
    def _fail(stage: str, inverted: bool = False) -> PreprocessOutcome:
        logger.warning("Preprocessing aborted at stage '%s'", stage)
        return PreprocessOutcome(failed_stage=stage, inverted=inverted)
