"""Loading images from disk and saving extracted text."""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_FORMATS = ("jpg", "jpeg", "png", "bmp", "tiff", "tif", "gif")

IMAGE_FILTER = "Image Files (" + " ".join(f"*.{ext}" for ext in SUPPORTED_IMAGE_FORMATS) + ")"
TEXT_FILTER = "Text Files (*.txt)"


def is_supported_image(path: str | Path) -> bool:
    """True if the path is an existing file with a supported image extension."""
    path = Path(path)
    return path.is_file() and path.suffix.lower().lstrip(".") in SUPPORTED_IMAGE_FORMATS


def _read_gif(path: Path) -> np.ndarray | None:
    # OpenCV cannot decode GIF; read the first frame through VideoCapture
    capture = cv2.VideoCapture(str(path))
    try:
        ok, frame = capture.read()
    finally:
        capture.release()
    return frame if ok else None


def load_image(path: str | Path) -> np.ndarray | None:
    """Read an image file as a BGR array.

    Returns:
        (H, W, 3) uint8 array, or None if the file is missing or unreadable.
    """
    path = Path(path)
    if not is_supported_image(path):
        logger.warning("Not a supported image file: %s", path)
        return None

    try:
        # np.fromfile + imdecode copes with non-ASCII paths on Windows
        data = np.fromfile(str(path), dtype=np.uint8)
        image = cv2.imdecode(data, cv2.IMREAD_COLOR)
        if image is None and path.suffix.lower() == ".gif":
            image = _read_gif(path)
    except (OSError, cv2.error):
        logger.exception("Error loading image %s", path)
        return None

    if image is None:
        logger.warning("Could not decode image %s", path)
        return None

    logger.info("Loaded %s (%dx%d)", path.name, image.shape[1], image.shape[0])
    return image


def save_text(text: str, path: str | Path) -> bool:
    """Write text as UTF-8. Returns False (and logs) on failure."""
    path = Path(path)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError:
        logger.exception("Error saving text to %s", path)
        return False
    logger.info("Text saved to %s", path)
    return True


def ensure_txt_suffix(path: str | Path) -> Path:
    path = Path(path)
    if path.suffix.lower() != ".txt":
        path = path.with_name(path.name + ".txt")
    return path


def default_save_name(image_path: str | Path | None) -> str:
    """Suggested file name for the text extracted from image_path."""
    if not image_path:
        return "extracted_text.txt"
    return f"{Path(image_path).stem}_extracted.txt"


def format_file_size(size: int) -> str:
    if size < 0:
        return "Unknown"
    if size < 1024:
        return f"{size} B"
    if size < 1024**2:
        return f"{size / 1024:.2f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.2f} MB"
    return f"{size / 1024**3:.2f} GB"
