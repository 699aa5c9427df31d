"""Screen capture using mss (cross-platform), as an alternative image source."""

import logging

import mss
import numpy as np

logger = logging.getLogger(__name__)


class ScreenCapture:
    """Grabs a whole monitor or a region of the screen.

    Args:
        monitor: mss monitor index. 0 is the union of all screens, 1 the primary.
    """

    def __init__(self, monitor: int = 1) -> None:
        self.monitor = monitor
        self._sct = mss.mss()

    def monitor_geometry(self) -> dict[str, int]:
        monitors = self._sct.monitors
        index = self.monitor if self.monitor < len(monitors) else 0
        return monitors[index]

    def grab(self, roi: tuple[int, int, int, int] | None = None) -> np.ndarray | None:
        """Capture the monitor, or the (x, y, width, height) roi within it.

        Returns:
            BGR numpy array (H, W, 3) or None on failure.
        """
        if roi is None:
            area = self.monitor_geometry()
        else:
            x, y, w, h = roi
            area = {"left": x, "top": y, "width": w, "height": h}

        try:
            screenshot = self._sct.grab(area)
            # mss returns BGRA; drop the alpha channel -> BGR for OpenCV
            frame = np.array(screenshot, dtype=np.uint8)
            return np.ascontiguousarray(frame[:, :, :3])
        except Exception:
            logger.exception("Screen capture failed")
            return None

    def close(self) -> None:
        self._sct.close()

    def __enter__(self) -> "ScreenCapture":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
