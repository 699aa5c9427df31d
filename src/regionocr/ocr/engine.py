"""Text recognition collaborator backed by Tesseract (via pytesseract)."""

from __future__ import annotations

import logging
import platform
import threading
from typing import Protocol

import numpy as np

from regionocr.errors import EngineError

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "eng"

# Display name -> Tesseract language code, in menu order
LANGUAGES: dict[str, str] = {
    "English": "eng",
    "Spanish": "spa",
    "French": "fra",
    "German": "deu",
    "Italian": "ita",
    "Portuguese": "por",
    "Arabic": "ara",
    "Chinese (Simplified)": "chi_sim",
    "Japanese": "jpn",
    "Korean": "kor",
    "Russian": "rus",
}

# Scripts commonly laid out in vertical columns
_VERTICAL_LANGUAGES = frozenset({"jpn", "chi_sim", "chi_tra"})
# Right-to-left / complex shaping scripts
_COMPLEX_SCRIPT_LANGUAGES = frozenset({"ara", "heb", "fas", "urd"})


def language_code(name: str) -> str:
    """Map a display name ("English") to its Tesseract code ("eng")."""
    return LANGUAGES.get(name, DEFAULT_LANGUAGE)


def language_name(code: str) -> str:
    for name, lang in LANGUAGES.items():
        if lang == code:
            return name
    return code


def tesseract_config(language: str) -> str:
    """Page segmentation / engine mode flags suited to the language's script."""
    if language in _VERTICAL_LANGUAGES:
        # Single uniform block of vertically aligned text, LSTM only
        return "--psm 5 --oem 1"
    if language in _COMPLEX_SCRIPT_LANGUAGES:
        return "--psm 6 --oem 1"
    return "--psm 3 --oem 3"


class RecognitionEngine(Protocol):
    """What the extraction core needs from a text recognition backend."""

    def ensure_ready(self) -> None:
        """Initialise the backend. Raises EngineError if it is unavailable."""

    def recognize(self, image: np.ndarray, language: str) -> str | None:
        """Return the raw recognised text, or None if nothing usable came back.

        Raises:
            EngineError: If recognition failed.
        """


class TesseractEngine:
    """Runs Tesseract on preprocessed images.

    The backend is initialised lazily on first use so the application can
    start (and report a clear error) on machines without Tesseract.
    Language codes are passed straight through; Tesseract validates them.

    Args:
        tesseract_cmd: Path to the tesseract binary. Empty uses PATH.
        tessdata_dir: Directory holding the *.traineddata language files.
    """

    def __init__(self, tesseract_cmd: str = "", tessdata_dir: str = "") -> None:
        self.tesseract_cmd = tesseract_cmd
        self.tessdata_dir = tessdata_dir
        self._ocr = None  # pytesseract module once initialised
        self._version: str | None = None
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._ocr is not None

    @property
    def version(self) -> str | None:
        return self._version

    def ensure_ready(self) -> None:
        with self._lock:
            if self._ocr is not None:
                return
            try:
                import pytesseract

                if self.tesseract_cmd:
                    pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
                # Quick smoke test: check the tesseract binary is available
                self._version = str(pytesseract.get_tesseract_version())
            except ImportError as exc:
                raise EngineError("pytesseract is not installed") from exc
            except (FileNotFoundError, pytesseract.TesseractNotFoundError) as exc:
                hint = (
                    "brew install tesseract"
                    if platform.system() == "Darwin"
                    else "install Tesseract and make sure it is on PATH"
                )
                raise EngineError(f"Tesseract binary not found ({hint})") from exc

            self._ocr = pytesseract
            logger.info("Tesseract %s initialised", self._version)

    def _config(self, language: str) -> str:
        config = tesseract_config(language)
        if self.tessdata_dir:
            config += f' --tessdata-dir "{self.tessdata_dir}"'
        return config

    def recognize(self, image: np.ndarray, language: str) -> str | None:
        from PIL import Image

        self.ensure_ready()

        if image.ndim == 3:
            # BGR(A) -> RGB
            pil_img = Image.fromarray(np.ascontiguousarray(image[:, :, 2::-1]))
        else:
            pil_img = Image.fromarray(image)

        try:
            text = self._ocr.image_to_string(pil_img, lang=language, config=self._config(language))
        except self._ocr.TesseractError as exc:
            logger.warning("Tesseract failed for language '%s': %s", language, exc)
            raise EngineError(str(exc).strip() or "Tesseract error") from exc
        except RuntimeError as exc:
            # pytesseract raises RuntimeError on timeouts
            raise EngineError(str(exc)) from exc

        return text

    def available_languages(self) -> list[str]:
        """Language codes installed for the configured Tesseract."""
        try:
            self.ensure_ready()
        except EngineError:
            logger.warning("Cannot list Tesseract languages", exc_info=True)
            return []

        config = f'--tessdata-dir "{self.tessdata_dir}"' if self.tessdata_dir else ""
        try:
            return sorted(self._ocr.get_languages(config=config))
        except self._ocr.TesseractError:
            logger.warning("Cannot list Tesseract languages", exc_info=True)
            return []
