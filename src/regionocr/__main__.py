"""Entry points for Region OCR: the desktop app and a headless extractor."""

import logging
import sys

from regionocr.capture.files import load_image
from regionocr.config import AppSettings, load_config
from regionocr.errors import RegionOcrError
from regionocr.extraction.orchestrator import ExtractionOrchestrator
from regionocr.ocr.engine import LANGUAGES, language_code

logger = logging.getLogger("regionocr")

_LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def main() -> None:
    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)

    # Imported here so the headless entry point does not need a display
    from regionocr.ui.app import RegionOcrApplication

    config_path = sys.argv[1] if len(sys.argv) > 1 else "config.toml"
    sys.exit(RegionOcrApplication(config_path).run())


def _resolve_language(value: str) -> str:
    """Accept either a display name ("German") or a Tesseract code ("deu")."""
    if value in LANGUAGES:
        return language_code(value)
    return value


def extract(image_path: str, language: str | None = None, config_path: str = "config.toml") -> int:
    """Run one full-image extraction and print the text and statistics.

    Returns:
        Process exit code: 0 on success, 1 on failure.
    """
    settings = AppSettings.from_config(load_config(config_path))
    logger.info("Extracting text from %s", image_path)
    image = load_image(image_path)
    if image is None:
        print(f"Could not load image: {image_path}", file=sys.stderr)
        return 1

    orchestrator = ExtractionOrchestrator.from_settings(settings)
    if language:
        orchestrator.set_language(_resolve_language(language))

    try:
        summary = orchestrator.extract_now(image, is_region=False)
    except RegionOcrError as exc:
        print(f"Extraction failed: {exc}", file=sys.stderr)
        return 1
    finally:
        orchestrator.shutdown()

    if not summary.found_text:
        print("No text found.", file=sys.stderr)
        return 0

    print(summary.text)
    print()
    print(orchestrator.statistics().summary(), file=sys.stderr)
    return 0


def extract_main() -> None:
    logging.basicConfig(level=logging.WARNING, format=_LOG_FORMAT)

    args = sys.argv[1:]
    if not args:
        print("usage: regionocr-extract IMAGE [LANGUAGE] [CONFIG]", file=sys.stderr)
        sys.exit(2)

    image_path = args[0]
    language = args[1] if len(args) > 1 else None
    config_path = args[2] if len(args) > 2 else "config.toml"
    sys.exit(extract(image_path, language, config_path))


if __name__ == "__main__":
    main()
