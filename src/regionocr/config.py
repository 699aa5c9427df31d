"""Configuration loading, validation and persistence of user preferences."""

from __future__ import annotations

import copy
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

DEFAULTS: dict[str, Any] = {
    "ocr": {
        "language": "eng",
        "tesseract_cmd": "",
        "tessdata_dir": "",
    },
    "preprocess": {
        "max_width": 3000,
        "max_height": 3000,
        "invert_threshold": 100,
        "contrast_factor": 1.2,
        "brightness_offset": 10.0,
    },
    "selection": {
        "min_size": 10,
        "zoom_min": 0.25,
        "zoom_max": 4.0,
        "zoom_step": 0.25,
    },
    "ui": {
        "last_language": "English",
        "last_directory": "",
        "progress_interval": 0.05,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base, returning a new dict."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_config(path: str | Path = "config.toml") -> dict[str, Any]:
    """Load config from a TOML file, falling back to defaults for missing values."""
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
        return _deep_merge(DEFAULTS, user_config)
    return copy.deepcopy(DEFAULTS)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def save_setting(config_path: str | Path, section: str, key: str, value: Any) -> None:
    """Write a single key into the given config section, preserving other settings."""
    config_path = Path(config_path)
    section_header = f"[{section}]"
    new_line = f"{key} = {_format_value(value)}\n"

    text = config_path.read_text() if config_path.exists() else ""

    if section_header not in text:
        if text and not text.endswith("\n"):
            text += "\n"
        prefix = "\n" if text else ""
        config_path.write_text(f"{text}{prefix}{section_header}\n{new_line}")
        return

    new_lines = []
    in_section = False
    written = False
    for line in text.splitlines(keepends=True):
        stripped = line.strip()
        if stripped.startswith("[") and stripped.endswith("]"):
            if in_section and not written:
                new_lines.append(new_line)
                written = True
            in_section = stripped == section_header
            new_lines.append(line)
            continue

        if in_section and stripped.split("=", 1)[0].strip() == key:
            new_lines.append(new_line)
            written = True
        else:
            new_lines.append(line)

    if not written:
        if new_lines and not new_lines[-1].endswith("\n"):
            new_lines[-1] += "\n"
        new_lines.append(new_line)

    config_path.write_text("".join(new_lines))


@dataclass(frozen=True)
class AppSettings:
    """Immutable settings handed to the controller and UI at construction."""

    language: str = "eng"
    tesseract_cmd: str = ""
    tessdata_dir: str = ""
    max_width: int = 3000
    max_height: int = 3000
    invert_threshold: int = 100
    contrast_factor: float = 1.2
    brightness_offset: float = 10.0
    min_selection_size: int = 10
    zoom_min: float = 0.25
    zoom_max: float = 4.0
    zoom_step: float = 0.25
    last_language: str = "English"
    last_directory: str = ""
    progress_interval: float = 0.05

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> AppSettings:
        ocr = config["ocr"]
        pre = config["preprocess"]
        sel = config["selection"]
        ui = config["ui"]
        return cls(
            language=ocr["language"],
            tesseract_cmd=ocr["tesseract_cmd"],
            tessdata_dir=ocr["tessdata_dir"],
            max_width=int(pre["max_width"]),
            max_height=int(pre["max_height"]),
            invert_threshold=int(pre["invert_threshold"]),
            contrast_factor=float(pre["contrast_factor"]),
            brightness_offset=float(pre["brightness_offset"]),
            min_selection_size=int(sel["min_size"]),
            zoom_min=float(sel["zoom_min"]),
            zoom_max=float(sel["zoom_max"]),
            zoom_step=float(sel["zoom_step"]),
            last_language=ui["last_language"],
            last_directory=ui["last_directory"],
            progress_interval=float(ui["progress_interval"]),
        )
