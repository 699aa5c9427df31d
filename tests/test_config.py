"""Tests for configuration loading and preference persistence."""

from pathlib import Path

from regionocr.config import DEFAULTS, AppSettings, load_config, save_setting


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "nonexistent.toml")
        assert config["ocr"]["language"] == DEFAULTS["ocr"]["language"]
        assert config["preprocess"]["max_width"] == DEFAULTS["preprocess"]["max_width"]

    def test_partial_override(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text('[ocr]\nlanguage = "deu"\n')
        config = load_config(config_file)
        assert config["ocr"]["language"] == "deu"
        # Unspecified values should use defaults
        assert config["ocr"]["tesseract_cmd"] == ""
        assert config["preprocess"]["invert_threshold"] == 100

    def test_full_section_override(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            "[selection]\nmin_size = 5\nzoom_min = 0.5\nzoom_max = 8.0\nzoom_step = 0.5\n"
        )
        config = load_config(config_file)
        assert config["selection"] == {
            "min_size": 5,
            "zoom_min": 0.5,
            "zoom_max": 8.0,
            "zoom_step": 0.5,
        }

    def test_defaults_not_mutated(self, tmp_path: Path):
        """Loading config should not mutate the DEFAULTS dict."""
        original = DEFAULTS["preprocess"]["contrast_factor"]
        config_file = tmp_path / "config.toml"
        config_file.write_text("[preprocess]\ncontrast_factor = 2.0\n")
        config = load_config(config_file)
        assert config["preprocess"]["contrast_factor"] == 2.0
        assert DEFAULTS["preprocess"]["contrast_factor"] == original

    def test_returned_defaults_are_a_copy(self, tmp_path: Path):
        config = load_config(tmp_path / "nonexistent.toml")
        config["ui"]["last_language"] = "German"
        assert DEFAULTS["ui"]["last_language"] == "English"


class TestSaveSetting:
    def test_creates_file_and_section(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        save_setting(path, "ui", "last_language", "German")
        assert load_config(path)["ui"]["last_language"] == "German"

    def test_replaces_existing_key_preserving_others(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text(
            '[ocr]\nlanguage = "eng"\n\n[ui]\nlast_language = "English"\nlast_directory = "/a"\n'
        )
        save_setting(path, "ui", "last_language", "French")
        config = load_config(path)
        assert config["ui"]["last_language"] == "French"
        assert config["ui"]["last_directory"] == "/a"
        assert config["ocr"]["language"] == "eng"
        assert path.read_text().count("last_language") == 1

    def test_adds_key_to_existing_section_before_next(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('[ui]\nlast_language = "English"\n\n[ocr]\nlanguage = "eng"\n')
        save_setting(path, "ui", "last_directory", "/home/user/scans")
        config = load_config(path)
        assert config["ui"]["last_directory"] == "/home/user/scans"
        assert config["ocr"]["language"] == "eng"

    def test_appends_new_section(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('[ocr]\nlanguage = "eng"')
        save_setting(path, "preprocess", "max_width", 2000)
        config = load_config(path)
        assert config["preprocess"]["max_width"] == 2000
        assert config["ocr"]["language"] == "eng"

    def test_windows_path_is_escaped(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        save_setting(path, "ui", "last_directory", 'C:\\Users\\me\\"docs"')
        assert load_config(path)["ui"]["last_directory"] == 'C:\\Users\\me\\"docs"'

    def test_value_types(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        save_setting(path, "preprocess", "contrast_factor", 1.5)
        save_setting(path, "preprocess", "invert_threshold", 90)
        pre = load_config(path)["preprocess"]
        assert pre["contrast_factor"] == 1.5
        assert pre["invert_threshold"] == 90


class TestAppSettings:
    def test_from_defaults(self):
        settings = AppSettings.from_config(DEFAULTS)
        assert settings == AppSettings()

    def test_from_overridden_config(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            '[ocr]\nlanguage = "rus"\ntessdata_dir = "/tess"\n'
            "[preprocess]\nmax_width = 1500\n"
            "[ui]\nprogress_interval = 0.2\n"
        )
        settings = AppSettings.from_config(load_config(config_file))
        assert settings.language == "rus"
        assert settings.tessdata_dir == "/tess"
        assert settings.max_width == 1500
        assert settings.max_height == 3000
        assert settings.progress_interval == 0.2
