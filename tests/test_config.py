"""Tests for TOML configuration loading."""

import pytest

import shared.config as config_module
from shared.config import HoontrConfig


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "_DEFAULT_CONFIG_PATH", tmp_path / "config.toml")
    config = HoontrConfig.load()

    assert config.scanner.default_path == r"C:\Windows\System32"
    assert config.scanner.arch == "all"
    assert config.scanner.workers == 0
    assert config.global_settings.log_level == "WARNING"
    assert config.global_settings.show_banner


def test_load_tables(tmp_path):
    path = tmp_path / "hoontr.toml"
    path.write_text(
        '[global]\n'
        'log_level = "DEBUG"\n'
        'show_banner = false\n'
        '\n'
        '[hoontr]\n'
        'default_path = "/srv/images"\n'
        'recurse = true\n'
        'include_all_pe = true\n'
        'arch = "x64"\n'
        'workers = 6\n'
        'no_cfg = true\n',
        encoding="utf-8",
    )

    config = HoontrConfig.load(path)

    assert config.global_settings.log_level == "DEBUG"
    assert not config.global_settings.show_banner
    assert config.scanner.default_path == "/srv/images"
    assert config.scanner.recurse
    assert config.scanner.include_all_pe
    assert config.scanner.arch == "x64"
    assert config.scanner.workers == 6
    assert config.scanner.no_cfg
    assert not config.scanner.match_case


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "hoontr.toml"
    path.write_text('[hoontr]\nworkers = 2\ncolour = "blue"\n[other]\nx = 1\n', encoding="utf-8")
    assert HoontrConfig.load(path).scanner.workers == 2


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        HoontrConfig.load(tmp_path / "missing.toml")


def test_to_dict():
    data = HoontrConfig().to_dict()
    assert data["scanner"]["max_file_size"] == 256 * 1024 * 1024
    assert data["global_settings"]["log_json"] is False


def test_shared_package_exports():
    import shared

    assert shared.__all__ == ["HoontrConfig"]
    assert shared.HoontrConfig is HoontrConfig
