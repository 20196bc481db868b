"""Tests for config load/save hardening and environment overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from spacecoast_reader.config import (
    _dict_to_config,
    apply_env_overrides,
    get_host_key_path,
    load_config,
    save_config,
)
from spacecoast_reader.models import (
    DEFAULT_BLINK_INTERVAL,
    DEFAULT_DOCUMENT_SUFFIX,
    DEFAULT_OWNER,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SSH_PORT,
    MAX_CONCURRENT_DOWNLOADS_LIMIT,
    UserConfig,
)


@pytest.fixture
def config_file(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "config.json"
    monkeypatch.setattr("spacecoast_reader.config.get_config_path", lambda: path)
    for var in ("SPACECOAST_READER_OWNER", "SPACECOAST_READER_REPO", "SPACECOAST_READER_PATH"):
        monkeypatch.delenv(var, raising=False)
    return path


def test_missing_file_returns_defaults(config_file) -> None:
    loaded = load_config()
    assert loaded == UserConfig()
    assert loaded.config_defaulted is False


@pytest.mark.parametrize("payload", [[], "oops", 123])
def test_non_dict_root_returns_default(payload, config_file) -> None:
    config_file.write_text(json.dumps(payload), encoding="utf-8")
    loaded = load_config()
    assert loaded.config_defaulted is True
    assert loaded.owner == DEFAULT_OWNER


def test_invalid_json_returns_default(config_file) -> None:
    config_file.write_text("{not json", encoding="utf-8")
    assert load_config().config_defaulted is True


def test_save_then_load_round_trip(config_file) -> None:
    config = UserConfig(owner="acme", repo="site", content_path="posts", ssh_port=2222)
    assert save_config(config) is True
    assert json.loads(config_file.read_text(encoding="utf-8"))["owner"] == "acme"
    assert load_config() == config


def test_save_leaves_no_temp_files(config_file) -> None:
    save_config(UserConfig())
    assert [p.name for p in config_file.parent.iterdir()] == ["config.json"]


def test_save_failure_returns_false(tmp_path, monkeypatch) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setattr(
        "spacecoast_reader.config.get_config_path", lambda: blocker / "config.json"
    )
    assert save_config(UserConfig()) is False


def test_env_overrides_apply_on_load(config_file, monkeypatch) -> None:
    monkeypatch.setenv("SPACECOAST_READER_OWNER", "someone")
    monkeypatch.setenv("SPACECOAST_READER_PATH", "content/posts")
    loaded = load_config()
    assert loaded.owner == "someone"
    assert loaded.content_path == "content/posts"


def test_blank_env_override_is_ignored() -> None:
    config = UserConfig()
    apply_env_overrides(config, {"SPACECOAST_READER_REPO": "   "})
    assert config.repo == UserConfig().repo


class TestDictToConfig:
    def test_wrong_types_fall_back(self) -> None:
        config = _dict_to_config(
            {
                "owner": 5,
                "request_timeout": "fast",
                "max_concurrent_downloads": True,
                "blink_interval": None,
                "ssh_port": 70000,
            }
        )
        assert config.owner == DEFAULT_OWNER
        assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT
        assert config.blink_interval == DEFAULT_BLINK_INTERVAL
        assert config.ssh_port == DEFAULT_SSH_PORT

    def test_values_are_clamped(self) -> None:
        config = _dict_to_config(
            {"request_timeout": 10_000, "max_concurrent_downloads": 99, "blink_interval": 0.0}
        )
        assert config.request_timeout == 300
        assert config.max_concurrent_downloads == MAX_CONCURRENT_DOWNLOADS_LIMIT
        assert config.blink_interval == 0.1

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("md", ".md"), (".mdx", ".mdx"), ("", DEFAULT_DOCUMENT_SUFFIX), (3, DEFAULT_DOCUMENT_SUFFIX)],
    )
    def test_suffix_normalization(self, raw, expected) -> None:
        assert _dict_to_config({"document_suffix": raw}).document_suffix == expected


def test_host_key_path_prefers_configured_value(tmp_path) -> None:
    key = tmp_path / "key"
    assert get_host_key_path(UserConfig(ssh_host_key=str(key))) == key


def test_host_key_path_defaults_to_config_dir(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr("spacecoast_reader.config.get_config_dir", lambda: tmp_path)
    assert get_host_key_path(UserConfig()) == tmp_path / "ssh_host_key"
