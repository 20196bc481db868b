"""Configuration persistence: load, save, and environment overrides."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from spacecoast_reader.models import (
    CONFIG_APP_NAME,
    DEFAULT_API_URL,
    DEFAULT_BLINK_INTERVAL,
    DEFAULT_CODE_THEME,
    DEFAULT_CONTENT_PATH,
    DEFAULT_DOCUMENT_SUFFIX,
    DEFAULT_MAX_CONCURRENT_DOWNLOADS,
    DEFAULT_OWNER,
    DEFAULT_REPO,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SSH_HOST,
    DEFAULT_SSH_PORT,
    DEFAULT_THEME_NAME,
    DEFAULT_USER_AGENT,
    MAX_CONCURRENT_DOWNLOADS_LIMIT,
    UserConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() returns a valid config for any input:
#
#   Field                     Rule                         Handler
#   ────────────────────────  ───────────────────────────  ─────────────────────
#   request_timeout           1 ≤ x ≤ 300                  _coerce_timeout
#   max_concurrent_downloads  1 ≤ x ≤ 16                   _coerce_concurrency
#   blink_interval            0.1 ≤ x ≤ 5.0                _coerce_blink_interval
#   ssh_port                  1 ≤ x ≤ 65535                _coerce_port
#   document_suffix           starts with "."              _coerce_suffix
#   scalar fields             type-checked via _safe_get() _dict_to_config
#
CONFIG_FILENAME = "config.json"
DEBUG_LOG_FILENAME = "debug.log"
SSH_HOST_KEY_FILENAME = "ssh_host_key"

# Environment variables that override the content source for one run
ENV_OVERRIDES: dict[str, str] = {
    "SPACECOAST_READER_OWNER": "owner",
    "SPACECOAST_READER_REPO": "repo",
    "SPACECOAST_READER_PATH": "content_path",
}

MAX_REQUEST_TIMEOUT = 300
MIN_BLINK_INTERVAL = 0.1
MAX_BLINK_INTERVAL = 5.0


def get_config_dir() -> Path:
    """Get the per-user configuration directory.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/spacecoast-reader/
    - macOS: ~/Library/Application Support/spacecoast-reader/
    - Windows: %APPDATA%/spacecoast-reader/
    """
    return Path(user_config_dir(CONFIG_APP_NAME))


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / CONFIG_FILENAME


def get_default_log_path() -> Path:
    """Get the path of the diagnostic log file."""
    return get_config_dir() / DEBUG_LOG_FILENAME


def get_host_key_path(config: UserConfig) -> Path:
    """Resolve the SSH host key location (configured path or config dir default)."""
    if config.ssh_host_key:
        return Path(config.ssh_host_key).expanduser()
    return get_config_dir() / SSH_HOST_KEY_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "owner": config.owner,
        "repo": config.repo,
        "content_path": config.content_path,
        "document_suffix": config.document_suffix,
        "api_url": config.api_url,
        "request_timeout": _coerce_timeout(config.request_timeout),
        "user_agent": config.user_agent,
        "max_concurrent_downloads": _coerce_concurrency(config.max_concurrent_downloads),
        "code_theme": config.code_theme,
        "theme_name": config.theme_name,
        "blink_interval": _coerce_blink_interval(config.blink_interval),
        "ssh_host": config.ssh_host,
        "ssh_port": _coerce_port(config.ssh_port),
        "ssh_host_key": config.ssh_host_key,
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type | tuple[type, ...]) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if isinstance(value, bool) and expected_type is not bool:
        return default
    if not isinstance(value, expected_type):
        return default
    return value


def _coerce_timeout(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        return DEFAULT_REQUEST_TIMEOUT
    return max(1, min(value, MAX_REQUEST_TIMEOUT))


def _coerce_concurrency(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        return DEFAULT_MAX_CONCURRENT_DOWNLOADS
    return max(1, min(value, MAX_CONCURRENT_DOWNLOADS_LIMIT))


def _coerce_blink_interval(value: Any) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return DEFAULT_BLINK_INTERVAL
    return max(MIN_BLINK_INTERVAL, min(float(value), MAX_BLINK_INTERVAL))


def _coerce_port(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 65535:
        return DEFAULT_SSH_PORT
    return value


def _coerce_suffix(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_DOCUMENT_SUFFIX
    suffix = value.strip()
    return suffix if suffix.startswith(".") else f".{suffix}"


def _non_empty_str(data: dict[str, Any], key: str, default: str) -> str:
    value = _safe_get(data, key, default, str).strip()
    return value or default


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    return UserConfig(
        owner=_non_empty_str(data, "owner", DEFAULT_OWNER),
        repo=_non_empty_str(data, "repo", DEFAULT_REPO),
        content_path=_safe_get(data, "content_path", DEFAULT_CONTENT_PATH, str),
        document_suffix=_coerce_suffix(data.get("document_suffix")),
        api_url=_non_empty_str(data, "api_url", DEFAULT_API_URL),
        request_timeout=_coerce_timeout(data.get("request_timeout")),
        user_agent=_non_empty_str(data, "user_agent", DEFAULT_USER_AGENT),
        max_concurrent_downloads=_coerce_concurrency(data.get("max_concurrent_downloads")),
        code_theme=_non_empty_str(data, "code_theme", DEFAULT_CODE_THEME),
        theme_name=_non_empty_str(data, "theme_name", DEFAULT_THEME_NAME),
        blink_interval=_coerce_blink_interval(data.get("blink_interval")),
        ssh_host=_non_empty_str(data, "ssh_host", DEFAULT_SSH_HOST),
        ssh_port=_coerce_port(data.get("ssh_port")),
        ssh_host_key=_safe_get(data, "ssh_host_key", "", str),
        version=_safe_get(data, "version", 1, int),
    )


def apply_env_overrides(config: UserConfig, environ: Mapping[str, str] | None = None) -> None:
    """Apply SPACECOAST_READER_* environment overrides in place."""
    env = os.environ if environ is None else environ
    for var, attr in ENV_OVERRIDES.items():
        value = env.get(var, "").strip()
        if value:
            logger.debug("Config override from %s", var)
            setattr(config, attr, value)


def load_config() -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    Logs specific errors to help diagnose config issues.
    """
    config_path = get_config_path()

    if not config_path.exists():
        config = UserConfig()
    else:
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise TypeError(f"top-level value is {type(data).__name__}")
            config = _dict_to_config(data)
        except json.JSONDecodeError as e:
            logger.warning("Config file has invalid JSON, using defaults: %s", e)
            config = UserConfig(config_defaulted=True)
        except (KeyError, TypeError) as e:
            logger.warning("Config file has invalid structure, using defaults: %s", e)
            config = UserConfig(config_defaulted=True)
        except OSError as e:
            logger.warning("Could not read config file, using defaults: %s", e)
            config = UserConfig(config_defaulted=True)

    apply_env_overrides(config)
    return config


def save_config(config: UserConfig) -> bool:
    """Save configuration to disk atomically.

    Uses write-to-tempfile + os.replace() to prevent partial writes
    on crash/interrupt from corrupting the config file.

    Creates the config directory if it doesn't exist.
    Returns True on success, False on failure.
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = _config_to_dict(config)
        json_str = json.dumps(data, indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "DEBUG_LOG_FILENAME",
    "ENV_OVERRIDES",
    "SSH_HOST_KEY_FILENAME",
    "apply_env_overrides",
    "get_config_dir",
    "get_config_path",
    "get_default_log_path",
    "get_host_key_path",
    "load_config",
    "save_config",
]
