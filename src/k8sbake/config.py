"""
Configuration loading for k8s-bake.

The configuration is read once from YAML, validated, and frozen into a
ToolchainConfig that is passed explicitly to the resolver, cache and engine.
"""

import dataclasses
import os
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import platformdirs
import yaml

from k8sbake.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_MAX_RELEASES,
    DEFAULT_PAGE_DELAY_MAX,
    DEFAULT_PAGE_DELAY_MIN,
    DEFAULT_RELEASES_PER_PAGE,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_MAX_PER_PAGE,
)
from k8sbake.exceptions import ConfigFileError, ConfigValidationError
from k8sbake.log_utils import logger
from k8sbake.toolchain.config import (
    ToolchainConfig,
    get_default_cache_dir,
    get_default_temp_dir,
)
from k8sbake.toolchain.interfaces import ToolDescriptor
from k8sbake.toolchain.registry import DEFAULT_TOOLS

KNOWN_KEYS = frozenset(
    {
        "CACHE_DIR",
        "TEMP_DIR",
        "GITHUB_TOKEN",
        "ALLOW_ENV_TOKEN",
        "RELEASES_PER_PAGE",
        "RELEASES_MAX",
        "PAGE_DELAY_MIN",
        "PAGE_DELAY_MAX",
        "REQUEST_TIMEOUT",
        "DEFAULT_VERSIONS",
    }
)


def get_config_file_path() -> str:
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def _require_int(raw: Dict[str, Any], key: str, default: int, minimum: int) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigValidationError(
            f"{key} must be an integer >= {minimum}, got {value!r}", key=key
        )
    return value


def _require_number(
    raw: Dict[str, Any], key: str, default: float, strictly_positive: bool = False
) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{key} must be a number, got {value!r}", key=key)
    if value < 0 or (strictly_positive and value == 0):
        raise ConfigValidationError(
            f"{key} must be {'positive' if strictly_positive else 'non-negative'}, got {value!r}",
            key=key,
        )
    return float(value)


def _apply_default_versions(raw_versions: Any) -> Mapping[str, ToolDescriptor]:
    """Return the tool table with per-tool default versions overridden."""
    if not raw_versions:
        return DEFAULT_TOOLS
    if not isinstance(raw_versions, dict):
        raise ConfigValidationError(
            "DEFAULT_VERSIONS must be a mapping of tool name to version",
            key="DEFAULT_VERSIONS",
        )

    tools = dict(DEFAULT_TOOLS)
    for tool_name, version in raw_versions.items():
        if tool_name not in tools:
            raise ConfigValidationError(
                f"Unknown tool in DEFAULT_VERSIONS: {tool_name}",
                key="DEFAULT_VERSIONS",
            )
        if not isinstance(version, str) or not version.strip():
            raise ConfigValidationError(
                f"Default version for {tool_name} must be a non-empty string",
                key="DEFAULT_VERSIONS",
            )
        tools[tool_name] = dataclasses.replace(
            tools[tool_name], default_version=version.strip()
        )
    return MappingProxyType(tools)


def build_config(raw: Optional[Dict[str, Any]] = None) -> ToolchainConfig:
    """
    Validate a raw configuration mapping and freeze it into a ToolchainConfig.

    Parameters:
        raw (Optional[Dict[str, Any]]): Parsed YAML content; missing keys take their defaults.

    Returns:
        ToolchainConfig: The validated configuration.

    Raises:
        ConfigValidationError: If any value is out of range or of the wrong type.
    """
    raw = raw or {}

    for key in raw:
        if key not in KNOWN_KEYS:
            logger.warning(f"Ignoring unknown configuration key: {key}")

    per_page = _require_int(raw, "RELEASES_PER_PAGE", DEFAULT_RELEASES_PER_PAGE, 1)
    if per_page > GITHUB_MAX_PER_PAGE:
        raise ConfigValidationError(
            f"RELEASES_PER_PAGE cannot exceed {GITHUB_MAX_PER_PAGE}",
            key="RELEASES_PER_PAGE",
        )
    max_releases = _require_int(raw, "RELEASES_MAX", DEFAULT_MAX_RELEASES, 1)

    delay_min = _require_number(raw, "PAGE_DELAY_MIN", DEFAULT_PAGE_DELAY_MIN)
    delay_max = _require_number(raw, "PAGE_DELAY_MAX", DEFAULT_PAGE_DELAY_MAX)
    if delay_min > delay_max:
        raise ConfigValidationError(
            "PAGE_DELAY_MIN cannot be greater than PAGE_DELAY_MAX",
            key="PAGE_DELAY_MIN",
        )
    timeout = _require_number(
        raw, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, strictly_positive=True
    )

    token = raw.get("GITHUB_TOKEN")
    if token is not None and not isinstance(token, str):
        raise ConfigValidationError("GITHUB_TOKEN must be a string", key="GITHUB_TOKEN")

    allow_env_token = raw.get("ALLOW_ENV_TOKEN", True)
    if not isinstance(allow_env_token, bool):
        raise ConfigValidationError(
            "ALLOW_ENV_TOKEN must be true or false", key="ALLOW_ENV_TOKEN"
        )

    cache_dir = raw.get("CACHE_DIR") or get_default_cache_dir()
    temp_dir = raw.get("TEMP_DIR") or get_default_temp_dir()

    return ToolchainConfig(
        cache_dir=os.path.abspath(os.path.expanduser(str(cache_dir))),
        temp_dir=os.path.abspath(os.path.expanduser(str(temp_dir))),
        github_token=token,
        allow_env_token=allow_env_token,
        releases_per_page=per_page,
        max_releases=max_releases,
        page_delay_min=delay_min,
        page_delay_max=delay_max,
        request_timeout=timeout,
        tools=_apply_default_versions(raw.get("DEFAULT_VERSIONS")),
    )


def load_config(config_path: Optional[str] = None) -> ToolchainConfig:
    """
    Load the k8s-bake configuration YAML.

    If `config_path` is omitted the platformdirs-managed location is used. A
    missing file yields the default configuration.

    Parameters:
        config_path (Optional[str]): Explicit path to a YAML configuration file.

    Returns:
        ToolchainConfig: The validated, frozen configuration.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid YAML, or is not a mapping.
        ConfigValidationError: If a value fails validation.
    """
    path = config_path or get_config_file_path()
    if not os.path.exists(path):
        logger.debug(f"No configuration file at {path}; using defaults")
        return build_config({})

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(f"Could not read configuration file {path}", str(e)) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigFileError(
            f"Configuration file {path} must contain a mapping",
            f"got {type(raw).__name__}",
        )

    logger.debug(f"Loaded configuration from {path}")
    return build_config(raw)
