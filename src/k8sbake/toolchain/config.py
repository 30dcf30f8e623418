"""Immutable settings shared by the toolchain components."""

import os
import tempfile
from dataclasses import dataclass, field
from typing import Mapping, Optional

import platformdirs

from k8sbake.constants import (
    APP_NAME,
    DEFAULT_MAX_RELEASES,
    DEFAULT_PAGE_DELAY_MAX,
    DEFAULT_PAGE_DELAY_MIN,
    DEFAULT_RELEASES_PER_PAGE,
    DEFAULT_REQUEST_TIMEOUT,
    TOOL_CACHE_DIR_NAME,
)
from k8sbake.env_utils import get_runner_temp, get_runner_tool_cache

from .interfaces import ToolDescriptor
from .registry import DEFAULT_TOOLS


def get_default_cache_dir() -> str:
    """
    Return the tool cache root.

    Prefers the runner-provided RUNNER_TOOL_CACHE and otherwise uses a `tools`
    directory inside the platform user cache directory.
    """
    return get_runner_tool_cache() or os.path.join(
        platformdirs.user_cache_dir(APP_NAME), TOOL_CACHE_DIR_NAME
    )


def get_default_temp_dir() -> str:
    return get_runner_temp() or tempfile.gettempdir()


@dataclass(frozen=True)
class ToolchainConfig:
    """
    Settings for cache location, release listing and HTTP access.

    Built once (see k8sbake.config.load_config) and passed explicitly to the
    version resolver, release index client, cache and acquisition engine.
    """

    cache_dir: str = field(default_factory=get_default_cache_dir)
    temp_dir: str = field(default_factory=get_default_temp_dir)
    github_token: Optional[str] = None
    allow_env_token: bool = True
    releases_per_page: int = DEFAULT_RELEASES_PER_PAGE
    max_releases: int = DEFAULT_MAX_RELEASES
    page_delay_min: float = DEFAULT_PAGE_DELAY_MIN
    page_delay_max: float = DEFAULT_PAGE_DELAY_MAX
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    tools: Mapping[str, ToolDescriptor] = field(default_factory=lambda: DEFAULT_TOOLS)

    def get_tool(self, tool_name: str) -> Optional[ToolDescriptor]:
        return self.tools.get(tool_name)
