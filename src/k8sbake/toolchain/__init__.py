"""
k8s-bake Toolchain Subsystem

This package resolves, downloads, caches and locates the external CLI tools
(helm, kubectl, kompose) that manifest renderers shell out to.

Core Components:
- interfaces: Data model and the abstract tool cache
- registry: Built-in tool table
- platform: Host detection and download URL construction
- cache: On-disk, version-keyed tool cache
- github_source: Stable pointers and paginated release lists
- semver: Semantic version range grammar
- version: Token classification and version resolution
- acquisition: Resolve, download, cache and locate a tool
- locator: Renderer-facing lookup with PATH and cache fallbacks
- files: Archive extraction and executable helpers
"""

from .acquisition import AcquisitionEngine
from .cache import LocalToolCache
from .config import ToolchainConfig
from .github_source import ReleaseIndexClient
from .interfaces import (
    CachedTool,
    RegistrationKind,
    ReleaseRecord,
    ResolvedVersion,
    StableVersionFormat,
    StableVersionLookup,
    ToolCache,
    ToolDescriptor,
    VersionKind,
    VersionSource,
)
from .locator import ToolLocator
from .platform import HostPlatform, PlatformResolver
from .registry import DEFAULT_TOOLS, get_tool
from .semver import SemverRange
from .version import VersionManager, VersionResolver

__all__ = [
    # Interfaces
    "ToolDescriptor",
    "ReleaseRecord",
    "CachedTool",
    "ResolvedVersion",
    "StableVersionLookup",
    "RegistrationKind",
    "StableVersionFormat",
    "VersionKind",
    "VersionSource",
    "ToolCache",
    # Configuration
    "ToolchainConfig",
    "DEFAULT_TOOLS",
    "get_tool",
    # Components
    "HostPlatform",
    "PlatformResolver",
    "LocalToolCache",
    "ReleaseIndexClient",
    "SemverRange",
    "VersionManager",
    "VersionResolver",
    "AcquisitionEngine",
    "ToolLocator",
]
