"""
Local Tool Cache for the k8s-bake Toolchain Subsystem

This module provides the on-disk, version-keyed store of downloaded tools.

Layout:
    <cache_dir>/<tool>/<version>/<arch>/...      cached content
    <cache_dir>/<tool>/<version>/<arch>.complete marker written last

Entries without a marker are treated as absent and are cleared before being
registered again. Completed entries are never overwritten.
"""

import os
from typing import List, Optional

from k8sbake.constants import CACHE_COMPLETE_MARKER_SUFFIX
from k8sbake.env_utils import get_architecture, get_executable_extension
from k8sbake.exceptions import CacheError
from k8sbake.log_utils import logger

from .config import get_default_cache_dir
from .files import _sanitize_path_component, copy_file, copy_tree, remove_tree
from .interfaces import CachedTool, ToolCache
from .version import VersionManager


class LocalToolCache(ToolCache):
    """
    Directory-backed ToolCache rooted at `cache_dir`.

    Every entry is a directory: archives are copied in as extracted, and single
    executables are placed inside under their platform file name.
    """

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        arch: Optional[str] = None,
        os_family: Optional[str] = None,
        version_manager: Optional[VersionManager] = None,
    ):
        """
        Initialize the cache.

        Parameters:
            cache_dir (Optional[str]): Cache root; the runner tool cache or a platformdirs location when omitted.
            arch (Optional[str]): Architecture key for entries; the host architecture when omitted.
            os_family (Optional[str]): OS family deciding the executable suffix; the host OS when omitted.
        """
        self.cache_dir = os.path.abspath(cache_dir or get_default_cache_dir())
        self.arch = arch or get_architecture()
        self.os_family = os_family
        self.version_manager = version_manager or VersionManager()

    def _tool_dir(self, tool_name: str) -> Optional[str]:
        safe_tool = _sanitize_path_component(tool_name)
        if safe_tool is None:
            return None
        return os.path.join(self.cache_dir, safe_tool)

    def _entry_paths(self, tool_name: str, version: str):
        """Return (entry dir, marker file) or None for unsafe names."""
        tool_dir = self._tool_dir(tool_name)
        safe_version = _sanitize_path_component(version)
        if tool_dir is None or safe_version is None:
            return None
        version_dir = os.path.join(tool_dir, safe_version)
        return (
            os.path.join(version_dir, self.arch),
            os.path.join(version_dir, f"{self.arch}{CACHE_COMPLETE_MARKER_SUFFIX}"),
        )

    def find(self, tool_name: str, version: str) -> Optional[str]:
        paths = self._entry_paths(tool_name, version)
        if paths is None:
            logger.debug(f"Refusing cache lookup for unsafe key {tool_name}/{version!r}")
            return None
        entry_dir, marker = paths
        if os.path.isfile(marker) and os.path.isdir(entry_dir):
            logger.debug(f"Cache hit: {tool_name} {version} at {entry_dir}")
            return entry_dir
        logger.debug(f"Cache miss: {tool_name} {version}")
        return None

    def find_all_versions(self, tool_name: str) -> List[str]:
        tool_dir = self._tool_dir(tool_name)
        if tool_dir is None or not os.path.isdir(tool_dir):
            return []
        try:
            names = os.listdir(tool_dir)
        except OSError as e:
            logger.warning(f"Could not list cached versions in {tool_dir}: {e}")
            return []
        versions = [name for name in names if self.find(tool_name, name) is not None]
        return self.version_manager.sort_versions(versions)

    def entries(self, tool_name: str) -> List[CachedTool]:
        """Return every completed entry of a tool, most recent first."""
        return [
            CachedTool(tool_name, version, self.arch, self.find(tool_name, version))
            for version in self.find_all_versions(tool_name)
        ]

    def _prepare_entry(self, tool_name: str, version: str):
        paths = self._entry_paths(tool_name, version)
        if paths is None:
            raise CacheError(
                f"Refusing to cache {tool_name} under unsafe version {version!r}",
                path=self.cache_dir,
            )
        entry_dir, marker = paths
        if os.path.isfile(marker) and os.path.isdir(entry_dir):
            return entry_dir, marker, True
        if os.path.lexists(entry_dir):
            logger.debug(f"Clearing incomplete cache entry {entry_dir}")
            remove_tree(entry_dir)
        os.makedirs(entry_dir, exist_ok=True)
        return entry_dir, marker, False

    @staticmethod
    def _complete(marker: str) -> None:
        with open(marker, "w", encoding="utf-8"):
            pass

    def register_archive(self, tool_name: str, version: str, extracted_dir: str) -> str:
        """
        Copy an extracted archive directory into the cache.

        Returns:
            str: The cached directory.

        Raises:
            CacheError: If the version is unsafe or the content cannot be stored.
        """
        try:
            entry_dir, marker, existing = self._prepare_entry(tool_name, version)
            if existing:
                logger.debug(f"{tool_name} {version} already cached at {entry_dir}")
                return entry_dir
            copy_tree(extracted_dir, entry_dir)
            self._complete(marker)
        except OSError as e:
            raise CacheError(
                f"Could not cache {tool_name} {version}", path=self.cache_dir, details=str(e)
            ) from e

        logger.info(f"Cached {tool_name} {version} at {entry_dir}")
        return entry_dir

    def register_file(
        self, tool_name: str, version: str, file_path: str, executable_name: str
    ) -> str:
        """
        Copy a single executable into the cache under its platform file name.

        `executable_name` is the base name; ".exe" is added on Windows.

        Returns:
            str: The cached directory containing the executable.

        Raises:
            CacheError: If the version is unsafe or the file cannot be stored.
        """
        file_name = f"{executable_name}{get_executable_extension(self.os_family)}"
        if _sanitize_path_component(file_name) is None:
            raise CacheError(f"Unsafe executable name {file_name!r}", path=self.cache_dir)
        try:
            entry_dir, marker, existing = self._prepare_entry(tool_name, version)
            if existing:
                logger.debug(f"{tool_name} {version} already cached at {entry_dir}")
                return entry_dir
            copy_file(file_path, os.path.join(entry_dir, file_name))
            self._complete(marker)
        except OSError as e:
            raise CacheError(
                f"Could not cache {tool_name} {version}", path=self.cache_dir, details=str(e)
            ) from e

        logger.info(f"Cached {tool_name} {version} at {entry_dir}")
        return entry_dir
