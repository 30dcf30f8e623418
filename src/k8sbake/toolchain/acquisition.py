"""
Acquisition Engine for the k8s-bake Toolchain Subsystem

This module turns "tool X at version Y" into the absolute path of a ready to
run executable, downloading and caching the tool on first use.
"""

import os
import tarfile
import tempfile
import zipfile
from typing import Callable, Optional

import requests  # type: ignore[import-untyped]

from k8sbake.exceptions import (
    CacheError,
    DownloadFailedError,
    ExecutableNotFoundError,
    UnsupportedPlatformError,
)
from k8sbake.log_utils import logger
from k8sbake.utils import download_file

from .cache import LocalToolCache
from .config import ToolchainConfig
from .files import extract_archive, find_executable, make_executable, remove_tree
from .interfaces import RegistrationKind, ToolCache, ToolDescriptor
from .platform import HostPlatform, PlatformResolver
from .version import VersionResolver

Downloader = Callable[..., str]


class AcquisitionEngine:
    """
    Resolve, cache and locate tools.

    Collaborators are injectable so tests can substitute the cache, resolver,
    host platform or download primitive.

    Usage:
        engine = AcquisitionEngine(config)
        helm_path = engine.acquire("helm", "^3.0.0")
    """

    def __init__(
        self,
        config: Optional[ToolchainConfig] = None,
        cache: Optional[ToolCache] = None,
        resolver: Optional[VersionResolver] = None,
        platform_resolver: Optional[PlatformResolver] = None,
        host: Optional[HostPlatform] = None,
        downloader: Optional[Downloader] = None,
    ):
        self.config = config or ToolchainConfig()
        self.host = host or HostPlatform.detect()
        self.cache = cache or LocalToolCache(
            self.config.cache_dir, arch=self.host.arch, os_family=self.host.os_family
        )
        self.resolver = resolver or VersionResolver(self.config)
        self.platform_resolver = platform_resolver or PlatformResolver(
            self.config.tools, self.host
        )
        self.downloader = downloader or download_file

    def get_descriptor(self, tool_name: str) -> ToolDescriptor:
        descriptor = self.config.get_tool(tool_name)
        if descriptor is None:
            raise UnsupportedPlatformError(tool_name, self.host.os_family, self.host.arch)
        return descriptor

    def acquire(self, tool_name: str, version_token: str) -> str:
        """
        Return the path of `tool_name` at `version_token`, downloading it if needed.

        Parameters:
            tool_name (str): A tool from the configured tool table.
            version_token (str): An exact tag, "latest", or a range expression.

        Returns:
            str: Absolute path to the executable, with execute permission set.

        Raises:
            UnsupportedPlatformError: If the tool has no build for this host.
            UnresolvableRangeError: If a range request cannot be pinned.
            DownloadFailedError: If fetching, unpacking or caching the artifact fails.
            ExecutableNotFoundError: If the cached artifact holds no matching executable.
        """
        descriptor = self.get_descriptor(tool_name)
        resolved = self.resolver.resolve(tool_name, version_token)
        version = resolved.version
        if resolved.degraded:
            logger.warning(
                f"Falling back to default {tool_name} version {version} ({resolved.detail})"
            )

        cached_dir = self.cache.find(tool_name, version)
        if cached_dir is None:
            cached_dir = self._download_and_cache(descriptor, version)

        return self._locate(descriptor, cached_dir)

    def _download_and_cache(self, descriptor: ToolDescriptor, version: str) -> str:
        url = self.platform_resolver.url_for(descriptor.name, version)
        logger.info(f"Downloading {descriptor.name} {version} from {url}")

        os.makedirs(self.config.temp_dir, exist_ok=True)
        work_dir = tempfile.mkdtemp(prefix="k8sbake-", dir=self.config.temp_dir)
        try:
            try:
                downloaded = self.downloader(
                    url,
                    dest_dir=work_dir,
                    timeout=self.config.request_timeout,
                )
            except (requests.RequestException, OSError) as e:
                raise DownloadFailedError(descriptor.name, url, e) from e

            try:
                make_executable(downloaded)
                if descriptor.registration is RegistrationKind.ARCHIVE:
                    extracted = extract_archive(
                        downloaded, url, os.path.join(work_dir, "extracted")
                    )
                    return self.cache.register_archive(
                        descriptor.name, version, extracted
                    )
                return self.cache.register_file(
                    descriptor.name, version, downloaded, descriptor.executable_name
                )
            except (
                OSError,
                ValueError,
                zipfile.BadZipFile,
                tarfile.TarError,
                CacheError,
            ) as e:
                raise DownloadFailedError(descriptor.name, url, e) from e
        finally:
            try:
                remove_tree(work_dir)
            except OSError as e:
                logger.debug(f"Could not remove work directory {work_dir}: {e}")

    def _locate(self, descriptor: ToolDescriptor, search_root: str) -> str:
        """Find the tool's executable under `search_root` and make it executable."""
        file_name = self.host.executable_file_name(descriptor.executable_name)
        executable = find_executable(search_root, file_name)
        if executable is None:
            raise ExecutableNotFoundError(descriptor.name, search_root)
        make_executable(executable)
        logger.debug(f"Using {descriptor.name} at {executable}")
        return executable
