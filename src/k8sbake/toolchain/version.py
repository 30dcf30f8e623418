"""
Version Management for the k8s-bake Toolchain Subsystem

This module classifies version tokens, orders version strings, and pins
"latest" and range tokens to concrete release tags.
"""

import re
from typing import Any, Iterable, List, Optional, Tuple, Union

from packaging.version import Version

from k8sbake.constants import (
    LATEST_VERSION_TOKEN,
    MSG_NO_AVAILABLE_VERSIONS,
    MSG_NO_SATISFYING_VERSION,
)
from k8sbake.exceptions import (
    UnresolvableRangeError,
    UnsupportedPlatformError,
    VersionError,
)
from k8sbake.log_utils import logger

from .config import ToolchainConfig
from .github_source import ReleaseIndexClient
from .interfaces import ResolvedVersion, ToolDescriptor, VersionKind, VersionSource
from .semver import SemverRange, has_range_marker, is_valid_range, parse_version


class VersionManager:
    """
    Version parsing, ordering and token classification.

    Ordering uses PEP 440 semantics through `packaging` when both sides parse,
    and a natural sort otherwise, so arbitrary cache directory names still
    order deterministically.
    """

    def normalize_version(self, version: Optional[str]) -> Optional[Version]:
        """
        Parse a tag such as "v3.12.0" into a comparable Version.

        Returns:
            Optional[Version]: None for empty or unparsable input.
        """
        if version is None:
            return None
        return parse_version(version)

    @staticmethod
    def _nat_key(s: str) -> List[Tuple[int, Union[int, str]]]:
        """Produce a natural-sort key by splitting into digit and alphabetic runs."""
        parts = re.findall(r"\d+|[A-Za-z]+", s.lower())
        return [(1, int(p)) if p.isdigit() else (0, p) for p in parts]

    def sort_key(self, version: str) -> Tuple[Any, ...]:
        # Parsable versions sort above unparsable names.
        parsed = self.normalize_version(version)
        if parsed is not None:
            return (1, parsed, "")
        return (0, self._nat_key(version), version)

    def sort_versions(self, versions: Iterable[str]) -> List[str]:
        """Return `versions` ordered most recent first."""
        return sorted(versions, key=self.sort_key, reverse=True)

    def classify_token(self, token: str) -> VersionKind:
        """
        Classify a version token.

        Exactly "latest" (case-sensitive) is LATEST. Tokens written in range
        syntax that parse as a range are RANGE. Everything else, malformed
        strings included, is EXACT and used literally.
        """
        if token == LATEST_VERSION_TOKEN:
            return VersionKind.LATEST
        if has_range_marker(token):
            if is_valid_range(token):
                return VersionKind.RANGE
            logger.debug(f"Treating unparsable range {token!r} as an exact version")
        return VersionKind.EXACT


class VersionResolver:
    """
    Pins a version token to a concrete release tag.

    Exact tokens pass through. "latest" reads the stable pointer and falls back
    to the tool's frozen default on any failure. Ranges are resolved against the
    release list and fail hard when nothing can be listed or nothing matches.
    """

    def __init__(
        self,
        config: Optional[ToolchainConfig] = None,
        index_client: Optional[ReleaseIndexClient] = None,
        version_manager: Optional[VersionManager] = None,
    ):
        self.config = config or ToolchainConfig()
        self.index_client = index_client or ReleaseIndexClient(self.config)
        self.version_manager = version_manager or VersionManager()

    def _descriptor(self, tool_name: str) -> ToolDescriptor:
        descriptor = self.config.get_tool(tool_name)
        if descriptor is None:
            raise UnsupportedPlatformError(tool_name, None, None)
        return descriptor

    def resolve(self, tool_name: str, token: str) -> ResolvedVersion:
        """
        Resolve `token` for `tool_name`.

        Parameters:
            tool_name (str): A tool from the configured tool table.
            token (str): An exact tag, "latest", or a range expression.

        Returns:
            ResolvedVersion: The concrete version and where it came from.

        Raises:
            UnresolvableRangeError: If a range cannot be pinned.
            UnsupportedPlatformError: If the tool is not in the tool table.
            VersionError: If the token is empty.
        """
        if token is None or not token.strip():
            raise VersionError(f"No version given for {tool_name}", value=token)
        token = token.strip()

        kind = self.version_manager.classify_token(token)
        if kind is VersionKind.EXACT:
            return ResolvedVersion(token, token, kind, VersionSource.REQUESTED)

        descriptor = self._descriptor(tool_name)
        if kind is VersionKind.LATEST:
            return self._resolve_latest(descriptor, token)
        return self._resolve_range(descriptor, token)

    def _resolve_latest(
        self, descriptor: ToolDescriptor, token: str
    ) -> ResolvedVersion:
        lookup = self.index_client.fetch_stable_version(descriptor)
        if lookup.ok:
            return ResolvedVersion(
                token, lookup.version, VersionKind.LATEST, VersionSource.INDEX
            )

        logger.warning(
            "Using default %s version %s: %s",
            descriptor.name,
            descriptor.default_version,
            lookup.error,
        )
        return ResolvedVersion(
            token,
            descriptor.default_version,
            VersionKind.LATEST,
            VersionSource.DEFAULT,
            detail=lookup.error,
        )

    def _resolve_range(
        self, descriptor: ToolDescriptor, token: str
    ) -> ResolvedVersion:
        version_range = SemverRange.parse(token)
        listing = self.index_client.list_releases(descriptor)
        if not listing.complete:
            logger.warning(
                "Discarding %d %s releases from an incomplete listing: %s",
                len(listing.records),
                descriptor.name,
                listing.error,
            )
            raise UnresolvableRangeError(
                descriptor.name, token, MSG_NO_AVAILABLE_VERSIONS
            )

        tags = listing.tags
        if not tags:
            raise UnresolvableRangeError(
                descriptor.name, token, MSG_NO_AVAILABLE_VERSIONS
            )

        best = version_range.max_satisfying(tags)
        if best is None:
            raise UnresolvableRangeError(
                descriptor.name,
                token,
                MSG_NO_SATISFYING_VERSION.format(tool=descriptor.name, range=token),
            )

        logger.info(f"Resolved {descriptor.name} {token} to {best}")
        return ResolvedVersion(
            token,
            best,
            VersionKind.RANGE,
            VersionSource.INDEX,
            detail=f"{len(tags)} releases considered",
        )
