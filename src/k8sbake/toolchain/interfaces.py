"""
Core Interfaces for the k8s-bake Toolchain Subsystem

This module defines the data structures and abstract cache interface shared by
the platform resolver, release index client, version resolver and acquisition
engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple


class RegistrationKind(Enum):
    """How a downloaded artifact is filed into the tool cache."""

    ARCHIVE = "archive"
    """Artifact is an archive; it is extracted and the directory is cached."""

    FILE = "file"
    """Artifact is the executable itself; it is cached under its canonical name."""


class StableVersionFormat(Enum):
    """Shape of a tool's "latest stable" pointer document."""

    JSON_TAG = "json"
    """A JSON object carrying the version in `tag_name`."""

    TEXT = "text"
    """A plain-text body holding one version string."""


class VersionKind(Enum):
    """Classification of a user-supplied version token."""

    EXACT = "exact"
    LATEST = "latest"
    RANGE = "range"


class VersionSource(Enum):
    """Where a resolved version came from."""

    REQUESTED = "requested"
    """The token was an exact version and is used as-is."""

    INDEX = "index"
    """The version was read from the remote release index."""

    DEFAULT = "default"
    """The remote index was unusable and the frozen default was substituted."""


@dataclass(frozen=True)
class ToolDescriptor:
    """Static description of one provisionable tool."""

    name: str
    """Tool name (helm, kubectl, kompose)"""

    executable_name: str
    """Executable base name without any platform suffix"""

    url_templates: Mapping[str, Mapping[str, str]]
    """Download URL templates keyed by OS family, then architecture ('*' = any)"""

    registration: RegistrationKind
    """Whether downloads are archives or bare executables"""

    default_version: str
    """Frozen fallback used when the stable pointer cannot be read"""

    stable_version_url: Optional[str] = None
    """Single "latest stable" pointer document"""

    stable_version_format: StableVersionFormat = StableVersionFormat.JSON_TAG
    """How the stable pointer document is encoded"""

    releases_url: Optional[str] = None
    """Paginated release list used for range resolution"""

    def __post_init__(self) -> None:
        frozen = {
            os_family: MappingProxyType(dict(by_arch))
            for os_family, by_arch in self.url_templates.items()
        }
        object.__setattr__(self, "url_templates", MappingProxyType(frozen))


@dataclass(frozen=True)
class ReleaseRecord:
    """One entry of a tool's remote release index."""

    tag: str
    """The release tag (e.g. 'v3.12.0')"""

    is_prerelease: bool = False
    """Whether the release is flagged as a pre-release"""

    is_draft: bool = False
    """Whether the release is an unpublished draft"""


@dataclass(frozen=True)
class ReleaseListing:
    """Releases collected from a tool's release index."""

    records: Tuple[ReleaseRecord, ...] = ()
    """Records in index order; possibly truncated when `error` is set"""

    error: Optional[str] = None
    """Why listing stopped before the index was exhausted"""

    @property
    def complete(self) -> bool:
        return self.error is None

    @property
    def tags(self) -> List[str]:
        return [record.tag for record in self.records]


@dataclass(frozen=True)
class StableVersionLookup:
    """Outcome of reading a stable pointer document."""

    version: Optional[str] = None
    """The version found, or None when the document was unusable"""

    error: Optional[str] = None
    """Why no version could be read"""

    @property
    def ok(self) -> bool:
        return self.version is not None


@dataclass(frozen=True)
class ResolvedVersion:
    """A version token pinned to a concrete version."""

    requested: str
    """The token as supplied by the caller"""

    version: str
    """The concrete version to look up and download"""

    kind: VersionKind
    """How the token was classified"""

    source: VersionSource
    """Where the concrete version came from"""

    detail: Optional[str] = None
    """Extra context, e.g. why a default was substituted"""

    @property
    def degraded(self) -> bool:
        return self.source is VersionSource.DEFAULT


@dataclass(frozen=True)
class CachedTool:
    """A completed (tool, version) entry in the local tool cache."""

    name: str
    version: str
    arch: str
    path: str


class ToolCache(ABC):
    """
    Abstract version-keyed store of downloaded tools.

    Entries are append-only: once a (tool, version) pair is registered it is
    never replaced.
    """

    @abstractmethod
    def find(self, tool_name: str, version: str) -> Optional[str]:
        """
        Look up a cached tool.

        Returns:
            Optional[str]: The cached directory, or None when the pair is not cached.
        """

    @abstractmethod
    def find_all_versions(self, tool_name: str) -> List[str]:
        """
        List every cached version of a tool, most recent first.
        """

    @abstractmethod
    def entries(self, tool_name: str) -> List[CachedTool]:
        """
        Return every completed entry of a tool, most recent first.
        """

    @abstractmethod
    def register_archive(
        self, tool_name: str, version: str, extracted_dir: str
    ) -> str:
        """
        File an already-extracted archive directory under (tool, version).

        Returns:
            str: The cached directory.
        """

    @abstractmethod
    def register_file(
        self, tool_name: str, version: str, file_path: str, executable_name: str
    ) -> str:
        """
        File a single executable under (tool, version) with its canonical name.

        Returns:
            str: The cached directory containing the executable.
        """
