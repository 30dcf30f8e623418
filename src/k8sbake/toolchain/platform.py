"""
Platform resolution for tool downloads.

Maps the host OS family and CPU architecture onto the download URL of a tool
at a concrete version.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from k8sbake.constants import ANY_ARCH
from k8sbake.env_utils import (
    get_architecture,
    get_executable_extension,
    get_os_family,
)
from k8sbake.exceptions import UnsupportedPlatformError

from .interfaces import ToolDescriptor
from .registry import DEFAULT_TOOLS


@dataclass(frozen=True)
class HostPlatform:
    """OS family ("Linux", "Darwin", "Windows_NT") and architecture ("x64", "arm64")."""

    os_family: str
    arch: str

    @classmethod
    def detect(cls) -> "HostPlatform":
        return cls(os_family=get_os_family(), arch=get_architecture())

    @property
    def executable_extension(self) -> str:
        return get_executable_extension(self.os_family)

    def executable_file_name(self, base_name: str) -> str:
        """Return `base_name` with the host's executable suffix."""
        return f"{base_name}{self.executable_extension}"


class PlatformResolver:
    """
    Builds download URLs from the per-(OS, arch) templates of each tool.

    Pure: no I/O. Unknown tools, OS families or architectures raise
    UnsupportedPlatformError instead of guessing.
    """

    def __init__(
        self,
        tools: Optional[Mapping[str, ToolDescriptor]] = None,
        host: Optional[HostPlatform] = None,
    ):
        self.tools = tools if tools is not None else DEFAULT_TOOLS
        self.host = host or HostPlatform.detect()

    def url_for(self, tool_name: str, version: str) -> str:
        """
        Return the download URL for `tool_name` at `version` on the host platform.

        Parameters:
            tool_name (str): A tool from the tool table.
            version (str): A concrete version tag (never "latest" or a range).

        Raises:
            UnsupportedPlatformError: If no template exists for the tool on this OS/architecture.
        """
        os_family, arch = self.host.os_family, self.host.arch
        tool = self.tools.get(tool_name)
        if tool is None or os_family not in tool.url_templates:
            raise UnsupportedPlatformError(tool_name, os_family, arch)

        by_arch = tool.url_templates[os_family]
        template = by_arch.get(arch) or by_arch.get(ANY_ARCH)
        if template is None:
            raise UnsupportedPlatformError(tool_name, os_family, arch)

        return template.format(version=version)
