"""Built-in table of the tools k8s-bake can provision."""

from types import MappingProxyType
from typing import Dict, Mapping, Optional

from k8sbake.constants import (
    ANY_ARCH,
    ARCH_ARM64,
    ARCH_X64,
    DEFAULT_STABLE_HELM_VERSION,
    DEFAULT_STABLE_KOMPOSE_VERSION,
    DEFAULT_STABLE_KUBECTL_VERSION,
    HELM_DOWNLOAD_URL_TEMPLATE,
    HELM_RELEASES_URL,
    HELM_STABLE_VERSION_URL,
    HELM_TOOL_NAME,
    KOMPOSE_DOWNLOAD_URL_TEMPLATE,
    KOMPOSE_RELEASES_URL,
    KOMPOSE_STABLE_VERSION_URL,
    KOMPOSE_TOOL_NAME,
    KUBECTL_DOWNLOAD_URL_TEMPLATE,
    KUBECTL_STABLE_VERSION_URL,
    KUBECTL_TOOL_NAME,
    KUBERNETES_RELEASES_URL,
    OS_DARWIN,
    OS_LINUX,
    OS_WINDOWS,
    WINDOWS_EXECUTABLE_EXTENSION,
)

from .interfaces import RegistrationKind, StableVersionFormat, ToolDescriptor


def _templates(template: str) -> Dict[str, Dict[str, str]]:
    """
    Expand a download template into the per-(OS, arch) table.

    Linux builds are architecture specific; Darwin and Windows ship a single
    amd64 build that is used on every host architecture. `{version}` is left in
    place for the platform resolver to fill in.
    """

    def fill(os_name: str, arch: str, ext: str = "") -> str:
        return template.format(version="{version}", os=os_name, arch=arch, ext=ext)

    return {
        OS_LINUX: {
            ARCH_X64: fill("linux", "amd64"),
            ARCH_ARM64: fill("linux", "arm64"),
        },
        OS_DARWIN: {ANY_ARCH: fill("darwin", "amd64")},
        OS_WINDOWS: {
            ANY_ARCH: fill("windows", "amd64", WINDOWS_EXECUTABLE_EXTENSION)
        },
    }


HELM = ToolDescriptor(
    name=HELM_TOOL_NAME,
    executable_name=HELM_TOOL_NAME,
    url_templates=_templates(HELM_DOWNLOAD_URL_TEMPLATE),
    registration=RegistrationKind.ARCHIVE,
    default_version=DEFAULT_STABLE_HELM_VERSION,
    stable_version_url=HELM_STABLE_VERSION_URL,
    stable_version_format=StableVersionFormat.JSON_TAG,
    releases_url=HELM_RELEASES_URL,
)

KUBECTL = ToolDescriptor(
    name=KUBECTL_TOOL_NAME,
    executable_name=KUBECTL_TOOL_NAME,
    url_templates=_templates(KUBECTL_DOWNLOAD_URL_TEMPLATE),
    registration=RegistrationKind.FILE,
    default_version=DEFAULT_STABLE_KUBECTL_VERSION,
    stable_version_url=KUBECTL_STABLE_VERSION_URL,
    stable_version_format=StableVersionFormat.TEXT,
    releases_url=KUBERNETES_RELEASES_URL,
)

KOMPOSE = ToolDescriptor(
    name=KOMPOSE_TOOL_NAME,
    executable_name=KOMPOSE_TOOL_NAME,
    url_templates=_templates(KOMPOSE_DOWNLOAD_URL_TEMPLATE),
    registration=RegistrationKind.FILE,
    default_version=DEFAULT_STABLE_KOMPOSE_VERSION,
    stable_version_url=KOMPOSE_STABLE_VERSION_URL,
    stable_version_format=StableVersionFormat.JSON_TAG,
    releases_url=KOMPOSE_RELEASES_URL,
)

DEFAULT_TOOLS: Mapping[str, ToolDescriptor] = MappingProxyType(
    {tool.name: tool for tool in (HELM, KUBECTL, KOMPOSE)}
)


def get_tool(
    tool_name: str, tools: Optional[Mapping[str, ToolDescriptor]] = None
) -> Optional[ToolDescriptor]:
    """Return the descriptor registered under `tool_name`, or None."""
    return (tools if tools is not None else DEFAULT_TOOLS).get(tool_name)
