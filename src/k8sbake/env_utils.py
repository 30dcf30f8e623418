"""
Host environment detection helpers.
"""

from __future__ import annotations

import os
import platform

from k8sbake.constants import (
    MACHINE_ARCH_ALIASES,
    OS_DARWIN,
    OS_LINUX,
    OS_WINDOWS,
    TEMP_DIR_ENV_VAR,
    TOOL_CACHE_ENV_VAR,
    WINDOWS_EXECUTABLE_EXTENSION,
)

_SYSTEM_OS_FAMILIES = {
    "Linux": OS_LINUX,
    "Darwin": OS_DARWIN,
    "Windows": OS_WINDOWS,
}


def get_os_family() -> str:
    """
    Return the OS family of the running host.

    Linux, macOS and Windows map onto "Linux", "Darwin" and "Windows_NT"; any
    other system name is returned unchanged so callers can reject it.
    """
    system = platform.system()
    return _SYSTEM_OS_FAMILIES.get(system, system)


def get_architecture() -> str:
    """
    Return the CPU architecture of the running host as "x64" or "arm64".

    Unrecognised machine names are returned lower-cased and unchanged.
    """
    machine = platform.machine().lower()
    return MACHINE_ARCH_ALIASES.get(machine, machine)


def is_windows(os_family: str | None = None) -> bool:
    return (os_family or get_os_family()) == OS_WINDOWS


def get_executable_extension(os_family: str | None = None) -> str:
    """Return ".exe" on Windows and an empty string elsewhere."""
    return WINDOWS_EXECUTABLE_EXTENSION if is_windows(os_family) else ""


def get_runner_tool_cache() -> str | None:
    """Return the tool cache root provided by the CI runner, if any."""
    return os.environ.get(TOOL_CACHE_ENV_VAR) or None


def get_runner_temp() -> str | None:
    """Return the scratch directory provided by the CI runner, if any."""
    return os.environ.get(TEMP_DIR_ENV_VAR) or None
