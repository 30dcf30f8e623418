"""
Custom exceptions for k8s-bake.

This module defines the error taxonomy of the tool acquisition subsystem.
Every error carries a primary message and optional details so operators can
tell a network problem from a configuration problem at a glance.
"""

from typing import Optional

from k8sbake.constants import MSG_TOOL_NOT_INSTALLED, MSG_UNKNOWN_PLATFORM


class BakeError(Exception):
    """
    Base exception for all k8s-bake errors.

    All custom exceptions in k8s-bake inherit from this class to allow for
    easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(BakeError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Configuration file parsing errors
    - Invalid configuration values
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the configuration file cannot be read or parsed."""

    pass


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message, details=f"key: {key}" if key else None)
        self.key = key


# =============================================================================
# Tool Acquisition Errors
# =============================================================================


class ToolError(BakeError):
    """
    Base exception for errors tied to a specific tool.

    Attributes:
        tool: Name of the tool being resolved or acquired.
    """

    def __init__(
        self, message: str, tool: Optional[str] = None, details: Optional[str] = None
    ) -> None:
        super().__init__(message, details)
        self.tool = tool


class UnsupportedPlatformError(ToolError):
    """
    Exception raised when no download URL is known for the host platform.

    Attributes:
        os_family: The OS family that was looked up.
        arch: The CPU architecture that was looked up.
    """

    def __init__(
        self, tool: str, os_family: Optional[str], arch: Optional[str]
    ) -> None:
        super().__init__(
            MSG_UNKNOWN_PLATFORM,
            tool=tool,
            details=f"tool: {tool}, os: {os_family}, arch: {arch}",
        )
        self.os_family = os_family
        self.arch = arch


class DownloadFailedError(ToolError):
    """
    Exception raised when a tool artifact cannot be fetched or cached.

    Attributes:
        url: The URL that was being downloaded.
        cause: The underlying exception.
    """

    def __init__(self, tool: str, url: str, cause: BaseException) -> None:
        super().__init__(
            f"Failed to download the {tool} from {url}.",
            tool=tool,
            details=f"Error: {cause}",
        )
        self.url = url
        self.cause = cause


class ExecutableNotFoundError(ToolError):
    """
    Exception raised when the executable cannot be located in a cached artifact.

    Attributes:
        search_root: The directory that was searched.
    """

    def __init__(self, tool: str, search_root: str) -> None:
        super().__init__(
            f"{tool} executable not found in path {search_root}", tool=tool
        )
        self.search_root = search_root


class UnresolvableRangeError(ToolError):
    """
    Exception raised when a semantic version range cannot be pinned.

    The reason distinguishes a failed release listing from a listing that had
    no satisfying release.

    Attributes:
        version_range: The range expression that was requested.
        reason: Why resolution failed.
    """

    def __init__(self, tool: str, version_range: str, reason: str) -> None:
        super().__init__(
            f'Unable to resolve {tool} version range "{version_range}": {reason}',
            tool=tool,
        )
        self.version_range = version_range
        self.reason = reason


class ToolNotInstalledError(ToolError):
    """Exception raised when no version was requested and none is available locally."""

    def __init__(self, tool: str) -> None:
        super().__init__(MSG_TOOL_NOT_INSTALLED.format(tool=tool), tool=tool)


# =============================================================================
# Cache and Validation Errors
# =============================================================================


class CacheError(BakeError):
    """
    Exception raised when the local tool cache cannot be written.

    Attributes:
        path: The cache path involved.
    """

    def __init__(
        self, message: str, path: Optional[str] = None, details: Optional[str] = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


class VersionError(BakeError):
    """
    Exception raised when a version or range expression cannot be parsed.

    Attributes:
        value: The offending string.
    """

    def __init__(self, message: str, value: Optional[str] = None) -> None:
        super().__init__(message, details=f"value: {value!r}" if value else None)
        self.value = value
