"""
Constants and configuration values for k8s-bake.

This module contains all hardcoded values, URLs, timeouts, and other constants
used by the tool acquisition subsystem.
"""

# Tool names
HELM_TOOL_NAME = "helm"
KUBECTL_TOOL_NAME = "kubectl"
KOMPOSE_TOOL_NAME = "kompose"

# Version tokens
LATEST_VERSION_TOKEN = "latest"

# Frozen fallback versions used when the stable pointer cannot be read
DEFAULT_STABLE_HELM_VERSION = "v2.14.1"
DEFAULT_STABLE_KUBECTL_VERSION = "v1.15.0"
DEFAULT_STABLE_KOMPOSE_VERSION = "v1.18.0"

# GitHub API URLs
GITHUB_API_BASE = "https://api.github.com/repos"
HELM_RELEASES_URL = f"{GITHUB_API_BASE}/helm/helm/releases"
KUBERNETES_RELEASES_URL = f"{GITHUB_API_BASE}/kubernetes/kubernetes/releases"
KOMPOSE_RELEASES_URL = f"{GITHUB_API_BASE}/kubernetes/kompose/releases"

# Stable version pointers
HELM_STABLE_VERSION_URL = f"{HELM_RELEASES_URL}/latest"
KUBECTL_STABLE_VERSION_URL = (
    "https://storage.googleapis.com/kubernetes-release/release/stable.txt"
)
KOMPOSE_STABLE_VERSION_URL = f"{KOMPOSE_RELEASES_URL}/latest"

# Download URL templates
HELM_DOWNLOAD_URL_TEMPLATE = "https://get.helm.sh/helm-{version}-{os}-{arch}.zip"
KOMPOSE_DOWNLOAD_URL_TEMPLATE = (
    "https://github.com/kubernetes/kompose/releases/download/{version}/"
    "kompose-{os}-{arch}{ext}"
)
KUBECTL_DOWNLOAD_URL_TEMPLATE = (
    "https://storage.googleapis.com/kubernetes-release/release/{version}/"
    "bin/{os}/{arch}/kubectl{ext}"
)

# Host platform identifiers
OS_LINUX = "Linux"
OS_DARWIN = "Darwin"
OS_WINDOWS = "Windows_NT"
ARCH_X64 = "x64"
ARCH_ARM64 = "arm64"
ANY_ARCH = "*"
WINDOWS_EXECUTABLE_EXTENSION = ".exe"

# platform.machine() spellings mapped onto the canonical architecture names
MACHINE_ARCH_ALIASES = {
    "x86_64": ARCH_X64,
    "amd64": ARCH_X64,
    "x64": ARCH_X64,
    "aarch64": ARCH_ARM64,
    "arm64": ARCH_ARM64,
    "armv8": ARCH_ARM64,
}

# Network timeouts and delays (in seconds)
GITHUB_API_TIMEOUT = 10
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CHUNK_SIZE = 8192

# Release listing
GITHUB_MAX_PER_PAGE = 100
DEFAULT_RELEASES_PER_PAGE = GITHUB_MAX_PER_PAGE
DEFAULT_MAX_RELEASES = 500
DEFAULT_PAGE_DELAY_MIN = 0.1
DEFAULT_PAGE_DELAY_MAX = 0.3
RATE_LIMIT_WARNING_THRESHOLD = 10

# Tool cache
CACHE_COMPLETE_MARKER_SUFFIX = ".complete"
TOOL_CACHE_DIR_NAME = "tools"
EXECUTABLE_PERMISSIONS = 0o755
ZIP_EXTENSION = ".zip"
TAR_GZ_EXTENSIONS = (".tar.gz", ".tgz")

# Environment variable names
LOG_LEVEL_ENV_VAR = "K8SBAKE_LOG_LEVEL"
TOOL_CACHE_ENV_VAR = "RUNNER_TOOL_CACHE"
TEMP_DIR_ENV_VAR = "RUNNER_TEMP"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"

# Configuration file names
APP_NAME = "k8sbake"
CONFIG_FILE_NAME = "k8sbake.yaml"

# Logging configuration
LOGGER_NAME = "k8sbake"
LOG_FILE_NAME = "k8sbake.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Error messages
MSG_UNKNOWN_PLATFORM = "Unknown OS or render engine type"
MSG_NO_AVAILABLE_VERSIONS = "Could not fetch available versions"
MSG_NO_SATISFYING_VERSION = 'Unable to find a {tool} version that satisfies "{range}"'
MSG_TOOL_NOT_INSTALLED = (
    '{tool} is not installed, provide "{tool}-version" input to download {tool}'
)
