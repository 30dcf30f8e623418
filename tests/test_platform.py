"""Tests for host detection and download URL construction."""

import pytest

from k8sbake import env_utils
from k8sbake.exceptions import UnsupportedPlatformError
from k8sbake.toolchain.platform import HostPlatform, PlatformResolver
from k8sbake.toolchain.registry import DEFAULT_TOOLS, get_tool

pytestmark = [pytest.mark.unit, pytest.mark.toolchain]


def _resolver(os_family: str, arch: str) -> PlatformResolver:
    return PlatformResolver(DEFAULT_TOOLS, HostPlatform(os_family, arch))


EXPECTED_URLS = {
    ("helm", "Linux", "x64"): "https://get.helm.sh/helm-v3.12.0-linux-amd64.zip",
    ("helm", "Linux", "arm64"): "https://get.helm.sh/helm-v3.12.0-linux-arm64.zip",
    ("helm", "Darwin", "x64"): "https://get.helm.sh/helm-v3.12.0-darwin-amd64.zip",
    ("helm", "Darwin", "arm64"): "https://get.helm.sh/helm-v3.12.0-darwin-amd64.zip",
    ("helm", "Windows_NT", "x64"): "https://get.helm.sh/helm-v3.12.0-windows-amd64.zip",
    ("kompose", "Linux", "x64"): (
        "https://github.com/kubernetes/kompose/releases/download/v3.12.0/kompose-linux-amd64"
    ),
    ("kompose", "Linux", "arm64"): (
        "https://github.com/kubernetes/kompose/releases/download/v3.12.0/kompose-linux-arm64"
    ),
    ("kompose", "Darwin", "x64"): (
        "https://github.com/kubernetes/kompose/releases/download/v3.12.0/kompose-darwin-amd64"
    ),
    ("kompose", "Windows_NT", "x64"): (
        "https://github.com/kubernetes/kompose/releases/download/v3.12.0/"
        "kompose-windows-amd64.exe"
    ),
    ("kubectl", "Linux", "x64"): (
        "https://storage.googleapis.com/kubernetes-release/release/v3.12.0/"
        "bin/linux/amd64/kubectl"
    ),
    ("kubectl", "Linux", "arm64"): (
        "https://storage.googleapis.com/kubernetes-release/release/v3.12.0/"
        "bin/linux/arm64/kubectl"
    ),
    ("kubectl", "Darwin", "arm64"): (
        "https://storage.googleapis.com/kubernetes-release/release/v3.12.0/"
        "bin/darwin/amd64/kubectl"
    ),
    ("kubectl", "Windows_NT", "arm64"): (
        "https://storage.googleapis.com/kubernetes-release/release/v3.12.0/"
        "bin/windows/amd64/kubectl.exe"
    ),
}


class TestPlatformResolver:
    @pytest.mark.parametrize(
        "tool_name, os_family, arch",
        sorted(EXPECTED_URLS),
    )
    def test_url_for_supported_platforms(self, tool_name, os_family, arch):
        url = _resolver(os_family, arch).url_for(tool_name, "v3.12.0")

        assert url == EXPECTED_URLS[(tool_name, os_family, arch)]
        assert "v3.12.0" in url

    @pytest.mark.parametrize("tool_name", sorted(DEFAULT_TOOLS))
    def test_linux_arm64_segment(self, tool_name):
        url = _resolver("Linux", "arm64").url_for(tool_name, "v1.0.0")
        assert "arm64" in url and "amd64" not in url

    @pytest.mark.parametrize("tool_name", sorted(DEFAULT_TOOLS))
    def test_unknown_os_is_unsupported(self, tool_name):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            _resolver("SunOS", "x64").url_for(tool_name, "v1.0.0")

        assert str(exc_info.value).startswith("Unknown OS or render engine type")
        assert exc_info.value.os_family == "SunOS"

    def test_unknown_linux_architecture_is_unsupported(self):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            _resolver("Linux", "s390x").url_for("helm", "v3.0.0")
        assert exc_info.value.arch == "s390x"

    def test_unknown_tool_is_unsupported(self):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            _resolver("Linux", "x64").url_for("kustomize", "v5.0.0")
        assert exc_info.value.tool == "kustomize"

    def test_custom_tool_table(self):
        """The table is passed in, never read from ambient state."""
        resolver = PlatformResolver({}, HostPlatform("Linux", "x64"))
        with pytest.raises(UnsupportedPlatformError):
            resolver.url_for("helm", "v3.0.0")

    def test_version_is_substituted_verbatim(self):
        url = _resolver("Linux", "x64").url_for("helm", "not-a-version")
        assert url == "https://get.helm.sh/helm-not-a-version-linux-amd64.zip"


class TestHostPlatform:
    def test_detect_uses_env_utils(self, mocker):
        mocker.patch("platform.system", return_value="Windows")
        mocker.patch("platform.machine", return_value="AMD64")

        host = HostPlatform.detect()

        assert host == HostPlatform("Windows_NT", "x64")
        assert host.executable_file_name("helm") == "helm.exe"

    def test_darwin_arm(self, mocker):
        mocker.patch("platform.system", return_value="Darwin")
        mocker.patch("platform.machine", return_value="arm64")

        host = HostPlatform.detect()

        assert host == HostPlatform("Darwin", "arm64")
        assert host.executable_file_name("kubectl") == "kubectl"

    @pytest.mark.parametrize(
        "machine, expected",
        [("x86_64", "x64"), ("aarch64", "arm64"), ("armv7l", "armv7l")],
    )
    def test_architecture_aliases(self, mocker, machine, expected):
        mocker.patch("platform.machine", return_value=machine)
        assert env_utils.get_architecture() == expected

    def test_unknown_system_passes_through(self, mocker):
        mocker.patch("platform.system", return_value="FreeBSD")
        assert env_utils.get_os_family() == "FreeBSD"


class TestRegistry:
    def test_registration_kinds(self):
        assert get_tool("helm").registration.value == "archive"
        assert get_tool("kubectl").registration.value == "file"
        assert get_tool("kompose").registration.value == "file"

    def test_default_versions(self):
        assert get_tool("helm").default_version == "v2.14.1"
        assert get_tool("kubectl").default_version == "v1.15.0"
        assert get_tool("kompose").default_version == "v1.18.0"

    def test_unknown_tool(self):
        assert get_tool("terraform") is None

    def test_templates_are_immutable(self):
        with pytest.raises(TypeError):
            get_tool("helm").url_templates["Linux"]["x64"] = "x"  # type: ignore[index]
