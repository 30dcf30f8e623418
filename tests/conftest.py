import time

import platformdirs
import pytest
import requests

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the k8s-bake test suite.

    Parameters:
        config: pytest.Config
    """
    config.addinivalue_line("markers", "unit: fast, isolated unit tests")
    config.addinivalue_line(
        "markers", "toolchain: tests for tool resolution, caching and acquisition"
    )


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point every platformdirs and runner-provided directory at a per-test temporary tree.

    Clears RUNNER_TOOL_CACHE, RUNNER_TEMP, GITHUB_TOKEN and K8SBAKE_LOG_LEVEL so the
    host environment cannot leak into tests.
    """
    base = tmp_path_factory.mktemp("k8sbake")
    cache_dir = base / "cache"
    config_dir = base / "config"
    for path in (cache_dir, config_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    for name in ("RUNNER_TOOL_CACHE", "RUNNER_TEMP", "GITHUB_TOKEN", "K8SBAKE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.put = _block_network
    requests.delete = _block_network
    requests.head = _block_network
    requests.patch = _block_network
    requests.options = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests.

    Release listing sleeps between pages; tests that assert on those delays
    patch `time.sleep` themselves.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


@pytest.fixture
def toolchain_config(tmp_path):
    """A ToolchainConfig rooted in the test's temporary directory, with no page delay."""
    from k8sbake.toolchain.config import ToolchainConfig

    return ToolchainConfig(
        cache_dir=str(tmp_path / "tool-cache"),
        temp_dir=str(tmp_path / "temp"),
        allow_env_token=False,
        page_delay_min=0.0,
        page_delay_max=0.0,
    )
