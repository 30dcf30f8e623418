# src/k8sbake/utils.py
import importlib.metadata
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from k8sbake.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_API_TIMEOUT,
    GITHUB_TOKEN_ENV_VAR,
    RATE_LIMIT_WARNING_THRESHOLD,
)
from k8sbake.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE = None

_token_warning_shown = False


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `k8s-bake/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("k8s-bake")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"k8s-bake/{app_version}"

    return _USER_AGENT_CACHE


def get_effective_github_token(
    github_token: Optional[str], allow_env_token: bool = True
) -> Optional[str]:
    """
    Determine the GitHub token to use, preferring the explicit argument over the environment.

    Parameters:
        github_token (Optional[str]): Explicit token to use; leading and trailing whitespace are ignored.
        allow_env_token (bool): If True, fall back to the `GITHUB_TOKEN` environment variable when no explicit token is provided.

    Returns:
        Optional[str]: The chosen token with surrounding whitespace removed, or `None` if no token is available.
    """
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    if not allow_env_token:
        return None
    env_token = os.environ.get(GITHUB_TOKEN_ENV_VAR)
    return env_token.strip() if env_token else None


def _show_token_warning_if_needed(effective_token: Optional[str]) -> None:
    """Log a one-time notice when GitHub API requests go out unauthenticated."""
    global _token_warning_shown
    if not effective_token and not _token_warning_shown:
        logger.debug(
            "No GITHUB_TOKEN found - using unauthenticated API requests (60/hour limit). "
            "Set GITHUB_TOKEN for higher limits when resolving version ranges."
        )
        _token_warning_shown = True


def _parse_rate_limit_header(header_value: Any) -> Optional[int]:
    """
    Parse an HTTP rate-limit header value into an integer remaining count.

    Parameters:
        header_value (Any): The raw header value to parse (commonly a str or int).

    Returns:
        Optional[int]: The parsed integer value if successful, `None` otherwise.
    """
    if isinstance(header_value, str) and header_value.isdigit():
        return int(header_value)
    if isinstance(header_value, (int, float)) and not isinstance(header_value, bool):
        return int(header_value)
    return None


def _log_rate_limit(response: requests.Response) -> None:
    headers = getattr(response, "headers", None)
    if headers is None or not hasattr(headers, "get"):
        return

    remaining = _parse_rate_limit_header(headers.get("X-RateLimit-Remaining"))
    if remaining is None:
        return

    logger.debug(f"GitHub API rate-limit remaining: {remaining}")
    if remaining <= RATE_LIMIT_WARNING_THRESHOLD:
        logger.warning(
            f"GitHub API rate limit running low: {remaining} requests remaining"
        )


def make_github_api_request(
    url: str,
    github_token: Optional[str] = None,
    allow_env_token: bool = True,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """
    Perform a GitHub API GET request with optional token authentication.

    Parameters:
        url (str): GitHub API URL to request.
        github_token (Optional[str]): Explicit GitHub token to prefer for Authorization.
        allow_env_token (bool): If True, allow falling back to the GITHUB_TOKEN environment variable.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout (Optional[float]): Request timeout in seconds; the module default is used when omitted.

    Returns:
        requests.Response: The HTTP response returned by GitHub.

    Raises:
        requests.HTTPError: For non-success responses. A 403 caused by an exhausted rate limit is re-raised with a descriptive message.
        requests.RequestException: For lower-level network or request errors.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": get_user_agent(),
    }

    effective_token = get_effective_github_token(github_token, allow_env_token)
    if effective_token:
        headers["Authorization"] = f"token {effective_token}"
        logger.debug("Using GitHub token for API authentication")
    _show_token_warning_if_needed(effective_token)

    logger.debug(f"Making GitHub API request: {url} params={params}")
    response = requests.get(
        url,
        timeout=timeout or GITHUB_API_TIMEOUT,
        headers=headers,
        params=params,
    )
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 403:
            remaining = _parse_rate_limit_header(
                e.response.headers.get("X-RateLimit-Remaining")
            )
            if remaining == 0:
                reset_time = e.response.headers.get("X-RateLimit-Reset")
                reset_time_str = (
                    datetime.fromtimestamp(int(reset_time), timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                    if reset_time and str(reset_time).isdigit()
                    else "unknown"
                )
                error_msg = (
                    f"GitHub API rate limit exceeded. Resets at {reset_time_str}. "
                    f"Set {GITHUB_TOKEN_ENV_VAR} for higher rate limits."
                )
                raise requests.HTTPError(error_msg, response=e.response) from None
        raise

    _log_rate_limit(response)
    return response


def fetch_text(url: str, timeout: Optional[float] = None) -> str:
    """
    Fetch a small text document and return its body.

    Raises:
        requests.RequestException: On network errors or a non-success status.
    """
    logger.debug(f"Fetching text document: {url}")
    response = requests.get(
        url,
        timeout=timeout or DEFAULT_REQUEST_TIMEOUT,
        headers={"User-Agent": get_user_agent()},
    )
    response.raise_for_status()
    return response.text


def download_file(
    url: str,
    dest_dir: str,
    timeout: Optional[float] = None,
) -> str:
    """
    Stream a remote file into a fresh, uniquely named file and return its path.

    The download is attempted exactly once. A partially written file is removed
    before the error propagates.

    Parameters:
        url (str): The HTTP(S) URL of the remote file to download.
        dest_dir (str): Directory to create the download in; created if missing. The caller owns its cleanup.
        timeout (Optional[float]): Request timeout in seconds.

    Returns:
        str: Absolute path of the downloaded file.

    Raises:
        requests.RequestException: On network errors or a non-success status.
        OSError: When the file cannot be written.
    """
    os.makedirs(dest_dir, exist_ok=True)
    download_path = os.path.join(dest_dir, str(uuid.uuid4()))

    logger.debug(f"Attempting to download file from URL: {url} to {download_path}")
    start_time = time.time()
    downloaded_bytes = 0
    with requests.Session() as session:
        response = session.get(
            url,
            stream=True,
            timeout=timeout or DEFAULT_REQUEST_TIMEOUT,
            headers={"User-Agent": get_user_agent()},
        )
        try:
            logger.debug(
                f"Received HTTP response status code: {response.status_code} for URL: {url}"
            )
            response.raise_for_status()
            with open(download_path, "wb") as file:
                for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                    if chunk:
                        file.write(chunk)
                        downloaded_bytes += len(chunk)
        except (requests.RequestException, OSError):
            if os.path.exists(download_path):
                try:
                    os.remove(download_path)
                except OSError as e_rm:
                    logger.debug(f"Error removing partial download {download_path}: {e_rm}")
            raise
        finally:
            response.close()

    elapsed = time.time() - start_time
    logger.debug("Download elapsed time: %.2fs for %s", elapsed, url)
    file_size_mb = downloaded_bytes / (1024 * 1024)
    if file_size_mb >= 1.0:
        logger.info(f"Downloaded: {url} ({file_size_mb:.1f} MB)")
    else:
        logger.info(f"Downloaded: {url} ({downloaded_bytes} bytes)")
    return download_path
