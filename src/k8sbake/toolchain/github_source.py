"""
GitHub Release Index Client

This module reads the remote release indexes of the provisioned tools: the
single "latest stable" pointer documents and the paginated GitHub release
lists used to resolve version ranges.
"""

import json
import random
import time
from typing import Any, Dict, Generator, List, Optional

import requests  # type: ignore[import-untyped]

from k8sbake.log_utils import logger
from k8sbake.utils import fetch_text, make_github_api_request

from .config import ToolchainConfig
from .interfaces import (
    ReleaseListing,
    ReleaseRecord,
    StableVersionFormat,
    StableVersionLookup,
    ToolDescriptor,
)


class ReleaseIndexClient:
    """
    Reads stable pointers and release lists for a tool.

    Neither operation raises on remote failure: a stable lookup reports the
    problem in its result, and release listing stops early and reports why
    alongside whatever it already read.

    Usage:
        client = ReleaseIndexClient(config)

        lookup = client.fetch_stable_version(descriptor)
        listing = client.list_releases(descriptor)
        if listing.complete:
            tags = listing.tags
    """

    def __init__(self, config: Optional[ToolchainConfig] = None):
        """
        Initialize the release index client.

        Parameters:
            config (Optional[ToolchainConfig]): Token, paging and timeout settings; defaults are used when omitted.
        """
        self.config = config or ToolchainConfig()

    def fetch_stable_version(self, descriptor: ToolDescriptor) -> StableVersionLookup:
        """
        Read the tool's "latest stable" pointer document.

        JSON pointers carry the version in `tag_name`; text pointers are a single
        line. An empty or malformed document counts as unusable.

        Parameters:
            descriptor (ToolDescriptor): The tool whose pointer to read.

        Returns:
            StableVersionLookup: The version on success, otherwise the reason it could not be read.
        """
        url = descriptor.stable_version_url
        if not url:
            return StableVersionLookup(error=f"No stable version pointer for {descriptor.name}")

        try:
            if descriptor.stable_version_format is StableVersionFormat.TEXT:
                version = fetch_text(url, timeout=self.config.request_timeout).strip()
            else:
                response = make_github_api_request(
                    url,
                    self.config.github_token,
                    allow_env_token=self.config.allow_env_token,
                    timeout=self.config.request_timeout,
                )
                version = self._tag_from_document(response.json())
        except (requests.RequestException, ValueError, json.JSONDecodeError) as exc:
            logger.warning(
                "Could not read stable %s version from %s: %s",
                descriptor.name,
                url,
                exc,
            )
            return StableVersionLookup(error=str(exc))

        if not version:
            logger.warning(
                "Stable %s version document at %s was empty", descriptor.name, url
            )
            return StableVersionLookup(error=f"Empty stable version document at {url}")

        logger.debug(f"Stable {descriptor.name} version: {version}")
        return StableVersionLookup(version=version)

    @staticmethod
    def _tag_from_document(document: Any) -> Optional[str]:
        if not isinstance(document, dict):
            return None
        tag = document.get("tag_name")
        if not isinstance(tag, str):
            return None
        return tag.strip() or None

    def _fetch_page(
        self, descriptor: ToolDescriptor, page: int
    ) -> List[Dict[str, Any]]:
        response = make_github_api_request(
            descriptor.releases_url,
            self.config.github_token,
            allow_env_token=self.config.allow_env_token,
            params={"per_page": self.config.releases_per_page, "page": page},
            timeout=self.config.request_timeout,
        )
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(
                f"Expected a list of releases, got {type(data).__name__}"
            )
        return data

    def iter_releases(
        self, descriptor: ToolDescriptor
    ) -> Generator[ReleaseRecord, None, Optional[str]]:
        """
        Yield published, non-prerelease releases of a tool, newest pages first.

        Pages are requested until one comes back empty or `max_releases` records
        have been yielded. A randomized delay separates consecutive page
        requests. Any failure is logged and ends the iteration.

        Parameters:
            descriptor (ToolDescriptor): The tool whose release list to page through.

        Yields:
            ReleaseRecord: One record per published stable release.

        Returns:
            Optional[str]: Why listing stopped early, or None when the index was exhausted or the cap reached.
        """
        if not descriptor.releases_url:
            message = f"No release index configured for {descriptor.name}"
            logger.warning(message)
            return message

        yielded = 0
        page = 1
        while yielded < self.config.max_releases:
            if page > 1:
                time.sleep(
                    random.uniform(
                        self.config.page_delay_min, self.config.page_delay_max
                    )
                )
            try:
                entries = self._fetch_page(descriptor, page)
            except (requests.RequestException, ValueError, json.JSONDecodeError) as exc:
                logger.error(
                    "Error fetching %s releases (page %d) from %s: %s",
                    descriptor.name,
                    page,
                    descriptor.releases_url,
                    exc,
                )
                return f"page {page}: {exc}"

            if not entries:
                break

            for entry in entries:
                if not isinstance(entry, dict):
                    logger.warning(
                        "Skipping malformed release entry from %s: expected dict, got %s",
                        descriptor.releases_url,
                        type(entry).__name__,
                    )
                    continue
                tag = entry.get("tag_name")
                if not isinstance(tag, str) or not tag.strip():
                    continue
                if entry.get("draft") or entry.get("prerelease"):
                    continue
                yield ReleaseRecord(tag=tag.strip())
                yielded += 1
                if yielded >= self.config.max_releases:
                    break
            page += 1

        logger.debug(f"Listed {yielded} {descriptor.name} releases")
        return None

    def list_releases(self, descriptor: ToolDescriptor) -> ReleaseListing:
        """
        Collect iter_releases into a ReleaseListing.

        A listing cut short by a remote failure keeps the records read so far
        and carries the failure in `error`.
        """
        records: List[ReleaseRecord] = []
        releases = self.iter_releases(descriptor)
        while True:
            try:
                records.append(next(releases))
            except StopIteration as stop:
                return ReleaseListing(records=tuple(records), error=stop.value)
