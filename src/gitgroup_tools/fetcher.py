#!/usr/bin/env python3
"""
Paginated fetcher for GitLab and GitHub list endpoints.

Read-only: only GET requests are issued. There are no retries; any non-200
status or malformed payload aborts the whole traversal.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.exceptions import RequestException

from .errors import InvalidJSONError, NotArrayError, NotObjectError, RequestFailedError, UnexpectedStatusError
from .platforms import PlatformConfig

logger = logging.getLogger(__name__)

USER_AGENT = "gitgroup-tools/1.0.0"


class PaginatedFetcher:
    """Performs list calls against one platform, following page cursors."""

    def __init__(
        self,
        platform: PlatformConfig,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        follow_gitlab_pages: bool = False,
    ):
        """
        Initialize the fetcher.

        Args:
            platform: Target platform configuration
            session: Optional requests session (a new one is created otherwise)
            timeout: Per-request timeout in seconds, None to wait indefinitely
            follow_gitlab_pages: Follow GitLab's Link headers instead of
                stopping after the first page
        """
        self.platform = platform
        self.timeout = timeout
        self.follow_gitlab_pages = follow_gitlab_pages
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        })

    def get(self, url: str) -> requests.Response:
        """Issue one authenticated GET and return the raw response."""
        logger.debug(f"GET {url}")
        try:
            return self.session.get(url, headers=self.platform.auth_headers(), timeout=self.timeout)
        except RequestException as e:
            raise RequestFailedError(url, e) from e

    def _get_json(self, url: str) -> Tuple[requests.Response, Any]:
        response = self.get(url)
        if response.status_code != 200:
            raise UnexpectedStatusError(url, response.status_code, response.text or "")
        try:
            return response, response.json()
        except ValueError as e:
            raise InvalidJSONError(url, response.text or "") from e

    def fetch_all(self, url: str) -> List[Any]:
        """
        Fetch every element of a paginated list endpoint.

        Elements keep page order, and array order within a page.

        Args:
            url: URL of the first page

        Returns:
            Concatenated elements of all pages

        Raises:
            UnexpectedStatusError: A page answered with a status other than 200
            InvalidJSONError: A page body is not JSON
            NotArrayError: A page body is JSON but not an array
            RequestFailedError: The transport failed
        """
        items: List[Any] = []
        next_url: Optional[str] = url
        pages = 0

        while next_url:
            response, data = self._get_json(next_url)
            if not isinstance(data, list):
                raise NotArrayError(next_url)

            items.extend(data)
            pages += 1
            next_url = self.platform.next_page_url(response, self.follow_gitlab_pages)

        logger.debug(f"Fetched {len(items)} items in {pages} page(s) from {url}")
        return items

    def fetch_object(self, url: str) -> Dict[str, Any]:
        """Fetch a single JSON object, such as a user or organization."""
        _, data = self._get_json(url)
        if not isinstance(data, dict):
            raise NotObjectError(url)
        return data

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> 'PaginatedFetcher':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
