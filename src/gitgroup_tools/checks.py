#!/usr/bin/env python3
"""
Pre-flight checks: required tools and token validity.
"""

import logging
import shutil
from typing import Callable, Iterable, Optional

from .errors import InvalidTokenError, MissingDependencyError, UnexpectedStatusError
from .fetcher import PaginatedFetcher

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = ("git",)

# Body marker GitLab returns with a rejected token
GITLAB_UNAUTHORIZED_MARKER = "401 Unauthorized"


def check_tools(tools: Iterable[str] = REQUIRED_TOOLS, which: Callable[[str], Optional[str]] = shutil.which) -> None:
    """
    Raise MissingDependencyError for the first tool not found on PATH.
    """
    for tool in tools:
        if not which(tool):
            raise MissingDependencyError(tool)
        logger.debug(f"Found required tool: {tool}")


def check_token(fetcher: PaginatedFetcher) -> None:
    """
    Verify the access token against the platform's current-user endpoint.

    Args:
        fetcher: Fetcher bound to the target platform

    Raises:
        InvalidTokenError: The platform rejected the token
        UnexpectedStatusError: Any other non-200 answer
    """
    platform = fetcher.platform
    url = platform.current_user_url()
    response = fetcher.get(url)
    if response.status_code == 200:
        logger.debug(f"Access token accepted by {platform.tag}")
        return

    body = response.text or ""
    if response.status_code == 401:
        if not platform.is_gitlab or GITLAB_UNAUTHORIZED_MARKER in body:
            raise InvalidTokenError(f"The {platform.tag} access token was rejected")
    raise UnexpectedStatusError(url, response.status_code, body)


def check_dependencies(
    fetcher: PaginatedFetcher,
    which: Callable[[str], Optional[str]] = shutil.which,
    tools: Iterable[str] = REQUIRED_TOOLS,
) -> None:
    """Run every pre-flight check, tools first."""
    check_tools(tools, which)
    check_token(fetcher)
