#!/usr/bin/env python3
"""
Exception hierarchy for GitGroup Tools.

Every fatal condition of a run maps to one exception class. The CLI catches
GitGroupError, logs its message on a single line and exits non-zero.
"""

from typing import Any, Optional


class GitGroupError(Exception):
    """Base exception for all GitGroup Tools errors."""


class UnsupportedPlatformError(GitGroupError):
    """Raised when the platform tag is neither 'gitlab' nor 'github'."""

    def __init__(self, tag: str):
        super().__init__(f"Unsupported platform: '{tag}' (expected 'gitlab' or 'github')")
        self.tag = tag


class UnsupportedActionError(GitGroupError):
    """Raised when the requested action is unknown."""

    def __init__(self, action: str):
        super().__init__(f"Unsupported action: '{action}'")
        self.action = action


class EmptyTokenError(GitGroupError):
    """Raised when no access token was supplied."""

    def __init__(self, tag: str = ""):
        target = f" for {tag}" if tag else ""
        super().__init__(f"Access token{target} is empty")


class InvalidTokenError(GitGroupError):
    """Raised when the platform rejects the access token."""


class GroupNotFoundError(GitGroupError):
    """Raised when a group name resolves to no entity."""

    def __init__(self, name: str):
        super().__init__(f"Group not found: '{name}'")
        self.name = name


class UnknownEntityTypeError(GitGroupError):
    """Raised when GitHub reports an account type other than User or Organization."""

    def __init__(self, name: str, entity_type: Any):
        super().__init__(f"Unknown entity type for '{name}': {entity_type!r}")
        self.name = name
        self.entity_type = entity_type


class InvalidEntityTypeError(GitGroupError):
    """Raised when an entity kind makes no sense on the target platform."""


class UnsupportedSubgroupsError(GitGroupError):
    """Raised when subgroups are requested on a platform without them."""

    def __init__(self, tag: str):
        super().__init__(f"Subgroups are not supported on {tag}")
        self.tag = tag


class UnsupportedTypeError(GitGroupError):
    """Raised on internal misuse, such as an unknown listing scope."""


class InvalidJSONError(GitGroupError):
    """Raised when a response body is not valid JSON."""

    def __init__(self, url: str, body: str = ""):
        super().__init__(f"Invalid JSON returned by {url}")
        self.url = url
        self.body = body


class NotArrayError(GitGroupError):
    """Raised when a list endpoint does not return a JSON array."""

    def __init__(self, url: str):
        super().__init__(f"Expected a JSON array from {url}")
        self.url = url


class NotObjectError(GitGroupError):
    """Raised when a JSON object was expected but something else arrived."""

    def __init__(self, url: str):
        super().__init__(f"Expected a JSON object from {url}")
        self.url = url


class UnexpectedStatusError(GitGroupError):
    """Raised when an API call answers with anything but HTTP 200."""

    def __init__(self, url: str, status_code: int, body: str = ""):
        super().__init__(f"HTTP {status_code} for {url}: {body.strip()[:300]}")
        self.url = url
        self.status_code = status_code
        self.body = body


class RequestFailedError(GitGroupError):
    """Raised when the HTTP transport itself fails (DNS, timeout, reset)."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        super().__init__(f"Request to {url} failed: {cause}")
        self.url = url
        self.cause = cause


class TraversalDepthError(GitGroupError):
    """Raised when subgroup nesting exceeds the configured depth bound."""

    def __init__(self, entity_id: str, max_depth: int):
        super().__init__(f"Subgroup {entity_id} exceeds the maximum traversal depth of {max_depth}")
        self.entity_id = entity_id
        self.max_depth = max_depth


class DestinationNotEmptyError(GitGroupError):
    """Raised when the clone destination already holds files."""

    def __init__(self, path: Any):
        super().__init__(f"Destination directory is not empty: {path}")
        self.path = path


class MissingDependencyError(GitGroupError):
    """Raised when a required external tool is not installed."""

    def __init__(self, tool: str):
        super().__init__(f"Required tool not found on PATH: {tool}")
        self.tool = tool
