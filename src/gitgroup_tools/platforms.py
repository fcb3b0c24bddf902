#!/usr/bin/env python3
"""
Platform adapter for GitLab and GitHub.

Maps a platform tag to an immutable PlatformConfig that knows the API base URL,
the auth header, the endpoint layout, the JSON field names of project objects
and how each platform signals the next page of a listing.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .errors import EmptyTokenError, UnsupportedPlatformError, UnsupportedTypeError
from .models import EntityKind, EntityRef

GITLAB = "gitlab"
GITHUB = "github"

PER_PAGE = 100

# Defaults per platform tag
_PLATFORM_DEFAULTS: Dict[str, Dict[str, str]] = {
    GITLAB: {
        "base_url": "https://gitlab.com/api/v4",
        "auth_header_name": "PRIVATE-TOKEN",
        "auth_header_template": "{token}",
        "ssh_url_field": "ssh_url_to_repo",
        "http_url_field": "http_url_to_repo",
    },
    GITHUB: {
        "base_url": "https://api.github.com",
        "auth_header_name": "Authorization",
        "auth_header_template": "token {token}",
        "ssh_url_field": "ssh_url",
        "http_url_field": "clone_url",
    },
}

SUPPORTED_PLATFORMS = tuple(_PLATFORM_DEFAULTS)


@dataclass(frozen=True)
class PlatformConfig:
    """Immutable per-run description of the target platform."""

    tag: str
    base_url: str
    auth_header_name: str
    auth_header_value: str = field(repr=False)
    ssh_url_field: str
    http_url_field: str

    @property
    def is_gitlab(self) -> bool:
        return self.tag == GITLAB

    @property
    def is_github(self) -> bool:
        return self.tag == GITHUB

    @property
    def supports_subgroups(self) -> bool:
        return self.is_gitlab

    def auth_headers(self) -> Dict[str, str]:
        """Headers carrying the access token for one request."""
        return {self.auth_header_name: self.auth_header_value}

    def _url(self, path: str, **params: Any) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            query = "&".join(f"{key}={quote(str(value), safe='')}" for key, value in params.items())
            url = f"{url}?{query}"
        return url

    # Endpoints

    def current_user_url(self) -> str:
        return self._url("user")

    def group_search_url(self, name: str) -> str:
        return self._url("groups", search=name, per_page=PER_PAGE)

    def account_url(self, name: str, kind: EntityKind = EntityKind.USER) -> str:
        """GitHub lookup of a user or organization by login."""
        if kind == EntityKind.ORGANIZATION:
            return self._url(f"orgs/{quote(name, safe='')}")
        return self._url(f"users/{quote(name, safe='')}")

    def account_by_id_url(self, entity_id: str) -> str:
        """GitHub lookup of any account by numeric id."""
        return self._url(f"user/{entity_id}")

    def projects_url(self, entity: EntityRef) -> str:
        """
        Endpoint listing the repositories owned by an entity.

        Args:
            entity: Entity whose repositories are listed; GitHub entities must
                already be classified as user or organization

        Returns:
            URL of the first page of the listing
        """
        if self.is_gitlab:
            return self._url(f"groups/{entity.id}/projects", per_page=PER_PAGE)
        if entity.kind == EntityKind.USER:
            return self._url(f"user/{entity.id}/repos", per_page=PER_PAGE)
        if entity.kind == EntityKind.ORGANIZATION:
            return self._url(f"organizations/{entity.id}/repos", per_page=PER_PAGE)
        raise UnsupportedTypeError(
            f"Cannot list repositories of {self.tag} entity {entity.id} with kind '{entity.kind.value}'"
        )

    def subgroups_url(self, entity_id: str) -> str:
        return self._url(f"groups/{entity_id}/subgroups", per_page=PER_PAGE)

    # Project objects

    def clone_url(self, project: Dict[str, Any], use_ssh: bool) -> Optional[str]:
        """Pick the SSH or HTTP clone URL out of a project object."""
        value = project.get(self.ssh_url_field if use_ssh else self.http_url_field)
        return value or None

    def namespace_path(self, project: Dict[str, Any]) -> str:
        """Full namespace path of a GitLab project; always empty on GitHub."""
        if not self.is_gitlab:
            return ""
        namespace = project.get("namespace")
        if isinstance(namespace, dict) and namespace.get("full_path"):
            return namespace["full_path"]
        path_with_namespace = project.get("path_with_namespace") or ""
        return path_with_namespace.rpartition('/')[0]

    # Pagination

    def next_page_url(self, response: requests.Response, follow_gitlab_pages: bool = False) -> Optional[str]:
        """
        Cursor for the page after ``response``.

        GitHub announces it with a ``Link: <...>; rel="next"`` header. GitLab
        sends the same header, but it is only followed when explicitly enabled;
        by default GitLab listings stop after the first page.
        """
        if self.is_gitlab and not follow_gitlab_pages:
            return None
        return response.links.get("next", {}).get("url")


def normalize_base_url(tag: str, base_url: str) -> str:
    """Strip trailing slashes and make a bare GitLab host point at API v4."""
    base_url = base_url.rstrip('/')
    if tag == GITLAB and not base_url.endswith("/api/v4"):
        base_url = f"{base_url}/api/v4"
    return base_url


def resolve_platform(tag: str, token: str, base_url: Optional[str] = None) -> PlatformConfig:
    """
    Build the PlatformConfig for a platform tag.

    Args:
        tag: 'gitlab' or 'github'
        token: Pre-obtained access token
        base_url: Optional API base URL for self-hosted instances

    Returns:
        PlatformConfig for the run

    Raises:
        UnsupportedPlatformError: tag is not a supported platform
        EmptyTokenError: token is empty
    """
    defaults = _PLATFORM_DEFAULTS.get((tag or "").lower())
    if defaults is None:
        raise UnsupportedPlatformError(tag)
    tag = tag.lower()
    if not token or not token.strip():
        raise EmptyTokenError(tag)

    token = token.strip()
    return PlatformConfig(
        tag=tag,
        base_url=normalize_base_url(tag, base_url) if base_url else defaults["base_url"],
        auth_header_name=defaults["auth_header_name"],
        auth_header_value=defaults["auth_header_template"].format(token=token),
        ssh_url_field=defaults["ssh_url_field"],
        http_url_field=defaults["http_url_field"],
    )
