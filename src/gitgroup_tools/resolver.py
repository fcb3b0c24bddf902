#!/usr/bin/env python3
"""
Entity resolution: turn a group name or numeric ID into platform entity refs.
"""

import logging
from typing import List

from .errors import GroupNotFoundError, UnexpectedStatusError, UnknownEntityTypeError
from .fetcher import PaginatedFetcher
from .models import EntityKind, EntityRef
from .platforms import PlatformConfig

logger = logging.getLogger(__name__)

# GitHub account "type" values
GITHUB_ACCOUNT_TYPES = {
    "User": EntityKind.USER,
    "Organization": EntityKind.ORGANIZATION,
}


class EntityResolver:
    """Resolves human-readable names to entity IDs on one platform."""

    def __init__(self, platform: PlatformConfig, fetcher: PaginatedFetcher):
        self.platform = platform
        self.fetcher = fetcher

    def resolve(self, name_or_id: str) -> List[EntityRef]:
        """
        Resolve a group name or numeric ID.

        A purely numeric identifier is used as-is without any API call. GitLab
        names go through the group search, and every match is returned, so
        two groups sharing a name are both traversed. GitHub names are looked
        up as a user first to learn whether they are a user or organization.

        Args:
            name_or_id: Group/user/organization name, or numeric ID

        Returns:
            Entity refs in API order

        Raises:
            GroupNotFoundError: Nothing matched
            UnknownEntityTypeError: GitHub returned an unexpected account type
        """
        name_or_id = (name_or_id or "").strip()
        if name_or_id.isascii() and name_or_id.isdigit():
            kind = EntityKind.GROUP if self.platform.is_gitlab else EntityKind.UNKNOWN
            return [EntityRef(self.platform.tag, name_or_id, kind)]

        if not name_or_id:
            raise GroupNotFoundError(name_or_id)

        if self.platform.is_gitlab:
            refs = self._search_gitlab_groups(name_or_id)
        else:
            refs = self._lookup_github_account(name_or_id)

        if not refs:
            raise GroupNotFoundError(name_or_id)

        if len(refs) > 1:
            logger.warning(
                f"Name '{name_or_id}' matched {len(refs)} groups: {', '.join(r.id for r in refs)}"
            )
        for ref in refs:
            logger.info(f"Resolved '{name_or_id}' to {ref.kind.value} {ref.id}")
        return refs

    def _search_gitlab_groups(self, name: str) -> List[EntityRef]:
        groups = self.fetcher.fetch_all(self.platform.group_search_url(name))
        refs = []
        for group in groups:
            if isinstance(group, dict) and group.get("id") is not None:
                refs.append(EntityRef(self.platform.tag, str(group["id"]), EntityKind.GROUP))
        return refs

    def _lookup_github_account(self, name: str) -> List[EntityRef]:
        try:
            account = self.fetcher.fetch_object(self.platform.account_url(name))
        except UnexpectedStatusError as e:
            if e.status_code == 404:
                return []
            raise

        kind = self._account_kind(name, account.get("type"))
        # Canonical id comes from the kind-specific endpoint
        canonical = self.fetcher.fetch_object(self.platform.account_url(name, kind))
        entity_id = canonical.get("id")
        if entity_id is None:
            return []
        return [EntityRef(self.platform.tag, str(entity_id), kind)]

    def classify(self, entity: EntityRef) -> EntityRef:
        """
        Return ``entity`` with its kind filled in.

        GitLab entities are always groups. GitHub entities of unknown kind
        (given by numeric ID) are looked up by ID.
        """
        if self.platform.is_gitlab:
            return entity.with_kind(EntityKind.GROUP)
        if entity.kind != EntityKind.UNKNOWN:
            return entity

        account = self.fetcher.fetch_object(self.platform.account_by_id_url(entity.id))
        kind = self._account_kind(entity.id, account.get("type"))
        logger.debug(f"Classified {self.platform.tag} entity {entity.id} as {kind.value}")
        return entity.with_kind(kind)

    @staticmethod
    def _account_kind(name: str, account_type) -> EntityKind:
        kind = GITHUB_ACCOUNT_TYPES.get(account_type)
        if kind is None:
            raise UnknownEntityTypeError(name, account_type)
        return kind
