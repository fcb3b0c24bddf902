#!/usr/bin/env python3
"""
Recursive project collector.

Walks an entity and, on GitLab, all of its nested subgroups, producing a lazy
depth-first stream of repositories (clone mode) or of listing items (listing
mode). The walk uses an explicit stack rather than recursion, so nesting depth
is bounded and revisited groups are skipped.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .errors import InvalidEntityTypeError, TraversalDepthError, UnsupportedSubgroupsError, UnsupportedTypeError
from .fetcher import PaginatedFetcher
from .models import EntityKind, EntityRef, ListingItem, ListingKind, RepoDescriptor, SubgroupRef
from .platforms import PlatformConfig
from .resolver import EntityResolver

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

SCOPE_PROJECTS = "projects"
SCOPE_SUBGROUPS = "subgroups"
SCOPE_BOTH = "both"
LISTING_SCOPES = (SCOPE_PROJECTS, SCOPE_SUBGROUPS, SCOPE_BOTH)

# Display-name fields for listing output, highest priority first
NAME_FIELDS = ("full_path", "full_name", "name")


def display_name(item: Dict[str, Any]) -> Optional[str]:
    """First non-empty value among NAME_FIELDS, or None."""
    for name_field in NAME_FIELDS:
        value = item.get(name_field)
        if value:
            return str(value)
    return None


class ProjectCollector:
    """Collects repositories and subgroups below one entity."""

    def __init__(
        self,
        platform: PlatformConfig,
        fetcher: PaginatedFetcher,
        resolver: Optional[EntityResolver] = None,
        use_ssh: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Initialize the collector.

        Args:
            platform: Target platform configuration
            fetcher: Fetcher used for every API call
            resolver: Resolver used to classify GitHub entities of unknown kind
            use_ssh: Emit SSH clone URLs instead of HTTP ones
            max_depth: Maximum subgroup nesting below the starting group
        """
        self.platform = platform
        self.fetcher = fetcher
        self.resolver = resolver or EntityResolver(platform, fetcher)
        self.use_ssh = use_ssh
        self.max_depth = max_depth

    def _prepare(self, entity: EntityRef) -> EntityRef:
        if self.platform.is_gitlab:
            if entity.kind not in (EntityKind.GROUP, EntityKind.UNKNOWN):
                raise InvalidEntityTypeError(
                    f"GitLab entity {entity.id} must be a group, not a {entity.kind.value}"
                )
            return entity.with_kind(EntityKind.GROUP)
        if entity.kind == EntityKind.GROUP:
            raise InvalidEntityTypeError(
                f"GitHub entity {entity.id} must be a user or organization, not a group"
            )
        return self.resolver.classify(entity)

    def _walk(self, root: EntityRef, descend: bool) -> Iterator[Tuple[EntityRef, Optional[Dict[str, Any]]]]:
        """
        Depth-first walk of ``root`` and, when ``descend``, its subgroups.

        Yields each entity together with the raw subgroup object it came from
        (None for the root). Subgroups of an entity are only fetched once the
        caller has resumed the generator, so everything the caller does with
        an entity happens before its children are visited.
        """
        stack: List[Tuple[SubgroupRef, int, Optional[Dict[str, Any]]]] = [
            (SubgroupRef(root.platform_tag, root.id), 0, None)
        ]
        visited: Set[str] = set()

        while stack:
            node, depth, raw = stack.pop()
            if node.id in visited:
                logger.warning(f"Group {node.id} was already visited, skipping")
                continue
            visited.add(node.id)

            entity = root if raw is None else EntityRef(node.platform_tag, node.id, EntityKind.GROUP)
            yield entity, raw

            if not descend:
                continue

            children = self.fetcher.fetch_all(self.platform.subgroups_url(node.id))
            logger.debug(f"Found {len(children)} subgroups in group {node.id}")
            pending = []
            for child in children:
                if not isinstance(child, dict):
                    logger.warning(f"Skipping subgroup entry of group {node.id}: not a JSON object")
                    continue
                if child.get("id") is None:
                    continue
                if depth + 1 > self.max_depth:
                    raise TraversalDepthError(str(child["id"]), self.max_depth)
                pending.append((SubgroupRef(node.platform_tag, str(child["id"])), depth + 1, child))
            # Reversed so the first subgroup is popped first
            stack.extend(reversed(pending))

    def _fetch_projects(self, entity: EntityRef) -> List[Any]:
        projects = self.fetcher.fetch_all(self.platform.projects_url(entity))
        logger.info(f"Found {len(projects)} projects in {entity.kind.value} {entity.id}")
        return projects

    def iter_projects(self, entity: EntityRef) -> Iterator[RepoDescriptor]:
        """
        Lazily yield every repository below ``entity``.

        The entity's own projects come before those of its subgroups, and
        subgroups are visited depth-first in API order. GitHub entities have
        no subgroups, so only their own repositories are produced. A clone URL
        seen twice is only yielded once.

        Args:
            entity: Starting entity

        Yields:
            RepoDescriptor per repository
        """
        entity = self._prepare(entity)
        seen_urls: Set[str] = set()

        for node, _ in self._walk(entity, descend=self.platform.supports_subgroups):
            for project in self._fetch_projects(node):
                if not isinstance(project, dict):
                    logger.warning(f"Skipping project entry of {node.id}: not a JSON object")
                    continue
                clone_url = self.platform.clone_url(project, self.use_ssh)
                if not clone_url:
                    logger.warning(
                        f"Skipping project '{display_name(project) or project.get('id')}': no clone URL"
                    )
                    continue
                if clone_url in seen_urls:
                    logger.debug(f"Skipping duplicate repository {clone_url}")
                    continue
                seen_urls.add(clone_url)
                yield RepoDescriptor(clone_url, self.platform.namespace_path(project))

    def iter_listing(self, entity: EntityRef, scope: str = SCOPE_BOTH) -> Iterator[ListingItem]:
        """
        Yield listing items for ``entity`` and its subgroup tree.

        Args:
            entity: Starting entity
            scope: 'projects', 'subgroups' or 'both'

        Returns:
            Lazy iterator of ListingItem

        Raises:
            UnsupportedTypeError: Unknown scope
            UnsupportedSubgroupsError: Subgroups requested on GitHub; raised
                before any HTTP call is made
        """
        if scope not in LISTING_SCOPES:
            raise UnsupportedTypeError(f"Unknown listing scope: '{scope}'")
        want_subgroups = scope in (SCOPE_SUBGROUPS, SCOPE_BOTH)
        if want_subgroups and not self.platform.supports_subgroups:
            raise UnsupportedSubgroupsError(self.platform.tag)
        return self._listing(entity, scope)

    def _listing(self, entity: EntityRef, scope: str) -> Iterator[ListingItem]:
        entity = self._prepare(entity)
        want_projects = scope in (SCOPE_PROJECTS, SCOPE_BOTH)
        want_subgroups = scope in (SCOPE_SUBGROUPS, SCOPE_BOTH)

        for node, raw in self._walk(entity, descend=self.platform.supports_subgroups):
            if raw is not None and want_subgroups:
                item = self._listing_item(ListingKind.SUBGROUP, raw)
                if item:
                    yield item
            if not want_projects:
                continue
            for project in self._fetch_projects(node):
                if not isinstance(project, dict):
                    logger.warning(f"Skipping project entry of {node.id}: not a JSON object")
                    continue
                item = self._listing_item(ListingKind.PROJECT, project)
                if item:
                    yield item

    @staticmethod
    def _listing_item(kind: ListingKind, raw: Dict[str, Any]) -> Optional[ListingItem]:
        name = display_name(raw)
        if name is None or raw.get("id") is None:
            return None
        return ListingItem(kind, str(raw["id"]), name)
