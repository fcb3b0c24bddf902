#!/usr/bin/env python3
"""
GitGroup Cloner

Discovers every repository owned by a GitLab group (including nested
subgroups) or a GitHub user/organization, then lists or clones them.
"""

import logging
import shutil
from typing import Callable, Iterator, List, Optional, Set

import requests

from .checks import check_dependencies
from .collector import DEFAULT_MAX_DEPTH, LISTING_SCOPES, SCOPE_BOTH, SCOPE_SUBGROUPS, ProjectCollector
from .dispatcher import CloneDispatcher, CloneRunner, GitCloneRunner
from .errors import UnsupportedActionError, UnsupportedSubgroupsError, UnsupportedTypeError
from .fetcher import PaginatedFetcher
from .models import DispatchResult, EntityRef, ListingItem, RepoDescriptor
from .platforms import resolve_platform
from .resolver import EntityResolver

ACTION_LIST = "list"
ACTION_CLONE = "clone"
ACTION_STREAM = "stream"
ACTIONS = (ACTION_LIST, ACTION_CLONE, ACTION_STREAM)

LOGGER_NAME = "gitgroup_tools"


class GroupCloner:
    """Main class for listing and cloning repositories of one group."""

    def __init__(
        self,
        platform: str,
        access_token: str,
        destination_path: Optional[str] = None,
        base_url: Optional[str] = None,
        use_ssh: bool = False,
        flatten: bool = False,
        git_args: str = "",
        threads: int = 1,
        api_timeout: Optional[float] = None,
        clone_timeout: Optional[float] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        gitlab_pagination: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        session: Optional[requests.Session] = None,
        runner: Optional[CloneRunner] = None,
    ):
        """
        Initialize the cloner.

        Args:
            platform: 'gitlab' or 'github'
            access_token: Personal access token for the platform API
            destination_path: Directory receiving the clones (clone action only)
            base_url: API base URL for self-hosted instances
            use_ssh: Clone over SSH instead of HTTPS
            flatten: Place every repository directly below the destination;
                always on for GitHub
            git_args: Extra arguments for ``git clone``
            threads: Number of concurrent clones
            api_timeout: Seconds per HTTP request, None or 0 for no limit
            clone_timeout: Seconds per clone, None or 0 for no limit
            max_depth: Maximum subgroup nesting
            gitlab_pagination: Follow GitLab pagination past the first page
            quiet: Only log warnings and errors
            verbose: Log debug output
            session: Optional requests session
            runner: Optional clone runner replacing ``git clone``
        """
        self.logger = self._setup_logging(quiet, verbose)
        self.platform = resolve_platform(platform, access_token, base_url)
        self.destination_path = destination_path
        self.use_ssh = use_ssh
        self.git_args = git_args
        self.threads = threads

        # GitHub has no namespace hierarchy
        self.flatten = flatten or self.platform.is_github
        if self.platform.is_github and not flatten:
            self.logger.debug("GitHub repositories are always cloned flat")

        self.fetcher = PaginatedFetcher(
            self.platform,
            session=session,
            timeout=api_timeout or None,
            follow_gitlab_pages=gitlab_pagination,
        )
        self.resolver = EntityResolver(self.platform, self.fetcher)
        self.collector = ProjectCollector(
            self.platform,
            self.fetcher,
            resolver=self.resolver,
            use_ssh=use_ssh,
            max_depth=max_depth,
        )
        self.runner = runner or GitCloneRunner(timeout=clone_timeout or None)

        # Statistics
        self.stats = {
            'entities_resolved': 0,
            'repositories_found': 0,
            'repositories_cloned': 0,
            'errors': 0,
        }

    def _setup_logging(self, quiet: bool, verbose: bool) -> logging.Logger:
        """Setup logging configuration."""
        logger = logging.getLogger(LOGGER_NAME)

        # In quiet mode, only show WARNING and ERROR level logs
        if verbose:
            log_level = logging.DEBUG
        elif quiet:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO
        logger.setLevel(log_level)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        for handler in logger.handlers:
            handler.setLevel(log_level)
        return logger

    def check_dependencies(self, which: Callable[[str], Optional[str]] = shutil.which) -> None:
        """Ensure git is installed and the token is accepted."""
        check_dependencies(self.fetcher, which=which)
        self.logger.info(f"Dependencies and {self.platform.tag} token OK")

    def resolve(self, group_identifier: str) -> List[EntityRef]:
        """Resolve a group name or ID to entity refs."""
        refs = self.resolver.resolve(group_identifier)
        self.stats['entities_resolved'] += len(refs)
        return refs

    def iter_repositories(self, group_identifier: str) -> Iterator[RepoDescriptor]:
        """
        Lazily yield every repository of a group, across all matching entities.

        Resolution happens immediately, so a missing group fails before the
        first repository is requested.
        """
        refs = self.resolve(group_identifier)
        return self._repositories(refs)

    def _repositories(self, refs: List[EntityRef]) -> Iterator[RepoDescriptor]:
        seen: Set[str] = set()
        for ref in refs:
            for descriptor in self.collector.iter_projects(ref):
                if descriptor.clone_url in seen:
                    continue
                seen.add(descriptor.clone_url)
                self.stats['repositories_found'] += 1
                yield descriptor

    def list_group(self, group_identifier: str, scope: str = SCOPE_BOTH) -> Iterator[ListingItem]:
        """
        Yield listing items for a group.

        Raises:
            UnsupportedSubgroupsError: Subgroups requested on GitHub, before
                any API call
        """
        if scope not in LISTING_SCOPES:
            raise UnsupportedTypeError(f"Unknown listing scope: '{scope}'")
        if scope in (SCOPE_SUBGROUPS, SCOPE_BOTH) and not self.platform.supports_subgroups:
            raise UnsupportedSubgroupsError(self.platform.tag)
        refs = self.resolve(group_identifier)
        return self._listing(refs, scope)

    def _listing(self, refs: List[EntityRef], scope: str) -> Iterator[ListingItem]:
        for ref in refs:
            yield from self.collector.iter_listing(ref, scope)

    def clone_group(self, group_identifier: str) -> DispatchResult:
        """
        Clone every repository of a group into the destination directory.

        Args:
            group_identifier: Group name or numeric ID

        Returns:
            DispatchResult of the run
        """
        if not self.destination_path:
            raise UnsupportedTypeError("A destination directory is required for cloning")

        dispatcher = CloneDispatcher(
            self.destination_path,
            flatten=self.flatten,
            git_args=self.git_args,
            concurrency=self.threads,
            runner=self.runner,
        )
        repositories = self.iter_repositories(group_identifier)
        self.logger.info(
            f"Cloning {self.platform.tag} group '{group_identifier}' into {dispatcher.destination} "
            f"({self.threads} thread(s))"
        )
        result = dispatcher.dispatch(repositories)

        self.stats['repositories_cloned'] += len(result.succeeded)
        self.stats['errors'] += len(result.failed)
        self._print_statistics(result)
        return result

    def run(
        self,
        action: str,
        group_identifier: str,
        scope: str = SCOPE_BOTH,
        echo: Callable[[str], None] = print,
    ) -> bool:
        """
        Run one action and report whether it fully succeeded.

        Listing and stream lines are written through ``echo``.
        """
        if action == ACTION_LIST:
            for item in self.list_group(group_identifier, scope):
                echo(str(item))
            return True
        if action == ACTION_STREAM:
            for descriptor in self.iter_repositories(group_identifier):
                echo(descriptor.to_line())
            return True
        if action == ACTION_CLONE:
            return self.clone_group(group_identifier).ok
        raise UnsupportedActionError(action)

    def _print_statistics(self, result: DispatchResult) -> None:
        """Log cloning statistics."""
        self.logger.info("=" * 50)
        self.logger.info("CLONING STATISTICS")
        self.logger.info("=" * 50)
        self.logger.info(f"Entities resolved: {self.stats['entities_resolved']}")
        self.logger.info(f"Repositories found: {self.stats['repositories_found']}")
        self.logger.info(f"Repositories cloned: {self.stats['repositories_cloned']}")
        self.logger.info(f"Errors encountered: {self.stats['errors']}")
        if result.aborted:
            self.logger.info("Run stopped at the first failure")
        self.logger.info("=" * 50)

    def close(self) -> None:
        self.fetcher.close()
