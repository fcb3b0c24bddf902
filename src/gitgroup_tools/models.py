#!/usr/bin/env python3
"""
Data records shared by the resolver, collector and dispatcher.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class EntityKind(str, Enum):
    """Kind of account that owns repositories."""

    GROUP = "group"
    USER = "user"
    ORGANIZATION = "organization"
    UNKNOWN = "unknown"


class ListingKind(str, Enum):
    """Prefix used on listing output lines."""

    PROJECT = "Project"
    SUBGROUP = "Subgroup"


@dataclass(frozen=True)
class EntityRef:
    """A group, user or organization on one platform."""

    platform_tag: str
    id: str
    kind: EntityKind = EntityKind.UNKNOWN

    def with_kind(self, kind: EntityKind) -> 'EntityRef':
        return EntityRef(self.platform_tag, self.id, kind)


@dataclass(frozen=True)
class SubgroupRef:
    """A GitLab subgroup waiting to be expanded."""

    platform_tag: str
    id: str


@dataclass(frozen=True)
class RepoDescriptor:
    """
    One repository discovered during traversal.

    Attributes:
        clone_url: SSH or HTTP clone URL, never empty
        namespace_path: Full path of the owning GitLab namespace, empty on GitHub
    """

    clone_url: str
    namespace_path: str = ""

    def __post_init__(self):
        if not self.clone_url:
            raise ValueError("clone_url must not be empty")

    @property
    def repo_name(self) -> str:
        """Repository name taken from the last path segment of the clone URL."""
        tail = self.clone_url.rstrip('/')
        # scp-like ssh URLs (git@host:group/repo.git) have no slash before the path
        tail = tail.rsplit('/', 1)[-1].rsplit(':', 1)[-1]
        if tail.endswith('.git'):
            tail = tail[:-len('.git')]
        return tail

    def to_line(self) -> str:
        """Render as a '<clone_url>|<namespace_path>' stream line."""
        return f"{self.clone_url}|{self.namespace_path}"

    @classmethod
    def from_line(cls, line: str) -> 'RepoDescriptor':
        """Parse a '<clone_url>|<namespace_path>' stream line."""
        clone_url, _, namespace_path = line.strip().partition('|')
        return cls(clone_url=clone_url, namespace_path=namespace_path)


@dataclass(frozen=True)
class ListingItem:
    """One line of listing output."""

    kind: ListingKind
    id: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind.value} - {self.id} - {self.name}"


@dataclass(frozen=True)
class CloneTask:
    """A single clone to perform."""

    source_url: str
    destination_path: Path


@dataclass
class CloneOutcome:
    """Result of running one CloneTask."""

    task: CloneTask
    success: bool
    exit_code: int = 0
    error: Optional[str] = None


@dataclass
class DispatchResult:
    """Per-task outcomes of a dispatch run."""

    outcomes: List[CloneOutcome] = field(default_factory=list)
    aborted: bool = False

    @property
    def succeeded(self) -> List[CloneOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[CloneOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def ok(self) -> bool:
        return not self.aborted and not self.failed
