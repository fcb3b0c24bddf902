"""
GitGroup Tools - Discover and bulk-clone the repositories of a group.

This package provides:
- GroupCloner: List or clone every repository of a GitLab group (recursively
  through subgroups) or of a GitHub user/organization
- ProjectCollector: Lazy depth-first repository discovery
- CloneDispatcher: Sequential or concurrent clone execution
"""

__version__ = "1.0.0"

from .cloner import GroupCloner
from .collector import ProjectCollector
from .config import Config
from .dispatcher import CloneDispatcher
from .platforms import resolve_platform

__all__ = ["GroupCloner", "ProjectCollector", "CloneDispatcher", "Config", "resolve_platform"]
