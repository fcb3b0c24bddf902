#!/usr/bin/env python3
"""
Unit tests for the recursive project collector.
"""

import unittest

from fakes import (
    GITHUB_API, FakeSession, add_gitlab_tree, github_repo, gitlab_group, gitlab_project, projects_url,
    subgroups_url,
)

from gitgroup_tools.collector import ProjectCollector, display_name
from gitgroup_tools.errors import (
    InvalidEntityTypeError, TraversalDepthError, UnsupportedSubgroupsError, UnsupportedTypeError,
)
from gitgroup_tools.fetcher import PaginatedFetcher
from gitgroup_tools.models import EntityKind, EntityRef, RepoDescriptor
from gitgroup_tools.platforms import resolve_platform


def make_collector(tag, session, **kwargs):
    platform = resolve_platform(tag, "token")
    return ProjectCollector(platform, PaginatedFetcher(platform, session=session), **kwargs)


ACME = EntityRef("gitlab", "10", EntityKind.GROUP)


class TestGitLabProjects(unittest.TestCase):
    """Test cases for clone-mode traversal on GitLab."""

    def setUp(self):
        self.session = add_gitlab_tree(FakeSession())
        self.collector = make_collector("gitlab", self.session)

    def test_depth_first_order(self):
        descriptors = list(self.collector.iter_projects(ACME))
        self.assertEqual([d.repo_name for d in descriptors], ["api", "web", "core", "terraform", "cli"])
        self.assertEqual(descriptors[3], RepoDescriptor(
            "https://gitlab.com/acme/platform/infra/terraform.git", "acme/platform/infra"))

    def test_ssh_urls(self):
        collector = make_collector("gitlab", self.session, use_ssh=True)
        first = next(collector.iter_projects(ACME))
        self.assertEqual(first.clone_url, "git@gitlab.com:acme/api.git")

    def test_own_projects_before_subgroups_are_fetched(self):
        stream = self.collector.iter_projects(ACME)
        next(stream)
        next(stream)
        self.assertEqual(self.session.urls, [projects_url(10)])

    def test_repeated_runs_are_identical(self):
        self.assertEqual(list(self.collector.iter_projects(ACME)), list(self.collector.iter_projects(ACME)))
        self.assertEqual(list(self.collector.iter_listing(ACME, "both")), list(self.collector.iter_listing(ACME, "both")))

    def test_cycle_is_not_followed(self):
        self.session.add(subgroups_url(13), [gitlab_group(10, "acme")])
        names = [d.repo_name for d in self.collector.iter_projects(ACME)]
        self.assertEqual(names, ["api", "web", "core", "terraform", "cli"])

    def test_duplicate_repositories_suppressed(self):
        self.session.add(projects_url(12), [gitlab_project(5, "cli", "acme/tools"), gitlab_project(1, "api", "acme")])
        names = [d.repo_name for d in self.collector.iter_projects(ACME)]
        self.assertEqual(names.count("api"), 1)

    def test_depth_bound(self):
        collector = make_collector("gitlab", self.session, max_depth=1)
        with self.assertRaises(TraversalDepthError):
            list(collector.iter_projects(ACME))

    def test_malformed_projects_skipped(self):
        self.session.add(projects_url(12), ["junk", {"id": 9, "name": "no-url"}, gitlab_project(5, "cli", "acme/tools")])
        names = [d.repo_name for d in self.collector.iter_projects(ACME)]
        self.assertEqual(names[-1], "cli")
        self.assertEqual(len(names), 5)

    def test_gitlab_rejects_user_entity(self):
        with self.assertRaises(InvalidEntityTypeError):
            list(self.collector.iter_projects(EntityRef("gitlab", "10", EntityKind.USER)))


class TestGitLabListing(unittest.TestCase):
    """Test cases for listing mode on GitLab."""

    def setUp(self):
        self.session = add_gitlab_tree(FakeSession())
        self.collector = make_collector("gitlab", self.session)

    def lines(self, scope):
        return [str(item) for item in self.collector.iter_listing(ACME, scope)]

    def test_both(self):
        self.assertEqual(self.lines("both"), [
            "Project - 1 - api",
            "Project - 2 - web",
            "Subgroup - 11 - acme/platform",
            "Project - 3 - core",
            "Subgroup - 13 - acme/platform/infra",
            "Project - 4 - terraform",
            "Subgroup - 12 - acme/tools",
            "Project - 5 - cli",
        ])

    def test_subgroups_only_skips_project_calls(self):
        self.assertEqual(self.lines("subgroups"), [
            "Subgroup - 11 - acme/platform",
            "Subgroup - 13 - acme/platform/infra",
            "Subgroup - 12 - acme/tools",
        ])
        self.assertFalse(any("/projects" in url for url in self.session.urls))

    def test_projects_only(self):
        self.assertEqual(len(self.lines("projects")), 5)

    def test_malformed_items_skipped(self):
        self.session.add(projects_url(10), [
            "not-an-object",
            {"id": 20},
            {"name": "nameless-id"},
            {"id": 21, "name": "kept"},
        ])
        self.session.add(subgroups_url(10), [])
        self.assertEqual(self.lines("projects"), ["Project - 21 - kept"])

    def test_unknown_scope(self):
        with self.assertRaises(UnsupportedTypeError):
            self.collector.iter_listing(ACME, "everything")

    def test_display_name_priority(self):
        self.assertEqual(display_name({"full_path": "a/b", "full_name": "A / B", "name": "b"}), "a/b")
        self.assertEqual(display_name({"full_name": "o/r", "name": "r"}), "o/r")
        self.assertEqual(display_name({"full_path": "", "name": "r"}), "r")
        self.assertIsNone(display_name({"id": 1}))


class TestGitHub(unittest.TestCase):
    """Test cases for GitHub traversal."""

    def setUp(self):
        self.session = FakeSession()
        self.collector = make_collector("github", self.session)
        self.session.add(f"{GITHUB_API}/organizations/5/repos?per_page=100", [
            github_repo(100, "acme", "api"),
            github_repo(101, "acme", "web"),
        ])

    def test_org_repositories_are_flat(self):
        descriptors = list(self.collector.iter_projects(EntityRef("github", "5", EntityKind.ORGANIZATION)))
        self.assertEqual(descriptors, [
            RepoDescriptor("https://github.com/acme/api.git", ""),
            RepoDescriptor("https://github.com/acme/web.git", ""),
        ])
        self.assertFalse(any("subgroups" in url for url in self.session.urls))

    def test_unknown_kind_is_classified_first(self):
        self.session.add(f"{GITHUB_API}/user/5", {"id": 5, "type": "Organization"})
        descriptors = list(self.collector.iter_projects(EntityRef("github", "5")))
        self.assertEqual(len(descriptors), 2)
        self.assertEqual(self.session.urls[0], f"{GITHUB_API}/user/5")

    def test_user_repositories(self):
        self.session.add(f"{GITHUB_API}/user/7/repos?per_page=100", [github_repo(1, "octocat", "hello")])
        descriptors = list(self.collector.iter_projects(EntityRef("github", "7", EntityKind.USER)))
        self.assertEqual([d.repo_name for d in descriptors], ["hello"])

    def test_subgroup_listing_fails_without_requests(self):
        for scope in ("subgroups", "both"):
            with self.assertRaises(UnsupportedSubgroupsError):
                self.collector.iter_listing(EntityRef("github", "5", EntityKind.ORGANIZATION), scope)
        self.assertEqual(self.session.calls, [])

    def test_project_listing_uses_full_name(self):
        items = [str(i) for i in self.collector.iter_listing(EntityRef("github", "5", EntityKind.ORGANIZATION), "projects")]
        self.assertEqual(items, ["Project - 100 - acme/api", "Project - 101 - acme/web"])

    def test_group_kind_is_invalid(self):
        with self.assertRaises(InvalidEntityTypeError):
            list(self.collector.iter_projects(EntityRef("github", "5", EntityKind.GROUP)))


if __name__ == '__main__':
    unittest.main(verbosity=2)
