#!/usr/bin/env python3
"""
Unit tests for the paginated fetcher.
"""

import unittest
from unittest.mock import Mock

import requests

from fakes import GITHUB_API, GITLAB_API, FakeSession

from gitgroup_tools.errors import (
    InvalidJSONError, NotArrayError, NotObjectError, RequestFailedError, UnexpectedStatusError,
)
from gitgroup_tools.fetcher import PaginatedFetcher
from gitgroup_tools.platforms import resolve_platform


def next_link(url):
    return f'<{url}>; rel="next"'


class TestGitHubPagination(unittest.TestCase):
    """Test cases for Link header pagination."""

    def setUp(self):
        self.platform = resolve_platform("github", "ghp_test")
        self.session = FakeSession()
        self.fetcher = PaginatedFetcher(self.platform, session=self.session, timeout=15)
        self.url = f"{GITHUB_API}/organizations/5/repos?per_page=100"
        self.page2 = f"{self.url}&page=2"
        self.page3 = f"{self.url}&page=3"

    def test_three_pages_in_order(self):
        self.session.add(self.url, [{"n": i} for i in range(100)], link=next_link(self.page2))
        self.session.add(self.page2, [{"n": i} for i in range(100, 200)], link=next_link(self.page3))
        self.session.add(self.page3, [{"n": i} for i in range(200, 237)])

        items = self.fetcher.fetch_all(self.url)

        self.assertEqual(len(items), 237)
        self.assertEqual([item["n"] for item in items], list(range(237)))
        self.assertEqual(self.session.urls, [self.url, self.page2, self.page3])

    def test_single_page_without_link_header(self):
        self.session.add(self.url, [{"n": 1}, {"n": 2}])
        self.session.add(self.page2, [{"n": 3}])

        self.assertEqual(self.fetcher.fetch_all(self.url), [{"n": 1}, {"n": 2}])
        self.assertEqual(self.session.urls, [self.url])

    def test_auth_header_and_timeout_sent(self):
        self.session.add(self.url, [])
        self.fetcher.fetch_all(self.url)
        call = self.session.calls[0]
        self.assertEqual(call["headers"], {"Authorization": "token ghp_test"})
        self.assertEqual(call["timeout"], 15)

    def test_error_on_later_page_aborts(self):
        self.session.add(self.url, [{"n": 1}], link=next_link(self.page2))
        self.session.add(self.page2, {"message": "Server Error"}, status=502)

        with self.assertRaises(UnexpectedStatusError) as context:
            self.fetcher.fetch_all(self.url)
        self.assertEqual(context.exception.status_code, 502)
        self.assertIn("Server Error", context.exception.body)


class TestGitLabPagination(unittest.TestCase):
    """GitLab listings stop after the first page unless enabled."""

    def setUp(self):
        self.platform = resolve_platform("gitlab", "glpat-test")
        self.session = FakeSession()
        self.url = f"{GITLAB_API}/groups/10/projects?per_page=100"
        self.page2 = f"{self.url}&page=2"
        self.session.add(self.url, [{"id": 1}], link=next_link(self.page2))
        self.session.add(self.page2, [{"id": 2}])

    def test_first_page_only_by_default(self):
        fetcher = PaginatedFetcher(self.platform, session=self.session)
        self.assertEqual(fetcher.fetch_all(self.url), [{"id": 1}])
        self.assertEqual(self.session.calls[0]["headers"], {"PRIVATE-TOKEN": "glpat-test"})

    def test_follow_pages_when_enabled(self):
        fetcher = PaginatedFetcher(self.platform, session=self.session, follow_gitlab_pages=True)
        self.assertEqual(fetcher.fetch_all(self.url), [{"id": 1}, {"id": 2}])


class TestFetcherErrors(unittest.TestCase):
    """Test cases for payload validation."""

    def setUp(self):
        self.session = FakeSession()
        self.fetcher = PaginatedFetcher(resolve_platform("gitlab", "t"), session=self.session)
        self.url = f"{GITLAB_API}/groups/10/projects?per_page=100"

    def test_unexpected_status(self):
        self.session.add(self.url, text='{"message":"404 Group Not Found"}', status=404)
        with self.assertRaises(UnexpectedStatusError) as context:
            self.fetcher.fetch_all(self.url)
        self.assertEqual(context.exception.status_code, 404)
        self.assertIn("404 Group Not Found", str(context.exception))

    def test_non_200_success_code_is_rejected(self):
        self.session.add(self.url, [], status=204)
        with self.assertRaises(UnexpectedStatusError):
            self.fetcher.fetch_all(self.url)

    def test_invalid_json(self):
        self.session.add(self.url, text="<html>maintenance</html>")
        with self.assertRaises(InvalidJSONError):
            self.fetcher.fetch_all(self.url)

    def test_not_array(self):
        self.session.add(self.url, {"id": 10})
        with self.assertRaises(NotArrayError):
            self.fetcher.fetch_all(self.url)

    def test_fetch_object(self):
        self.session.add(self.url, {"id": 10})
        self.assertEqual(self.fetcher.fetch_object(self.url), {"id": 10})

    def test_fetch_object_rejects_array(self):
        self.session.add(self.url, [{"id": 10}])
        with self.assertRaises(NotObjectError):
            self.fetcher.fetch_object(self.url)

    def test_transport_failure(self):
        session = Mock()
        session.headers = {}
        session.get.side_effect = requests.ConnectionError("connection refused")
        fetcher = PaginatedFetcher(resolve_platform("gitlab", "t"), session=session)

        with self.assertRaises(RequestFailedError) as context:
            fetcher.fetch_all(self.url)
        self.assertIn("connection refused", str(context.exception))


if __name__ == '__main__':
    unittest.main(verbosity=2)
