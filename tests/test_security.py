#!/usr/bin/env python3
"""
Test suite for request validation and path containment
"""
import os
import tempfile
import unittest
from pathlib import Path

from minihttpd.core.http_parser import Request
from minihttpd.core.router import Route, RouteMatch
from minihttpd.features.security import (
    PathOutsideRootError,
    resolve_within_root,
    validate_request,
)


class TestValidateRequest(unittest.TestCase):
    def test_plain_routes_need_nothing(self):
        """Root, echo and unknown routes accept any request"""
        request = Request('DELETE', '/')
        for match in (RouteMatch(Route.ROOT), RouteMatch(Route.ECHO, 'x'), RouteMatch(Route.NOT_FOUND)):
            with self.subTest(route=match.route):
                self.assertIsNone(validate_request(request, match))

    def test_user_agent_required(self):
        match = RouteMatch(Route.USER_AGENT)
        self.assertEqual(validate_request(Request('GET', '/user-agent'), match), 'Missing User-Agent header')
        request = Request('GET', '/user-agent', headers={'user-agent': 'curl/8.0'})
        self.assertIsNone(validate_request(request, match))

    def test_post_requires_content_length(self):
        match = RouteMatch(Route.FILES, 'foo')
        self.assertEqual(validate_request(Request('POST', '/files/foo'), match), 'Missing content length')
        request = Request('POST', '/files/foo', headers={'content-length': '3'}, body=b'abc')
        self.assertIsNone(validate_request(request, match))

    def test_get_file_needs_no_content_length(self):
        self.assertIsNone(validate_request(Request('GET', '/files/foo'), RouteMatch(Route.FILES, 'foo')))

    def test_invalid_content_length(self):
        match = RouteMatch(Route.FILES, 'foo')
        for value, message in (('-1', 'Invalid content length'), ('abc', 'Invalid content length header')):
            with self.subTest(value=value):
                request = Request('POST', '/files/foo', headers={'content-length': value})
                self.assertEqual(validate_request(request, match), message)

    def test_suspicious_file_names(self):
        request = Request('GET', '/files/x')
        self.assertEqual(
            validate_request(request, RouteMatch(Route.FILES, 'foo%00.txt')), 'Invalid path character'
        )
        self.assertEqual(
            validate_request(request, RouteMatch(Route.FILES, 'a' * 300)), 'Path segment too long'
        )


class TestResolveWithinRoot(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()

    def tearDown(self):
        self._tmp.cleanup()

    def test_simple_name(self):
        self.assertEqual(resolve_within_root(self.root, 'foo'), self.root / 'foo')

    def test_nested_name(self):
        self.assertEqual(resolve_within_root(self.root, 'a/b/c.txt'), self.root / 'a' / 'b' / 'c.txt')

    def test_dotdot_inside_root_is_allowed(self):
        self.assertEqual(resolve_within_root(self.root, 'a/../foo'), self.root / 'foo')

    def test_traversal_rejected(self):
        for name in ('../foo', '../../etc/passwd', 'a/../../foo', '/etc/passwd', '..', '.', 'a/..'):
            with self.subTest(name=name):
                with self.assertRaises(PathOutsideRootError):
                    resolve_within_root(self.root, name)

    def test_symlink_escape_rejected(self):
        outside = tempfile.TemporaryDirectory()
        self.addCleanup(outside.cleanup)
        os.symlink(outside.name, self.root / 'link')
        with self.assertRaises(PathOutsideRootError):
            resolve_within_root(self.root, 'link/secret')

    def test_status_code(self):
        self.assertEqual(PathOutsideRootError.status_code, 403)


if __name__ == '__main__':
    unittest.main()
