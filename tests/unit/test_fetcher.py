#!/usr/bin/env python3
# Copyright 2026 icecake0141
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.

"""
Unit tests for webdash.fetcher module.

HTTP traffic is replaced by an in-memory session that serves canned
responses keyed by URL.
"""

import os
import sys
import threading
import unittest
from unittest.mock import patch

import requests

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from webdash.fetcher import (  # noqa: E402
    USER_AGENT,
    FetchBodyReadError,
    FetchRequestError,
    FetchTimeoutError,
    TooManyRedirectsError,
    fetch_url,
)


class FakeResponse:
    """Minimal stand-in for requests.Response used as a context manager."""

    def __init__(self, status_code, body=b"", headers=None, read_error=None):
        self.status_code = status_code
        self.headers = headers or {}
        self.url = ""
        self.closed = False
        self._body = body
        self._read_error = read_error

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start : start + chunk_size]
        if self._read_error is not None:
            raise self._read_error

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True
        return False


class CancellingResponse(FakeResponse):
    """Sets ``cancel_event`` while the chunk at ``cancel_at`` is being read."""

    def __init__(self, body, cancel_event, cancel_at, headers=None):
        super().__init__(200, body, headers)
        self._cancel_event = cancel_event
        self._cancel_at = cancel_at

    def iter_content(self, chunk_size=1):
        for index, start in enumerate(range(0, len(self._body), chunk_size)):
            if index == self._cancel_at:
                self._cancel_event.set()
            yield self._body[start : start + chunk_size]


class FakeSession:
    """Serves FakeResponse objects (or raises exceptions) by requested URL."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        route.url = url
        return route


class TestFetchUrl(unittest.TestCase):
    """Test cases for fetch_url"""

    def test_plain_response(self):
        session = FakeSession({"https://example.com": FakeResponse(200, b"x" * 1_048_576)})

        outcome = fetch_url("https://example.com", session=session)

        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.status_code, 200)
        self.assertEqual(outcome.body_length_bytes, 1_048_576)
        self.assertAlmostEqual(outcome.body_size_mb, 1.0, delta=1e-9)
        self.assertEqual(outcome.redirects, ())

    def test_redirect_chain_is_recorded(self):
        first = FakeResponse(302, b"moved", {"Location": "https://b.example/"})
        second = FakeResponse(301, b"moved again", {"Location": "https://c.example/"})
        final = FakeResponse(200, b"hello")
        session = FakeSession(
            {
                "https://a.example/": first,
                "https://b.example/": second,
                "https://c.example/": final,
            }
        )

        outcome = fetch_url("https://a.example/", session=session)

        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.redirects, ("https://b.example/", "https://c.example/"))
        self.assertEqual(outcome.status_code, 200)
        self.assertEqual(outcome.body_length_bytes, 5)
        self.assertTrue(first.closed and second.closed and final.closed)
        for _url, kwargs in session.calls:
            self.assertFalse(kwargs["allow_redirects"])
            self.assertIn("timeout", kwargs)

    def test_relative_location_resolves_against_current_url(self):
        session = FakeSession(
            {
                "https://a.example/start": FakeResponse(302, headers={"Location": "/login"}),
                "https://a.example/login": FakeResponse(200, b"ok"),
            }
        )

        outcome = fetch_url("https://a.example/start", session=session)

        self.assertEqual(outcome.redirects, ("/login",))
        self.assertEqual(session.calls[1][0], "https://a.example/login")
        self.assertEqual(outcome.status_code, 200)

    def test_other_3xx_is_final(self):
        session = FakeSession({"https://a.example/": FakeResponse(303, b"", {"Location": "https://b.example/"})})

        outcome = fetch_url("https://a.example/", session=session)

        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.status_code, 303)
        self.assertEqual(outcome.redirects, ())
        self.assertEqual(len(session.calls), 1)

    def test_initial_request_failure(self):
        session = FakeSession({"https://down.example/": requests.ConnectionError("refused")})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://down.example/", session=session)

        self.assertIsInstance(outcome.error, FetchRequestError)
        self.assertEqual(outcome.status_code, 0)
        self.assertEqual(outcome.body_length_bytes, 0)
        self.assertEqual(outcome.redirects, ())

    def test_failure_mid_chain_keeps_redirects(self):
        first = FakeResponse(301, headers={"Location": "https://b.example/"})
        session = FakeSession(
            {
                "https://a.example/": first,
                "https://b.example/": requests.Timeout("read timed out"),
            }
        )

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", session=session)

        self.assertIsInstance(outcome.error, FetchRequestError)
        self.assertEqual(outcome.error.url, "https://b.example/")
        self.assertEqual(outcome.redirects, ("https://b.example/",))
        self.assertEqual(outcome.status_code, 0)
        self.assertTrue(first.closed)

    def test_body_read_failure(self):
        response = FakeResponse(200, b"partial", read_error=requests.exceptions.ChunkedEncodingError("broken"))
        session = FakeSession({"https://a.example/": response})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", session=session)

        self.assertIsInstance(outcome.error, FetchBodyReadError)
        self.assertEqual(outcome.error.status_code, 200)
        self.assertEqual(outcome.status_code, 0)
        self.assertEqual(outcome.body_length_bytes, 0)
        self.assertEqual(outcome.body_size_mb, 0.0)
        self.assertTrue(response.closed)

    def test_redirect_loop_is_bounded(self):
        loop = FakeResponse(302, headers={"Location": "https://loop.example/"})
        session = FakeSession({"https://loop.example/": loop})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://loop.example/", max_redirects=3, session=session)

        self.assertIsInstance(outcome.error, TooManyRedirectsError)
        self.assertEqual(outcome.error.hops, 3)
        self.assertEqual(len(outcome.redirects), 3)
        self.assertEqual(len(session.calls), 4)

    def test_zero_max_redirects_rejects_first_redirect(self):
        session = FakeSession({"https://a.example/": FakeResponse(301, headers={"Location": "https://b.example/"})})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", max_redirects=0, session=session)

        self.assertIsInstance(outcome.error, TooManyRedirectsError)
        self.assertEqual(outcome.redirects, ())

    def test_redirect_without_location(self):
        session = FakeSession({"https://a.example/": FakeResponse(302)})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", session=session)

        self.assertIsInstance(outcome.error, FetchRequestError)
        self.assertIn("Location", str(outcome.error))

    def test_cancelled_before_request(self):
        cancel_event = threading.Event()
        cancel_event.set()
        session = FakeSession({})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", cancel_event=cancel_event, session=session)

        self.assertIsInstance(outcome.error, FetchTimeoutError)
        self.assertEqual(session.calls, [])

    @patch("webdash.fetcher.BODY_CHUNK_SIZE", 4)
    def test_cancel_during_final_chunk_keeps_complete_body(self):
        cancel_event = threading.Event()
        body = b"abcdefghij"
        response = CancellingResponse(body, cancel_event, cancel_at=2, headers={"Content-Length": str(len(body))})
        session = FakeSession({"https://a.example/": response})

        outcome = fetch_url("https://a.example/", cancel_event=cancel_event, session=session)

        self.assertTrue(cancel_event.is_set())
        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.status_code, 200)
        self.assertEqual(outcome.body_length_bytes, 10)

    @patch("webdash.fetcher.BODY_CHUNK_SIZE", 4)
    def test_cancel_mid_body_stops_reading(self):
        cancel_event = threading.Event()
        body = b"abcdefghij"
        response = CancellingResponse(body, cancel_event, cancel_at=1, headers={"Content-Length": str(len(body))})
        session = FakeSession({"https://a.example/": response})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", cancel_event=cancel_event, session=session)

        self.assertIsInstance(outcome.error, FetchTimeoutError)
        self.assertEqual(outcome.body_length_bytes, 0)
        self.assertTrue(response.closed)

    def test_expired_deadline(self):
        session = FakeSession({})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", deadline=0.0, session=session)

        self.assertIsInstance(outcome.error, FetchTimeoutError)

    def test_unexpected_exception_is_captured(self):
        session = FakeSession({"https://a.example/": ValueError("bad url")})

        with self.assertLogs("webdash.fetcher", level="WARNING"):
            outcome = fetch_url("https://a.example/", session=session)

        self.assertIsInstance(outcome.error, FetchRequestError)
        self.assertIsInstance(outcome.error.__cause__, ValueError)

    @patch("webdash.fetcher.requests.Session")
    def test_private_session_is_closed(self, mock_session_cls):
        session = mock_session_cls.return_value
        session.get.return_value = FakeResponse(200, b"ok")

        outcome = fetch_url("https://a.example/")

        self.assertEqual(outcome.status_code, 200)
        session.headers.__setitem__.assert_called_with("User-Agent", USER_AGENT)
        session.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
