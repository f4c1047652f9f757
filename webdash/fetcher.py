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
HTTP fetch functionality for WebDash.

A fetch unit turns one configured URL into exactly one FetchOutcome. Redirects
(301/302 only) are followed by hand so every ``Location`` value can be
recorded. Each unit is bounded three ways: a per-request socket timeout, a
maximum redirect hop count and an overall deadline that is also checked
between body chunks. A shared cancellation event stops the unit early.
"""

import logging
import threading
import time
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import requests

from webdash import __version__
from webdash.models import FetchOutcome, body_size_mb

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_FETCH_DEADLINE = 30.0
DEFAULT_MAX_REDIRECTS = 10
REDIRECT_STATUS_CODES = frozenset((301, 302))
BODY_CHUNK_SIZE = 64 * 1024
USER_AGENT = f"webdash/{__version__}"


class FetchError(RuntimeError):
    """Base class for failures of an HTTP fetch unit."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class FetchRequestError(FetchError):
    """Raised when a GET fails at the initial request or at any redirect hop."""


class FetchBodyReadError(FetchError):
    """Raised when the final response body cannot be read."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, url)
        self.status_code = status_code


class TooManyRedirectsError(FetchError):
    """Raised when a redirect chain is longer than the configured maximum."""

    def __init__(self, message: str, url: Optional[str] = None, hops: int = 0):
        super().__init__(message, url)
        self.hops = hops


class FetchTimeoutError(FetchError):
    """Raised when a fetch unit runs past its deadline or is cancelled."""


def _check_deadline(url: str, expires_at: Optional[float], cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise FetchTimeoutError(f"fetch of {url} was cancelled", url=url)
    if expires_at is not None and time.monotonic() >= expires_at:
        raise FetchTimeoutError(f"fetch of {url} exceeded its deadline", url=url)


def _request_timeout(timeout: float, expires_at: Optional[float]) -> float:
    """Clamp the per-request timeout so a request cannot outlive the unit deadline."""
    if expires_at is None:
        return timeout
    return max(0.001, min(timeout, expires_at - time.monotonic()))


def _get(session: requests.Session, target: str, timeout: float) -> requests.Response:
    try:
        return session.get(target, allow_redirects=False, timeout=timeout, stream=True)
    except requests.RequestException as e:
        raise FetchRequestError(f"GET {target} failed: {e}", url=target) from e


def _content_length(response: requests.Response) -> Optional[int]:
    try:
        return int(response.headers.get("Content-Length", ""))
    except ValueError:
        return None


def _read_body(
    response: requests.Response,
    url: str,
    expires_at: Optional[float],
    cancel_event: Optional[threading.Event],
) -> int:
    """
    Consume the whole response body and return its length in bytes.

    The deadline is checked before each read. Once the advertised
    Content-Length has arrived the body is complete and the rest of the
    stream is drained without further checks.
    """
    expected = _content_length(response)
    chunks = response.iter_content(chunk_size=BODY_CHUNK_SIZE)
    length = 0
    try:
        while expected is None or length < expected:
            _check_deadline(url, expires_at, cancel_event)
            chunk = next(chunks, None)
            if chunk is None:
                return length
            length += len(chunk)
        length += sum(len(chunk) for chunk in chunks)
    except requests.RequestException as e:
        raise FetchBodyReadError(
            f"reading body of {response.url or url} failed: {e}", url=url, status_code=response.status_code
        ) from e
    return length


def _follow_redirects(
    session: requests.Session,
    url: str,
    redirects: List[str],
    timeout: float,
    max_redirects: int,
    expires_at: Optional[float],
    cancel_event: Optional[threading.Event],
) -> Tuple[int, int]:
    """
    GET ``url`` and follow 301/302 responses until a final response arrives.

    Appends each ``Location`` value to ``redirects`` as it is followed, so the
    caller keeps the partial chain when a later hop fails.

    Returns:
        Tuple of (final status code, body length in bytes)
    """
    target = url
    while True:
        _check_deadline(url, expires_at, cancel_event)
        with _get(session, target, _request_timeout(timeout, expires_at)) as response:
            if response.status_code not in REDIRECT_STATUS_CODES:
                length = _read_body(response, url, expires_at, cancel_event)
                return response.status_code, length

            location = response.headers.get("Location")
            if not location:
                raise FetchRequestError(
                    f"{response.status_code} response from {target} has no Location header", url=target
                )
            if len(redirects) >= max_redirects:
                raise TooManyRedirectsError(
                    f"more than {max_redirects} redirects starting at {url}", url=url, hops=len(redirects)
                )
            redirects.append(location)
            # Relative locations resolve against the URL that produced them.
            target = urljoin(target, location)
            logger.debug("Redirect %d for %s: %s", len(redirects), url, location)


def fetch_url(
    url: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
    deadline: Optional[float] = DEFAULT_FETCH_DEADLINE,
    cancel_event: Optional[threading.Event] = None,
    session: Optional[requests.Session] = None,
) -> FetchOutcome:
    """
    Fetch ``url`` and measure the final response after following redirects.

    Args:
        url: Configured host URL
        timeout: Per-request connect/read timeout in seconds
        max_redirects: Maximum number of 301/302 hops to follow
        deadline: Overall seconds allowed for the unit (None for no limit)
        cancel_event: Event that aborts the unit when set
        session: Optional requests session; a private one is created and
                 closed when omitted

    Returns:
        FetchOutcome with status and body size, or with ``error`` set and
        the redirects followed before the failure
    """
    redirects: List[str] = []
    expires_at = time.monotonic() + deadline if deadline is not None else None
    own_session = session is None
    if session is None:
        session = requests.Session()
        session.headers["User-Agent"] = USER_AGENT

    try:
        status_code, length = _follow_redirects(
            session, url, redirects, timeout, max_redirects, expires_at, cancel_event
        )
    except FetchError as e:
        logger.warning("Error fetching %s: %s", url, e)
        return FetchOutcome(url=url, redirects=tuple(redirects), error=e)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.warning("Unexpected error fetching %s: %s", url, e)
        error = FetchRequestError(f"GET {url} failed: {e}", url=url)
        error.__cause__ = e
        return FetchOutcome(url=url, redirects=tuple(redirects), error=error)
    finally:
        if own_session:
            session.close()

    logger.debug("Fetched %s: status=%d bytes=%d redirects=%d", url, status_code, length, len(redirects))
    return FetchOutcome(
        url=url,
        status_code=status_code,
        body_length_bytes=length,
        body_size_mb=body_size_mb(length),
        redirects=tuple(redirects),
    )
