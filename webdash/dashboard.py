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
Two-phase dashboard run for WebDash.

The ping phase runs to completion (collected and ranked) before the fetch
phase starts. Within a phase every host gets its own concurrent unit. Each
phase is timed on the monotonic clock.
"""

import functools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from webdash.collector import collect
from webdash.fetcher import DEFAULT_FETCH_DEADLINE, DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_REDIRECTS, fetch_url
from webdash.models import FetchOutcome, Host, PingOutcome
from webdash.prober import DEFAULT_PING_COUNT, DEFAULT_PING_TIMEOUT, ping_url, strip_domain
from webdash.ranking import rank_fetch_outcomes, rank_ping_outcomes

logger = logging.getLogger(__name__)

# Grace period added to a unit's own bound before the collector gives up on it.
PHASE_GRACE_SECONDS = 5.0

PHASE_PING = "ping"
PHASE_FETCH = "fetch"


@dataclass(frozen=True)
class DashboardSettings:
    """Tunables for one dashboard run."""

    ping_count: int = DEFAULT_PING_COUNT
    ping_timeout: float = DEFAULT_PING_TIMEOUT
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    fetch_deadline: float = DEFAULT_FETCH_DEADLINE
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    skip_ping: bool = False
    skip_fetch: bool = False


@dataclass(frozen=True)
class DashboardReport:
    """Ranked results of both phases plus their wall-clock durations in seconds."""

    ping_results: List[PingOutcome] = field(default_factory=list)
    fetch_results: List[FetchOutcome] = field(default_factory=list)
    ping_elapsed: float = 0.0
    fetch_elapsed: float = 0.0

    @property
    def has_redirects(self) -> bool:
        return any(result.redirects for result in self.fetch_results)


def run_ping_phase(urls: Sequence[str], settings: DashboardSettings) -> List[PingOutcome]:
    """Probe every URL concurrently and return the ranked outcomes."""
    unit = functools.partial(ping_url, count=settings.ping_count, timeout=settings.ping_timeout)
    outcomes = collect(
        urls,
        unit,
        deadline=settings.ping_timeout + PHASE_GRACE_SECONDS,
        fallback=lambda url, error: PingOutcome(url=url, domain=strip_domain(url), error=error),
    )
    return rank_ping_outcomes(outcomes)


def run_fetch_phase(urls: Sequence[str], settings: DashboardSettings) -> List[FetchOutcome]:
    """Fetch every URL concurrently and return the ranked outcomes."""
    cancel_event = threading.Event()
    unit = functools.partial(
        fetch_url,
        timeout=settings.fetch_timeout,
        max_redirects=settings.max_redirects,
        deadline=settings.fetch_deadline,
        cancel_event=cancel_event,
    )
    outcomes = collect(
        urls,
        unit,
        deadline=settings.fetch_deadline + PHASE_GRACE_SECONDS,
        fallback=lambda url, error: FetchOutcome(url=url, error=error),
        cancel_event=cancel_event,
    )
    return rank_fetch_outcomes(outcomes)


def run_dashboard(
    hosts: Sequence[Host],
    settings: Optional[DashboardSettings] = None,
    on_phase: Optional[Callable[[str], None]] = None,
) -> DashboardReport:
    """
    Run the ping phase and then the fetch phase across all hosts.

    Args:
        hosts: Configured hosts, processed in their own units per phase
        settings: Run tunables (defaults when omitted)
        on_phase: Called with PHASE_PING / PHASE_FETCH before each phase starts

    Returns:
        DashboardReport with one ranked outcome per host per phase that ran
    """
    if settings is None:
        settings = DashboardSettings()
    urls = [host.url for host in hosts]

    ping_results: List[PingOutcome] = []
    ping_elapsed = 0.0
    if not settings.skip_ping:
        if on_phase is not None:
            on_phase(PHASE_PING)
        logger.info("Pinging %d hosts", len(urls))
        start = time.monotonic()
        ping_results = run_ping_phase(urls, settings)
        ping_elapsed = time.monotonic() - start
        logger.info("Ping phase finished in %.3fs", ping_elapsed)

    fetch_results: List[FetchOutcome] = []
    fetch_elapsed = 0.0
    if not settings.skip_fetch:
        if on_phase is not None:
            on_phase(PHASE_FETCH)
        logger.info("Fetching %d hosts", len(urls))
        start = time.monotonic()
        fetch_results = run_fetch_phase(urls, settings)
        fetch_elapsed = time.monotonic() - start
        logger.info("Fetch phase finished in %.3fs", fetch_elapsed)

    return DashboardReport(
        ping_results=ping_results,
        fetch_results=fetch_results,
        ping_elapsed=ping_elapsed,
        fetch_elapsed=fetch_elapsed,
    )
