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
Fan-in collection of per-host units of work.

collect() starts one daemon thread per URL, each of which runs a unit and puts
its single outcome on a shared queue. The caller blocks until every unit has
reported (or the phase deadline expires) and receives the full batch in
arrival order. Units that miss the deadline are replaced by a synthesized
outcome so the batch always holds exactly one outcome per URL.
"""

import logging
import queue
import threading
import time
from queue import Queue
from typing import Callable, List, Optional, Sequence, Set, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fallback = Callable[[str, Exception], T]


class UnitTimeoutError(RuntimeError):
    """Raised (or stored in an outcome) when a unit misses the phase deadline."""

    def __init__(self, message: str, url: Optional[str] = None, deadline: Optional[float] = None):
        super().__init__(message)
        self.url = url
        self.deadline = deadline


def _run_unit(
    index: int,
    url: str,
    unit: Callable[[str], T],
    result_queue: "Queue[Tuple[int, Optional[T], Optional[Exception]]]",
) -> None:
    """Thread target: run one unit and deliver exactly one queue item."""
    try:
        outcome = unit(url)
    except Exception as e:  # pylint: disable=broad-exception-caught
        result_queue.put((index, None, e))
        return
    result_queue.put((index, outcome, None))


def collect(
    urls: Sequence[str],
    unit: Callable[[str], T],
    deadline: Optional[float] = None,
    fallback: Optional[Fallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[T]:
    """
    Run ``unit`` for every URL concurrently and gather one outcome per URL.

    Args:
        urls: URLs to process; duplicates are processed independently
        unit: Callable producing one outcome for one URL
        deadline: Seconds to wait for the whole batch (None waits forever)
        fallback: Builds an outcome for a URL whose unit raised or missed
                  the deadline; without it those failures are raised
        cancel_event: Set when the deadline expires so running units can stop

    Returns:
        List with exactly ``len(urls)`` outcomes in completion order

    Raises:
        UnitTimeoutError: If the deadline expires and no fallback is given
        Exception: Whatever a unit raised, when no fallback is given
    """
    result_queue: "Queue[Tuple[int, Optional[T], Optional[Exception]]]" = queue.Queue()
    for index, url in enumerate(urls):
        thread = threading.Thread(
            target=_run_unit,
            args=(index, url, unit, result_queue),
            name=f"webdash-unit-{index}",
            daemon=True,
        )
        thread.start()

    outcomes: List[T] = []
    pending: Set[int] = set(range(len(urls)))
    expires_at = time.monotonic() + deadline if deadline is not None else None

    while pending:
        wait = None
        if expires_at is not None:
            wait = expires_at - time.monotonic()
            if wait <= 0:
                break
        try:
            index, outcome, error = result_queue.get(timeout=wait)
        except queue.Empty:
            break
        pending.discard(index)
        if error is not None:
            logger.error("Unit for %s raised: %s", urls[index], error)
            if fallback is None:
                raise error
            outcome = fallback(urls[index], error)
        outcomes.append(outcome)  # type: ignore[arg-type]

    if pending:
        if cancel_event is not None:
            cancel_event.set()
        for index in sorted(pending):
            timeout_error = UnitTimeoutError(
                f"no result for {urls[index]} within {deadline:.1f}s", url=urls[index], deadline=deadline
            )
            logger.warning("%s", timeout_error)
            if fallback is None:
                raise timeout_error
            outcomes.append(fallback(urls[index], timeout_error))

    return outcomes
