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
Result ordering for presentation.

Both orders put error-free outcomes first and errored outcomes last, then
rank error-free outcomes by a metric in descending order so the slowest hosts
and the largest payloads appear at the top. Python's sort is stable, so equal
keys (and all errored outcomes) keep their collection order.
"""

from typing import Iterable, List, Tuple

from webdash.models import FetchOutcome, PingOutcome


def _ping_sort_key(outcome: PingOutcome) -> Tuple[bool, float]:
    if outcome.error is not None:
        return (True, 0.0)
    return (False, -outcome.avg_rtt)


def _fetch_sort_key(outcome: FetchOutcome) -> Tuple[bool, float]:
    if outcome.error is not None:
        return (True, 0.0)
    return (False, -outcome.body_size_mb)


def rank_ping_outcomes(outcomes: Iterable[PingOutcome]) -> List[PingOutcome]:
    """Order ping outcomes by average RTT (slowest first), errors last."""
    return sorted(outcomes, key=_ping_sort_key)


def rank_fetch_outcomes(outcomes: Iterable[FetchOutcome]) -> List[FetchOutcome]:
    """Order fetch outcomes by body size (largest first), errors last."""
    return sorted(outcomes, key=_fetch_sort_key)
