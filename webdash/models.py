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
Outcome data model for WebDash.

Each concurrent unit of work produces exactly one outcome. Outcomes are frozen
once built: a unit accumulates its measurements in local variables and
constructs the outcome at its single exit point before handing it to the
collector.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class Host:
    """A configured web host. Duplicates are allowed and probed independently."""

    name: str
    url: str


@dataclass(frozen=True)
class PingOutcome:
    """
    Result of one ICMP probe unit.

    When ``error`` is set every numeric field is zero and carries no
    measurement. ``avg_rtt`` is expressed in seconds.
    """

    url: str
    domain: str = ""
    packets_sent: int = 0
    packets_received: int = 0
    packet_loss_percent: float = 0.0
    avg_rtt: float = 0.0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FetchOutcome:
    """
    Result of one HTTP fetch unit.

    ``redirects`` holds each ``Location`` header followed, in order.
    ``status_code`` is the status of the final response after redirects.
    When ``error`` is set, ``status_code`` and both size fields are zero.
    """

    url: str
    status_code: int = 0
    body_length_bytes: int = 0
    body_size_mb: float = 0.0
    redirects: Tuple[str, ...] = field(default_factory=tuple)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def body_size_mb(body_length_bytes: int) -> float:
    """Convert a byte count to megabytes (MiB)."""
    return body_length_bytes / BYTES_PER_MB
