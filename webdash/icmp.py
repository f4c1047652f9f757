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
ICMP echo wrapper for WebDash.

This module resolves probe targets and sends a burst of ICMP echo requests
through scapy, returning aggregate statistics for the burst. Sending raw ICMP
packets requires CAP_NET_RAW (or root) on Linux and Administrator rights on
Windows; without them the send step fails with a ProbeRunError.

Contract:
  - resolve_target(host) -> IPv4 address, or ProbeConstructionError
  - send_echo_requests(address, count, timeout) -> ProbeStatistics, or
    ProbeRunError. Unanswered requests are packet loss, not errors.
"""

import itertools
import logging
import os
import socket
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# Each echo burst gets its own ICMP identifier, so concurrent bursts to the
# same address only match their own replies.
_echo_ids = itertools.count(os.getpid() & 0xFFFF)
_echo_ids_lock = threading.Lock()


class ProbeError(RuntimeError):
    """Base class for failures of an ICMP probe unit."""

    def __init__(self, message: str, target: Optional[str] = None):
        super().__init__(message)
        self.target = target


class ProbeConstructionError(ProbeError):
    """Raised when a probe target cannot be built (invalid or unresolvable hostname)."""


class ProbeRunError(ProbeError):
    """Raised when the echo sequence cannot be sent (privileges, unreachable network)."""


@dataclass(frozen=True)
class ProbeStatistics:
    """Statistics for one burst of echo requests. RTT values are in seconds."""

    packets_sent: int
    packets_received: int
    rtts: Tuple[float, ...] = ()

    @property
    def packet_loss_percent(self) -> float:
        if self.packets_sent <= 0:
            return 0.0
        return (self.packets_sent - self.packets_received) * 100.0 / self.packets_sent

    @property
    def avg_rtt(self) -> float:
        if not self.rtts:
            return 0.0
        return sum(self.rtts) / len(self.rtts)


def _next_echo_id() -> int:
    with _echo_ids_lock:
        return next(_echo_ids) & 0xFFFF


def resolve_target(host: str) -> str:
    """
    Resolve a hostname to the IPv4 address the probe will be sent to.

    Args:
        host: Hostname or IPv4 address literal

    Returns:
        Dotted-quad IPv4 address

    Raises:
        ProbeConstructionError: If the hostname is empty, malformed or
            cannot be resolved
    """
    if not host or any(ch.isspace() for ch in host):
        raise ProbeConstructionError(f"invalid hostname {host!r}", target=host)
    try:
        return socket.gethostbyname(host)
    except (OSError, UnicodeError) as exc:
        raise ProbeConstructionError(f"cannot resolve {host}: {exc}", target=host) from exc


def send_echo_requests(address: str, count: int = 3, timeout: float = 5.0) -> ProbeStatistics:
    """
    Send ``count`` ICMP echo requests to ``address`` and wait for replies.

    The requests are sent back to back and replies are collected until
    ``timeout`` seconds have passed without the burst completing.

    Args:
        address: Resolved IPv4 address
        count: Number of echo requests to send
        timeout: Seconds to wait for replies

    Returns:
        ProbeStatistics for the burst

    Raises:
        ValueError: If count or timeout is not positive
        ImportError: If scapy is not installed
        ProbeRunError: If the packets cannot be sent
    """
    if count <= 0:
        raise ValueError("count must be a positive integer.")
    if timeout <= 0:
        raise ValueError("timeout must be a positive number of seconds.")

    try:
        # pylint: disable=import-outside-toplevel
        from scapy.all import ICMP, IP, sr
        from scapy.error import Scapy_Exception
    except ImportError as exc:
        raise ImportError("scapy is required for ICMP probes. Install it with: pip install scapy") from exc

    packets = IP(dst=address) / ICMP(id=_next_echo_id(), seq=(1, count))
    try:
        answered, _unanswered = sr(packets, timeout=timeout, verbose=0)
    except PermissionError as exc:
        raise ProbeRunError(
            f"insufficient privileges to send ICMP to {address} (need root or CAP_NET_RAW)", target=address
        ) from exc
    except (OSError, Scapy_Exception) as exc:
        raise ProbeRunError(f"echo request to {address} failed: {exc}", target=address) from exc

    rtts = tuple(float(reply.time - query.sent_time) for query, reply in answered)
    logger.debug("ICMP %s: %d/%d replies", address, len(rtts), count)
    return ProbeStatistics(packets_sent=count, packets_received=len(rtts), rtts=rtts)
