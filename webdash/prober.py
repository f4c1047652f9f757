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
Ping functionality for WebDash.

A probe unit turns one configured URL into exactly one PingOutcome. Failures
never escape the unit: they are logged and stored in the outcome's ``error``
field with all counters left at zero.
"""

import logging

from webdash.icmp import ProbeConstructionError, ProbeRunError, resolve_target, send_echo_requests
from webdash.models import PingOutcome

logger = logging.getLogger(__name__)

DEFAULT_PING_COUNT = 3
DEFAULT_PING_TIMEOUT = 5.0

_SCHEME_PREFIXES = ("https://", "http://")
_WWW_PREFIX = "www."


def strip_domain(url: str) -> str:
    """
    Derive the probe domain from a URL by literal prefix stripping.

    A leading ``https://`` or ``http://`` is removed, then a leading ``www.``.
    Each prefix is removed only when something follows it. No URL parsing is
    attempted, so paths and ports are left in place.
    """
    hostname = url
    for prefix in _SCHEME_PREFIXES:
        if len(hostname) > len(prefix) and hostname.startswith(prefix):
            hostname = hostname[len(prefix) :]
            break
    if len(hostname) > len(_WWW_PREFIX) and hostname.startswith(_WWW_PREFIX):
        hostname = hostname[len(_WWW_PREFIX) :]
    return hostname


def ping_url(url: str, count: int = DEFAULT_PING_COUNT, timeout: float = DEFAULT_PING_TIMEOUT) -> PingOutcome:
    """
    Probe the host behind ``url`` with a burst of ICMP echo requests.

    Args:
        url: Configured host URL
        count: Number of echo requests to send
        timeout: Total seconds to wait for replies

    Returns:
        PingOutcome with measured statistics, or with ``error`` set
    """
    domain = strip_domain(url)

    try:
        address = resolve_target(domain)
    except ProbeConstructionError as e:
        logger.warning("Cannot build probe for %s: %s", url, e)
        return PingOutcome(url=url, domain=domain, error=e)

    try:
        stats = send_echo_requests(address, count=count, timeout=timeout)
    except ProbeRunError as e:
        logger.warning("Error pinging %s (%s): %s", domain, address, e)
        return PingOutcome(url=url, domain=domain, error=e)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.warning("Unexpected error pinging %s (%s): %s", domain, address, e)
        error = ProbeRunError(f"echo request to {address} failed: {e}", target=address)
        error.__cause__ = e
        return PingOutcome(url=url, domain=domain, error=error)

    logger.debug(
        "Ping %s: sent=%d recv=%d loss=%.1f%% avg=%.3fs",
        domain,
        stats.packets_sent,
        stats.packets_received,
        stats.packet_loss_percent,
        stats.avg_rtt,
    )
    return PingOutcome(
        url=url,
        domain=domain,
        packets_sent=stats.packets_sent,
        packets_received=stats.packets_received,
        packet_loss_percent=stats.packet_loss_percent,
        avg_rtt=stats.avg_rtt,
    )
