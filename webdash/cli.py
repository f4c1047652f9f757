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
Command-line interface for WebDash.

This module contains the main entry point and command-line argument handling.
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

from webdash import __version__
from webdash.config import DEFAULT_CONFIG_PATH, load_config
from webdash.dashboard import PHASE_FETCH, PHASE_PING, DashboardSettings, run_dashboard
from webdash.models import Host
from webdash.ui_render import clear_screen, print_banner, print_phase_notice, print_report

MAX_HOST_THREADS = 128  # Hard cap to avoid unbounded thread growth.

PHASE_NOTICES = {
    PHASE_PING: "Pinging URLs...",
    PHASE_FETCH: "Fetching URL content...",
}


def _configure_logging(log_level: str, log_file: Optional[str]) -> None:
    """Configure logging handlers for CLI execution."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


# Hardcoded defaults for config-overridable fields.
# Applied after config merging for any field still set to None.
_HARDCODED_DEFAULTS: Dict[str, Any] = {
    "ping_count": 3,
    "ping_timeout": 5.0,
    "fetch_timeout": 10.0,
    "fetch_deadline": 30.0,
    "max_redirects": 10,
    "color": False,
    "clear_screen": True,
    "log_level": "WARNING",
    "log_file": None,
}


def _apply_config_to_args(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """
    Overlay config file values onto a parsed argument namespace.

    Only fields that are still ``None`` (i.e. not explicitly set on the CLI)
    are updated.  Config-supplied ``websites`` are applied only when no URLs
    were given on the command line.

    Args:
        args: Namespace returned by ``argparse.ArgumentParser.parse_args()``.
        config: Dictionary of values loaded from the config file.
    """
    for key, value in config.items():
        if key == "websites":
            if not getattr(args, "urls", None):
                args.websites = value
        elif hasattr(args, key) and getattr(args, key) is None:
            setattr(args, key, value)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="WebDash - Ping and fetch a list of websites concurrently and rank the results",
        epilog="Sending ICMP echo requests requires root or CAP_NET_RAW. "
        "Without it every ping row reports a probe error while fetch results are unaffected.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Config file with websites and settings, YAML or INI (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--no-config",
        action="store_true",
        default=False,
        help="Skip loading the config file",
    )
    parser.add_argument(
        "-n",
        "--ping-count",
        type=int,
        default=None,
        help="Number of ICMP echo requests per host (default: 3)",
    )
    parser.add_argument(
        "-t",
        "--ping-timeout",
        type=float,
        default=None,
        help="Seconds to wait for ICMP replies per host (default: 5)",
    )
    parser.add_argument(
        "-T",
        "--fetch-timeout",
        type=float,
        default=None,
        help="Connect/read timeout in seconds for each HTTP request (default: 10)",
    )
    parser.add_argument(
        "-D",
        "--fetch-deadline",
        type=float,
        default=None,
        help="Overall seconds allowed per host fetch including redirects (default: 30)",
    )
    parser.add_argument(
        "-r",
        "--max-redirects",
        type=int,
        default=None,
        help="Maximum number of 301/302 redirects to follow (default: 10)",
    )
    parser.add_argument(
        "-C",
        "--color",
        action="store_true",
        default=None,
        help="Enable colored output (green=ok, yellow=warning, red=error)",
    )
    parser.add_argument(
        "--no-clear",
        dest="clear_screen",
        action="store_false",
        default=None,
        help="Do not clear the terminal before printing the dashboard",
    )
    parser.add_argument(
        "--skip-ping",
        action="store_true",
        default=False,
        help="Skip the ICMP ping phase",
    )
    parser.add_argument(
        "--skip-fetch",
        action="store_true",
        default=False,
        help="Skip the HTTP fetch phase",
    )
    parser.add_argument(
        "--show-redirects",
        dest="show_redirects",
        action="store_true",
        default=True,
        help="Print the redirect details section when any fetch was redirected (default)",
    )
    parser.add_argument(
        "--hide-redirects",
        dest="show_redirects",
        action="store_false",
        help="Do not print the redirect details section",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional log file path for persistent logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("urls", nargs="*", help="URLs to check instead of the configured websites")
    return parser


def handle_options(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse and validate command-line arguments."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    args.websites = [Host(name=url, url=url) for url in args.urls]

    # Load and apply config file unless --no-config was given
    if not args.no_config:
        try:
            config = load_config(args.config)
            _apply_config_to_args(args, config)
        except (ValueError, ImportError) as exc:
            parser.error(str(exc))

    # Apply hardcoded defaults for any config-overridable field still at None
    for field, default in _HARDCODED_DEFAULTS.items():
        if getattr(args, field, None) is None:
            setattr(args, field, default)

    if args.ping_count <= 0:
        parser.error("--ping-count must be a positive integer.")
    if args.ping_timeout <= 0:
        parser.error("--ping-timeout must be a positive number of seconds.")
    if args.fetch_timeout <= 0:
        parser.error("--fetch-timeout must be a positive number of seconds.")
    if args.fetch_deadline <= 0:
        parser.error("--fetch-deadline must be a positive number of seconds.")
    if args.max_redirects < 0:
        parser.error("--max-redirects must be zero or a positive integer.")
    if args.skip_ping and args.skip_fetch:
        parser.error("--skip-ping and --skip-fetch cannot be combined.")
    return args


def build_settings(args: argparse.Namespace) -> DashboardSettings:
    """Translate parsed options into dashboard settings."""
    return DashboardSettings(
        ping_count=args.ping_count,
        ping_timeout=args.ping_timeout,
        fetch_timeout=args.fetch_timeout,
        fetch_deadline=args.fetch_deadline,
        max_redirects=args.max_redirects,
        skip_ping=args.skip_ping,
        skip_fetch=args.skip_fetch,
    )


def run(args: argparse.Namespace) -> int:
    """Run the dashboard with parsed arguments and return the exit status."""
    _configure_logging(getattr(args, "log_level", "WARNING"), getattr(args, "log_file", None))
    hosts: List[Host] = list(args.websites)
    if not hosts:
        print(
            f"Error: No websites configured. Add them to '{args.config}' or pass URLs as arguments.",
            file=sys.stderr,
        )
        return 1
    if len(hosts) > MAX_HOST_THREADS:
        print(
            "Error: Website count exceeds maximum supported threads "
            f"({len(hosts)} > {MAX_HOST_THREADS}). Reduce the website list.",
            file=sys.stderr,
        )
        return 1

    if args.clear_screen:
        clear_screen()
    print_banner(args.color)

    report = run_dashboard(
        hosts,
        build_settings(args),
        on_phase=lambda phase: print_phase_notice(PHASE_NOTICES[phase], args.color),
    )
    print_report(report, args.color, args.show_redirects)
    return 0


def main() -> None:
    """Main entrypoint for the CLI - parses arguments and runs the application."""
    args = handle_options()
    try:
        status = run(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        status = 130
    sys.exit(status)
