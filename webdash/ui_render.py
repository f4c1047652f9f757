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
WebDash UI Rendering Module

This module turns a DashboardReport into printable lines: titles, the timing
table, the ping and fetch result tables, and the redirect details section.
Colors are plain ANSI escape sequences and are only emitted when enabled.
"""

import re
import sys
from typing import List, Optional, Sequence, Tuple

from webdash.dashboard import DashboardReport
from webdash.models import FetchOutcome, PingOutcome

ANSI_RESET = "\x1b[0m"
ANSI_BOLD = "\x1b[1m"
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")
ANSI_CLEAR_SCREEN = "\x1b[H\x1b[2J"
STATUS_COLORS = {
    "success": "\x1b[32m",  # Green
    "warning": "\x1b[33m",  # Yellow
    "error": "\x1b[31m",  # Red
    "info": "\x1b[34m",  # Blue
    "header": "\x1b[35m",  # Magenta
    "title": "\x1b[1;97;45m",  # Bold white on magenta
}

APP_TITLE = " Async Web Data Dashboard "
SCREEN_WIDTH = 80
URL_COLUMN_WIDTH = 30
URL_MAX_LENGTH = 27

PING_COLUMNS: Tuple[Tuple[str, int], ...] = (
    ("URL", URL_COLUMN_WIDTH),
    ("Sent", 10),
    ("Received", 10),
    ("Loss %", 10),
    ("Avg Time", 18),
)
FETCH_COLUMNS: Tuple[Tuple[str, int], ...] = (
    ("URL", URL_COLUMN_WIDTH),
    ("Status", 16),
    ("Size (MB)", 12),
    ("Notes", 20),
)
TIMING_COLUMNS: Tuple[Tuple[str, int], ...] = (("Operation", 39), ("Time", 39))


# ============================================================================
# ANSI/Text Utility Functions
# ============================================================================


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return ANSI_ESCAPE_RE.sub("", text)


def visible_len(text: str) -> int:
    """Get the visible length of text (excluding ANSI codes)."""
    return len(strip_ansi(text))


def pad_visible(text: str, width: int) -> str:
    """Pad text to a visible width, preserving ANSI codes."""
    padding = width - visible_len(text)
    if padding <= 0:
        return text
    return f"{text}{' ' * padding}"


def colorize_text(text: str, status: Optional[str], use_color: bool) -> str:
    """Apply color to text based on status."""
    if not use_color or not status:
        return text
    color = STATUS_COLORS.get(status)
    if not color:
        return text
    return f"{color}{text}{ANSI_RESET}"


def truncate_string(text: str, max_len: int) -> str:
    """Shorten text to max_len characters, marking the cut with '...'."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_duration(seconds: float) -> str:
    """Format a duration in milliseconds with two decimals."""
    return f"{seconds * 1000.0:.2f} ms"


def format_elapsed(seconds: float) -> str:
    """Format a phase duration, choosing seconds or milliseconds."""
    if seconds >= 1.0:
        return f"{seconds:.3f}s"
    return f"{seconds * 1000.0:.3f}ms"


# ============================================================================
# Layout Functions
# ============================================================================


def render_title(title: str, use_color: bool, width: int = SCREEN_WIDTH) -> str:
    """Center a title banner within the screen width."""
    padding = max(0, (width - len(title)) // 2)
    return " " * padding + colorize_text(title, "title", use_color)


def box_lines(lines: Sequence[str], width: int) -> List[str]:
    """Surround lines with a rounded box of the given inner width."""
    top = "╭" + "─" * width + "╮"
    bottom = "╰" + "─" * width + "╯"
    body = [f"│{pad_visible(line, width)}│" for line in lines]
    return [top, *body, bottom]


def build_row(cells: Sequence[Tuple[str, int]]) -> str:
    """Join (text, width) cells into one row with one space of cell padding."""
    return "".join(pad_visible(f" {text}", width) for text, width in cells)


def build_header(columns: Sequence[Tuple[str, int]], use_color: bool) -> List[str]:
    """Build a header row plus its underline."""
    cells = [(colorize_text(name, "header", use_color), width) for name, width in columns]
    underline = "".join("─" * width for _, width in columns)
    return [build_row(cells), colorize_text(underline, "header", use_color)]


def _table_width(columns: Sequence[Tuple[str, int]]) -> int:
    return sum(width for _, width in columns)


# ============================================================================
# Section Rendering
# ============================================================================


def render_timing_table(report: DashboardReport, use_color: bool) -> List[str]:
    """Render the per-phase elapsed time table."""
    rows = build_header(TIMING_COLUMNS, use_color)
    (_, op_width), (_, time_width) = TIMING_COLUMNS
    rows.append(build_row([("Ping All URLs", op_width), (format_elapsed(report.ping_elapsed), time_width)]))
    rows.append(build_row([("Fetch All URLs", op_width), (format_elapsed(report.fetch_elapsed), time_width)]))
    return box_lines(rows, _table_width(TIMING_COLUMNS))


def _received_status(result: PingOutcome) -> str:
    if result.packets_received == 0:
        return "error"
    if result.packets_received < result.packets_sent:
        return "warning"
    return "success"


def _loss_status(result: PingOutcome) -> str:
    if result.packet_loss_percent > 50:
        return "error"
    if result.packet_loss_percent > 0:
        return "warning"
    return "success"


def _error_row(url: str, error: Exception, use_color: bool, error_width: int) -> str:
    message = truncate_string(f"Error: {error}", error_width - 1)
    return build_row(
        [
            (truncate_string(url, URL_MAX_LENGTH), URL_COLUMN_WIDTH),
            (colorize_text(message, "error", use_color), error_width),
        ]
    )


def render_ping_table(results: Sequence[PingOutcome], use_color: bool) -> List[str]:
    """Render ranked ping outcomes; errored outcomes show their error message."""
    rows = build_header(PING_COLUMNS, use_color)
    error_width = _table_width(PING_COLUMNS) - URL_COLUMN_WIDTH
    widths = [width for _, width in PING_COLUMNS]
    for result in results:
        if result.error is not None:
            rows.append(_error_row(result.url, result.error, use_color, error_width))
            continue
        rows.append(
            build_row(
                [
                    (truncate_string(result.url, URL_MAX_LENGTH), widths[0]),
                    (str(result.packets_sent), widths[1]),
                    (colorize_text(str(result.packets_received), _received_status(result), use_color), widths[2]),
                    (colorize_text(f"{result.packet_loss_percent:.1f}%", _loss_status(result), use_color), widths[3]),
                    (format_duration(result.avg_rtt), widths[4]),
                ]
            )
        )
    return box_lines(rows, _table_width(PING_COLUMNS))


def _status_cell(status_code: int) -> Tuple[str, str]:
    if 200 <= status_code < 300:
        return str(status_code), "success"
    if 300 <= status_code < 400:
        return f"{status_code} (Redirect)", "warning"
    return str(status_code), "error"


def render_fetch_table(results: Sequence[FetchOutcome], use_color: bool) -> List[str]:
    """Render ranked fetch outcomes with status, size and redirect count."""
    rows = build_header(FETCH_COLUMNS, use_color)
    error_width = _table_width(FETCH_COLUMNS) - URL_COLUMN_WIDTH
    widths = [width for _, width in FETCH_COLUMNS]
    for result in results:
        if result.error is not None:
            rows.append(_error_row(result.url, result.error, use_color, error_width))
            continue
        status_text, status = _status_cell(result.status_code)
        notes = f"{len(result.redirects)} redirects" if result.redirects else ""
        rows.append(
            build_row(
                [
                    (truncate_string(result.url, URL_MAX_LENGTH), widths[0]),
                    (colorize_text(status_text, status, use_color), widths[1]),
                    (f"{result.body_size_mb:.2f}", widths[2]),
                    (notes, widths[3]),
                ]
            )
        )
    return box_lines(rows, _table_width(FETCH_COLUMNS))


def render_redirect_details(results: Sequence[FetchOutcome], use_color: bool) -> List[str]:
    """List every followed redirect, grouped by the URL that started the chain."""
    lines: List[str] = []
    for result in results:
        if not result.redirects:
            continue
        lines.append(colorize_text(f" → Redirects for {result.url}:", "info", use_color))
        for index, location in enumerate(result.redirects, start=1):
            lines.append(f"   {index}. {location}")
        lines.append("")
    return lines


def build_report_lines(report: DashboardReport, use_color: bool, show_redirects: bool = True) -> List[str]:
    """Build every output line for a finished dashboard run."""
    lines = [render_title(" Timing Information ", use_color)]
    lines.extend(render_timing_table(report, use_color))
    lines.append("")
    if report.ping_results:
        lines.append(render_title(" Ping Results ", use_color))
        lines.extend(render_ping_table(report.ping_results, use_color))
        lines.append("")
    if report.fetch_results:
        lines.append(render_title(" HTTP Fetch Results ", use_color))
        lines.extend(render_fetch_table(report.fetch_results, use_color))
        lines.append("")
    if show_redirects and report.has_redirects:
        lines.append(render_title(" Redirect Details ", use_color))
        lines.extend(render_redirect_details(report.fetch_results, use_color))
    return lines


# ============================================================================
# Terminal Output
# ============================================================================


def clear_screen() -> None:
    """Clear the terminal and move the cursor home."""
    if sys.stdout.isatty():
        sys.stdout.write(ANSI_CLEAR_SCREEN)
        sys.stdout.flush()


def print_banner(use_color: bool) -> None:
    """Print the application title banner."""
    print(render_title(APP_TITLE, use_color))
    print()


def print_phase_notice(message: str, use_color: bool) -> None:
    """Print a short progress notice such as ' ⏳ Pinging URLs...'."""
    print(colorize_text(f" ⏳ {message}", "info", use_color), flush=True)


def print_report(report: DashboardReport, use_color: bool, show_redirects: bool = True) -> None:
    """Print the full report to stdout."""
    for line in build_report_lines(report, use_color, show_redirects):
        print(line)
