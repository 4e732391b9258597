#!/usr/bin/env python3
"""
bwstat Output Formatting

Renders bandwidth samples for the terminal or as JSON.

Single-shot text output is a block:

    Bandwidth
    TotalIn: 5.0MB
    TotalOut: 0B
    RateIn: 343B/s
    RateOut: 0B/s

Polling text output is a header followed by one line that is rewritten
in place (carriage return) for every sample.
"""

import io
import json
import math

from .core.types import BandwidthSample

_SIZE_SUFFIXES = ("B", "kB", "MB", "GB", "TB", "PB", "EB")

POLL_HEADER = "Total Up\t Total Down\t Rate Up\t Rate Down"


def humanize_bytes(size) -> str:
    """
    Format a byte count with SI units.

    Example:
        >>> humanize_bytes(82854982)
        '83MB'
        >>> humanize_bytes(4900000)
        '4.9MB'
    """
    size = int(size)
    if size < 10:
        return f"{size}B"

    exponent = 0
    while exponent < len(_SIZE_SUFFIXES) - 1 and size >= 1000 ** (exponent + 1):
        exponent += 1
    value = math.floor(size / (1000 ** exponent) * 10 + 0.5) / 10
    if value < 10:
        return f"{value:.1f}{_SIZE_SUFFIXES[exponent]}"
    return f"{value:.0f}{_SIZE_SUFFIXES[exponent]}"


def format_stats(sample: BandwidthSample) -> str:
    """Render one sample as the single-shot text block."""
    out = io.StringIO()
    out.write("Bandwidth\n")
    out.write(f"TotalIn: {humanize_bytes(sample.total_in)}\n")
    out.write(f"TotalOut: {humanize_bytes(sample.total_out)}\n")
    out.write(f"RateIn: {humanize_bytes(sample.rate_in)}/s\n")
    out.write(f"RateOut: {humanize_bytes(sample.rate_out)}/s\n")
    return out.getvalue()


def format_poll_line(sample: BandwidthSample) -> str:
    """Render one sample as a rewritable polling line."""
    return (
        "\r"
        f"{humanize_bytes(sample.total_out)} \t\t"
        f" {humanize_bytes(sample.total_in)} \t\t"
        f" {humanize_bytes(sample.rate_out)}/s   \t"
        f" {humanize_bytes(sample.rate_in)}/s     "
    )


def format_json(sample: BandwidthSample, pretty: bool = False) -> str:
    """Render one sample as a JSON document terminated by a newline."""
    if pretty:
        return json.dumps(sample.to_dict(), indent=2) + "\n"
    return json.dumps(sample.to_dict()) + "\n"


class SampleRenderer:
    """
    Stateful renderer for a stream of samples.

    Emits the polling header before the first sample only.
    """

    def __init__(self, polling: bool = False, use_json: bool = False, pretty: bool = False):
        self.polling = polling
        self.use_json = use_json
        self.pretty = pretty
        self._first = True

    def render(self, sample: BandwidthSample) -> str:
        if self.use_json:
            return format_json(sample, self.pretty)

        if not self.polling:
            return format_stats(sample)

        text = format_poll_line(sample)
        if self._first:
            self._first = False
            return POLL_HEADER + "\n" + text
        return text

    def finish(self) -> str:
        """Trailing output once the stream ends."""
        if self.polling and not self.use_json and not self._first:
            return "\n"
        return ""
