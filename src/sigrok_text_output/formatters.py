"""Format exported text for LLM consumption.

A full export can run to millions of rows. These functions page through it
and summarize per-channel activity so a client sees a manageable amount.
"""

from __future__ import annotations

import re

_COMMENT_PREFIXES = (";", "#")
_CSV_CHANNELS = re.compile(r"^; Channels \(\d+/\d+\):(.*)$")
_GNUPLOT_LEGEND = re.compile(r"^# (\d+)\t\t(.*)$")


def split_header(text: str) -> tuple[list[str], list[str]]:
    """Split exported text into (comment lines, data rows)."""
    header: list[str] = []
    rows: list[str] = []
    for line in text.splitlines():
        if not rows and (line.startswith(_COMMENT_PREFIXES) or not line.strip()):
            header.append(line)
        elif line.strip():
            rows.append(line)
    return header, rows


def format_export_window(
    text: str,
    start_row: int = 0,
    window_size: int = 1000,
    include_header: bool = True,
) -> str:
    """Return a window of data rows, optionally preceded by the header block."""
    header, rows = split_header(text)
    total = len(rows)

    if total == 0:
        return "No sample rows exported."

    # Clamp window to available data
    start = max(0, min(start_row, total - 1))
    end = min(start + max(1, window_size), total)
    window = rows[start:end]

    parts = [
        f"Rows {start}-{end - 1} of {total} total "
        f"(showing {end - start} rows):"
    ]
    if include_header and header:
        parts.append("\n".join(header).rstrip("\n"))
    parts.append("\n".join(window))
    return "\n".join(parts)


def _channel_names(header: list[str]) -> list[str]:
    names: list[str] = []
    for line in header:
        m = _CSV_CHANNELS.match(line)
        if m:
            return [n.strip() for n in m.group(1).split(",") if n.strip()]
        m = _GNUPLOT_LEGEND.match(line)
        if m and m.group(1) != "0":
            names.append(m.group(2))
    return names


def _parse_row(row: str, output_format: str) -> tuple[int | None, list[str]]:
    if output_format == "gnuplot":
        counter, _, bits = row.partition("\t")
        return int(counter), bits.split()
    return None, row.split(",")


def summarize_export(text: str, output_format: str) -> str:
    """Summarize an export: row count and per-channel high %/edge counts.

    gnuplot rows are deduplicated, so each row is weighted by the number of
    samples it stands for (the gap to the next row's counter).
    """
    header, rows = split_header(text)
    if not rows:
        return "No sample rows to summarize."

    parsed = [_parse_row(row, output_format) for row in rows]
    num_channels = len(parsed[0][1])
    names = _channel_names(header)
    if len(names) != num_channels:
        names = [f"col{i + 1}" for i in range(num_channels)]

    counters = [c for c, _ in parsed]
    if counters[0] is not None:
        weights = [nxt - cur for cur, nxt in zip(counters, counters[1:])] + [1]
        total_samples = counters[-1]
    else:
        weights = [1] * len(parsed)
        total_samples = len(parsed)

    summary_lines = [
        f"Export summary ({output_format}): {len(rows)} rows, "
        f"{total_samples} samples, {num_channels} channels",
        "",
        f"{'Channel':<10} {'High %':>8} {'Edges':>8}   {'Activity'}",
        "-" * 45,
    ]

    for ch, name in enumerate(names):
        values = [bits[ch] for _, bits in parsed]
        high = sum(w for v, w in zip(values, weights) if v == "1")
        edges = sum(1 for a, b in zip(values, values[1:]) if a != b)
        pct_high = high / total_samples * 100 if total_samples else 0
        if edges > 0:
            activity = "active"
        elif high == total_samples:
            activity = "always high"
        else:
            activity = "always low"
        summary_lines.append(
            f"{name:<10} {pct_high:>7.1f}% {edges:>8}   {activity}"
        )

    return "\n".join(summary_lines)
