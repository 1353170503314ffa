"""MCP server exporting sigrok session files as CSV or gnuplot text.

Loads .sr captures, runs them through a streaming output format and keeps
the result so clients can page through it. Uses stdio transport.

Usage:
    python -m sigrok_text_output.server
    # or via the entry point:
    sigrok-text-output
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP, Context

from sigrok_text_output.export_store import ExportStore, ExportNotFoundError
from sigrok_text_output.formats import list_output_formats as _list_formats
from sigrok_text_output.formats import transcode_to_text
from sigrok_text_output.formatters import format_export_window, summarize_export
from sigrok_text_output.output import OutputError
from sigrok_text_output.session_file import SessionFileError, load_session

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan — initializes and tears down the ExportStore
# ---------------------------------------------------------------------------


@dataclass
class AppContext:
    store: ExportStore


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    store = ExportStore()
    try:
        yield AppContext(store=store)
    finally:
        store.cleanup()


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "sigrok-text-output",
    instructions=(
        "Converts sigrok .sr session files to CSV or gnuplot text. "
        "Use export_session to convert a capture; it returns an export ID "
        "(e.g. exp_001) and a per-channel summary. Use get_export_rows to "
        "page through the rows of an export."
    ),
    lifespan=app_lifespan,
)


def _get_store(ctx: Context) -> ExportStore:
    """Extract the ExportStore from the lifespan context."""
    return ctx.request_context.lifespan_context.store


def export_file(
    input_file: str,
    output_format: str,
    channels: str | None = None,
    chunk_samples: int | None = None,
) -> tuple[str, int]:
    """Convert a .sr file to text. Returns (text, num_samples)."""
    session = load_session(input_file, channels=channels)
    text = transcode_to_text(
        output_format,
        session.device,
        session.packets(chunk_samples=chunk_samples),
    )
    return text, session.num_samples


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def list_output_formats() -> str:
    """List the text formats captures can be exported to."""
    formats = _list_formats()
    lines = [f"Available output formats ({len(formats)}):"]
    for fmt in formats:
        lines.append(f"  {fmt['id']:<10} {fmt['description']}")
    return "\n".join(lines)


@mcp.tool()
async def export_session(
    ctx: Context,
    input_file: str,
    output_format: str = "csv",
    channels: str | None = None,
    chunk_samples: int | None = None,
    description: str = "",
) -> str:
    """Convert a sigrok .sr session file to CSV or gnuplot text.

    Args:
        input_file: Path to a .sr file saved by sigrok-cli or PulseView.
        output_format: "csv" (one row per sample) or "gnuplot" (sample
                       counter column, unchanged samples collapsed).
        channels: Optional channel filter — e.g. "D0,D3" or "0-3".
        chunk_samples: Optional packet size in samples; by default each
                       data chunk of the file is one packet.
        description: Optional label for this export.
    """
    store = _get_store(ctx)
    loop = asyncio.get_event_loop()
    try:
        text, num_samples = await loop.run_in_executor(
            None, export_file, input_file, output_format, channels, chunk_samples
        )
    except (SessionFileError, OutputError, ValueError) as e:
        logger.warning("Export of %s failed: %s", input_file, e)
        return f"Export failed: {e}"

    export_id = store.new_export(
        source=input_file,
        output_format=output_format,
        text=text,
        num_samples=num_samples,
        description=description,
    )
    info = store.get(export_id)

    parts = [
        f"Export saved as {export_id}",
        f"  Source: {input_file}",
        f"  Format: {output_format} ({info.num_lines} lines)",
    ]
    if channels:
        parts.append(f"  Channels: {channels}")
    if description:
        parts.append(f"  Description: {description}")
    parts.append("")
    parts.append(summarize_export(text, output_format))
    parts.append("")
    parts.append(
        f'Use get_export_rows with export_id="{export_id}" to read the rows.'
    )
    return "\n".join(parts)


@mcp.tool()
async def get_export_rows(
    ctx: Context,
    export_id: str,
    start_row: int = 0,
    num_rows: int = 1000,
    include_header: bool = True,
) -> str:
    """Get a window of rows from an export.

    Args:
        export_id: ID from a previous export (e.g. "exp_001").
        start_row: Offset into the data rows (0-indexed, header excluded).
        num_rows: Number of rows to return (max 5000).
        include_header: Prepend the format's comment header.
    """
    store = _get_store(ctx)
    try:
        info = store.get(export_id)
    except ExportNotFoundError as e:
        return str(e)

    num_rows = max(1, min(num_rows, 5000))
    return format_export_window(
        info.text,
        start_row=start_row,
        window_size=num_rows,
        include_header=include_header,
    )


@mcp.tool()
async def list_exports(ctx: Context) -> str:
    """List all exports from this session."""
    store = _get_store(ctx)
    exports = store.list_exports()

    if not exports:
        return "No exports yet. Use export_session to convert a capture."

    lines = [f"Exports ({len(exports)}):"]
    for exp in exports:
        desc = f" — {exp['description']}" if exp.get("description") else ""
        lines.append(
            f"  {exp['id']}  {exp['format']:<8} {exp['num_lines']:>8} lines  "
            f"{exp['source']}{desc}"
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
