"""Registry of available output formats."""

from __future__ import annotations

from typing import Iterable

from sigrok_text_output.csv_output import CsvOutput
from sigrok_text_output.datafeed import Device, Packet
from sigrok_text_output.gnuplot_output import GnuplotOutput
from sigrok_text_output.output import InvalidArgumentError, OutputFormat, transcode

OUTPUT_FORMATS: dict[str, type[OutputFormat]] = {
    CsvOutput.id: CsvOutput,
    GnuplotOutput.id: GnuplotOutput,
}


def list_output_formats() -> list[dict]:
    """List registered formats as dicts with keys: id, description."""
    return [
        {"id": fmt.id, "description": fmt.description}
        for fmt in OUTPUT_FORMATS.values()
    ]


def create_output(format_id: str, device: Device, **options) -> OutputFormat:
    """Instantiate the output registered as ``format_id`` for ``device``."""
    try:
        cls = OUTPUT_FORMATS[format_id]
    except KeyError:
        available = ", ".join(sorted(OUTPUT_FORMATS))
        raise InvalidArgumentError(
            f"Unknown output format '{format_id}'. Available formats: {available}"
        ) from None
    return cls(device, **options)


def transcode_to_text(
    format_id: str,
    device: Device,
    packets: Iterable[Packet],
    **options,
) -> str:
    """Run a whole packet stream through one output and return all text."""
    output = create_output(format_id, device, **options)
    return "".join(transcode(output, packets))
