"""Space-separated columns output usable by gnuplot.

Column 0 is a running sample counter, followed by one column per enabled
logic channel. Runs of unchanged samples are collapsed: a sample is only
written when it differs from the previous one, or when it is the first or
last sample of its packet. The counter still advances for skipped samples,
so a plot with steps drawn from the counter column is exact.
"""

from __future__ import annotations

import logging

import numpy as np

from sigrok_text_output.output import (
    DerivationError,
    InvalidArgumentError,
    OutputFormat,
    decode_samples,
)
from sigrok_text_output.units import period_string, samplerate_string

logger = logging.getLogger(__name__)

GNUPLOT_HEADER = (
    "# Sample data in space-separated columns format usable by gnuplot\n"
    "#\n"
    "# Generated by: {program} on {timestamp}{comment}"
    "# Period: {period}\n"
    "#\n"
    "# Column\tChannel\n"
    "# {rule}\n"
    "# 0\t\tSample counter (for internal gnuplot purposes)\n"
    "{legend}\n"
)

GNUPLOT_HEADER_COMMENT = "# Comment: Acquisition with {enabled}/{total} channels at {rate}\n"

_RULE = "-" * 77


def _derive(func, samplerate: int) -> str:
    try:
        return func(samplerate)
    except ValueError as e:
        logger.error("%s failed: %s", func.__name__, e)
        raise DerivationError(f"{func.__name__} failed: {e}") from e


class GnuplotOutput(OutputFormat):
    id = "gnuplot"
    description = "Gnuplot"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.samplecount = 0
        self.prev_sample: np.ndarray | None = None

    def build_header(self) -> str:
        enabled = self.enabled_channels()
        samplerate = self.samplerate()

        comment = ""
        period = "unknown"
        if samplerate:
            comment = GNUPLOT_HEADER_COMMENT.format(
                enabled=len(enabled),
                total=len(self.device.channels),
                rate=_derive(samplerate_string, samplerate),
            )
            period = _derive(period_string, samplerate)

        legend = "".join(f"# {i + 1}\t\t{ch.name}\n" for i, ch in enabled)
        return GNUPLOT_HEADER.format(
            program=self.program,
            timestamp=self.timestamp(),
            comment=comment,
            period=period,
            rule=_RULE,
            legend=legend,
        )

    def write_samples(self, samples: np.ndarray, out: list[str]) -> None:
        num_samples, unit_size = samples.shape
        if self.prev_sample is None:
            # The unit size is unknown until the first LOGIC packet.
            self.prev_sample = np.zeros(unit_size, dtype=np.uint8)
        elif self.prev_sample.size != unit_size:
            raise InvalidArgumentError(
                f"Unit size changed from {self.prev_sample.size} to {unit_size} "
                "within one stream."
            )

        counters = self.samplecount + np.arange(1, num_samples + 1, dtype=np.uint64)
        self.samplecount += num_samples
        if num_samples == 0:
            return

        # Every skipped sample equals the last accepted one, so the cache
        # always holds the sample right before the current one.
        previous = np.vstack([self.prev_sample[np.newaxis, :], samples[:-1]])
        keep = np.any(samples != previous, axis=1)
        keep[0] = True
        keep[-1] = True
        self.prev_sample = samples[-1].copy()

        bits = decode_samples(samples[keep], self.channel_index)
        for count, row in zip(counters[keep].tolist(), bits.tolist()):
            out.append(f"{count}\t" + "".join(f"{b} " for b in row) + "\n")

    def release(self) -> None:
        self.samplecount = 0
        self.prev_sample = None
        super().release()
