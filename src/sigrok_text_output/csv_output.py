"""Comma-separated values output.

One row per sample, one column per enabled logic channel:

    ; CSV, generated by sigrok-text-output 0.3.0 on Mon Oct 19 10:00:00 2026
    ; Samplerate: 1000000
    ; Channels (3/8): D0, D2, D5
    1,1,0
    0,1,0
"""

from __future__ import annotations

import numpy as np

from sigrok_text_output.output import OutputFormat, decode_samples


class CsvOutput(OutputFormat):
    id = "csv"
    description = "Comma-separated values (CSV)"

    separator = ","

    def build_header(self) -> str:
        samplerate = self.samplerate() or 0
        names = [ch.name for _, ch in self.enabled_channels()]
        return (
            f"; CSV, generated by {self.program} on {self.timestamp()}"
            f"; Samplerate: {samplerate}\n"
            f"; Channels ({len(names)}/{len(self.device.channels)}):"
            + ",".join(f" {name}" for name in names)
            + "\n"
        )

    def write_samples(self, samples: np.ndarray, out: list[str]) -> None:
        bits = decode_samples(samples, self.channel_index)
        sep = self.separator
        for row in bits.tolist():
            out.append(sep.join("1" if b else "0" for b in row) + "\n")
