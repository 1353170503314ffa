"""Human-readable sample rate and period strings."""

from __future__ import annotations

import math
from fractions import Fraction

_FREQUENCY_UNITS = (
    (1_000_000_000, "GHz"),
    (1_000_000, "MHz"),
    (1_000, "kHz"),
    (1, "Hz"),
)

_PERIOD_UNITS = (
    (Fraction(1), "s"),
    (Fraction(1, 1_000), "ms"),
    (Fraction(1, 1_000_000), "us"),
    (Fraction(1, 1_000_000_000), "ns"),
    (Fraction(1, 1_000_000_000_000), "ps"),
)

_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "g": 1_000_000_000}


def _check_rate(samplerate) -> int:
    if isinstance(samplerate, bool) or not hasattr(samplerate, "__index__"):
        raise ValueError(f"Sample rate must be an integer, got {samplerate!r}")
    samplerate = samplerate.__index__()
    if samplerate < 0:
        raise ValueError(f"Sample rate must not be negative, got {samplerate}")
    return samplerate


def samplerate_string(samplerate: int) -> str:
    """Format a sample rate in Hz, e.g. 1000000 -> '1 MHz', 1500 -> '1.5 kHz'."""
    samplerate = _check_rate(samplerate)
    mult, unit = 1, "Hz"
    for mult, unit in _FREQUENCY_UNITS:
        if samplerate >= mult:
            break
    quot, rem = divmod(samplerate, mult)
    if rem == 0:
        return f"{quot} {unit}"
    digits = len(str(mult)) - 1
    frac = f"{rem:0{digits}d}".rstrip("0")
    return f"{quot}.{frac} {unit}"


def period_string(samplerate: int) -> str:
    """Format the duration of one sample at ``samplerate`` Hz, e.g. '1 us'."""
    samplerate = _check_rate(samplerate)
    if samplerate == 0:
        raise ValueError("Cannot derive a period from a sample rate of 0 Hz")
    period = Fraction(1, samplerate)
    scale, unit = _PERIOD_UNITS[-1]
    for scale, unit in _PERIOD_UNITS:
        if period >= scale:
            break
    value = f"{float(period / scale):.3f}".rstrip("0").rstrip(".")
    return f"{value} {unit}"


def parse_samplerate(text: str) -> int:
    """Parse a sample rate string like '1m', '200k', '1 MHz' or '100' into Hz."""
    rate = text.strip().lower()
    if rate.endswith("hz"):
        rate = rate[:-2].strip()
    mult = 1
    for suffix, factor in _MULTIPLIERS.items():
        if rate.endswith(suffix):
            rate, mult = rate[:-1], factor
            break
    value = float(rate) * mult
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Invalid sample rate {text!r}")
    return round(value)
