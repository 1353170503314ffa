"""Streaming logic-to-text output base.

An output is bound to one device. ``setup()`` selects the enabled logic
channels and prepares the header, ``receive()`` turns one datafeed packet
into text, and ``cleanup()`` drops everything the output holds:

    out = CsvOutput(device)
    out.setup()
    for packet in packets:
        sys.stdout.write(out.receive(packet))
    out.cleanup()

The header is handed over with the first LOGIC packet and never repeated.
Packets other than LOGIC produce no text.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Sequence

import numpy as np

from sigrok_text_output.datafeed import (
    Channel,
    ChannelType,
    ConfigKey,
    Device,
    Packet,
    PacketType,
)
from sigrok_text_output.version import PACKAGE_STRING

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class OutputError(Exception):
    """Generic output error."""


class InvalidArgumentError(OutputError):
    """A required argument (device, packet, payload) is missing or malformed."""


class ConfigurationError(OutputError):
    """The device configuration cannot be transcoded."""


class ResourceError(OutputError):
    """An output buffer could not be allocated."""


class DerivationError(OutputError):
    """A sample rate or period string could not be derived."""


class NotInitializedError(OutputError):
    """The output was used without a successful setup()."""


# ---------------------------------------------------------------------------
# Channel selection and sample decoding
# ---------------------------------------------------------------------------

def select_logic_channels(channels: Sequence[Channel]) -> tuple[int, ...]:
    """Return the full-list positions of all enabled logic channels, in order.

    The position doubles as the channel's bit offset inside a packed sample.
    Raises ConfigurationError if no channel qualifies.
    """
    index = tuple(
        i
        for i, ch in enumerate(channels)
        if ch.type == ChannelType.LOGIC and ch.enabled
    )
    if not index:
        logger.error("No logic channel enabled.")
        raise ConfigurationError("No logic channel enabled.")
    return index


def unpack_samples(data, unit_size: int) -> np.ndarray:
    """View packed sample bytes as a uint8 array of shape [num_samples, unit_size].

    Trailing bytes that do not form a whole sample are ignored.
    """
    if unit_size <= 0:
        raise InvalidArgumentError(f"Invalid unit size {unit_size}.")
    if isinstance(data, np.ndarray):
        buf = np.ascontiguousarray(data).view(np.uint8).reshape(-1)
    else:
        buf = np.frombuffer(data, dtype=np.uint8)
    num_samples = buf.size // unit_size
    return buf[: num_samples * unit_size].reshape(num_samples, unit_size)


def extract_bit(sample, index: int) -> int:
    """Return bit ``index % 8`` of byte ``index // 8`` of one packed sample."""
    return (int(sample[index // 8]) >> (index % 8)) & 1


def decode_samples(samples: np.ndarray, channel_index: Sequence[int]) -> np.ndarray:
    """Extract the selected channels from packed samples.

    Args:
        samples: uint8 array of shape [num_samples, unit_size].
        channel_index: bit positions of the channels to extract.

    Returns:
        uint8 array of shape [num_samples, len(channel_index)] holding 0/1.
    """
    idx = np.asarray(channel_index, dtype=np.intp)
    shifts = (idx % 8).astype(np.uint8)
    return (samples[:, idx // 8] >> shifts) & 1


# ---------------------------------------------------------------------------
# Output base
# ---------------------------------------------------------------------------

class OutputFormat:
    """Base class for streaming text outputs.

    Subclasses set ``id`` and ``description`` and implement
    ``build_header()`` and ``write_samples()``.
    """

    id = ""
    description = ""

    def __init__(
        self,
        device: Device,
        program: str = PACKAGE_STRING,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if device is None:
            raise InvalidArgumentError("An output needs a device.")
        self.device = device
        self.program = program
        self.clock = clock
        self.channel_index: tuple[int, ...] | None = None
        self.header: str | None = None
        self._ready = False

    # -- lifecycle ----------------------------------------------------------

    def setup(self) -> None:
        """Select channels and build the header. Leaves nothing behind on failure."""
        try:
            self.channel_index = select_logic_channels(self.device.channels)
            self.header = self.build_header()
        except Exception:
            self.release()
            raise
        self._ready = True
        logger.debug(
            "%s output: %d/%d channels enabled",
            self.id,
            len(self.channel_index),
            len(self.device.channels),
        )

    def receive(self, packet: Packet) -> str:
        """Return the text for one packet (empty for non-LOGIC packets)."""
        self._check_ready()
        if packet is None:
            raise InvalidArgumentError("No packet given.")
        if packet.type != PacketType.LOGIC:
            return ""

        logic = packet.payload
        if logic is None:
            raise InvalidArgumentError("LOGIC packet without payload.")
        samples = unpack_samples(logic.data, logic.unit_size)
        highest = max(self.channel_index)
        if highest >= logic.unit_size * 8:
            raise InvalidArgumentError(
                f"Unit size {logic.unit_size} cannot hold channel {highest}."
            )

        out = []
        header = self.take_header()
        if header is not None:
            out.append(header)
        try:
            self.write_samples(samples, out)
            return "".join(out)
        except MemoryError as e:
            raise ResourceError(f"{self.id}: output buffer allocation failed") from e

    def cleanup(self) -> None:
        """Release the channel table, pending header and sample cache."""
        self._check_ready()
        self.release()

    def release(self) -> None:
        self.channel_index = None
        self.header = None
        self._ready = False

    def __enter__(self):
        self.setup()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._ready:
            self.cleanup()

    # -- helpers for subclasses ---------------------------------------------

    def take_header(self) -> str | None:
        """Hand over the pending header exactly once."""
        header, self.header = self.header, None
        return header

    def samplerate(self) -> int | None:
        value = self.device.config_get(ConfigKey.SAMPLERATE)
        return int(value) if value is not None else None

    def timestamp(self) -> str:
        """Wall-clock time in ctime() format, newline included."""
        return time.ctime(self.clock()) + "\n"

    def enabled_channels(self) -> list[tuple[int, Channel]]:
        return [(i, self.device.channels[i]) for i in self.channel_index]

    def _check_ready(self) -> None:
        if not self._ready:
            raise NotInitializedError(
                f"{self.id or type(self).__name__} output used before setup()."
            )

    # -- format specific ----------------------------------------------------

    def build_header(self) -> str:
        raise NotImplementedError

    def write_samples(self, samples: np.ndarray, out: list[str]) -> None:
        raise NotImplementedError


def transcode(output: OutputFormat, packets: Iterable[Packet]) -> Iterable[str]:
    """Drive ``output`` over a packet stream, yielding each non-empty chunk."""
    output.setup()
    try:
        for packet in packets:
            text = output.receive(packet)
            if text:
                yield text
    finally:
        output.cleanup()
