"""Read sigrok .sr session archives as a device plus a packet stream.

A session file is a zip archive holding a ``metadata`` INI file and the
packed logic data, split across members named ``logic-1-1``,
``logic-1-2``, ... (or a single ``logic-1`` member in old files):

    [device 1]
    capturefile=logic-1
    total probes=8
    samplerate=1 MHz
    probe1=D0
    probe2=D1
    unitsize=1

Only channels listed as ``probeN`` were enabled during the capture.
"""

from __future__ import annotations

import configparser
import logging
import re
import zipfile
from dataclasses import dataclass, field
from typing import Iterator

from sigrok_text_output.datafeed import (
    Channel,
    ConfigKey,
    Device,
    Logic,
    Packet,
    PacketType,
)
from sigrok_text_output.units import parse_samplerate

logger = logging.getLogger(__name__)


class SessionFileError(Exception):
    """The session file is missing, unreadable or malformed."""


@dataclass
class Session:
    path: str
    device: Device
    unit_size: int
    members: list[str] = field(default_factory=list)

    def packets(self, chunk_samples: int | None = None) -> Iterator[Packet]:
        """Yield HEADER, one LOGIC packet per data chunk, then END.

        If ``chunk_samples`` is given, chunks are re-split into packets of at
        most that many samples.
        """
        if chunk_samples is not None and chunk_samples <= 0:
            raise ValueError(f"chunk_samples must be positive, got {chunk_samples}")
        yield Packet(PacketType.HEADER)
        with zipfile.ZipFile(self.path) as zf:
            for member in self.members:
                data = zf.read(member)
                if chunk_samples is None:
                    yield Packet(PacketType.LOGIC, Logic(data, self.unit_size))
                    continue
                step = chunk_samples * self.unit_size
                for offset in range(0, len(data), step):
                    yield Packet(
                        PacketType.LOGIC,
                        Logic(data[offset:offset + step], self.unit_size),
                    )
        yield Packet(PacketType.END)

    @property
    def num_samples(self) -> int:
        with zipfile.ZipFile(self.path) as zf:
            total = sum(zf.getinfo(m).file_size for m in self.members)
        return total // self.unit_size


def _parse_channel_spec(spec: str, names: list[str]) -> set[str]:
    """Parse a channel spec like 'D0,D3', '0-3' or 'CLK,2' into channel names."""
    selected: set[str] = set()
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if part in names:
            selected.add(part)
        elif re.fullmatch(r"\d+-\d+", part):
            start, end = (int(x) for x in part.split("-", 1))
            selected.update(names[i] for i in range(start, end + 1) if i < len(names))
        elif part.isdigit() and int(part) < len(names):
            selected.add(names[int(part)])
        else:
            raise SessionFileError(
                f"Unknown channel '{part}'. Available channels: {', '.join(names)}"
            )
    return selected


def _data_members(zf: zipfile.ZipFile, capturefile: str) -> list[str]:
    pattern = re.compile(re.escape(capturefile) + r"-(\d+)$")
    numbered = []
    for name in zf.namelist():
        m = pattern.match(name)
        if m:
            numbered.append((int(m.group(1)), name))
    if numbered:
        return [name for _, name in sorted(numbered)]
    if capturefile in zf.namelist():
        return [capturefile]
    return []


def load_session(path: str, channels: str | None = None) -> Session:
    """Load the first device of a .sr file.

    Args:
        path: path to the .sr archive.
        channels: optional channel filter; only these channels stay enabled.
    """
    try:
        zf = zipfile.ZipFile(path)
    except FileNotFoundError as e:
        raise SessionFileError(f"Session file '{path}' not found.") from e
    except zipfile.BadZipFile as e:
        raise SessionFileError(f"'{path}' is not a sigrok session file.") from e

    with zf:
        try:
            raw = zf.read("metadata").decode("utf-8", errors="replace")
        except KeyError as e:
            raise SessionFileError(f"'{path}' has no metadata member.") from e

        meta = configparser.ConfigParser(interpolation=None)
        try:
            meta.read_string(raw)
        except configparser.Error as e:
            raise SessionFileError(f"Invalid metadata in '{path}': {e}") from e

        if not meta.has_section("device 1"):
            raise SessionFileError(f"'{path}' describes no device.")
        dev = meta["device 1"]

        try:
            total = int(dev.get("total probes", "0"))
            samplerate = dev.get("samplerate")
            config = {}
            if samplerate:
                config[ConfigKey.SAMPLERATE] = parse_samplerate(samplerate)
            unit_size = int(dev.get("unitsize", str((total + 7) // 8 or 1)))
        except ValueError as e:
            raise SessionFileError(f"Invalid metadata in '{path}': {e}") from e
        if unit_size <= 0:
            raise SessionFileError(
                f"Invalid metadata in '{path}': unitsize must be positive"
            )

        names = [dev.get(f"probe{i + 1}", f"D{i}") for i in range(total)]
        listed = {i for i in range(total) if f"probe{i + 1}" in dev}
        if channels:
            wanted = _parse_channel_spec(channels, names)
            listed = {i for i in listed if names[i] in wanted}

        members = _data_members(zf, dev.get("capturefile", "logic-1"))

    device = Device(
        channels=[
            Channel(name=names[i], enabled=(i in listed))
            for i in range(total)
        ],
        config=config,
    )
    logger.debug(
        "Loaded %s: %d/%d channels, unit size %d, %d data members",
        path,
        len(listed),
        total,
        unit_size,
        len(members),
    )
    return Session(path=path, device=device, unit_size=unit_size, members=members)
