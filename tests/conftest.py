"""Shared fixtures: devices, packets and .sr session archives."""

import time
import zipfile

import pytest

from sigrok_text_output.datafeed import (
    Channel,
    ChannelType,
    ConfigKey,
    Device,
    Logic,
    Packet,
    PacketType,
)

PROGRAM = "test-program 1.0"
EPOCH = 0.0


@pytest.fixture
def ctime_line():
    """ctime() of the fixed test clock, as written into headers."""
    return time.ctime(EPOCH) + "\n"


@pytest.fixture
def output_options():
    return {"program": PROGRAM, "clock": lambda: EPOCH}


def make_device(num_channels=8, enabled=None, samplerate=1_000_000):
    """Device with D0..Dn logic channels; ``enabled`` is a set of indices."""
    channels = [
        Channel(
            name=f"D{i}",
            enabled=(enabled is None or i in enabled),
        )
        for i in range(num_channels)
    ]
    config = {}
    if samplerate is not None:
        config[ConfigKey.SAMPLERATE] = samplerate
    return Device(channels=channels, config=config)


def logic_packet(data, unit_size=1):
    return Packet(PacketType.LOGIC, Logic(bytes(data), unit_size))


@pytest.fixture
def device():
    return make_device(enabled={0, 2, 5})


@pytest.fixture
def mixed_device():
    """Logic and analog channels interleaved."""
    return Device(
        channels=[
            Channel(name="CLK"),
            Channel(name="VCC", type=ChannelType.ANALOG),
            Channel(name="DATA"),
            Channel(name="CS", enabled=False),
        ],
    )


@pytest.fixture
def make_sr_file(tmp_path):
    """Factory writing a .sr archive; returns its path."""

    def _make(
        chunks,
        probes=("D0", "D1", "D2", "D3"),
        total_probes=8,
        samplerate="1 MHz",
        unitsize=1,
        name="capture.sr",
        metadata=None,
    ):
        if metadata is None:
            lines = [
                "[global]",
                "sigrok version=0.5.2",
                "",
                "[device 1]",
                "capturefile=logic-1",
                f"total probes={total_probes}",
            ]
            if samplerate is not None:
                lines.append(f"samplerate={samplerate}")
            lines.append("total analog=0")
            for i, probe in enumerate(probes):
                if probe is not None:
                    lines.append(f"probe{i + 1}={probe}")
            lines.append(f"unitsize={unitsize}")
            metadata = "\n".join(lines) + "\n"

        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("version", "2")
            zf.writestr("metadata", metadata)
            for i, chunk in enumerate(chunks):
                zf.writestr(f"logic-1-{i + 1}", bytes(chunk))
        return str(path)

    return _make
