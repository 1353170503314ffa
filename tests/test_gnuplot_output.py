"""Tests for gnuplot_output.py — header, rows and sample deduplication."""

from __future__ import annotations

import pytest

from conftest import PROGRAM, logic_packet, make_device
from sigrok_text_output.gnuplot_output import GnuplotOutput
from sigrok_text_output.output import DerivationError, InvalidArgumentError


def _setup(device, output_options):
    out = GnuplotOutput(device, **output_options)
    out.setup()
    return out


def _rows(text):
    return [line for line in text.splitlines() if line and not line.startswith("#")]


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------

def test_header(device, output_options, ctime_line):
    out = _setup(device, output_options)
    assert out.header == (
        "# Sample data in space-separated columns format usable by gnuplot\n"
        "#\n"
        f"# Generated by: {PROGRAM} on {ctime_line}"
        "# Comment: Acquisition with 3/8 channels at 1 MHz\n"
        "# Period: 1 us\n"
        "#\n"
        "# Column\tChannel\n"
        "# " + "-" * 77 + "\n"
        "# 0\t\tSample counter (for internal gnuplot purposes)\n"
        "# 1\t\tD0\n"
        "# 3\t\tD2\n"
        "# 6\t\tD5\n"
        "\n"
    )


def test_header_fractional_samplerate(output_options):
    out = _setup(make_device(num_channels=2, samplerate=3_000_000), output_options)
    assert "channels at 3 MHz\n" in out.header
    assert "# Period: 333.333 ns\n" in out.header


@pytest.mark.parametrize("samplerate", [None, 0])
def test_header_without_samplerate(output_options, samplerate):
    out = _setup(make_device(num_channels=2, samplerate=samplerate), output_options)
    assert "# Comment:" not in out.header
    assert "# Period: unknown\n" in out.header


def test_underivable_samplerate_fails_setup(output_options):
    out = GnuplotOutput(make_device(samplerate=-1), **output_options)
    with pytest.raises(DerivationError):
        out.setup()
    assert out.header is None
    assert out.channel_index is None


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def test_row_format(device, output_options):
    out = _setup(device, output_options)
    text = out.receive(logic_packet(b"\x05"))
    assert text.endswith("\n1\t1 1 0 \n")


def test_counter_continues_across_packets(device, output_options):
    out = _setup(device, output_options)
    out.receive(logic_packet(b"\x01\x02"))
    assert out.receive(logic_packet(b"\x04\x20")) == "3\t0 1 0 \n4\t0 0 1 \n"
    assert out.samplecount == 4


def test_dedup_three_identical_samples(device, output_options):
    out = _setup(device, output_options)
    text = out.receive(logic_packet(b"\x25\x25\x25"))
    assert _rows(text) == ["1\t1 1 1 ", "3\t1 1 1 "]
    assert out.samplecount == 3


def test_dedup_long_constant_run(device, output_options):
    out = _setup(device, output_options)
    out.receive(logic_packet(b"\x00"))
    text = out.receive(logic_packet(b"\x01" * 5 + b"\x04" * 5))
    assert text == (
        "2\t1 0 0 \n"
        "7\t0 1 0 \n"
        "11\t0 1 0 \n"
    )


def test_two_identical_samples_both_emitted(device, output_options):
    out = _setup(device, output_options)
    text = out.receive(logic_packet(b"\x01\x01"))
    assert _rows(text) == ["1\t1 0 0 ", "2\t1 0 0 "]


def test_packet_boundary_forces_rows(device, output_options):
    out = _setup(device, output_options)
    out.receive(logic_packet(b"\x01\x01\x01"))
    # First and last sample of every packet are written even if unchanged.
    assert out.receive(logic_packet(b"\x01\x01\x01")) == "4\t1 0 0 \n6\t1 0 0 \n"
    assert out.receive(logic_packet(b"\x01")) == "7\t1 0 0 \n"


def test_changes_in_unselected_bits_are_written(device, output_options):
    # Dedup compares raw sample bytes, not just the enabled channels.
    out = _setup(device, output_options)
    text = out.receive(logic_packet(b"\x01\x03\x01\x01"))
    assert _rows(text) == ["1\t1 0 0 ", "2\t1 0 0 ", "3\t1 0 0 ", "4\t1 0 0 "]


def test_prev_sample_lazily_sized(output_options):
    device = make_device(num_channels=16, enabled={0, 9})
    out = _setup(device, output_options)
    assert out.prev_sample is None
    out.receive(logic_packet(b"\x01\x02\x01\x02", unit_size=2))
    assert out.prev_sample.tolist() == [0x01, 0x02]


def test_unit_size_change_rejected(device, output_options):
    out = _setup(device, output_options)
    out.receive(logic_packet(b"\x01"))
    with pytest.raises(InvalidArgumentError, match="Unit size changed"):
        out.receive(logic_packet(b"\x01\x00", unit_size=2))


def test_empty_packet_emits_header_only(device, output_options):
    out = _setup(device, output_options)
    header = out.header
    assert out.receive(logic_packet(b"")) == header
    assert out.receive(logic_packet(b"\x01")) == "1\t1 0 0 \n"


def test_row_count_bounds(device, output_options):
    out = _setup(device, output_options)
    packets = [b"\x00" * 10, b"\x01\x01\x00\x00\x00", b"\x04", b"\x04" * 7]
    rows = []
    for data in packets:
        rows += _rows(out.receive(logic_packet(data)))
    total = sum(len(p) for p in packets)
    assert len(packets) <= len(rows) <= total
    assert rows[-1].startswith(f"{total}\t")
