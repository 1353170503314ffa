"""Datafeed types consumed by the output transcoders.

These mirror the shape of the sigrok Python bindings (sigrok.core.classes):
a device exposes an ordered channel list and a config lookup, and a
session delivers packets whose LOGIC payloads carry packed sample bytes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class ChannelType(enum.Enum):
    LOGIC = "logic"
    ANALOG = "analog"


class PacketType(enum.Enum):
    HEADER = "header"
    END = "end"
    META = "meta"
    TRIGGER = "trigger"
    LOGIC = "logic"
    ANALOG = "analog"


class ConfigKey(enum.Enum):
    SAMPLERATE = "samplerate"


@dataclass
class Channel:
    name: str
    type: ChannelType = ChannelType.LOGIC
    enabled: bool = True


@dataclass
class Logic:
    """Packed logic samples: ``unit_size`` bytes per sample, channel N = bit N."""

    data: Any
    unit_size: int


@dataclass
class Packet:
    type: PacketType
    payload: Logic | None = None


@dataclass
class Device:
    """A device as seen by an output: its channels and read-only config."""

    channels: list[Channel] = field(default_factory=list)
    config: dict[ConfigKey, Any] = field(default_factory=dict)

    def config_get(self, key: ConfigKey) -> Any | None:
        """Return the config value for ``key``, or None if the device lacks it."""
        return self.config.get(key)
