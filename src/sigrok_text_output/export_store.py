"""Keeps transcoded exports so they can be paged across MCP tool calls."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


class ExportNotFoundError(Exception):
    """Raised when an export ID doesn't exist in the store."""


@dataclass
class ExportInfo:
    export_id: str
    source: str
    output_format: str
    created_at: float
    text: str = field(default="", repr=False)
    description: str = ""
    num_samples: int = 0

    @property
    def num_lines(self) -> int:
        return self.text.count("\n")


class ExportStore:
    """In-memory exports, each with a short ID (exp_001, exp_002, ...)."""

    def __init__(self) -> None:
        self._exports: dict[str, ExportInfo] = {}
        self._counter = 0

    def new_export(
        self,
        source: str,
        output_format: str,
        text: str,
        num_samples: int = 0,
        description: str = "",
    ) -> str:
        """Store exported text and return its ID."""
        self._counter += 1
        export_id = f"exp_{self._counter:03d}"
        self._exports[export_id] = ExportInfo(
            export_id=export_id,
            source=source,
            output_format=output_format,
            created_at=time.time(),
            text=text,
            description=description,
            num_samples=num_samples,
        )
        return export_id

    def get(self, export_id: str) -> ExportInfo:
        """Get export info by ID. Raises ExportNotFoundError if not found."""
        if export_id not in self._exports:
            available = ", ".join(self._exports.keys()) or "(none)"
            raise ExportNotFoundError(
                f"Export '{export_id}' not found. Available exports: {available}"
            )
        return self._exports[export_id]

    def list_exports(self) -> list[dict]:
        """List all exports with metadata."""
        return [
            {
                "id": info.export_id,
                "source": info.source,
                "format": info.output_format,
                "num_lines": info.num_lines,
                "num_samples": info.num_samples,
                "created_at": info.created_at,
                "description": info.description,
            }
            for info in self._exports.values()
        ]

    def cleanup(self) -> None:
        self._exports.clear()
