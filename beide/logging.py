from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .tags import TagRecord, tag_to_string


def log_unknown_records(records: Sequence[TagRecord], destination: Path) -> None:
    """Write one line per record the parser passed over without understanding it."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    lines: List[str] = []
    for idx, record in enumerate(records, start=1):
        lines.append(
            f"#{idx:04d} offset=0x{record.offset:06X} tag={record.name:<10} "
            f"size={record.size} payload=0x{record.payload_offset:06X}-0x{record.end:06X}"
        )
    destination.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")


@dataclass
class ScanTraceLogger:
    destination: Path

    def __post_init__(self) -> None:
        self._lines: List[str] = []

    def record(self, record: TagRecord, *, wanted: int | None, matched: bool) -> None:
        marker = "HIT " if matched else "skip"
        self._lines.append(
            f"{marker} off=0x{record.offset:06X} tag={record.name:<10} size={record.size:<8} "
            f"want={tag_to_string(wanted) if wanted is not None else '-'}"
        )

    def note(self, text: str) -> None:
        self._lines.append(f"# {text}")

    @property
    def lines(self) -> Sequence[str]:
        return tuple(self._lines)

    def flush(self) -> None:
        if not self._lines:
            return
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        text = "\n".join(self._lines) + "\n"
        self.destination.write_text(text, encoding="utf-8")
