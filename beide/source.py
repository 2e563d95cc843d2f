"""
Whole-file byte buffer for BeIDE project files.

Project files are small (a few KiB), so the reader pulls the complete file into
memory before any decoding starts and every later read is a bounds-checked
slice of that immutable buffer.
"""

from __future__ import annotations

import os
from pathlib import Path

from .errors import ProjectIOError, TruncatedRecordError


class ByteSource:
    def __init__(self, data: bytes, *, path: Path | None = None) -> None:
        self._data = bytes(data)
        self._view = memoryview(self._data)
        self.path = path

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "ByteSource":
        path = Path(path)
        try:
            expected = path.stat().st_size
            with path.open("rb") as handle:
                data = handle.read()
        except FileNotFoundError as exc:
            raise ProjectIOError(f"{path}: no such file") from exc
        except IsADirectoryError as exc:
            raise ProjectIOError(f"{path}: is a directory") from exc
        except PermissionError as exc:
            raise ProjectIOError(f"{path}: permission denied") from exc
        except OSError as exc:
            raise ProjectIOError(f"{path}: {exc.strerror or exc}") from exc
        except ValueError as exc:
            raise ProjectIOError(f"{path}: {exc}") from exc
        if len(data) < expected:
            raise ProjectIOError(f"{path}: short read ({len(data)} of {expected} bytes)")
        return cls(data, path=path)

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def ensure(self, offset: int, length: int, *, stop: int | None = None) -> None:
        """Raise ``TruncatedRecordError`` unless ``[offset, offset + length)`` fits."""

        limit = self.size if stop is None else min(stop, self.size)
        if offset < 0 or length < 0 or offset + length > limit:
            raise TruncatedRecordError(
                f"read of {length} byte(s) at 0x{max(offset, 0):X} runs past 0x{limit:X}",
                offset=offset,
            )

    def read(self, offset: int, length: int, *, stop: int | None = None) -> bytes:
        self.ensure(offset, length, stop=stop)
        return self._data[offset : offset + length]

    def find(self, needle: bytes, start: int, stop: int | None = None) -> int:
        limit = self.size if stop is None else min(stop, self.size)
        return self._data.find(needle, start, limit)

    @property
    def view(self) -> memoryview:
        return self._view
