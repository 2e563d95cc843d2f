"""
Primitive decoders shared by the tag scanner and the record parser.

Every reader takes the cursor it should start at and hands back the decoded
value together with the advanced cursor, so callers thread the offset through
a sequence of reads the same way they would walk an open file.
"""

from __future__ import annotations

import struct
from typing import Tuple

from .errors import TruncatedRecordError
from .source import ByteSource

# BeIDE shipped first on BeBox/PowerPC; the sample projects decode cleanly as
# big endian. Provisional, keep every format-level unpack keyed off this.
BYTE_ORDER = ">"
TEXT_ENCODING = "utf-8"

_INT32 = struct.Struct(BYTE_ORDER + "i")
_UINT32 = struct.Struct(BYTE_ORDER + "I")
INT32_SIZE = _INT32.size


def read_int32(source: ByteSource, cursor: int, stop: int | None = None) -> Tuple[int, int]:
    source.ensure(cursor, INT32_SIZE, stop=stop)
    (value,) = _INT32.unpack_from(source.view, cursor)
    return value, cursor + INT32_SIZE


def read_uint32(source: ByteSource, cursor: int, stop: int | None = None) -> Tuple[int, int]:
    source.ensure(cursor, INT32_SIZE, stop=stop)
    (value,) = _UINT32.unpack_from(source.view, cursor)
    return value, cursor + INT32_SIZE


def read_string(source: ByteSource, cursor: int, stop: int | None = None) -> Tuple[str, int]:
    """Decode a NUL-terminated string starting at ``cursor``.

    The terminator must appear before ``stop`` (or the end of the buffer);
    a missing terminator means the file was cut short.
    """

    limit = source.size if stop is None else min(stop, source.size)
    if cursor < 0 or cursor > limit:
        raise TruncatedRecordError(f"string cursor 0x{cursor:X} outside buffer", offset=cursor)
    end = source.find(b"\x00", cursor, limit)
    if end == -1:
        raise TruncatedRecordError(
            f"unterminated string at 0x{cursor:X} (window ends at 0x{limit:X})",
            offset=cursor,
        )
    raw = source.read(cursor, end - cursor)
    return raw.decode(TEXT_ENCODING, errors="replace"), end + 1
