"""
Tag-record framing and the linear tag scanner.

The records we have reconstructed so far follow this layout (big endian):

    uint32 tag_id      # four-character code, e.g. 'TNam'
    int32  byte_count  # length of the payload right after the header
    <payload bytes>    # int32, NUL-terminated string, or nested records

List records (include paths, project files, file-type rules) nest further
records inside their payload, so the scanner works on a window
``[start, stop)`` and callers narrow that window to a list payload when they
descend into it. Records are always skipped by their declared size; the
scanner never slides byte by byte looking for a plausible header, which keeps
unknown tags from desynchronising the walk.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from .decoders import BYTE_ORDER
from .errors import TruncatedRecordError
from .source import ByteSource

if TYPE_CHECKING:
    from .logging import ScanTraceLogger

logger = logging.getLogger(__name__)

_RECORD_HEADER = struct.Struct(BYTE_ORDER + "Ii")
RECORD_HEADER_SIZE = _RECORD_HEADER.size


def string_to_tag(code: str) -> int:
    """Pack a four-character code into the integer tag id used on disk."""

    raw = code.encode("ascii")
    if len(raw) != 4:
        raise ValueError(f"tag codes are four characters, got {code!r}")
    return int.from_bytes(raw, "big")


def tag_to_string(tag_id: int) -> str:
    """Render a tag id as its four-character code, hex when not printable."""

    raw = (tag_id & 0xFFFFFFFF).to_bytes(4, "big")
    if all(32 <= b < 127 for b in raw):
        return raw.decode("ascii")
    return f"0x{tag_id & 0xFFFFFFFF:08X}"


# Top-level records, in the order BeIDE writes them.
TAG_HEADER = string_to_tag("MIDE")
TAG_TARGET_NAME = string_to_tag("TNam")
TAG_TARGET_TYPE = string_to_tag("TTyp")
TAG_SYSTEM_INCLUDES_AS_LOCAL = string_to_tag("SysL")
TAG_FILE_DETECTION_MODE = string_to_tag("FDet")
TAG_LANGUAGE_OPTIONS = string_to_tag("LOpt")
TAG_WARNING_MODE = string_to_tag("WMod")
TAG_WARNINGS = string_to_tag("Warn")
TAG_CODE_GENERATION = string_to_tag("CGen")
TAG_OPTIMIZATION_MODE = string_to_tag("OMod")
TAG_STRIP_FLAGS = string_to_tag("Strp")
TAG_COMPILER_OPTIONS = string_to_tag("CcOp")
TAG_LINKER_OPTIONS = string_to_tag("LdOp")
TAG_SYSTEM_INCLUDES = string_to_tag("SInc")
TAG_LOCAL_INCLUDES = string_to_tag("LInc")
TAG_PROJECT_FILES = string_to_tag("PFls")
TAG_FILE_TYPE_RULES = string_to_tag("FTyp")

# Records nested inside list payloads.
TAG_PATH = string_to_tag("Path")
TAG_FILE_ENTRY = string_to_tag("PFil")
TAG_MIME_TYPE = string_to_tag("Mime")
TAG_GROUP = string_to_tag("Grup")
TAG_RULE_ENTRY = string_to_tag("Rule")
TAG_EXTENSION = string_to_tag("Extn")
TAG_HAS_RESOURCES = string_to_tag("Rsrc")
TAG_TOOL_NAME = string_to_tag("Tool")


@dataclass(frozen=True)
class TagRecord:
    offset: int
    tag: int
    size: int

    @property
    def name(self) -> str:
        return tag_to_string(self.tag)

    @property
    def payload_offset(self) -> int:
        return self.offset + RECORD_HEADER_SIZE

    @property
    def end(self) -> int:
        return self.payload_offset + self.size


class TagScanner:
    def __init__(self, source: ByteSource, *, trace: "ScanTraceLogger | None" = None) -> None:
        self.source = source
        self.trace = trace
        self.skipped: dict[int, TagRecord] = {}

    def _limit(self, start: int, stop: int | None) -> int:
        limit = self.source.size if stop is None else min(stop, self.source.size)
        if start < 0 or start > limit:
            raise TruncatedRecordError(
                f"scan start 0x{start:X} outside window ending at 0x{limit:X}", offset=start
            )
        return limit

    def iter_records(self, start: int = 0, stop: int | None = None) -> Iterator[TagRecord]:
        """Yield every record header in ``[start, stop)`` without decoding payloads."""

        limit = self._limit(start, stop)
        offset = start
        while offset < limit:
            if offset + RECORD_HEADER_SIZE > limit:
                raise TruncatedRecordError(
                    f"record header at 0x{offset:X} needs {RECORD_HEADER_SIZE} bytes, "
                    f"only {limit - offset} left",
                    offset=offset,
                )
            tag, size = _RECORD_HEADER.unpack_from(self.source.view, offset)
            record = TagRecord(offset=offset, tag=tag, size=size)
            if size < 0 or record.end > limit:
                raise TruncatedRecordError(
                    f"record {record.name} at 0x{offset:X} declares {size} byte(s), "
                    f"window ends at 0x{limit:X}",
                    offset=offset,
                )
            yield record
            offset = record.end

    def find_record(self, tag_id: int, start: int = 0, stop: int | None = None) -> TagRecord | None:
        for record in self.iter_records(start, stop):
            matched = record.tag == tag_id
            if self.trace is not None:
                self.trace.record(record, wanted=tag_id, matched=matched)
            if matched:
                return record
            self.skipped.setdefault(record.offset, record)
            logger.debug("skipping %s at 0x%X while looking for %s", record.name, record.offset, tag_to_string(tag_id))
        return None

    def find_tag(self, tag_id: int, start: int = 0, stop: int | None = None) -> int | None:
        """Return the payload offset of the first ``tag_id`` record, or ``None``."""

        record = self.find_record(tag_id, start, stop)
        return None if record is None else record.payload_offset
