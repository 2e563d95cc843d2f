"""
Single-pass record parser for BeIDE project files.

The known part of the schema is the ``FIELD_TABLE`` below: one row per
top-level tag, in the order BeIDE writes them. The parser walks the top level
once, indexing every table tag it meets, then takes each field from the first
occurrence at or after the end of the previous hit, so the buffer is never
walked backwards and never walked twice. Anything the table does not name is
stepped over by its declared size and remembered in ``unknown_records`` for
later digging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .decoders import read_int32, read_string, read_uint32
from .errors import MissingRequiredFieldError
from .logging import ScanTraceLogger
from .model import (
    CodeGenerationFlags,
    FileDetectionMode,
    FileTypeRule,
    LanguageOptions,
    OptimizationMode,
    ProjectFile,
    ProjectState,
    StripFlags,
    TargetType,
    WarningMode,
    Warnings,
)
from .source import ByteSource
from .tags import (
    TAG_CODE_GENERATION,
    TAG_COMPILER_OPTIONS,
    TAG_EXTENSION,
    TAG_FILE_DETECTION_MODE,
    TAG_FILE_ENTRY,
    TAG_FILE_TYPE_RULES,
    TAG_GROUP,
    TAG_HAS_RESOURCES,
    TAG_HEADER,
    TAG_LANGUAGE_OPTIONS,
    TAG_LINKER_OPTIONS,
    TAG_LOCAL_INCLUDES,
    TAG_MIME_TYPE,
    TAG_OPTIMIZATION_MODE,
    TAG_PATH,
    TAG_PROJECT_FILES,
    TAG_RULE_ENTRY,
    TAG_STRIP_FLAGS,
    TAG_SYSTEM_INCLUDES,
    TAG_SYSTEM_INCLUDES_AS_LOCAL,
    TAG_TARGET_NAME,
    TAG_TARGET_TYPE,
    TAG_TOOL_NAME,
    TAG_WARNING_MODE,
    TAG_WARNINGS,
    TagRecord,
    TagScanner,
    tag_to_string,
)

logger = logging.getLogger(__name__)


class RecordKind(Enum):
    INT32 = "int32"
    BOOL = "bool"
    FLAGS = "flags"
    STRING = "string"
    PATH_LIST = "path_list"
    FILE_LIST = "file_list"
    RULE_LIST = "rule_list"


@dataclass(frozen=True)
class FieldSpec:
    tag: int
    attribute: str
    kind: RecordKind
    required: bool = False
    convert: Optional[Callable[[int], Any]] = None

    @property
    def tag_name(self) -> str:
        return tag_to_string(self.tag)


FIELD_TABLE: Tuple[FieldSpec, ...] = (
    FieldSpec(TAG_HEADER, "format_version", RecordKind.INT32),
    FieldSpec(TAG_TARGET_NAME, "target_name", RecordKind.STRING, required=True),
    FieldSpec(TAG_TARGET_TYPE, "target_type", RecordKind.INT32, convert=TargetType),
    FieldSpec(TAG_SYSTEM_INCLUDES_AS_LOCAL, "system_includes_as_local", RecordKind.BOOL),
    FieldSpec(TAG_FILE_DETECTION_MODE, "file_detection_mode", RecordKind.INT32, convert=FileDetectionMode),
    FieldSpec(TAG_LANGUAGE_OPTIONS, "language_options", RecordKind.FLAGS, convert=LanguageOptions),
    FieldSpec(TAG_WARNING_MODE, "warning_mode", RecordKind.INT32, convert=WarningMode),
    FieldSpec(TAG_WARNINGS, "warnings", RecordKind.FLAGS, convert=Warnings),
    FieldSpec(TAG_CODE_GENERATION, "code_generation_flags", RecordKind.FLAGS, convert=CodeGenerationFlags),
    FieldSpec(TAG_OPTIMIZATION_MODE, "optimization_mode", RecordKind.INT32, convert=OptimizationMode),
    FieldSpec(TAG_STRIP_FLAGS, "strip_flags", RecordKind.FLAGS, convert=StripFlags),
    FieldSpec(TAG_COMPILER_OPTIONS, "extra_compiler_options", RecordKind.STRING),
    FieldSpec(TAG_LINKER_OPTIONS, "extra_linker_options", RecordKind.STRING),
    FieldSpec(TAG_SYSTEM_INCLUDES, "system_includes", RecordKind.PATH_LIST),
    FieldSpec(TAG_LOCAL_INCLUDES, "local_includes", RecordKind.PATH_LIST),
    FieldSpec(TAG_PROJECT_FILES, "files", RecordKind.FILE_LIST),
    FieldSpec(TAG_FILE_TYPE_RULES, "file_type_rules", RecordKind.RULE_LIST),
)

FILE_ENTRY_TAGS = (TAG_PATH, TAG_MIME_TYPE, TAG_GROUP)
RULE_ENTRY_TAGS = (TAG_MIME_TYPE, TAG_EXTENSION, TAG_HAS_RESOURCES, TAG_TOOL_NAME)

TOP_LEVEL_TAGS = frozenset(spec.tag for spec in FIELD_TABLE)
# Only meaningful inside list and entry payloads.
NESTED_TAGS = frozenset(
    [TAG_PATH, TAG_FILE_ENTRY, TAG_RULE_ENTRY] + list(FILE_ENTRY_TAGS) + list(RULE_ENTRY_TAGS)
)
KNOWN_TAGS = TOP_LEVEL_TAGS | NESTED_TAGS

# Handler return value meaning "leave the attribute at its default".
_KEEP_DEFAULT = object()


def _first_at_or_after(records, cursor: int) -> TagRecord | None:
    for record in records:
        if record.offset >= cursor:
            return record
    return None


class RecordParser:
    def __init__(self, source: ByteSource, *, trace: ScanTraceLogger | None = None) -> None:
        self.source = source
        self.scanner = TagScanner(source, trace=trace)
        self.trace = trace
        self._unknown: Dict[int, TagRecord] = {}

    def parse(self) -> ProjectState:
        state = ProjectState()
        index = self._index_top_level()
        cursor = 0
        for spec in FIELD_TABLE:
            record = _first_at_or_after(index.get(spec.tag, ()), cursor)
            if record is None:
                if spec.required:
                    raise MissingRequiredFieldError(spec.tag_name, spec.attribute)
                logger.debug("optional record %s (%s) not present", spec.tag_name, spec.attribute)
                continue
            logger.debug("found %s at 0x%X (%d bytes)", spec.tag_name, record.offset, record.size)
            value = _HANDLERS[spec.kind](self, record, spec)
            if value is not _KEEP_DEFAULT:
                setattr(state, spec.attribute, value)
            cursor = record.end
        for record in self.scanner.skipped.values():
            if record.tag not in NESTED_TAGS:
                self._unknown.setdefault(record.offset, record)
        state.unknown_records = tuple(self._unknown[offset] for offset in sorted(self._unknown))
        return state

    def _index_top_level(self) -> Dict[int, List[TagRecord]]:
        """Walk the top level once, grouping table tags by id in file order."""

        if self.trace is not None:
            self.trace.note("top-level walk from 0x0")
        index: Dict[int, List[TagRecord]] = {}
        for record in self.scanner.iter_records(0):
            known = record.tag in TOP_LEVEL_TAGS
            if self.trace is not None:
                self.trace.record(record, wanted=None, matched=known)
            if known:
                index.setdefault(record.tag, []).append(record)
            else:
                self._unknown.setdefault(record.offset, record)
        return index

    def _read_int(self, record: TagRecord, spec: FieldSpec) -> Any:
        value, _ = read_int32(self.source, record.payload_offset, record.end)
        if spec.convert is None:
            return value
        try:
            return spec.convert(value)
        except ValueError:
            logger.warning(
                "%s at 0x%X holds unknown %s value %d; keeping default",
                spec.tag_name,
                record.offset,
                spec.attribute,
                value,
            )
            return _KEEP_DEFAULT

    def _read_bool(self, record: TagRecord, spec: FieldSpec) -> bool:
        value, _ = read_int32(self.source, record.payload_offset, record.end)
        return value != 0

    def _read_flags(self, record: TagRecord, spec: FieldSpec) -> Any:
        value, _ = read_uint32(self.source, record.payload_offset, record.end)
        return spec.convert(value) if spec.convert is not None else value

    def _read_string(self, record: TagRecord, spec: FieldSpec) -> str:
        text, _ = read_string(self.source, record.payload_offset, record.end)
        return text

    def _read_path_list(self, record: TagRecord, spec: FieldSpec) -> Tuple[str, ...]:
        paths: List[str] = []
        cursor = record.payload_offset
        while True:
            entry = self.scanner.find_record(TAG_PATH, cursor, record.end)
            if entry is None:
                break
            text, _ = read_string(self.source, entry.payload_offset, entry.end)
            paths.append(text)
            cursor = entry.end
        return tuple(paths)

    def _entry_fields(self, entry: TagRecord, wanted: Tuple[int, ...]) -> Dict[int, TagRecord]:
        """Map each wanted sub-tag to its first record inside ``entry``."""

        found: Dict[int, TagRecord] = {}
        for sub in self.scanner.iter_records(entry.payload_offset, entry.end):
            if sub.tag in wanted:
                found.setdefault(sub.tag, sub)
            elif sub.tag not in NESTED_TAGS:
                self._unknown.setdefault(sub.offset, sub)
        return found

    def _entry_string(self, fields: Dict[int, TagRecord], tag: int) -> str:
        sub = fields.get(tag)
        if sub is None:
            return ""
        text, _ = read_string(self.source, sub.payload_offset, sub.end)
        return text

    def _read_file_list(self, record: TagRecord, spec: FieldSpec) -> Tuple[ProjectFile, ...]:
        files: List[ProjectFile] = []
        cursor = record.payload_offset
        while True:
            entry = self.scanner.find_record(TAG_FILE_ENTRY, cursor, record.end)
            if entry is None:
                break
            cursor = entry.end
            fields = self._entry_fields(entry, FILE_ENTRY_TAGS)
            if TAG_PATH not in fields:
                logger.warning("project file entry at 0x%X has no path; skipped", entry.offset)
                continue
            files.append(
                ProjectFile(
                    path=self._entry_string(fields, TAG_PATH),
                    mime_type=self._entry_string(fields, TAG_MIME_TYPE),
                    group=self._entry_string(fields, TAG_GROUP),
                )
            )
        return tuple(files)

    def _read_rule_list(self, record: TagRecord, spec: FieldSpec) -> Tuple[FileTypeRule, ...]:
        rules: List[FileTypeRule] = []
        cursor = record.payload_offset
        while True:
            entry = self.scanner.find_record(TAG_RULE_ENTRY, cursor, record.end)
            if entry is None:
                break
            cursor = entry.end
            fields = self._entry_fields(entry, RULE_ENTRY_TAGS)
            has_resources = False
            resources = fields.get(TAG_HAS_RESOURCES)
            if resources is not None:
                value, _ = read_int32(self.source, resources.payload_offset, resources.end)
                has_resources = value != 0
            rules.append(
                FileTypeRule(
                    mime_type=self._entry_string(fields, TAG_MIME_TYPE),
                    extension=self._entry_string(fields, TAG_EXTENSION),
                    has_resources=has_resources,
                    tool_name=self._entry_string(fields, TAG_TOOL_NAME),
                )
            )
        return tuple(rules)


_HANDLERS: Dict[RecordKind, Callable[[RecordParser, TagRecord, FieldSpec], Any]] = {
    RecordKind.INT32: RecordParser._read_int,
    RecordKind.BOOL: RecordParser._read_bool,
    RecordKind.FLAGS: RecordParser._read_flags,
    RecordKind.STRING: RecordParser._read_string,
    RecordKind.PATH_LIST: RecordParser._read_path_list,
    RecordKind.FILE_LIST: RecordParser._read_file_list,
    RecordKind.RULE_LIST: RecordParser._read_rule_list,
}


def parse_source(source: ByteSource, *, trace: ScanTraceLogger | None = None) -> ProjectState:
    return RecordParser(source, trace=trace).parse()
