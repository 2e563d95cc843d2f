"""
Reader for BeIDE project files, split into modules for reuse.
"""

from .decoders import BYTE_ORDER, read_int32, read_string, read_uint32
from .errors import (
    InvalidIndexError,
    MissingRequiredFieldError,
    ProjectError,
    ProjectIOError,
    Status,
    TruncatedRecordError,
)
from .logging import ScanTraceLogger, log_unknown_records
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
    flag_names,
    invalid_bits,
    valid_mask,
)
from .parser import FIELD_TABLE, FieldSpec, RecordKind, RecordParser, parse_source
from .project import Project, read_project
from .source import ByteSource
from .tags import RECORD_HEADER_SIZE, TagRecord, TagScanner, string_to_tag, tag_to_string

__all__ = [
    "BYTE_ORDER",
    "read_int32",
    "read_uint32",
    "read_string",
    "Status",
    "ProjectError",
    "ProjectIOError",
    "TruncatedRecordError",
    "MissingRequiredFieldError",
    "InvalidIndexError",
    "ScanTraceLogger",
    "log_unknown_records",
    "TargetType",
    "FileDetectionMode",
    "WarningMode",
    "OptimizationMode",
    "LanguageOptions",
    "Warnings",
    "CodeGenerationFlags",
    "StripFlags",
    "valid_mask",
    "invalid_bits",
    "flag_names",
    "ProjectFile",
    "FileTypeRule",
    "ProjectState",
    "FIELD_TABLE",
    "FieldSpec",
    "RecordKind",
    "RecordParser",
    "parse_source",
    "Project",
    "read_project",
    "ByteSource",
    "RECORD_HEADER_SIZE",
    "TagRecord",
    "TagScanner",
    "string_to_tag",
    "tag_to_string",
]
