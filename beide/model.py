from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from functools import reduce
from operator import or_
from typing import Dict, List, Tuple, Type

from .tags import TagRecord


class TargetType(IntEnum):
    APPLICATION = 0
    SHARED_LIBRARY = 1
    STATIC_LIBRARY = 2
    KERNEL_DRIVER = 3


class FileDetectionMode(IntEnum):
    """Whether file types come from the extension or default to C / C++."""

    AUTODETECT = 0
    C_MODE = 1
    CPP_MODE = 2


class WarningMode(IntEnum):
    ENABLED = 0
    DISABLED = 1
    AS_ERRORS = 2


class OptimizationMode(IntEnum):
    NONE = 0
    SOME = 1
    MORE = 2
    FULL = 3


class LanguageOptions(IntFlag):
    ANSI_C_MODE = 0x00000001
    SUPPORT_TRIGRAPHS = 0x00000010
    SIGNED_CHAR = 0x00000100
    UNSIGNED_BITFIELDS = 0x00001000
    CONST_CHAR_LITERALS = 0x00010000


class Warnings(IntFlag):
    STRICT_ANSI = 0x00000001
    LOCAL_SHADOW = 0x00000002
    INCOMPATIBLE_CAST = 0x00000004
    CAST_QUALIFIERS = 0x00000008
    CONFUSING_CAST = 0x00000010
    CANT_INLINE = 0x00000020
    EXTERN_TO_INLINE = 0x00000040
    OVERLOADED_VIRTUALS = 0x00000080
    C_CASTS = 0x00000100
    EFFECTIVE_CPP = 0x00000200

    MISSING_PARENTHESES = 0x00001000
    INCONSISTENT_RETURN = 0x00002000
    MISSING_ENUM_CASES = 0x00004000
    UNUSED_VARS = 0x00008000
    UNINIT_AUTO_VARS = 0x00010000
    INIT_REORDERING = 0x00020000
    NONVIRTUAL_DESTRUCTORS = 0x00040000
    UNRECOGNIZED_PRAGMAS = 0x00080000
    SIGNED_UNSIGNED_COMP = 0x00100000
    CHAR_SUBSCRIPTS = 0x00200000
    PRINTF_FORMATTING = 0x00400000
    TRIGRAPHS_USED = 0x00800000

    ALL_COMMON_ERRORS = 0x00FFF000


class CodeGenerationFlags(IntFlag):
    NO_PIC = 0x00000001
    EXPLICIT_TEMPLATES = 0x00000002
    IGNORE_INLINING = 0x00000004
    PROFILING = 0x00000008
    DEBUGGING = 0x00000010
    OPTIMIZE_SIZE = 0x00000020


class StripFlags(IntFlag):
    ALL_SYMBOLS = 1
    ALL_LOCAL_SYMBOLS = 2


def valid_mask(flag_type: Type[IntFlag]) -> int:
    return reduce(or_, (member.value for member in flag_type), 0)


def invalid_bits(flags: IntFlag) -> int:
    """Bits set in ``flags`` that no named member of its type accounts for."""

    return int(flags) & ~valid_mask(type(flags)) & 0xFFFFFFFF


def flag_names(flags: IntFlag) -> List[str]:
    return [member.name for member in type(flags) if member in flags]


@dataclass(frozen=True)
class ProjectFile:
    path: str
    mime_type: str = ""
    group: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "mime_type": self.mime_type, "group": self.group}


@dataclass(frozen=True)
class FileTypeRule:
    """Extension-to-tool mapping from the project. Parsed, never consulted."""

    mime_type: str = ""
    extension: str = ""
    has_resources: bool = False
    tool_name: str = ""

    def to_dict(self) -> Dict:
        return {
            "mime_type": self.mime_type,
            "extension": self.extension,
            "has_resources": self.has_resources,
            "tool_name": self.tool_name,
        }


@dataclass
class ProjectState:
    """Everything a single load produces. A fresh instance is the unset model."""

    format_version: int = 0
    target_name: str = ""
    target_type: TargetType = TargetType.APPLICATION
    system_includes_as_local: bool = False
    file_detection_mode: FileDetectionMode = FileDetectionMode.AUTODETECT
    language_options: LanguageOptions = LanguageOptions(0)
    warning_mode: WarningMode = WarningMode.ENABLED
    warnings: Warnings = Warnings(0)
    code_generation_flags: CodeGenerationFlags = CodeGenerationFlags(0)
    optimization_mode: OptimizationMode = OptimizationMode.NONE
    strip_flags: StripFlags = StripFlags(0)
    extra_compiler_options: str = ""
    extra_linker_options: str = ""
    system_includes: Tuple[str, ...] = ()
    local_includes: Tuple[str, ...] = ()
    files: Tuple[ProjectFile, ...] = ()
    file_type_rules: Tuple[FileTypeRule, ...] = ()
    unknown_records: Tuple[TagRecord, ...] = field(default=(), compare=False)

    def to_dict(self) -> Dict:
        def _flags(value: IntFlag) -> Dict:
            return {"value": int(value), "names": flag_names(value), "invalid_bits": invalid_bits(value)}

        return {
            "format_version": self.format_version,
            "target_name": self.target_name,
            "target_type": self.target_type.name,
            "system_includes_as_local": self.system_includes_as_local,
            "file_detection_mode": self.file_detection_mode.name,
            "language_options": _flags(self.language_options),
            "warning_mode": self.warning_mode.name,
            "warnings": _flags(self.warnings),
            "code_generation_flags": _flags(self.code_generation_flags),
            "optimization_mode": self.optimization_mode.name,
            "strip_flags": _flags(self.strip_flags),
            "extra_compiler_options": self.extra_compiler_options,
            "extra_linker_options": self.extra_linker_options,
            "system_includes": list(self.system_includes),
            "local_includes": list(self.local_includes),
            "files": [entry.to_dict() for entry in self.files],
            "file_type_rules": [rule.to_dict() for rule in self.file_type_rules],
        }
