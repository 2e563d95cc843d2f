"""
The ``Project`` aggregate: load a BeIDE project file and expose its settings.

``load`` is the one place failures turn into a status instead of an
exception. Whatever goes wrong, the instance is left unset (defaults, empty
collections) and ``last_error`` holds the exception that stopped the load.
Callers who would rather have the exception use ``read_project``.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Tuple

from .errors import InvalidIndexError, ProjectError, Status
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
from .parser import parse_source
from .source import ByteSource
from .tags import TagRecord

logger = logging.getLogger(__name__)


def _coerce_flags(flag_type, value: int):
    # Negative values wrap to their 32-bit pattern, as stored on disk.
    return flag_type(int(value) & 0xFFFFFFFF)


def _checked_index(collection: str, items: Tuple, index: int):
    if not 0 <= index < len(items):
        raise InvalidIndexError(collection, index, len(items))
    return items[index]


class Project:
    """In-memory model of one BeIDE project.

    Not safe for concurrent use: ``load``/``reset`` must not overlap reads of
    the same instance.
    """

    def __init__(self, path: "str | os.PathLike[str] | None" = None) -> None:
        self._state = ProjectState()
        self._source: ByteSource | None = None
        self._status = Status.NO_INIT
        self.last_error: ProjectError | None = None
        if path is not None:
            self.load(path)

    def __repr__(self) -> str:
        return f"Project(target_name={self._state.target_name!r}, status={self._status.name})"

    # -- lifecycle -----------------------------------------------------------

    def init_check(self) -> Status:
        return self._status

    @property
    def is_ready(self) -> bool:
        return self._status is Status.OK

    def load(self, path: "str | os.PathLike[str]", *, trace: ScanTraceLogger | None = None) -> Status:
        """Replace the model with the contents of ``path`` and return the outcome."""

        try:
            source = ByteSource.from_path(path)
            state = parse_source(source, trace=trace)
        except ProjectError as exc:
            logger.warning("failed to load %s: %s", path, exc)
            self.reset()
            self.last_error = exc
            self._status = exc.status
            return self._status
        self._source = source
        self._state = state
        self._status = Status.OK
        self.last_error = None
        logger.info(
            "loaded %s: target %r, %d file(s), %d unknown record(s)",
            path,
            state.target_name,
            len(state.files),
            len(state.unknown_records),
        )
        return self._status

    set_to = load

    def reset(self) -> None:
        self._state = ProjectState()
        self._source = None
        self._status = Status.NO_INIT
        self.last_error = None

    unset = reset

    @property
    def source(self) -> ByteSource | None:
        return self._source

    @property
    def unknown_records(self) -> Tuple[TagRecord, ...]:
        return self._state.unknown_records

    # -- scalar settings -----------------------------------------------------

    @property
    def format_version(self) -> int:
        return self._state.format_version

    @property
    def target_name(self) -> str:
        return self._state.target_name

    @target_name.setter
    def target_name(self, value: str) -> None:
        self._state.target_name = str(value)

    @property
    def target_type(self) -> TargetType:
        return self._state.target_type

    @target_type.setter
    def target_type(self, value: int) -> None:
        self._state.target_type = TargetType(value)

    @property
    def system_includes_as_local(self) -> bool:
        return self._state.system_includes_as_local

    @system_includes_as_local.setter
    def system_includes_as_local(self, value: bool) -> None:
        self._state.system_includes_as_local = bool(value)

    @property
    def file_detection_mode(self) -> FileDetectionMode:
        return self._state.file_detection_mode

    @file_detection_mode.setter
    def file_detection_mode(self, value: int) -> None:
        self._state.file_detection_mode = FileDetectionMode(value)

    @property
    def language_options(self) -> LanguageOptions:
        return self._state.language_options

    @language_options.setter
    def language_options(self, value: int) -> None:
        self._state.language_options = _coerce_flags(LanguageOptions, value)

    @property
    def warning_mode(self) -> WarningMode:
        return self._state.warning_mode

    @warning_mode.setter
    def warning_mode(self, value: int) -> None:
        self._state.warning_mode = WarningMode(value)

    @property
    def warnings(self) -> Warnings:
        return self._state.warnings

    @warnings.setter
    def warnings(self, value: int) -> None:
        self._state.warnings = _coerce_flags(Warnings, value)

    @property
    def code_generation_flags(self) -> CodeGenerationFlags:
        return self._state.code_generation_flags

    @code_generation_flags.setter
    def code_generation_flags(self, value: int) -> None:
        self._state.code_generation_flags = _coerce_flags(CodeGenerationFlags, value)

    @property
    def optimization_mode(self) -> OptimizationMode:
        return self._state.optimization_mode

    @optimization_mode.setter
    def optimization_mode(self, value: int) -> None:
        self._state.optimization_mode = OptimizationMode(value)

    @property
    def strip_flags(self) -> StripFlags:
        return self._state.strip_flags

    @strip_flags.setter
    def strip_flags(self, value: int) -> None:
        self._state.strip_flags = _coerce_flags(StripFlags, value)

    @property
    def extra_compiler_options(self) -> str:
        return self._state.extra_compiler_options

    @extra_compiler_options.setter
    def extra_compiler_options(self, value: str) -> None:
        self._state.extra_compiler_options = str(value)

    @property
    def extra_linker_options(self) -> str:
        return self._state.extra_linker_options

    @extra_linker_options.setter
    def extra_linker_options(self, value: str) -> None:
        self._state.extra_linker_options = str(value)

    # -- collections ---------------------------------------------------------

    @property
    def system_includes(self) -> Tuple[str, ...]:
        return self._state.system_includes

    def count_system_includes(self) -> int:
        return len(self._state.system_includes)

    def system_include_at(self, index: int) -> str:
        return _checked_index("system include", self._state.system_includes, index)

    def add_system_include(self, path: str) -> None:
        self._state.system_includes = self._state.system_includes + (str(path),)

    @property
    def local_includes(self) -> Tuple[str, ...]:
        return self._state.local_includes

    def count_local_includes(self) -> int:
        return len(self._state.local_includes)

    def local_include_at(self, index: int) -> str:
        return _checked_index("local include", self._state.local_includes, index)

    def add_local_include(self, path: str) -> None:
        self._state.local_includes = self._state.local_includes + (str(path),)

    @property
    def files(self) -> Tuple[ProjectFile, ...]:
        return self._state.files

    def count_files(self) -> int:
        return len(self._state.files)

    def file_at(self, index: int) -> ProjectFile:
        return _checked_index("project file", self._state.files, index)

    def add_file(self, entry: ProjectFile) -> None:
        self._state.files = self._state.files + (entry,)

    @property
    def file_type_rules(self) -> Tuple[FileTypeRule, ...]:
        return self._state.file_type_rules

    def count_file_type_rules(self) -> int:
        return len(self._state.file_type_rules)

    def file_type_rule_at(self, index: int) -> FileTypeRule:
        return _checked_index("file type rule", self._state.file_type_rules, index)

    def add_file_type_rule(self, rule: FileTypeRule) -> None:
        self._state.file_type_rules = self._state.file_type_rules + (rule,)

    def to_dict(self) -> Dict:
        payload = self._state.to_dict()
        payload["status"] = self._status.value
        return payload


def read_project(path: "str | os.PathLike[str]", *, trace: ScanTraceLogger | None = None) -> Project:
    """Load ``path`` and raise the ``ProjectError`` that stopped it, if any."""

    project = Project()
    project.load(path, trace=trace)
    if project.last_error is not None:
        raise project.last_error
    return project

