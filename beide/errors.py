from __future__ import annotations

from enum import Enum


class Status(Enum):
    """Outcome of the most recent load, as reported by ``Project.init_check``."""

    OK = "ok"
    NO_INIT = "no_init"
    IO_ERROR = "io_error"
    TRUNCATED_RECORD = "truncated_record"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_INDEX = "invalid_index"


class ProjectError(Exception):
    status = Status.NO_INIT


class ProjectIOError(ProjectError):
    """The project file is missing, unreadable, or was only partially read."""

    status = Status.IO_ERROR


class TruncatedRecordError(ProjectError):
    """A decoder or the tag scanner tried to read past the end of its window."""

    status = Status.TRUNCATED_RECORD

    def __init__(self, message: str, *, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class MissingRequiredFieldError(ProjectError):
    status = Status.MISSING_REQUIRED_FIELD

    def __init__(self, tag_name: str, attribute: str) -> None:
        super().__init__(f"required record {tag_name!r} ({attribute}) not found")
        self.tag_name = tag_name
        self.attribute = attribute


class InvalidIndexError(ProjectError, IndexError):
    status = Status.INVALID_INDEX

    def __init__(self, collection: str, index: int, count: int) -> None:
        super().__init__(f"{collection} index {index} outside [0, {count})")
        self.collection = collection
        self.index = index
        self.count = count
