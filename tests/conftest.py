"""Shared fixtures for the BeIDE reader tests.

The package has no writer, so binary fixtures are assembled here from the
record layout the reader expects: ``uint32 tag`` + ``int32 size`` + payload,
big endian.
"""

import struct
from typing import List

import pytest

from beide.tags import string_to_tag


def rec(code: str, payload: bytes) -> bytes:
    return struct.pack(">Ii", string_to_tag(code), len(payload)) + payload


def i32(code: str, value: int) -> bytes:
    return rec(code, struct.pack(">i", value))


def u32(code: str, value: int) -> bytes:
    return rec(code, struct.pack(">I", value))


def text(code: str, value: str) -> bytes:
    return rec(code, value.encode("utf-8") + b"\x00")


def group(code: str, *children: bytes) -> bytes:
    return rec(code, b"".join(children))


def file_entry(path: str, mime: str, grp: str) -> bytes:
    return group("PFil", text("Path", path), text("Mime", mime), text("Grup", grp))


def rule_entry(mime: str, ext: str, resources: bool, tool: str) -> bytes:
    return group("Rule", text("Mime", mime), text("Extn", ext), i32("Rsrc", int(resources)), text("Tool", tool))


def sample_records() -> List[bytes]:
    """Top-level records of the reference project, in file order."""

    return [
        i32("MIDE", 5),
        text("TNam", "MyApp"),
        i32("TTyp", 0),
        i32("SysL", 1),
        i32("FDet", 2),
        u32("LOpt", 0x00000101),
        i32("WMod", 2),
        u32("Warn", 0x00FFF002),
        u32("CGen", 0x00000011),
        i32("OMod", 3),
        u32("Strp", 2),
        text("CcOp", "-DDEBUG=1 -Wall"),
        text("LdOp", "-lbe -ltracker"),
        group("SInc", text("Path", "/boot/develop/headers/be"), text("Path", "/boot/develop/headers/cpp")),
        group("LInc", text("Path", "."), text("Path", "src")),
        group(
            "PFls",
            file_entry("src/main.cpp", "text/x-source-code", "Sources"),
            file_entry("src/App.cpp", "text/x-source-code", "Sources"),
            file_entry("MyApp.rsrc", "application/x-be-resource", "Resources"),
        ),
        group(
            "FTyp",
            rule_entry("text/x-source-code", "cpp", False, "gcc"),
            rule_entry("application/x-be-resource", "rsrc", True, "xres"),
        ),
    ]


def other_records() -> List[bytes]:
    return [
        text("TNam", "libwidgets.so"),
        i32("TTyp", 1),
        group("LInc", text("Path", "include")),
        group("PFls", file_entry("widgets.c", "text/x-source-code", "")),
    ]


@pytest.fixture
def sample_bytes() -> bytes:
    return b"".join(sample_records())


@pytest.fixture
def write_project(tmp_path):
    counter = iter(range(1_000_000))

    def _write(data: bytes, name: str | None = None):
        path = tmp_path / (name or f"project_{next(counter)}.proj")
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def sample_path(write_project, sample_bytes):
    return write_project(sample_bytes, "MyApp.proj")
