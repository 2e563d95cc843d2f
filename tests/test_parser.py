"""Tests for the single-pass record parser."""

import logging
from pathlib import Path

import pytest

from beide.errors import MissingRequiredFieldError, TruncatedRecordError
from beide.logging import ScanTraceLogger
from beide.model import (
    CodeGenerationFlags,
    FileDetectionMode,
    FileTypeRule,
    LanguageOptions,
    OptimizationMode,
    ProjectFile,
    StripFlags,
    TargetType,
    WarningMode,
    Warnings,
)
from beide.parser import FIELD_TABLE, RecordKind, parse_source
from beide.source import ByteSource

from conftest import file_entry, group, i32, rec, sample_records, text, u32


def _parse(records):
    return parse_source(ByteSource(b"".join(records)))


class TestFieldTable:
    def test_documented_order(self):
        names = [spec.tag_name for spec in FIELD_TABLE]
        assert names == [
            "MIDE", "TNam", "TTyp", "SysL", "FDet", "LOpt", "WMod", "Warn",
            "CGen", "OMod", "Strp", "CcOp", "LdOp", "SInc", "LInc", "PFls", "FTyp",
        ]

    def test_only_target_name_is_required(self):
        assert [spec.attribute for spec in FIELD_TABLE if spec.required] == ["target_name"]

    def test_every_kind_has_a_handler(self):
        from beide.parser import _HANDLERS

        assert set(_HANDLERS) == set(RecordKind)


class TestSampleProject:
    def test_scalars(self):
        state = _parse(sample_records())
        assert state.format_version == 5
        assert state.target_name == "MyApp"
        assert state.target_type is TargetType.APPLICATION
        assert state.system_includes_as_local is True
        assert state.file_detection_mode is FileDetectionMode.CPP_MODE
        assert state.language_options == LanguageOptions.ANSI_C_MODE | LanguageOptions.SIGNED_CHAR
        assert state.warning_mode is WarningMode.AS_ERRORS
        assert state.warnings == Warnings.ALL_COMMON_ERRORS | Warnings.LOCAL_SHADOW
        assert state.code_generation_flags == CodeGenerationFlags.DEBUGGING | CodeGenerationFlags.NO_PIC
        assert state.optimization_mode is OptimizationMode.FULL
        assert state.strip_flags == StripFlags.ALL_LOCAL_SYMBOLS
        assert state.extra_compiler_options == "-DDEBUG=1 -Wall"
        assert state.extra_linker_options == "-lbe -ltracker"

    def test_collections(self):
        state = _parse(sample_records())
        assert state.system_includes == ("/boot/develop/headers/be", "/boot/develop/headers/cpp")
        assert state.local_includes == (".", "src")
        assert state.files == (
            ProjectFile("src/main.cpp", "text/x-source-code", "Sources"),
            ProjectFile("src/App.cpp", "text/x-source-code", "Sources"),
            ProjectFile("MyApp.rsrc", "application/x-be-resource", "Resources"),
        )
        assert state.file_type_rules == (
            FileTypeRule("text/x-source-code", "cpp", False, "gcc"),
            FileTypeRule("application/x-be-resource", "rsrc", True, "xres"),
        )
        assert state.unknown_records == ()


class TestMinimalProject:
    def test_only_target_name(self):
        state = _parse([text("TNam", "Tiny")])
        assert state.target_name == "Tiny"
        assert state.format_version == 0
        assert state.target_type is TargetType.APPLICATION
        assert state.files == ()

    def test_missing_target_name(self):
        with pytest.raises(MissingRequiredFieldError) as info:
            _parse([i32("TTyp", 1), group("LInc", text("Path", "src"))])
        assert info.value.tag_name == "TNam"

    def test_duplicates_are_kept(self):
        state = _parse([text("TNam", "Dup"), group("LInc", text("Path", "src"), text("Path", "src"))])
        assert state.local_includes == ("src", "src")


class TestLeniency:
    def test_unknown_top_level_records_are_collected(self):
        records = sample_records()
        records.insert(3, rec("Zz01", b"\x01\x02\x03"))
        records.append(i32("Zz02", 9))
        state = _parse(records)
        assert [record.name for record in state.unknown_records] == ["Zz01", "Zz02"]

    def test_unknown_records_inside_lists(self):
        records = [
            text("TNam", "MyApp"),
            group("SInc", rec("Junk", b"\x00" * 5), text("Path", "/boot/develop/headers/be")),
            group(
                "PFls",
                rec("Junk", b""),
                group("PFil", text("Path", "a.c"), i32("Flag", 3), text("Grup", "Sources")),
            ),
        ]
        state = _parse(records)
        assert state.system_includes == ("/boot/develop/headers/be",)
        assert state.files == (ProjectFile("a.c", "", "Sources"),)
        assert {record.name for record in state.unknown_records} == {"Junk", "Flag"}

    def test_list_only_tags_at_top_level_are_unknown(self):
        records = [text("TNam", "MyApp"), text("Path", "stray"), file_entry("a.c", "text/x-source-code", "")]
        state = _parse(records)
        assert state.files == ()
        assert [record.name for record in state.unknown_records] == ["Path", "PFil"]

    def test_entry_fields_in_any_order(self):
        entry = group("PFil", text("Grup", "Sources"), text("Mime", "text/x-source-code"), text("Path", "b.cpp"))
        state = _parse([text("TNam", "MyApp"), group("PFls", entry)])
        assert state.files == (ProjectFile("b.cpp", "text/x-source-code", "Sources"),)

    def test_file_entry_without_path_is_skipped(self, caplog):
        entries = group("PFls", group("PFil", text("Mime", "text/plain")), file_entry("ok.c", "text/x-source-code", ""))
        with caplog.at_level(logging.WARNING, logger="beide.parser"):
            state = _parse([text("TNam", "MyApp"), entries])
        assert state.files == (ProjectFile("ok.c", "text/x-source-code", ""),)
        assert "no path" in caplog.text

    def test_unknown_enum_value_keeps_default(self, caplog):
        with caplog.at_level(logging.WARNING, logger="beide.parser"):
            state = _parse([text("TNam", "MyApp"), i32("TTyp", 42), i32("OMod", -1)])
        assert state.target_type is TargetType.APPLICATION
        assert state.optimization_mode is OptimizationMode.NONE
        assert "unknown target_type value 42" in caplog.text

    def test_unknown_flag_bits_are_preserved(self):
        state = _parse([text("TNam", "MyApp"), u32("Strp", 0x80000001)])
        assert int(state.strip_flags) == 0x80000001
        assert StripFlags.ALL_SYMBOLS in state.strip_flags

    def test_larger_int_payload_uses_first_word(self):
        state = _parse([text("TNam", "MyApp"), rec("TTyp", b"\x00\x00\x00\x02\xff\xff")])
        assert state.target_type is TargetType.STATIC_LIBRARY

    def test_out_of_order_records_are_not_revisited(self):
        state = _parse([i32("TTyp", 3), text("TNam", "MyApp"), i32("WMod", 1)])
        assert state.target_type is TargetType.APPLICATION
        assert state.warning_mode is WarningMode.DISABLED


class TestMalformed:
    def test_int_payload_too_short(self):
        with pytest.raises(TruncatedRecordError):
            _parse([text("TNam", "MyApp"), rec("TTyp", b"\x00\x01")])

    def test_string_without_terminator(self):
        # The next record holds zero bytes, but they sit outside the string record.
        with pytest.raises(TruncatedRecordError):
            _parse([rec("TNam", b"MyApp"), i32("TTyp", 0)])

    def test_trailing_garbage(self):
        data = b"".join(sample_records()) + b"\x00\x00"
        with pytest.raises(TruncatedRecordError):
            parse_source(ByteSource(data))


class TestSinglePass:
    def test_top_level_records_walked_once(self):
        records = [text("TNam", "MyApp")] + [i32(f"U{index:03d}", index) for index in range(100)]
        trace = ScanTraceLogger(Path("unused.txt"))
        state = parse_source(ByteSource(b"".join(records)), trace=trace)
        record_lines = [line for line in trace.lines if not line.startswith("#")]
        assert len(record_lines) == 101
        assert len(state.unknown_records) == 100

    def test_repeated_tag_takes_first_after_previous_hit(self):
        state = _parse([i32("TTyp", 1), text("TNam", "MyApp"), i32("TTyp", 2), i32("TTyp", 3)])
        assert state.target_type is TargetType.STATIC_LIBRARY
