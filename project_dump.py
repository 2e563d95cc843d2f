#!/usr/bin/env python3
"""
Minimal record dumper for BeIDE project files.

Every record is ``uint32 tag`` + ``int32 byte_count`` + payload (big endian).
This tool walks those records and prints a compact summary so we can eyeball
which tags carry strings, integers, or nested lists, including the ones the
reader does not understand yet.
"""

from __future__ import annotations

import argparse
import itertools
import sys
from pathlib import Path
from typing import Iterator, Sequence

from beide.decoders import read_int32
from beide.errors import ProjectError
from beide.parser import KNOWN_TAGS
from beide.source import ByteSource
from beide.tags import (
    TAG_FILE_ENTRY,
    TAG_FILE_TYPE_RULES,
    TAG_LOCAL_INCLUDES,
    TAG_PROJECT_FILES,
    TAG_RULE_ENTRY,
    TAG_SYSTEM_INCLUDES,
    TagRecord,
    TagScanner,
)

# Records whose payload is itself a run of records.
CONTAINER_TAGS = frozenset(
    (TAG_SYSTEM_INCLUDES, TAG_LOCAL_INCLUDES, TAG_PROJECT_FILES, TAG_FILE_TYPE_RULES, TAG_FILE_ENTRY, TAG_RULE_ENTRY)
)


def _as_text(payload: bytes) -> str | None:
    if not payload or payload[-1] != 0:
        return None
    body = payload[:-1]
    if b"\x00" in body:
        return None
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        return None
    if not all(ch.isprintable() for ch in text):
        return None
    return text


def describe_record(source: ByteSource, record: TagRecord, *, depth: int = 0, show_bytes: bool = False) -> str:
    parts = [
        f"{'  ' * depth}off=0x{record.offset:06X}",
        f"tag={record.name}",
        f"size={record.size}",
    ]
    if record.tag not in KNOWN_TAGS:
        parts.append("unknown")
    if record.tag in CONTAINER_TAGS:
        return " | ".join(parts)
    payload = source.read(record.payload_offset, record.size)
    text = _as_text(payload)
    if text is not None:
        parts.append(f"text={text!r}")
    elif record.size == 4:
        value, _ = read_int32(source, record.payload_offset, record.end)
        parts.append(f"int={value} (0x{value & 0xFFFFFFFF:08X})")
    elif show_bytes and record.size:
        sample = " ".join(f"{b:02X}" for b in payload[:16])
        if record.size > 16:
            sample += " …"
        parts.append(f"bytes={sample}")
    return " | ".join(parts)


def iter_dump_lines(
    source: ByteSource,
    *,
    start: int = 0,
    stop: int | None = None,
    max_depth: int = 3,
    show_bytes: bool = False,
) -> Iterator[str]:
    """Yield one line per record, descending into list records up to ``max_depth``."""

    scanner = TagScanner(source)

    def _walk(window_start: int, window_stop: int | None, depth: int) -> Iterator[str]:
        for record in scanner.iter_records(window_start, window_stop):
            yield describe_record(source, record, depth=depth, show_bytes=show_bytes)
            if record.tag in CONTAINER_TAGS and depth + 1 < max_depth:
                yield from _walk(record.payload_offset, record.end, depth + 1)

    yield from _walk(start, stop, 0)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump tag records from a BeIDE project file.")
    parser.add_argument("input", type=Path, help="Path to the BeIDE project file")
    parser.add_argument("--start", type=lambda x: int(x, 0), default=0, help="Byte offset to start parsing (default 0)")
    parser.add_argument("--stop", type=lambda x: int(x, 0), help="Optional exclusive stop offset")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of records to print (default: no limit)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=3,
        help="How many levels of nested list records to show (default 3)",
    )
    parser.add_argument(
        "--bytes",
        action="store_true",
        help="Include a short hex dump for payloads that are neither text nor int32",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        source = ByteSource.from_path(args.input)
    except ProjectError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    lines = iter_dump_lines(source, start=args.start, stop=args.stop, max_depth=args.depth, show_bytes=args.bytes)
    if args.limit is not None:
        lines = itertools.islice(lines, args.limit)
    count = 0
    try:
        for line in lines:
            print(line)
            count += 1
    except ProjectError as exc:
        print(f"framing broken after {count} record(s): {exc}", file=sys.stderr)
        return 1
    if count == 0:
        print("No records discovered in the requested window.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
