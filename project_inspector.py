#!/usr/bin/env python3
"""
High-level inspector for BeIDE project files.

Loads the project through ``beide.Project`` and:
  * prints the target settings, include paths, and project files
  * lists records the reader stepped over without understanding them
  * optionally writes the whole model as JSON and a per-record scan trace

The JSON output is what the build-system converters consume, so it is worth
diffing against a known-good dump when poking at new tags.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from beide.logging import ScanTraceLogger, log_unknown_records
from beide.model import flag_names
from beide.project import Project


def _print_summary(project: Project, *, file_limit: int) -> None:
    print(f"[+] target '{project.target_name}' type={project.target_type.name} (format v{project.format_version})")
    print(
        f"[settings] detect={project.file_detection_mode.name} "
        f"sys_as_local={'yes' if project.system_includes_as_local else 'no'} "
        f"optimize={project.optimization_mode.name} warn_mode={project.warning_mode.name}"
    )
    for label, flags in (
        ("language", project.language_options),
        ("warnings", project.warnings),
        ("codegen", project.code_generation_flags),
        ("strip", project.strip_flags),
    ):
        names = ",".join(flag_names(flags)) or "-"
        print(f"  {label:<9} 0x{int(flags):08X} {names}")
    if project.extra_compiler_options:
        print(f"  cc opts   {project.extra_compiler_options}")
    if project.extra_linker_options:
        print(f"  ld opts   {project.extra_linker_options}")

    print(f"\n[includes] system={project.count_system_includes()} local={project.count_local_includes()}")
    for path in project.system_includes:
        print(f"  <{path}>")
    for path in project.local_includes:
        print(f"  \"{path}\"")

    print(f"\n[files] {project.count_files()} entr{'y' if project.count_files() == 1 else 'ies'}")
    for index in range(min(project.count_files(), max(file_limit, 0))):
        entry = project.file_at(index)
        print(f"  {entry.group or '-':<12} {entry.path:<40} {entry.mime_type}")
    if project.count_files() > file_limit:
        print(f"  ... {project.count_files() - file_limit} more")

    print(f"\n[rules] {project.count_file_type_rules()} file type rule(s) (not used by the converters)")

    unknown = project.unknown_records
    if unknown:
        print(f"\n[unknown] {len(unknown)} record(s) skipped")
        for record in unknown[:10]:
            print(f"  off=0x{record.offset:06X} tag={record.name} size={record.size}")
    else:
        print("\n[unknown] none")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect a BeIDE project file.")
    parser.add_argument("input", type=Path, help="Path to the BeIDE project file")
    parser.add_argument("--json", type=Path, help="Optional JSON destination for the parsed model")
    parser.add_argument("--trace", type=Path, help="Optional destination for the record-by-record scan trace")
    parser.add_argument("--unknown", type=Path, help="Optional destination listing unrecognised records")
    parser.add_argument(
        "--file-limit",
        type=int,
        default=25,
        help="Maximum number of project files to list (default: 25)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    trace = ScanTraceLogger(args.trace) if args.trace else None
    project = Project()
    status = project.load(args.input, trace=trace)
    if trace is not None:
        trace.flush()
        print(f"[+] scan trace written to {args.trace}")

    if not project.is_ready:
        print(f"[-] {args.input}: load failed ({status.value}): {project.last_error}", file=sys.stderr)
        return 1

    _print_summary(project, file_limit=args.file_limit)

    if args.unknown:
        log_unknown_records(project.unknown_records, args.unknown)
        print(f"\n[+] unknown record list written to {args.unknown}")

    if args.json:
        payload = {"input": str(args.input), "project": project.to_dict()}
        args.json.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"\n[+] JSON summary written to {args.json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
