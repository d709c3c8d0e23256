"""Command-line entrypoint for the ``mdt`` tool."""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from pathlib import Path
from typing import Any, TextIO

from mdtsync.config import ConfigOverrides, ScanConfig, load_effective_config
from mdtsync.diagnostics import ProjectDiagnostic
from mdtsync.engine import CheckResult, UpdateResult, check, update
from mdtsync.errors import MdtError
from mdtsync.index import inspect_cache, scan_project
from mdtsync.index.scanner import ScanResult
from mdtsync.logging import (
    RUN_LOG_FILE_NAME,
    JsonlRunLogger,
    RunEvent,
    summarize_counts,
    utc_timestamp,
)

EXIT_OK = 0
EXIT_STALE = 1
EXIT_ERROR = 2


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the mdt command."""
    parser = argparse.ArgumentParser(
        prog="mdt", description="Keep provider and consumer doc blocks in sync."
    )
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument(
        "--no-cache", action="store_true", help="Ignore and do not write the index cache."
    )
    parser.add_argument(
        "--verify-hash", action="store_true", help="Fingerprint files by content hash too."
    )
    parser.add_argument("--max-file-size", type=int, required=False, default=None)
    parser.add_argument("--workers", type=int, required=False, default=None)
    parser.add_argument(
        "--set",
        dest="variables",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Template variable available to providers; may be repeated.",
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON envelope.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("check", help="Report stale consumer blocks.")
    update_parser = subparsers.add_parser("update", help="Rewrite stale consumer blocks.")
    update_parser.add_argument("--dry-run", action="store_true")
    subparsers.add_parser("list", help="List provider and consumer blocks.")
    subparsers.add_parser("cache", help="Inspect the index cache.")
    runs_parser = subparsers.add_parser("runs", help="Show recent entries of the run log.")
    runs_parser.add_argument("--limit", type=int, default=20)
    runs_parser.add_argument("--since", required=False, default=None)
    runs_parser.add_argument("--operation", required=False, default=None)
    return parser


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """Entrypoint for the mdt command."""
    stream = out if out is not None else sys.stdout
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    run_id = f"run-{uuid.uuid4().hex[:12]}"
    root = Path(args.root)

    try:
        data = parse_variables(args.variables)
        config = load_effective_config(
            root,
            ConfigOverrides(
                cache_enabled=False if args.no_cache else None,
                verify_hash=True if args.verify_hash else None,
                max_file_size=args.max_file_size,
            ),
        )
    except (ValueError, OSError) as exc:
        _emit_error(stream, args.json, run_id, "CONFIG_INVALID", str(exc))
        return EXIT_ERROR

    if args.command == "runs":
        logger = JsonlRunLogger(path=config.data_dir / RUN_LOG_FILE_NAME)
        try:
            events = logger.read(since=args.since, limit=args.limit, operation=args.operation)
        except OSError as exc:
            _emit_error(stream, args.json, run_id, "IO_ERROR", str(exc))
            return EXIT_ERROR
        payload = {"events": [event.to_dict() for event in events]}
        _emit(stream, args.json, run_id, payload, [], _format_runs(events))
        return EXIT_OK

    try:
        if args.command == "cache":
            inspection = inspect_cache(config)
            _log_run(config, run_id, "cache", ok=True, counts={"valid": inspection.valid})
            payload = inspection.to_dict()
            _emit(stream, args.json, run_id, payload, [], _format_cache(payload))
            return EXIT_OK

        scan = scan_project(config.root, config, workers=args.workers)
        if args.command == "list":
            listing = scan.project.to_public_dict()
            _log_run(
                config,
                run_id,
                "list",
                ok=True,
                counts={
                    "providers": len(scan.project.providers),
                    "consumers": len(scan.project.consumers),
                    **_scan_counts(scan),
                },
            )
            _emit(
                stream,
                args.json,
                run_id,
                listing,
                _warnings(tuple(scan.project.diagnostics)),
                _format_list(listing),
            )
            return EXIT_OK

        if args.command == "check":
            result = check(scan.project, data, config.padding)
            _log_run(
                config,
                run_id,
                "check",
                ok=result.is_ok,
                counts={
                    "stale": len(result.stale),
                    "unresolved": len(result.unresolved),
                    **_scan_counts(scan),
                },
            )
            _emit(
                stream,
                args.json,
                run_id,
                {**result.to_dict(), "scan": scan.stats.to_dict()},
                _warnings(result.diagnostics),
                _format_check(result),
                ok=result.is_ok,
            )
            return EXIT_OK if result.is_ok else EXIT_STALE

        updated = update(scan.project, data, config.padding, dry_run=args.dry_run)
        _log_run(
            config,
            run_id,
            "update",
            ok=updated.is_ok,
            counts={
                "updated_count": updated.updated_count,
                "skipped_count": updated.skipped_count,
                "updated_files": len(updated.updated_files),
                "dry_run": args.dry_run,
                **_scan_counts(scan),
            },
        )
        _emit(
            stream,
            args.json,
            run_id,
            {**updated.to_dict(), "dry_run": args.dry_run, "scan": scan.stats.to_dict()},
            _warnings(updated.diagnostics),
            _format_update(updated, args.dry_run),
            ok=updated.is_ok,
        )
        return EXIT_OK if updated.is_ok else EXIT_STALE
    except MdtError as exc:
        _log_run(config, run_id, args.command, ok=False, counts={}, error_code=exc.code)
        _emit_error(stream, args.json, run_id, exc.code, exc.message)
        return EXIT_ERROR
    except OSError as exc:
        _log_run(config, run_id, args.command, ok=False, counts={}, error_code="IO_ERROR")
        _emit_error(stream, args.json, run_id, "IO_ERROR", str(exc))
        return EXIT_ERROR


def parse_variables(raw_items: list[str]) -> dict[str, object]:
    """Turn ``NAME=VALUE`` pairs into a template data mapping."""
    data: dict[str, object] = {}
    for item in raw_items:
        name, separator, value = item.partition("=")
        if not separator or not name.strip():
            raise ValueError(f"--set expects NAME=VALUE, got {item!r}.")
        data[name.strip()] = value
    return data


def success_envelope(
    run_id: str, result: dict[str, object], warnings: list[str], ok: bool = True
) -> dict[str, object]:
    """Build success envelope."""
    return {"run_id": run_id, "ok": ok, "result": result, "warnings": warnings}


def error_envelope(run_id: str, code: str, message: str) -> dict[str, object]:
    """Build explicit error envelope."""
    return {
        "run_id": run_id,
        "ok": False,
        "result": {},
        "warnings": [],
        "error": {"code": code, "message": message},
    }


def _emit(
    stream: TextIO,
    as_json: bool,
    run_id: str,
    result: dict[str, object],
    warnings: list[str],
    text_lines: list[str],
    ok: bool = True,
) -> None:
    if as_json:
        stream.write(json.dumps(success_envelope(run_id, result, warnings, ok), sort_keys=True))
        stream.write("\n")
        return
    for line in text_lines:
        stream.write(f"{line}\n")


def _emit_error(stream: TextIO, as_json: bool, run_id: str, code: str, message: str) -> None:
    if as_json:
        stream.write(json.dumps(error_envelope(run_id, code, message), sort_keys=True))
        stream.write("\n")
        return
    stream.write(f"error [{code}]: {message}\n")


def _log_run(
    config: ScanConfig,
    run_id: str,
    operation: str,
    *,
    ok: bool,
    counts: dict[str, object],
    error_code: str | None = None,
) -> None:
    if not config.root.is_dir():
        return
    logger = JsonlRunLogger(path=config.data_dir / RUN_LOG_FILE_NAME)
    event = RunEvent(
        timestamp=utc_timestamp(),
        run_id=run_id,
        operation=operation,
        ok=ok,
        error_code=error_code,
        counts=summarize_counts(counts),
    )
    try:
        logger.append(event)
    except OSError as exc:
        sys.stderr.write(f"warning: cannot write run log {logger.path}: {exc}\n")


def _scan_counts(scan: ScanResult) -> dict[str, object]:
    return {
        "total_files": scan.stats.total_files,
        "reused_files": scan.stats.reused_files,
        "reparsed_files": scan.stats.reparsed_files,
    }


def _warnings(diagnostics: tuple[ProjectDiagnostic, ...]) -> list[str]:
    return [
        _format_diagnostic(diagnostic)
        for diagnostic in diagnostics
        if diagnostic.severity == "warning"
    ]


def _format_diagnostic(diagnostic: ProjectDiagnostic) -> str:
    return (
        f"{diagnostic.severity}: {diagnostic.file}:{diagnostic.line}:{diagnostic.column} "
        f"[{diagnostic.kind}] {diagnostic.message}"
    )


def _format_check(result: CheckResult) -> list[str]:
    lines = [_format_diagnostic(diagnostic) for diagnostic in result.diagnostics]
    for entry in result.stale:
        lines.append(f"stale: {entry.file}:{entry.line}:{entry.column} block '{entry.block_name}'")
        lines.extend(entry.diff.rstrip("\n").splitlines())
    for consumer in result.unresolved:
        lines.append(
            f"unresolved: {consumer.file}:{consumer.line}:{consumer.column} block '{consumer.name}'"
        )
    status = "ok" if result.is_ok else "out of date"
    lines.append(f"{status}: {len(result.stale)} stale, {len(result.unresolved)} unresolved")
    return lines


def _format_update(result: UpdateResult, dry_run: bool) -> list[str]:
    lines = [_format_diagnostic(diagnostic) for diagnostic in result.diagnostics]
    verb = "would update" if dry_run else "updated"
    for path in sorted(result.updated_files):
        lines.append(f"{verb}: {path}")
    lines.append(
        f"{verb} {result.updated_count} block(s) in {len(result.updated_files)} file(s)"
    )
    if result.skipped_count:
        lines.append(f"left unchanged: {result.skipped_count} block(s)")
    return lines


def _format_list(listing: dict[str, Any]) -> list[str]:
    providers = listing["providers"]
    consumers = listing["consumers"]
    if not providers and not consumers:
        return ["no provider or consumer blocks found"]
    lines: list[str] = []
    if providers:
        lines.append("providers:")
        for entry in providers:
            lines.append(
                f"  @{entry['name']} {entry['file']}:{entry['line']} "
                f"({entry['consumer_count']} consumer(s))"
            )
    if consumers:
        lines.append("consumers:")
        for entry in consumers:
            chain = "".join(f"|{name}" for name in entry["transformers"])
            status = "linked" if entry["linked"] else "orphan"
            lines.append(f"  ={entry['name']}{chain} {entry['file']}:{entry['line']} [{status}]")
    return lines


def _format_cache(payload: dict[str, object]) -> list[str]:
    return [f"{key}: {json.dumps(payload[key], sort_keys=True)}" for key in sorted(payload)]


def _format_runs(events: list[RunEvent]) -> list[str]:
    lines = []
    for event in events:
        status = "ok" if event.ok else f"failed [{event.error_code}]"
        counters = " ".join(f"{key}={value}" for key, value in sorted(event.counts.items()))
        line = f"{event.timestamp} {event.run_id} {event.operation} {status} {counters}"
        lines.append(line.rstrip())
    if not lines:
        lines.append("no runs recorded")
    return lines


if __name__ == "__main__":
    raise SystemExit(main())
