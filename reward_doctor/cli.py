from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from reward_doctor import __version__ as TOOL_VERSION
from reward_doctor.config import VALID_STRATEGIES, ConfigError, PipelineConfig
from reward_doctor.loader import ALL_FORMATS, load_table
from reward_doctor.pipeline import PipelineResult, StructuralError, run_pipeline
from reward_doctor.summary import build_structured_summary, build_trace_report
from reward_doctor.writer import OUTPUT_FORMATS, write_output

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_NO_EVENTS = 3


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class RewardDoctorArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dumps(payload), encoding="utf-8")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, ConfigError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (StructuralError, ImportError, UnicodeDecodeError)):
        return EXIT_PARSE_FAILED
    if isinstance(exc, ValueError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def check_input_path(input_path: Path) -> None:
    suffix = input_path.suffix.lower()
    if suffix not in ALL_FORMATS:
        raise CliError(
            f"Unsupported file type '{suffix or '[missing extension]'}'. "
            f"Supported: {', '.join(sorted(ALL_FORMATS))}",
            EXIT_COMMAND_ERROR,
        )


def default_output_path(input_path: Path) -> Path:
    return input_path.parent / f"{input_path.stem}_rewards.xlsx"


def resolve_output_path(args: argparse.Namespace, input_path: Path) -> Path:
    explicit = args.output_flag or args.output_positional
    output_path = Path(explicit) if explicit else default_output_path(input_path)
    if output_path.suffix.lower() not in OUTPUT_FORMATS:
        raise CliError(
            f"Unsupported output type '{output_path.suffix or '[missing extension]'}'. "
            f"Supported: {', '.join(sorted(OUTPUT_FORMATS))}",
            EXIT_COMMAND_ERROR,
        )
    if output_path.resolve() == input_path.resolve():
        raise CliError("Refusing to overwrite the input file; choose a different output path", EXIT_COMMAND_ERROR)
    if output_path.exists() and not args.force:
        raise CliError(f"Refusing to overwrite existing output: {output_path} (use --force)", EXIT_COMMAND_ERROR)
    return output_path


def build_config(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig.from_env(year=args.year, timezone=args.timezone, strategy=args.strategy)


def render_heal_summary(result: PipelineResult, output_path: Path | None) -> str:
    counts = result.action_counts
    width = 60
    lines = [
        "═" * width,
        "  Reward Doctor  ·  Heal Report",
        "═" * width,
        f"  Strategy     : {result.strategy}",
        f"  Assumed year : {result.config.year}",
        f"  Timezone     : {result.config.timezone}",
        "─" * width,
        f"  Data rows    : {result.data_rows}  (excl. header row)",
        f"  Candidates   : {result.candidate_pairs}",
        f"  Events       : {len(result.events)}",
        f"  Dropped dates: {result.dropped_dates}",
    ]
    for action in sorted(counts):
        lines.append(f"    · {action:<22} {counts[action]}")
    if output_path is not None:
        lines.append("─" * width)
        lines.append(f"  Output file  : {output_path}")
    lines.append("═" * width)
    return "\n".join(lines)


def render_trace_text(result: PipelineResult) -> str:
    lines = [f"{'row':>5}  {'stage':<8}  {'action':<20}  {'class':<14}  value / detail"]
    for entry in result.trace:
        detail = f" ({entry.detail})" if entry.detail else ""
        lines.append(
            f"{entry.row_number:>5}  {entry.stage:<8}  {entry.action:<20}  "
            f"{entry.classification:<14}  {entry.raw_value!r}{detail}"
        )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = RewardDoctorArgumentParser(
        prog="reward-doctor",
        description="Rebuild clean (timestamp, amount) reward rows from noisy mining exports.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_run_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("input", help="Input file path")
        sub.add_argument("--sheet", dest="sheet_name", help="Workbook sheet name (default: first sheet)")
        sub.add_argument("--strategy", choices=VALID_STRATEGIES, default=None, help="Pairing strategy (default: auto)")
        sub.add_argument("--year", type=int, default=None, help="Year assumed for compact 'Mon D, H:MM' dates")
        sub.add_argument("--timezone", default=None, help="IANA timezone for canonical rendering (default: UTC)")
        sub.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
        sub.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
        sub.add_argument("-v", "--verbose", action="store_true", help="Log every dropped row to stderr")

    heal = subparsers.add_parser("heal", help="Rebuild reward rows and write them out.")
    add_run_options(heal)
    heal.add_argument("output_positional", nargs="?", default=None, help="Optional output path (.xlsx or .csv)")
    heal.add_argument("--output", dest="output_flag", help="Explicit output path (.xlsx or .csv)")
    heal.add_argument("--trace-sheet", action="store_true", help="Add a Trace sheet to .xlsx output")
    heal.add_argument("--json-summary", dest="json_summary", help="Write a structured JSON summary to this path")
    heal.add_argument("--dry-run", action="store_true", help="Run the pipeline without writing outputs")
    heal.add_argument("--force", action="store_true", help="Overwrite an existing output file")
    heal.add_argument("--fail-on-empty", action="store_true", help="Return exit code 3 when no events were found")

    trace = subparsers.add_parser("trace", help="Show the per-row decisions without writing anything.")
    add_run_options(trace)

    subparsers.add_parser("version", help="Print version")
    return parser


def run_heal(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    try:
        check_input_path(input_path)
        config = build_config(args)
        output_path = None if args.dry_run else resolve_output_path(args, input_path)
        loaded = load_table(input_path, sheet_name=args.sheet_name)
        result = run_pipeline(loaded.rows, config)
        if output_path is not None:
            write_output(result, output_path, include_trace=args.trace_sheet)
        summary = build_structured_summary(
            result,
            input_path=input_path,
            output_path=output_path,
            sheet_name=loaded.sheet_name,
            warnings=loaded.warnings,
        )
        if args.json_summary and not args.dry_run:
            write_json(Path(args.json_summary), summary)
        if args.json:
            print(json_dumps(summary))
        else:
            for warning in loaded.warnings:
                emit_human(f"Warning: {warning}", quiet=args.quiet)
            emit_human(render_heal_summary(result, output_path), quiet=args.quiet)
            if args.json_summary and not args.dry_run:
                emit_human(f"Heal summary: {args.json_summary}", quiet=args.quiet)
        if not result.events and args.fail_on_empty:
            return EXIT_NO_EVENTS
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_trace(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    try:
        check_input_path(input_path)
        config = build_config(args)
        loaded = load_table(input_path, sheet_name=args.sheet_name)
        result = run_pipeline(loaded.rows, config)
        if args.json:
            print(json_dumps(build_trace_report(
                result, input_path=input_path, sheet_name=loaded.sheet_name, warnings=loaded.warnings,
            )))
        else:
            print(render_trace_text(result))
            emit_human(
                f"{len(result.events)} events from {result.data_rows} data rows ({result.strategy} strategy)",
                quiet=args.quiet,
            )
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command in {"heal", "trace"}:
            configure_logging(args.verbose)
        if args.command == "heal":
            return run_heal(args)
        if args.command == "trace":
            return run_trace(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
