from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from reward_doctor import __version__ as TOOL_VERSION
from reward_doctor.pipeline import PipelineResult

HEAL_SUMMARY_CONTRACT = "reward_doctor.heal_summary"
TRACE_CONTRACT = "reward_doctor.trace"
CONTRACT_VERSIONS = {
    HEAL_SUMMARY_CONTRACT: "1.0.0",
    TRACE_CONTRACT: "1.0.0",
}


def generated_at() -> str:
    """Second-resolution UTC timestamp with a trailing Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def contract_header(name: str) -> dict[str, Any]:
    version = CONTRACT_VERSIONS[name]
    return {
        "contract": {"name": name, "version": version},
        "schema_version": version,
        "tool_version": TOOL_VERSION,
    }


def run_summary(
    command: str,
    result: PipelineResult,
    input_path: Path,
    *,
    output_path: Path | None = None,
    warnings: list[str] | None = None,
    metrics: dict[str, Any] | None = None,
) -> dict[str, Any]:
    warnings = list(warnings or [])
    return {
        "tool": "reward-doctor",
        "command": command,
        "status": "ok" if result.events else "empty",
        "generated_at": generated_at(),
        "input_file": str(input_path),
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings),
        "warnings": warnings,
        "metrics": metrics or {},
    }


def build_structured_summary(
    result: PipelineResult,
    *,
    input_path: Path,
    output_path: Path | None = None,
    sheet_name: str | None = None,
    warnings: list[str] | None = None,
) -> dict:
    events = len(result.events)
    metrics = {
        "strategy": result.strategy,
        "data_rows": result.data_rows,
        "candidate_pairs": result.candidate_pairs,
        "events": events,
        "dropped_dates": result.dropped_dates,
    }
    return {
        **contract_header(HEAL_SUMMARY_CONTRACT),
        "strategy": result.strategy,
        "config": result.config.as_dict(),
        "input_file": str(input_path),
        "output_file": str(output_path) if output_path else None,
        "sheet_name": sheet_name,
        "rows": {
            "header": [None if value is None else str(value) for value in result.header],
            "data_rows": result.data_rows,
            "candidate_pairs": result.candidate_pairs,
            "events": events,
            "dropped_dates": result.dropped_dates,
        },
        "action_counts": dict(sorted(result.action_counts.items())),
        "run_summary": run_summary(
            "heal", result, input_path, output_path=output_path, warnings=warnings, metrics=metrics,
        ),
    }


def build_trace_report(
    result: PipelineResult,
    *,
    input_path: Path,
    sheet_name: str | None = None,
    warnings: list[str] | None = None,
) -> dict:
    return {
        **contract_header(TRACE_CONTRACT),
        "strategy": result.strategy,
        "config": result.config.as_dict(),
        "input_file": str(input_path),
        "sheet_name": sheet_name,
        "events": [
            {"date": row[0], "amount": row[1], "data_row": event.source_row}
            for event, row in zip(result.events, result.rows[1:])
        ],
        "trace": [entry.as_dict() for entry in result.trace],
        "run_summary": run_summary(
            "trace",
            result,
            input_path,
            warnings=warnings,
            metrics={
                "data_rows": result.data_rows,
                "trace_entries": len(result.trace),
                "events": len(result.events),
            },
        ),
    }
