"""Finalizing and emitting the smoke report."""

import json
import logging
import sys
from pathlib import Path
from typing import TextIO

from aidflow_smoke.core.models import SmokeReport

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1


def exit_status(report: SmokeReport, run_error: BaseException | None) -> int:
    return EXIT_OK if report.succeeded(run_error) else EXIT_FAILED


def emit_report(report: SmokeReport, stream: TextIO | None = None) -> None:
    """Write the report as the single JSON document on stdout."""
    out = stream if stream is not None else sys.stdout
    out.write(report.to_json())
    out.write("\n")
    out.flush()


def write_artifacts(report: SmokeReport, output_dir: Path, run_error: BaseException | None) -> None:
    """Write run.json and run.md for CI artifact upload."""
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "run.json", "w") as f:
        json.dump(report.to_json_dict(), f, indent=2)

    passed = report.succeeded(run_error)
    with open(output_dir / "run.md", "w") as f:
        f.write("# New-case smoke run\n\n")
        f.write(f"- **Base URL**: {report.base_url}\n")
        f.write(f"- **Result**: {'✅ pass' if passed else '❌ fail'}\n")
        if report.created_case_id:
            f.write(f"- **Case**: `{report.created_case_id}`\n")
        if run_error is not None:
            f.write(f"- **Error**: {type(run_error).__name__}: {run_error}\n")
        f.write("\n## Checks\n\n")
        for label, ok in (
            ("Case created", report.case_created),
            ("Review summary", report.review_summary_ok),
            ("Document uploaded (API)", report.document_uploaded_ok),
            ("Document visible (UI)", report.ui_document_visible_ok),
        ):
            f.write(f"- {'✅' if ok else '❌'} {label}\n")

        f.write("\n## Diagnostics\n\n")
        f.write(f"- Console errors: {len(report.console_errors)}\n")
        f.write(f"- Page errors: {len(report.page_errors)}\n")
        f.write(f"- Network errors: {len(report.network_errors)}\n")
        for err in report.network_errors:
            f.write(f"  - {err.method} {err.url} -> {err.status}\n")

        if report.dev_log_tail:
            f.write("\n## Dev server log (tail)\n\n```\n")
            f.write("\n".join(report.dev_log_tail))
            f.write("\n```\n")

    logger.info(f"📄 Artifacts written to {output_dir}")
