"""CLI to check generated framework visualizations against their contracts."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, List, Tuple

from config import CoreConfig
from logging_utils import setup_core_logging
from visual_contracts import validate_framework_viz


def _load_payloads(target: Path) -> List[Tuple[str, Any]]:
    """Payloads in a file: one object or a list of {"framework_id", "viz"} objects."""
    data = json.loads(target.read_text(encoding="utf-8"))
    entries = data if isinstance(data, list) else [data]
    payloads = []
    for index, entry in enumerate(entries):
        label = f"{target}[{index}]" if isinstance(data, list) else str(target)
        payloads.append((label, entry))
    return payloads


def _collect_issues(target: Path, show_scores: bool = False) -> Tuple[List[str], bool]:
    """Return printable lines and whether any payload failed."""
    if target.is_dir():
        files = sorted(target.glob("*.json"))
        if not files:
            return [f"{target}: ERROR: no JSON files found"], True
        lines: List[str] = []
        failed = False
        for path in files:
            file_lines, file_failed = _collect_issues(path, show_scores)
            lines.extend(file_lines)
            failed = failed or file_failed
        return lines, failed

    if not target.exists():
        return [f"{target}: ERROR: file not found"], True
    try:
        payloads = _load_payloads(target)
    except (OSError, ValueError) as exc:
        return [f"{target}: ERROR: could not parse JSON ({exc})"], True

    lines = []
    failed = False
    for label, entry in payloads:
        if not isinstance(entry, dict) or "framework_id" not in entry or "viz" not in entry:
            lines.append(f"{label}: ERROR: expected an object with framework_id and viz")
            failed = True
            continue

        framework_id = entry["framework_id"]
        result = validate_framework_viz(framework_id, entry["viz"])
        if result.ok:
            status = "OK" if result.canonical else "OK (non-canonical, not checked)"
            lines.append(f"{label}: {framework_id}: Visual contract {status}")
        else:
            failed = True
            lines.extend(f"{label}: {framework_id}: {issue}" for issue in result.issues)
        if show_scores and result.rubric is not None:
            lines.append(
                f"{label}: {framework_id}: rubric score {result.rubric.score:.3f} "
                f"(threshold {result.rubric.pass_threshold:.2f})"
            )
    return lines, failed


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Visualization contract checker for deep framework payloads.")
    parser.add_argument(
        "paths",
        nargs="+",
        help="One or more JSON files (or directories of them) holding framework_id/viz payloads.",
    )
    parser.add_argument(
        "--scores",
        action="store_true",
        help="Also print the rubric score for each structurally valid payload.",
    )
    parser.add_argument(
        "--log-dir",
        nargs="?",
        const=CoreConfig.LOG_DIR,
        default=None,
        help=f"Write a debug log file to this directory (default when given without a value: {CoreConfig.LOG_DIR}).",
    )
    args = parser.parse_args(argv)

    if args.log_dir:
        # Console shows warnings only so issue lines stay readable
        setup_core_logging(log_dir=args.log_dir, level=logging.WARNING)

    exit_code = 0
    for raw_path in args.paths:
        lines, failed = _collect_issues(Path(raw_path), show_scores=args.scores)
        for line in lines:
            print(line)
        if failed:
            exit_code = 1
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
