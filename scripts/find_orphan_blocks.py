#!/usr/bin/env python3
"""Find orphan block anchors and broken block links in a Markdown vault.

Walks the vault, scans every Markdown file, and writes the defect report as
JSON to stdout (or a plain-text listing with ``--format text``).  Progress
and summary messages go to stderr.

Usage:
    python3 scripts/find_orphan_blocks.py --root ~/notes
    python3 scripts/find_orphan_blocks.py --root ~/notes --format text \
        --window-size 40 --workers 4
    python3 scripts/find_orphan_blocks.py --root ~/notes \
        --config scan_config.json --output reports/blocks.json --fail-on-defects

Exit codes: 0 on success, 1 on retrieval/config errors, 2 when
``--fail-on-defects`` is set and defects were found.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from blockaudit.config import ScanConfig, load_scan_config
from blockaudit.io_utils import dump_json, save_json
from blockaudit.report import format_text, report_to_dict
from blockaudit.scanner import ScanSession, ScanStatus
from blockaudit.store import VaultDocumentStore

log = logging.getLogger("find_orphan_blocks")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find orphan block anchors and broken block links.",
    )
    parser.add_argument(
        "--root", required=True, type=Path, help="Vault / corpus root directory",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="JSON scan config file",
    )
    parser.add_argument(
        "--window-size",
        type=int,
        default=None,
        help="Context characters on each side of a defect (default: 20)",
    )
    parser.add_argument(
        "--strict-front-matter",
        action="store_true",
        help="End front matter at the first closing '---' instead of the last",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Worker processes (default: 1)",
    )
    parser.add_argument(
        "--format",
        choices=("json", "text"),
        default="json",
        help="Report format on stdout (default: json)",
    )
    parser.add_argument(
        "--include-clean",
        action="store_true",
        help="List documents without defects in JSON output",
    )
    parser.add_argument(
        "--output", type=Path, default=None, help="Also write the JSON report here",
    )
    parser.add_argument(
        "--fail-on-defects",
        action="store_true",
        help="Exit with status 2 if any defect is found",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def resolve_config(args: argparse.Namespace) -> ScanConfig:
    config = load_scan_config(args.config) if args.config is not None else ScanConfig()
    return config.with_overrides(
        window_size=args.window_size,
        workers=args.workers,
        greedy_front_matter=False if args.strict_front_matter else None,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    if not args.root.is_dir():
        log.error("Corpus root not found: %s", args.root)
        return 1
    try:
        config = resolve_config(args)
    except (OSError, ValueError) as exc:
        log.error("Invalid config: %s", exc)
        return 1

    store = VaultDocumentStore(args.root, extensions=config.extensions)
    session = ScanSession(
        store, config, on_status=lambda s: log.debug("status: %s", s),
    )
    result = session.run()
    if result.status is not ScanStatus.FINISHED or result.report is None:
        log.error("Scan failed: %s", result.error)
        return 1

    report = result.report
    payload = report_to_dict(report, include_clean=args.include_clean)
    if args.output is not None:
        save_json(payload, args.output)
        log.info("Wrote report to %s", args.output)

    if args.format == "text":
        print(format_text(report))
    else:
        dump_json(payload)

    print(
        f"{report.orphan_count} orphan anchors, {report.broken_count} broken links "
        f"across {report.document_count} documents ({result.elapsed_s:.2f}s)",
        file=sys.stderr,
    )
    if args.fail_on_defects and not report.is_clean:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
