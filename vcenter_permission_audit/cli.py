"""Command line interface for the vCenter permission audit tool."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import VALID_THEMES, AuditConfig, ConfigurationError, load_config
from .core import (
    build_exclusion_matcher,
    collect_audit_results,
    enhance_report,
    export_permissions_to_excel,
    generate_reports,
    load_permission_records,
    print_permission_summary,
)
from .exclusions import ExclusionMatcher
from .report.chunking import GrowthAnomalyError

logger = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="JSON configuration file", default=None)
    parser.add_argument("--theme", choices=VALID_THEMES, default=None, help="Tooltip colour theme")
    parser.add_argument("--max-width", type=int, default=None, help="Maximum tooltip width in pixels")
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Tooltip entries annotated per safety-checked chunk (default: 300)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Return parsed command line arguments."""

    parser = argparse.ArgumentParser(description="Audit vCenter permissions and build an interactive report.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit = subparsers.add_parser("audit", help="Classify exported permissions and write the reports")
    audit.add_argument("--records", required=True, help="JSON export of permission records")
    audit.add_argument("--output-dir", required=True, help="Directory for the generated reports")
    audit.add_argument("--exclusions", default=None, help="Exclusion pattern file (enables exclusions)")
    audit.add_argument(
        "--no-exclusions", action="store_true", help="Ignore exclusion settings from the configuration"
    )
    audit.add_argument("--excel", dest="excel_path", help="Optional path to export permissions as .xlsx")
    audit.add_argument("--no-tooltips", action="store_true", help="Skip building the enhanced report")
    _add_common_arguments(audit)

    enhance = subparsers.add_parser("enhance", help="Add tooltips to an existing permissions report")
    enhance.add_argument("--input", required=True, help="HTML report to enhance")
    enhance.add_argument("--tooltips", required=True, help="Tooltip data JSON file")
    enhance.add_argument("--output", required=True, help="Path of the enhanced HTML report")
    enhance.add_argument("--no-keyboard", action="store_true", help="Disable keyboard navigation")
    enhance.add_argument("--no-filtering", action="store_true", help="Disable table filter controls")
    _add_common_arguments(enhance)

    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _resolve_config(args: argparse.Namespace) -> AuditConfig:
    config = load_config(args.config)
    overrides = {
        "tooltip_theme": args.theme,
        "tooltip_max_width": args.max_width,
        "tooltip_chunk_size": args.chunk_size,
    }
    if args.command == "audit":
        if args.no_exclusions:
            overrides.update(exclusions_enabled=False, exclusion_file=None)
        elif args.exclusions:
            overrides.update(exclusions_enabled=True, exclusion_file=args.exclusions)
        if args.no_tooltips:
            overrides["tooltips_enabled"] = False
    else:
        if args.no_keyboard:
            overrides["keyboard_navigation"] = False
        if args.no_filtering:
            overrides["filtering"] = False
    return config.with_overrides(**overrides)


def _run_audit(args: argparse.Namespace, config: AuditConfig) -> int:
    loaded = load_permission_records(args.records)
    exclusions: Optional[ExclusionMatcher] = build_exclusion_matcher(config)
    results = collect_audit_results(loaded.records, exclusions=exclusions)
    results.rejected_records = loaded.rejected

    print_permission_summary(results)
    paths = generate_reports(results, args.output_dir, config)
    print(f"Permissions report written to {paths.report}")
    print(f"Tooltip data written to {paths.tooltip_data}")
    if paths.enhanced:
        print(f"Enhanced report written to {paths.enhanced}")

    if args.excel_path:
        try:
            path = export_permissions_to_excel(results.records, args.excel_path)
        except RuntimeError as exc:
            print(f"Failed to export Excel report: {exc}", file=sys.stderr)
        else:
            print(f"Excel report written to {path}")

    for message in results.warnings:
        print(f"Warning: {message}", file=sys.stderr)
    return 0


def _run_enhance(args: argparse.Namespace, config: AuditConfig) -> int:
    outcome, summary = enhance_report(args.input, args.tooltips, args.output, config)
    print(
        f"Added {outcome.tooltips_added} tooltip(s) in {outcome.total_chunks} chunk(s) "
        f"({summary['chunking']['processingRatePerSecond']} entries/s)"
    )
    print(f"Enhanced report written to {args.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point used by ``python -m vcenter_permission_audit``."""

    args = parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = _resolve_config(args)
        if args.command == "audit":
            return _run_audit(args, config)
        return _run_enhance(args, config)
    except (ConfigurationError, GrowthAnomalyError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


__all__ = ["main", "parse_args"]
