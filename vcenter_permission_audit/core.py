"""Core orchestration utilities for the vCenter permission audit."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .classification import PermissionClassification, classify_permissions
from .config import AuditConfig, ConfigurationError
from .exclusions import ExclusionMatcher, ExclusionResult
from .records import PermissionRecord, RecordError, TooltipEntry
from .report.assets import ReportAssets
from .report.chunking import DEFAULT_GROWTH_TIERS, ChunkedEnrichmentOrchestrator, EnrichmentOutcome, GrowthTier
from .report.main import PERMISSION_HEADERS, render_permission_report
from .report.tooltips import build_tooltip_entries
from .roles import DEFAULT_ROLE_CATALOG, RoleCatalog
from .utils import write_json_file, write_text_file

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

REPORT_FILENAME = "permissions_report.html"
TOOLTIP_FILENAME = "tooltip_data.json"
ENHANCED_FILENAME = "permissions_report_enhanced.html"


@dataclass
class RecordLoadResult:
    """Records accepted from an inventory export and the reasons others were not."""

    records: List[PermissionRecord]
    rejected: List[str] = field(default_factory=list)


@dataclass
class AuditResults:
    """Filtered, classified permissions from a full audit run."""

    records: List[PermissionRecord]
    classification: PermissionClassification
    exclusion: ExclusionResult
    rejected_records: List[str] = field(default_factory=list)
    skipped_patterns: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        messages: List[str] = []
        if self.rejected_records:
            messages.append(f"{len(self.rejected_records)} permission record(s) were rejected")
        if self.skipped_patterns:
            messages.append(f"{len(self.skipped_patterns)} exclusion pattern(s) were invalid and skipped")
        if self.exclusion.excluded_count:
            messages.append(f"{self.exclusion.excluded_count} permission(s) excluded by pattern")
        return messages


@dataclass
class ReportPaths:
    report: Path
    tooltip_data: Path
    enhanced: Optional[Path] = None
    summary: Optional[Path] = None


def _read_json(path: PathLike, purpose: str) -> Any:
    source = Path(path)
    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read {purpose} file {source}: {exc}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{purpose.capitalize()} file {source} is not valid JSON: {exc}") from exc


def parse_permission_records(items: Iterable[Mapping[str, Any]]) -> RecordLoadResult:
    """Convert raw mappings into records, skipping and noting invalid ones."""

    result = RecordLoadResult(records=[])
    for index, item in enumerate(items):
        try:
            result.records.append(PermissionRecord.from_mapping(item))
        except RecordError as exc:
            logger.warning("Skipping permission record %d: %s", index, exc)
            result.rejected.append(f"record {index}: {exc}")
    return result


def load_permission_records(path: PathLike) -> RecordLoadResult:
    """Load the inventory walker's JSON export of permission records."""

    data = _read_json(path, "permission records")
    if isinstance(data, Mapping):
        data = data.get("permissions", data.get("Permissions"))
    if not isinstance(data, list):
        raise ConfigurationError(f"Permission records file {path} must contain a JSON list of records")
    return parse_permission_records(data)


def collect_audit_results(
    records: Iterable[PermissionRecord],
    *,
    exclusions: Optional[ExclusionMatcher] = None,
) -> AuditResults:
    """Filter *records* through *exclusions* and classify what remains."""

    exclusion = exclusions.filter(records) if exclusions is not None else ExclusionResult(kept=list(records))
    classification = classify_permissions(exclusion.kept)
    return AuditResults(
        records=exclusion.kept,
        classification=classification,
        exclusion=exclusion,
        skipped_patterns=list(exclusions.skipped_lines) if exclusions is not None else [],
    )


def build_exclusion_matcher(config: AuditConfig) -> Optional[ExclusionMatcher]:
    if not config.exclusions_enabled:
        return None
    if not config.exclusion_file:
        raise ConfigurationError("'exclusion_file' is required when exclusions are enabled", "exclusion_file")
    return ExclusionMatcher.from_file(config.exclusion_file)


def print_permission_summary(results: AuditResults) -> None:
    """Pretty-print per-group counts to stdout."""

    if not results.records:
        print("No permissions found.")
        return

    header = f"{'Category':<16} {'Permissions':>11}"
    print(header)
    print("-" * len(header))
    for group, count in results.classification.counts.items():
        if count:
            print(f"{group.value:<16} {count:>11}")
    print("-" * len(header))
    print(f"{'Total':<16} {results.classification.total:>11}")
    for pattern, count in sorted(results.exclusion.per_pattern_counts.items()):
        print(f"Excluded by {pattern}: {count}")


def write_tooltip_data(entries: Mapping[str, TooltipEntry], path: PathLike) -> Path:
    """Write the tooltip side channel as a JSON object keyed by entity identifier."""

    return write_json_file(path, {key: entry.to_mapping() for key, entry in entries.items()})


def load_tooltip_data(path: PathLike) -> Dict[str, TooltipEntry]:
    """Load tooltip entries written by :func:`write_tooltip_data`."""

    data = _read_json(path, "tooltip data")
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Tooltip data file {path} must contain a JSON object")
    entries: Dict[str, TooltipEntry] = {}
    for key, value in data.items():
        try:
            entries[str(key)] = TooltipEntry.from_mapping(value)
        except RecordError as exc:
            logger.warning("Skipping tooltip entry %s: %s", key, exc)
    return entries


def assets_from_config(config: AuditConfig) -> ReportAssets:
    return ReportAssets(
        theme=config.tooltip_theme,
        max_width=config.tooltip_max_width,
        keyboard_navigation=config.keyboard_navigation,
        filtering=config.filtering,
    )


def growth_tiers_from_config(config: AuditConfig) -> Tuple[GrowthTier, ...]:
    """Return the default size tiers with the ratios configured in *config*."""

    small, medium, large = DEFAULT_GROWTH_TIERS
    return (
        GrowthTier(max_size=small.max_size, max_ratio=float(config.growth_ratio_small)),
        GrowthTier(max_size=medium.max_size, max_ratio=float(config.growth_ratio_medium)),
        GrowthTier(max_size=large.max_size, max_ratio=float(config.growth_ratio_large)),
    )


def summary_path_for(output_path: PathLike) -> Path:
    output = Path(output_path)
    return output.with_name(f"{output.stem}.summary.json")


def enhance_report(
    input_path: PathLike,
    tooltip_path: PathLike,
    output_path: PathLike,
    config: AuditConfig,
) -> Tuple[EnrichmentOutcome, Dict[str, Any]]:
    """Enrich the report at *input_path* and write the result to *output_path*.

    The output file and its summary JSON are only written when every chunk
    passed the growth check.
    """

    source = Path(input_path)
    try:
        document = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read report file {source}: {exc}") from exc
    entries = load_tooltip_data(tooltip_path)
    return enhance_document(document, entries, config, input_path=source, output_path=output_path)


def enhance_document(
    document: str,
    entries: Mapping[str, TooltipEntry],
    config: AuditConfig,
    *,
    output_path: PathLike,
    input_path: Optional[PathLike] = None,
) -> Tuple[EnrichmentOutcome, Dict[str, Any]]:
    output = Path(output_path)
    orchestrator = ChunkedEnrichmentOrchestrator(
        chunk_size=config.tooltip_chunk_size,
        growth_tiers=growth_tiers_from_config(config),
        output_path=output,
        assets=assets_from_config(config),
    )
    outcome = orchestrator.run(document, entries)
    write_text_file(output, outcome.document)
    summary = outcome.to_summary(
        input_file=str(input_path) if input_path is not None else None,
        output_file=str(output),
    )
    write_json_file(summary_path_for(output), summary)
    return outcome, summary


def generate_reports(
    results: AuditResults,
    output_dir: PathLike,
    config: AuditConfig,
    *,
    catalog: RoleCatalog = DEFAULT_ROLE_CATALOG,
) -> ReportPaths:
    """Write the static report, tooltip data and (when enabled) the enhanced report."""

    directory = Path(output_dir)
    document = render_permission_report(
        results.classification,
        title=config.report_title,
        excluded_count=results.exclusion.excluded_count,
        per_pattern_counts=results.exclusion.per_pattern_counts,
    )
    entries = build_tooltip_entries(results.classification.records(), catalog)
    paths = ReportPaths(
        report=write_text_file(directory / REPORT_FILENAME, document),
        tooltip_data=write_tooltip_data(entries, directory / TOOLTIP_FILENAME),
    )

    if config.tooltips_enabled:
        enhanced = directory / ENHANCED_FILENAME
        enhance_document(document, entries, config, output_path=enhanced, input_path=paths.report)
        paths.enhanced = enhanced
        paths.summary = summary_path_for(enhanced)

    return paths


def export_permissions_to_excel(records: Iterable[PermissionRecord], path: str) -> str:
    """Write *records* to an Excel workbook located at *path*."""

    headers = PERMISSION_HEADERS + ("Created", "Modified")
    rows = (
        (
            record.entity,
            record.entity_type,
            record.principal,
            record.role,
            record.inherited,
            record.propagate,
            record.source.value,
            record.created_date.isoformat() if record.created_date else "",
            record.modified_date.isoformat() if record.modified_date else "",
        )
        for record in records
    )
    return _export_rows_to_excel(
        rows,
        headers,
        path,
        sheet_title="Permissions",
        purpose="permissions",
    )


def _export_rows_to_excel(
    rows: Iterable[Sequence[object]],
    headers: Sequence[str],
    path: str,
    *,
    sheet_title: str,
    purpose: str,
) -> str:
    """Write ``rows`` with ``headers`` to an Excel sheet using :mod:`openpyxl`."""

    try:
        from openpyxl import Workbook
        from openpyxl.utils import get_column_letter
    except ImportError as exc:  # pragma: no cover - dependency missing during tests
        raise RuntimeError(
            "The 'openpyxl' package is required to export "
            f"{purpose} to Excel. Install it with 'pip install openpyxl'."
        ) from exc

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title

    sheet.append(list(headers))
    column_widths = [len(header) for header in headers]

    for row in rows:
        values = list(row)
        sheet.append(values)
        for idx, value in enumerate(values):
            column_widths[idx] = max(column_widths[idx], len(str(value)))

    for idx, width in enumerate(column_widths, start=1):
        column_letter = get_column_letter(idx)
        sheet.column_dimensions[column_letter].width = min(width + 2, 60)
    sheet.freeze_panes = "A2"

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    return path


__all__ = [
    "AuditResults",
    "RecordLoadResult",
    "ReportPaths",
    "assets_from_config",
    "build_exclusion_matcher",
    "collect_audit_results",
    "enhance_document",
    "enhance_report",
    "export_permissions_to_excel",
    "generate_reports",
    "growth_tiers_from_config",
    "load_permission_records",
    "load_tooltip_data",
    "parse_permission_records",
    "print_permission_summary",
    "write_tooltip_data",
]
