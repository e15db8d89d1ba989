"""Rendering of the static permissions report."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from ..classification import PermissionClassification, PermissionGroup
from ..records import PermissionRecord
from .html_utils import (
    build_cell,
    build_table,
    build_table_row,
    escape_attribute,
    escape_text,
    format_flag,
)

PERMISSION_HEADERS = ("Entity", "Type", "Principal", "Role", "Inherited", "Propagate", "Source")

_BASE_STYLE = """<style>
body { font-family: Helvetica, Arial, sans-serif; margin: 24px; color: #1a202c; }
h1 { font-size: 22px; }
h2 { font-size: 17px; margin-top: 28px; border-bottom: 1px solid #cbd5e0; }
table { border-collapse: collapse; width: 100%; }
th, td { border: 1px solid #e2e8f0; padding: 4px 8px; text-align: left; font-size: 13px; }
th { background: #edf2f7; }
.summary-table { width: auto; }
.report-meta { color: #4a5568; font-size: 12px; }
.col-entity { font-weight: bold; }
.col-type, .col-source { color: #4a5568; }
.col-flag { text-align: center; width: 80px; }
.flag { display: inline-block; min-width: 32px; padding: 1px 6px; border-radius: 8px; font-size: 11px; }
.flag-yes { background: #c6f6d5; color: #22543d; }
.flag-no { background: #edf2f7; color: #718096; }
tr.perm-row[data-inherited="yes"] .col-entity { font-style: italic; }
</style>"""


def _flag_cell(value: bool) -> str:
    state = "yes" if value else "no"
    return build_cell(f'<span class="flag flag-{state}">{format_flag(value)}</span>', css_class="col-flag")


def render_record_row(record: PermissionRecord) -> str:
    """Return the ``<tr>`` for one permission.

    Entity, principal and role cells hold nothing but their escaped text so
    the tooltip annotator can find them.
    """

    cells = [
        build_cell(escape_text(record.entity), css_class="col-entity"),
        build_cell(escape_text(record.entity_type), css_class="col-type"),
        build_cell(escape_text(record.principal), css_class="col-principal"),
        build_cell(escape_text(record.role), css_class="col-role"),
        _flag_cell(record.inherited),
        _flag_cell(record.propagate),
        build_cell(escape_text(record.source.value), css_class="col-source"),
    ]
    inherited = "yes" if record.inherited else "no"
    propagate = "yes" if record.propagate else "no"
    return (
        f'<tr class="perm-row" data-inherited="{inherited}" data-propagate="{propagate}">'
        + "".join(cells)
        + "</tr>"
    )


def render_group_section(group: PermissionGroup, records: List[PermissionRecord]) -> str:
    """Return the heading and table for one permission group."""

    table_id = escape_attribute(f"group-{group.value.lower()}")
    lines = [
        f'<table class="permissions-table" id="{table_id}">',
        "<thead>" + build_table_row((escape_text(h) for h in PERMISSION_HEADERS), header=True) + "</thead>",
        "<tbody>",
        *(render_record_row(record) for record in records),
        "</tbody>",
        "</table>",
    ]
    return (
        f'<section class="permission-group" data-group="{escape_attribute(group.value)}">\n'
        f"<h2>{escape_text(group.display_name)} ({len(records)})</h2>\n"
        + "\n".join(lines)
        + "\n</section>"
    )


def render_summary(classification: PermissionClassification) -> str:
    rows = [(group.display_name, count) for group, count in classification.counts.items() if count]
    rows.append(("Total", classification.total))
    return build_table(("Category", "Permissions"), rows, table_class="summary-table")


def render_permission_report(
    classification: PermissionClassification,
    *,
    title: str = "vCenter Permissions Report",
    generated_at: Optional[datetime] = None,
    excluded_count: int = 0,
    per_pattern_counts: Optional[Mapping[str, int]] = None,
) -> str:
    """Render the full static HTML report for *classification*.

    Only groups with at least one record get a section.  The output has the
    ``<head>`` and ``</body>`` markers the tooltip assets are injected at.
    """

    generated = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    meta = [f"Generated {escape_text(generated)}", f"{classification.total} permission(s)"]
    if excluded_count:
        meta.append(f"{excluded_count} excluded by pattern")

    sections = [render_group_section(group, records) for group, records in classification.non_empty_groups()]
    if not sections:
        sections.append('<p class="empty">No permissions found.</p>')

    exclusion_html = ""
    if per_pattern_counts:
        counts: Dict[str, int] = dict(per_pattern_counts)
        exclusion_html = (
            '<section class="exclusions">\n<h2>Excluded Principals</h2>\n'
            + build_table(("Pattern", "Excluded"), sorted(counts.items()), table_class="summary-table")
            + "\n</section>"
        )

    return "\n".join(
        [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8">',
            f"<title>{escape_text(title)}</title>",
            _BASE_STYLE,
            "</head>",
            "<body>",
            f"<h1>{escape_text(title)}</h1>",
            f'<p class="report-meta">{" | ".join(meta)}</p>',
            render_summary(classification),
            *sections,
            exclusion_html,
            "</body>",
            "</html>",
            "",
        ]
    )


__all__ = [
    "PERMISSION_HEADERS",
    "render_record_row",
    "render_group_section",
    "render_permission_report",
    "render_summary",
]
