"""Tooltip payloads and their HTML content."""

from __future__ import annotations

from typing import Dict, Iterable, List

from ..records import PermissionRecord, TooltipDetails, TooltipEntry, format_timestamp
from ..roles import DEFAULT_ROLE_CATALOG, RoleCatalog
from .html_utils import escape_text

INHERITED_MARKER = "&#8595;"
PROPAGATE_MARKER = "&#8618;"
INACTIVE_MARKER = "&#9675;"


def build_tooltip_entry(record: PermissionRecord, catalog: RoleCatalog = DEFAULT_ROLE_CATALOG) -> TooltipEntry:
    """Return the tooltip payload for *record* using *catalog* for role text."""

    return TooltipEntry(
        entity_name=record.entity,
        entity_type=record.entity_type,
        principal=record.principal,
        role=record.role,
        role_description=catalog.describe(record.role),
        inherited=record.inherited,
        propagate=record.propagate,
        details=TooltipDetails(
            created_date=format_timestamp(record.created_date),
            modified_date=format_timestamp(record.modified_date),
            source=record.source.value,
            capabilities=tuple(catalog.capabilities_of(record.role)),
        ),
    )


def build_tooltip_entries(
    records: Iterable[PermissionRecord], catalog: RoleCatalog = DEFAULT_ROLE_CATALOG
) -> Dict[str, TooltipEntry]:
    """Key tooltip entries by entity identifier; the first record for a key wins."""

    entries: Dict[str, TooltipEntry] = {}
    for record in records:
        key = record.entity_identifier
        if key not in entries:
            entries[key] = build_tooltip_entry(record, catalog)
    return entries


def _flag(name: str, value: bool, marker: str) -> str:
    if value:
        return f"<em>{marker} {name}: Yes</em>"
    return f"{INACTIVE_MARKER} {name}: No"


def _meta(details: TooltipDetails) -> str:
    parts = [f"Source: {escape_text(details.source)}"]
    if details.created_date != "N/A":
        parts.append(f"Created: {escape_text(details.created_date)}")
    if details.modified_date != "N/A":
        parts.append(f"Modified: {escape_text(details.modified_date)}")
    return " | ".join(parts)


def build_tooltip_content(entry: TooltipEntry) -> str:
    """Render the HTML fragment shown inside a tooltip.

    Sections are introduced by a bold label and separated by line breaks;
    the injected stylesheet styles them through the tooltip container, so
    the fragment carries no classes of its own.  The output depends only on
    *entry* and never contains table cells, so wrapping it into a report
    cannot create new annotation targets.
    """

    details = entry.details
    sections: List[str] = [
        f"<b>Entity</b> {escape_text(entry.entity_name)} <i>({escape_text(entry.entity_type)})</i>",
        f"<b>Principal</b> {escape_text(entry.principal)}",
        f"<b>Role</b> {escape_text(entry.role)}<br><i>{escape_text(entry.role_description)}</i>",
        "<b>Properties</b> "
        + _flag("Inherited", entry.inherited, INHERITED_MARKER)
        + " "
        + _flag("Propagate", entry.propagate, PROPAGATE_MARKER)
        + f"<br><small>{_meta(details)}</small>",
    ]
    if details.capabilities:
        items = "".join(f"<li>{escape_text(item)}</li>" for item in details.capabilities)
        sections.append(f"<b>Permissions</b><ul>{items}</ul>")
    return "<br>".join(sections)


__all__ = [
    "build_tooltip_content",
    "build_tooltip_entries",
    "build_tooltip_entry",
]
