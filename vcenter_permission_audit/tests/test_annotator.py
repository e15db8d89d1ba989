"""Tests for tooltip annotation of report documents."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from vcenter_permission_audit.records import TooltipDetails, TooltipEntry
from vcenter_permission_audit.report.annotator import (
    WRAPPER_CLASS,
    annotate,
    annotate_document,
    is_annotated,
)

SPAN_OPEN = f'<span class="{WRAPPER_CLASS}" '


def _entry(entity: str, principal: str, role: str) -> TooltipEntry:
    return TooltipEntry(
        entity_name=entity,
        entity_type="VirtualMachine",
        principal=principal,
        role=role,
        role_description=f"{role} description",
        details=TooltipDetails(capabilities=("View",)),
    )


def _entries(*items: TooltipEntry) -> Dict[str, TooltipEntry]:
    return {entry.key: entry for entry in items}


def _row(*cells: str) -> str:
    return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"


DOCUMENT = (
    "<html><head></head><body><table>"
    + _row("VM-Web01", "DOMAIN\\webadmins", "VirtualMachinePowerUser")
    + _row("VM-Web01", "DOMAIN\\ops", "Read-only")
    + _row("Cluster-Prod", "DOMAIN\\ops", "Read-only")
    + "</table></body></html>"
)


def test_wraps_first_entity_cell_only() -> None:
    """Only the first occurrence of the entity cell is wrapped."""

    result = annotate_document(DOCUMENT, _entries(_entry("VM-Web01", "DOMAIN\\webadmins", "VirtualMachinePowerUser")))

    assert result.annotated == 1
    assert result.document.count(SPAN_OPEN) == 1
    assert result.document.count("<td>VM-Web01</td>") == 1
    assert is_annotated(result.document, "VM-Web01")


def test_falls_back_to_principal_then_role() -> None:
    """When the entity is absent the principal cell is used, then the role."""

    by_principal = annotate(DOCUMENT, _entries(_entry("missing-vm", "DOMAIN\\webadmins", "Nope")))
    by_role = annotate(DOCUMENT, _entries(_entry("missing-vm", "DOMAIN\\nobody", "Read-only")))

    assert is_annotated(by_principal, "DOMAIN\\webadmins")
    assert is_annotated(by_role, "Read-only")
    assert by_role.count(SPAN_OPEN) == 1


def test_entry_skipped_when_any_target_already_wrapped() -> None:
    """A second entry sharing a wrapped entity name is not applied."""

    entries = _entries(
        _entry("VM-Web01", "DOMAIN\\webadmins", "VirtualMachinePowerUser"),
        _entry("VM-Web01", "DOMAIN\\ops", "Read-only"),
    )

    result = annotate_document(DOCUMENT, entries)

    assert result.annotated == 1
    assert result.skipped == 1
    assert result.document.count(SPAN_OPEN) == 1


def test_annotation_is_idempotent() -> None:
    """Running the annotator twice adds nothing the second time."""

    entries = _entries(
        _entry("VM-Web01", "DOMAIN\\webadmins", "VirtualMachinePowerUser"),
        _entry("Cluster-Prod", "DOMAIN\\ops", "Read-only"),
        _entry("ghost", "DOMAIN\\ghost", "Ghost"),
    )

    once = annotate(DOCUMENT, entries)
    twice = annotate(once, entries)

    assert twice == once
    assert once.count(SPAN_OPEN) == 2


def test_missing_targets_are_a_no_op() -> None:
    """Entries absent from the document leave it untouched."""

    result = annotate_document(DOCUMENT, _entries(_entry("ghost", "DOMAIN\\ghost", "Ghost")))

    assert result.document == DOCUMENT
    assert result.annotated == 0
    assert result.skipped == 1


def test_partial_cell_text_is_not_matched() -> None:
    """Text must fill the whole cell to be wrapped."""

    document = "<table><tr><td>VM-Web01-old</td><td>Prefix VM-Web01</td></tr></table>"

    assert annotate(document, _entries(_entry("VM-Web01", "", ""))) == document


def test_cell_attributes_and_whitespace_are_tolerated() -> None:
    """Cells with attributes, upper-case tags and padding still match."""

    document = '<TABLE><TR><TD class="entity">\n  VM-Web01 \n</TD></TR></TABLE>'

    annotated = annotate(document, _entries(_entry("VM-Web01", "", "")))

    assert annotated.startswith('<TABLE><TR><TD class="entity">\n  <span class="perm-tooltip"')
    assert annotated.endswith("</span></span> \n</TD></TR></TABLE>")


def test_backslashes_and_markup_characters_survive() -> None:
    """Principals with backslashes and ampersands are matched in escaped form."""

    document = "<table><tr><td>R&amp;D\\users</td></tr></table>"

    annotated = annotate(document, _entries(_entry("nothing", "R&D\\users", "")))

    assert is_annotated(annotated, "R&amp;D\\users")


def test_empty_candidates_never_match_empty_cells() -> None:
    """Entries with blank strings do not wrap empty cells."""

    document = "<table><tr><td></td><td> </td></tr></table>"

    assert annotate(document, _entries(_entry("", " ", ""))) == document


def test_pathological_input_does_not_raise() -> None:
    """Unbalanced markup and regex metacharacters are handled quietly."""

    document = "<td><td>(.*)[</td></td><td"

    annotated = annotate(document, _entries(_entry("(.*)[", "", "")))

    assert is_annotated(annotated, "(.*)[")
