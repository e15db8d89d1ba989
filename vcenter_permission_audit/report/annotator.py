"""Pattern-based tooltip annotation of an HTML report.

The report is treated as plain text: nothing here parses it into a DOM.
A tooltip target is text that fills a whole ``<td>`` cell.  Each entry
wraps at most one cell, and an entry is skipped outright when any of its
candidate strings is already wrapped, which makes repeated runs over the
same document a no-op.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from ..records import TooltipEntry
from .html_utils import escape_attribute, escape_text
from .tooltips import build_tooltip_content

logger = logging.getLogger(__name__)

WRAPPER_CLASS = "perm-tooltip"
CONTENT_CLASS = "perm-tooltip-content"

_CONTENT_OPEN = f'<span class="{CONTENT_CLASS}" role="tooltip">'


@dataclass(frozen=True)
class AnnotationResult:
    document: str
    annotated: int = 0
    skipped: int = 0


def candidate_texts(entry: TooltipEntry) -> Tuple[str, ...]:
    """Return the escaped strings to look for, in priority order."""

    candidates = []
    for value in (entry.entity_name, entry.principal, entry.role):
        text = escape_text(value).strip()
        if text:
            candidates.append(text)
    return tuple(candidates)


def is_annotated(document: str, text: str) -> bool:
    """Return ``True`` when an annotation span already wraps *text*.

    This is a substring check on the wrapper boundary, so an unrelated
    occurrence of the same boundary text also counts as annotated.
    """

    return f">{text}<span class=\"{CONTENT_CLASS}\"" in document


def wrap_text(text: str, content: str, key: str) -> str:
    return (
        f'<span class="{WRAPPER_CLASS}" data-tooltip-key="{escape_attribute(key)}">'
        f"{text}{_CONTENT_OPEN}{content}</span></span>"
    )


def _cell_pattern(text: str) -> "re.Pattern[str]":
    # tag names are case-insensitive, cell text is not
    return re.compile(r"(<(?i:td)\b[^>]*>)(\s*)" + re.escape(text) + r"(\s*)(</(?i:td)>)")


def _annotate_entry(document: str, key: str, entry: TooltipEntry) -> Optional[str]:
    candidates = candidate_texts(entry)
    if not candidates:
        return None
    if any(is_annotated(document, text) for text in candidates):
        return None

    content = build_tooltip_content(entry)
    for text in candidates:
        pattern = _cell_pattern(text)
        match = pattern.search(document)
        if match is None:
            continue
        replacement = (
            match.group(1) + match.group(2) + wrap_text(text, content, key) + match.group(3) + match.group(4)
        )
        return document[: match.start()] + replacement + document[match.end() :]
    return None


def annotate_document(document: str, entries: Mapping[str, TooltipEntry]) -> AnnotationResult:
    """Wrap report cells with tooltips for *entries*, in the mapping's order."""

    annotated = 0
    skipped = 0
    for key, entry in entries.items():
        updated = _annotate_entry(document, key, entry)
        if updated is None:
            skipped += 1
            continue
        document = updated
        annotated += 1
    logger.debug("Annotated %d of %d tooltip entries", annotated, annotated + skipped)
    return AnnotationResult(document=document, annotated=annotated, skipped=skipped)


def annotate(document: str, entries: Mapping[str, TooltipEntry]) -> str:
    return annotate_document(document, entries).document


__all__ = [
    "AnnotationResult",
    "CONTENT_CLASS",
    "WRAPPER_CLASS",
    "annotate",
    "annotate_document",
    "candidate_texts",
    "is_annotated",
    "wrap_text",
]
