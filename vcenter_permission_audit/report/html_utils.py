"""Helpers for building HTML fragments of the permissions report."""

from __future__ import annotations

import re
from html import escape as html_escape
from typing import Iterable, List, Optional, Sequence

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(value: str) -> str:
    """Collapse runs of whitespace (including non-breaking spaces) to one space."""

    return _WHITESPACE_RE.sub(" ", value).strip()


def escape_text(value: object) -> str:
    """Return ``value`` escaped for use as element text.

    Quotes are left alone so that text written by the report renderer is
    byte-identical to the search string used by the annotator.  Both sides
    must go through this helper.
    """

    return html_escape(str(value), quote=False)


def escape_attribute(value: object) -> str:
    """Return ``value`` escaped for use inside a double-quoted attribute.

    The single quote escape is normalised to the decimal ``&#39;`` form,
    which every browser and HTML tool understands.
    """

    return html_escape(str(value), quote=True).replace("&#x27;", "&#39;")


def format_flag(value: bool) -> str:
    return "Yes" if value else "No"


def build_cell(content: str, *, css_class: Optional[str] = None, header: bool = False) -> str:
    """Return one ``<td>`` (or ``<th>``) around pre-escaped ``content``."""

    tag = "th" if header else "td"
    class_attr = f' class="{escape_attribute(css_class)}"' if css_class else ""
    return f"<{tag}{class_attr}>{content}</{tag}>"


def build_table_row(cells: Iterable[str], *, header: bool = False, row_class: Optional[str] = None) -> str:
    """Return a ``<tr>`` of pre-escaped ``cells``."""

    cell_html = "".join(build_cell(cell, header=header) for cell in cells)
    class_attr = f' class="{escape_attribute(row_class)}"' if row_class else ""
    return f"<tr{class_attr}>{cell_html}</tr>"


def build_table(
    headers: Sequence[str],
    rows: Iterable[Sequence[object]],
    *,
    table_class: str = "permissions-table",
    table_id: Optional[str] = None,
) -> str:
    """Return an HTML table; header and cell values are escaped here."""

    id_attr = f' id="{escape_attribute(table_id)}"' if table_id else ""
    lines: List[str] = [f'<table class="{escape_attribute(table_class)}"{id_attr}>']
    lines.append("<thead>" + build_table_row((escape_text(h) for h in headers), header=True) + "</thead>")
    lines.append("<tbody>")
    for row in rows:
        lines.append(build_table_row(escape_text(value) for value in row))
    lines.append("</tbody>")
    lines.append("</table>")
    return "\n".join(lines)


__all__ = [
    "build_cell",
    "build_table",
    "build_table_row",
    "escape_attribute",
    "escape_text",
    "format_flag",
    "normalize_whitespace",
]
