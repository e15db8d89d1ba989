"""Tooltip styles and scripts, and their insertion into a report."""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping

from .annotator import CONTENT_CLASS, WRAPPER_CLASS


@dataclass(frozen=True)
class ThemePalette:
    background: str
    text: str
    border: str
    accent: str
    shadow: str


THEMES: Mapping[str, ThemePalette] = MappingProxyType(
    {
        "Dark": ThemePalette(
            background="#1f2937",
            text="#f9fafb",
            border="#374151",
            accent="#60a5fa",
            shadow="rgba(0, 0, 0, 0.45)",
        ),
        "Light": ThemePalette(
            background="#ffffff",
            text="#1a202c",
            border="#cbd5e0",
            accent="#2b6cb0",
            shadow="rgba(0, 0, 0, 0.15)",
        ),
        "Blue": ThemePalette(
            background="#1e3a8a",
            text="#eff6ff",
            border="#3b82f6",
            accent="#93c5fd",
            shadow="rgba(30, 58, 138, 0.4)",
        ),
    }
)

_HEAD_OPEN_RE = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
_HTML_OPEN_RE = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)


@dataclass(frozen=True)
class ReportAssets:
    """Options controlling the injected tooltip style and behaviour."""

    theme: str = "Dark"
    max_width: int = 400
    keyboard_navigation: bool = True
    filtering: bool = True

    @property
    def features(self) -> List[str]:
        features = ["tooltips", f"theme:{self.theme}", "chunked-processing"]
        if self.keyboard_navigation:
            features.append("keyboard-navigation")
        if self.filtering:
            features.append("filtering")
        return features

    def style_block(self) -> str:
        return build_style_block(self.theme, self.max_width)

    def behavior_block(self) -> str:
        return build_behavior_block(
            keyboard_navigation=self.keyboard_navigation, filtering=self.filtering
        )


def build_style_block(theme: str = "Dark", max_width: int = 400) -> str:
    """Return the ``<style>`` element for *theme*."""

    if theme not in THEMES:
        valid = ", ".join(THEMES)
        raise ValueError(f"Unknown tooltip theme '{theme}'. Valid themes: {valid}")
    if isinstance(max_width, bool) or not isinstance(max_width, int) or max_width <= 0:
        raise ValueError(f"Tooltip max width must be a positive integer, got {max_width!r}")

    palette = THEMES[theme]
    min_width = min(max_width, 220)
    return f"""<style id="perm-tooltip-style">
.{WRAPPER_CLASS} {{
  position: relative;
  cursor: help;
  border-bottom: 1px dotted {palette.accent};
}}
.{WRAPPER_CLASS} .{CONTENT_CLASS} {{
  visibility: hidden;
  opacity: 0;
  position: absolute;
  z-index: 1000;
  top: 100%;
  left: 0;
  min-width: {min_width}px;
  max-width: {max_width}px;
  padding: 10px 12px;
  background: {palette.background};
  color: {palette.text};
  border: 1px solid {palette.border};
  border-radius: 6px;
  box-shadow: 0 6px 18px {palette.shadow};
  font-size: 12px;
  line-height: 1.4;
  text-align: left;
  white-space: normal;
  transition: opacity 0.15s ease-in-out;
}}
.{WRAPPER_CLASS}:hover .{CONTENT_CLASS},
.{WRAPPER_CLASS}:focus .{CONTENT_CLASS},
.{WRAPPER_CLASS}.is-open .{CONTENT_CLASS} {{
  visibility: visible;
  opacity: 1;
}}
.{CONTENT_CLASS}.flip-left {{ left: auto; right: 0; }}
.{CONTENT_CLASS}.flip-up {{ top: auto; bottom: 100%; }}
.{CONTENT_CLASS} b {{
  color: {palette.accent};
  font-weight: bold;
  text-transform: uppercase;
  font-size: 10px;
  letter-spacing: 0.05em;
}}
.{CONTENT_CLASS} i, .{CONTENT_CLASS} small {{ opacity: 0.8; }}
.{CONTENT_CLASS} em {{ color: {palette.accent}; font-style: normal; font-weight: bold; }}
.{CONTENT_CLASS} ul {{ margin: 2px 0 0 16px; padding: 0; }}
.perm-filter {{
  margin: 8px 0;
  padding: 4px 8px;
  width: 100%;
  max-width: {max_width}px;
  border: 1px solid {palette.border};
}}
</style>"""


_BASE_SCRIPT = f"""
(function () {{
  function position(tip) {{
    var content = tip.querySelector('.{CONTENT_CLASS}');
    if (!content) {{ return; }}
    content.classList.remove('flip-left', 'flip-up');
    var rect = content.getBoundingClientRect();
    if (rect.right > window.innerWidth) {{ content.classList.add('flip-left'); }}
    if (rect.bottom > window.innerHeight) {{ content.classList.add('flip-up'); }}
  }}
  document.querySelectorAll('.{WRAPPER_CLASS}').forEach(function (tip) {{
    tip.addEventListener('mouseenter', function () {{ position(tip); }});
  }});
}})();
"""

_KEYBOARD_SCRIPT = f"""
(function () {{
  document.querySelectorAll('.{WRAPPER_CLASS}').forEach(function (tip) {{
    tip.setAttribute('tabindex', '0');
    tip.addEventListener('keydown', function (event) {{
      if (event.key === 'Enter' || event.key === ' ') {{
        tip.classList.toggle('is-open');
        event.preventDefault();
      }} else if (event.key === 'Escape') {{
        tip.classList.remove('is-open');
        tip.blur();
      }}
    }});
    tip.addEventListener('blur', function () {{ tip.classList.remove('is-open'); }});
  }});
}})();
"""

_FILTER_SCRIPT = """
(function () {
  document.querySelectorAll('table.permissions-table').forEach(function (table) {
    var input = document.createElement('input');
    input.type = 'search';
    input.className = 'perm-filter';
    input.placeholder = 'Filter by entity, principal or role';
    table.parentNode.insertBefore(input, table);
    input.addEventListener('input', function () {
      var needle = input.value.toLowerCase();
      table.querySelectorAll('tbody tr').forEach(function (row) {
        row.style.display = row.textContent.toLowerCase().indexOf(needle) === -1 ? 'none' : '';
      });
    });
  });
})();
"""


def build_behavior_block(*, keyboard_navigation: bool = True, filtering: bool = True) -> str:
    """Return the ``<script>`` element, with optional keyboard and filter support."""

    parts = [_BASE_SCRIPT]
    if keyboard_navigation:
        parts.append(_KEYBOARD_SCRIPT)
    if filtering:
        parts.append(_FILTER_SCRIPT)
    return '<script id="perm-tooltip-script">' + "".join(parts) + "</script>"


def inject_assets(document: str, style_block: str, behavior_block: str) -> str:
    """Insert *style_block* into the header and *behavior_block* before ``</body>``.

    Documents without ``<head>`` get one synthesised after ``<html>``; with
    neither, the style is prepended.  Without ``</body>`` the behaviour is
    appended.  Callers inject once per output document.
    """

    head = _HEAD_OPEN_RE.search(document)
    if head:
        document = document[: head.end()] + "\n" + style_block + document[head.end() :]
    else:
        root = _HTML_OPEN_RE.search(document)
        if root:
            document = (
                document[: root.end()] + "\n<head>\n" + style_block + "\n</head>" + document[root.end() :]
            )
        else:
            document = style_block + "\n" + document

    body_close = None
    for body_close in _BODY_CLOSE_RE.finditer(document):
        pass
    if body_close:
        return document[: body_close.start()] + behavior_block + "\n" + document[body_close.start() :]
    return document + "\n" + behavior_block


__all__ = [
    "ReportAssets",
    "THEMES",
    "ThemePalette",
    "build_behavior_block",
    "build_style_block",
    "inject_assets",
]
