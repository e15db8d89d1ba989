"""Tests for tooltip style/script generation and injection."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from vcenter_permission_audit.report.assets import (
    THEMES,
    ReportAssets,
    build_behavior_block,
    build_style_block,
    inject_assets,
)

STYLE = "<style>s</style>"
SCRIPT = "<script>b</script>"


def test_style_goes_after_head_and_script_before_body_close() -> None:
    """Both blocks land inside the existing document regions."""

    document = '<html><head lang="en"><title>x</title></head><body><p>r</p></body></html>'

    result = inject_assets(document, STYLE, SCRIPT)

    assert result.startswith('<html><head lang="en">\n<style>s</style><title>')
    assert result.endswith("<p>r</p><script>b</script>\n</body></html>")


def test_head_is_synthesised_after_html_open() -> None:
    """A document with ``<html>`` but no ``<head>`` gets a header region."""

    result = inject_assets("<HTML><body>r</body></HTML>", STYLE, SCRIPT)

    assert result.startswith("<HTML>\n<head>\n<style>s</style>\n</head><body>")


def test_bare_fragment_gets_prepended_and_appended_blocks() -> None:
    """Without any markers the style is prepended and the script appended."""

    result = inject_assets("<table></table>", STYLE, SCRIPT)

    assert result == "<style>s</style>\n<table></table>\n<script>b</script>"


def test_script_goes_before_last_body_close() -> None:
    """Only the final ``</body>`` is used as the script anchor."""

    document = "<body><pre>&lt;/body&gt; </body> trailing </BODY>"

    result = inject_assets(document, STYLE, SCRIPT)

    assert result.endswith(" trailing <script>b</script>\n</BODY>")


@pytest.mark.parametrize("theme", sorted(THEMES))
def test_each_theme_uses_its_palette(theme: str) -> None:
    """Theme colours and max width end up in the stylesheet."""

    style = build_style_block(theme, 512)

    palette = THEMES[theme]
    assert palette.background in style
    assert palette.accent in style
    assert "max-width: 512px;" in style


def test_unknown_theme_and_bad_width_are_rejected() -> None:
    """Only the closed set of themes and positive widths are accepted."""

    with pytest.raises(ValueError):
        build_style_block("Neon", 400)
    with pytest.raises(ValueError):
        build_style_block("Dark", 0)


def test_behavior_toggles_add_fragments() -> None:
    """Keyboard and filter support are spliced in independently."""

    bare = build_behavior_block(keyboard_navigation=False, filtering=False)
    keyboard = build_behavior_block(keyboard_navigation=True, filtering=False)
    both = build_behavior_block(keyboard_navigation=True, filtering=True)

    assert "keydown" not in bare and "perm-filter" not in bare
    assert "keydown" in keyboard and "perm-filter" not in keyboard
    assert "keydown" in both and "perm-filter" in both
    assert both.startswith("<script") and both.endswith("</script>")


def test_report_assets_list_enabled_features() -> None:
    """Feature names reflect the enabled options."""

    assets = ReportAssets(theme="Blue", keyboard_navigation=False, filtering=True)

    assert assets.features == ["tooltips", "theme:Blue", "chunked-processing", "filtering"]
