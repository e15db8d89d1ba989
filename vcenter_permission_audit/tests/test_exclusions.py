"""Tests for wildcard exclusion patterns."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from vcenter_permission_audit import exclusions
from vcenter_permission_audit.config import ConfigurationError
from vcenter_permission_audit.exclusions import (
    ExclusionMatcher,
    compile_patterns,
    wildcard_to_regex,
)
from vcenter_permission_audit.records import PermissionRecord


def _record(principal: str) -> PermissionRecord:
    return PermissionRecord("VM1", "VirtualMachine", principal, "Read-only")


def test_wildcard_translation_escapes_literals() -> None:
    """Regex metacharacters are literal; only ``*`` is a wildcard."""

    pattern = re.compile(wildcard_to_regex("vpxd-extension-(a.b)*"))

    assert pattern.fullmatch("vpxd-extension-(a.b)-1234")
    assert not pattern.fullmatch("vpxd-extension-(aXb)-1234")


def test_compile_skips_blank_lines_and_comments() -> None:
    """Blank and ``#`` lines are ignored while source lines are kept."""

    patterns = compile_patterns(["# service accounts", "", "   ", "  VSPHERE.LOCAL\\vpxd-*  ", "  # indented"])

    assert [(p.original, p.source_line) for p in patterns] == [("VSPHERE.LOCAL\\vpxd-*", 4)]


@pytest.mark.parametrize(
    "principal",
    ["DOMAIN\\admin", "", "VSPHERE.LOCAL\\vsphere-webclient-1f2e", "weird\nvalue"],
)
def test_single_star_excludes_everything(principal: str) -> None:
    """A lone ``*`` excludes every principal."""

    matcher = ExclusionMatcher.from_lines(["*"])

    assert matcher.match(principal).is_excluded


def test_literal_pattern_matches_whole_principal_only() -> None:
    """Patterns are anchored at both ends."""

    matcher = ExclusionMatcher.from_lines(["DOMAIN\\svc"])

    assert matcher.match("DOMAIN\\svc").is_excluded
    assert matcher.match("domain\\SVC").is_excluded
    assert not matcher.match("DOMAIN\\svc-backup").is_excluded
    assert not matcher.match("XDOMAIN\\svc").is_excluded


def test_first_pattern_in_file_order_wins() -> None:
    """The earliest matching line is reported, not the most specific one."""

    matcher = ExclusionMatcher.from_lines(["ADMIN\\*", "ADMIN\\root"])

    result = matcher.match("ADMIN\\root")

    assert result.is_excluded
    assert result.matched_pattern == "ADMIN\\*"


def test_filter_counts_per_pattern() -> None:
    """Filtering keeps unmatched records and counts exclusions by pattern."""

    matcher = ExclusionMatcher.from_lines(["VSPHERE.LOCAL\\vpxd-*", "*\\svc-backup"])
    records = [
        _record("VSPHERE.LOCAL\\vpxd-extension-1"),
        _record("DOMAIN\\alice"),
        _record("VSPHERE.LOCAL\\vpxd-2"),
        _record("CORP\\svc-backup"),
    ]

    result = matcher.filter(records)

    assert [r.principal for r in result.kept] == ["DOMAIN\\alice"]
    assert result.excluded_count == 3
    assert result.per_pattern_counts == {"VSPHERE.LOCAL\\vpxd-*": 2, "*\\svc-backup": 1}


def test_filter_without_patterns_is_inert() -> None:
    """An empty matcher returns every record unchanged."""

    records = [_record("DOMAIN\\alice"), _record("DOMAIN\\bob")]

    result = ExclusionMatcher().filter(records)

    assert result.kept == records
    assert result.excluded_count == 0
    assert result.per_pattern_counts == {}


def test_invalid_pattern_is_skipped(monkeypatch: pytest.MonkeyPatch) -> None:
    """A pattern that fails to compile is skipped, the rest still apply."""

    real_translate = exclusions.wildcard_to_regex

    def fake_translate(pattern: str) -> str:
        if pattern.startswith("broken"):
            return "(unbalanced"
        return real_translate(pattern)

    monkeypatch.setattr(exclusions, "wildcard_to_regex", fake_translate)

    matcher = ExclusionMatcher.from_lines(["broken*", "DOMAIN\\svc-*"])

    assert len(matcher) == 1
    assert matcher.skipped_lines == ((1, "broken*"),)
    assert matcher.match("DOMAIN\\svc-1").is_excluded


def test_from_file_reads_patterns(tmp_path: Path) -> None:
    """Exclusion files are read line by line."""

    path = tmp_path / "exclusions.txt"
    path.write_text("# noisy\nVSPHERE.LOCAL\\vpxd-*\n", encoding="utf-8")

    matcher = ExclusionMatcher.from_file(path)

    assert matcher.match("vsphere.local\\VPXD-EXT").matched_pattern == "VSPHERE.LOCAL\\vpxd-*"


def test_missing_file_is_a_configuration_error(tmp_path: Path) -> None:
    """An unreadable exclusion file is fatal and names the field."""

    with pytest.raises(ConfigurationError) as excinfo:
        ExclusionMatcher.from_file(tmp_path / "missing.txt")

    assert excinfo.value.field == "exclusion_file"
