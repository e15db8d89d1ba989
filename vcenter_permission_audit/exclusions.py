"""Wildcard exclusion rules for noisy service-account principals."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from .config import ConfigurationError
from .records import PermissionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExclusionPattern:
    """One compiled line of an exclusion file."""

    original: str
    matcher: Pattern[str]
    source_line: int

    def matches(self, principal: str) -> bool:
        return self.matcher.fullmatch(principal) is not None


@dataclass(frozen=True)
class ExclusionMatch:
    is_excluded: bool
    matched_pattern: Optional[str] = None


@dataclass
class ExclusionResult:
    """Records that survived filtering plus per-pattern exclusion counts."""

    kept: List[PermissionRecord]
    excluded_count: int = 0
    per_pattern_counts: Dict[str, int] = field(default_factory=dict)


def wildcard_to_regex(pattern: str) -> str:
    """Translate a ``*`` wildcard pattern into an anchored regular expression.

    Every other character is matched literally, so ``DOMAIN\\svc-*`` only
    matches principals starting with ``DOMAIN\\svc-``.
    """

    escaped = re.escape(pattern).replace(r"\*", ".*")
    return f"^{escaped}$"


def compile_patterns(
    lines: Iterable[str],
    *,
    ignore_case: bool = True,
    skipped: Optional[List[Tuple[int, str]]] = None,
) -> List[ExclusionPattern]:
    """Compile exclusion *lines*, skipping blanks and ``#`` comments.

    Lines that fail to compile are logged and appended to ``skipped`` as
    ``(line_number, text)`` instead of aborting the whole file.
    """

    flags = re.DOTALL | (re.IGNORECASE if ignore_case else 0)
    patterns: List[ExclusionPattern] = []
    for line_number, raw_line in enumerate(lines, start=1):
        text = raw_line.strip()
        if not text or text.startswith("#"):
            continue
        try:
            matcher = re.compile(wildcard_to_regex(text), flags)
        except re.error as exc:
            logger.warning("Skipping invalid exclusion pattern on line %d (%r): %s", line_number, text, exc)
            if skipped is not None:
                skipped.append((line_number, text))
            continue
        patterns.append(ExclusionPattern(original=text, matcher=matcher, source_line=line_number))
    return patterns


class ExclusionMatcher:
    """Ordered set of exclusion patterns; the first matching line wins."""

    def __init__(self, patterns: Sequence[ExclusionPattern] = (), skipped_lines: Sequence[Tuple[int, str]] = ()) -> None:
        self.patterns: Tuple[ExclusionPattern, ...] = tuple(patterns)
        self.skipped_lines: Tuple[Tuple[int, str], ...] = tuple(skipped_lines)

    @classmethod
    def from_lines(cls, lines: Iterable[str], *, ignore_case: bool = True) -> "ExclusionMatcher":
        skipped: List[Tuple[int, str]] = []
        patterns = compile_patterns(lines, ignore_case=ignore_case, skipped=skipped)
        return cls(patterns, skipped)

    @classmethod
    def from_file(cls, path: Union[str, Path], *, ignore_case: bool = True) -> "ExclusionMatcher":
        return cls.from_lines(load_exclusion_patterns(path), ignore_case=ignore_case)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def match(self, principal: str) -> ExclusionMatch:
        for pattern in self.patterns:
            if pattern.matches(principal):
                return ExclusionMatch(is_excluded=True, matched_pattern=pattern.original)
        return ExclusionMatch(is_excluded=False)

    def filter(self, records: Iterable[PermissionRecord]) -> ExclusionResult:
        """Split *records* into kept entries and per-pattern exclusion counts."""

        if not self.patterns:
            return ExclusionResult(kept=list(records))

        kept: List[PermissionRecord] = []
        counts: Dict[str, int] = {}
        excluded = 0
        for record in records:
            result = self.match(record.principal)
            if result.is_excluded and result.matched_pattern is not None:
                excluded += 1
                counts[result.matched_pattern] = counts.get(result.matched_pattern, 0) + 1
            else:
                kept.append(record)

        if excluded:
            logger.info("Excluded %d permission(s) using %d pattern(s)", excluded, len(self.patterns))
        return ExclusionResult(kept=kept, excluded_count=excluded, per_pattern_counts=counts)


def load_exclusion_patterns(path: Union[str, Path]) -> List[str]:
    """Return the raw lines of an exclusion file."""

    source = Path(path)
    try:
        return source.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to read exclusion file {source}: {exc}", "exclusion_file"
        ) from exc


__all__ = [
    "ExclusionMatch",
    "ExclusionMatcher",
    "ExclusionPattern",
    "ExclusionResult",
    "compile_patterns",
    "load_exclusion_patterns",
    "wildcard_to_regex",
]
