"""Chunked tooltip enrichment with document growth checks.

Entries are annotated in fixed-size chunks, in sorted key order.  After
each chunk the document size is compared with its size before the chunk;
growth beyond the tier threshold means annotations are most likely being
duplicated, so the partial document is saved for inspection and the run
stops.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..records import TooltipEntry
from ..utils import batch_iterable, write_text_file
from .annotator import AnnotationResult, annotate_document
from .assets import ReportAssets, inject_assets

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 300
DEFAULT_BACKUP_INTERVAL = 5

Annotator = Callable[[str, Mapping[str, TooltipEntry]], AnnotationResult]


@dataclass(frozen=True)
class GrowthTier:
    """Maximum growth ratio for documents smaller than ``max_size``.

    ``max_size`` of ``None`` marks the open-ended last tier.
    """

    max_size: Optional[int]
    max_ratio: float


DEFAULT_GROWTH_TIERS: Tuple[GrowthTier, ...] = (
    GrowthTier(max_size=500 * 1024, max_ratio=5.0),
    GrowthTier(max_size=2 * 1024 * 1024, max_ratio=3.0),
    GrowthTier(max_size=None, max_ratio=2.0),
)


class EnrichmentState(str, Enum):
    IDLE = "idle"
    CHUNKING = "chunking"
    COMPLETED = "completed"
    ABORTED = "aborted"


class GrowthAnomalyError(RuntimeError):
    """Raised when a chunk grows the document more than its tier allows."""

    def __init__(
        self,
        chunk_index: int,
        ratio: float,
        threshold: float,
        snapshot_path: Optional[Path] = None,
    ) -> None:
        location = f" Partial document saved to {snapshot_path}." if snapshot_path else ""
        super().__init__(
            f"Chunk {chunk_index} grew the document {ratio:.2f}x, above the {threshold:.1f}x limit; "
            f"tooltips are probably being duplicated.{location}"
        )
        self.chunk_index = chunk_index
        self.ratio = ratio
        self.threshold = threshold
        self.snapshot_path = snapshot_path


@dataclass
class EnrichmentOutcome:
    """Result and statistics of a completed enrichment run."""

    document: str
    tooltips_added: int
    entries_processed: int
    chunk_size: int
    total_chunks: int
    elapsed_seconds: float
    features: List[str] = field(default_factory=list)
    snapshots: List[Path] = field(default_factory=list)
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def rate_per_second(self) -> float:
        if self.elapsed_seconds <= 0:
            return float(self.entries_processed)
        return self.entries_processed / self.elapsed_seconds

    def to_summary(self, input_file: Optional[str] = None, output_file: Optional[str] = None) -> Dict[str, Any]:
        return {
            "inputFile": input_file,
            "outputFile": output_file,
            "tooltipsAdded": self.tooltips_added,
            "chunking": {
                "chunkSize": self.chunk_size,
                "totalChunks": self.total_chunks,
                "processingTimeSeconds": round(self.elapsed_seconds, 3),
                "processingRatePerSecond": round(self.rate_per_second, 1),
            },
            "enhancementTimestamp": self.completed_at.isoformat(timespec="seconds"),
            "features": list(self.features),
        }


def growth_threshold(size: int, tiers: Sequence[GrowthTier] = DEFAULT_GROWTH_TIERS) -> float:
    """Return the maximum allowed growth ratio for a document of *size*."""

    for tier in tiers:
        if tier.max_size is None or size < tier.max_size:
            return tier.max_ratio
    return tiers[-1].max_ratio


def growth_ratio(before: int, after: int) -> float:
    if before == 0:
        return 1.0
    return after / before


def snapshot_path(output_path: Path, label: str, chunk_index: int) -> Path:
    return output_path.with_name(f"{output_path.stem}.{label}-chunk{chunk_index}{output_path.suffix}")


class ChunkedEnrichmentOrchestrator:
    """Drive the annotator over tooltip entries one chunk at a time."""

    def __init__(
        self,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        growth_tiers: Sequence[GrowthTier] = DEFAULT_GROWTH_TIERS,
        output_path: Union[str, Path, None] = None,
        assets: Optional[ReportAssets] = None,
        backup_interval: int = DEFAULT_BACKUP_INTERVAL,
        annotator: Annotator = annotate_document,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        if backup_interval <= 0:
            raise ValueError(f"Backup interval must be positive, got {backup_interval}")
        if not growth_tiers:
            raise ValueError("At least one growth tier is required")
        self.chunk_size = chunk_size
        self.growth_tiers = tuple(growth_tiers)
        self.output_path = Path(output_path) if output_path is not None else None
        self.assets = assets if assets is not None else ReportAssets()
        self.backup_interval = backup_interval
        self.annotator = annotator
        self.state = EnrichmentState.IDLE

    def _write_snapshot(self, document: str, label: str, chunk_index: int) -> Optional[Path]:
        if self.output_path is None:
            return None
        path = snapshot_path(self.output_path, label, chunk_index)
        write_text_file(path, document)
        return path

    def run(
        self,
        document: str,
        entries: Mapping[str, TooltipEntry],
        *,
        chunk_size: Optional[int] = None,
    ) -> EnrichmentOutcome:
        """Annotate *document* with *entries* and inject the tooltip assets.

        Raises :class:`GrowthAnomalyError` after saving a diagnostic snapshot
        when a chunk grows the document beyond its tier threshold.
        """

        size = chunk_size if chunk_size is not None else self.chunk_size
        if size <= 0:
            raise ValueError(f"Chunk size must be positive, got {size}")

        keys = sorted(entries)
        total_chunks = (len(keys) + size - 1) // size
        snapshots: List[Path] = []
        tooltips_added = 0
        processed = 0

        self.state = EnrichmentState.CHUNKING
        logger.info("Enriching report with %d tooltip entries in %d chunk(s) of %d", len(keys), total_chunks, size)
        started = time.perf_counter()

        for chunk_index, chunk_keys in enumerate(batch_iterable(keys, size), start=1):
            before = len(document)
            chunk_entries = {key: entries[key] for key in chunk_keys}
            result = self.annotator(document, chunk_entries)
            document = result.document
            after = len(document)

            ratio = growth_ratio(before, after)
            threshold = growth_threshold(before, self.growth_tiers)
            if ratio > threshold:
                self.state = EnrichmentState.ABORTED
                path = self._write_snapshot(document, "diagnostic", chunk_index)
                logger.error(
                    "Chunk %d/%d grew the document %.2fx (limit %.1fx); aborting",
                    chunk_index,
                    total_chunks,
                    ratio,
                    threshold,
                )
                raise GrowthAnomalyError(chunk_index, ratio, threshold, path)

            tooltips_added += result.annotated
            processed += len(chunk_keys)
            logger.info(
                "Chunk %d/%d: %d tooltip(s) added, document %d -> %d chars (%.2fx)",
                chunk_index,
                total_chunks,
                result.annotated,
                before,
                after,
                ratio,
            )
            del chunk_entries, result

            if chunk_index % self.backup_interval == 0 or chunk_index == total_chunks:
                path = self._write_snapshot(document, "backup", chunk_index)
                if path is not None:
                    snapshots.append(path)

        document = inject_assets(document, self.assets.style_block(), self.assets.behavior_block())
        elapsed = time.perf_counter() - started
        self.state = EnrichmentState.COMPLETED

        outcome = EnrichmentOutcome(
            document=document,
            tooltips_added=tooltips_added,
            entries_processed=processed,
            chunk_size=size,
            total_chunks=total_chunks,
            elapsed_seconds=elapsed,
            features=self.assets.features,
            snapshots=snapshots,
        )
        logger.info(
            "Added %d tooltip(s) from %d entries in %.2fs (%.1f entries/s)",
            tooltips_added,
            processed,
            elapsed,
            outcome.rate_per_second,
        )
        return outcome


__all__ = [
    "ChunkedEnrichmentOrchestrator",
    "DEFAULT_BACKUP_INTERVAL",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_GROWTH_TIERS",
    "EnrichmentOutcome",
    "EnrichmentState",
    "GrowthAnomalyError",
    "GrowthTier",
    "growth_ratio",
    "growth_threshold",
    "snapshot_path",
]
