"""HTML report rendering and tooltip enrichment."""

from __future__ import annotations

from .annotator import AnnotationResult, annotate, annotate_document
from .assets import THEMES, ReportAssets, build_behavior_block, build_style_block, inject_assets
from .chunking import (
    DEFAULT_GROWTH_TIERS,
    ChunkedEnrichmentOrchestrator,
    EnrichmentOutcome,
    EnrichmentState,
    GrowthAnomalyError,
    GrowthTier,
)
from .main import render_permission_report
from .tooltips import build_tooltip_content, build_tooltip_entries, build_tooltip_entry

__all__ = [
    "AnnotationResult",
    "ChunkedEnrichmentOrchestrator",
    "DEFAULT_GROWTH_TIERS",
    "EnrichmentOutcome",
    "EnrichmentState",
    "GrowthAnomalyError",
    "GrowthTier",
    "ReportAssets",
    "THEMES",
    "annotate",
    "annotate_document",
    "build_behavior_block",
    "build_style_block",
    "build_tooltip_content",
    "build_tooltip_entries",
    "build_tooltip_entry",
    "inject_assets",
    "render_permission_report",
]
