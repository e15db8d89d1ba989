"""vCenter permission auditing and interactive report toolkit."""

from __future__ import annotations

from .classification import PermissionClassification, PermissionGroup, classify_permissions
from .config import AuditConfig, ConfigurationError, load_config
from .core import (
    collect_audit_results,
    enhance_report,
    generate_reports,
    load_permission_records,
    print_permission_summary,
)
from .exclusions import ExclusionMatcher, compile_patterns
from .records import PermissionRecord, PermissionSource, TooltipEntry
from .roles import DEFAULT_ROLE_CATALOG, RoleCatalog

__all__ = [
    "AuditConfig",
    "ConfigurationError",
    "DEFAULT_ROLE_CATALOG",
    "ExclusionMatcher",
    "PermissionClassification",
    "PermissionGroup",
    "PermissionRecord",
    "PermissionSource",
    "RoleCatalog",
    "TooltipEntry",
    "classify_permissions",
    "collect_audit_results",
    "compile_patterns",
    "enhance_report",
    "generate_reports",
    "load_config",
    "load_permission_records",
    "print_permission_summary",
]
