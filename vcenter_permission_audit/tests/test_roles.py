"""Tests for the role catalog."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from vcenter_permission_audit.roles import (
    CUSTOM_ROLE_CAPABILITY,
    DEFAULT_ROLE_CATALOG,
    RoleCatalog,
    RoleDefinition,
)

BUILTIN_NAMES = [
    "Administrator",
    "Read-only",
    "NoAccess",
    "VirtualMachinePowerUser",
    "VirtualMachineUser",
    "ResourcePoolAdministrator",
    "DatastoreConsumer",
    "NetworkAdministrator",
]


@pytest.mark.parametrize("name", BUILTIN_NAMES)
def test_builtin_roles_are_described(name: str) -> None:
    """Every well-known role has a description and capabilities."""

    assert name in DEFAULT_ROLE_CATALOG
    assert not DEFAULT_ROLE_CATALOG.describe(name).startswith("Custom role")
    assert DEFAULT_ROLE_CATALOG.capabilities_of(name)


def test_unknown_role_fails_soft() -> None:
    """Unknown roles are described as custom roles with a placeholder capability."""

    assert DEFAULT_ROLE_CATALOG.describe("BackupOperator") == "Custom role: BackupOperator"
    assert DEFAULT_ROLE_CATALOG.capabilities_of("BackupOperator") == (CUSTOM_ROLE_CAPABILITY,)


def test_catalog_is_read_only() -> None:
    """The underlying table cannot be modified after construction."""

    with pytest.raises(TypeError):
        DEFAULT_ROLE_CATALOG.as_mapping()["Administrator"] = None  # type: ignore[index]


def test_custom_catalog_rejects_duplicates() -> None:
    """A catalog cannot define the same role twice."""

    role = RoleDefinition("Auditor", "Audits things", ("View events",))

    with pytest.raises(ValueError):
        RoleCatalog([role, role])


def test_custom_catalog_is_injectable() -> None:
    """Callers can supply their own role definitions."""

    catalog = RoleCatalog([RoleDefinition("Auditor", "Audits things", ("View events",))])

    assert catalog.describe("Auditor") == "Audits things"
    assert catalog.describe("Administrator") == "Custom role: Administrator"
    assert len(catalog) == 1
