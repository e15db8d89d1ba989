"""Tests for permission grouping."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from vcenter_permission_audit.classification import (
    PermissionGroup,
    classify_permission,
    classify_permissions,
)
from vcenter_permission_audit.records import PermissionRecord, PermissionSource


@pytest.mark.parametrize(
    ("entity_type", "expected"),
    [
        ("VirtualMachine", PermissionGroup.VIRTUAL_MACHINE),
        ("VMTemplate", PermissionGroup.VIRTUAL_MACHINE),
        ("HostSystem", PermissionGroup.VMHOST),
        ("VMHost", PermissionGroup.VMHOST),
        ("ESXiHost", PermissionGroup.VMHOST),
        ("ClusterComputeResource", PermissionGroup.CLUSTER),
        ("Datastore", PermissionGroup.DATASTORE),
        ("StoragePod", PermissionGroup.DATASTORE),
        ("Folder", PermissionGroup.FOLDER),
        ("Datacenter", PermissionGroup.DATACENTER),
        ("DistributedVirtualPortgroup", PermissionGroup.NETWORK),
        ("VmwareDistributedVirtualSwitch", PermissionGroup.NETWORK),
        ("ResourcePool", PermissionGroup.RESOURCE_POOL),
        ("ContentLibrary", PermissionGroup.OTHER),
        ("", PermissionGroup.OTHER),
    ],
)
def test_entity_type_rules(entity_type: str, expected: PermissionGroup) -> None:
    """Object permissions are grouped by entity type prefix."""

    record = PermissionRecord("obj", entity_type, "DOMAIN\\ops", "Read-only")

    assert classify_permission(record) is expected


def test_global_source_takes_precedence() -> None:
    """Global permissions are grouped as Global whatever the entity type."""

    record = PermissionRecord(
        "vc01", "VirtualMachine", "DOMAIN\\admin", "Administrator", source=PermissionSource.GLOBAL
    )

    assert classify_permission(record) is PermissionGroup.GLOBAL


def test_every_group_present_and_each_record_in_exactly_one() -> None:
    """All groups appear in the output and records are never duplicated."""

    records = [
        PermissionRecord("VM1", "VirtualMachine", "DOMAIN\\a", "Read-only"),
        PermissionRecord("esx01", "HostSystem", "DOMAIN\\b", "Read-only"),
        PermissionRecord("Lib", "ContentLibrary", "DOMAIN\\c", "Read-only"),
    ]

    result = classify_permissions(records)

    assert set(result.groups) == set(PermissionGroup)
    assert set(result.counts) == set(PermissionGroup)
    for record in records:
        assert sum(record in members for members in result.groups.values()) == 1
    assert result.counts[PermissionGroup.CLUSTER] == 0
    assert result.total == 3
    assert [group for group, _ in result.non_empty_groups()] == [
        PermissionGroup.VIRTUAL_MACHINE,
        PermissionGroup.VMHOST,
        PermissionGroup.OTHER,
    ]
