"""Grouping of permission records into inventory categories."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Tuple

from .records import PermissionRecord, PermissionSource


class PermissionGroup(str, Enum):
    """Report sections, in display order."""

    GLOBAL = "Global"
    VIRTUAL_MACHINE = "VirtualMachine"
    VMHOST = "VMHost"
    CLUSTER = "Cluster"
    DATASTORE = "Datastore"
    FOLDER = "Folder"
    DATACENTER = "Datacenter"
    NETWORK = "Network"
    RESOURCE_POOL = "ResourcePool"
    OTHER = "Other"

    @property
    def display_name(self) -> str:
        return GROUP_TITLES[self]


GROUP_TITLES: Dict[PermissionGroup, str] = {
    PermissionGroup.GLOBAL: "Global Permissions",
    PermissionGroup.VIRTUAL_MACHINE: "Virtual Machines",
    PermissionGroup.VMHOST: "ESXi Hosts",
    PermissionGroup.CLUSTER: "Clusters",
    PermissionGroup.DATASTORE: "Datastores",
    PermissionGroup.FOLDER: "Folders",
    PermissionGroup.DATACENTER: "Datacenters",
    PermissionGroup.NETWORK: "Networking",
    PermissionGroup.RESOURCE_POOL: "Resource Pools",
    PermissionGroup.OTHER: "Other Objects",
}

# Checked in order; host types precede the bare "VM" prefix so that
# ``VMHost`` is not filed under virtual machines.
ENTITY_TYPE_RULES: Tuple[Tuple[PermissionGroup, Tuple[str, ...]], ...] = (
    (PermissionGroup.VMHOST, ("HostSystem", "VMHost", "ESXi")),
    (PermissionGroup.VIRTUAL_MACHINE, ("VirtualMachine", "VM")),
    (PermissionGroup.CLUSTER, ("ClusterComputeResource", "Cluster")),
    (PermissionGroup.DATASTORE, ("Datastore", "StoragePod")),
    (PermissionGroup.FOLDER, ("Folder",)),
    (PermissionGroup.DATACENTER, ("Datacenter",)),
    (
        PermissionGroup.NETWORK,
        (
            "Network",
            "DistributedVirtualSwitch",
            "DistributedVirtualPortgroup",
            "VmwareDistributedVirtualSwitch",
        ),
    ),
    (PermissionGroup.RESOURCE_POOL, ("ResourcePool", "VirtualApp")),
)


def classify_permission(record: PermissionRecord) -> PermissionGroup:
    """Return the single group *record* belongs to."""

    if record.source is PermissionSource.GLOBAL:
        return PermissionGroup.GLOBAL
    entity_type = record.entity_type or ""
    for group, prefixes in ENTITY_TYPE_RULES:
        if entity_type.startswith(prefixes):
            return group
    return PermissionGroup.OTHER


@dataclass
class PermissionClassification:
    """Records bucketed by :class:`PermissionGroup`; every group is present."""

    groups: Dict[PermissionGroup, List[PermissionRecord]]

    @property
    def counts(self) -> Dict[PermissionGroup, int]:
        return {group: len(records) for group, records in self.groups.items()}

    @property
    def total(self) -> int:
        return sum(len(records) for records in self.groups.values())

    def non_empty_groups(self) -> Iterator[Tuple[PermissionGroup, List[PermissionRecord]]]:
        for group in PermissionGroup:
            records = self.groups[group]
            if records:
                yield group, records

    def records(self) -> Iterator[PermissionRecord]:
        for _, records in self.non_empty_groups():
            yield from records


def classify_permissions(records: Iterable[PermissionRecord]) -> PermissionClassification:
    """Bucket *records* by group, preserving input order within each group."""

    groups: Dict[PermissionGroup, List[PermissionRecord]] = {group: [] for group in PermissionGroup}
    for record in records:
        groups[classify_permission(record)].append(record)
    return PermissionClassification(groups=groups)


__all__ = [
    "ENTITY_TYPE_RULES",
    "GROUP_TITLES",
    "PermissionClassification",
    "PermissionGroup",
    "classify_permission",
    "classify_permissions",
]
