"""Descriptions and privilege summaries for well-known vCenter roles."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

CUSTOM_ROLE_CAPABILITY = "Custom role - review its privileges in vCenter"


@dataclass(frozen=True)
class RoleDefinition:
    """Static description of a role and the capabilities it grants."""

    name: str
    description: str
    capabilities: Tuple[str, ...]


BUILTIN_ROLES: Tuple[RoleDefinition, ...] = (
    RoleDefinition(
        name="Administrator",
        description="Full administrative access to the object and all of its privileges.",
        capabilities=(
            "All privileges",
            "Manage permissions and roles",
            "Create, modify and delete inventory objects",
            "Configure hosts, clusters and networking",
            "Manage datastores and storage",
        ),
    ),
    RoleDefinition(
        name="Read-only",
        description="View the state and configuration of objects without making changes.",
        capabilities=(
            "View inventory objects",
            "View object configuration and state",
            "View events, tasks and alarms",
        ),
    ),
    RoleDefinition(
        name="NoAccess",
        description="Explicitly denies access; the object is hidden from the principal.",
        capabilities=(
            "No privileges on this object",
            "Overrides permissions inherited from parent objects",
        ),
    ),
    RoleDefinition(
        name="VirtualMachinePowerUser",
        description="Sample role for users who manage virtual machine configuration and snapshots.",
        capabilities=(
            "Power on, power off, reset and suspend virtual machines",
            "Interact with the virtual machine console",
            "Change virtual machine configuration",
            "Create, revert and remove snapshots",
            "Browse datastores",
            "Create scheduled tasks",
        ),
    ),
    RoleDefinition(
        name="VirtualMachineUser",
        description="Sample role for users who operate virtual machines without reconfiguring them.",
        capabilities=(
            "Power on, power off, reset and suspend virtual machines",
            "Interact with the virtual machine console",
            "Connect and disconnect devices",
            "Create scheduled tasks",
        ),
    ),
    RoleDefinition(
        name="ResourcePoolAdministrator",
        description="Sample role for delegated administration of a resource pool subtree.",
        capabilities=(
            "Create, modify and delete child resource pools",
            "Assign virtual machines to resource pools",
            "Manage virtual machines in the pool",
            "Create and modify alarms",
            "Manage permissions on the pool",
        ),
    ),
    RoleDefinition(
        name="DatastoreConsumer",
        description="Sample role for principals that consume datastore space.",
        capabilities=(
            "Allocate space on the datastore",
        ),
    ),
    RoleDefinition(
        name="NetworkAdministrator",
        description="Sample role for principals that assign and configure networks.",
        capabilities=(
            "Assign networks to hosts and virtual machines",
            "Configure networks",
            "Move and remove networks",
        ),
    ),
)


class RoleCatalog:
    """Read-only lookup from role name to description and capabilities.

    Unknown roles never raise: they are described as custom roles with a
    single placeholder capability.
    """

    def __init__(self, roles: Iterable[RoleDefinition] = BUILTIN_ROLES) -> None:
        table: Dict[str, RoleDefinition] = {}
        for role in roles:
            if role.name in table:
                raise ValueError(f"Role '{role.name}' is defined more than once")
            table[role.name] = role
        self._roles: Mapping[str, RoleDefinition] = MappingProxyType(table)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._roles

    def __iter__(self) -> Iterator[str]:
        return iter(self._roles)

    def __len__(self) -> int:
        return len(self._roles)

    def get(self, name: str) -> Optional[RoleDefinition]:
        return self._roles.get(name)

    def describe(self, name: str) -> str:
        role = self._roles.get(name) if isinstance(name, str) else None
        if role is None:
            return f"Custom role: {name}"
        return role.description

    def capabilities_of(self, name: str) -> Tuple[str, ...]:
        role = self._roles.get(name) if isinstance(name, str) else None
        if role is None:
            return (CUSTOM_ROLE_CAPABILITY,)
        return role.capabilities

    def as_mapping(self) -> Mapping[str, RoleDefinition]:
        return self._roles


DEFAULT_ROLE_CATALOG = RoleCatalog()


__all__ = [
    "BUILTIN_ROLES",
    "CUSTOM_ROLE_CAPABILITY",
    "DEFAULT_ROLE_CATALOG",
    "RoleCatalog",
    "RoleDefinition",
]
