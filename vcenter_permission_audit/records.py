"""Data models for vCenter permission records and tooltip entries.

Raw mappings from the inventory walker and from the tooltip side channel
are validated by pydantic models at the boundary and turned into the
frozen dataclasses the rest of the package works with.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

_IDENTIFIER_SEPARATORS = re.compile(r"[\s/\\]")

_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0", ""}

_REQUIRED_FIELDS = ("entity", "entityType", "principal", "role")
_DERIVED_FIELDS = {"entityIdentifier", "EntityIdentifier"}


class RecordError(ValueError):
    """Raised when a raw permission mapping cannot be turned into a record."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class PermissionSource(str, Enum):
    """Where a permission binding was defined."""

    GLOBAL = "Global"
    OBJECT = "Object"

    @classmethod
    def parse(cls, value: Any) -> "PermissionSource":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        valid = ", ".join(member.value for member in cls)
        raise RecordError(f"Unknown permission source '{value}'. Valid sources: {valid}", "source")


def derive_entity_identifier(entity: str, principal: str, role: str) -> str:
    """Return the stable lookup key for an entity/principal/role binding.

    Whitespace, forward slashes and backslashes become underscores and the
    result is lower-cased, so bindings that differ only by case share a key.
    """

    raw = f"{entity}_{principal}_{role}"
    return _IDENTIFIER_SEPARATORS.sub("_", raw).lower()


def parse_bool(value: Any, *, field_name: str = "value") -> bool:
    """Coerce JSON booleans and their common string spellings."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise RecordError(f"Field '{field_name}' must be a boolean, got {value!r}", field_name)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort conversion of *value* into a :class:`datetime`."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Ignoring unparseable timestamp %r", value)
        return None


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%Y-%m-%d %H:%M:%S")


class PermissionRecordInput(BaseModel):
    """One raw record as exported by the inventory walker.

    Both the camelCase and the PascalCase spellings are accepted.  Extra
    keys are kept in ``model_extra`` so the caller can report them.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    entity: str = Field(validation_alias=AliasChoices("entity", "Entity"))
    entity_type: str = Field(validation_alias=AliasChoices("entityType", "EntityType"))
    principal: str = Field(validation_alias=AliasChoices("principal", "Principal"))
    role: str = Field(validation_alias=AliasChoices("role", "Role"))
    inherited: bool = Field(default=False, validation_alias=AliasChoices("inherited", "Inherited", "IsInherited"))
    propagate: bool = Field(default=False, validation_alias=AliasChoices("propagate", "Propagate"))
    source: PermissionSource = Field(
        default=PermissionSource.OBJECT, validation_alias=AliasChoices("source", "Source")
    )
    created_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("createdDate", "CreatedDate")
    )
    modified_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("modifiedDate", "ModifiedDate")
    )

    @field_validator("entity", "entity_type", "principal", "role", mode="before")
    @classmethod
    def _required_text(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("inherited", "propagate", mode="before")
    @classmethod
    def _lenient_bool(cls, value: Any, info: ValidationInfo) -> bool:
        return parse_bool(value, field_name=info.field_name)

    @field_validator("source", mode="before")
    @classmethod
    def _known_source(cls, value: Any) -> PermissionSource:
        if value is None:
            return PermissionSource.OBJECT
        return PermissionSource.parse(value)

    @field_validator("created_date", "modified_date", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)


def _record_field_name(location: Any) -> str:
    """Map a validation error location to the camelCase field name."""

    name = str(location)
    for field_name, info in PermissionRecordInput.model_fields.items():
        choices = [str(choice) for choice in info.validation_alias.choices]
        if name == field_name or name in choices:
            return choices[0]
    return name


def _record_error(exc: ValidationError) -> RecordError:
    error = exc.errors()[0]
    name = _record_field_name(error["loc"][0]) if error["loc"] else None
    if name in _REQUIRED_FIELDS:
        return RecordError(f"Permission record is missing required field '{name}'", name)
    if name is None:
        return RecordError(f"Invalid permission record: {error['msg']}")
    return RecordError(f"Invalid value for '{name}': {error['msg']}", name)


@dataclass(frozen=True)
class PermissionRecord:
    """One principal-to-role binding on one managed object."""

    entity: str
    entity_type: str
    principal: str
    role: str
    inherited: bool = False
    propagate: bool = False
    source: PermissionSource = PermissionSource.OBJECT
    created_date: Optional[datetime] = None
    modified_date: Optional[datetime] = None

    @property
    def entity_identifier(self) -> str:
        """Stable identifier used to key tooltip entries."""

        return derive_entity_identifier(self.entity, self.principal, self.role)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PermissionRecord":
        """Build a record from a raw mapping produced by the inventory walker.

        Missing required fields and unknown ``source`` values raise
        :class:`RecordError`.  Keys that are not part of the record are
        logged and ignored rather than carried along.
        """

        if not isinstance(data, Mapping):
            raise RecordError(f"Permission record must be an object, got {type(data).__name__}")
        try:
            parsed = PermissionRecordInput.model_validate(dict(data))
        except ValidationError as exc:
            raise _record_error(exc) from exc

        unknown = sorted(str(key) for key in (parsed.model_extra or {}) if key not in _DERIVED_FIELDS)
        if unknown:
            logger.debug("Ignoring unknown permission record field(s): %s", ", ".join(unknown))

        return cls(
            entity=parsed.entity,
            entity_type=parsed.entity_type,
            principal=parsed.principal,
            role=parsed.role,
            inherited=parsed.inherited,
            propagate=parsed.propagate,
            source=parsed.source,
            created_date=parsed.created_date,
            modified_date=parsed.modified_date,
        )

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "entityType": self.entity_type,
            "principal": self.principal,
            "role": self.role,
            "inherited": self.inherited,
            "propagate": self.propagate,
            "source": self.source.value,
            "createdDate": self.created_date.isoformat() if self.created_date else None,
            "modifiedDate": self.modified_date.isoformat() if self.modified_date else None,
            "entityIdentifier": self.entity_identifier,
        }


class TooltipDetailsInput(BaseModel):
    """The ``details`` object of a tooltip entry in the side channel."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    created_date: str = "N/A"
    modified_date: str = "N/A"
    source: str = PermissionSource.OBJECT.value
    capabilities: Tuple[str, ...] = ()

    @field_validator("created_date", "modified_date", mode="before")
    @classmethod
    def _date_text(cls, value: Any) -> str:
        return str(value) if value else "N/A"

    @field_validator("source", mode="before")
    @classmethod
    def _source_text(cls, value: Any) -> str:
        return str(value) if value else PermissionSource.OBJECT.value

    @field_validator("capabilities", mode="before")
    @classmethod
    def _capability_list(cls, value: Any) -> Tuple[str, ...]:
        if not value:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(str(item) for item in value)


class TooltipEntryInput(BaseModel):
    """One tooltip entry as stored in the JSON side channel."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    entity_name: str = ""
    entity_type: str = ""
    principal: str = ""
    role: str = ""
    role_description: str = ""
    inherited: bool = False
    propagate: bool = False
    details: TooltipDetailsInput = Field(default_factory=TooltipDetailsInput)

    @field_validator("entity_name", "entity_type", "principal", "role", "role_description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("inherited", "propagate", mode="before")
    @classmethod
    def _lenient_bool(cls, value: Any, info: ValidationInfo) -> bool:
        return parse_bool(value, field_name=info.field_name)

    @field_validator("details", mode="before")
    @classmethod
    def _details_object(cls, value: Any) -> Any:
        return {} if value is None else value


@dataclass(frozen=True)
class TooltipDetails:
    """Secondary information shown in a tooltip."""

    created_date: str = "N/A"
    modified_date: str = "N/A"
    source: str = PermissionSource.OBJECT.value
    capabilities: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TooltipEntry:
    """Enrichment payload for one permission, keyed by its entity identifier."""

    entity_name: str
    entity_type: str
    principal: str
    role: str
    role_description: str
    inherited: bool = False
    propagate: bool = False
    details: TooltipDetails = field(default_factory=TooltipDetails)

    @property
    def key(self) -> str:
        return derive_entity_identifier(self.entity_name, self.principal, self.role)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TooltipEntry":
        """Read the camelCase JSON side-channel form of an entry."""

        if not isinstance(data, Mapping):
            raise RecordError(f"Tooltip entry must be an object, got {type(data).__name__}")
        try:
            parsed = TooltipEntryInput.model_validate(dict(data))
        except ValidationError as exc:
            error = exc.errors()[0]
            name = ".".join(str(part) for part in error["loc"]) or None
            raise RecordError(f"Invalid tooltip entry field '{name}': {error['msg']}", name) from exc

        details = parsed.details
        return cls(
            entity_name=parsed.entity_name,
            entity_type=parsed.entity_type,
            principal=parsed.principal,
            role=parsed.role,
            role_description=parsed.role_description,
            inherited=parsed.inherited,
            propagate=parsed.propagate,
            details=TooltipDetails(
                created_date=details.created_date,
                modified_date=details.modified_date,
                source=details.source,
                capabilities=details.capabilities,
            ),
        )

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "entityName": self.entity_name,
            "entityType": self.entity_type,
            "principal": self.principal,
            "role": self.role,
            "roleDescription": self.role_description,
            "inherited": self.inherited,
            "propagate": self.propagate,
            "details": {
                "createdDate": self.details.created_date,
                "modifiedDate": self.details.modified_date,
                "source": self.details.source,
                "capabilities": list(self.details.capabilities),
            },
        }


__all__ = [
    "PermissionRecord",
    "PermissionRecordInput",
    "PermissionSource",
    "RecordError",
    "TooltipDetails",
    "TooltipDetailsInput",
    "TooltipEntry",
    "TooltipEntryInput",
    "derive_entity_identifier",
    "format_timestamp",
    "parse_bool",
    "parse_timestamp",
]
