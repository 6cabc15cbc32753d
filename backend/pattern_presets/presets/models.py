"""
Core data models for the preset system.

A preset is a named snapshot of one generator's parameter values.
Two origins share the same core shape:
- UserPreset: owned by the user, persisted in the mutable store
- FactoryPreset: curated, read-only, re-derived from the catalog on every read

The origin tag (not a scatter of optional flags) selects behavior.

All models use Pydantic for strict validation.
Unknown fields are rejected.
No silent coercion of parameter values.

Wire and persisted field names are camelCase (generatorType,
contentHash, createdAt, ...) so records stay interchangeable with
exports produced by the browser build.
"""

import uuid
import time
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

# Scalars only. Order matters: bool must win over int.
ParamValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]

# Envelope format written by export
FORMAT_VERSION = "1.0.0"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_preset_id() -> str:
    """Store-assigned id: preset_<epoch-ms>_<9 random chars>."""
    return f"preset_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class PresetCore(BaseModel):
    """
    Fields shared by every preset, whatever its origin.

    content_hash is derived from (generator_type, parameters) only;
    see hashing.content_hash().
    """

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    name: str
    generator_type: str
    parameters: Dict[str, ParamValue]
    created_at: datetime = Field(default_factory=utcnow)
    description: Optional[str] = None
    content_hash: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Name must be non-empty."""
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("generator_type")
    @classmethod
    def validate_generator_type(cls, v: str) -> str:
        """Generator type must be non-empty."""
        if not v or not v.strip():
            raise ValueError("Generator type cannot be empty")
        return v

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps from old records are UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_factory(self) -> bool:
        return getattr(self, "origin", "user") == "factory"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape (exports, API responses)."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        data["isFactory"] = self.is_factory
        return data


class UserPreset(PresetCore):
    """A preset saved or imported by the user."""

    origin: Literal["user"] = "user"
    is_user_default: bool = False

    def to_record(self) -> Dict[str, Any]:
        """
        Serialize to the persisted record shape.

        isUserDefault is written only when set, matching records
        produced before defaults existed.
        """
        data = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"origin", "is_user_default"},
        )
        if self.is_user_default:
            data["isUserDefault"] = True
        return data

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "UserPreset":
        """
        Deserialize a persisted record.

        Only known record fields are read; legacy extras (isFactory,
        category, ...) are ignored here. The caller must supply
        contentHash.
        """
        return cls(
            id=data["id"],
            name=data["name"],
            generator_type=data["generatorType"],
            parameters=data["parameters"],
            created_at=data.get("createdAt") or utcnow(),
            description=data.get("description"),
            content_hash=data["contentHash"],
            is_user_default=bool(data.get("isUserDefault", False)),
        )


class FactoryPreset(PresetCore):
    """A curated, read-only preset from the factory catalog."""

    origin: Literal["factory"] = "factory"
    is_default: bool = False
    category: Optional[str] = None
    mathematical_significance: Optional[str] = None


AnyPreset = Annotated[Union[UserPreset, FactoryPreset], Field(discriminator="origin")]


class PresetPatch(BaseModel):
    """Fields that may change on an existing user preset."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    parameters: Optional[Dict[str, ParamValue]] = None


class ParameterControl(BaseModel):
    """
    A generator control as seen by the preset system.

    Only what is needed for existence and range checks.
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    id: str
    type: str = "range"
    min: Optional[float] = None
    max: Optional[float] = None
    default_value: Optional[ParamValue] = None


class ParameterValidationResult(BaseModel):
    """Result of checking preset parameters against current controls."""

    valid: bool
    warnings: List[str] = Field(default_factory=list)


class LoadedPreset(BaseModel):
    """A preset ready to apply: effective parameters plus compatibility warnings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    preset: AnyPreset
    parameters: Dict[str, ParamValue]
    warnings: List[str] = Field(default_factory=list)


class ExportEnvelope(BaseModel):
    """
    Versioned export/import envelope.

    format_version is carried on the wire as "version".
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    format_version: str = Field(default=FORMAT_VERSION, alias="version")
    presets: List[UserPreset] = Field(default_factory=list)
    exported_at: datetime = Field(default_factory=utcnow, alias="exportedAt")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.format_version,
            "presets": [preset.to_dict() for preset in self.presets],
            "exportedAt": self.exported_at.isoformat(),
        }


class ImportResult(BaseModel):
    """
    Outcome of one import call.

    One import can partially succeed: conflicts and bad items are
    collected here instead of being raised.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    imported_ids: List[str] = Field(default_factory=list)
    skipped_duplicates: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    def summary(self) -> str:
        """Human-readable feedback for the operator."""
        parts = []
        if self.imported_ids:
            count = len(self.imported_ids)
            parts.append(f"Imported {count} preset{'s' if count > 1 else ''}")
        if self.skipped_duplicates:
            count = len(self.skipped_duplicates)
            parts.append(
                f"Skipped {count} duplicate{'s' if count > 1 else ''}: "
                + ", ".join(self.skipped_duplicates)
            )
        if self.errors:
            parts.append(f"Failed to import {len(self.errors)}: " + ", ".join(self.errors))
        if not parts:
            return "Nothing to import"
        return "\n".join(parts)


class StorageStats(BaseModel):
    """Storage statistics for the user preset collection."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_preset_count: int = 0
    total_storage_size: int = 0
    last_modified: Optional[datetime] = None
