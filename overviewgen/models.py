"""Core data models shared across overviewgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ProjectType:
    """Traits and metadata describing a detected project.

    Detection only ever adds traits and metadata; viewers treat the object as
    read-only once the detector has returned it.
    """

    def __init__(self) -> None:
        self._traits: Dict[str, bool] = {}
        self._metadata: Dict[str, Any] = {}

    def add_trait(self, trait: str) -> None:
        self._traits[trait] = True

    def has_trait(self, trait: str) -> bool:
        return self._traits.get(trait, False)

    @property
    def traits(self) -> List[str]:
        return list(self._traits)

    def set_metadata(self, key: str, value: Any) -> None:
        self._metadata[key] = value

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self._metadata.get(key, default)

    @property
    def metadata(self) -> Dict[str, Any]:
        return dict(self._metadata)

    @property
    def description(self) -> str:
        """Human-readable summary such as ``Laravel 10.x Project``."""
        if self.has_trait("laravel"):
            version = self.get_metadata("laravel_version")
            return f"Laravel {version}.x Project" if version else "Laravel Project"
        if self.has_trait("rails"):
            version = self.get_metadata("rails_version")
            return f"Ruby on Rails {version}.x Project" if version else "Ruby on Rails Project"
        if self.has_trait("php"):
            return "PHP Project"
        return "Generic Project"

    def __repr__(self) -> str:
        return f"ProjectType(traits={self.traits!r}, metadata={self._metadata!r})"


@dataclass(frozen=True)
class Column:
    """Single column reconstructed from a migration or schema dump."""

    name: str
    type: str
    attributes: Tuple[str, ...] = ()

    def describe_attributes(self) -> str:
        return ", ".join(self.attributes)


@dataclass(frozen=True)
class Index:
    """Index declaration attached to a table."""

    columns: Tuple[str, ...]
    name: Optional[str] = None
    kind: str = "index"
    options: str = ""

    def describe(self) -> str:
        label = f"{self.kind} {self.name}" if self.name else self.kind
        text = f"{label} on ({', '.join(self.columns)})"
        if self.options:
            text = f"{text} {self.options}"
        return text


@dataclass(frozen=True)
class ForeignKey:
    """Foreign key from one or more local columns to another table."""

    columns: Tuple[str, ...]
    references_table: str
    references_columns: Tuple[str, ...] = ("id",)
    name: Optional[str] = None
    options: str = ""

    def describe(self) -> str:
        text = (
            f"{', '.join(self.columns)} references "
            f"{', '.join(self.references_columns)} on {self.references_table}"
        )
        if self.name:
            text = f"{text} (constraint {self.name})"
        if self.options:
            text = f"{text} {self.options}"
        return text


@dataclass
class TableSchema:
    """Columns, indexes and foreign keys collected for one table."""

    name: str
    columns: List[Column] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)


ExtractedSchema = Dict[str, TableSchema]


def table_entry(schema: ExtractedSchema, name: str) -> TableSchema:
    """Return the table named ``name``, creating an empty entry on first use."""
    table = schema.get(name)
    if table is None:
        table = TableSchema(name=name)
        schema[name] = table
    return table


@dataclass(frozen=True)
class Relationship:
    """ORM relationship declared on a model accessor."""

    kind: str
    method: str
    target: str

    def describe(self) -> str:
        return f"{self.kind}: {self.method} ({self.target})"


@dataclass
class ModelInfo:
    """Summary of an ORM model class."""

    name: str
    table: str
    fillable: List[str] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    associations: List[str] = field(default_factory=list)
    validations: List[str] = field(default_factory=list)
    scopes: List[str] = field(default_factory=list)

    def relationship_summary(self) -> str:
        return "; ".join(relationship.describe() for relationship in self.relationships)


@dataclass(frozen=True)
class Route:
    """HTTP route reconstructed from a routing tool or declaration file."""

    verb: str
    path: str
    action: str = ""
    name: str = ""


class ChangeKind(str, Enum):
    """How a file differs between two consecutive snapshots."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


FileSnapshot = Dict[str, str]
ChangeSet = Dict[str, ChangeKind]


__all__ = [
    "ChangeKind",
    "ChangeSet",
    "Column",
    "ExtractedSchema",
    "FileSnapshot",
    "ForeignKey",
    "Index",
    "ModelInfo",
    "ProjectType",
    "Relationship",
    "Route",
    "TableSchema",
    "table_entry",
]
