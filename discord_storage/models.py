"""Relational value types exchanged with the query engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

# Row keys are Discord message ids rendered as decimal strings.
Key = str


@dataclass(frozen=True)
class ColumnUniqueOption:
    is_primary: bool = False


@dataclass
class ColumnDef:
    name: str
    data_type: str
    nullable: bool = True
    default: Optional[Any] = None
    unique: Optional[ColumnUniqueOption] = None

    @property
    def is_primary_key(self) -> bool:
        return self.unique is not None and self.unique.is_primary


@dataclass
class SchemaIndex:
    name: str
    expr: Any
    order: str = "Both"
    created: Optional[datetime] = None


@dataclass
class Schema:
    """Table definition stored as the pinned message of a channel.

    ``column_defs`` is ``None`` for schemaless tables, whose rows are free-form
    column maps.
    """

    table_name: str
    column_defs: Optional[List[ColumnDef]] = None
    indexes: List[SchemaIndex] = field(default_factory=list)
    engine: Optional[str] = None
    created: Optional[datetime] = None

    def primary_key_columns(self) -> List[str]:
        return [column.name for column in self.column_defs or [] if column.is_primary_key]


@dataclass
class DataRow:
    """A stored row, either positional (``Vec``) or keyed by column (``Map``)."""

    kind: str
    values: Any

    VEC = "Vec"
    MAP = "Map"

    @classmethod
    def vec(cls, values: List[Any]) -> "DataRow":
        return cls(kind=cls.VEC, values=list(values))

    @classmethod
    def map(cls, columns: Dict[str, Any]) -> "DataRow":
        return cls(kind=cls.MAP, values=dict(columns))

    @property
    def is_map(self) -> bool:
        return self.kind == self.MAP


__all__ = ["ColumnDef", "ColumnUniqueOption", "DataRow", "Key", "Schema", "SchemaIndex"]
