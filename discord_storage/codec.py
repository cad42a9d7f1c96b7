"""Fenced JSON codec for schemas and rows stored as message content.

Values are written in the externally tagged shape used by the query engine's
own serializer, e.g. ``{"I64": 1}`` or ``"Null"``, so that tables written by
other clients of the same guild decode unchanged.
"""
from __future__ import annotations

import json
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Type, TypeVar, Union
from uuid import UUID

from .errors import DecodeError, StorageError
from .models import ColumnDef, ColumnUniqueOption, DataRow, Schema, SchemaIndex

FENCE_OPEN = "```json"
FENCE_CLOSE = "```"
MAX_MESSAGE_LENGTH = 2000

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_INT_TAGS = {"I8", "I16", "I32", "I64", "I128", "U8", "U16", "U32", "U64", "U128"}
_FLOAT_TAGS = {"F32", "F64"}
_FRACTION = re.compile(r"\.(\d+)")

T = TypeVar("T", Schema, DataRow)


def encode(value: Union[Schema, DataRow]) -> str:
    """Serialize a schema or row as a fenced, pretty-printed JSON block."""

    if isinstance(value, Schema):
        payload: Any = _schema_to_dict(value)
    elif isinstance(value, DataRow):
        payload = _row_to_dict(value)
    else:
        raise StorageError(f"cannot encode {type(value).__name__}")
    try:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        # Column defaults and index expressions are carried as engine JSON.
        raise StorageError(f"cannot encode {type(value).__name__}: {exc}") from exc
    return f"\n{FENCE_OPEN}\n{text}\n{FENCE_CLOSE}"


def strip_fence(text: str) -> str:
    text = text.strip()
    if text.startswith(FENCE_OPEN):
        text = text[len(FENCE_OPEN):]
    if text.endswith(FENCE_CLOSE):
        text = text[: -len(FENCE_CLOSE)]
    return text


def decode(text: str, kind: Type[T]) -> T:
    """Parse fenced (or bare) JSON content back into ``kind``."""

    try:
        payload = json.loads(strip_fence(text))
    except ValueError as exc:
        raise DecodeError(f"malformed content: {exc}") from exc
    try:
        if kind is Schema:
            return _schema_from_dict(payload)
        return _row_from_dict(payload)
    except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise DecodeError(f"unexpected {kind.__name__} shape: {exc!r}") from exc


def message_fits(content: str) -> bool:
    """Whether encoded content fits in a single Discord message."""

    return len(content) <= MAX_MESSAGE_LENGTH


def encode_value(value: Any) -> Any:
    if value is None:
        return "Null"
    if isinstance(value, bool):
        return {"Bool": value}
    if isinstance(value, int):
        return {"I64" if _I64_MIN <= value <= _I64_MAX else "I128": value}
    if isinstance(value, float):
        return {"F64": value}
    if isinstance(value, str):
        return {"Str": value}
    if isinstance(value, (bytes, bytearray)):
        return {"Bytes": list(value)}
    if isinstance(value, Decimal):
        return {"Decimal": str(value)}
    if isinstance(value, datetime):
        return {"Timestamp": _naive(value).isoformat()}
    if isinstance(value, date):
        return {"Date": value.isoformat()}
    if isinstance(value, time):
        return {"Time": value.isoformat()}
    if isinstance(value, UUID):
        return {"Uuid": value.int}
    if isinstance(value, dict):
        return {"Map": {str(key): encode_value(item) for key, item in value.items()}}
    if isinstance(value, list):
        return {"List": [encode_value(item) for item in value]}
    raise StorageError(f"unsupported value type: {type(value).__name__}")


def decode_value(payload: Any) -> Any:
    if payload == "Null":
        return None
    if not isinstance(payload, dict) or len(payload) != 1:
        raise ValueError(f"not a tagged value: {payload!r}")
    (tag, raw), = payload.items()
    if tag == "Bool":
        return bool(raw)
    if tag in _INT_TAGS:
        return int(raw)
    if tag in _FLOAT_TAGS:
        return float(raw)
    if tag in ("Str", "Inet"):
        return str(raw)
    if tag == "Bytes":
        return bytes(raw)
    if tag == "Decimal":
        return Decimal(str(raw))
    if tag == "Date":
        return date.fromisoformat(raw)
    if tag == "Time":
        return time.fromisoformat(_trim_fraction(raw))
    if tag == "Timestamp":
        return _parse_timestamp(raw)
    if tag == "Uuid":
        return UUID(int=int(raw))
    if tag == "Map":
        return {key: decode_value(item) for key, item in raw.items()}
    if tag == "List":
        return [decode_value(item) for item in raw]
    raise ValueError(f"unknown value tag {tag}")


def _row_to_dict(row: DataRow) -> Dict[str, Any]:
    if row.is_map:
        return {DataRow.MAP: {key: encode_value(item) for key, item in row.values.items()}}
    return {DataRow.VEC: [encode_value(item) for item in row.values]}


def _row_from_dict(payload: Dict[str, Any]) -> DataRow:
    if DataRow.MAP in payload:
        return DataRow.map({key: decode_value(item) for key, item in payload[DataRow.MAP].items()})
    if DataRow.VEC in payload:
        return DataRow.vec([decode_value(item) for item in payload[DataRow.VEC]])
    raise ValueError("row is neither Vec nor Map")


def _schema_to_dict(schema: Schema) -> Dict[str, Any]:
    column_defs: Optional[List[Dict[str, Any]]] = None
    if schema.column_defs is not None:
        column_defs = [
            {
                "name": column.name,
                "data_type": column.data_type,
                "nullable": column.nullable,
                "default": column.default,
                "unique": (
                    {"is_primary": column.unique.is_primary} if column.unique is not None else None
                ),
            }
            for column in schema.column_defs
        ]
    return {
        "table_name": schema.table_name,
        "column_defs": column_defs,
        "indexes": [
            {
                "name": index.name,
                "expr": index.expr,
                "order": index.order,
                "created": _format_timestamp(index.created),
            }
            for index in schema.indexes
        ],
        "engine": schema.engine,
        "created": _format_timestamp(schema.created),
    }


def _schema_from_dict(payload: Dict[str, Any]) -> Schema:
    column_defs: Optional[List[ColumnDef]] = None
    if payload.get("column_defs") is not None:
        column_defs = []
        for column in payload["column_defs"]:
            unique = column.get("unique")
            column_defs.append(
                ColumnDef(
                    name=column["name"],
                    data_type=column["data_type"],
                    nullable=bool(column.get("nullable", True)),
                    default=column.get("default"),
                    unique=(
                        ColumnUniqueOption(is_primary=bool(unique.get("is_primary", False)))
                        if unique is not None
                        else None
                    ),
                )
            )
    indexes = [
        SchemaIndex(
            name=index["name"],
            expr=index["expr"],
            order=index.get("order", "Both"),
            created=_parse_optional_timestamp(index.get("created")),
        )
        for index in payload.get("indexes") or []
    ]
    return Schema(
        table_name=payload["table_name"],
        column_defs=column_defs,
        indexes=indexes,
        engine=payload.get("engine"),
        created=_parse_optional_timestamp(payload.get("created")),
    )


def _naive(value: datetime) -> datetime:
    # Timestamps are stored without an offset and read back naive.
    if value.tzinfo is not None:
        raise StorageError(f"timezone-aware timestamp is not supported: {value.isoformat()}")
    return value


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return _naive(value).isoformat() if value is not None else None


def _trim_fraction(text: str) -> str:
    # datetime keeps exactly microseconds; other writers emit up to nanoseconds.
    return _FRACTION.sub(lambda match: "." + (match.group(1) + "000000")[:6], text)


def _parse_timestamp(text: str) -> datetime:
    return datetime.fromisoformat(_trim_fraction(text))


def _parse_optional_timestamp(text: Optional[str]) -> Optional[datetime]:
    return _parse_timestamp(text) if text is not None else None


__all__ = [
    "FENCE_CLOSE",
    "FENCE_OPEN",
    "MAX_MESSAGE_LENGTH",
    "decode",
    "decode_value",
    "encode",
    "encode_value",
    "message_fits",
    "strip_fence",
]
