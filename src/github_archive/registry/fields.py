"""Column definitions shared by the envelope and the event schemas.

A ColumnDef knows its storage type and how to pull its value out of a
decoded JSON object. Extraction is total: a missing key yields None, and
nested objects are stored as compact JSON text.
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Column, Integer, Text
from sqlalchemy.types import TypeEngine

SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1
REPLACEMENT_CHARACTER = "\ufffd"


def to_text(value: str) -> str:
    """Replace lone surrogates, which cannot be encoded as UTF-8.

    JSON allows escapes such as ``"\\ud83d"`` that decode to half of a
    surrogate pair; each one becomes U+FFFD.
    """
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return "".join(
            REPLACEMENT_CHARACTER if "\ud800" <= ch <= "\udfff" else ch
            for ch in value
        )
    return value


def to_json(value: Any) -> str | None:
    """Serialize a value as compact JSON, keeping None as None."""
    if value is None:
        return None
    return to_text(json.dumps(value, separators=(",", ":"), ensure_ascii=False))


def to_scalar(value: Any) -> Any:
    """Return a value SQLite can bind directly.

    Objects and arrays that show up where a scalar was expected are
    stored as JSON text. Integers outside SQLite's signed 64-bit range
    are bound as decimal text. Other scalars pass through.
    """
    if isinstance(value, (dict, list)):
        return to_json(value)
    if isinstance(value, str):
        return to_text(value)
    if isinstance(value, int) and not SQLITE_INT_MIN <= value <= SQLITE_INT_MAX:
        return str(value)
    return value


@dataclass(frozen=True)
class ColumnDef:
    """A typed column and the rule for filling it from a JSON object.

    Attributes:
        name: Column name in the generated table.
        sql_type: SQLAlchemy column type.
        source: Key read from the JSON object.
        encode: Conversion applied to the raw value.
        nullable: Whether the column accepts NULL.
        primary_key: Whether the column is the table's primary key.
        server_default: Optional SQL default.
    """

    name: str
    sql_type: type[TypeEngine] = Text
    source: str = ""
    encode: Callable[[Any], Any] = to_scalar
    nullable: bool = True
    primary_key: bool = False
    server_default: str | None = None

    def __post_init__(self) -> None:
        if not self.source:
            object.__setattr__(self, "source", self.name)

    def extract(self, obj: Mapping[str, Any]) -> Any:
        """Pull this column's value out of ``obj``."""
        return self.encode(obj.get(self.source))

    def to_column(self) -> Column:
        """Build a fresh SQLAlchemy Column for one table."""
        return Column(
            self.name,
            self.sql_type(),
            primary_key=self.primary_key,
            nullable=self.nullable and not self.primary_key,
            server_default=self.server_default,
        )


def scalar(name: str, sql_type: type[TypeEngine] = Text, source: str = "") -> ColumnDef:
    """Define a column holding a plain value from the payload."""
    return ColumnDef(name=name, sql_type=sql_type, source=source)


def document(name: str, source: str = "") -> ColumnDef:
    """Define a TEXT column holding a nested payload object as JSON."""
    return ColumnDef(name=name, sql_type=Text, source=source, encode=to_json)


def integer(name: str, source: str = "") -> ColumnDef:
    """Define an INTEGER column holding a plain value from the payload."""
    return scalar(name, Integer, source)
