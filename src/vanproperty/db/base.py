"""
SQLAlchemy Base and Mixins

Declarative base, timestamp mixin and the versioned JSON column type shared by
the models.
"""
import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from src.vanproperty.db.exceptions import PayloadDecodeError

PAYLOAD_VERSION = 1


class Base(DeclarativeBase):
    """
    Base class for all database models.
    """


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamp columns.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when record was created"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Timestamp when record was last updated"
    )


def encode_payload(value: Any) -> Optional[str]:
    """
    Serialize a structured value into the versioned text envelope.

    Strings are treated as pre-serialized input: valid JSON is parsed first so
    that ``'["a", "b"]'`` and ``["a", "b"]`` store the same thing. A string that
    is not JSON is stored as plain string data.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            pass
        else:
            if isinstance(value, dict) and "v" in value and "data" in value:
                value = value["data"]
    return json.dumps({"v": PAYLOAD_VERSION, "data": value})


def decode_payload(raw: Optional[str], column: str = "payload") -> Any:
    """
    Inverse of encode_payload.

    Rows written before the envelope existed hold bare JSON; those are returned
    as-is. Anything that does not parse raises PayloadDecodeError.
    """
    if raw is None:
        return None
    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise PayloadDecodeError(column, str(e)) from e

    if isinstance(parsed, dict) and "v" in parsed and "data" in parsed:
        if parsed["v"] != PAYLOAD_VERSION:
            raise PayloadDecodeError(column, f"unsupported payload version {parsed['v']!r}")
        return parsed["data"]
    return parsed


class VersionedJSON(TypeDecorator):
    """
    Text column holding a ``{"v": 1, "data": ...}`` JSON envelope.

    With ``none_as_null=False`` a Python None is stored as the envelope of a
    JSON null instead of SQL NULL, so NOT NULL columns accept it.
    """

    impl = Text
    cache_ok = True

    def __init__(self, column_name: str = "payload", none_as_null: bool = True, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.column_name = column_name
        self.none_as_null = none_as_null
        self.should_evaluate_none = not none_as_null

    def process_bind_param(self, value, dialect):
        if value is None and not self.none_as_null:
            return json.dumps({"v": PAYLOAD_VERSION, "data": None})
        return encode_payload(value)

    def process_result_value(self, value, dialect):
        return decode_payload(value, self.column_name)


def import_all_models():
    """
    Import all models to register them with SQLAlchemy Base.
    """
    from src.vanproperty.db import models  # noqa: F401
