from datetime import datetime, timezone

from sqlalchemy import Enum as SAEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_column_type(enum_cls):
    # VARCHAR + CHECK instead of a native PG enum, new states need no migration
    return SAEnum(enum_cls, native_enum=False, length=32, validate_strings=True)
