# app/db/base_class.py
"""
Declarative base shared by the `users`, `refresh_tokens` and `videos` tables.

Constraint names follow a fixed convention so `create_all` on Postgres and
SQLite produce the same names.
"""

from sqlalchemy import BigInteger, Integer, MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# BIGINT ids; SQLite only autoincrements INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    def __repr__(self) -> str:  # pragma: no cover
        shown = ", ".join(
            f"{name}={self.__dict__[name]!r}" for name in ("id", "username", "title") if name in self.__dict__
        )
        return f"{type(self).__name__}({shown})"


__all__ = ["Base", "BigIntPK", "NAMING_CONVENTION"]
