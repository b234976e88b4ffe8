"""
SQLAlchemy declarative metadata.

Runtime queries go through asyncpg (see asyncpg_setting.py); the ORM models exist
to describe the schema for Alembic migrations.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
