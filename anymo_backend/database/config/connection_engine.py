"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds the Engine from `settings.DATABASE_URL`.
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- PostgreSQL is the production target; SQLite URLs are accepted for local
  runs and tests (the connection is then shared across worker threads).
- All ORM models must inherit from `declarativeBase` to participate in schema
  creation.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from anymo_backend.database.config.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync routes on a threadpool
    connect_args["check_same_thread"] = False

connection_engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

metadata = MetaData()
"""
Metadata object: Stores schema-level information about tables, constraints, indexes, etc. Shared across all models.
"""

declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models.
All model classes should inherit from this to gain ORM features and automatic schema generation.
"""
