"""
The `config` package provides two core building blocks for establishing and managing database connections.

Contents:
    - config: Configuration layer - strongly typed app settings loaded from environment variables (with .env support), exposed through a singleton Settings object. Also carries the ML service URL, retry policy and reformatter settings.
    - connection_engine: Database layer - SQLAlchemy bootstrap that creates the Engine from `DATABASE_URL`, the shared MetaData, and the declarative base for ORM models
"""
