"""
Entities Package: SQLAlchemy 2.0 ORM Models
============================================

The `entities` package maps database tables to Python classes using
SQLAlchemy 2.0-typed mappings. These classes are consumed by the DAOs
(`daos` package).

Contents
--------
- Chat
    A consultation transcript record (table `chats`).
    * Fields: `id` (int PK), `start_with_doctor`, `text`, `risk_score`, `memo`, `created_at`
    * `created_at` is timezone-aware (UTC) and written once, on insert
"""
