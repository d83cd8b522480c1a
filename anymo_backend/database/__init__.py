"""
The `database` package is responsible for all interactions with the chat record store.

Contents:
    - config:
        Environment-driven settings and the SQLAlchemy engine.

    - entities:
        The `Chat` ORM model (table `chats`).

    - daos:
        `ChatDao`, CRUD operations for the entity.

    - core:
        Transactional service functions used by the API router.

    - helpers:
        The `@transactional` session/transaction decorator.
"""
