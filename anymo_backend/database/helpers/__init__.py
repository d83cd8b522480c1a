"""
The `helpers` package provides utility functions and decorators
that support database operations.

Contents
--------
- transactionManagement
    - Context variable (`db_session_context`) for propagating the active session across function calls
    - `@transactional` decorator: reuses an active session, otherwise creates, commits and closes one; rolls back on errors
"""
