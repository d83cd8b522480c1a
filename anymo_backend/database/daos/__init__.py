"""
DAOs Package: Data Access Layer (SQLAlchemy 2.0)
=================================================

Encapsulates all interactions with the SQLAlchemy ORM entities behind
plain CRUD methods.

Conventions
-----------
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs surface exceptions so upper layers decide error policy
- Missing rows are reported as ``None`` / ``False``, never raised

Contents
--------
- ChatDao
    * createChat(session, Chat) - inserts and returns the chat with its new id
    * fetchChatById(session, id) / fetchChats(session) - newest first
    * updateChat(session, id, fields) - partial overwrite
    * deleteChat(session, id) - returns whether a row was removed
"""
