"""
Chat DAO

Purpose
-------
Provides a thin data-access layer for the `Chat` ORM entity:
- Create a chat record (id assigned on flush)
- Fetch one chat by id, or all chats newest first
- Partially update a chat
- Delete a chat

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller (no session
  creation inside the DAO). Transaction boundaries live in the service layer
  (`@transactional` functions in `anymo_backend.database.core.funcs`).
- Lookups by id return ``None`` when no row matches; deciding that this is a
  "not found" error is left to the caller.

Usage
-----
.. code-block:: python

    from anymo_backend.database.helpers.transactionManagement import SessionFactory
    from anymo_backend.database.entities.chats import Chat
    from anymo_backend.database.daos.chat_dao import ChatDao

    dao = ChatDao()
    with SessionFactory() as session:
        chat = dao.createChat(session, Chat(False, "Hello@@Hi", 0, "", now))
        session.commit()
        items = dao.fetchChats(session)

Error Handling
--------------
- Methods log the error and re-raise, so upper layers decide the HTTP status.
"""

import logging
from sqlalchemy.orm import Session
from sqlalchemy import desc
from anymo_backend.database.entities.chats import Chat

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("start_with_doctor", "text", "risk_score", "memo")
"""Columns a partial update may overwrite. `id` and `created_at` are immutable."""


class ChatDao:
    """
    Data Access Object (DAO) for managing Chat entities.
    Provides CRUD operations on the `chats` table.
    """

    def createChat(self, session: Session, chat: Chat) -> Chat:
        """
        Stage a new chat record and flush it so the database assigns its id.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        chat : Chat
            Chat entity instance to be added.

        Returns
        -------
        Chat
            The same entity, with `id` populated.
        """
        try:
            session.add(chat)
            session.flush()
            return chat
        except Exception as e:
            logger.error("Error in ChatDao.createChat. Error: %s", e)
            raise

    def fetchChatById(self, session: Session, chat_id: int) -> Chat | None:
        """
        Fetch a single chat by primary key.

        Returns
        -------
        Chat | None
            The chat, or ``None`` when no row has that id.
        """
        try:
            return session.get(Chat, chat_id)
        except Exception as e:
            logger.error("Error in ChatDao.fetchChatById(%s). Error: %s", chat_id, e)
            raise

    def fetchChats(self, session: Session) -> list[Chat]:
        """
        Fetch all chats, most recently created first.

        Rows sharing a `created_at` value are ordered by id, newest first.
        """
        try:
            return (
                session.query(Chat)
                .order_by(desc(Chat.created_at), desc(Chat.id))
                .all()
            )
        except Exception as e:
            logger.error("Error in ChatDao.fetchChats. Error: %s", e)
            raise

    def updateChat(self, session: Session, chat_id: int, fields: dict) -> Chat | None:
        """
        Overwrite the given fields of an existing chat.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        chat_id : int
            Id of the chat to update.
        fields : dict
            Column name → new value. Only keys listed in `UPDATABLE_FIELDS`
            are applied; everything else on the row keeps its stored value.

        Returns
        -------
        Chat | None
            The updated chat, or ``None`` when no row has that id.
        """
        try:
            chat = session.get(Chat, chat_id)
            if chat is None:
                return None
            for name, value in fields.items():
                if name in UPDATABLE_FIELDS:
                    setattr(chat, name, value)
            session.flush()
            return chat
        except Exception as e:
            logger.error("Error in ChatDao.updateChat(%s). Error: %s", chat_id, e)
            raise

    def deleteChat(self, session: Session, chat_id: int) -> bool:
        """
        Delete a chat by id.

        Returns
        -------
        bool
            True if a row was removed, False if no row had that id.
        """
        try:
            deleted = session.query(Chat).filter(Chat.id == chat_id).delete()
            return deleted > 0
        except Exception as e:
            logger.error("Error in ChatDao.deleteChat(%s). Error: %s", chat_id, e)
            raise
