"""
Service-layer operations for chat records.

All record functions are wrapped with the `@transactional` decorator, which
manages SQLAlchemy sessions and transactions automatically. Each function
accepts (and uses) an injected `session: Session` provided by the decorator.

Records leave this module as plain dicts keyed by the JSON names of the API
(`id`, `startWithDoctor`, `text`, `riskScore`, `memo`, `createdAt`), built
while the session is still open.
"""

import logging
from datetime import datetime, timezone
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Session
from anymo_backend.database.helpers.transactionManagement import transactional
from anymo_backend.database.config.connection_engine import connection_engine, metadata
from anymo_backend.database.daos.chat_dao import ChatDao
from anymo_backend.database.entities.chats import Chat

logger = logging.getLogger(__name__)


class ChatNotFoundError(LookupError):
    """Raised when no chat record has the requested id."""

    def __init__(self, chat_id: int):
        super().__init__(f"Chat {chat_id} not found")
        self.chat_id = chat_id


def serialize_chat(chat: Chat) -> dict:
    """Convert a `Chat` entity into the API dict representation."""
    created_at = chat.created_at
    # Backends without timezone support hand back naive UTC values.
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        "id": chat.id,
        "startWithDoctor": chat.start_with_doctor,
        "text": chat.text,
        "riskScore": chat.risk_score,
        "memo": chat.memo or "",
        "createdAt": created_at,
    }


def init_schema() -> None:
    """Create the `chats` table if it does not exist yet."""
    metadata.create_all(connection_engine, tables=[Chat.__table__])
    logger.info("Database table checked/created")


def ping_database() -> None:
    """
    Run a trivial query against the database.

    Raises
    ------
    sqlalchemy.exc.SQLAlchemyError
        When the database cannot be reached.
    """
    with connection_engine.connect() as connection:
        connection.execute(sql_text("SELECT 1"))


@transactional
def create_chat(
    session: Session,
    start_with_doctor: bool,
    text: str,
    risk_score: int,
    memo: str,
    created_at: datetime,
) -> dict:
    """
    Insert a finalized chat record.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    start_with_doctor, text, risk_score, memo, created_at
        Final field values, already merged by the enrichment pipeline.

    Returns
    -------
    dict
        The stored record, including its database-assigned `id`.
    """
    chat_dao = ChatDao()
    chat = chat_dao.createChat(
        session,
        Chat(
            start_with_doctor=start_with_doctor,
            text=text,
            risk_score=risk_score,
            memo=memo,
            created_at=created_at,
        ),
    )
    return serialize_chat(chat)


@transactional
def get_chats(session: Session) -> list[dict]:
    """List every chat record, newest first."""
    chat_dao = ChatDao()
    return [serialize_chat(chat) for chat in chat_dao.fetchChats(session)]


@transactional
def get_chat(session: Session, chat_id: int) -> dict:
    """
    Fetch one chat record.

    Raises
    ------
    ChatNotFoundError
        If no chat has `chat_id`.
    """
    chat_dao = ChatDao()
    chat = chat_dao.fetchChatById(session, chat_id)
    if chat is None:
        raise ChatNotFoundError(chat_id)
    return serialize_chat(chat)


@transactional
def update_chat(session: Session, chat_id: int, fields: dict) -> dict:
    """
    Partially update a chat record.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    chat_id : int
        Id of the record to update.
    fields : dict
        Column name → new value, containing only the fields the caller sent.

    Returns
    -------
    dict
        The record after the update.

    Raises
    ------
    ChatNotFoundError
        If no chat has `chat_id`.
    """
    chat_dao = ChatDao()
    chat = chat_dao.updateChat(session, chat_id, fields)
    if chat is None:
        raise ChatNotFoundError(chat_id)
    return serialize_chat(chat)


@transactional
def delete_chat(session: Session, chat_id: int) -> None:
    """
    Delete a chat record.

    Raises
    ------
    ChatNotFoundError
        If no chat has `chat_id`.
    """
    chat_dao = ChatDao()
    if not chat_dao.deleteChat(session, chat_id):
        raise ChatNotFoundError(chat_id)
