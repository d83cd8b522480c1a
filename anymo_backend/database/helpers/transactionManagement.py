"""
Database Transaction Management
===============================

Session handling for the chat store. Service functions decorated with
`@transactional` receive a `session` keyword argument; the decorator decides
whether that session is new (and therefore owned, committed and closed by the
outermost call) or the one already bound to the current context.

Every read or write of the chat service runs as one short transaction: the
enrichment calls happen *before* the decorated store function is entered, so
no transaction is held open while the ML collaborators are being retried.
"""

from functools import wraps
from sqlalchemy.orm import sessionmaker
import contextvars
from anymo_backend.database.config.connection_engine import connection_engine

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Session bound to the current call chain, or None outside a transaction."""

SessionFactory = sessionmaker(bind=connection_engine)
"""Session factory bound to the application engine."""


def transactional(func):
    """
    Run `func` inside a chat-store transaction.

    Nested decorated calls share the outer session. The outermost call
    flushes and commits when `func` returns, rolls back when it raises (the
    error is re-raised unchanged) and always closes the session and unbinds
    it from the context.

    Decorated functions must be called with keyword arguments, e.g.
    ``get_chat(chat_id=3)``, since `session` is passed by keyword.
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session:
            return func(*args, session=session, **kwargs)

        session = SessionFactory()
        token = db_session_context.set(session)

        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
