"""
Chat ORM Model
==============

The ``Chat`` ORM model represents one medical-consultation transcript stored
in the ``chats`` table, together with the values derived for it when it was
created.

Key features
~~~~~~~~~~~~
- Integer primary key (``id``) assigned by the database
- Speaker-order flag (``start_with_doctor``): utterances alternate between
  doctor and patient starting from the party this flag names
- Transcript text (``text``): utterances joined by the ``@@`` delimiter
- Risk score (``risk_score``): 1-100 when scored, ``0`` when no score is known
- Free-text memo (``memo``): user notes and/or ``"Sentiment: <label>"``
- Timezone-aware ``created_at`` timestamp (UTC), written once on insert
"""

from anymo_backend.database.config.connection_engine import declarativeBase
from sqlalchemy import Boolean, DateTime, Integer, TEXT
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

UTTERANCE_DELIMITER = "@@"
"""Two-character marker separating consecutive utterances inside ``text``."""


class Chat(declarativeBase):
    """
    ORM model for the `chats` table.

    Attributes
    ----------
    id : int
        Primary key, assigned by the database on insert.
    start_with_doctor : bool
        True when the first utterance of the transcript is the doctor's.
    text : str
        Transcript, utterances joined by ``@@``.
    risk_score : int
        Risk score; ``0`` is the "no score" sentinel.
    memo : str
        Notes and/or sentiment label.
    created_at : datetime
        Creation timestamp (UTC). Never updated.
    """

    __tablename__ = 'chats'

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    """Primary key. Assigned by the database."""

    start_with_doctor: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    """Whether the doctor speaks first."""

    text: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )
    """Transcript text (cannot be null)."""

    risk_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    """Risk score, ``0`` when unknown."""

    memo: Mapped[str] = mapped_column(
        TEXT, nullable=True, default=""
    )
    """Free-text memo."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    """Timestamp when the record was created (UTC, timezone-aware)."""

    def __init__(self, start_with_doctor: bool, text: str, risk_score: int, memo: str, created_at: datetime):
        """
        Initialize a new Chat object.

        Parameters
        ----------
        start_with_doctor : bool
            Speaker-order flag.
        text : str
            Transcript text.
        risk_score : int
            Final risk score.
        memo : str
            Final memo.
        created_at : datetime
            Creation timestamp (timezone-aware, UTC).
        """
        self.start_with_doctor = start_with_doctor
        self.text = text
        self.risk_score = risk_score
        self.memo = memo
        self.created_at = created_at

    def __str__(self) -> str:
        return (
            f"Chat: id:{self.id}, risk_score: {self.risk_score}, "
            f"start_with_doctor: {self.start_with_doctor}, time_created: {self.created_at}"
        )
