"""
Create-record Enrichment Pipeline
=================================

Purpose
-------
Takes the fields of a chat creation request, asks the ML collaborators for a
risk score and a sentiment label, merges their answers with the caller's own
values (see :mod:`anymo_backend.enrichment.policy`) and persists the final
record.

Flow
----
1) Validate: the transcript is required, must not be empty and must be
   encodable as UTF-8.
2) Run the risk and sentiment analyzers; both must finish (by success or by
   exhausting their retries) before anything is merged. They are independent
   and run side by side on a two-worker thread pool.
3) Merge with the caller overrides.
4) Stamp ``created_at`` and hand the record to ``insert_record``.

Analyzer failures are absorbed here: a record is always created, even when
both analyses failed. Store failures propagate to the caller untouched.

Collaborators (analyzers, the store writer, the clock) are constructor
arguments, so the pipeline can be exercised with fakes.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from anymo_backend.enrichment.analyzers import (
    AnalysisError,
    RemoteTextAnalyzer,
    build_risk_analyzer,
    build_sentiment_analyzer,
)
from anymo_backend.enrichment.policy import AnalysisOutcome, merge_enrichment
from anymo_backend.enrichment.reformatter import StructuredReformatter

logger = logging.getLogger(__name__)


class InvalidTranscriptError(ValueError):
    """Raised when a request carries a transcript that cannot be analyzed."""


class TranscriptRequiredError(InvalidTranscriptError):
    """Raised when a request carries no transcript text."""

    def __init__(self):
        super().__init__("text field is required")


def require_transcript(text: str | None) -> str:
    """
    Return ``text`` if it can be sent to the collaborators.

    Raises:
        TranscriptRequiredError: if ``text`` is missing or empty.
        InvalidTranscriptError: if ``text`` cannot be encoded as UTF-8
            (e.g. it holds a lone surrogate escape).
    """
    if not text:
        raise TranscriptRequiredError()
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidTranscriptError(f"text field is not valid UTF-8: {e.reason} at position {e.start}") from e
    return text


@dataclass(frozen=True)
class ChatDraft:
    """Final field values of a record about to be inserted."""

    start_with_doctor: bool
    text: str
    risk_score: int
    memo: str
    created_at: datetime


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def run_analysis(analyzer: RemoteTextAnalyzer, text: str) -> AnalysisOutcome:
    """Call ``analyzer`` and fold an :class:`AnalysisError` into a failed outcome."""
    try:
        return AnalysisOutcome.success(analyzer.analyze(text))
    except AnalysisError as e:
        logger.warning("Error analyzing %s: %s", analyzer.name, e)
        return AnalysisOutcome.failure(e)


class EnrichmentPipeline:
    """
    Builds and stores new chat records.

    Args:
        risk_analyzer: Analyzer returning an integer risk score.
        sentiment_analyzer: Analyzer returning a sentiment label.
        insert_record: Store writer, called with the draft's fields as
            keyword arguments; returns the stored record.
        clock: Source of the creation timestamp.
        concurrent: Run both analyzers at the same time (default) or one
            after the other.
    """

    def __init__(
        self,
        risk_analyzer: RemoteTextAnalyzer,
        sentiment_analyzer: RemoteTextAnalyzer,
        insert_record: Callable[..., dict],
        clock: Callable[[], datetime] = utc_now,
        concurrent: bool = True,
    ):
        self.risk_analyzer = risk_analyzer
        self.sentiment_analyzer = sentiment_analyzer
        self.insert_record = insert_record
        self.clock = clock
        self.concurrent = concurrent

    def _analyze(self, text: str) -> tuple[AnalysisOutcome, AnalysisOutcome]:
        if not self.concurrent:
            return run_analysis(self.risk_analyzer, text), run_analysis(self.sentiment_analyzer, text)

        with ThreadPoolExecutor(max_workers=2) as executor:
            risk_future = executor.submit(run_analysis, self.risk_analyzer, text)
            sentiment_future = executor.submit(run_analysis, self.sentiment_analyzer, text)
            return risk_future.result(), sentiment_future.result()

    def build_draft(
        self,
        text: str | None,
        start_with_doctor: bool | None = None,
        risk_score: int | None = None,
        memo: str | None = None,
    ) -> ChatDraft:
        """
        Validate the request and compute the final field values.

        Raises:
            InvalidTranscriptError: if ``text`` is missing, empty or not
                encodable as UTF-8.
        """
        text = require_transcript(text)

        risk, sentiment = self._analyze(text)
        final_risk, final_memo = merge_enrichment(risk, sentiment, risk_override=risk_score, memo_override=memo)

        return ChatDraft(
            start_with_doctor=bool(start_with_doctor),
            text=text,
            risk_score=final_risk,
            memo=final_memo,
            created_at=self.clock(),
        )

    def create_record(
        self,
        text: str | None,
        start_with_doctor: bool | None = None,
        risk_score: int | None = None,
        memo: str | None = None,
    ) -> dict:
        """Build the draft and persist it. Returns the stored record."""
        draft = self.build_draft(text, start_with_doctor=start_with_doctor, risk_score=risk_score, memo=memo)
        return self.insert_record(
            start_with_doctor=draft.start_with_doctor,
            text=draft.text,
            risk_score=draft.risk_score,
            memo=draft.memo,
            created_at=draft.created_at,
        )


def process_chat(reformatter: RemoteTextAnalyzer, text: str | None, created_at: str = "", memo: str = "") -> dict:
    """
    Reformat a raw transcript and echo the caller's other fields back.

    Nothing is stored; the caller decides what to do with the result.

    Raises:
        InvalidTranscriptError: if ``text`` is missing, empty or not encodable.
        ReformatError: if the reformatting call failed.
    """
    text = require_transcript(text)
    result = reformatter.analyze(text)
    return {
        "createdAt": created_at,
        "text": result.updated_text,
        "memo": memo,
        "startWithDoctor": result.start_with_doctor,
    }


def build_pipeline(settings, insert_record: Callable[..., dict]) -> EnrichmentPipeline:
    """Compose the production pipeline from application settings."""
    retry_options = dict(
        max_attempts=settings.ANALYSIS_MAX_ATTEMPTS,
        retry_delay=settings.ANALYSIS_RETRY_DELAY_SECONDS,
        timeout=settings.ANALYSIS_HTTP_TIMEOUT_SECONDS,
    )
    return EnrichmentPipeline(
        risk_analyzer=build_risk_analyzer(settings.ML_API_URL, **retry_options),
        sentiment_analyzer=build_sentiment_analyzer(settings.ML_API_URL, **retry_options),
        insert_record=insert_record,
    )


def build_reformatter(settings) -> StructuredReformatter:
    """Compose the production reformatter from application settings."""
    return StructuredReformatter(
        api_key=settings.API_KEY,
        model_name=settings.OPEN_AI_MODEL,
        timeout=settings.REFORMAT_TIMEOUT_SECONDS,
    )
