"""
Fallback & merge policy for new chat records.

Pure functions, no I/O. Each field is decided on its own:

- ``riskScore``: a successful risk analysis always wins, even over a value
  the caller supplied. Otherwise the caller's value, otherwise ``0``.
- ``memo``: a successful sentiment analysis yields ``"Sentiment: <label>"``,
  followed by ``" | <caller memo>"`` when the caller sent a non-empty memo.
  Otherwise the caller's memo, otherwise ``""``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

NO_RISK_SCORE = 0
SENTIMENT_PREFIX = "Sentiment: "
MEMO_SEPARATOR = " | "


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of one attempted analysis: either a value or the error that ended it."""

    value: Any = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "AnalysisOutcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "AnalysisOutcome":
        return cls(error=error)


def resolve_risk_score(outcome: AnalysisOutcome, override: int | None) -> int:
    if outcome.succeeded:
        return outcome.value
    if override is not None:
        logger.info("Risk analysis unavailable, keeping caller risk score %s", override)
        return override
    return NO_RISK_SCORE


def resolve_memo(outcome: AnalysisOutcome, override: str | None) -> str:
    if outcome.succeeded:
        labelled = f"{SENTIMENT_PREFIX}{outcome.value}"
        if override:
            return f"{labelled}{MEMO_SEPARATOR}{override}"
        return labelled
    if override is not None:
        logger.info("Sentiment analysis unavailable, keeping caller memo")
        return override
    return ""


def merge_enrichment(
    risk: AnalysisOutcome,
    sentiment: AnalysisOutcome,
    risk_override: int | None = None,
    memo_override: str | None = None,
) -> tuple[int, str]:
    """
    Decide the final ``(risk_score, memo)`` of a new record.

    Args:
        risk: Outcome of the risk-scoring call.
        sentiment: Outcome of the sentiment call.
        risk_override: ``riskScore`` sent by the caller, if any.
        memo_override: ``memo`` sent by the caller, if any.
    """
    return resolve_risk_score(risk, risk_override), resolve_memo(sentiment, memo_override)
