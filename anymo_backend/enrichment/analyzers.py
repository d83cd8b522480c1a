"""
Remote Text Analyzers: ML service clients with fixed retry
===========================================================

Purpose
-------
Defines the common contract for every remote collaborator that turns a
transcript into something the service stores or returns, and the retrying
HTTP implementation used for the ML scoring endpoints:

- ``POST {ML_API_URL}/suicide-risk``  body ``{"text": ...}`` → ``{"score": int}``
- ``POST {ML_API_URL}/sentiment``     body ``{"text": ...}`` → ``{"sentiment": str}``

Retry policy
------------
Fixed count, fixed delay: up to ``max_attempts`` attempts (default 3) with
``retry_delay`` seconds (default 2) slept between attempts. Every kind of
failure is retried the same way: requests that cannot be built or sent,
non-200 statuses, and 200 responses whose body does not carry a correctly
typed result field. A successful attempt returns immediately.

When the budget is exhausted the analyzer raises
:class:`AnalysisUnavailableError` carrying the attempt count and the last
status / error observed.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 2.0
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0

SUICIDE_RISK_PATH = "/suicide-risk"
SENTIMENT_PATH = "/sentiment"


class AnalysisError(Exception):
    """Base class for failures of a remote text analyzer."""


class AnalysisUnavailableError(AnalysisError):
    """Raised when every attempt of a retrying analyzer failed."""

    def __init__(self, message: str, *, attempts: int, last_status: int | None = None, last_error: str = ""):
        super().__init__(message)
        self.attempts = attempts
        self.last_status = last_status
        self.last_error = last_error


class RemoteTextAnalyzer(ABC):
    """Contract shared by every collaborator that analyzes a transcript."""

    name: str = "analyzer"

    @abstractmethod
    def analyze(self, text: str) -> Any:
        """
        Analyze ``text`` and return the collaborator's result.

        Raises
        ------
        AnalysisError
            When no usable result could be obtained.
        """
        raise NotImplementedError


class _AttemptFailed(Exception):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class RetryingHttpAnalyzer(RemoteTextAnalyzer):
    """
    POST a transcript to one ML endpoint, retrying on any failure.

    Args:
        name: Label used in logs and error messages (e.g. ``"suicide risk"``).
        base_url: Service root, e.g. ``https://anymo-ml.onrender.com``.
        path: Endpoint path, e.g. ``/suicide-risk``.
        result_field: JSON key holding the result in a 200 response.
        result_type: Expected Python type of that value (``int`` or ``str``).
        max_attempts: Total attempts, including the first one.
        retry_delay: Seconds slept between two attempts.
        timeout: Transport timeout of one attempt, in seconds.
        client: Optional pre-built ``httpx.Client`` (tests pass one backed by
            ``httpx.MockTransport``).
        sleep: Function used to wait between attempts.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        path: str,
        result_field: str,
        result_type: type,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.name = name
        self.url = base_url.rstrip("/") + path
        self.result_field = result_field
        self.result_type = result_type
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._client = client or httpx.Client(timeout=timeout)
        self._sleep = sleep

    def analyze(self, text: str) -> Any:
        last_status: int | None = None
        last_error = ""

        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._attempt(text)
            except _AttemptFailed as e:
                last_status = e.status
                last_error = str(e)

            if attempt < self.max_attempts:
                logger.warning(
                    "%s attempt %d/%d failed (%s), retrying in %.1fs",
                    self.name, attempt, self.max_attempts, last_error, self.retry_delay,
                )
                self._sleep(self.retry_delay)

        logger.error("%s analysis failed after %d attempts: %s", self.name, self.max_attempts, last_error)
        raise AnalysisUnavailableError(
            f"{self.name} API failed after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
            last_status=last_status,
            last_error=last_error,
        )

    def _attempt(self, text: str) -> Any:
        try:
            response = self._client.post(self.url, json={"text": text})
        except httpx.HTTPError as e:
            raise _AttemptFailed(f"failed to make {self.name} API request: {e}") from e
        except Exception as e:
            # request could not even be built (e.g. text not encodable)
            raise _AttemptFailed(f"failed to build {self.name} API request: {e!r}") from e

        if response.status_code != httpx.codes.OK:
            raise _AttemptFailed(
                f"{self.name} API returned error, status: {response.status_code}, body: {response.text}",
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise _AttemptFailed(f"failed to decode {self.name} response: {e}", status=response.status_code) from e

        value = payload.get(self.result_field) if isinstance(payload, dict) else None
        # bool is an int subclass; a score of `true` is not a score
        if not isinstance(value, self.result_type) or isinstance(value, bool):
            raise _AttemptFailed(
                f"{self.name} response has no {self.result_type.__name__} field '{self.result_field}'",
                status=response.status_code,
            )
        return value

    def close(self) -> None:
        self._client.close()


def build_risk_analyzer(base_url: str, **kwargs) -> RetryingHttpAnalyzer:
    """Analyzer for ``POST /suicide-risk`` → integer ``score``."""
    return RetryingHttpAnalyzer("suicide risk", base_url, SUICIDE_RISK_PATH, "score", int, **kwargs)


def build_sentiment_analyzer(base_url: str, **kwargs) -> RetryingHttpAnalyzer:
    """Analyzer for ``POST /sentiment`` → string ``sentiment`` label."""
    return RetryingHttpAnalyzer("sentiment", base_url, SENTIMENT_PATH, "sentiment", str, **kwargs)
