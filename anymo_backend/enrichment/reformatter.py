"""
Structured Transcript Reformatter (LLM)
=======================================

Purpose
-------
Turns a raw consultation transcript (no speaker markers) into the stored
format: utterances separated by ``@@`` plus a flag telling whether the doctor
speaks first. The work is delegated to an OpenAI chat model through
LangChain, constrained by a strict JSON schema to return exactly::

    {"updatedText": "<transcript with @@ markers>", "startWithDoctor": true}

Behavior
--------
- One attempt only (``max_retries=0``), bounded by a request timeout
  (default 15 seconds).
- Any failure (missing API key, transport error, timeout, empty answer,
  malformed JSON, missing or mistyped fields) is raised as a single
  :class:`ReformatError`. There is no fallback transcript.
- Nothing is persisted here.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

import openai
from json_repair import repair_json
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from anymo_backend.database.entities.chats import UTTERANCE_DELIMITER
from anymo_backend.enrichment.analyzers import AnalysisError, RemoteTextAnalyzer

logger = logging.getLogger(__name__)

DEFAULT_REFORMAT_TIMEOUT_SECONDS = 15.0

REFORMAT_RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "reformatted_transcript",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "updatedText": {"type": "string"},
                "startWithDoctor": {"type": "boolean"},
            },
            "required": ["updatedText", "startWithDoctor"],
            "additionalProperties": False,
        },
    },
}
"""OpenAI `response_format` forcing the two-field JSON answer."""

REFORMAT_PROMPT = PromptTemplate.from_template(
    "Process the conversation below by inserting '{delimiter}' markers where the speaker changes. "
    "Also determine if the conversation starts with a doctor. "
    "Return a JSON object with the following fields:\n"
    "  updatedText (string): the conversation with '{delimiter}' markers inserted,\n"
    "  startWithDoctor (boolean): true if the first utterance is from the doctor, false otherwise.\n"
    "Conversation: {conversation}"
)


class ReformatError(AnalysisError):
    """Raised when the reformatting call produced no usable answer."""


@dataclass(frozen=True)
class ReformattedTranscript:
    updated_text: str
    start_with_doctor: bool


def lc_text_from_content(content) -> str:
    """Normalize LangChain message content (str or list of parts) to plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text")
    return str(content)


def parse_llm_json(raw: str) -> dict:
    """
    Parse a model answer into a JSON object.

    Steps:
        1) Strip markdown code fences if present.
        2) Try `json.loads`.
        3) Fallback: `json_repair.repair_json` then `json.loads`.

    Raises:
        ReformatError if the text is empty or still not a JSON object.
    """
    raw = raw.strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\n", "", raw)
        raw = re.sub(r"\n```$", "", raw)
    if not raw:
        raise ReformatError("failed to retrieve JSON response from LLM")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        try:
            parsed = json.loads(repair_json(raw))
        except ValueError as e:
            raise ReformatError(f"failed to decode JSON response: {e}") from e

    if not isinstance(parsed, dict):
        raise ReformatError("failed to decode JSON response: expected a JSON object")
    return parsed


class StructuredReformatter(RemoteTextAnalyzer):
    """
    Single-attempt, timeout-bounded transcript reformatter.

    Args:
        api_key: OpenAI API key.
        model_name: Chat model to use.
        timeout: Request timeout in seconds.
        chat_model: Optional pre-built runnable exposing ``invoke(prompt)``;
            when omitted a ``ChatOpenAI`` is built on first use.
    """

    name = "reformat"

    def __init__(
        self,
        api_key: str = "",
        model_name: str = "gpt-4o-mini",
        timeout: float = DEFAULT_REFORMAT_TIMEOUT_SECONDS,
        chat_model=None,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self._chat_model = chat_model

    def _get_chat_model(self):
        if self._chat_model is None:
            if not self.api_key:
                raise ReformatError("failed to create LLM client: API_KEY is not configured")
            try:
                model = ChatOpenAI(
                    model=self.model_name,
                    api_key=self.api_key,
                    temperature=0,
                    timeout=self.timeout,
                    max_retries=0,
                )
            except Exception as e:
                raise ReformatError(f"failed to create LLM client: {e}") from e
            self._chat_model = model.bind(response_format=REFORMAT_RESPONSE_FORMAT)
        return self._chat_model

    def analyze(self, text: str) -> ReformattedTranscript:
        model = self._get_chat_model()
        prompt = REFORMAT_PROMPT.format(delimiter=UTTERANCE_DELIMITER, conversation=text)

        try:
            response = model.invoke(prompt)
        except openai.APITimeoutError as e:
            logger.error("Reformat call timed out after %.0fs", self.timeout)
            raise ReformatError(f"LLM API timed out after {self.timeout:.0f}s") from e
        except Exception as e:
            logger.error("Reformat call failed: %s", e)
            raise ReformatError(f"LLM API error: {e}") from e

        result = parse_llm_json(lc_text_from_content(getattr(response, "content", "")))

        updated_text = result.get("updatedText")
        start_with_doctor = result.get("startWithDoctor")
        if not isinstance(updated_text, str) or not isinstance(start_with_doctor, bool):
            raise ReformatError("LLM response is missing 'updatedText' or 'startWithDoctor'")
        return ReformattedTranscript(updated_text=updated_text, start_with_doctor=start_with_doctor)
