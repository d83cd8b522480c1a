"""
Pydantic models used for request/response validation and API data contracts.

Field names are snake_case in Python and camelCase on the wire
(`startWithDoctor`, `riskScore`, `createdAt`); both spellings are accepted
on input.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatCreationDetails(CamelModel):
    """
    Body of `POST /chats`.

    Only `text` is required (and must be non-empty). `startWithDoctor` must be
    a JSON boolean and `riskScore` a JSON integer; `"yes"` or `"7"` are 400s.

    `riskScore` and `memo` are used when the ML analyses fail; a successful
    risk analysis overrides `riskScore`, a successful sentiment analysis is
    prefixed to `memo`.
    """
    start_with_doctor: Optional[bool] = Field(None, strict=True, description="True if the doctor speaks first. Defaults to false.")
    text: str = Field("", description="Transcript, utterances separated by '@@'.", examples=["Hello, how are you?@@Not great."])
    risk_score: Optional[int] = Field(None, strict=True, description="Fallback risk score (1-100).")
    memo: Optional[str] = Field(None, description="Free-text note.")


class UpdateChatDetails(CamelModel):
    """
    Body of `PUT /chats/{id}`. Every field is optional; only fields present
    (and not null) replace the stored values.
    """
    start_with_doctor: Optional[bool] = Field(None, strict=True)
    text: Optional[str] = None
    risk_score: Optional[int] = Field(None, strict=True)
    memo: Optional[str] = None

    def changed_fields(self) -> dict:
        """Column name → value for each field the client actually sent."""
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class ChatRecord(CamelModel):
    """A stored chat record as returned by the API."""
    id: int
    start_with_doctor: bool
    text: str
    risk_score: int
    memo: str
    created_at: datetime


class ProcessChatRequest(CamelModel):
    """Body of `POST /processChat`: a raw transcript without speaker markers."""
    created_at: str = Field("", description="Echoed back unchanged.")
    text: str = Field("", description="Raw transcript.")
    memo: str = Field("", description="Echoed back unchanged.")


class ProcessChatResponse(CamelModel):
    """Reformatted transcript returned by `POST /processChat`."""
    created_at: str
    text: str = Field(..., description="Transcript with '@@' inserted where the speaker changes.")
    memo: str
    start_with_doctor: bool


class DeleteConfirmation(BaseModel):
    message: str


class HealthStatus(BaseModel):
    status: str
    message: str
