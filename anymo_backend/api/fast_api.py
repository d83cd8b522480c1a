"""
FastAPI Router: Chats • Transcript Processing
==============================================

Purpose
-------
Defines the HTTP API for:
- Chat records: list, get, create (with ML enrichment), partial update, delete
- Transcript processing: `/processChat` (alias `/analyze`) inserts `@@`
  speaker markers with the LLM reformatter, without storing anything

Key Notes
---------
- Input validation via Pydantic models in `anymo_backend.api.models`.
- The enrichment pipeline and the reformatter live on `app.state`; they are
  built on first use when the lifespan did not create them (tests set fakes).
- Error bodies are `{"error": <message>}`; the mapping of store, validation
  and LLM failures to status codes is registered in `anymo_backend.main`.
"""

import logging
from fastapi import APIRouter, HTTPException, Request, Depends
from anymo_backend.api.models import (
    ChatCreationDetails,
    ChatRecord,
    DeleteConfirmation,
    ProcessChatRequest,
    ProcessChatResponse,
    UpdateChatDetails,
)
from anymo_backend.database.config.config import settings
from anymo_backend.database.core.funcs import (
    ChatNotFoundError,
    create_chat,
    delete_chat,
    get_chat,
    get_chats,
    update_chat,
)
from anymo_backend.enrichment.pipeline import (
    EnrichmentPipeline,
    build_pipeline,
    build_reformatter,
    process_chat,
)
from anymo_backend.enrichment.reformatter import StructuredReformatter

logger = logging.getLogger(__name__)

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""

CHAT_NOT_FOUND = "Chat not found"


def get_pipeline(request: Request) -> EnrichmentPipeline:
    """Return the app's enrichment pipeline, building it from settings if needed."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        pipeline = build_pipeline(settings, insert_record=create_chat)
        request.app.state.pipeline = pipeline
    return pipeline


def get_reformatter(request: Request) -> StructuredReformatter:
    """Return the app's transcript reformatter, building it from settings if needed."""
    reformatter = getattr(request.app.state, "reformatter", None)
    if reformatter is None:
        reformatter = build_reformatter(settings)
        request.app.state.reformatter = reformatter
    return reformatter


@router.get('/chats', response_model=list[ChatRecord])
def list_chats():
    """List all chat records, most recently created first."""
    return get_chats()


@router.get('/chats/{chat_id}', response_model=ChatRecord)
def read_chat(chat_id: int):
    """Fetch one chat record; 404 if the id is unknown."""
    try:
        return get_chat(chat_id=chat_id)
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)


@router.post('/chats', response_model=ChatRecord, status_code=201)
def new_chat(data: ChatCreationDetails, pipeline: EnrichmentPipeline = Depends(get_pipeline)):
    """Create a chat record.

    Behavior:
        - 400 if `text` is missing or empty.
        - Calls the risk and sentiment services (3 attempts each, 2 s apart).
        - A successful risk score replaces `riskScore`; a successful sentiment
          label is stored in `memo` as "Sentiment: <label>[ | <memo>]".
        - When a service stays unavailable the caller's value (or the default)
          is kept; creation itself still succeeds.

    Response:
        201: the stored record.
    """
    record = pipeline.create_record(
        data.text,
        start_with_doctor=data.start_with_doctor,
        risk_score=data.risk_score,
        memo=data.memo,
    )
    logger.info("Created chat %s (riskScore=%s)", record["id"], record["riskScore"])
    return record


@router.put('/chats/{chat_id}', response_model=ChatRecord)
def edit_chat(chat_id: int, data: UpdateChatDetails):
    """Overwrite the fields present in the body; others keep their values."""
    try:
        return update_chat(chat_id=chat_id, fields=data.changed_fields())
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)


@router.delete('/chats/{chat_id}', response_model=DeleteConfirmation)
def remove_chat(chat_id: int):
    """Delete a chat record; 404 if the id is unknown."""
    try:
        delete_chat(chat_id=chat_id)
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return {"message": "Chat deleted successfully"}


@router.post('/processChat', response_model=ProcessChatResponse)
@router.post('/analyze', response_model=ProcessChatResponse)
def process_chat_endpoint(data: ProcessChatRequest, reformatter: StructuredReformatter = Depends(get_reformatter)):
    """Insert '@@' speaker markers into a raw transcript and detect who speaks first.

    `createdAt` and `memo` are echoed back unchanged. Nothing is stored.
    A failed LLM call is answered with 500.
    """
    return process_chat(reformatter, data.text, created_at=data.created_at, memo=data.memo)
