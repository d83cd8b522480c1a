"""
API Package: FastAPI Router • Models
=====================================

Contents
--------
- fast_api
    FastAPI router with endpoints for:
      • Chats: `GET /chats`, `GET /chats/{id}`, `POST /chats`, `PUT /chats/{id}`, `DELETE /chats/{id}`
      • Transcript processing: `POST /processChat` (alias `POST /analyze`)

- models
    Pydantic data contracts (camelCase on the wire):
      • ChatCreationDetails, UpdateChatDetails, ChatRecord
      • ProcessChatRequest, ProcessChatResponse
      • DeleteConfirmation, HealthStatus
"""
