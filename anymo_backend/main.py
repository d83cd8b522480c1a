"""
FastAPI application bootstrap with: \n
- Lifespan-managed startup: database check, table creation, enrichment pipeline and reformatter \n
- CORS configured for the frontend \n
- Uniform `{"error": ...}` error bodies \n
- Health endpoint pinging the database \n

Environment contract (from `settings`): \n
- DATABASE_URL: chat record database. \n
- ML_API_URL: risk / sentiment service. \n
- FRONTEND_URL: allowed CORS origin(s). \n
- PORT, LOG_LEVEL: server options. \n
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from anymo_backend.api.fast_api import router
from anymo_backend.api.models import HealthStatus
from anymo_backend.database.config.config import settings
from anymo_backend.database.core.funcs import create_chat, init_schema, ping_database
from anymo_backend.enrichment.pipeline import InvalidTranscriptError, build_pipeline, build_reformatter
from anymo_backend.enrichment.reformatter import ReformatError

logging.basicConfig(level=settings.LOG_LEVEL)

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup: ping the database, create the `chats` table if needed,
      build the enrichment pipeline and the reformatter and attach them to
      `app.state`. An unreachable database aborts startup.
    - On shutdown: close the analyzers' HTTP clients.
    """
    logger.info("Using ML API URL: %s", settings.ML_API_URL)
    logger.info("Connecting to database...")
    ping_database()
    logger.info("Successfully connected to the database")
    init_schema()

    app.state.pipeline = build_pipeline(settings, insert_record=create_chat)
    app.state.reformatter = build_reformatter(settings)

    try:
        yield
    finally:
        pipeline = getattr(app.state, "pipeline", None)
        for analyzer in (getattr(pipeline, "risk_analyzer", None), getattr(pipeline, "sentiment_analyzer", None)):
            if hasattr(analyzer, "close"):
                analyzer.close()
        logger.info("App shutting down.")


app = FastAPI(title="Anymo chat records", lifespan=lifespan)
"""Instantiates the FastAPI application object."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(router)


def error_response(status_code: int, message) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON, wrong field types and non-integer ids are all 400s."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response(400, "; ".join(problems) or "invalid request")


@app.exception_handler(InvalidTranscriptError)
async def invalid_transcript_handler(request: Request, exc: InvalidTranscriptError):
    return error_response(400, str(exc))


@app.exception_handler(ReformatError)
async def reformat_error_handler(request: Request, exc: ReformatError):
    logger.error("LLM processing error: %s", exc)
    return error_response(500, f"LLM processing error: {exc}")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return error_response(500, str(exc))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Last resort: any other failure still answers with an `{"error": ...}` body."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, str(exc) or exc.__class__.__name__)


@app.get("/health", response_model=HealthStatus)
def health():
    """Report whether the server can reach its database."""
    try:
        ping_database()
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": f"Database connection failed: {e}"},
        )
    return {"status": "ok", "message": "Server is running and connected to the database"}


def run() -> None:
    """Console entry point: serve the app with uvicorn on `settings.PORT`."""
    import uvicorn

    logger.info("Server starting on port %s", settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
