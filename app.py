#!/usr/bin/env python3
"""
Text Rephraser FastAPI Server

This FastAPI server exposes:
 • GET / – the rephrase form.
 • POST /api/rephrase – rephrases the submitted text through the completion API.
 • POST /api/rephrase/stream – the same, streamed as server-sent events.
 • GET /health – liveness probe.

Every upstream failure is logged and reported to the caller as a generic
"Failed to rephrase text" error; only input validation errors are specific.
"""

import json
import os
from typing import AsyncGenerator

from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from fastapi import FastAPI, APIRouter, Request
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from loguru import logger
import uvicorn

from rephraser.classes import ApiError, ErrorResponse, RephraseRequest, RephraseResponse
from rephraser.llm import DEFAULT_BASE_URL, DEFAULT_MODEL
from rephraser.llm.pipeline import RephrasePipeline
from rephraser.ui import INDEX_HTML

load_dotenv()

# Global Configuration (from ENV)
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", None)
OPENAI_API_BASE_URL = os.environ.get("OPENAI_API_BASE_URL", DEFAULT_BASE_URL)
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)
if not OPENAI_API_KEY:
    # Requests still go out and are rejected upstream
    logger.warning("OPENAI_API_KEY is not set. Upstream calls will be unauthorized.")

logger.info(f"Using OpenAI API Base URL: {OPENAI_API_BASE_URL} ({OPENAI_MODEL})")

TEXT_REQUIRED = "Text is required"
REPHRASE_FAILED = "Failed to rephrase text"

# ----------------------------------------------------------------------
# FastAPI App and Endpoints
# ----------------------------------------------------------------------
app = FastAPI(
    title="Text Rephraser",
    description="Rephrases text through an OpenAI compatible completion API",
    version="0.1.0",
)
# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)
# Defining routers
rephrase_router = APIRouter(prefix="/api/rephrase", tags=["Rephrase"])

pipeline = RephrasePipeline(
    api_key=OPENAI_API_KEY, model=OPENAI_MODEL, base_url=OPENAI_API_BASE_URL
)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"Rejected body on {request.url.path}: {exc.errors()}")
    return error_response(400, TEXT_REQUIRED)


def _sse(data: dict) -> str:
    return f"data: {json.dumps(data)}\n\n"


# Helper function to relay streamed fragments as server-sent events.
async def streaming_event_generator(
    first: str, fragments: AsyncGenerator[str, None]
) -> AsyncGenerator[str, None]:
    try:
        if first:
            yield _sse({"choices": [{"delta": {"content": first}}]})
        async for token in fragments:
            yield _sse({"choices": [{"delta": {"content": token}}]})
    except ApiError as e:
        logger.error(f"Rephrase stream failed: {e}")
        yield _sse({"error": REPHRASE_FAILED})
    finally:
        await fragments.aclose()
    yield "data: [DONE]\n\n"


@rephrase_router.post(
    "",
    response_model=RephraseResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def rephrase(request: RephraseRequest):
    if not request.text or not request.text.strip():
        return error_response(400, TEXT_REQUIRED)

    try:
        rephrased = await pipeline.run(request.text)
    except ApiError as e:
        logger.error(f"Rephrase failed: {e}")
        return error_response(500, REPHRASE_FAILED)

    return RephraseResponse(rephrased=rephrased)


@rephrase_router.post(
    "/stream",
    response_description="Server-sent events of rephrased fragments",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def rephrase_stream(request: RephraseRequest):
    if not request.text or not request.text.strip():
        return error_response(400, TEXT_REQUIRED)

    fragments = pipeline.run_stream(request.text)
    # Pull the first fragment so upstream failures still map to a status code
    try:
        first = await fragments.__anext__()
    except StopAsyncIteration:
        first = ""
    except ApiError as e:
        logger.error(f"Rephrase stream failed: {e}")
        await fragments.aclose()
        return error_response(500, REPHRASE_FAILED)

    return StreamingResponse(
        streaming_event_generator(first, fragments),
        media_type="text/event-stream",
    )


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index():
    return HTMLResponse(INDEX_HTML)


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(rephrase_router)

if __name__ == "__main__":
    uvicorn.run(
        "app:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=True,
    )
