from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agents.supervisor import analyze, explore_repository
from app_logging.activity_logger import ActivityLogger
from config.logging_config import configure_logging
from core.errors import InputValidationError, OracleError, UpstreamFetchError
from schemas.repo import AnalyzeRequest, TreeRequest

logger = ActivityLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("api_started")
    yield


app = FastAPI(title="Change Impact Analyzer", version="1.0.0", lifespan=lifespan)


# ── Error mapping ──────────────────────────────────────────────────────────────
# Every failure is a single {"error": message}; partial results are never sent.

@app.exception_handler(InputValidationError)
async def _input_error(request: Request, exc: InputValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def _body_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(UpstreamFetchError)
async def _upstream_error(request: Request, exc: UpstreamFetchError):
    logger.error("request_failed", exc=exc, path=request.url.path)
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.exception_handler(OracleError)
async def _oracle_error(request: Request, exc: OracleError):
    logger.error("request_failed", exc=exc, path=request.url.path)
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.exception_handler(asyncio.TimeoutError)
async def _timeout(request: Request, exc: asyncio.TimeoutError):
    logger.error("request_timed_out", path=request.url.path)
    return JSONResponse(status_code=504, content={"error": "Analysis timed out"})


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception):
    logger.error("request_failed_unexpectedly", exc=exc, path=request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


# ── Routes ─────────────────────────────────────────────────────────────────────

@app.post("/analyze", response_model=None)
async def post_analyze(body: AnalyzeRequest):
    """Run the full impact analysis for one change request."""
    if not body.repo_url.strip() or not body.change_request.strip():
        raise InputValidationError("repoUrl and changeRequest are required")
    response = await analyze(body.repo_url, body.change_request)
    return JSONResponse(content=response.to_wire())


@app.post("/tree", response_model=None)
async def post_tree(body: TreeRequest):
    """List the analysable files of a repository."""
    response = await explore_repository(body.repo_url)
    return JSONResponse(content=response.to_wire())


@app.get("/health")
def health():
    return {"status": "ok"}
