"""
Advisor Server

FastAPI server answering questions about the filing corpus.

Endpoints:
- POST /api/synthesizer-agent: {"userScenario": "..."} -> {"advice": "..."}
- GET /health: Health check

Pipeline:
1. Check the LLM client is configured
2. Clamp the question (1000 chars, trimmed)
3. Prefilter, select, assemble, answer (see tenk.retriever.pipeline)
4. Return the answer with the Sources block appended
"""

import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .common.config import ConfigurationError, TenkConfig, ensure_directories, load_config
from .common.llm_client import LLMClient
from .common.logging_config import setup_logging
from .retriever.document_index import DocumentIndex
from .retriever.pipeline import AdvisorPipeline, clamp_question

logger = logging.getLogger("tenk.server")

EMPTY_QUESTION_ADVICE = "Please provide a question."
SERVER_ERROR_ADVICE = (
    "Server error while generating answer. Check logs & environment variables."
)


# Global state
config: Optional[TenkConfig] = None
llm_client: Optional[LLMClient] = None
pipeline: Optional[AdvisorPipeline] = None


def build_pipeline(cfg: TenkConfig) -> AdvisorPipeline:
    """Wire the index, LLM client and pipeline from configuration."""
    global llm_client

    llm_client = LLMClient(
        provider=cfg.llm.provider,
        openai_api_key=cfg.llm.openai_api_key or None,
        anthropic_api_key=cfg.llm.anthropic_api_key or None,
        google_api_key=cfg.llm.google_api_key or None,
    )
    index = DocumentIndex.from_csv(
        Path(cfg.corpus.csv_path),
        preview_chars=cfg.corpus.preview_chars,
    )
    return AdvisorPipeline(
        index=index,
        llm_client=llm_client,
        llm_config=cfg.llm,
        advisor_config=cfg.advisor,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    global config, pipeline

    load_dotenv()
    ensure_directories()
    setup_logging()

    config = load_config()
    logger.info("Loaded config (provider: %s, corpus: %s)", config.llm.provider, config.corpus.csv_path)

    pipeline = build_pipeline(config)
    if llm_client.is_available:
        logger.info(
            "LLM client ready (selector: %s, answer: %s)",
            config.llm.selector_model, config.llm.answer_model,
        )
    else:
        logger.warning("LLM client unavailable: set %s", config.llm.api_key_env_var())

    logger.info("Ready to answer questions (index builds on first request)")

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title="Tenk Advisor",
    description="Grounded answers over 10-K filing sections",
    version=__version__,
    lifespan=lifespan,
)


# =============================================================================
# Request/Response Models
# =============================================================================

class AdviceResponse(BaseModel):
    """Body of every /api/synthesizer-agent response"""
    advice: str


def _advice(text: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(AdviceResponse(advice=text).model_dump(), status_code=status_code)


def _read_question(body: bytes) -> str:
    """userScenario from a request body; anything unreadable counts as no question."""
    try:
        data: Any = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = {}
    if not isinstance(data, dict):
        return ""
    value = data.get("userScenario")
    return "" if value is None else str(value)


def _check_configuration() -> None:
    if pipeline is None or llm_client is None:
        raise ConfigurationError("Advisor pipeline is not initialized.")
    if not llm_client.is_available:
        env_var = config.llm.api_key_env_var() if config else "OPENAI_API_KEY"
        raise ConfigurationError(
            f"{env_var} is missing. Set it in the server environment or ~/.tenk/config.json."
        )


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "advisor",
        "documents_loaded": pipeline.index.is_loaded if pipeline else False,
        "llm_available": llm_client.is_available if llm_client else False,
        "provider": config.llm.provider if config else None,
    }


@app.post("/api/synthesizer-agent")
async def synthesizer_agent(request: Request):
    """
    Answer one question.

    400 for an empty question, 500 for missing configuration or any failure
    in the pipeline (details are logged, never returned).
    """
    try:
        _check_configuration()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return _advice(str(e), status_code=500)

    try:
        max_len = config.advisor.max_question_len if config else 1000
        question = clamp_question(_read_question(await request.body()), max_len)
        if not question:
            return _advice(EMPTY_QUESTION_ADVICE, status_code=400)

        result = await pipeline.advise(question)
        if result.has_content:
            logger.info(
                "Answered with %d source(s)%s",
                len(result.sources), " (fallback selection)" if result.used_fallback else "",
            )
        return _advice(result.advice)

    except Exception:
        logger.exception("synthesizer-agent error")
        return _advice(SERVER_ERROR_ADVICE, status_code=500)


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the Advisor server"""
    import uvicorn

    load_dotenv()
    setup_logging()
    cfg = load_config()

    logger.info("Starting server on %s:%d", cfg.advisor.host, cfg.advisor.port)
    uvicorn.run(
        "tenk.server:app",
        host=cfg.advisor.host,
        port=cfg.advisor.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
