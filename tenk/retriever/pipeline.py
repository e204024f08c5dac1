"""
Advisor Pipeline

question → DocumentIndex → prefilter → selection → context → answer.

Two awaited model calls per request, strictly in sequence: the answer call
needs the selection call's output.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..common.config import AdvisorConfig, LLMConfig
from ..common.llm_client import LLMClient
from .context import assemble_context
from .document_index import DocumentIndex
from .prefilter import rank
from .selector import SelectionOrchestrator
from .synthesizer import AnswerSynthesizer, attach_sources

logger = logging.getLogger("tenk.retriever.pipeline")

NO_CONTENT_ADVICE = (
    "No content available yet. Ensure the corpus CSV exists with Path and Content rows."
)


@dataclass
class AdvisorAnswer:
    """Outcome of one advisory request"""
    advice: str
    answer: str = ""
    sources: List[str] = field(default_factory=list)
    used_fallback: bool = False
    candidate_count: int = 0

    @property
    def has_content(self) -> bool:
        return self.candidate_count > 0


def clamp_question(raw: Optional[str], max_len: int = 1000) -> str:
    """First ``max_len`` characters, then trimmed. May cut a word in half."""
    return (raw or "")[:max_len].strip()


class AdvisorPipeline:
    """Runs one question through the full retrieval-and-answer flow."""

    def __init__(
        self,
        index: DocumentIndex,
        llm_client: LLMClient,
        llm_config: Optional[LLMConfig] = None,
        advisor_config: Optional[AdvisorConfig] = None,
    ):
        """
        Initialize pipeline.

        Args:
            index: Shared, lazily built document index
            llm_client: Completion client used for both calls
            llm_config: Model names and sampling settings
            advisor_config: Prefilter and selection limits
        """
        llm_config = llm_config or LLMConfig()
        self._config = advisor_config or AdvisorConfig()
        self._index = index
        self._llm = llm_client
        self._selector = SelectionOrchestrator(
            llm_client,
            model=llm_config.selector_model,
            max_selected=self._config.max_selected,
            fallback_count=self._config.fallback_count,
            temperature=llm_config.temperature,
            timeout=llm_config.timeout,
        )
        self._synthesizer = AnswerSynthesizer(
            llm_client,
            model=llm_config.answer_model,
            temperature=llm_config.temperature,
            timeout=llm_config.timeout,
        )

    @property
    def index(self) -> DocumentIndex:
        return self._index

    async def advise(self, question: str) -> AdvisorAnswer:
        """
        Answer a question that has already been clamped and found non-empty.

        Raises whatever the index build or either completion call raises.
        """
        # First call builds the index; keep file I/O off the event loop
        documents = await asyncio.to_thread(self._index.load)
        candidates = rank(documents, question, self._config.prefilter_top_k)
        if not candidates:
            logger.info("No candidates (index holds %d document(s))", len(documents))
            return AdvisorAnswer(advice=NO_CONTENT_ADVICE)

        logger.debug("Question: %s", question)
        logger.info(
            "Prefilter kept %d of %d document(s), top score %d",
            len(candidates), len(documents), candidates[0].score,
        )

        selection = await self._selector.select(question, candidates)
        context = assemble_context(selection.documents)
        answer_text = await self._synthesizer.answer(question, context)

        return AdvisorAnswer(
            advice=attach_sources(answer_text, selection.documents),
            answer=answer_text,
            sources=selection.paths,
            used_fallback=selection.used_fallback,
            candidate_count=len(candidates),
        )
