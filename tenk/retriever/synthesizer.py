"""
Synthesizer

Writes the final answer from the assembled context.

Key principle: the model never cites. The numbered Sources block is built
from the selected documents, so it always matches what the answer was
grounded on.
"""

import logging
from typing import Sequence

from ..common.llm_client import LLMClient
from .document_index import Document

logger = logging.getLogger("tenk.retriever.synthesizer")


ANSWER_PROMPT = """You are a rigorous financial 10-K assistant.
Use ONLY the provided Context; treat it as the sole source of truth.
Do not import outside knowledge. If the Context lacks details to answer, say so succinctly.

Write a natural, professional answer in 4–7 short paragraphs (no section headings).
Make it dense with specifics drawn from the Context: figures, dates, segments, products, jurisdictions, and named regulations.
When helpful, quote tiny phrases (≤10 words) from the Context to anchor assertions, then explain them.
If the user asks about "is it worth it", discuss tradeoffs and scenario-style considerations grounded in the Context; do not give personalized advice.
Avoid hype and speculation.
Do NOT include a Sources section or inline citations—the caller will append sources."""


def build_answer_prompt(question: str, context: str) -> str:
    return f"Question: {question}\n\nContext:\n{context}"


def format_sources(documents: Sequence[Document]) -> str:
    """Numbered, bold Markdown list of source paths in selection order"""
    lines = [f"{i}. **{doc.path}**" for i, doc in enumerate(documents, 1)]
    return "Sources:\n" + "\n".join(lines)


def attach_sources(answer_text: str, documents: Sequence[Document]) -> str:
    return f"{answer_text}\n\n{format_sources(documents)}"


class AnswerSynthesizer:
    """Single free-form completion over the assembled context."""

    def __init__(
        self,
        llm_client: LLMClient,
        model: str,
        temperature: float = 0.1,
        timeout: float = 60.0,
        max_tokens: int = 2048,
    ):
        self._llm = llm_client
        self._model = model
        self._temperature = temperature
        self._timeout = timeout
        self._max_tokens = max_tokens

    async def answer(self, question: str, context: str) -> str:
        """
        Generate the answer text (without sources).

        Args:
            question: Clamped user question
            context: Output of assemble_context()

        Returns:
            Stripped model answer; may be empty if the model returned nothing
        """
        text = await self._llm.generate(
            build_answer_prompt(question, context),
            model=self._model,
            system=ANSWER_PROMPT,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            timeout=self._timeout,
        )
        logger.info("Answer generated (%d chars, context %d chars)", len(text), len(context))
        return text
