"""
Selection Orchestrator

Asks the model to pick the most relevant candidates by listing number and
validates whatever comes back.

The model's reply is untrusted: unparseable JSON, a wrong shape, or
out-of-range numbers all degrade to the top prefilter candidates instead of
failing the request. Errors from the completion call itself propagate.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json
from .document_index import Document
from .prefilter import Candidate

logger = logging.getLogger("tenk.retriever.selector")

MAX_SELECTED = 4
FALLBACK_COUNT = 3


SELECTOR_PROMPT = """You are a financial 10-K analyzer.
You will see a QUESTION and a numbered list of CANDIDATE PATHS (each with a brief preview).
Pick the 3–4 MOST RELEVANT unique paths by NUMBER ONLY and give a very short reason for each.

Return STRICT JSON (no prose, no backticks) with EXACT shape:
{
  "selected_indices": [1, 7, 9],
  "reasons": {
    "1": "why #1 helps (<= 15 words)",
    "7": "why #7 helps",
    "9": "why #9 helps"
  }
}

Rules:
- Select paths that directly contain facts to answer the question.
- Prefer specific subsections over broad sections when helpful.
- 3 to 4 items only.
- Respond with JSON ONLY."""


@dataclass
class Selection:
    """Validated outcome of the selection step"""
    indices: List[int]  # 1-based listing numbers, deduplicated, capped
    documents: List[Document]
    reasons: Dict[str, str] = field(default_factory=dict)
    used_fallback: bool = False
    raw_response: Optional[str] = None

    @property
    def paths(self) -> List[str]:
        return [d.path for d in self.documents]


def build_listing(candidates: Sequence[Candidate]) -> str:
    """Numbered candidate blocks; the listing number is the only handle the model gets."""
    return "\n\n".join(
        f"#{i}\npath: {c.document.path}\npreview: {c.document.preview}"
        for i, c in enumerate(candidates, 1)
    )


def build_selector_prompt(question: str, candidates: Sequence[Candidate]) -> str:
    return f"QUESTION: {question}\n\nCANDIDATE PATHS:\n{build_listing(candidates)}"


def _as_int(value: Any) -> Optional[int]:
    """Integer value of a JSON scalar, or None if it does not denote an integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) and number.is_integer() else None
    return None


def extract_indices(payload: Dict[str, Any], candidate_count: int, limit: int = MAX_SELECTED) -> List[int]:
    """
    Usable listing numbers from a parsed selector payload.

    Only a list-typed ``selected_indices`` is accepted. Non-integers and
    numbers outside [1, candidate_count] are dropped; the rest are
    deduplicated in first-seen order and capped at ``limit``.
    """
    raw = payload.get("selected_indices")
    if not isinstance(raw, list):
        return []

    indices: List[int] = []
    for item in raw:
        n = _as_int(item)
        if n is None or n < 1 or n > candidate_count:
            continue
        if n not in indices:
            indices.append(n)
        if len(indices) >= limit:
            break
    return indices


def _extract_reasons(payload: Dict[str, Any]) -> Dict[str, str]:
    reasons = payload.get("reasons")
    if not isinstance(reasons, dict):
        return {}
    return {str(k): str(v) for k, v in reasons.items()}


class SelectionOrchestrator:
    """
    Chooses which candidates ground the answer.

    Always returns between 1 and ``max_selected`` unique documents for a
    non-empty candidate list.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        model: str,
        max_selected: int = MAX_SELECTED,
        fallback_count: int = FALLBACK_COUNT,
        temperature: float = 0.1,
        timeout: float = 60.0,
    ):
        self._llm = llm_client
        self._model = model
        self._max_selected = max_selected
        self._fallback_count = fallback_count
        self._temperature = temperature
        self._timeout = timeout

    async def select(self, question: str, candidates: Sequence[Candidate]) -> Selection:
        """
        Run the selection call and resolve its answer to documents.

        Args:
            question: Clamped user question
            candidates: Prefilter output, best first

        Returns:
            Selection with the chosen documents in selection order
        """
        if not candidates:
            return Selection(indices=[], documents=[], used_fallback=True)

        raw = await self._llm.generate_json(
            build_selector_prompt(question, candidates),
            model=self._model,
            system=SELECTOR_PROMPT,
            temperature=self._temperature,
            timeout=self._timeout,
        )
        return self.resolve(raw, candidates)

    def resolve(self, raw: Optional[str], candidates: Sequence[Candidate]) -> Selection:
        """Turn a raw selector reply into a Selection, falling back when nothing usable remains."""
        payload = parse_llm_json(raw or "")
        indices = extract_indices(payload, len(candidates), self._max_selected)
        reasons = _extract_reasons(payload)

        used_fallback = not indices
        if used_fallback:
            indices = list(range(1, min(self._fallback_count, len(candidates)) + 1))
            logger.info(
                "Selector reply unusable, falling back to top %d candidate(s)", len(indices)
            )
        else:
            logger.info("Selector picked %s of %d candidate(s)", indices, len(candidates))
            for n in indices:
                if str(n) in reasons:
                    logger.debug("  #%d %s: %s", n, candidates[n - 1].path, reasons[str(n)])

        documents: List[Document] = []
        seen_paths = set()
        for n in indices:
            doc = candidates[n - 1].document
            if doc.path not in seen_paths:
                seen_paths.add(doc.path)
                documents.append(doc)
            if len(documents) >= self._max_selected:
                break

        return Selection(
            indices=indices,
            documents=documents,
            reasons=reasons,
            used_fallback=used_fallback,
            raw_response=raw,
        )
