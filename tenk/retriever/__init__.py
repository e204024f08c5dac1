"""
Retriever - Filing Section Retrieval and Answering

Key Components:
- DocumentIndex: Groups corpus rows into per-path documents (built once)
- rank: Lexical prefilter over paths and previews
- SelectionOrchestrator: LLM picks the relevant candidates, validated defensively
- assemble_context: Full text of the picked documents
- AnswerSynthesizer: LLM answer over that context; sources appended by the pipeline

Pipeline:
1. Load (or reuse) the document index
2. Prefilter candidates for the question
3. Select 3-4 candidates with the LLM (fallback: top 3)
4. Assemble full-text context
5. Synthesize the answer and append the numbered Sources block
"""

from .document_index import CorpusError, Document, DocumentIndex, read_csv_rows
from .prefilter import Candidate, rank
from .selector import Selection, SelectionOrchestrator
from .context import assemble_context
from .synthesizer import AnswerSynthesizer, attach_sources
from .pipeline import AdvisorAnswer, AdvisorPipeline, clamp_question

__all__ = [
    "CorpusError",
    "Document",
    "DocumentIndex",
    "read_csv_rows",
    "Candidate",
    "rank",
    "Selection",
    "SelectionOrchestrator",
    "assemble_context",
    "AnswerSynthesizer",
    "attach_sources",
    "AdvisorAnswer",
    "AdvisorPipeline",
    "clamp_question",
]
