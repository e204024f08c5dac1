"""
Prefilter Ranker

Cheap lexical scoring that shrinks the corpus to a candidate list small
enough for one selection call. Recall-oriented; the final choice is made by
the selector.
"""

import re
from dataclasses import dataclass
from typing import List, Sequence

from .document_index import Document

PATH_WEIGHT = 2
PREVIEW_WEIGHT = 1

_NON_WORD = re.compile(r"\W+")


@dataclass(frozen=True)
class Candidate:
    """A document scored against one query"""
    document: Document
    score: int
    rank: int  # 1-based, by descending score
    index_position: int  # position in the document index

    @property
    def path(self) -> str:
        return self.document.path


def tokenize(query: str) -> List[str]:
    """Lower-cased distinct terms split on non-word characters, in first-seen order."""
    terms = [t for t in _NON_WORD.split(query.lower()) if t]
    return list(dict.fromkeys(terms))


def _term_hits(terms: Sequence[str], haystack: str) -> int:
    low = haystack.lower()
    return sum(1 for t in terms if t in low)


def score_document(document: Document, terms: Sequence[str]) -> int:
    """Path hits count double; preview hits count once. Presence, not frequency."""
    return (
        PATH_WEIGHT * _term_hits(terms, document.path)
        + PREVIEW_WEIGHT * _term_hits(terms, document.preview)
    )


def rank(documents: Sequence[Document], query: str, k: int) -> List[Candidate]:
    """
    Score every document and return the top ``k`` as ranked candidates.

    Ties keep index order. Zero-score documents are kept; ``k`` is the only cut.
    """
    terms = tokenize(query)
    scored = [
        (score_document(doc, terms), position, doc)
        for position, doc in enumerate(documents)
    ]
    scored.sort(key=lambda item: (-item[0], item[1]))

    return [
        Candidate(document=doc, score=score, rank=i, index_position=position)
        for i, (score, position, doc) in enumerate(scored[: max(k, 0)], 1)
    ]
