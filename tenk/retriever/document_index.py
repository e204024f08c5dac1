"""
Document Index

Groups (path, content) rows from the corpus CSV into one Document per path.

The index is built lazily on first use and held for the lifetime of the
process. It is never invalidated: edits to the CSV take effect only after a
restart.
"""

import csv
import logging
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger("tenk.retriever.document_index")

PATH_COLUMN = "Path"
CONTENT_COLUMN = "Content"

Row = Tuple[str, str]


class CorpusError(ValueError):
    """The corpus file exists but is not shaped as expected."""


def _raise_field_size_limit() -> None:
    """Lift the csv module's 128 KB per-field cap; filing sections run larger."""
    try:
        csv.field_size_limit(sys.maxsize)
    except OverflowError:
        csv.field_size_limit(2**31 - 1)


def _leading_text(fragments: Sequence[str], limit: int) -> str:
    """First ``limit`` characters of the space-joined fragments, without joining them all."""
    parts = []
    length = 0
    for fragment in fragments:
        if length >= limit:
            break
        if parts:
            parts.append(" ")
            length += 1
        parts.append(fragment[: max(limit - length, 0)])
        length += len(parts[-1])
    return "".join(parts)[:limit]


@dataclass(frozen=True)
class Document:
    """
    All content fragments filed under one path, in source row order.

    Immutable once built: ``preview`` and ``full_text`` are computed once at
    construction and shared read-only across requests.
    """
    path: str
    fragments: Tuple[str, ...] = ()
    preview_chars: int = 500
    # Leading slice of the fragments, for scoring and the selection listing only
    preview: str = field(init=False, repr=False, compare=False)
    # Every fragment, used when the document is selected as answer context
    full_text: str = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        fragments = tuple(self.fragments)
        object.__setattr__(self, "fragments", fragments)
        object.__setattr__(self, "preview", _leading_text(fragments, self.preview_chars))
        object.__setattr__(self, "full_text", "\n\n".join(fragments))


def read_csv_rows(csv_path) -> List[Row]:
    """
    Read (path, content) pairs from a CSV with ``Path`` and ``Content`` headers.

    Columns are matched by header name; extra columns are ignored and a
    leading byte-order mark is tolerated. A file with no header line yields
    no rows.

    Raises:
        FileNotFoundError: csv_path does not exist
        CorpusError: the header row lacks a required column
    """
    _raise_field_size_limit()
    with open(csv_path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            return []

        headers = [(name or "").strip() for name in reader.fieldnames]
        missing = [c for c in (PATH_COLUMN, CONTENT_COLUMN) if c not in headers]
        if missing:
            raise CorpusError(
                f"{csv_path}: missing column(s) {', '.join(missing)} "
                f"(found: {', '.join(headers) or 'none'})"
            )
        reader.fieldnames = headers

        return [
            (row.get(PATH_COLUMN) or "", row.get(CONTENT_COLUMN) or "")
            for row in reader
        ]


def build_documents(rows: Iterable[Row], preview_chars: int = 500) -> List[Document]:
    """
    Group rows into Documents.

    Path and content are trimmed; rows where either is empty are dropped.
    Documents keep first-seen path order.
    """
    by_path = {}
    for raw_path, raw_content in rows:
        path = (raw_path or "").strip()
        content = (raw_content or "").strip()
        if not path or not content:
            continue
        by_path.setdefault(path, []).append(content)
    return [
        Document(path=path, fragments=tuple(fragments), preview_chars=preview_chars)
        for path, fragments in by_path.items()
    ]


class DocumentIndex:
    """
    Lazily built, process-lifetime cache of the corpus.

    The first successful ``load()`` reads the source and memoizes the result;
    later calls return the same list without touching the source. A failed
    build leaves the cache empty so the next request retries.
    """

    def __init__(
        self,
        source: Callable[[], Iterable[Row]],
        preview_chars: int = 500,
        description: str = "",
    ):
        """
        Initialize index.

        Args:
            source: Zero-argument callable returning (path, content) rows
            preview_chars: Preview length used for scoring and prompts
            description: Human-readable source name for logs
        """
        self._source = source
        self._preview_chars = preview_chars
        self._description = description
        self._documents: Optional[List[Document]] = None
        self._lock = threading.Lock()

    @classmethod
    def from_csv(cls, csv_path, preview_chars: int = 500) -> "DocumentIndex":
        """Index backed by a CSV file, read on first load()"""
        path = Path(csv_path)
        return cls(
            source=lambda: read_csv_rows(path),
            preview_chars=preview_chars,
            description=str(path),
        )

    @property
    def is_loaded(self) -> bool:
        return self._documents is not None

    def load(self) -> List[Document]:
        """Return the indexed documents, building them on first call."""
        if self._documents is not None:
            return self._documents

        with self._lock:
            if self._documents is None:
                documents = build_documents(self._source(), self._preview_chars)
                logger.info(
                    "Indexed %d document(s) from %s",
                    len(documents), self._description or "source",
                )
                self._documents = documents
        return self._documents

    get = load
