"""Context assembly for the answer step."""

from typing import Sequence

from .document_index import Document


def format_block(document: Document) -> str:
    return f"[{document.path}]\n{document.full_text}"


def assemble_context(documents: Sequence[Document]) -> str:
    """
    Full text of each selected document, tagged with its path.

    Blocks keep selection order and are never truncated, whatever their length.
    """
    return "\n\n".join(format_block(doc) for doc in documents)
