"""Tests for context assembly and answer synthesis."""

import pytest
from unittest.mock import AsyncMock, Mock

from tenk.retriever.document_index import Document


@pytest.fixture
def documents():
    return [
        Document(path="Item 7 MD&A", fragments=["Segment revenue: Hardware $4.2B, Services $1.1B.", "Margins expanded."]),
        Document(path="Item 1A Risk Factors", fragments=["Supply concentration in one region."]),
    ]


class TestAssembleContext:
    def test_blocks_tagged_with_path_in_selection_order(self, documents):
        from tenk.retriever.context import assemble_context

        context = assemble_context(documents)

        assert context == (
            "[Item 7 MD&A]\nSegment revenue: Hardware $4.2B, Services $1.1B.\n\nMargins expanded."
            "\n\n"
            "[Item 1A Risk Factors]\nSupply concentration in one region."
        )

    def test_no_truncation(self):
        from tenk.retriever.context import assemble_context

        long_doc = Document(path="Item 8", fragments=["x" * 50_000, "y" * 50_000])

        assert assemble_context([long_doc]).endswith("y" * 50_000)
        assert len(assemble_context([long_doc])) == len("[Item 8]\n") + 100_002

    def test_deterministic(self, documents):
        from tenk.retriever.context import assemble_context

        assert assemble_context(documents) == assemble_context(list(documents))

    def test_empty(self):
        from tenk.retriever.context import assemble_context

        assert assemble_context([]) == ""


class TestSources:
    def test_numbered_bold_sources(self, documents):
        from tenk.retriever.synthesizer import format_sources

        assert format_sources(documents) == "Sources:\n1. **Item 7 MD&A**\n2. **Item 1A Risk Factors**"

    def test_attach_sources_after_blank_line(self, documents):
        from tenk.retriever.synthesizer import attach_sources

        advice = attach_sources("Hardware led revenue.", documents[:1])

        assert advice == "Hardware led revenue.\n\nSources:\n1. **Item 7 MD&A**"


class TestAnswerSynthesizer:
    @pytest.fixture
    def mock_llm(self):
        llm = Mock()
        llm.is_available = True
        llm.generate = AsyncMock(return_value="Hardware contributed $4.2B.")
        return llm

    @pytest.mark.asyncio
    async def test_answer_uses_free_form_capability(self, mock_llm):
        from tenk.retriever.synthesizer import AnswerSynthesizer, ANSWER_PROMPT

        synthesizer = AnswerSynthesizer(mock_llm, model="gpt-4o-mini")
        text = await synthesizer.answer("Segments?", "[Item 7 MD&A]\nSegment revenue")

        assert text == "Hardware contributed $4.2B."
        prompt = mock_llm.generate.call_args.args[0]
        kwargs = mock_llm.generate.call_args.kwargs
        assert prompt == "Question: Segments?\n\nContext:\n[Item 7 MD&A]\nSegment revenue"
        assert kwargs["system"] == ANSWER_PROMPT
        assert kwargs["model"] == "gpt-4o-mini"

    def test_answer_prompt_rules(self):
        from tenk.retriever.synthesizer import ANSWER_PROMPT

        assert "Use ONLY the provided Context" in ANSWER_PROMPT
        assert "4–7 short paragraphs" in ANSWER_PROMPT
        assert "Do NOT include a Sources section" in ANSWER_PROMPT

    @pytest.mark.asyncio
    async def test_completion_error_propagates(self, mock_llm):
        from tenk.retriever.synthesizer import AnswerSynthesizer

        mock_llm.generate.side_effect = ConnectionError("provider down")
        synthesizer = AnswerSynthesizer(mock_llm, model="gpt-4o-mini")

        with pytest.raises(ConnectionError):
            await synthesizer.answer("q", "ctx")
