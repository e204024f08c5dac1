"""
Tenk Advisor

Answers natural-language questions about a fixed corpus of 10-K filing
sections. Relevant sections are prefiltered lexically, chosen by a language
model, and handed in full to a second model call that writes the answer.

Philosophy:
- The corpus is static: loaded once per process, never rebuilt
- The model never writes citations; sources are appended by the pipeline
- Malformed model output degrades the selection, never the request

Usage:
    from tenk.common import load_config, LLMClient
    from tenk.retriever import DocumentIndex, AdvisorPipeline
"""

__version__ = "0.1.0"
