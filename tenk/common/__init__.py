"""
Tenk Common Module

Shared infrastructure for the advisor pipeline and server.
"""

from .config import ConfigurationError, TenkConfig, load_config
from .llm_client import LLMClient
from .llm_utils import parse_llm_json

__all__ = [
    "ConfigurationError",
    "TenkConfig",
    "load_config",
    "LLMClient",
    "parse_llm_json",
]
