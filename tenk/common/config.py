"""
Configuration Management for Tenk Advisor

Loads configuration from ~/.tenk/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

logger = logging.getLogger("tenk.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".tenk"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOGS_DIR = CONFIG_DIR / "logs"

# Corpus location, resolved against the working directory at load time
DEFAULT_CORPUS_PATH = str(Path("public") / "database" / "Meta.csv")

# Environment variable that supplies each provider's API key
PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
}


class ConfigurationError(RuntimeError):
    """Raised when the process is missing configuration it cannot run without."""


@dataclass
class LLMConfig:
    """Completion provider configuration shared by the selection and answer steps"""
    provider: str = "openai"
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    selector_model: str = "gpt-4o-mini"
    answer_model: str = "gpt-4o-mini"
    temperature: float = 0.1
    timeout: float = 60.0

    def api_key(self) -> str:
        """API key for the active provider ("" when unset or unknown)"""
        provider = (self.provider or "").lower()
        return getattr(self, f"{provider}_api_key", "") if provider in PROVIDER_KEY_ENV else ""

    def api_key_env_var(self) -> str:
        """Name of the environment variable that supplies the active provider's key"""
        return PROVIDER_KEY_ENV.get((self.provider or "").lower(), "OPENAI_API_KEY")


@dataclass
class CorpusConfig:
    """Tabular source configuration"""
    csv_path: str = DEFAULT_CORPUS_PATH
    preview_chars: int = 500


@dataclass
class AdvisorConfig:
    """Request pipeline limits and server binding"""
    prefilter_top_k: int = 50
    max_selected: int = 4
    fallback_count: int = 3
    max_question_len: int = 1000
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class TenkConfig:
    """Main Tenk configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    corpus: CorpusConfig = field(default_factory=CorpusConfig)
    advisor: AdvisorConfig = field(default_factory=AdvisorConfig)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        openai_api_key=llm_data.get("openai_api_key", ""),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        google_api_key=llm_data.get("google_api_key", ""),
        selector_model=llm_data.get("selector_model", defaults.selector_model),
        answer_model=llm_data.get("answer_model", defaults.answer_model),
        temperature=float(llm_data.get("temperature", defaults.temperature)),
        timeout=float(llm_data.get("timeout", defaults.timeout)),
    )


def _parse_corpus_config(data: dict) -> CorpusConfig:
    """Parse corpus section from config dict"""
    corpus_data = data.get("corpus", {})
    return CorpusConfig(
        csv_path=corpus_data.get("csv_path", DEFAULT_CORPUS_PATH),
        preview_chars=int(corpus_data.get("preview_chars", 500)),
    )


def _parse_advisor_config(data: dict) -> AdvisorConfig:
    """Parse advisor section from config dict"""
    advisor_data = data.get("advisor", {})
    defaults = AdvisorConfig()
    return AdvisorConfig(
        prefilter_top_k=int(advisor_data.get("prefilter_top_k", defaults.prefilter_top_k)),
        max_selected=int(advisor_data.get("max_selected", defaults.max_selected)),
        fallback_count=int(advisor_data.get("fallback_count", defaults.fallback_count)),
        max_question_len=int(advisor_data.get("max_question_len", defaults.max_question_len)),
        host=advisor_data.get("host", defaults.host),
        port=int(advisor_data.get("port", defaults.port)),
    )


def load_config() -> TenkConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.tenk/config.json)
    3. Default values
    """
    config = TenkConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.corpus = _parse_corpus_config(data)
            config.advisor = _parse_advisor_config(data)
        except (json.JSONDecodeError, IOError, ValueError, AttributeError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # LLM env var overrides
    _env_llm_map = {
        "OPENAI_API_KEY": "openai_api_key",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "OPENAI_MODEL_SELECTOR": "selector_model",
        "OPENAI_MODEL_ANSWER": "answer_model",
        "TENK_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)

    if os.getenv("TENK_CORPUS_PATH"):
        config.corpus.csv_path = os.getenv("TENK_CORPUS_PATH")

    if os.getenv("TENK_HOST"):
        config.advisor.host = os.getenv("TENK_HOST")
    if os.getenv("TENK_PORT"):
        config.advisor.port = int(os.getenv("TENK_PORT"))

    return config


def ensure_directories() -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
