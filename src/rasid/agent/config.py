"""
Environment-driven settings for the assistant.

Values are read with os.getenv. The application entry point calls
load_dotenv() first so a local .env file is honoured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from .domain.exceptions import ConfigurationError

T = TypeVar("T")


def _parse(name: str, default: Optional[T], cast: Callable[[str], T]) -> Optional[T]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {raw!r}",
            details={"variable": name, "value": raw},
            cause=e,
        ) from e


def _positive(name: str, value: Optional[float]) -> None:
    if value is not None and value <= 0:
        raise ConfigurationError(
            f"{name} must be positive, got {value}",
            details={"variable": name, "value": value},
        )


@dataclass
class AgentSettings:
    """Assistant settings.

    Attributes:
        openai_api_key: Key for chat (when Anthropic is not configured) and embeddings
        anthropic_api_key: When set, Anthropic handles chat
        database_url: asyncpg DSN; without it the in-memory adapters are used
        tool_timeout_seconds: Per-handler budget (None disables)
        turn_timeout_seconds: Whole-turn budget (None disables)
        embedding_cache_max_entries: None leaves the cache unbounded
        embedding_cache_ttl_seconds: None keeps cached vectors until evicted
    """

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_embedding_model: str = "text-embedding-ada-002"
    openai_base_url: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-5-20250929"

    database_url: Optional[str] = None
    db_pool_min: int = 2
    db_pool_max: int = 10

    max_iterations: int = 8
    history_limit: int = 18
    tool_result_max_chars: int = 8000
    turn_timeout_seconds: Optional[float] = 120.0
    tool_timeout_seconds: Optional[float] = 30.0
    temperature: float = 0.3

    search_top_k: int = 5
    search_threshold: float = 0.65
    search_min_vector_results: int = 2
    embedding_cache_max_entries: Optional[int] = 2048
    embedding_cache_ttl_seconds: Optional[float] = None
    embedding_cache_key_chars: int = 200
    embedding_max_input_chars: int = 30000

    @property
    def uses_anthropic(self) -> bool:
        return bool(self.anthropic_api_key)

    @classmethod
    def from_env(cls) -> "AgentSettings":
        """Build settings from the process environment.

        Raises:
            ConfigurationError: If a numeric variable does not parse or is out of range
        """
        defaults = cls()
        settings = cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", defaults.openai_model),
            openai_embedding_model=os.getenv(
                "OPENAI_EMBEDDING_MODEL", defaults.openai_embedding_model
            ),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            anthropic_model=os.getenv("ANTHROPIC_MODEL", defaults.anthropic_model),
            database_url=os.getenv("DATABASE_URL") or None,
            db_pool_min=_parse("DB_POOL_MIN", defaults.db_pool_min, int),
            db_pool_max=_parse("DB_POOL_MAX", defaults.db_pool_max, int),
            max_iterations=_parse("AGENT_MAX_ITERATIONS", defaults.max_iterations, int),
            history_limit=_parse("AGENT_HISTORY_LIMIT", defaults.history_limit, int),
            tool_result_max_chars=_parse(
                "AGENT_TOOL_RESULT_MAX_CHARS", defaults.tool_result_max_chars, int
            ),
            turn_timeout_seconds=_parse(
                "AGENT_TURN_TIMEOUT_SECONDS", defaults.turn_timeout_seconds, float
            ),
            tool_timeout_seconds=_parse(
                "AGENT_TOOL_TIMEOUT_SECONDS", defaults.tool_timeout_seconds, float
            ),
            temperature=_parse("AGENT_TEMPERATURE", defaults.temperature, float),
            search_top_k=_parse("SEARCH_TOP_K", defaults.search_top_k, int),
            search_threshold=_parse("SEARCH_THRESHOLD", defaults.search_threshold, float),
            search_min_vector_results=_parse(
                "SEARCH_MIN_VECTOR_RESULTS", defaults.search_min_vector_results, int
            ),
            # 0 lifts the capacity limit
            embedding_cache_max_entries=_parse(
                "EMBEDDING_CACHE_MAX_ENTRIES", defaults.embedding_cache_max_entries, int
            ) or None,
            embedding_cache_ttl_seconds=_parse("EMBEDDING_CACHE_TTL_SECONDS", None, float),
            embedding_cache_key_chars=_parse(
                "EMBEDDING_CACHE_KEY_CHARS", defaults.embedding_cache_key_chars, int
            ),
            embedding_max_input_chars=_parse(
                "EMBEDDING_MAX_INPUT_CHARS", defaults.embedding_max_input_chars, int
            ),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Check ranges that os.getenv parsing cannot."""
        for name, value in (
            ("DB_POOL_MIN", self.db_pool_min),
            ("DB_POOL_MAX", self.db_pool_max),
            ("AGENT_TOOL_RESULT_MAX_CHARS", self.tool_result_max_chars),
            ("AGENT_TURN_TIMEOUT_SECONDS", self.turn_timeout_seconds),
            ("AGENT_TOOL_TIMEOUT_SECONDS", self.tool_timeout_seconds),
            ("SEARCH_TOP_K", self.search_top_k),
            ("EMBEDDING_CACHE_MAX_ENTRIES", self.embedding_cache_max_entries),
            ("EMBEDDING_CACHE_TTL_SECONDS", self.embedding_cache_ttl_seconds),
            ("EMBEDDING_CACHE_KEY_CHARS", self.embedding_cache_key_chars),
            ("EMBEDDING_MAX_INPUT_CHARS", self.embedding_max_input_chars),
        ):
            _positive(name, value)

        if self.max_iterations < 0:
            raise ConfigurationError("AGENT_MAX_ITERATIONS must not be negative")
        if self.history_limit < 0:
            raise ConfigurationError("AGENT_HISTORY_LIMIT must not be negative")
        if self.search_min_vector_results < 0:
            raise ConfigurationError("SEARCH_MIN_VECTOR_RESULTS must not be negative")
        if not 0.0 <= self.search_threshold <= 1.0:
            raise ConfigurationError(
                f"SEARCH_THRESHOLD must be between 0 and 1, got {self.search_threshold}"
            )
        if self.db_pool_min > self.db_pool_max:
            raise ConfigurationError("DB_POOL_MIN must not exceed DB_POOL_MAX")
