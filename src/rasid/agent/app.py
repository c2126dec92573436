"""FastAPI application for the Smart Rasid assistant.

This is the main entry point for the assistant API server:

    uvicorn src.rasid.agent.app:app
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .adapters import (
    InMemoryAuditSink,
    InMemoryKnowledgeBase,
    InMemoryPlatformData,
    PostgresAuditSink,
    PostgresKnowledgeBase,
    PostgresPlatformData,
)
from .api import create_agent_dependencies
from .api import router as agent_router
from .config import AgentSettings
from .orchestrator import AgentConfig, AgentOrchestrator
from .providers import AnthropicProvider, BaseLLMProvider, LLMProviderConfig, OpenAIProvider
from .search import EmbeddingCache, EmbeddingClient, SemanticSearchEngine
from .tools import build_tool_registry

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Resources owned by the lifespan
_db_pool: Optional[asyncpg.Pool] = None
_providers: list[BaseLLMProvider] = []
_orchestrator: Optional[AgentOrchestrator] = None


def _init_chat_provider(settings: AgentSettings) -> Optional[BaseLLMProvider]:
    """Pick the chat provider: Anthropic when configured, else OpenAI."""
    if settings.anthropic_api_key:
        config = LLMProviderConfig(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            temperature=settings.temperature,
        )
        logger.info(f"Using Anthropic provider with model: {config.model}")
        return AnthropicProvider(config)

    if settings.openai_api_key:
        config = LLMProviderConfig(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            embedding_model=settings.openai_embedding_model,
            base_url=settings.openai_base_url,
            temperature=settings.temperature,
        )
        logger.info(f"Using OpenAI provider with model: {config.model}")
        return OpenAIProvider(config)

    logger.warning("No LLM API keys configured (ANTHROPIC_API_KEY or OPENAI_API_KEY)")
    return None


def _init_embedding_client(
    settings: AgentSettings,
    chat_provider: Optional[BaseLLMProvider],
) -> Optional[EmbeddingClient]:
    """Embeddings always come from OpenAI, even when Anthropic handles chat."""
    if isinstance(chat_provider, OpenAIProvider):
        embedding_provider = chat_provider
    elif settings.openai_api_key:
        embedding_provider = OpenAIProvider(
            LLMProviderConfig(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                embedding_model=settings.openai_embedding_model,
                base_url=settings.openai_base_url,
            )
        )
        _providers.append(embedding_provider)
    else:
        logger.warning("OPENAI_API_KEY not set - knowledge search will use platform guides only")
        return None

    cache = EmbeddingCache(
        max_entries=settings.embedding_cache_max_entries,
        ttl_seconds=settings.embedding_cache_ttl_seconds,
    )
    logger.info(f"Embedding provider configured: {embedding_provider.embedding_model_name}")
    return EmbeddingClient(
        embedding_provider,
        cache=cache,
        max_input_chars=settings.embedding_max_input_chars,
        cache_key_chars=settings.embedding_cache_key_chars,
    )


async def _init_adapters(settings: AgentSettings):
    """Connect to PostgreSQL when configured, else serve empty in-memory data."""
    global _db_pool

    if not settings.database_url:
        logger.warning("DATABASE_URL not configured - using in-memory platform data")
        return InMemoryPlatformData(), InMemoryKnowledgeBase(), InMemoryAuditSink()

    _db_pool = await asyncpg.create_pool(
        settings.database_url,
        min_size=settings.db_pool_min,
        max_size=settings.db_pool_max,
    )
    logger.info("Database pool initialized")
    return (
        PostgresPlatformData(_db_pool),
        PostgresKnowledgeBase(_db_pool),
        PostgresAuditSink(_db_pool),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Read settings, connect the database, build providers and the orchestrator
    - Shutdown: Flush audit writes, close providers and the database pool
    """
    global _db_pool, _orchestrator

    logger.info("Starting Smart Rasid API...")

    settings = AgentSettings.from_env()
    platform, knowledge_base, audit_sink = await _init_adapters(settings)

    chat_provider = _init_chat_provider(settings)
    if chat_provider:
        _providers.append(chat_provider)

    embedding_client = _init_embedding_client(settings, chat_provider)
    search_engine = None
    if embedding_client:
        search_engine = SemanticSearchEngine(
            embedding_client,
            default_top_k=settings.search_top_k,
            default_threshold=settings.search_threshold,
            min_vector_results=settings.search_min_vector_results,
        )

    # Raises ConfigurationError when the catalog and handlers disagree
    registry = build_tool_registry(
        platform,
        knowledge_base=knowledge_base,
        search_engine=search_engine,
        timeout_seconds=settings.tool_timeout_seconds,
    )
    logger.info(f"Tool registry ready with {len(registry)} tools")

    if chat_provider:
        _orchestrator = AgentOrchestrator(
            llm_provider=chat_provider,
            tool_registry=registry,
            platform=platform,
            knowledge_base=knowledge_base,
            audit_sink=audit_sink,
            config=AgentConfig(
                max_iterations=settings.max_iterations,
                history_limit=settings.history_limit,
                tool_result_max_chars=settings.tool_result_max_chars,
                turn_timeout_seconds=settings.turn_timeout_seconds,
                temperature=settings.temperature,
            ),
        )
        logger.info("Agent orchestrator initialized")
    else:
        logger.warning("No LLM provider could be initialized - assistant will be unavailable")

    create_agent_dependencies(_orchestrator, embedding_client)

    yield

    # Shutdown (reverse order of initialization)
    logger.info("Shutting down Smart Rasid API...")

    if _orchestrator:
        await _orchestrator.flush()
    create_agent_dependencies(None, None)
    _orchestrator = None

    for provider in _providers:
        try:
            await provider.close()
        except Exception as e:
            logger.warning(f"Error closing provider {provider.model_name}: {e}")
    _providers.clear()

    if _db_pool:
        await _db_pool.close()
        _db_pool = None
        logger.info("Database pool closed")


# Create FastAPI application
app = FastAPI(
    title="Smart Rasid Assistant API",
    description="""
    AI assistant for the Rasid data-leak monitoring platform.

    ## Features

    - **Chat**: Ask questions in Arabic or English; the assistant queries platform data through tools
    - **Thinking trace**: Every answer carries the steps taken and the sub-agent behind each
    - **Knowledge search**: Semantic search over the knowledge base with keyword fallback
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-User-Id", "X-User-Name"],
)

app.include_router(agent_router)


@app.get("/health")
async def health():
    """Global health check."""
    return {"status": "healthy", "assistant_enabled": _orchestrator is not None}
