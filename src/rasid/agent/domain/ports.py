"""
Port interfaces (abstract base classes) for the agent module.

These define the contracts that adapters must implement.
Following the Ports & Adapters (Hexagonal) architecture pattern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .entities import (
        KnowledgeCategory,
        KnowledgeEntry,
        Message,
        ModelResponse,
        ToolDefinition,
    )


# ============================================
# LLM Provider Interface
# ============================================


class ILLMProvider(ABC):
    """Interface for chat model providers (GPT, Claude).

    Implementations handle the specifics of each API while providing
    a consistent request/response interface to the orchestrator.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier (e.g., 'gpt-4o')."""
        pass

    @property
    @abstractmethod
    def supports_tools(self) -> bool:
        """Return True if this provider supports tool/function calling."""
        pass

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelResponse:
        """Generate one response to the transcript.

        Args:
            messages: Transcript, starting with the system message
            tools: Tools the model may request
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            The model response (text and/or tool calls)

        Raises:
            ModelInvocationError: On network or provider failure
        """
        pass


# ============================================
# Embedding Provider Interface
# ============================================


class IEmbeddingProvider(ABC):
    """Interface for embedding providers.

    Separate from ILLMProvider so a different vendor can serve
    embeddings than chat.
    """

    @property
    @abstractmethod
    def embedding_model_name(self) -> str:
        """Return the embedding model name."""
        pass

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate an embedding for the given text.

        Raises:
            EmbeddingProviderError: On network or provider failure
        """
        pass

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts, in input order.

        Raises:
            EmbeddingProviderError: On network or provider failure
        """
        pass


# ============================================
# Knowledge Base Interface
# ============================================


class IKnowledgeBase(ABC):
    """Read-only access to published knowledge base entries."""

    @abstractmethod
    async def list_published_entries(
        self,
        category: Optional[KnowledgeCategory] = None,
    ) -> list[KnowledgeEntry]:
        """Return published entries, with embeddings where available."""
        pass


# ============================================
# Platform Data Interface
# ============================================


class IPlatformData(ABC):
    """Read-mostly accessors over the monitoring platform's data.

    Every method returns plain structured data (dicts and lists of
    dicts). Tool handlers reshape the output for the model.
    """

    # Leaks -------------------------------------------------------------

    @abstractmethod
    async def get_leaks(
        self,
        severity: Optional[str] = None,
        status: Optional[str] = None,
        source: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Leaks matching the filters, newest first."""
        pass

    @abstractmethod
    async def get_leak_by_id(self, leak_id: str) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_dashboard_stats(self) -> Optional[dict[str, Any]]:
        """Headline counters: totalLeaks, criticalAlerts, totalRecords,
        activeMonitors, piiDetected."""
        pass

    # Monitoring --------------------------------------------------------

    @abstractmethod
    async def get_channels(self, platform: Optional[str] = None) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_monitoring_jobs(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_dark_web_listings(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_paste_entries(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_threat_rules(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_osint_queries(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_threat_map_data(self) -> dict[str, Any]:
        pass

    @abstractmethod
    async def get_knowledge_graph_data(self) -> dict[str, Any]:
        pass

    # Alerts ------------------------------------------------------------

    @abstractmethod
    async def get_alert_history(self, limit: int = 100) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_alert_rules(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_alert_contacts(self) -> list[dict[str, Any]]:
        pass

    # Sellers and evidence ----------------------------------------------

    @abstractmethod
    async def get_seller_profiles(self, risk_level: Optional[str] = None) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_seller_by_id(self, seller_id: str) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_evidence_chain(self, leak_id: Optional[str] = None) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_evidence_stats(self) -> dict[str, Any]:
        pass

    # Feedback ----------------------------------------------------------

    @abstractmethod
    async def get_feedback_entries(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_feedback_stats(self) -> dict[str, Any]:
        pass

    # Reports and documents ---------------------------------------------

    @abstractmethod
    async def get_reports(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_scheduled_reports(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_report_audit_entries(self, limit: int = 50) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_incident_documents(self) -> list[dict[str, Any]]:
        pass

    # Audit, users and system -------------------------------------------

    @abstractmethod
    async def get_audit_logs(
        self,
        category: Optional[str] = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Audit log records, newest first."""
        pass

    @abstractmethod
    async def get_platform_users(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_retention_policies(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_api_keys(self) -> list[dict[str, Any]]:
        pass

    # Personality -------------------------------------------------------

    @abstractmethod
    async def get_personality_scenarios(
        self, scenario_type: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Active greeting and leader-respect scenarios, oldest first.

        Each record has scenarioType, triggerKeyword and responseTemplate;
        templates may contain a {userName} placeholder.
        """
        pass

    @abstractmethod
    async def get_user_visit_count(self, user_id: str) -> int:
        """Number of recorded sessions for the user."""
        pass


# ============================================
# Audit Sink Interface
# ============================================


class IAuditSink(ABC):
    """Write-only sink for audit records."""

    @abstractmethod
    async def log(
        self,
        user_id: Optional[str],
        action: str,
        details: str,
        category: str = "system",
        user_name: Optional[str] = None,
    ) -> None:
        """Record one audit entry."""
        pass
