"""
Tool Registry.

Dispatch table from tool name to handler, built once at startup and
validated against the catalog: every declared tool has exactly one
handler and every handler has a declared tool.

Executing a call always yields exactly one ToolResult and exactly one
terminal thinking step. Unknown tools, handler exceptions and timeouts
become ``{"error": ...}`` payloads; nothing is raised past the registry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from ..domain.entities import AgentRole, ToolCall, ToolDefinition, ToolResult
from ..domain.exceptions import (
    ConfigurationError,
    ToolExecutionError,
    ToolTimeoutError,
    UnknownToolError,
)
from ..domain.ports import IKnowledgeBase, IPlatformData
from ..search.engine import SemanticSearchEngine
from .analytics import AnalyticsToolHandlers
from .catalog import TOOL_CATALOG
from .handlers import (
    AuditToolHandlers,
    ExecutiveToolHandlers,
    FileToolHandlers,
    KnowledgeToolHandlers,
    PersonalityToolHandlers,
    ToolHandler,
)

if TYPE_CHECKING:
    from ..orchestrator.thinking import ThinkingTracker

logger = logging.getLogger(__name__)


def summarize_result(payload: Any) -> str:
    """Short human-readable summary of a tool payload for the trace."""
    if isinstance(payload, list):
        return f"{len(payload)} عنصر"
    if not isinstance(payload, dict):
        return "تم بنجاح"
    if payload.get("error"):
        return f"خطأ: {payload['error']}"
    if payload.get("total") is not None:
        return f"تم العثور على {payload['total']} نتيجة"
    if payload.get("totalLeaks") is not None:
        return f"{payload['totalLeaks']} تسريب"
    if payload.get("stats"):
        return "تم جلب الإحصائيات"
    if payload.get("leak"):
        leak = payload["leak"]
        return f"تسريب: {leak.get('title') or leak.get('leakId')}"
    if payload.get("entries") is not None:
        return f"{len(payload['entries'])} مدخل"
    if payload.get("title"):
        return str(payload["title"])
    return "تم بنجاح"


class ToolRegistry:
    """Closed registry of callable tools.

    Usage:
        registry = ToolRegistry(TOOL_CATALOG, handlers)
        result = await registry.execute(tool_call, tracker)

    Raises:
        ConfigurationError: At construction, if the catalog and handlers
            disagree or a tool name is declared twice
    """

    def __init__(
        self,
        definitions: Iterable[ToolDefinition],
        handlers: Mapping[str, ToolHandler],
        timeout_seconds: Optional[float] = None,
    ):
        self._definitions: dict[str, ToolDefinition] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                raise ConfigurationError(
                    f"Duplicate tool name in catalog: {definition.name}",
                    details={"tool_name": definition.name},
                )
            self._definitions[definition.name] = definition

        missing = sorted(set(self._definitions) - set(handlers))
        extra = sorted(set(handlers) - set(self._definitions))
        if missing or extra:
            raise ConfigurationError(
                "Tool catalog and handlers do not match",
                details={"missing_handlers": missing, "undeclared_handlers": extra},
            )

        self._handlers = dict(handlers)
        self.timeout_seconds = timeout_seconds
        logger.info(f"Tool registry loaded {len(self._definitions)} tools")

    @property
    def definitions(self) -> list[ToolDefinition]:
        """Tool definitions in catalog order."""
        return list(self._definitions.values())

    @property
    def names(self) -> list[str]:
        return list(self._definitions)

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._definitions.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    async def execute(self, call: ToolCall, tracker: "ThinkingTracker") -> ToolResult:
        """Execute one tool call.

        Args:
            call: The tool call requested by the model
            tracker: Thinking trace for the current turn

        Returns:
            The handler payload, or an error payload
        """
        definition = self._definitions.get(call.name)
        agent = definition.agent if definition else AgentRole.GOVERNOR
        label = (definition.label if definition else "") or call.name

        step_id = tracker.start(agent, call.name, label)
        started = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        if definition is None:
            error = UnknownToolError(call.name)
            logger.warning(f"Model requested unknown tool: {call.name}")
            tracker.fail(step_id, f"خطأ: {error.message}")
            return ToolResult(call.id, call.name, {"error": error.message}, elapsed_ms())

        logger.info(f"Executing tool: {call.name}")
        try:
            pending = self._handlers[call.name](dict(call.arguments or {}))
            if self.timeout_seconds:
                payload = await asyncio.wait_for(pending, timeout=self.timeout_seconds)
            else:
                payload = await pending
        except asyncio.TimeoutError:
            error = ToolTimeoutError(call.name, self.timeout_seconds)
            logger.warning(error.message)
            tracker.fail(step_id, f"خطأ: {error.message}")
            return ToolResult(call.id, call.name, {"error": error.message}, elapsed_ms())
        except Exception as e:
            error = e if isinstance(e, ToolExecutionError) else ToolExecutionError(
                call.name, str(e), cause=e
            )
            logger.error(f"Tool execution failed ({call.name}): {error.message}")
            tracker.fail(step_id, f"خطأ: {error.message}")
            return ToolResult(
                call.id,
                call.name,
                {"error": f"خطأ في تنفيذ الأداة {call.name}: {error.message}"},
                elapsed_ms(),
            )

        latency = elapsed_ms()
        tracker.complete(step_id, summarize_result(payload))
        logger.debug(f"Tool {call.name} completed in {latency}ms")
        return ToolResult(call.id, call.name, payload, latency)


def build_tool_handlers(
    platform: IPlatformData,
    knowledge_base: Optional[IKnowledgeBase] = None,
    search_engine: Optional[SemanticSearchEngine] = None,
) -> dict[str, ToolHandler]:
    """Collect handlers from every sub-agent into one dispatch table."""
    groups = [
        ExecutiveToolHandlers(platform).handlers(),
        AnalyticsToolHandlers(platform).handlers(),
        KnowledgeToolHandlers(knowledge_base, search_engine).handlers(),
        AuditToolHandlers(platform).handlers(),
        FileToolHandlers(platform).handlers(),
        PersonalityToolHandlers(platform).handlers(),
    ]
    handlers: dict[str, ToolHandler] = {}
    for group in groups:
        overlap = set(handlers) & set(group)
        if overlap:
            raise ConfigurationError(
                f"Tool handled twice: {', '.join(sorted(overlap))}",
                details={"tools": sorted(overlap)},
            )
        handlers.update(group)
    return handlers


def build_tool_registry(
    platform: IPlatformData,
    knowledge_base: Optional[IKnowledgeBase] = None,
    search_engine: Optional[SemanticSearchEngine] = None,
    timeout_seconds: Optional[float] = None,
) -> ToolRegistry:
    """Build the registry for the full tool catalog."""
    return ToolRegistry(
        TOOL_CATALOG,
        build_tool_handlers(platform, knowledge_base, search_engine),
        timeout_seconds=timeout_seconds,
    )
