"""
Agent Orchestrator.

The governor agent. For one conversation turn it:
- Builds the system prompt from live stats and knowledge context
- Drives the bounded model / tool-execution loop
- Records every step in the thinking trace
- Returns the final answer, the tools used and the trace

The turn always completes with a response. Model failures and timeouts
end in a fixed apology and a terminal error step.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..domain.entities import (
    AgentResponse,
    AgentRole,
    ConversationTurn,
    Message,
    MessageRole,
    ModelResponse,
    StepStatus,
    ToolCall,
)
from ..domain.ports import IAuditSink, IKnowledgeBase, ILLMProvider, IPlatformData
from ..search.text import build_knowledge_context
from ..tools.registry import ToolRegistry
from .prompt_builder import PromptBuilder
from .thinking import ThinkingTracker
from .tool_executor import DEFAULT_MAX_RESULT_CHARS, ToolExecutor

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "عذراً، لم أتمكن من معالجة طلبك. حاول مرة أخرى."
ERROR_RESPONSE = "عذراً، حدث خطأ أثناء معالجة طلبك. يرجى المحاولة مرة أخرى."

INTENT_PREVIEW_CHARS = 80
AUDIT_QUERY_CHARS = 100


@dataclass
class AgentConfig:
    """Configuration for the agent orchestrator.

    Attributes:
        max_iterations: Tool round-trips allowed per turn before the loop
            stops and the last model content becomes the answer
        history_limit: Most recent history messages sent to the model
        tool_result_max_chars: Cap on each serialized tool result
        turn_timeout_seconds: Wall-clock budget for the whole turn (None disables)
        temperature: LLM temperature
        max_tokens: Maximum tokens per response
    """

    max_iterations: int = 8
    history_limit: int = 18
    tool_result_max_chars: int = DEFAULT_MAX_RESULT_CHARS
    turn_timeout_seconds: Optional[float] = 120.0
    temperature: float = 0.3
    max_tokens: Optional[int] = None


class AgentOrchestrator:
    """Main agent orchestration logic.

    Manages the conversation loop:
    1. Build the system prompt
    2. Call the LLM with the transcript and tools
    3. Execute requested tool calls in order
    4. Loop back to the LLM with the results
    5. Stop on a plain answer or when the iteration budget runs out

    Usage:
        orchestrator = AgentOrchestrator(
            llm_provider=openai_provider,
            tool_registry=registry,
            platform=platform_data,
            knowledge_base=knowledge_base,
            audit_sink=audit_sink,
        )

        result = await orchestrator.chat(turn)
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        tool_registry: ToolRegistry,
        platform: IPlatformData,
        knowledge_base: Optional[IKnowledgeBase] = None,
        audit_sink: Optional[IAuditSink] = None,
        config: Optional[AgentConfig] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        """Initialize the orchestrator.

        Args:
            llm_provider: Chat model provider
            tool_registry: Registry of callable tools
            platform: Platform data collaborator (for prompt stats)
            knowledge_base: Knowledge base for prompt context
            audit_sink: Receives one record per turn
            config: Orchestrator configuration
            prompt_builder: System prompt builder
        """
        self.llm = llm_provider
        self.tools = tool_registry
        self.platform = platform
        self.knowledge_base = knowledge_base
        self.audit_sink = audit_sink
        self.config = config or AgentConfig()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.tool_executor = ToolExecutor(tool_registry, self.config.tool_result_max_chars)
        self._background_tasks: set[asyncio.Task] = set()

    async def chat(self, turn: ConversationTurn) -> AgentResponse:
        """Run one conversation turn.

        Args:
            turn: The user's request with history and identity

        Returns:
            Final answer, tools used (duplicates kept) and the thinking trace
        """
        tracker = ThinkingTracker()
        tools_used: list[str] = []

        preview = turn.user_message[:INTENT_PREVIEW_CHARS]
        if len(turn.user_message) > INTENT_PREVIEW_CHARS:
            preview += "..."
        tracker.record(
            AgentRole.GOVERNOR,
            "analyze_intent",
            "تحليل نية المستخدم وتحديد الوكيل المختص",
            StepStatus.COMPLETED,
            f'استلام الطلب: "{preview}"',
        )

        try:
            loop = self._run_loop(turn, tracker, tools_used)
            timeout = self.config.turn_timeout_seconds
            if timeout:
                content = await asyncio.wait_for(loop, timeout=timeout)
            else:
                content = await loop

        except asyncio.TimeoutError:
            message = f"تجاوز الطلب المهلة المحددة ({self.config.turn_timeout_seconds} ثانية)"
            logger.warning(f"Turn timed out after {self.config.turn_timeout_seconds}s")
            tracker.fail_open_steps("أُلغيت بسبب انتهاء المهلة")
            tracker.record(
                AgentRole.GOVERNOR,
                "turn_timeout",
                "انتهاء المهلة الزمنية",
                StepStatus.ERROR,
                message,
            )
            self._audit(turn, "smart_rasid.error", f"Error: turn timeout after {self.config.turn_timeout_seconds}s")
            return AgentResponse(ERROR_RESPONSE, tools_used, tracker.steps)

        except Exception as e:
            logger.exception(f"Chat error: {e}")
            tracker.fail_open_steps(str(e))
            tracker.record(
                AgentRole.GOVERNOR,
                "error_recovery",
                "معالجة خطأ",
                StepStatus.ERROR,
                str(e),
            )
            self._audit(turn, "smart_rasid.error", f"Error: {e}")
            return AgentResponse(ERROR_RESPONSE, tools_used, tracker.steps)

        tracker.record(
            AgentRole.GOVERNOR,
            "synthesize",
            "تجميع النتائج وصياغة الرد النهائي",
            StepStatus.COMPLETED,
            f"تم استخدام {len(tools_used)} أداة لصياغة الرد",
        )
        steps = tracker.steps

        self._audit(
            turn,
            "smart_rasid.chat",
            f"Query: {turn.user_message[:AUDIT_QUERY_CHARS]} | "
            f"Tools: {', '.join(tools_used) or 'none'} | "
            f"Steps: {len(steps)} | Response length: {len(content)}",
        )
        return AgentResponse(content, tools_used, steps)

    async def _run_loop(
        self,
        turn: ConversationTurn,
        tracker: ThinkingTracker,
        tools_used: list[str],
    ) -> str:
        messages = await self._build_messages(turn)

        response = await self._invoke(messages)
        remaining = self.config.max_iterations

        while remaining > 0 and response.has_tool_calls:
            iteration = self.config.max_iterations - remaining + 1
            tool_calls = self._normalize_tool_calls(response.tool_calls, iteration)
            messages.append(
                Message(
                    role=MessageRole.ASSISTANT,
                    content=response.content or "",
                    tool_calls=tool_calls,
                )
            )

            tools_used.extend(call.name for call in tool_calls)
            results = await self.tool_executor.execute_tool_calls(tool_calls, tracker)
            messages.extend(self.tool_executor.to_tool_message(r) for r in results)

            response = await self._invoke(messages)
            remaining -= 1

        if response.has_tool_calls:
            logger.warning(
                f"Iteration cap of {self.config.max_iterations} reached with tool calls pending"
            )

        content = response.content
        if not isinstance(content, str) or not content.strip():
            return FALLBACK_RESPONSE
        return content

    async def _invoke(self, messages: list[Message]) -> ModelResponse:
        return await self.llm.chat(
            messages,
            tools=self.tools.definitions,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

    @staticmethod
    def _normalize_tool_calls(tool_calls: list[ToolCall], iteration: int) -> list[ToolCall]:
        """Give every call a unique id within the response."""
        seen: set[str] = set()
        normalized = []
        for idx, call in enumerate(tool_calls):
            call_id = call.id
            if not call_id or call_id in seen:
                call_id = f"call_{iteration}_{idx}"
            seen.add(call_id)
            normalized.append(ToolCall(name=call.name, arguments=call.arguments or {}, id=call_id))
        return normalized

    async def _build_messages(self, turn: ConversationTurn) -> list[Message]:
        stats = None
        try:
            stats = await self.platform.get_dashboard_stats()
        except Exception as e:
            logger.warning(f"Dashboard stats unavailable for prompt: {e}")

        system_prompt = self.prompt_builder.build(
            user_name=turn.user_name,
            stats=stats,
            knowledge_context=await self._get_knowledge_context(),
        )

        limit = self.config.history_limit
        history = list(turn.history)[-limit:] if limit > 0 else []

        messages = [Message(role=MessageRole.SYSTEM, content=system_prompt)]
        messages.extend(Message(role=h.role, content=h.content) for h in history)
        messages.append(Message(role=MessageRole.USER, content=turn.user_message))
        return messages

    async def _get_knowledge_context(self) -> str:
        if self.knowledge_base is None:
            return ""
        try:
            entries = await self.knowledge_base.list_published_entries()
        except Exception as e:
            logger.warning(f"Knowledge context unavailable: {e}")
            return ""
        return build_knowledge_context(entries)

    def _audit(self, turn: ConversationTurn, action: str, details: str) -> None:
        """Schedule an audit record without waiting for it."""
        if self.audit_sink is None:
            return
        task = asyncio.create_task(self._write_audit(turn, action, details))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _write_audit(self, turn: ConversationTurn, action: str, details: str) -> None:
        try:
            await self.audit_sink.log(
                turn.user_id,
                action,
                details,
                category="system",
                user_name=turn.user_name,
            )
        except Exception as e:
            logger.warning(f"Failed to write audit record {action}: {e}")

    async def flush(self) -> None:
        """Wait for pending audit writes (used at shutdown and in tests)."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
