"""Fakes and sample data shared by the assistant tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from src.rasid.agent.adapters.memory import PlatformDataset
from src.rasid.agent.domain.entities import (
    KnowledgeCategory,
    KnowledgeEntry,
    ModelResponse,
    ToolCall,
)
from src.rasid.agent.domain.ports import IEmbeddingProvider, ILLMProvider


class FakeLLMProvider(ILLMProvider):
    """Replays scripted responses; an Exception in the script is raised."""

    def __init__(self, script: list[Union[ModelResponse, Exception]]):
        self.script = list(script)
        self.calls: list[dict] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    @property
    def supports_tools(self) -> bool:
        return True

    async def chat(self, messages, tools=None, temperature=None, max_tokens=None):
        self.calls.append({"messages": list(messages), "tools": tools})
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        return step


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Returns fixed vectors per text and counts provider calls."""

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        default: Optional[list[float]] = None,
        error: Optional[Exception] = None,
    ):
        self.vectors = vectors or {}
        self.default = default or [0.0, 0.0, 1.0]
        self.error = error
        self.embed_calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    @property
    def embedding_model_name(self) -> str:
        return "fake-embedding"

    async def embed(self, text: str) -> list[float]:
        self.embed_calls.append(text)
        if self.error:
            raise self.error
        return list(self.vectors.get(text, self.default))

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        if self.error:
            raise self.error
        return [list(self.vectors.get(t, self.default)) for t in texts]


def text_response(content: str) -> ModelResponse:
    return ModelResponse(content=content)


def tool_response(*calls: ToolCall, content: str = "") -> ModelResponse:
    return ModelResponse(content=content, tool_calls=list(calls))


def make_entry(
    entry_id: str,
    title: str = "",
    content: str = "",
    category: KnowledgeCategory = KnowledgeCategory.ARTICLE,
    tags: Optional[tuple[str, ...]] = None,
    embedding: Optional[tuple[float, ...]] = None,
    title_ar: str = "",
    content_ar: str = "",
) -> KnowledgeEntry:
    return KnowledgeEntry(
        entry_id=entry_id,
        category=category,
        title=title,
        title_ar=title_ar,
        content=content,
        content_ar=content_ar,
        tags=tags,
        embedding=embedding,
    )


NOW = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)


def sample_dataset() -> PlatformDataset:
    """A small platform with three leaks and two sellers."""
    return PlatformDataset(
        leaks=[
            {
                "leakId": "LK-001",
                "title": "Bank customer records",
                "titleAr": "سجلات عملاء بنك",
                "severity": "critical",
                "source": "telegram",
                "sector": "Banking",
                "sectorAr": "مالي",
                "status": "new",
                "recordCount": 50000,
                "piiTypes": ["national_id", "iban", "phone"],
                "detectedAt": (NOW - timedelta(days=1)).isoformat(),
                "region": "Riyadh",
            },
            {
                "leakId": "LK-002",
                "title": "Clinic patient list sold by ShadowSeller",
                "severity": "high",
                "source": "darkweb",
                "sector": "Health",
                "status": "analyzing",
                "recordCount": 2000,
                "piiTypes": ["national_id", "medical_record"],
                "detectedAt": (NOW - timedelta(days=2)).isoformat(),
                "region": "Jeddah",
            },
            {
                "leakId": "LK-003",
                "title": "School emails",
                "severity": "low",
                "source": "paste",
                "sector": "Education",
                "status": "resolved",
                "recordCount": 300,
                "piiTypes": ["email"],
                "detectedAt": (NOW - timedelta(days=10)).isoformat(),
                "region": "Riyadh",
            },
        ],
        sellers=[
            {"sellerId": "S-1", "alias": "ShadowSeller", "riskLevel": "high", "platforms": ["xss", "breachforums"]},
            {"sellerId": "S-2", "alias": "DataKing", "riskLevel": "medium", "platforms": ["breachforums"]},
        ],
        evidence=[
            {"evidenceId": "EV-1", "leakId": "LK-001", "type": "screenshot", "hash": "abc"},
        ],
        channels=[
            {"name": "leaks-channel", "platform": "telegram", "status": "active"},
            {"name": "old-forum", "platform": "darkweb", "status": "paused"},
        ],
        audit_logs=[
            {"userName": "Sara", "action": "login", "category": "auth", "details": "ok", "createdAt": "2026-03-17T08:00:00+00:00"},
            {"userName": "Omar", "action": "report.export", "category": "report", "details": "PDF export", "createdAt": "2026-03-17T09:00:00+00:00"},
            {"userName": "Sara", "action": "leak.update", "category": "leak", "details": "status changed", "createdAt": "2026-03-17T10:00:00+00:00"},
        ],
        reports=[
            {"reportId": "R-1", "title": "Monthly summary", "titleAr": "الملخص الشهري"},
            {"reportId": "R-2", "title": "Incident digest"},
        ],
        personality_scenarios=[
            {"id": 1, "scenarioType": "greeting_first", "triggerKeyword": None, "responseTemplate": "أهلاً {userName}، مرحباً بك في منصة راصد", "isActive": True},
            {"id": 2, "scenarioType": "greeting_return", "triggerKeyword": None, "responseTemplate": "مرحباً بعودتك يا {userName}", "isActive": True},
            {"id": 3, "scenarioType": "leader_respect", "triggerKeyword": "ولي العهد", "responseTemplate": "حفظ الله سمو ولي العهد", "isActive": True},
            {"id": 4, "scenarioType": "leader_respect", "triggerKeyword": "الوزير", "responseTemplate": "معطل", "isActive": False},
        ],
        user_sessions=[{"userId": "7"}, {"userId": "7"}],
    )


