"""
Tests for the platform tool handlers.

Handlers run against the in-memory platform seeded with three leaks,
two sellers and a short audit log.
"""

import pytest

from src.rasid.agent.adapters.memory import InMemoryPlatformData
from src.rasid.agent.domain.exceptions import ToolExecutionError
from src.rasid.agent.search.cache import EmbeddingCache
from src.rasid.agent.search.embeddings import EmbeddingClient
from src.rasid.agent.search.engine import SemanticSearchEngine
from src.rasid.agent.tools.guides import PLATFORM_GUIDES, get_platform_guide
from src.rasid.agent.tools.handlers import (
    AuditToolHandlers,
    ExecutiveToolHandlers,
    FileToolHandlers,
    KnowledgeToolHandlers,
    PersonalityToolHandlers,
)
from tests.agent.fakes import FakeEmbeddingProvider


class TestExecutiveHandlers:
    """Tests for direct data lookups."""

    @pytest.fixture
    def handlers(self, platform):
        return ExecutiveToolHandlers(platform)

    @pytest.mark.asyncio
    async def test_query_leaks_filters_and_localizes(self, handlers):
        result = await handlers.query_leaks({"severity": "critical"})

        assert result["total"] == 1
        assert result["leaks"][0]["leakId"] == "LK-001"
        assert result["leaks"][0]["title"] == "سجلات عملاء بنك"
        assert result["leaks"][0]["sector"] == "مالي"

    @pytest.mark.asyncio
    async def test_query_leaks_all_means_no_filter(self, handlers):
        result = await handlers.query_leaks({"severity": "all", "source": "all"})
        assert result["total"] == 3

    @pytest.mark.asyncio
    async def test_query_leaks_limit(self, handlers):
        result = await handlers.query_leaks({"limit": 1})

        assert result["total"] == 3
        assert result["showing"] == 1
        # Newest first
        assert result["leaks"][0]["leakId"] == "LK-001"

    @pytest.mark.asyncio
    async def test_query_leaks_bad_limit_uses_default(self, handlers):
        result = await handlers.query_leaks({"limit": "many"})
        assert result["showing"] == 3

    @pytest.mark.asyncio
    async def test_query_leaks_text_search(self, handlers):
        result = await handlers.query_leaks({"search": "clinic"})
        assert [l["leakId"] for l in result["leaks"]] == ["LK-002"]

    @pytest.mark.asyncio
    async def test_leak_details(self, handlers):
        result = await handlers.get_leak_details({"leak_id": "LK-001"})

        assert result["leak"]["title"] == "سجلات عملاء بنك"
        assert result["evidenceCount"] == 1
        assert result["evidence"][0]["hash"] == "abc"
        assert result["leak"]["screenshotUrls"] == []

    @pytest.mark.asyncio
    async def test_leak_details_not_found(self, handlers):
        result = await handlers.get_leak_details({"leak_id": "LK-404"})
        assert "LK-404" in result["error"]

    @pytest.mark.asyncio
    async def test_leak_details_requires_id(self, handlers):
        with pytest.raises(ToolExecutionError, match="leak_id is required"):
            await handlers.get_leak_details({})

    @pytest.mark.asyncio
    async def test_dashboard_stats(self, handlers):
        result = await handlers.get_dashboard_stats({})

        assert result["totalLeaks"] == 3
        assert result["criticalAlerts"] == 1
        assert result["bySeverity"] == {"critical": 1, "high": 1, "low": 1}
        assert len(result["latestLeaks"]) == 3

    @pytest.mark.asyncio
    async def test_channels_by_platform(self, handlers):
        result = await handlers.get_channels_info({"platform": "telegram"})

        assert result["total"] == 1
        assert result["channels"][0]["name"] == "leaks-channel"

    @pytest.mark.asyncio
    async def test_seller_lookup(self, handlers):
        assert (await handlers.get_sellers_info({"seller_id": "S-1"}))["alias"] == "ShadowSeller"
        assert "error" in await handlers.get_sellers_info({"seller_id": "S-9"})

    @pytest.mark.asyncio
    async def test_sellers_by_risk(self, handlers):
        result = await handlers.get_sellers_info({"risk_level": "medium"})
        assert [s["sellerId"] for s in result["sellers"]] == ["S-2"]

    @pytest.mark.asyncio
    async def test_alert_info_sections(self, handlers):
        result = await handlers.get_alert_info({"info_type": "rules"})
        assert set(result) == {"rules"}

        result = await handlers.get_alert_info({})
        assert set(result) == {"history", "rules", "contacts"}

    @pytest.mark.asyncio
    async def test_system_health(self, handlers):
        result = await handlers.get_system_health({})

        assert result["status"] == "operational"
        assert result["database"] == "connected"
        assert result["apiKeysCount"] == 0

    @pytest.mark.asyncio
    async def test_empty_platform(self):
        handlers = ExecutiveToolHandlers(InMemoryPlatformData())

        assert (await handlers.query_leaks({}))["total"] == 0
        assert (await handlers.get_threat_map({}))["total"] == 0

    @pytest.mark.asyncio
    async def test_threat_map_groups_by_region(self, handlers):
        result = await handlers.get_threat_map({})

        regions = {r["region"]: r for r in result["regions"]}
        assert regions["Riyadh"]["leakCount"] == 2
        assert regions["Riyadh"]["criticalCount"] == 1
        assert regions["Jeddah"]["totalRecords"] == 2000


class TestAuditHandlers:
    """Tests for audit log analysis."""

    @pytest.fixture
    def handlers(self, platform):
        return AuditToolHandlers(platform)

    @pytest.mark.asyncio
    async def test_user_activity_by_name(self, handlers):
        result = await handlers.analyze_user_activity({"user_name": "sara"})

        assert result["totalActivities"] == 2
        summary = result["userSummary"]["Sara"]
        assert summary["count"] == 2
        assert summary["lastAction"]["action"] == "leak.update"
        assert set(summary["actions"]) == {"login", "leak.update"}

    @pytest.mark.asyncio
    async def test_user_activity_action_search(self, handlers):
        result = await handlers.analyze_user_activity({"action_search": "pdf"})

        assert result["totalActivities"] == 1
        assert result["recentActivities"][0]["userName"] == "Omar"

    @pytest.mark.asyncio
    async def test_audit_log_by_category(self, handlers):
        result = await handlers.get_audit_log({"category": "report"})

        assert result["total"] == 1
        assert result["logs"][0]["action"] == "report.export"

    @pytest.mark.asyncio
    async def test_audit_log_newest_first(self, handlers):
        result = await handlers.get_audit_log({})
        assert result["logs"][0]["action"] == "leak.update"


class TestKnowledgeHandlers:
    """Tests for knowledge search and platform guides."""

    @pytest.mark.asyncio
    async def test_platform_guide(self):
        handlers = KnowledgeToolHandlers()
        result = await handlers.get_platform_guide({"topic": "pdpl_compliance"})
        assert result["title"] == PLATFORM_GUIDES["pdpl_compliance"]["title"]

    @pytest.mark.asyncio
    async def test_platform_guide_requires_topic(self):
        with pytest.raises(ToolExecutionError):
            await KnowledgeToolHandlers().get_platform_guide({"topic": "  "})

    @pytest.mark.asyncio
    async def test_search_without_knowledge_base_uses_guide(self):
        result = await KnowledgeToolHandlers().search_knowledge_base({"search_query": "pdpl"})

        assert result["source"] == "platform_guide"
        assert result["entries"] == []
        assert result["fallbackGuide"]["title"] == PLATFORM_GUIDES["pdpl_compliance"]["title"]

    @pytest.mark.asyncio
    async def test_search_with_engine(self, knowledge_base):
        provider = FakeEmbeddingProvider(vectors={"pdpl": [1.0, 0.0, 0.0]})
        engine = SemanticSearchEngine(EmbeddingClient(provider, cache=EmbeddingCache()))
        handlers = KnowledgeToolHandlers(knowledge_base, engine)

        result = await handlers.search_knowledge_base({"search_query": "pdpl"})

        assert result["source"] == "knowledge_base"
        assert result["total"] == 1
        entry = result["entries"][0]
        assert entry["entryId"] == "KB-1"
        assert entry["matchType"] == "vector"
        assert entry["similarity"] == 1.0
        assert entry["rank"] == 1
        assert entry["category"] == "regulation"

    @pytest.mark.asyncio
    async def test_search_without_engine_uses_keywords(self, knowledge_base):
        handlers = KnowledgeToolHandlers(knowledge_base)

        result = await handlers.search_knowledge_base({"search_query": "evidence"})

        assert result["source"] == "knowledge_base"
        assert [e["entryId"] for e in result["entries"]] == ["KB-2"]
        assert result["entries"][0]["matchType"] == "lexical"

    @pytest.mark.asyncio
    async def test_search_category_filter(self, knowledge_base):
        handlers = KnowledgeToolHandlers(knowledge_base)

        result = await handlers.search_knowledge_base(
            {"search_query": "evidence", "category": "regulation"}
        )

        assert result["source"] == "platform_guide"

    @pytest.mark.asyncio
    async def test_search_unknown_category(self, knowledge_base):
        handlers = KnowledgeToolHandlers(knowledge_base)

        with pytest.raises(ToolExecutionError, match="unknown category"):
            await handlers.search_knowledge_base({"search_query": "x", "category": "memes"})

    @pytest.mark.asyncio
    async def test_search_requires_query(self):
        with pytest.raises(ToolExecutionError):
            await KnowledgeToolHandlers().search_knowledge_base({})


class TestPlatformGuide:
    """Tests for guide lookup."""

    def test_exact_match(self):
        assert get_platform_guide("severity_levels") == PLATFORM_GUIDES["severity_levels"]

    def test_case_and_whitespace_ignored(self):
        assert get_platform_guide("  Monitoring ") == PLATFORM_GUIDES["monitoring"]

    def test_fuzzy_match_either_direction(self):
        assert get_platform_guide("evidence") == PLATFORM_GUIDES["evidence_chain"]
        assert get_platform_guide("user_roles_and_permissions") == PLATFORM_GUIDES["user_roles"]

    def test_generic_guide(self):
        result = get_platform_guide("quantum")

        assert result["title"] == "دليل عام"
        assert result["availableTopics"] == list(PLATFORM_GUIDES)
        assert "quantum" in result["content"]

    def test_returns_copy(self):
        guide = get_platform_guide("reporting")
        guide["title"] = "changed"
        assert PLATFORM_GUIDES["reporting"]["title"] != "changed"


class TestFileHandlers:
    """Tests for reports and documents."""

    @pytest.fixture
    def handlers(self, platform):
        return FileToolHandlers(platform)

    @pytest.mark.asyncio
    async def test_all_sections(self, handlers):
        result = await handlers.get_reports_and_documents({})
        assert set(result) == {"reports", "scheduled", "audit", "documents"}

    @pytest.mark.asyncio
    async def test_search_filters_reports(self, handlers):
        result = await handlers.get_reports_and_documents({"search": "monthly"})
        assert [r["reportId"] for r in result["reports"]] == ["R-1"]

    @pytest.mark.asyncio
    async def test_single_section(self, handlers):
        result = await handlers.get_reports_and_documents({"report_type": "scheduled"})
        assert set(result) == {"scheduled"}

    @pytest.mark.asyncio
    async def test_unknown_report_type(self, handlers):
        with pytest.raises(ToolExecutionError):
            await handlers.get_reports_and_documents({"report_type": "memes"})


class TestPersonalityHandlers:
    """Tests for greetings and leader-respect phrases."""

    @pytest.fixture
    def handlers(self, platform):
        return PersonalityToolHandlers(platform)

    @pytest.mark.asyncio
    async def test_first_visit_greeting(self, handlers):
        result = await handlers.get_personality_greeting({"userId": "42", "userName": "سارة"})

        assert result["greeting"] == "أهلاً سارة، مرحباً بك في منصة راصد"
        assert result["isReturningUser"] is False
        assert result["scenarioType"] == "greeting_first"

    @pytest.mark.asyncio
    async def test_returning_user_greeting(self, handlers):
        result = await handlers.get_personality_greeting({"userId": "7", "userName": "عمر"})

        assert result["greeting"] == "مرحباً بعودتك يا عمر"
        assert result["isReturningUser"] is True
        assert result["visitCount"] == 2

    @pytest.mark.asyncio
    async def test_default_greeting_without_scenarios(self):
        handlers = PersonalityToolHandlers(InMemoryPlatformData())

        result = await handlers.get_personality_greeting({})

        assert result["greeting"].startswith("أهلاً وسهلاً مستخدم")
        assert result["visitCount"] == 0

    @pytest.mark.asyncio
    async def test_leader_scenario_phrase(self, handlers):
        result = await handlers.check_leader_mention({"message": "ما رأي ولي العهد في حماية البيانات؟"})

        assert result["found"] is True
        assert result["respectPhrase"] == "حفظ الله سمو ولي العهد"

    @pytest.mark.asyncio
    async def test_inactive_scenario_falls_back_to_default_phrase(self, handlers):
        result = await handlers.check_leader_mention({"message": "تصريح الوزير اليوم"})

        assert result["found"] is True
        assert result["respectPhrase"] == "حفظهم الله ورعاهم."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["كم عدد التسريبات؟", "", None])
    async def test_no_leader_mention(self, handlers, message):
        result = await handlers.check_leader_mention({"message": message})

        assert result["found"] is False
        assert result["respectPhrase"] is None
        assert result["message"] == "لا توجد إشارة لقائد"
