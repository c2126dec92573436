"""
Tool Handlers.

Data-in/data-out handlers for the executive, audit, knowledge, file and
personality agents. Handlers call the platform collaborators and reshape their
output for the model. They never retry, sleep or share state across
tools; failures propagate to the registry, which turns them into error
payloads.

Platform records are plain dicts keyed the way the platform serializes
them (camelCase, with ``...Ar`` localized variants).
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from ..domain.entities import KnowledgeCategory
from ..domain.exceptions import ToolExecutionError
from ..domain.ports import IKnowledgeBase, IPlatformData
from ..search.engine import SemanticSearchEngine
from ..search.lexical import keyword_fallback_search
from .guides import get_platform_guide

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]

ENTRY_CONTENT_CHARS = 2000
AUDIT_DETAILS_CHARS = 200


def localized(record: dict[str, Any], key: str) -> Any:
    """Return the Arabic variant of a field when present, else the field."""
    return record.get(f"{key}Ar") or record.get(key)


def as_limit(value: Any, default: int) -> int:
    """Coerce a model-supplied limit to a positive int."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    return limit if limit > 0 else default


def active_filter(value: Any) -> Optional[str]:
    """Treat missing values and "all" as no filter."""
    if not value or value == "all":
        return None
    return str(value)


def truncate(value: Any, limit: int) -> Any:
    if isinstance(value, str):
        return value[:limit]
    return value


def require(args: dict[str, Any], name: str, tool_name: str) -> str:
    value = args.get(name)
    if value is None or not str(value).strip():
        raise ToolExecutionError(tool_name, f"{name} is required")
    return str(value).strip()


def leak_summary(leak: dict[str, Any]) -> dict[str, Any]:
    return {
        "leakId": leak.get("leakId"),
        "title": localized(leak, "title"),
        "severity": leak.get("severity"),
        "source": leak.get("source"),
        "detectedAt": leak.get("detectedAt"),
    }


def count_by(items: list[dict[str, Any]], key: Callable[[dict[str, Any]], Any]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for item in items:
        value = key(item)
        counts[str(value)] = counts.get(str(value), 0) + 1
    return counts


class ExecutiveToolHandlers:
    """Handlers for direct platform data lookups."""

    def __init__(self, platform: IPlatformData):
        self.platform = platform

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "query_leaks": self.query_leaks,
            "get_leak_details": self.get_leak_details,
            "get_dashboard_stats": self.get_dashboard_stats,
            "get_channels_info": self.get_channels_info,
            "get_monitoring_status": self.get_monitoring_status,
            "get_alert_info": self.get_alert_info,
            "get_sellers_info": self.get_sellers_info,
            "get_evidence_info": self.get_evidence_info,
            "get_threat_rules_info": self.get_threat_rules_info,
            "get_darkweb_pastes": self.get_darkweb_pastes,
            "get_feedback_accuracy": self.get_feedback_accuracy,
            "get_knowledge_graph": self.get_knowledge_graph,
            "get_osint_info": self.get_osint_info,
            "get_threat_map": self.get_threat_map,
            "get_system_health": self.get_system_health,
            "get_platform_users_info": self.get_platform_users_info,
        }

    async def query_leaks(self, args: dict[str, Any]) -> dict[str, Any]:
        leaks = await self.platform.get_leaks(
            severity=active_filter(args.get("severity")),
            status=active_filter(args.get("status")),
            source=active_filter(args.get("source")),
            search=args.get("search") or None,
        )
        limited = leaks[:as_limit(args.get("limit"), 20)]
        return {
            "total": len(leaks),
            "showing": len(limited),
            "leaks": [
                {
                    "leakId": leak.get("leakId"),
                    "title": localized(leak, "title"),
                    "source": leak.get("source"),
                    "severity": leak.get("severity"),
                    "sector": localized(leak, "sector"),
                    "recordCount": leak.get("recordCount"),
                    "status": leak.get("status"),
                    "piiTypes": leak.get("piiTypes"),
                    "detectedAt": leak.get("detectedAt"),
                    "aiSummary": localized(leak, "aiSummary"),
                }
                for leak in limited
            ],
        }

    async def get_leak_details(self, args: dict[str, Any]) -> dict[str, Any]:
        leak_id = require(args, "leak_id", "get_leak_details")
        leak = await self.platform.get_leak_by_id(leak_id)
        if not leak:
            return {"error": f"لم يتم العثور على تسريب بمعرّف {leak_id}"}

        evidence = await self.platform.get_evidence_chain(leak_id)
        return {
            "leak": {
                "leakId": leak.get("leakId"),
                "title": localized(leak, "title"),
                "description": localized(leak, "description"),
                "source": leak.get("source"),
                "severity": leak.get("severity"),
                "sector": localized(leak, "sector"),
                "recordCount": leak.get("recordCount"),
                "status": leak.get("status"),
                "piiTypes": leak.get("piiTypes"),
                "detectedAt": leak.get("detectedAt"),
                "aiSeverity": leak.get("aiSeverity"),
                "aiSummary": localized(leak, "aiSummary"),
                "aiRecommendations": localized(leak, "aiRecommendations"),
                "sourceUrl": leak.get("sourceUrl"),
                "sourcePlatform": leak.get("sourcePlatform"),
                "threatActor": leak.get("threatActor"),
                "price": leak.get("price"),
                "breachMethod": localized(leak, "breachMethod"),
                "sampleData": leak.get("sampleData"),
                "screenshotUrls": leak.get("screenshotUrls") or [],
            },
            "evidenceCount": len(evidence),
            "evidence": [
                {
                    "evidenceId": e.get("evidenceId"),
                    "leakId": e.get("leakId"),
                    "type": e.get("type"),
                    "description": localized(e, "description"),
                    "hash": e.get("hash"),
                    "capturedAt": e.get("capturedAt"),
                    "url": e.get("url"),
                }
                for e in evidence[:10]
            ],
        }

    async def get_dashboard_stats(self, args: dict[str, Any]) -> dict[str, Any]:
        stats = await self.platform.get_dashboard_stats() or {}
        leaks = await self.platform.get_leaks()
        return {
            **stats,
            "totalLeaksInDB": len(leaks),
            "bySeverity": count_by(leaks, lambda l: l.get("severity")),
            "bySource": count_by(leaks, lambda l: l.get("source")),
            "bySector": count_by(leaks, lambda l: localized(l, "sector")),
            "latestLeaks": [leak_summary(leak) for leak in leaks[:5]],
        }

    async def get_channels_info(self, args: dict[str, Any]) -> dict[str, Any]:
        channels = await self.platform.get_channels(active_filter(args.get("platform")))
        return {
            "total": len(channels),
            "channels": [
                {
                    "name": c.get("name"),
                    "nameAr": c.get("nameAr"),
                    "platform": c.get("platform"),
                    "status": c.get("status"),
                    "priority": c.get("priority"),
                    "leaksFound": c.get("leaksFound"),
                    "lastActivity": c.get("lastActivity"),
                }
                for c in channels
            ],
        }

    async def get_monitoring_status(self, args: dict[str, Any]) -> dict[str, Any]:
        jobs = await self.platform.get_monitoring_jobs()
        return {
            "total": len(jobs),
            "jobs": [
                {
                    "jobId": j.get("jobId"),
                    "name": localized(j, "name"),
                    "type": j.get("type"),
                    "status": j.get("status"),
                    "schedule": j.get("schedule"),
                    "lastRun": j.get("lastRun"),
                    "nextRun": j.get("nextRun"),
                    "leaksFound": j.get("leaksFound"),
                }
                for j in jobs
            ],
        }

    async def get_alert_info(self, args: dict[str, Any]) -> dict[str, Any]:
        info_type = args.get("info_type") or "all"
        result: dict[str, Any] = {}
        if info_type in ("all", "history"):
            history = await self.platform.get_alert_history(50)
            result["history"] = {"total": len(history), "alerts": history[:20]}
        if info_type in ("all", "rules"):
            result["rules"] = await self.platform.get_alert_rules()
        if info_type in ("all", "contacts"):
            result["contacts"] = await self.platform.get_alert_contacts()
        return result

    async def get_sellers_info(self, args: dict[str, Any]) -> dict[str, Any]:
        seller_id = args.get("seller_id")
        if seller_id:
            seller = await self.platform.get_seller_by_id(str(seller_id))
            return seller or {"error": f"لم يتم العثور على البائع {seller_id}"}

        sellers = await self.platform.get_seller_profiles(active_filter(args.get("risk_level")))
        return {
            "total": len(sellers),
            "sellers": [
                {
                    "sellerId": s.get("sellerId"),
                    "alias": localized(s, "alias"),
                    "riskLevel": s.get("riskLevel"),
                    "platforms": s.get("platforms"),
                    "totalListings": s.get("totalListings"),
                    "totalRecords": s.get("totalRecords"),
                    "firstSeen": s.get("firstSeen"),
                    "lastSeen": s.get("lastSeen"),
                }
                for s in sellers
            ],
        }

    async def get_evidence_info(self, args: dict[str, Any]) -> dict[str, Any]:
        stats = await self.platform.get_evidence_stats()
        chain = await self.platform.get_evidence_chain(args.get("leak_id") or None)
        return {
            "stats": stats,
            "total": len(chain),
            "evidence": [
                {
                    "evidenceId": e.get("evidenceId"),
                    "leakId": e.get("leakId"),
                    "type": e.get("type"),
                    "description": localized(e, "description"),
                    "hash": e.get("hash"),
                    "capturedAt": e.get("capturedAt"),
                }
                for e in chain[:20]
            ],
        }

    async def get_threat_rules_info(self, args: dict[str, Any]) -> dict[str, Any]:
        rules = await self.platform.get_threat_rules()
        return {
            "total": len(rules),
            "rules": [
                {
                    "ruleId": r.get("ruleId"),
                    "name": localized(r, "name"),
                    "category": r.get("category"),
                    "severity": r.get("severity"),
                    "isEnabled": r.get("isEnabled"),
                    "matchCount": r.get("matchCount"),
                    "lastTriggered": r.get("lastTriggered"),
                }
                for r in rules
            ],
        }

    async def get_darkweb_pastes(self, args: dict[str, Any]) -> dict[str, Any]:
        source_type = args.get("source_type") or "both"
        result: dict[str, Any] = {}
        if source_type in ("both", "darkweb"):
            listings = await self.platform.get_dark_web_listings()
            result["darkweb"] = {"total": len(listings), "listings": listings[:15]}
        if source_type in ("both", "paste"):
            pastes = await self.platform.get_paste_entries()
            result["pastes"] = {"total": len(pastes), "entries": pastes[:15]}
        return result

    async def get_feedback_accuracy(self, args: dict[str, Any]) -> dict[str, Any]:
        stats = await self.platform.get_feedback_stats()
        entries = await self.platform.get_feedback_entries()
        return {"stats": stats, "recentFeedback": entries[:20]}

    async def get_knowledge_graph(self, args: dict[str, Any]) -> dict[str, Any]:
        return await self.platform.get_knowledge_graph_data()

    async def get_osint_info(self, args: dict[str, Any]) -> dict[str, Any]:
        queries = await self.platform.get_osint_queries()
        return {"total": len(queries), "queries": queries[:20]}

    async def get_threat_map(self, args: dict[str, Any]) -> dict[str, Any]:
        return await self.platform.get_threat_map_data()

    async def get_system_health(self, args: dict[str, Any]) -> dict[str, Any]:
        retention = await self.platform.get_retention_policies()
        stats = await self.platform.get_dashboard_stats()
        api_keys = await self.platform.get_api_keys()
        return {
            "status": "operational",
            "database": "connected" if stats else "disconnected",
            "retentionPolicies": retention,
            "apiKeysCount": len(api_keys),
            "stats": stats,
        }

    async def get_platform_users_info(self, args: dict[str, Any]) -> dict[str, Any]:
        users = await self.platform.get_platform_users()
        return {
            "total": len(users),
            "users": [
                {
                    "id": u.get("id"),
                    "userId": u.get("userId"),
                    "name": u.get("name"),
                    "displayName": u.get("displayName"),
                    "email": u.get("email"),
                    "role": u.get("platformRole"),
                    "status": u.get("status"),
                    "lastLogin": u.get("lastLoginAt"),
                    "createdAt": u.get("createdAt"),
                }
                for u in users
            ],
        }


class AuditToolHandlers:
    """Handlers over the audit log."""

    def __init__(self, platform: IPlatformData):
        self.platform = platform

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "analyze_user_activity": self.analyze_user_activity,
            "get_audit_log": self.get_audit_log,
        }

    async def analyze_user_activity(self, args: dict[str, Any]) -> dict[str, Any]:
        """Summarize who did what, filtered by user, category and action text."""
        logs = await self.platform.get_audit_logs(
            category=active_filter(args.get("category")),
            limit=as_limit(args.get("limit"), 100),
        )

        filtered = logs
        user_name = (args.get("user_name") or "").lower()
        if user_name:
            filtered = [l for l in filtered if user_name in (l.get("userName") or "").lower()]

        action_search = (args.get("action_search") or "").lower()
        if action_search:
            filtered = [
                l for l in filtered
                if action_search in (l.get("action") or "").lower()
                or action_search in (l.get("details") or "").lower()
            ]

        user_summary: dict[str, dict[str, Any]] = {}
        for log in filtered:
            name = log.get("userName") or "غير معروف"
            summary = user_summary.setdefault(name, {"count": 0, "actions": [], "lastAction": None})
            summary["count"] += 1
            if log.get("action") not in summary["actions"]:
                summary["actions"].append(log.get("action"))
            last = summary["lastAction"]
            if last is None or str(log.get("createdAt") or "") > str(last.get("createdAt") or ""):
                summary["lastAction"] = {
                    "action": log.get("action"),
                    "category": log.get("category"),
                    "details": truncate(log.get("details"), AUDIT_DETAILS_CHARS),
                    "createdAt": log.get("createdAt"),
                }

        return {
            "totalActivities": len(filtered),
            "userSummary": user_summary,
            "categoryBreakdown": count_by(filtered, lambda l: l.get("category")),
            "recentActivities": [
                {
                    "userName": l.get("userName"),
                    "action": l.get("action"),
                    "category": l.get("category"),
                    "details": truncate(l.get("details"), AUDIT_DETAILS_CHARS),
                    "createdAt": l.get("createdAt"),
                }
                for l in filtered[:20]
            ],
        }

    async def get_audit_log(self, args: dict[str, Any]) -> dict[str, Any]:
        logs = await self.platform.get_audit_logs(
            category=active_filter(args.get("category")),
            limit=as_limit(args.get("limit"), 50),
        )
        return {
            "total": len(logs),
            "logs": [
                {
                    "action": l.get("action"),
                    "category": l.get("category"),
                    "userName": l.get("userName"),
                    "details": truncate(l.get("details"), AUDIT_DETAILS_CHARS),
                    "createdAt": l.get("createdAt"),
                }
                for l in logs[:30]
            ],
        }


class KnowledgeToolHandlers:
    """Handlers for the knowledge base and platform guides.

    ``search_knowledge_base`` ranks published entries with the semantic
    search engine, or by keyword score alone when no engine is wired.
    Without a knowledge base, or when nothing matches, it answers from
    the platform guide instead.
    """

    def __init__(
        self,
        knowledge_base: Optional[IKnowledgeBase] = None,
        search_engine: Optional[SemanticSearchEngine] = None,
        max_results: int = 10,
    ):
        self.knowledge_base = knowledge_base
        self.search_engine = search_engine
        self.max_results = max_results

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "get_platform_guide": self.get_platform_guide,
            "search_knowledge_base": self.search_knowledge_base,
        }

    async def get_platform_guide(self, args: dict[str, Any]) -> dict[str, Any]:
        return get_platform_guide(require(args, "topic", "get_platform_guide"))

    async def search_knowledge_base(self, args: dict[str, Any]) -> dict[str, Any]:
        query = require(args, "search_query", "search_knowledge_base")
        category = active_filter(args.get("category"))
        if category is not None and category not in {c.value for c in KnowledgeCategory}:
            raise ToolExecutionError("search_knowledge_base", f"unknown category: {category}")

        results = []
        if self.knowledge_base is not None:
            entries = await self.knowledge_base.list_published_entries()
            if self.search_engine is not None:
                results = await self.search_engine.search(
                    query,
                    entries,
                    top_k=self.max_results,
                    category=category,
                )
            else:
                # No embedding provider configured
                if category is not None:
                    entries = [e for e in entries if e.category.value == category]
                results = keyword_fallback_search(query, entries, self.max_results)

        if not results:
            logger.info(f"No knowledge entries for '{query[:50]}', using platform guide")
            return {
                "source": "platform_guide",
                "entries": [],
                "fallbackGuide": get_platform_guide(query),
            }

        return {
            "source": "knowledge_base",
            "total": len(results),
            "entries": [
                {
                    "entryId": r.entry.entry_id,
                    "category": r.entry.category.value,
                    "title": r.entry.display_title,
                    "content": r.entry.display_content[:ENTRY_CONTENT_CHARS],
                    "tags": list(r.entry.tags) if r.entry.tags else None,
                    "viewCount": r.entry.view_count,
                    "helpfulCount": r.entry.helpful_count,
                    "similarity": round(r.similarity, 4),
                    "rank": r.rank,
                    "matchType": r.source.value,
                }
                for r in results
            ],
        }


class FileToolHandlers:
    """Handlers for reports and incident documents."""

    def __init__(self, platform: IPlatformData):
        self.platform = platform

    def handlers(self) -> dict[str, ToolHandler]:
        return {"get_reports_and_documents": self.get_reports_and_documents}

    async def get_reports_and_documents(self, args: dict[str, Any]) -> dict[str, Any]:
        report_type = args.get("report_type") or "all"
        result: dict[str, Any] = {}

        if report_type == "all":
            result["reports"] = await self.platform.get_reports()
            result["scheduled"] = await self.platform.get_scheduled_reports()
            result["audit"] = await self.platform.get_report_audit_entries(20)
            result["documents"] = (await self.platform.get_incident_documents())[:20]
        elif report_type == "scheduled":
            result["scheduled"] = await self.platform.get_scheduled_reports()
        elif report_type == "audit":
            result["audit"] = await self.platform.get_report_audit_entries(50)
        elif report_type in ("documents", "incident"):
            result["documents"] = await self.platform.get_incident_documents()
        else:
            raise ToolExecutionError("get_reports_and_documents", f"unknown report_type: {report_type}")

        search = (args.get("search") or "").lower()
        if search:
            if "reports" in result:
                result["reports"] = [
                    r for r in result["reports"]
                    if search in (r.get("title") or "").lower()
                    or search in (r.get("titleAr") or "").lower()
                ]
            if "documents" in result:
                result["documents"] = [
                    d for d in result["documents"]
                    if search in (d.get("title") or "").lower()
                    or search in (d.get("titleAr") or "").lower()
                    or search in (d.get("documentId") or "").lower()
                ]
        return result


DEFAULT_GREETINGS = {
    "greeting_first": "أهلاً وسهلاً {userName}، أنا راصد الذكي. كيف أقدر أساعدك اليوم؟",
    "greeting_return": "مرحباً بعودتك يا {userName}! كيف أقدر أساعدك اليوم؟",
}

# Used when no active leader_respect scenario matches
DEFAULT_LEADER_KEYWORDS = (
    "خادم الحرمين",
    "الملك",
    "ولي العهد",
    "الأمير",
    "الوزير",
)
DEFAULT_LEADER_RESPECT = "حفظهم الله ورعاهم."


def fill_template(template: str, user_name: str) -> str:
    return template.replace("{userName}", user_name)


class PersonalityToolHandlers:
    """Handlers for greetings and leader-respect phrases.

    Both tools only read scenarios; managing them happens in the
    platform's admin screens.
    """

    def __init__(self, platform: IPlatformData):
        self.platform = platform

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "get_personality_greeting": self.get_personality_greeting,
            "check_leader_mention": self.check_leader_mention,
        }

    async def get_personality_greeting(self, args: dict[str, Any]) -> dict[str, Any]:
        """Pick the first-visit or returning-user greeting for the user."""
        user_id = str(args.get("userId") or "unknown")
        user_name = str(args.get("userName") or "مستخدم")

        visits = await self.platform.get_user_visit_count(user_id)
        scenario_type = "greeting_return" if visits > 0 else "greeting_first"
        scenarios = await self.platform.get_personality_scenarios(scenario_type)
        template = (
            scenarios[0].get("responseTemplate") if scenarios else None
        ) or DEFAULT_GREETINGS[scenario_type]

        return {
            "greeting": fill_template(template, user_name),
            "isReturningUser": visits > 0,
            "visitCount": visits,
            "scenarioType": scenario_type,
        }

    async def check_leader_mention(self, args: dict[str, Any]) -> dict[str, Any]:
        message = str(args.get("message") or "")
        phrase = await self._respect_phrase(message) if message.strip() else None
        return {
            "found": phrase is not None,
            "respectPhrase": phrase,
            "message": "تم العثور على إشارة لقائد" if phrase else "لا توجد إشارة لقائد",
        }

    async def _respect_phrase(self, message: str) -> Optional[str]:
        scenarios = await self.platform.get_personality_scenarios("leader_respect")
        for scenario in scenarios:
            keyword = scenario.get("triggerKeyword")
            if keyword and keyword in message and scenario.get("responseTemplate"):
                return scenario["responseTemplate"]
        if any(keyword in message for keyword in DEFAULT_LEADER_KEYWORDS):
            return DEFAULT_LEADER_RESPECT
        return None
