"""In-memory adapters for local runs and tests.

Records use the same camelCase shape the PostgreSQL adapters return.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ..domain.entities import KnowledgeCategory, KnowledgeEntry
from ..domain.ports import IAuditSink, IKnowledgeBase, IPlatformData

logger = logging.getLogger(__name__)


def _newest_first(records: list[dict[str, Any]], key: str) -> list[dict[str, Any]]:
    return sorted(records, key=lambda r: str(r.get(key) or ""), reverse=True)


@dataclass
class PlatformDataset:
    """Collections served by InMemoryPlatformData."""

    leaks: list[dict[str, Any]] = field(default_factory=list)
    channels: list[dict[str, Any]] = field(default_factory=list)
    monitoring_jobs: list[dict[str, Any]] = field(default_factory=list)
    dark_web_listings: list[dict[str, Any]] = field(default_factory=list)
    paste_entries: list[dict[str, Any]] = field(default_factory=list)
    threat_rules: list[dict[str, Any]] = field(default_factory=list)
    osint_queries: list[dict[str, Any]] = field(default_factory=list)
    alert_history: list[dict[str, Any]] = field(default_factory=list)
    alert_rules: list[dict[str, Any]] = field(default_factory=list)
    alert_contacts: list[dict[str, Any]] = field(default_factory=list)
    sellers: list[dict[str, Any]] = field(default_factory=list)
    evidence: list[dict[str, Any]] = field(default_factory=list)
    feedback: list[dict[str, Any]] = field(default_factory=list)
    reports: list[dict[str, Any]] = field(default_factory=list)
    scheduled_reports: list[dict[str, Any]] = field(default_factory=list)
    report_audit: list[dict[str, Any]] = field(default_factory=list)
    incident_documents: list[dict[str, Any]] = field(default_factory=list)
    audit_logs: list[dict[str, Any]] = field(default_factory=list)
    platform_users: list[dict[str, Any]] = field(default_factory=list)
    retention_policies: list[dict[str, Any]] = field(default_factory=list)
    api_keys: list[dict[str, Any]] = field(default_factory=list)
    graph_nodes: list[dict[str, Any]] = field(default_factory=list)
    graph_edges: list[dict[str, Any]] = field(default_factory=list)
    personality_scenarios: list[dict[str, Any]] = field(default_factory=list)
    user_sessions: list[dict[str, Any]] = field(default_factory=list)


class InMemoryPlatformData(IPlatformData):
    """IPlatformData over in-process lists."""

    def __init__(self, dataset: Optional[PlatformDataset] = None):
        self.data = dataset or PlatformDataset()

    async def get_leaks(
        self,
        severity: Optional[str] = None,
        status: Optional[str] = None,
        source: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        leaks = self.data.leaks
        if severity:
            leaks = [l for l in leaks if l.get("severity") == severity]
        if status:
            leaks = [l for l in leaks if l.get("status") == status]
        if source:
            leaks = [l for l in leaks if l.get("source") == source]
        if search:
            needle = search.lower()
            leaks = [
                l for l in leaks
                if needle in (l.get("title") or "").lower()
                or needle in (l.get("titleAr") or "").lower()
            ]
        return _newest_first(leaks, "detectedAt")

    async def get_leak_by_id(self, leak_id: str) -> Optional[dict[str, Any]]:
        return next((l for l in self.data.leaks if l.get("leakId") == leak_id), None)

    async def get_dashboard_stats(self) -> Optional[dict[str, Any]]:
        leaks = self.data.leaks
        return {
            "totalLeaks": len(leaks),
            "criticalAlerts": sum(1 for l in leaks if l.get("severity") == "critical"),
            "totalRecords": sum(l.get("recordCount") or 0 for l in leaks),
            "activeMonitors": sum(1 for c in self.data.channels if c.get("status") == "active"),
            "piiDetected": sum(len(l.get("piiTypes") or []) for l in leaks),
        }

    async def get_channels(self, platform: Optional[str] = None) -> list[dict[str, Any]]:
        if platform:
            return [c for c in self.data.channels if c.get("platform") == platform]
        return list(self.data.channels)

    async def get_monitoring_jobs(self) -> list[dict[str, Any]]:
        return list(self.data.monitoring_jobs)

    async def get_dark_web_listings(self) -> list[dict[str, Any]]:
        return list(self.data.dark_web_listings)

    async def get_paste_entries(self) -> list[dict[str, Any]]:
        return list(self.data.paste_entries)

    async def get_threat_rules(self) -> list[dict[str, Any]]:
        return list(self.data.threat_rules)

    async def get_osint_queries(self) -> list[dict[str, Any]]:
        return list(self.data.osint_queries)

    async def get_threat_map_data(self) -> dict[str, Any]:
        regions: dict[str, dict[str, Any]] = {}
        for leak in self.data.leaks:
            region = leak.get("region")
            if not region:
                continue
            entry = regions.setdefault(region, {
                "region": region,
                "regionAr": leak.get("regionAr"),
                "leakCount": 0,
                "totalRecords": 0,
                "criticalCount": 0,
            })
            entry["leakCount"] += 1
            entry["totalRecords"] += leak.get("recordCount") or 0
            if leak.get("severity") == "critical":
                entry["criticalCount"] += 1
        ordered = sorted(regions.values(), key=lambda r: r["leakCount"], reverse=True)
        return {"total": len(ordered), "regions": ordered}

    async def get_knowledge_graph_data(self) -> dict[str, Any]:
        return {"nodes": list(self.data.graph_nodes), "edges": list(self.data.graph_edges)}

    async def get_alert_history(self, limit: int = 100) -> list[dict[str, Any]]:
        return self.data.alert_history[:limit]

    async def get_alert_rules(self) -> list[dict[str, Any]]:
        return list(self.data.alert_rules)

    async def get_alert_contacts(self) -> list[dict[str, Any]]:
        return list(self.data.alert_contacts)

    async def get_seller_profiles(self, risk_level: Optional[str] = None) -> list[dict[str, Any]]:
        if risk_level:
            return [s for s in self.data.sellers if s.get("riskLevel") == risk_level]
        return list(self.data.sellers)

    async def get_seller_by_id(self, seller_id: str) -> Optional[dict[str, Any]]:
        return next((s for s in self.data.sellers if s.get("sellerId") == seller_id), None)

    async def get_evidence_chain(self, leak_id: Optional[str] = None) -> list[dict[str, Any]]:
        if leak_id:
            return [e for e in self.data.evidence if e.get("leakId") == leak_id]
        return list(self.data.evidence)

    async def get_evidence_stats(self) -> dict[str, Any]:
        by_type: dict[str, int] = {}
        for item in self.data.evidence:
            kind = str(item.get("type"))
            by_type[kind] = by_type.get(kind, 0) + 1
        return {
            "total": len(self.data.evidence),
            "verified": sum(1 for e in self.data.evidence if e.get("isVerified", True)),
            "byType": by_type,
        }

    async def get_feedback_entries(self) -> list[dict[str, Any]]:
        return list(self.data.feedback)

    async def get_feedback_stats(self) -> dict[str, Any]:
        total = len(self.data.feedback)
        correct = sum(1 for f in self.data.feedback if f.get("isCorrect"))
        return {
            "total": total,
            "correct": correct,
            "falsePositives": sum(
                1 for f in self.data.feedback
                if not f.get("isCorrect") and f.get("analystClassification") == "clean"
            ),
            "accuracy": round(correct / total * 100, 1) if total else 0.0,
        }

    async def get_reports(self) -> list[dict[str, Any]]:
        return list(self.data.reports)

    async def get_scheduled_reports(self) -> list[dict[str, Any]]:
        return list(self.data.scheduled_reports)

    async def get_report_audit_entries(self, limit: int = 50) -> list[dict[str, Any]]:
        return self.data.report_audit[:limit]

    async def get_incident_documents(self) -> list[dict[str, Any]]:
        return list(self.data.incident_documents)

    async def get_audit_logs(
        self,
        category: Optional[str] = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        logs = self.data.audit_logs
        if category:
            logs = [l for l in logs if l.get("category") == category]
        return _newest_first(logs, "createdAt")[:limit]

    async def get_platform_users(self) -> list[dict[str, Any]]:
        return list(self.data.platform_users)

    async def get_retention_policies(self) -> list[dict[str, Any]]:
        return list(self.data.retention_policies)

    async def get_api_keys(self) -> list[dict[str, Any]]:
        return list(self.data.api_keys)

    async def get_personality_scenarios(
        self, scenario_type: Optional[str] = None
    ) -> list[dict[str, Any]]:
        return [
            s for s in self.data.personality_scenarios
            if s.get("isActive", True)
            and (scenario_type is None or s.get("scenarioType") == scenario_type)
        ]

    async def get_user_visit_count(self, user_id: str) -> int:
        return sum(1 for s in self.data.user_sessions if str(s.get("userId")) == str(user_id))


class InMemoryKnowledgeBase(IKnowledgeBase):
    """IKnowledgeBase over a fixed list of published entries."""

    def __init__(self, entries: Optional[list[KnowledgeEntry]] = None):
        self.entries = list(entries or [])

    async def list_published_entries(
        self,
        category: Optional[KnowledgeCategory] = None,
    ) -> list[KnowledgeEntry]:
        if category is None:
            return list(self.entries)
        return [e for e in self.entries if e.category == category]


class InMemoryAuditSink(IAuditSink):
    """Keeps audit records in a list and logs them."""

    def __init__(self):
        self.records: list[dict[str, Any]] = []

    async def log(
        self,
        user_id: Optional[str],
        action: str,
        details: str,
        category: str = "system",
        user_name: Optional[str] = None,
    ) -> None:
        record = {
            "userId": user_id,
            "userName": user_name,
            "action": action,
            "category": category,
            "details": details,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        self.records.append(record)
        logger.info(f"Audit: {action} by {user_name or user_id}: {details[:120]}")
