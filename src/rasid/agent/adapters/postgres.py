"""PostgreSQL adapters for platform data, the knowledge base and audit log.

These adapters implement the domain ports using asyncpg against the
platform schema. Columns are aliased to the platform's camelCase keys
so tool handlers see the same record shape from every adapter.
"""

import json
import logging
from typing import Any, Optional

import asyncpg

from ..domain.entities import KnowledgeCategory, KnowledgeEntry
from ..domain.ports import IAuditSink, IKnowledgeBase, IPlatformData

logger = logging.getLogger(__name__)

JSON_COLUMNS = {
    "piiTypes", "aiRecommendations", "aiRecommendationsAr", "sampleData",
    "screenshotUrls", "platforms", "aliases", "sectors", "metadata",
}


def _decode(value: Any) -> Any:
    """Decode JSON columns that asyncpg returns as text."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _record(row: asyncpg.Record) -> dict[str, Any]:
    record = dict(row)
    for key in JSON_COLUMNS & record.keys():
        record[key] = _decode(record[key])
    return record


class _PoolAdapter:
    def __init__(self, pool: asyncpg.Pool):
        """Initialize with database connection pool.

        Args:
            pool: asyncpg connection pool
        """
        self.pool = pool

    async def _fetch(self, query: str, *args) -> list[dict[str, Any]]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
        return [_record(row) for row in rows]

    async def _fetchrow(self, query: str, *args) -> Optional[dict[str, Any]]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, *args)
        return _record(row) if row is not None else None


LEAK_COLUMNS = """
    "leakId", title, "titleAr", source, severity, sector, "sectorAr",
    "piiTypes", "recordCount", status, description, "descriptionAr",
    "aiSeverity", "aiSummary", "aiSummaryAr", "aiRecommendations",
    "aiRecommendationsAr", "sampleData", "sourceUrl", "sourcePlatform",
    "screenshotUrls", "threatActor", "leakPrice" AS price, "breachMethod",
    "breachMethodAr", region, "regionAr", city, "cityAr", latitude,
    longitude, "detectedAt"
"""

EVIDENCE_COLUMNS = """
    "evidenceId", "evidenceLeakId" AS "leakId", "evidenceType" AS type,
    "contentHash" AS hash, "blockIndex", "capturedBy",
    "evidenceMetadata" AS metadata, "isVerified", "capturedAt"
"""

SELLER_COLUMNS = """
    "sellerId", "sellerName" AS alias, "sellerAliases" AS aliases,
    "sellerPlatforms" AS platforms, "totalLeaks" AS "totalListings",
    "sellerTotalRecords" AS "totalRecords", "sellerRiskScore" AS "riskScore",
    "sellerRiskLevel" AS "riskLevel", "sellerSectors" AS sectors,
    "sellerFirstSeen" AS "firstSeen", "sellerLastActivity" AS "lastSeen",
    "sellerIsActive" AS "isActive"
"""


class PostgresPlatformData(_PoolAdapter, IPlatformData):
    """PostgreSQL implementation of IPlatformData."""

    async def get_leaks(
        self,
        severity: Optional[str] = None,
        status: Optional[str] = None,
        source: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        conditions = []
        args: list[Any] = []
        for column, value in (("severity", severity), ("status", status), ("source", source)):
            if value:
                args.append(value)
                conditions.append(f"{column} = ${len(args)}")
        if search:
            args.append(f"%{search}%")
            conditions.append(f'(title ILIKE ${len(args)} OR "titleAr" ILIKE ${len(args)})')

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return await self._fetch(
            f'SELECT {LEAK_COLUMNS} FROM leaks {where} ORDER BY "detectedAt" DESC',
            *args,
        )

    async def get_leak_by_id(self, leak_id: str) -> Optional[dict[str, Any]]:
        return await self._fetchrow(
            f'SELECT {LEAK_COLUMNS} FROM leaks WHERE "leakId" = $1 LIMIT 1',
            leak_id,
        )

    async def get_dashboard_stats(self) -> Optional[dict[str, Any]]:
        row = await self._fetchrow(
            """
            SELECT
                (SELECT COUNT(*) FROM leaks) AS "totalLeaks",
                (SELECT COUNT(*) FROM leaks WHERE severity = 'critical') AS "criticalAlerts",
                (SELECT COALESCE(SUM("recordCount"), 0) FROM leaks) AS "totalRecords",
                (SELECT COUNT(*) FROM channels WHERE status = 'active') AS "activeMonitors",
                (SELECT COALESCE(SUM("totalMatches"), 0) FROM pii_scans) AS "piiDetected"
            """
        )
        if row is None:
            return None
        return {key: int(value or 0) for key, value in row.items()}

    async def get_channels(self, platform: Optional[str] = None) -> list[dict[str, Any]]:
        if platform:
            return await self._fetch(
                'SELECT *, "leaksDetected" AS "leaksFound" FROM channels '
                'WHERE platform = $1 ORDER BY "lastActivity" DESC NULLS LAST',
                platform,
            )
        return await self._fetch(
            'SELECT *, "leaksDetected" AS "leaksFound" FROM channels '
            'ORDER BY "lastActivity" DESC NULLS LAST'
        )

    async def get_monitoring_jobs(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM monitoring_jobs ORDER BY id")

    async def get_dark_web_listings(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM dark_web_listings ORDER BY id DESC")

    async def get_paste_entries(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM paste_entries ORDER BY id DESC")

    async def get_threat_rules(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM threat_rules ORDER BY id")

    async def get_osint_queries(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM osint_queries ORDER BY id DESC")

    async def get_threat_map_data(self) -> dict[str, Any]:
        regions = await self._fetch(
            """
            SELECT region, "regionAr", COUNT(*) AS "leakCount",
                   COALESCE(SUM("recordCount"), 0) AS "totalRecords",
                   COUNT(*) FILTER (WHERE severity = 'critical') AS "criticalCount"
            FROM leaks
            WHERE region IS NOT NULL
            GROUP BY region, "regionAr"
            ORDER BY "leakCount" DESC
            """
        )
        sectors = await self._fetch(
            """
            SELECT "sectorAr" AS sector, COUNT(*) AS "leakCount"
            FROM leaks GROUP BY "sectorAr" ORDER BY "leakCount" DESC
            """
        )
        return {"total": len(regions), "regions": regions, "sectors": sectors}

    async def get_knowledge_graph_data(self) -> dict[str, Any]:
        nodes = await self._fetch(
            """
            SELECT "nodeId", "nodeType", "nodeLabel" AS label, "nodeLabelAr" AS "labelAr",
                   "nodeMetadata" AS metadata
            FROM knowledge_graph_nodes
            """
        )
        edges = await self._fetch(
            """
            SELECT "sourceNodeId", "targetNodeId", "edgeRelationship" AS relationship,
                   "edgeRelationshipAr" AS "relationshipAr", "edgeWeight" AS weight
            FROM knowledge_graph_edges
            """
        )
        return {"nodes": nodes, "edges": edges}

    async def get_alert_history(self, limit: int = 100) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM alert_history ORDER BY id DESC LIMIT $1", limit)

    async def get_alert_rules(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM alert_rules ORDER BY id")

    async def get_alert_contacts(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM alert_contacts ORDER BY id")

    async def get_seller_profiles(self, risk_level: Optional[str] = None) -> list[dict[str, Any]]:
        if risk_level:
            return await self._fetch(
                f'SELECT {SELLER_COLUMNS} FROM seller_profiles WHERE "sellerRiskLevel" = $1 '
                'ORDER BY "sellerRiskScore" DESC',
                risk_level,
            )
        return await self._fetch(
            f'SELECT {SELLER_COLUMNS} FROM seller_profiles ORDER BY "sellerRiskScore" DESC'
        )

    async def get_seller_by_id(self, seller_id: str) -> Optional[dict[str, Any]]:
        return await self._fetchrow(
            f'SELECT {SELLER_COLUMNS} FROM seller_profiles WHERE "sellerId" = $1 LIMIT 1',
            seller_id,
        )

    async def get_evidence_chain(self, leak_id: Optional[str] = None) -> list[dict[str, Any]]:
        if leak_id:
            return await self._fetch(
                f'SELECT {EVIDENCE_COLUMNS} FROM evidence_chain WHERE "evidenceLeakId" = $1 '
                'ORDER BY "blockIndex"',
                leak_id,
            )
        return await self._fetch(
            f'SELECT {EVIDENCE_COLUMNS} FROM evidence_chain ORDER BY "capturedAt" DESC'
        )

    async def get_evidence_stats(self) -> dict[str, Any]:
        total = await self._fetchrow(
            """
            SELECT COUNT(*) AS total,
                   COUNT(*) FILTER (WHERE "isVerified") AS verified
            FROM evidence_chain
            """
        )
        by_type = await self._fetch(
            'SELECT "evidenceType" AS type, COUNT(*) AS count FROM evidence_chain GROUP BY "evidenceType"'
        )
        return {
            "total": int((total or {}).get("total") or 0),
            "verified": int((total or {}).get("verified") or 0),
            "byType": {row["type"]: int(row["count"]) for row in by_type},
        }

    async def get_feedback_entries(self) -> list[dict[str, Any]]:
        return await self._fetch(
            """
            SELECT "feedbackLeakId" AS "leakId", "feedbackUserName" AS "userName",
                   "systemClassification", "analystClassification", "isCorrect",
                   "feedbackNotes" AS notes, "feedbackCreatedAt" AS "createdAt"
            FROM feedback_entries
            ORDER BY "feedbackCreatedAt" DESC
            """
        )

    async def get_feedback_stats(self) -> dict[str, Any]:
        row = await self._fetchrow(
            """
            SELECT COUNT(*) AS total,
                   COUNT(*) FILTER (WHERE "isCorrect") AS correct,
                   COUNT(*) FILTER (WHERE NOT "isCorrect" AND "analystClassification" = 'clean')
                       AS "falsePositives"
            FROM feedback_entries
            """
        ) or {}
        total = int(row.get("total") or 0)
        correct = int(row.get("correct") or 0)
        return {
            "total": total,
            "correct": correct,
            "falsePositives": int(row.get("falsePositives") or 0),
            "accuracy": round(correct / total * 100, 1) if total else 0.0,
        }

    async def get_reports(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM reports ORDER BY id DESC")

    async def get_scheduled_reports(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM scheduled_reports ORDER BY id")

    async def get_report_audit_entries(self, limit: int = 50) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM report_audit ORDER BY id DESC LIMIT $1", limit)

    async def get_incident_documents(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM incident_documents ORDER BY id DESC")

    async def get_audit_logs(
        self,
        category: Optional[str] = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        if category:
            return await self._fetch(
                """
                SELECT "userId", "userName", action, "auditCategory" AS category,
                       details, "createdAt"
                FROM audit_log WHERE "auditCategory" = $1
                ORDER BY "createdAt" DESC LIMIT $2
                """,
                category,
                limit,
            )
        return await self._fetch(
            """
            SELECT "userId", "userName", action, "auditCategory" AS category,
                   details, "createdAt"
            FROM audit_log ORDER BY "createdAt" DESC LIMIT $1
            """,
            limit,
        )

    async def get_platform_users(self) -> list[dict[str, Any]]:
        # passwordHash is never selected
        return await self._fetch(
            """
            SELECT id, "userId", name, "displayName", email, "platformRole",
                   status, "lastLoginAt", "createdAt"
            FROM platform_users ORDER BY id
            """
        )

    async def get_retention_policies(self) -> list[dict[str, Any]]:
        return await self._fetch("SELECT * FROM retention_policies ORDER BY id")

    async def get_api_keys(self) -> list[dict[str, Any]]:
        # Key material is never selected
        return await self._fetch(
            'SELECT id, name, "isActive", "createdAt" FROM api_keys ORDER BY id'
        )

    async def get_personality_scenarios(
        self, scenario_type: Optional[str] = None
    ) -> list[dict[str, Any]]:
        columns = 'id, "scenarioType", "triggerKeyword", "responseTemplate"'
        if scenario_type:
            return await self._fetch(
                f'SELECT {columns} FROM personality_scenarios '
                'WHERE "isActive" = true AND "scenarioType" = $1 ORDER BY id',
                scenario_type,
            )
        return await self._fetch(
            f'SELECT {columns} FROM personality_scenarios WHERE "isActive" = true ORDER BY id'
        )

    async def get_user_visit_count(self, user_id: str) -> int:
        row = await self._fetchrow(
            'SELECT COUNT(*) AS visits FROM user_sessions WHERE "userId" = $1',
            str(user_id),
        )
        return int(row["visits"]) if row else 0


class PostgresKnowledgeBase(_PoolAdapter, IKnowledgeBase):
    """PostgreSQL implementation of IKnowledgeBase (read-only)."""

    async def list_published_entries(
        self,
        category: Optional[KnowledgeCategory] = None,
    ) -> list[KnowledgeEntry]:
        query = """
            SELECT "entryId", "kbCategory", "kbTitle", "kbTitleAr", "kbContent",
                   "kbContentAr", "kbTags", "kbEmbedding", "kbViewCount", "kbHelpfulCount"
            FROM knowledge_base
            WHERE "kbIsPublished"
        """
        async with self.pool.acquire() as conn:
            if category is not None:
                rows = await conn.fetch(
                    query + ' AND "kbCategory" = $1 ORDER BY "kbViewCount" DESC',
                    category.value,
                )
            else:
                rows = await conn.fetch(query + ' ORDER BY "kbViewCount" DESC')

        entries = []
        for row in rows:
            entry = self._row_to_entry(row)
            if entry is not None:
                entries.append(entry)
        return entries

    def _row_to_entry(self, row: asyncpg.Record) -> Optional[KnowledgeEntry]:
        """Convert database row to KnowledgeEntry; skip rows with an unknown category."""
        try:
            category = KnowledgeCategory(row["kbCategory"])
        except ValueError:
            logger.warning(f"Skipping knowledge entry {row['entryId']}: unknown category {row['kbCategory']}")
            return None

        tags = _decode(row["kbTags"])
        embedding = _decode(row["kbEmbedding"])
        return KnowledgeEntry(
            entry_id=row["entryId"],
            category=category,
            title=row["kbTitle"] or "",
            title_ar=row["kbTitleAr"] or "",
            content=row["kbContent"] or "",
            content_ar=row["kbContentAr"] or "",
            tags=tuple(tags) if tags else None,
            embedding=tuple(float(x) for x in embedding) if embedding else None,
            view_count=row["kbViewCount"] or 0,
            helpful_count=row["kbHelpfulCount"] or 0,
        )


class PostgresAuditSink(_PoolAdapter, IAuditSink):
    """Writes audit records to the audit_log table."""

    async def log(
        self,
        user_id: Optional[str],
        action: str,
        details: str,
        category: str = "system",
        user_name: Optional[str] = None,
    ) -> None:
        # audit_log."userId" is an integer column
        numeric_id = int(user_id) if user_id and str(user_id).isdigit() else None

        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO audit_log ("userId", "userName", action, "auditCategory", details)
                VALUES ($1, $2, $3, $4, $5)
                """,
                numeric_id,
                user_name,
                action,
                category,
                details,
            )
