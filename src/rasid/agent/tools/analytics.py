"""
Analytics Tool Handlers.

Trend and correlation analysis computed in-process over the leak and
seller listings.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from itertools import combinations
from typing import Any, Callable, Optional

from ..domain.ports import IPlatformData
from .handlers import ToolHandler, count_by, leak_summary, localized

logger = logging.getLogger(__name__)

ARABIC_WEEKDAYS = ["الإثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت", "الأحد"]

TREND_TYPES = {
    "severity_distribution",
    "source_distribution",
    "sector_distribution",
    "time_trend",
    "pii_types",
    "comprehensive",
}

CORRELATION_TYPES = {
    "seller_sector",
    "source_severity",
    "time_pattern",
    "pii_correlation",
    "seller_connections",
    "anomaly_detection",
    "comprehensive",
}

# A week-over-week increase above this ratio is reported as a spike
SPIKE_RATIO = 1.5
CRITICAL_SPIKE_COUNT = 3


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a datetime or ISO-8601 string into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AnalyticsToolHandlers:
    """Handlers for analyze_trends and get_correlations."""

    def __init__(
        self,
        platform: IPlatformData,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.platform = platform
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "analyze_trends": self.analyze_trends,
            "get_correlations": self.get_correlations,
        }

    async def analyze_trends(self, args: dict[str, Any]) -> dict[str, Any]:
        analysis = args.get("analysis_type") or "comprehensive"
        if analysis not in TREND_TYPES:
            analysis = "comprehensive"

        def wants(kind: str) -> bool:
            return analysis in (kind, "comprehensive")

        leaks = await self.platform.get_leaks()
        result: dict[str, Any] = {"analysisType": analysis, "totalLeaks": len(leaks)}

        if wants("severity_distribution"):
            result["severityDistribution"] = count_by(leaks, lambda l: l.get("severity"))
        if wants("source_distribution"):
            result["sourceDistribution"] = count_by(leaks, lambda l: l.get("source"))
        if wants("sector_distribution"):
            result["sectorDistribution"] = count_by(leaks, lambda l: localized(l, "sector"))
        if wants("pii_types"):
            pii: dict[str, int] = {}
            for leak in leaks:
                for kind in leak.get("piiTypes") or []:
                    pii[kind] = pii.get(kind, 0) + 1
            result["piiTypeDistribution"] = pii
        if wants("time_trend"):
            by_month: dict[str, int] = {}
            for leak in leaks:
                detected = parse_timestamp(leak.get("detectedAt"))
                if detected:
                    key = detected.strftime("%Y-%m")
                    by_month[key] = by_month.get(key, 0) + 1
            result["monthlyTrend"] = dict(sorted(by_month.items()))
        if analysis == "comprehensive":
            total_records = sum(leak.get("recordCount") or 0 for leak in leaks)
            result["totalRecordsExposed"] = total_records
            result["averageRecordsPerLeak"] = round(total_records / len(leaks)) if leaks else 0

        return result

    async def get_correlations(self, args: dict[str, Any]) -> dict[str, Any]:
        correlation = args.get("correlation_type") or "comprehensive"
        if correlation not in CORRELATION_TYPES:
            correlation = "comprehensive"

        def wants(kind: str) -> bool:
            return correlation in (kind, "comprehensive")

        leaks = await self.platform.get_leaks()
        sellers = await self.platform.get_seller_profiles()
        result: dict[str, Any] = {"analysisType": correlation}

        if wants("seller_sector"):
            result["sellerSectorCorrelations"] = self._seller_sector(leaks, sellers)
        if wants("source_severity"):
            matrix: dict[str, dict[str, int]] = {}
            for leak in leaks:
                row = matrix.setdefault(str(leak.get("source")), {})
                severity = str(leak.get("severity"))
                row[severity] = row.get(severity, 0) + 1
            result["sourceSeverityMatrix"] = matrix
        if wants("time_pattern"):
            days: dict[str, int] = {}
            hours: dict[str, int] = {}
            for leak in leaks:
                detected = parse_timestamp(leak.get("detectedAt"))
                if detected:
                    day = ARABIC_WEEKDAYS[detected.weekday()]
                    days[day] = days.get(day, 0) + 1
                    hour = f"{detected.hour:02d}:00"
                    hours[hour] = hours.get(hour, 0) + 1
            result["dayOfWeekPattern"] = days
            result["hourOfDayPattern"] = dict(sorted(hours.items()))
        if wants("pii_correlation"):
            co_occurrence: dict[str, dict[str, int]] = {}
            for leak in leaks:
                for first, second in combinations(leak.get("piiTypes") or [], 2):
                    row = co_occurrence.setdefault(first, {})
                    row[second] = row.get(second, 0) + 1
            result["piiCoOccurrence"] = co_occurrence
        if wants("seller_connections"):
            result["sellerConnections"] = self._seller_connections(sellers)
        if wants("anomaly_detection"):
            result.update(self._anomalies(leaks))

        focus = args.get("focus_entity")
        if focus:
            needle = str(focus).lower()
            related = [
                leak for leak in leaks
                if any(
                    needle in (leak.get(key) or "").lower()
                    for key in ("title", "titleAr", "description", "descriptionAr", "sector", "sectorAr")
                )
            ]
            result["focusEntity"] = focus
            result["relatedLeaksCount"] = len(related)
            result["relatedLeaks"] = [leak_summary(leak) for leak in related[:10]]

        return result

    @staticmethod
    def _seller_sector(
        leaks: list[dict[str, Any]], sellers: list[dict[str, Any]]
    ) -> dict[str, dict[str, int]]:
        """Count sectors of leaks whose title or description names a seller."""
        mapping: dict[str, dict[str, int]] = {}
        for leak in leaks:
            sector = str(localized(leak, "sector"))
            text = " ".join(
                str(leak.get(key) or "")
                for key in ("title", "titleAr", "description", "descriptionAr")
            )
            for seller in sellers:
                alias = localized(seller, "alias")
                if alias and alias in text:
                    row = mapping.setdefault(alias, {})
                    row[sector] = row.get(sector, 0) + 1
        return mapping

    @staticmethod
    def _seller_connections(sellers: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Pairs of sellers active on at least one shared platform."""
        connections = []
        for first, second in combinations(sellers, 2):
            shared = sorted(set(first.get("platforms") or []) & set(second.get("platforms") or []))
            if shared:
                connections.append({
                    "sellers": [localized(first, "alias"), localized(second, "alias")],
                    "sharedPlatforms": shared,
                })
        return connections

    def _anomalies(self, leaks: list[dict[str, Any]]) -> dict[str, Any]:
        now = self._clock()
        week_ago = now - timedelta(days=7)
        two_weeks_ago = now - timedelta(days=14)

        recent, previous = [], []
        for leak in leaks:
            detected = parse_timestamp(leak.get("detectedAt"))
            if detected is None:
                continue
            if detected > week_ago:
                recent.append(leak)
            elif detected > two_weeks_ago:
                previous.append(leak)

        anomalies: list[str] = []
        if previous and len(recent) > len(previous) * SPIKE_RATIO:
            increase = round((len(recent) / len(previous) - 1) * 100)
            anomalies.append(
                f"زيادة ملحوظة: {len(recent)} تسريب هذا الأسبوع مقابل "
                f"{len(previous)} الأسبوع الماضي (زيادة {increase}%)"
            )

        recent_critical = [l for l in recent if l.get("severity") == "critical"]
        if len(recent_critical) > CRITICAL_SPIKE_COUNT:
            anomalies.append(
                f"تنبيه: {len(recent_critical)} تسريبات واسعة النطاق هذا الأسبوع، يتطلب اهتمام فوري"
            )

        previous_sources = {str(l.get("source")) for l in previous}
        for source in sorted({str(l.get("source")) for l in recent}):
            if source not in previous_sources:
                anomalies.append(f'مصدر جديد: ظهور تسريبات من مصدر "{source}" لأول مرة هذا الأسبوع')

        return {
            "anomalies": anomalies or ["لم يتم اكتشاف أنماط غير عادية"],
            "recentLeaksCount": len(recent),
            "previousWeekCount": len(previous),
        }
