"""
Tests for trend and correlation analysis.
"""

from datetime import datetime, timezone

import pytest

from src.rasid.agent.tools.analytics import AnalyticsToolHandlers, parse_timestamp
from tests.agent.fakes import NOW


@pytest.fixture
def analytics(platform):
    return AnalyticsToolHandlers(platform, clock=lambda: NOW)


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_iso_string_with_z(self):
        parsed = parse_timestamp("2026-03-17T08:00:00Z")
        assert parsed == datetime(2026, 3, 17, 8, 0, tzinfo=timezone.utc)

    def test_naive_datetime_becomes_utc(self):
        parsed = parse_timestamp(datetime(2026, 3, 17, 8, 0))
        assert parsed.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12345])
    def test_unparsable(self, value):
        assert parse_timestamp(value) is None


class TestAnalyzeTrends:
    """Tests for analyze_trends."""

    @pytest.mark.asyncio
    async def test_comprehensive_by_default(self, analytics):
        result = await analytics.analyze_trends({})

        assert result["analysisType"] == "comprehensive"
        assert result["totalLeaks"] == 3
        assert result["severityDistribution"] == {"critical": 1, "high": 1, "low": 1}
        assert result["sourceDistribution"] == {"telegram": 1, "darkweb": 1, "paste": 1}
        assert result["piiTypeDistribution"]["national_id"] == 2
        assert result["monthlyTrend"] == {"2026-03": 3}
        assert result["totalRecordsExposed"] == 52300
        assert result["averageRecordsPerLeak"] == 17433

    @pytest.mark.asyncio
    async def test_single_analysis(self, analytics):
        result = await analytics.analyze_trends({"analysis_type": "severity_distribution"})

        assert "severityDistribution" in result
        assert "sourceDistribution" not in result
        assert "totalRecordsExposed" not in result

    @pytest.mark.asyncio
    async def test_unknown_type_falls_back(self, analytics):
        result = await analytics.analyze_trends({"analysis_type": "astrology"})
        assert result["analysisType"] == "comprehensive"

    @pytest.mark.asyncio
    async def test_sector_uses_localized_name(self, analytics):
        result = await analytics.analyze_trends({"analysis_type": "sector_distribution"})
        assert result["sectorDistribution"] == {"مالي": 1, "Health": 1, "Education": 1}


class TestCorrelations:
    """Tests for get_correlations."""

    @pytest.mark.asyncio
    async def test_source_severity_matrix(self, analytics):
        result = await analytics.get_correlations({"correlation_type": "source_severity"})

        assert result["sourceSeverityMatrix"] == {
            "telegram": {"critical": 1},
            "darkweb": {"high": 1},
            "paste": {"low": 1},
        }
        assert "piiCoOccurrence" not in result

    @pytest.mark.asyncio
    async def test_time_pattern(self, analytics):
        result = await analytics.get_correlations({"correlation_type": "time_pattern"})

        assert result["hourOfDayPattern"] == {"12:00": 3}
        assert sum(result["dayOfWeekPattern"].values()) == 3

    @pytest.mark.asyncio
    async def test_pii_co_occurrence(self, analytics):
        result = await analytics.get_correlations({"correlation_type": "pii_correlation"})

        assert result["piiCoOccurrence"]["national_id"] == {
            "iban": 1,
            "phone": 1,
            "medical_record": 1,
        }

    @pytest.mark.asyncio
    async def test_seller_sector(self, analytics):
        result = await analytics.get_correlations({"correlation_type": "seller_sector"})
        assert result["sellerSectorCorrelations"] == {"ShadowSeller": {"Health": 1}}

    @pytest.mark.asyncio
    async def test_seller_connections(self, analytics):
        result = await analytics.get_correlations({"correlation_type": "seller_connections"})

        assert result["sellerConnections"] == [
            {"sellers": ["ShadowSeller", "DataKing"], "sharedPlatforms": ["breachforums"]},
        ]

    @pytest.mark.asyncio
    async def test_anomaly_detection(self, analytics):
        result = await analytics.get_correlations({"correlation_type": "anomaly_detection"})

        assert result["recentLeaksCount"] == 2
        assert result["previousWeekCount"] == 1
        anomalies = result["anomalies"]
        assert any("100%" in a for a in anomalies)
        assert any('"darkweb"' in a for a in anomalies)
        assert any('"telegram"' in a for a in anomalies)
        assert len(anomalies) == 3

    @pytest.mark.asyncio
    async def test_no_anomalies(self, platform):
        analytics = AnalyticsToolHandlers(
            platform, clock=lambda: datetime(2030, 1, 1, tzinfo=timezone.utc)
        )

        result = await analytics.get_correlations({"correlation_type": "anomaly_detection"})

        assert result["anomalies"] == ["لم يتم اكتشاف أنماط غير عادية"]
        assert result["recentLeaksCount"] == 0

    @pytest.mark.asyncio
    async def test_focus_entity(self, analytics):
        result = await analytics.get_correlations(
            {"correlation_type": "source_severity", "focus_entity": "bank"}
        )

        assert result["focusEntity"] == "bank"
        assert result["relatedLeaksCount"] == 1
        assert result["relatedLeaks"][0]["leakId"] == "LK-001"

    @pytest.mark.asyncio
    async def test_comprehensive_includes_everything(self, analytics):
        result = await analytics.get_correlations({})

        for key in (
            "sellerSectorCorrelations",
            "sourceSeverityMatrix",
            "dayOfWeekPattern",
            "piiCoOccurrence",
            "sellerConnections",
            "anomalies",
        ):
            assert key in result

    @pytest.mark.asyncio
    async def test_unknown_type_falls_back(self, analytics):
        result = await analytics.get_correlations({"correlation_type": "astrology"})

        assert result["analysisType"] == "comprehensive"
        assert "sourceSeverityMatrix" in result
        assert "sellerConnections" in result
