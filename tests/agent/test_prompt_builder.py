"""
Tests for system prompt assembly.
"""

from src.rasid.agent.orchestrator.prompt_builder import PLATFORM_PAGES, PromptBuilder
from tests.agent.fakes import NOW


def builder():
    return PromptBuilder(clock=lambda: NOW)


class TestPromptBuilder:
    """Tests for PromptBuilder."""

    def test_format_date_uses_arabic_weekday(self):
        # 2026-03-18 is a Wednesday
        assert builder().format_date() == "الأربعاء 2026-03-18"

    def test_stats_section_formats_numbers(self):
        section = builder().build_stats_section({
            "totalLeaks": 1234,
            "criticalAlerts": 5,
            "totalRecords": 2500000,
            "activeMonitors": 3,
            "piiDetected": 0,
        })

        assert "إجمالي التسريبات: 1,234" in section
        assert "التسريبات واسعة النطاق: 5" in section
        assert "إجمالي السجلات المكشوفة: 2,500,000" in section
        assert "بيانات PII المكتشفة: 0" in section

    def test_missing_stats_render_as_zero(self):
        section = builder().build_stats_section(None)
        assert "إجمالي التسريبات: 0" in section
        assert "أجهزة الرصد النشطة: 0" in section

    def test_build_includes_user_and_date(self):
        prompt = builder().build("سارة", {"totalLeaks": 3})

        assert "راصد الذكي" in prompt
        assert "# المستخدم: سارة" in prompt
        assert "2026-03-18" in prompt
        assert "إجمالي التسريبات: 3" in prompt

    def test_knowledge_section_only_when_present(self):
        without = builder().build("سارة")
        with_context = builder().build("سارة", knowledge_context="[regulation] PDPL: notify")

        assert "قاعدة المعرفة\n" not in without
        assert "# معلومات إضافية من قاعدة المعرفة\n[regulation] PDPL: notify" in with_context

    def test_sections_are_ordered(self):
        prompt = builder().build("سارة", {}, knowledge_context="ctx")

        identity = prompt.index("# هويتك")
        stats = prompt.index("# بيانات المنصة الحية")
        role = prompt.index("# دورك")
        knowledge = prompt.index("# معلومات إضافية")
        reference = prompt.index("# تصنيفات التسريب")
        assert identity < stats < role < knowledge < reference

    def test_platform_functions_table(self):
        section = builder().build_platform_functions_section()

        assert "| الصفحة | الوظيفة | كيف يصل إليها |" in section
        assert "| سلسلة الأدلة | حفظ وتوثيق الأدلة الرقمية لكل تسريب | القائمة الجانبية > متقدم > سلسلة الأدلة |" in section
        header = "| الصفحة | الوظيفة | كيف يصل إليها |"
        rows = [line for line in section.splitlines() if line.startswith("| ") and line != header]
        assert len(rows) == len(PLATFORM_PAGES)

    def test_prompt_carries_guidance_and_leaders_sections(self):
        prompt = builder().build("سارة")

        role = prompt.index("# دورك")
        functions = prompt.index("# شرح وظائف المنصة")
        reference = prompt.index("# تصنيفات التسريب")
        assert role < functions < reference
        assert "# القادة" in prompt
        assert "check_leader_mention" in prompt
