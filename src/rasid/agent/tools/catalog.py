"""
Tool Catalog.

The closed set of tools the model may call. Each descriptor carries the
sub-agent role that owns it and the step label shown in the thinking
trace, so role and label cannot drift from the tool list.

Adding, removing or reshaping a tool changes the contract the model
sees. Bump TOOL_CATALOG_VERSION whenever this module changes.
"""

from __future__ import annotations

from typing import Any, Optional

from ..domain.entities import AgentRole, ToolDefinition

TOOL_CATALOG_VERSION = "1.1.0"

SEVERITIES = ["critical", "high", "medium", "low", "all"]
LEAK_STATUSES = ["new", "analyzing", "documented", "reported", "all"]
SOURCES = ["telegram", "darkweb", "paste", "all"]
AUDIT_CATEGORIES = [
    "auth", "leak", "export", "pii", "user", "report", "system", "monitoring",
    "enrichment", "alert", "retention", "api", "user_management", "all",
]
KNOWLEDGE_CATEGORIES = [
    "article", "faq", "glossary", "instruction", "policy", "regulation", "all",
]


def _schema(
    properties: Optional[dict[str, Any]] = None,
    required: Optional[list[str]] = None,
) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return schema


def _tool(
    name: str,
    description: str,
    label: str,
    agent: AgentRole = AgentRole.EXECUTIVE,
    properties: Optional[dict[str, Any]] = None,
    required: Optional[list[str]] = None,
) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=description,
        parameters=_schema(properties, required),
        agent=agent,
        label=label,
    )


# ============================================
# Executive agent
# ============================================

_EXECUTIVE_TOOLS = [
    _tool(
        "query_leaks",
        "استعلام عن التسريبات. يدعم: بحث بالتصنيف، الحالة، المصدر، بحث نصي حر. "
        "يجيب على: هل فيه تسريب اليوم؟ أعطني التسريبات واسعة النطاق.",
        "البحث في التسريبات",
        properties={
            "severity": {"type": "string", "enum": SEVERITIES, "description": "فلتر التصنيف"},
            "status": {"type": "string", "enum": LEAK_STATUSES, "description": "فلتر الحالة"},
            "source": {"type": "string", "enum": SOURCES, "description": "فلتر المصدر"},
            "search": {"type": "string", "description": "بحث نصي حر في العناوين"},
            "limit": {"type": "number", "description": "عدد النتائج (افتراضي 20)"},
        },
    ),
    _tool(
        "get_leak_details",
        "تفاصيل تسريب محدد بكل المعلومات + الأدلة + التوثيقات.",
        "جلب تفاصيل التسريب",
        properties={
            "leak_id": {"type": "string", "description": "معرّف التسريب (مثل LK-2026-0001)"},
        },
        required=["leak_id"],
    ),
    _tool(
        "get_dashboard_stats",
        "إحصائيات لوحة القيادة الشاملة: إجمالي التسريبات، واسعة النطاق، السجلات، "
        "أجهزة الرصد، PII، مع توزيعات حسب التصنيف والمصدر والقطاع.",
        "جلب إحصائيات لوحة القيادة",
    ),
    _tool(
        "get_channels_info",
        "معلومات القنوات المراقبة: قائمة، حالة، منصة، آخر نشاط.",
        "جلب معلومات القنوات",
        properties={
            "platform": {"type": "string", "enum": SOURCES, "description": "فلتر المنصة"},
        },
    ),
    _tool(
        "get_monitoring_status",
        "حالة مهام الرصد: الجدولة، آخر تشغيل، الحالة.",
        "فحص حالة المراقبة",
    ),
    _tool(
        "get_alert_info",
        "معلومات التنبيهات: سجل التنبيهات، القواعد، جهات الاتصال.",
        "جلب معلومات التنبيهات",
        properties={
            "info_type": {
                "type": "string",
                "enum": ["history", "rules", "contacts", "all"],
                "description": "نوع المعلومات",
            },
        },
    ),
    _tool(
        "get_sellers_info",
        "البائعون المرصودون: ملفات تعريف، مستوى خطر، نشاط، تفاصيل بائع محدد.",
        "جلب معلومات البائعين",
        properties={
            "seller_id": {"type": "string", "description": "معرّف بائع محدد (اختياري)"},
            "risk_level": {"type": "string", "enum": SEVERITIES, "description": "فلتر مستوى الخطر"},
        },
    ),
    _tool(
        "get_evidence_info",
        "الأدلة الرقمية: سلسلة الأدلة، إحصائيات، أدلة تسريب محدد.",
        "جلب الأدلة الرقمية",
        properties={
            "leak_id": {"type": "string", "description": "معرّف التسريب (اختياري)"},
        },
    ),
    _tool(
        "get_threat_rules_info",
        "قواعد صيد التهديدات: القواعد النشطة، الأنماط، التطابقات.",
        "جلب قواعد التهديدات",
    ),
    _tool(
        "get_darkweb_pastes",
        "بيانات الدارك ويب ومواقع اللصق: القوائم، التفاصيل.",
        "جلب بيانات الدارك ويب",
        properties={
            "source_type": {
                "type": "string",
                "enum": ["darkweb", "paste", "both"],
                "description": "نوع المصدر",
            },
        },
    ),
    _tool(
        "get_feedback_accuracy",
        "مقاييس دقة النظام: ملاحظات المحللين، نسبة الدقة، الإيجابيات الكاذبة.",
        "جلب مقاييس الدقة",
    ),
    _tool(
        "get_knowledge_graph",
        "رسم المعرفة: العقد، الروابط، شبكة العلاقات بين التهديدات.",
        "جلب رسم المعرفة",
    ),
    _tool(
        "get_osint_info",
        "استعلامات OSINT: البحث المفتوح المصدر، النتائج.",
        "جلب بيانات OSINT",
    ),
    _tool(
        "get_threat_map",
        "خريطة التهديدات الجغرافية: التوزيع حسب المناطق والقطاعات.",
        "جلب خريطة التهديدات",
    ),
    _tool(
        "get_system_health",
        "صحة المنصة: حالة النظام، سياسات الاحتفاظ، مفاتيح API.",
        "فحص صحة النظام",
    ),
    _tool(
        "get_platform_users_info",
        "معلومات مستخدمي المنصة: قائمة المستخدمين، أدوارهم، حالتهم، آخر تسجيل دخول.",
        "جلب معلومات المستخدمين",
    ),
]

# ============================================
# Analytics agent
# ============================================

_ANALYTICS_TOOLS = [
    _tool(
        "analyze_trends",
        "تحليل اتجاهات التسريبات: مقارنات زمنية، أنماط، توزيعات حسب القطاع والتصنيف والمصدر.",
        "تحليل الاتجاهات والأنماط",
        agent=AgentRole.ANALYTICS,
        properties={
            "analysis_type": {
                "type": "string",
                "enum": [
                    "severity_distribution", "source_distribution", "sector_distribution",
                    "time_trend", "pii_types", "comprehensive",
                ],
                "description": "نوع التحليل",
            },
        },
    ),
    _tool(
        "get_correlations",
        "تحليل الارتباطات بين التسريبات والبائعين والقطاعات. يكتشف الأنماط المخفية "
        "والعلاقات بين الأحداث. استخدم هذه الأداة للتحليل العميق وربط البيانات.",
        "تحليل الارتباطات",
        agent=AgentRole.ANALYTICS,
        properties={
            "correlation_type": {
                "type": "string",
                "enum": [
                    "seller_sector", "source_severity", "time_pattern", "pii_correlation",
                    "seller_connections", "anomaly_detection", "comprehensive",
                ],
                "description": "نوع تحليل الارتباط",
            },
            "focus_entity": {
                "type": "string",
                "description": "كيان محدد للتركيز عليه (اسم بائع، قطاع، معرّف تسريب)",
            },
        },
    ),
]

# ============================================
# Knowledge agent
# ============================================

_KNOWLEDGE_TOOLS = [
    _tool(
        "get_platform_guide",
        "دليل استرشادي لأي مهمة أو مفهوم في المنصة. يشرح طريقة العمل، الإجراءات، أفضل الممارسات.",
        "البحث في الدليل الإرشادي",
        agent=AgentRole.KNOWLEDGE,
        properties={
            "topic": {
                "type": "string",
                "description": (
                    "الموضوع: severity_levels, pdpl_compliance, evidence_chain, pii_types, "
                    "monitoring, reporting, user_roles, best_practices, troubleshooting، "
                    "أو أي موضوع آخر"
                ),
            },
        },
        required=["topic"],
    ),
    _tool(
        "search_knowledge_base",
        "البحث في قاعدة المعرفة عن مقالات، أسئلة وأجوبة، سياسات، وتعليمات. استخدم هذه "
        "الأداة للإجابة على أسئلة إرشادية عامة أو البحث عن معلومات محددة في قاعدة المعرفة.",
        "البحث في قاعدة المعرفة",
        agent=AgentRole.KNOWLEDGE,
        properties={
            "search_query": {"type": "string", "description": "نص البحث"},
            "category": {"type": "string", "enum": KNOWLEDGE_CATEGORIES, "description": "فلتر الفئة"},
        },
        required=["search_query"],
    ),
]

# ============================================
# Audit agent
# ============================================

_AUDIT_TOOLS = [
    _tool(
        "analyze_user_activity",
        "تحليل نشاط الموظفين والمستخدمين من سجل المراجعة. يجيب على: من فعل ماذا؟ "
        "متى؟ كم مرة؟ مثال: 'من أصدر تقارير اليوم؟'",
        "تحليل نشاط المستخدمين",
        agent=AgentRole.AUDIT,
        properties={
            "user_name": {"type": "string", "description": "اسم المستخدم للبحث عنه (اختياري)"},
            "category": {"type": "string", "enum": AUDIT_CATEGORIES, "description": "فلتر فئة النشاط"},
            "action_search": {"type": "string", "description": "بحث نصي في الإجراءات (اختياري)"},
            "limit": {"type": "number", "description": "عدد السجلات (افتراضي 100)"},
        },
    ),
    _tool(
        "get_audit_log",
        "سجل المراجعة الأمنية: كل العمليات والإجراءات المسجلة.",
        "جلب سجل المراجعة",
        agent=AgentRole.AUDIT,
        properties={
            "category": {
                "type": "string",
                "description": "فلتر الفئة (auth, leak, export, pii, user, report, system, monitoring)",
            },
            "limit": {"type": "number", "description": "عدد السجلات"},
        },
    ),
]

# ============================================
# File agent
# ============================================

_FILE_TOOLS = [
    _tool(
        "get_reports_and_documents",
        "جلب التقارير والمستندات. يبحث في التقارير المنشأة والمستندات الرسمية ويعيد "
        "الروابط والتفاصيل. استخدم هذه الأداة عندما يطلب المستخدم ملفًا أو تقريرًا محددًا.",
        "جلب التقارير والمستندات",
        agent=AgentRole.FILES,
        properties={
            "report_type": {
                "type": "string",
                "enum": ["all", "scheduled", "audit", "documents", "incident"],
                "description": "نوع التقارير",
            },
            "search": {"type": "string", "description": "بحث في عناوين التقارير (اختياري)"},
        },
    ),
]

# ============================================
# Personality agent
# ============================================

_PERSONALITY_TOOLS = [
    _tool(
        "get_personality_greeting",
        "جلب ترحيب شخصي مناسب للمستخدم بناءً على تاريخ زياراته. يستخدم عند بدء محادثة جديدة.",
        "جلب ترحيب شخصي",
        agent=AgentRole.PERSONALITY,
        properties={
            "userId": {"type": "string", "description": "معرف المستخدم"},
            "userName": {"type": "string", "description": "اسم المستخدم"},
        },
        required=["userId", "userName"],
    ),
    _tool(
        "check_leader_mention",
        "فحص الرسالة للبحث عن إشارات لقادة سعوديين (الملك، ولي العهد، وزراء، أمراء). "
        "يعيد عبارة احترام مناسبة إذا وُجدت إشارة.",
        "فحص إشارة لقائد",
        agent=AgentRole.PERSONALITY,
        properties={
            "message": {"type": "string", "description": "نص رسالة المستخدم"},
        },
        required=["message"],
    ),
]


TOOL_CATALOG: tuple[ToolDefinition, ...] = tuple(
    _EXECUTIVE_TOOLS
    + _ANALYTICS_TOOLS
    + _KNOWLEDGE_TOOLS
    + _AUDIT_TOOLS
    + _FILE_TOOLS
    + _PERSONALITY_TOOLS
)
