"""Static platform guides served by get_platform_guide."""

from __future__ import annotations

from typing import Any

PLATFORM_GUIDES: dict[str, dict[str, str]] = {
    "severity_levels": {
        "title": "تصنيف حوادث التسرب",
        "content": """تصنيف حوادث التسرب في منصة راصد:

| المستوى | الوصف | المعايير |
|---------|-------|----------|
| critical | واسع النطاق | بيانات حساسة جداً (هوية، مالية) + أكثر من 10,000 سجل |
| high | كبير | بيانات شخصية حساسة + أكثر من 1,000 سجل |
| medium | متوسط | بيانات شخصية عامة أو أقل من 1,000 سجل |
| low | محدود | تسريب محدود أو بيانات غير حساسة |

الإجراءات المطلوبة:
- critical: توثيق فوري + تحقيق عاجل + تقرير خلال 24 ساعة
- high: تحقيق خلال 48 ساعة + تقرير أسبوعي
- medium: مراجعة خلال أسبوع
- low: أرشفة ومتابعة""",
    },
    "pdpl_compliance": {
        "title": "نظام حماية البيانات الشخصية PDPL",
        "content": """نظام حماية البيانات الشخصية (PDPL) - المواد ذات الصلة:

المادة 10: حماية البيانات الشخصية - يجب اتخاذ التدابير اللازمة لحماية البيانات
المادة 14: الإفصاح عن التسريبات - يجب إشعار الجهة المختصة خلال 72 ساعة
المادة 19: حقوق أصحاب البيانات - حق الوصول والتصحيح والحذف
المادة 24: العقوبات - غرامات تصل إلى 5 ملايين ريال
المادة 32: الالتزامات الأمنية - تطبيق معايير أمنية مناسبة""",
    },
    "evidence_chain": {
        "title": "سلسلة حفظ الأدلة",
        "content": """سلسلة حفظ الأدلة الرقمية في راصد:
1. الالتقاط: تسجيل الدليل فور اكتشافه (screenshot, web archive, file)
2. التجزئة: حساب SHA-256 hash للملف
3. التوقيع: HMAC-SHA256 لضمان السلامة
4. التخزين: حفظ آمن مع metadata
5. التحقق: فحص دوري لسلامة الأدلة
6. التوثيق: ربط الدليل بالتسريب والمحلل""",
    },
    "pii_types": {
        "title": "أنواع البيانات الشخصية المدعومة",
        "content": """أنواع PII المدعومة في راصد:
- national_id: رقم الهوية الوطنية (10 أرقام تبدأ بـ 1 أو 2)
- iqama: رقم الإقامة (10 أرقام تبدأ بـ 2)
- phone: رقم هاتف سعودي (+966 أو 05)
- email: بريد إلكتروني
- iban: رقم آيبان سعودي (SA + 22 رقم)
- credit_card: بطاقة ائتمان (Luhn validation)
- passport: رقم جواز سفر
- address: عنوان وطني
- medical_record: سجل طبي
- salary: معلومات راتب
- gosi: رقم تأمينات اجتماعية
- license_plate: لوحة مركبة""",
    },
    "monitoring": {
        "title": "نظام المراقبة",
        "content": """مصادر المراقبة في راصد:
1. تليجرام: مراقبة قنوات ومجموعات
2. الدارك ويب: بحث في منتديات ومواقع
3. مواقع اللصق: Pastebin وبدائلها
4. وسائل التواصل: HIBP + Reddit + Twitter/X

أنواع الفحص:
- فحص مجدول: يعمل تلقائياً حسب الجدول
- فحص يدوي: يُشغّل بواسطة المحلل
- فحص مباشر: رصد في الوقت الحقيقي""",
    },
    "reporting": {
        "title": "نظام التقارير",
        "content": """أنواع التقارير في راصد:
1. تقرير تنفيذي PDF: ملخص شامل للإدارة العليا
2. تقرير NDMO Word: تقرير رسمي للمكتب الوطني
3. تقرير Excel شهري: بيانات مفصلة للتحليل
4. تقرير أدلة: توثيق أدلة تسريب محدد
5. تقرير مخصص: حسب معايير محددة
6. تقارير مجدولة: تلقائية حسب الجدول""",
    },
    "user_roles": {
        "title": "أدوار المستخدمين",
        "content": """أدوار المستخدمين في راصد:
- executive (تنفيذي): وصول كامل + تقارير + قرارات
- manager (مدير): إدارة التسريبات + التقارير + المستخدمين
- analyst (محلل): تحليل + تصنيف + ملاحظات
- viewer (مشاهد): عرض لوحة المعلومات فقط""",
    },
    "best_practices": {
        "title": "أفضل الممارسات",
        "content": """أفضل ممارسات إدارة التسريبات:
1. مراجعة التسريبات واسعة النطاق فوراً
2. توثيق الأدلة قبل أي إجراء
3. تحديث الحالة بانتظام
4. إشعار الجهات المعنية خلال 72 ساعة
5. مراجعة دقة النظام أسبوعياً
6. تحديث قواعد الكشف شهرياً
7. نسخ احتياطي يومي""",
    },
    "troubleshooting": {
        "title": "حل المشاكل",
        "content": """حل المشاكل الشائعة:
- فحص فاشل: تحقق من اتصال الإنترنت وصلاحيات API
- false positives كثيرة: راجع قواعد الكشف وعدّل الحدود
- بطء المنصة: تحقق من حجم قاعدة البيانات وسياسات الاحتفاظ
- قناة لا تعمل: تحقق من حالة القناة وصلاحيات الوصول
- أدلة تالفة: أعد فحص سلامة الأدلة""",
    },
}


def get_platform_guide(topic: str) -> dict[str, Any]:
    """Look up a guide by topic.

    Exact key match first, then a substring match in either direction,
    else a generic guide that lists the available topics.
    """
    key = (topic or "").strip().lower()
    guide = PLATFORM_GUIDES.get(key)
    if guide:
        return dict(guide)

    if key:
        for name, value in PLATFORM_GUIDES.items():
            if name in key or key in name:
                return dict(value)

    topics = list(PLATFORM_GUIDES)
    return {
        "title": "دليل عام",
        "content": (
            f'لم أجد دليلاً محدداً للموضوع "{topic}". المواضيع المتاحة: '
            f"{', '.join(topics)}. يمكنني مساعدتك في أي سؤال آخر عن المنصة."
        ),
        "availableTopics": topics,
    }
