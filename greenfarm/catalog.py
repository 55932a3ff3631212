"""Static reference data for the configuration step."""

from __future__ import annotations

from greenfarm.models.enums import SoilTypeEnum

SOIL_TYPE_LABELS: dict[SoilTypeEnum, str] = {
    SoilTypeEnum.silty: "طميية",
    SoilTypeEnum.sandy: "رملية",
    SoilTypeEnum.chalky: "جيرية",
    SoilTypeEnum.saline: "ملحية",
    SoilTypeEnum.rocky: "صخرية",
}

# season → group → crops
CROP_TYPES: dict[str, dict[str, list[str]]] = {
    "المحاصيل الصيفية": {
        "حبوب": ["الذرة الشامية", "الذرة الرفيعة", "الأرز"],
        "خضر": ["الطماطم الصيفية", "الباذنجان", "الفلفل", "الخيار", "الكوسة", "البامية", "البطاطا", "القرع"],
        "فواكه": ["العنب", "المانجو", "البطيخ", "الشمام", "التين", "الجوافة"],
        "محاصيل نقدية وصناعية": ["القطن", "قصب السكر", "عباد الشمس"],
    },
    "المحاصيل الشتوية": {
        "حبوب": ["القمح", "الشعير", "الفول البلدي", "العدس"],
        "خضر": [
            "البطاطس الشتوية",
            "البصل",
            "الثوم",
            "السبانخ",
            "الكرنب",
            "القرنبيط",
            "الجزر",
            "الخس",
            "الفاصوليا الشتوية",
            "البازلاء",
        ],
        "فواكه": ["الموالح (البرتقال)", "الفراولة"],
        "محاصيل زيتية أو علفية": ["الكتان", "البرسيم الحجازي", "البرسيم البلدي"],
    },
}

# (name_en, name_ar); the English name is what the weather provider is queried with.
EGYPTIAN_CITIES: list[tuple[str, str]] = [
    ("Cairo", "القاهرة"),
    ("Alexandria", "الإسكندرية"),
    ("Giza", "الجيزة"),
    ("Luxor", "الأقصر"),
    ("Aswan", "أسوان"),
    ("Port Said", "بورسعيد"),
    ("Suez", "السويس"),
    ("Ismailia", "الإسماعيلية"),
    ("Damietta", "دمياط"),
    ("Mansoura", "المنصورة"),
    ("Tanta", "طنطا"),
    ("Zagazig", "الزقازيق"),
    ("Sharm El Sheikh", "شرم الشيخ"),
    ("Hurghada", "الغردقة"),
    ("Asyut", "أسيوط"),
    ("Minya", "المنيا"),
    ("Sohag", "سوهاج"),
]


def all_crops() -> list[str]:
    return [crop for groups in CROP_TYPES.values() for crops in groups.values() for crop in crops]
