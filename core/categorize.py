# =============================================================================
# core/categorize.py  —  Keyword-Based Talk Categories
# =============================================================================
#
# A talk belongs to the FIRST category (in table order) that has a keyword
# appearing anywhere in its lowercased title + abstract.  Order matters:
# "SwiftUI testing" lands in "SwiftUI & Design", not "Testing".
#
# This is plain substring matching, so short keywords like "ai" or "ar"
# also match inside longer words.  That is accepted for a schedule browser.
# =============================================================================

from typing import Optional

CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "AI & Machine Learning": ["foundation models", "ai", "machine learning", "liquid glass", "llm"],
    "SwiftUI & Design": ["swiftui", "design", "ux", "ui", "interface"],
    "Concurrency & Performance": ["concurrency", "swift 6", "performance", "parallel", "async"],
    "Testing": ["testing", "test", "xctest", "swift testing", "tdd"],
    "Platform & Tools": ["xcode", "build", "compilation", "private apis", "linux", "cursor"],
    "Live Activities & Widgets": ["live activities", "widget", "dynamic island"],
    "Accessibility": ["accessibility", "a11y"],
    "Vision & Spatial": ["visionos", "spatial", "vision pro", "ar"],
    "Cross-Platform": ["scale", "platforms", "apple watch", "apple tv", "multiplatform"],
    "Voice & Speech": ["speech", "voice", "audio", "speaking"],
    "Error Handling": ["error", "exception", "throws"],
    "Analytics": ["analytics", "metrics", "tracking"],
}

DEFAULT_CATEGORY = "General"

# Every category a talk can end up in, including the fallback.
ALL_CATEGORIES: list[str] = [*CATEGORY_KEYWORDS, DEFAULT_CATEGORY]


def categorize_talk(title: str, abstract: Optional[str] = None) -> str:
    search_text = f"{title} {abstract or ''}".lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in search_text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY
