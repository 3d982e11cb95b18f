"""
Rule-based asset classifier for project briefs.

Maps a free-text brief onto a fixed, ordered set of asset categories by
case-insensitive substring search against static keyword lists.

Usage:
    from prodbay.core.briefs.keyword_classifier import parse_assets_from_brief

    parse_assets_from_brief("Need banners and catering for 200 guests")
    # ["Printing", "Catering"]
"""

from typing import Dict, List, Tuple

DEFAULT_CATEGORY = "General Requirements"

# Ordered: results follow this order, not the order keywords appear in the brief
ASSET_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Printing", ("print", "banner", "poster", "flyer", "brochure", "signage")),
    ("Staging", ("stage", "platform", "backdrop", "display")),
    ("Audio", ("sound", "speaker", "microphone", "audio", "music")),
    ("Lighting", ("light", "lighting", "illumination", "led")),
    ("Catering", ("food", "catering", "meal", "refreshment", "beverage")),
    ("Transport", ("transport", "delivery", "logistics", "shipping")),
    ("Design", ("design", "graphic", "branding", "logo", "creative")),
)


def parse_assets_from_brief(brief: str) -> List[str]:
    """
    Return the categories whose keywords occur in the brief.

    Matching is plain substring search, so "banners" matches "banner" and
    "led" also matches inside "scheduled". An empty brief or a brief with no
    keyword yields exactly [DEFAULT_CATEGORY].
    """
    text = (brief or "").lower()
    categories = [
        category
        for category, keywords in ASSET_KEYWORDS
        if any(keyword in text for keyword in keywords)
    ]
    return categories or [DEFAULT_CATEGORY]


def matched_keywords(brief: str) -> Dict[str, List[str]]:
    """Keywords that triggered each category, for explaining a classification."""
    text = (brief or "").lower()
    matches: Dict[str, List[str]] = {}
    for category, keywords in ASSET_KEYWORDS:
        hits = [keyword for keyword in keywords if keyword in text]
        if hits:
            matches[category] = hits
    return matches


def default_specifications(asset_name: str) -> str:
    return f"Requirements for {asset_name.lower()} based on project brief"
