"""
Dynamic parameter substitution for ad copy.

Copy fields may carry `{{param}}` placeholders (city, label, country,
placement, audience, or any extension key). Placeholders without a value
are left in place so editors can spot them in previews.
"""

import re

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

PREVIEW_PARAMS: dict[str, str] = {
    "city": "Paris",
    "label": "Premium",
    "country": "France",
    "placement": "Feed",
    "audience": "Broad Audience",
}


def replace_dynamic_params(text: str, params: dict[str, str | None]) -> str:
    """Replace every `{{key}}` (case-insensitive, spaces allowed) with its value."""
    result = text
    for key, value in params.items():
        if not value:
            continue
        pattern = re.compile(r"\{\{\s*" + re.escape(key) + r"\s*\}\}", re.IGNORECASE)
        result = pattern.sub(lambda _m, v=value: v, result)
    return result


def has_dynamic_params(text: str) -> bool:
    return PLACEHOLDER_PATTERN.search(text) is not None


def extract_dynamic_params(text: str) -> list[str]:
    """Distinct placeholder names, in order of first appearance."""
    names: list[str] = []
    for raw in PLACEHOLDER_PATTERN.findall(text):
        name = raw.strip()
        if name not in names:
            names.append(name)
    return names


def get_preview_text(text: str) -> str:
    return replace_dynamic_params(text, PREVIEW_PARAMS)
