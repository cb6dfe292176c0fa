"""Interaction prober constants and helpers."""

from __future__ import annotations

import json
import re

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

VIEWPORT = {"width": 1920, "height": 1080}

# Resource types treated as API traffic
API_RESOURCE_TYPES = {"xhr", "fetch"}

MAX_CONTROL_TEXT = 100
MAX_LISTED_URLS = 10
SIGNATURE_PARAMS_PREVIEW = 100

# Returns {text, tag, id, classes} for candidate controls, in document order.
CONTROL_DISCOVERY_SCRIPT = """
([selectors, maxText, limit]) => {
    const results = [];
    const seen = new Set();
    for (const el of document.querySelectorAll(selectors.join(', '))) {
        if (seen.has(el)) continue;
        seen.add(el);
        let text = (el.textContent || '').trim();
        if (!text && el.tagName === 'INPUT') {
            text = (el.value || '').trim();
        }
        if (!text || text.length >= maxText) continue;
        results.push({
            text: text,
            tag: el.tagName.toLowerCase(),
            id: el.id || '',
            classes: typeof el.className === 'string' ? el.className.trim() : '',
        });
        if (results.length >= limit) break;
    }
    return results;
}
"""

# Full text content, including inline scripts where addresses are often embedded.
PAGE_TEXT_SCRIPT = "() => document.documentElement ? document.documentElement.textContent || '' : ''"

_CSS_IDENTIFIER = re.compile(r"^-?[_a-zA-Z][_a-zA-Z0-9-]*$")


def build_control_selector(element_id: str, classes: str, tag_name: str, text: str) -> str:
    """
    Best-effort selector for a discovered control: id, else first class, else
    tag plus visible text.
    """
    element_id = (element_id or "").strip()
    if element_id:
        if _CSS_IDENTIFIER.match(element_id):
            return f"#{element_id}"
        return f"[id={json.dumps(element_id)}]"

    first_class = (classes or "").split()
    if first_class:
        cls = first_class[0]
        if _CSS_IDENTIFIER.match(cls):
            return f".{cls}"
        return f"[class~={json.dumps(cls)}]"

    tag = (tag_name or "").strip().lower() or "*"
    return f"{tag}:has-text({json.dumps(text or '')})"


def format_signature_call(method: str, params) -> str:
    """Render a signing request the way the report lists it."""
    try:
        rendered = json.dumps(params)
    except (TypeError, ValueError):
        rendered = str(params)
    return f"{method}: {rendered[:SIGNATURE_PARAMS_PREVIEW]}..."


def dedupe(items, limit: int | None = None) -> list:
    """Order-preserving de-duplication with an optional cap."""
    unique = list(dict.fromkeys(items))
    return unique[:limit] if limit is not None else unique
