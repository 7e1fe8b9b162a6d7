"""
Heuristic extraction of a structured :class:`Analysis` from model prose.

The upstream model is free to format its answer however it likes, so the
parser is deliberately forgiving: it looks for section headers by keyword,
collects the list items that follow each one, and fills any section it could
not find with a fixed fallback. ``parse_analysis`` is total; it never raises.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from authentic.libs.schemas.journal import Analysis

logger = logging.getLogger(__name__)

# Checked in this order; the first section whose keyword appears wins.
SECTION_HEADERS: dict[str, tuple[str, ...]] = {
    "negative_patterns": ("negative patterns", "patterns to address", "challenges"),
    "positive_patterns": ("positive patterns", "strengths", "patterns to embrace"),
    "affirmations": ("affirmations", "daily affirmations"),
    "actionable_steps": ("actionable steps", "steps", "actions"),
}

SECTION_FALLBACKS: dict[str, str] = {
    "negative_patterns": "Notice any recurring thoughts or habits that leave you feeling stuck.",
    "positive_patterns": "You showed up and reflected honestly, which is a strength in itself.",
    "affirmations": "I am growing and learning every day.",
    "actionable_steps": "Reflect on these insights regularly.",
}

ENCOURAGEMENT_FALLBACK = "Continue your journey with courage and compassion."
DEFAULT_ENCOURAGEMENT = "Thank you for your honest reflections."

_MAX_HEADER_WORDS = 6

_UNORDERED = re.compile(r"^(?:[-•]\s*|\*\s+)(?=\S)")
_NUMBERED = re.compile(r"^\d+[.)]\s*(?=\S)")
_RULE = re.compile(r"^[-*_=\s]{3,}$")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def default_analysis() -> Analysis:
    return Analysis(
        negative_patterns=[SECTION_FALLBACKS["negative_patterns"]],
        positive_patterns=[SECTION_FALLBACKS["positive_patterns"]],
        affirmations=[SECTION_FALLBACKS["affirmations"]],
        actionable_steps=[SECTION_FALLBACKS["actionable_steps"]],
        encouragement=DEFAULT_ENCOURAGEMENT,
    )


def _header_section(line: str) -> Optional[str]:
    if _UNORDERED.match(line):
        return None

    ends_with_colon = line.rstrip("*_ ").endswith(":")
    numbered = _NUMBERED.match(line)
    # A bare "1. Negative patterns" is a header; "1. Notice your strengths" is an item.
    leading_only = False
    if numbered:
        rest = line[numbered.end():]
        leading_only = not (ends_with_colon or rest.startswith(("**", "__", "#")))
        line = rest

    text = line.strip("#*_ \t").rstrip(":").strip("*_ ").lower()
    if not text:
        return None
    if len(text.split()) > _MAX_HEADER_WORDS and not ends_with_colon:
        return None

    for section, keywords in SECTION_HEADERS.items():
        if leading_only:
            if text.startswith(keywords):
                return section
        elif any(keyword in text for keyword in keywords):
            return section
    return None


def _list_item(line: str) -> Optional[str]:
    match = _UNORDERED.match(line) or _NUMBERED.match(line)
    if not match:
        return None
    item = line[match.end():].strip()
    return item or None


def _collect_sections(lines: list[str]) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {name: [] for name in SECTION_HEADERS}
    current: Optional[str] = None

    for raw in lines:
        line = raw.strip()
        if not line or _RULE.match(line):
            continue

        header = _header_section(line)
        if header is not None:
            current = header
            continue

        if current is None:
            continue
        item = _list_item(line)
        if item:
            sections[current].append(item)

    return sections


def _last_paragraph(text: str) -> str:
    paragraphs = [chunk.strip() for chunk in _PARAGRAPH_BREAK.split(text)]
    for paragraph in reversed(paragraphs):
        if paragraph:
            return paragraph
    return ""


def parse_analysis(raw_text: Optional[str]) -> Analysis:
    """Extract the four pattern lists and the closing encouragement from ``raw_text``."""

    try:
        text = (raw_text or "").replace("\r\n", "\n")
        sections = _collect_sections(text.split("\n"))
        encouragement = _last_paragraph(text) or ENCOURAGEMENT_FALLBACK
        return Analysis(
            **{
                name: items or [SECTION_FALLBACKS[name]]
                for name, items in sections.items()
            },
            encouragement=encouragement,
        )
    except Exception:
        logger.exception("Failed to parse analysis response; using defaults")
        return default_analysis()


__all__ = [
    "DEFAULT_ENCOURAGEMENT",
    "ENCOURAGEMENT_FALLBACK",
    "SECTION_FALLBACKS",
    "SECTION_HEADERS",
    "default_analysis",
    "parse_analysis",
]
