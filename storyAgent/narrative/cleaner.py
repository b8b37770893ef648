"""Strip JSON artifacts that leak into narrative text."""

from __future__ import annotations

import logging
import re

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_NARRATIVE = "The story continues..."
MIN_NARRATIVE_CHARS = 50

_ARTIFACT_MARKERS = ('"response"', '"narration"', "suggested_actions")

_FIELD_OPENER = re.compile(r'"(response|narration)"\s*:\s*"')
_TRAILING_BLOCKS = [
    re.compile(r'",?\s*"suggested_actions"[\s\S]*', re.IGNORECASE),
    re.compile(r'",?\s*"memory_updates"[\s\S]*', re.IGNORECASE),
    re.compile(r'",?\s*"world_state(_updates)?"[\s\S]*', re.IGNORECASE),
    re.compile(r'",?\s*"relationship_updates"[\s\S]*', re.IGNORECASE),
]
_LEADING_JUNK = re.compile(r'^[\s"{]*')
_TRAILING_JUNK = re.compile(r'[\s",}]*$')


def has_json_artifacts(text: str) -> bool:
    return any(marker in text for marker in _ARTIFACT_MARKERS)


def clean_narrative_text(text: str) -> str:
    """Remove JSON field wrappers from narrative text.

    Text without obvious artifacts is only stripped of surrounding whitespace.
    """
    if not text:
        return ""

    cleaned = text
    if has_json_artifacts(cleaned):
        LOGGER.debug(f"JSON artifacts detected in narrative, cleaning: {cleaned[:100]!r}")
        cleaned = _FIELD_OPENER.sub("", cleaned)
        for pattern in _TRAILING_BLOCKS:
            cleaned = pattern.sub("", cleaned)
        cleaned = _LEADING_JUNK.sub("", cleaned)
        cleaned = _TRAILING_JUNK.sub("", cleaned)
        cleaned = cleaned.replace('\\"', '"').replace("\\n", "\n")

    return cleaned.strip()


def is_response_valid(text: str) -> bool:
    """Reject empty, placeholder, too-short, or JSON-polluted narrative."""
    if not text or len(text) < MIN_NARRATIVE_CHARS:
        return False
    if text.strip() == PLACEHOLDER_NARRATIVE:
        return False
    if has_json_artifacts(text):
        return False
    return True
