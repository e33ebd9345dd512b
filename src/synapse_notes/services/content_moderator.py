"""Content moderation for transcript text used as an image prompt.

``sanitize`` either returns cleaned text or ``None``. ``None`` is the
normal "skip illustration" outcome, not an error.
"""

import re
from typing import Optional

MIN_PROMPT_LENGTH = 10

# Any hit rejects the whole text
BLOCKED_TOPICS: dict[str, tuple[str, ...]] = {
    "violence": (
        "kill", "murder", "bomb", "explosive", "shooting", "stab", "massacre",
        "terrorist", "terrorism", "weapon", "firearm", "gun", "rifle",
    ),
    "sexual": (
        "porn", "pornographic", "nude", "nudity", "sexual", "explicit sex",
        "erotic", "xxx",
    ),
    "hate": (
        "nazi", "white supremacy", "racial slur", "ethnic cleansing", "genocide",
        "hate speech",
    ),
    "self_harm": (
        "suicide", "suicidal", "self-harm", "self harm", "kill myself",
        "cutting myself", "overdose",
    ),
    "illegal": (
        "cocaine", "heroin", "meth", "drug dealing", "money laundering",
        "counterfeit", "human trafficking", "hacking into", "steal",
    ),
}

PII_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),  # SSN
    re.compile(r"(?<!\d)\d{9}(?!\d)"),  # SSN without separators
    re.compile(r"(?<!\d)\d{16}(?!\d)"),  # card number
    re.compile(r"\b\d{4}[ -]\d{4}[ -]\d{4}[ -]\d{4}\b"),  # grouped card number
)

INJECTION_PHRASES: tuple[str, ...] = (
    "ignore all previous instructions",
    "ignore previous instructions",
    "ignore the above",
    "disregard the above",
    "disregard previous instructions",
    "forget everything",
    "new instructions:",
    "system prompt:",
)

_BLOCKED_TOPIC_RE = re.compile(
    r"\b(?:"
    + "|".join(
        re.escape(term) for terms in BLOCKED_TOPICS.values() for term in terms
    )
    + r")(?:s|es|ed|ing)?\b",
    re.IGNORECASE,
)
_INJECTION_RE = re.compile(
    "|".join(re.escape(phrase) for phrase in INJECTION_PHRASES),
    re.IGNORECASE,
)
_BLOCKED_CHARS_RE = re.compile(r"[<>{}\[\]\\]")
_WHITESPACE_RE = re.compile(r"\s+")


def find_blocked_content(text: str) -> Optional[str]:
    """Return the first blocked term or PII match in ``text``, if any."""
    match = _BLOCKED_TOPIC_RE.search(text)
    if match:
        return match.group(0)
    for pattern in PII_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


def sanitize(text: Optional[str]) -> Optional[str]:
    """Screen and clean text before it becomes a generative prompt.

    Args:
        text: Raw transcript text

    Returns:
        Cleaned text, or None when the text must not be used at all:
        it is empty, mentions a blocked topic or PII, or is shorter than
        MIN_PROMPT_LENGTH once cleaned.
    """
    if not text or not text.strip():
        return None

    if find_blocked_content(text) is not None:
        return None

    cleaned = _INJECTION_RE.sub(" ", text)
    cleaned = _BLOCKED_CHARS_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()

    if len(cleaned) < MIN_PROMPT_LENGTH:
        return None
    return cleaned
