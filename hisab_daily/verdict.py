"""Three-way verdict classification over a provider's answer text.

The classifier only counts marker phrases. When the markers are silent, tied, or the answer does
not mention the asked deed, the stricter verdict (`sin`) is returned.
"""

from __future__ import annotations

import string

from .models import Verdict

PERMISSIBLE_MARKERS: dict[str, tuple[str, ...]] = {
    "en": (
        "is permissible",
        "is halal",
        "is allowed",
        "is encouraged",
        "is recommended",
        "is mustahabb",
        "is mandated",
        "is obligatory",
        "allah encourages",
        "allah commands",
        "highly encouraged",
    ),
    "ar": ("حلال", "مباح", "مستحب", "مندوب"),
}

FORBIDDEN_MARKERS: dict[str, tuple[str, ...]] = {
    "en": (
        "is forbidden",
        "is haram",
        "is prohibited",
        "not allowed",
        "not permissible",
        "must not",
        "allah forbids",
        "strictly forbidden",
    ),
    "ar": ("حرام", "محرم", "لا يجوز"),
}

UNCERTAINTY_MARKERS: dict[str, tuple[str, ...]] = {
    "en": (
        "debated",
        "scholars differ",
        "depends on",
        "varies",
        "controversial",
        "some scholars",
        "different opinions",
        "context matters",
        "disputed",
        "disagreement",
        "conditions apply",
    ),
    "ar": ("اختلف العلماء", "خلاف", "يختلف"),
}

# Query words must be longer than this to count as a topic match in the answer.
RELEVANCE_MIN_LENGTH = 3


def query_keywords(query: str, min_length: int) -> list[str]:
    """Lower-cased words of `query` strictly longer than `min_length` characters."""
    words = (w.strip(string.punctuation + "؟،") for w in query.lower().split())
    return [w for w in words if len(w) > min_length]


def markers_for(table: dict[str, tuple[str, ...]], language: str) -> tuple[str, ...]:
    if language == "ar":
        # Providers often answer Arabic questions in English.
        return table["ar"] + table["en"]
    return table["en"]


def count_markers(text: str, markers: tuple[str, ...]) -> int:
    return sum(1 for phrase in markers if phrase in text)


def mentions_query(answer: str, query: str) -> bool:
    return any(word in answer for word in query_keywords(query, RELEVANCE_MIN_LENGTH))


def classify(answer: str, query: str, language: str = "en") -> Verdict:
    text = (answer or "").lower()
    if not text.strip():
        return Verdict.SIN

    permissible = count_markers(text, markers_for(PERMISSIBLE_MARKERS, language))
    forbidden = count_markers(text, markers_for(FORBIDDEN_MARKERS, language))
    uncertain = count_markers(text, markers_for(UNCERTAINTY_MARKERS, language))

    if uncertain > 0:
        return Verdict.CONTRADICTORY
    if permissible > forbidden and permissible > 0 and mentions_query(text, query):
        return Verdict.NOT_SIN
    # Forbidden markers, ties, off-topic answers and silence all resolve to the stricter ruling.
    return Verdict.SIN


def has_uncertainty(text: str, language: str = "en") -> bool:
    return count_markers(text.lower(), markers_for(UNCERTAINTY_MARKERS, language)) > 0
