from __future__ import annotations

import re

from .models import Verdict
from .verdict import has_uncertainty

TAG_RE = re.compile(r"<[^>]*>")
ENTITY_RE = re.compile(r"&[^;\s]+;")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

RULING_KEYWORDS = ("permissible", "forbidden", "haram", "halal", "allowed", "prohibited")
MIN_SENTENCE_CHARS = 10
SCAN_SENTENCES = 4
DISAGREEMENT_CLAUSE = " Due to scholarly disagreement, it is safer to avoid this practice."
ELLIPSIS = "..."


def clean_markup(text: str) -> str:
    text = TAG_RE.sub(" ", text or "")
    text = ENTITY_RE.sub(" ", text)
    return " ".join(text.split())


def split_sentences(text: str) -> list[str]:
    parts = (p.strip() for p in SENTENCE_SPLIT_RE.split(text))
    return [p for p in parts if len(p) >= MIN_SENTENCE_CHARS]


def truncate_words(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    cut = text[: max(limit - len(ELLIPSIS), 0)]
    if " " in cut:
        cut = cut[: cut.rfind(" ")]
    return cut.rstrip(" ,;:-") + ELLIPSIS


def core_sentence(sentences: list[str]) -> str:
    for sentence in sentences[:SCAN_SENTENCES]:
        lowered = sentence.lower()
        if any(keyword in lowered for keyword in RULING_KEYWORDS):
            return sentence
    return sentences[0]


def summarize(answer: str, verdict: Verdict, max_chars: int = 120, language: str = "en") -> str:
    """Pick the sentence that states the ruling and fit it into `max_chars`."""
    text = clean_markup(answer)
    if not text:
        return ""

    sentences = split_sentences(text)
    if not sentences:
        return truncate_words(text, max_chars)

    sentence = core_sentence(sentences)
    clause_fits = max_chars - len(DISAGREEMENT_CLAUSE) > MIN_SENTENCE_CHARS + len(ELLIPSIS)
    if (
        verdict in (Verdict.SIN, Verdict.CONTRADICTORY)
        and has_uncertainty(sentence, language)
        and clause_fits
    ):
        head = truncate_words(sentence + ".", max_chars - len(DISAGREEMENT_CLAUSE))
        return head + DISAGREEMENT_CLAUSE
    return truncate_words(sentence, max_chars)
