"""Citation selection and formatting for provider references.

A raw reference looks like ``{"text": ..., "metadata": {"source": "quran", "chapter": 2, ...}}``.
Only references whose text or `metadata.context` shares a keyword with the query are shown;
irrelevant citations are never padded in.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable
from urllib.parse import quote

from .errors import UpstreamError
from .http import FetchJson, fetch_json
from .models import Evidence
from .summary import truncate_words
from .verdict import query_keywords

logger = logging.getLogger(__name__)

MAX_EVIDENCE = 3
ELLIPSIS = "..."
CANONICAL_SOURCES = {"quran", "bukhari", "muslim"}
SENTENCE_END = re.compile(r"[.!?](?=\s|$)")


def first_non_empty(obj: dict, keys: list[str]) -> str:
    for key in keys:
        value = obj.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def _metadata(ref: dict) -> dict:
    meta = ref.get("metadata")
    return meta if isinstance(meta, dict) else {}


def source_id(ref: dict) -> str:
    meta = _metadata(ref)
    return first_non_empty(meta, ["source", "collection"]).lower()


def is_canonical(ref: dict) -> bool:
    source = source_id(ref)
    return source in CANONICAL_SOURCES or "quran" in source or "hadith" in source


def is_relevant(ref: dict, keywords: list[str]) -> bool:
    text = str(ref.get("text") or "").lower()
    context = str(_metadata(ref).get("context") or "").lower()
    return any(keyword in text or keyword in context for keyword in keywords)


def _hadith_label(collection: str, meta: dict, allow_reference: bool) -> str:
    label = collection
    book = first_non_empty(meta, ["book_number", "book"])
    number = first_non_empty(meta, ["hadith_number", "number"])
    if book and number:
        return f"{label} Book {book}, Hadith {number}"
    reference = first_non_empty(meta, ["reference"])
    if allow_reference and reference:
        return f"{label} {reference}"
    return label


def citation_label(ref: dict) -> str:
    meta = _metadata(ref)
    if not meta:
        return "Islamic Source"

    source = first_non_empty(meta, ["source"]).lower()
    collection = first_non_empty(meta, ["collection"]).lower()

    if source == "quran":
        chapter = first_non_empty(meta, ["chapter", "surah"])
        verse = first_non_empty(meta, ["verse", "ayah"])
        if not (chapter and verse):
            return "Quran"
        label = f"Quran {chapter}:{verse}"
        name = first_non_empty(meta, ["name", "surah_name"])
        if name:
            label += f" (Surah {name})"
        return label
    if "bukhari" in (source, collection):
        return _hadith_label("Sahih Bukhari", meta, allow_reference=True)
    if "muslim" in (source, collection):
        return _hadith_label("Sahih Muslim", meta, allow_reference=False)

    raw_source = first_non_empty(meta, ["source"])
    if raw_source:
        label = raw_source[0].upper() + raw_source[1:]
        reference = first_non_empty(meta, ["reference", "citation"])
        return f"{label} {reference}" if reference else label
    return "Islamic Source"


def truncate_snippet(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text

    window = text[: limit - len(ELLIPSIS)]
    ends = [m.end() for m in SENTENCE_END.finditer(window)]
    if ends and ends[-1] > len(window) // 2:
        return window[: ends[-1] - 1] + ELLIPSIS
    return window.rstrip() + ELLIPSIS


def format_evidence(
    references: Iterable[dict] | None,
    query: str,
    max_items: int = 2,
    snippet_max_chars: int = 180,
) -> list[Evidence]:
    max_items = max(1, min(max_items, MAX_EVIDENCE))
    keywords = query_keywords(query, 2)
    refs = [r for r in references or [] if isinstance(r, dict)]
    relevant = [r for r in refs if is_relevant(r, keywords)]
    if not relevant:
        return []

    chosen = [r for r in relevant if is_canonical(r)][:max_items] or relevant[:max_items]
    return [
        Evidence(
            source=citation_label(ref),
            snippet=truncate_snippet(str(ref.get("text") or ""), snippet_max_chars),
        )
        for ref in chosen
    ]


GUIDANCE_TEMPLATE = (
    'The ruling on "{query}" requires careful consideration of Islamic sources. '
    "Please consult with a qualified Islamic scholar for specific guidance."
)


def fill_query(template: str, query: str, limit: int) -> str:
    """Format `template` with `query`, shortening the query first so the fixed wording survives."""
    room = limit - (len(template) - len("{query}"))
    if len(query) > room:
        query = truncate_words(query, max(room, len(ELLIPSIS)))
    return truncate_words(template.format(query=query), limit)


def guidance_evidence(query: str, snippet_max_chars: int = 180) -> Evidence:
    return Evidence(source="Islamic Guidance", snippet=fill_query(GUIDANCE_TEMPLATE, query, snippet_max_chars))


def cross_verify_quran(
    query: str,
    evidence: list[Evidence],
    base_url: str,
    snippet_max_chars: int = 180,
    timeout: float = 10.0,
    fetch: FetchJson = fetch_json,
) -> list[Evidence]:
    """Append the best matching verse from Al-Quran Cloud unless it is already cited.

    Returns `evidence` unchanged when the list is full, nothing matches, or the API fails.
    """
    if len(evidence) >= MAX_EVIDENCE:
        return evidence
    try:
        search = fetch(f"{base_url}/search/{quote(query)}/all/en", timeout=timeout)
        data = search.get("data")
        matches = data.get("matches") if isinstance(data, dict) else None
        if not isinstance(matches, list) or not matches or not isinstance(matches[0], dict):
            return evidence

        match = matches[0]
        surah = match.get("surah") if isinstance(match.get("surah"), dict) else {}
        surah_no = surah.get("number")
        ayah_no = match.get("numberInSurah")
        if not (surah_no and ayah_no):
            return evidence

        ref = f"{surah_no}:{ayah_no}"
        if any(e.source.startswith("Quran") and ref in e.source for e in evidence):
            return evidence

        verse = fetch(f"{base_url}/ayah/{ref}/en.asad", timeout=timeout)
        verse_data = verse.get("data") if isinstance(verse.get("data"), dict) else {}
        text = first_non_empty(verse_data, ["text"]) or first_non_empty(match, ["text"])
        if not text:
            return evidence
    except Exception as exc:
        # Any failure here keeps the primary evidence as is.
        logger.warning("Quran cross-verification failed: %s", exc, exc_info=not isinstance(exc, UpstreamError))
        return evidence

    source = f"Quran {ref}"
    name = first_non_empty(surah, ["englishName"])
    if name:
        source += f" ({name})"
    return evidence + [Evidence(source=source, snippet=truncate_snippet(text, snippet_max_chars))]
