"""Tests for the three-way verdict classifier."""

from __future__ import annotations

import pytest

from hisab_daily.models import Verdict
from hisab_daily.verdict import classify, count_markers, query_keywords


def test_no_markers_defaults_to_sin() -> None:
    assert classify("Giving charity helps the poor in your community.", "charity") is Verdict.SIN


def test_empty_answer_is_sin() -> None:
    assert classify("", "charity") is Verdict.SIN
    assert classify("   ", "charity") is Verdict.SIN


@pytest.mark.parametrize(
    "answer",
    [
        "Singing is debated. Some say it is haram, others that it is halal.",
        "Scholars differ on this matter, though music is forbidden by many.",
        "Music is permissible and is encouraged at weddings, but this depends on the lyrics.",
    ],
)
def test_any_uncertainty_marker_is_contradictory(answer: str) -> None:
    assert classify(answer, "singing music") is Verdict.CONTRADICTORY


def test_permissible_with_shared_keyword_is_not_sin() -> None:
    answer = "Giving charity is encouraged and is permissible in Islam."
    assert classify(answer, "charity") is Verdict.NOT_SIN


def test_permissible_without_shared_keyword_is_sin() -> None:
    answer = "Trade is permissible and is encouraged."
    assert classify(answer, "gambling online") is Verdict.SIN


def test_forbidden_marker_is_sin() -> None:
    answer = "Drinking alcohol is haram. Allah forbids intoxicants."
    assert classify(answer, "drinking alcohol") is Verdict.SIN


def test_tie_between_permissible_and_forbidden_is_sin() -> None:
    answer = "Eating this meat is halal only when slaughtered properly, otherwise it is haram."
    assert classify(answer, "eating meat") is Verdict.SIN


def test_short_query_words_do_not_count_as_overlap() -> None:
    # "eat" is only three letters, so it cannot establish relevance on its own.
    answer = "To eat is permissible."
    assert classify(answer, "eat") is Verdict.SIN


def test_arabic_markers() -> None:
    assert classify("شرب الخمر حرام", "شرب الخمر", language="ar") is Verdict.SIN
    assert classify("الصدقة مستحب في الإسلام", "الصدقة", language="ar") is Verdict.NOT_SIN


def test_query_keywords_strip_punctuation() -> None:
    assert query_keywords("Is smoking, allowed?", 3) == ["smoking", "allowed"]


def test_count_markers_counts_distinct_phrases() -> None:
    assert count_markers("it is haram, it is haram", ("is haram", "is forbidden")) == 1
