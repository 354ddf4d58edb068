"""Tests for the deed verifier, its provider fallback chain and the example scenarios."""

from __future__ import annotations

from http.client import IncompleteRead

import pytest

from hisab_daily.config import load_config
from hisab_daily.errors import InvalidQueryError, UpstreamError
from hisab_daily.models import Verdict
from hisab_daily.providers import Provider, ProviderAnswer
from hisab_daily.summary import DISAGREEMENT_CLAUSE
from hisab_daily.verification import DeedVerifier, fallback_result


class FakeProvider(Provider):
    def __init__(self, name: str, answer: str | None = None, references=None, error: Exception | None = None):
        self.name = name
        self.answer = answer
        self.references = references or []
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def ask(self, query: str, language: str = "en") -> ProviderAnswer:
        self.calls.append((query, language))
        if self.error is not None:
            raise self.error
        return ProviderAnswer(provider=self.name, answer=self.answer or "", references=self.references)


def down(name: str) -> FakeProvider:
    return FakeProvider(name, error=UpstreamError("connection refused", provider=name))


def test_alcohol_is_sin_with_relevant_evidence(config) -> None:
    provider = FakeProvider(
        "primary",
        answer=(
            "<p>Drinking alcohol is haram in Islam. Allah forbids intoxicants in the Quran, "
            "and the Prophet cursed the one who drinks it.</p>"
        ),
        references=[
            {"text": "Wudu is required before prayer.", "metadata": {"source": "quran", "chapter": 5, "verse": 6}},
            {
                "text": "O you who have believed, indeed, intoxicants, gambling and alcohol are defilement.",
                "metadata": {"source": "quran", "chapter": 5, "verse": 90},
            },
        ],
    )
    result = DeedVerifier(config, providers=[provider]).verify("drinking alcohol")

    assert result.verdict is Verdict.SIN
    assert [e.source for e in result.evidence] == ["Quran 5:90"]
    assert len(result.summary) <= 120
    assert "haram" in result.summary or "forbidden" in result.summary
    assert result.provider == "primary"


def test_singing_is_contradictory_with_clause(config) -> None:
    provider = FakeProvider("primary", answer="Regarding singing, scholars differ on this matter considerably.")
    result = DeedVerifier(config, providers=[provider]).verify("singing")

    assert result.verdict is Verdict.CONTRADICTORY
    assert DISAGREEMENT_CLAUSE in result.summary


def test_charity_is_not_sin(config) -> None:
    provider = FakeProvider("primary", answer="Giving charity is encouraged and permissible.")
    result = DeedVerifier(config, providers=[provider]).verify("charity")

    assert result.verdict is Verdict.NOT_SIN
    # No references share a keyword, so guidance text stands in for citations.
    assert result.evidence[0].source == "Islamic Guidance"


def test_all_providers_down_returns_conservative_result(config) -> None:
    providers = [down("fanar"), down("reminder.dev")]
    result = DeedVerifier(config, providers=providers).verify("fasting")

    assert result.verdict is Verdict.SIN
    assert len(result.evidence) == 1
    assert result.evidence[0].source == "Islamic Guidance"
    assert "fasting" in result.evidence[0].snippet
    assert all(len(p.calls) == 1 for p in providers)


def test_falls_through_to_secondary_provider(config) -> None:
    secondary = FakeProvider("secondary", answer="Backbiting is forbidden and is haram.")
    result = DeedVerifier(config, providers=[down("primary"), secondary]).verify("backbiting")

    assert result.provider == "secondary"
    assert result.verdict is Verdict.SIN


def test_stops_at_first_success(config) -> None:
    first = FakeProvider("first", answer="Smiling is permissible and is encouraged for smiling people.")
    second = FakeProvider("second", answer="unused")
    DeedVerifier(config, providers=[first, second]).verify("smiling")

    assert second.calls == []


def test_unexpected_provider_bug_is_absorbed(config) -> None:
    broken = FakeProvider("broken", error=KeyError("answer"))
    result = DeedVerifier(config, providers=[broken]).verify("lying")
    assert result == fallback_result("lying")


@pytest.mark.parametrize("query", ["", "   ", "\n"])
def test_blank_query_rejected_before_any_call(config, query: str) -> None:
    provider = FakeProvider("primary", answer="is haram")
    with pytest.raises(InvalidQueryError):
        DeedVerifier(config, providers=[provider]).verify(query)
    assert provider.calls == []


def test_unknown_language_falls_back_to_english(config) -> None:
    provider = FakeProvider("primary", answer="Gossip is haram.")
    DeedVerifier(config, providers=[provider]).verify("gossip", language="fr")
    assert provider.calls == [("gossip", "en")]


def test_cross_verification_adds_quran_verse() -> None:
    config = load_config(cross_verify=True, alquran_api_url="https://quran.test/v1/")

    def fake_fetch(url: str, **kwargs) -> dict:
        if "/search/" in url:
            return {"data": {"matches": [{"numberInSurah": 261, "surah": {"number": 2, "englishName": "Al-Baqara"}}]}}
        return {"data": {"text": "The example of those who spend their wealth in the way of Allah..."}}

    provider = FakeProvider("primary", answer="Charity is encouraged and is permissible.")
    result = DeedVerifier(config, providers=[provider], fetch=fake_fetch).verify("charity")

    assert result.cross_verified is True
    assert result.evidence[-1].source == "Quran 2:261 (Al-Baqara)"
    assert len(result.evidence) <= 3


def test_result_serializes_to_contract(config) -> None:
    payload = fallback_result("music").to_dict()
    assert payload["verdict"] == "sin"
    assert payload["evidence"][0]["source"] == "Islamic Guidance"
    assert set(payload) == {"verdict", "evidence", "summary", "cross_verified"}


def test_cross_check_failure_keeps_provider_result() -> None:
    config = load_config(cross_verify=True)

    def truncated_fetch(url: str, **kwargs) -> dict:
        raise IncompleteRead(b'{"data": {"mat')

    provider = FakeProvider("primary", answer="Giving charity is encouraged and permissible.")
    result = DeedVerifier(config, providers=[provider], fetch=truncated_fetch).verify("charity")

    assert result.verdict is Verdict.NOT_SIN
    assert result.provider == "primary"
    assert result.cross_verified is False
    assert [e.source for e in result.evidence] == ["Islamic Guidance"]


def test_pipeline_bug_after_answer_returns_bounded_fallback(config, monkeypatch) -> None:
    from hisab_daily import verification

    def broken_summary(*args, **kwargs):
        raise RuntimeError("summary exploded")

    monkeypatch.setattr(verification, "summarize", broken_summary)
    first = FakeProvider("first", answer="Lying is haram.")
    second = FakeProvider("second", answer="unused")
    result = DeedVerifier(config, providers=[first, second]).verify("lying")

    assert result == fallback_result("lying", config.snippet_max_chars, config.summary_max_chars)
    assert second.calls == []


LONG_QUERY = " ".join(["borrowing money from a relative to pay for a wedding celebration"] * 5)


def test_fallback_respects_bounds_for_long_queries() -> None:
    result = fallback_result(LONG_QUERY, snippet_max_chars=180, summary_max_chars=120)

    assert len(result.summary) <= 120
    assert len(result.evidence[0].snippet) <= 180
    assert '"borrowing money' in result.summary
    assert result.summary.endswith("Please consult authentic Islamic sources.")
    assert result.evidence[0].snippet.endswith("such as the Quran and Hadith.")


def test_all_providers_down_long_query_is_bounded(config) -> None:
    result = DeedVerifier(config, providers=[down("fanar")]).verify(LONG_QUERY)

    assert len(result.summary) <= config.summary_max_chars
    assert all(len(e.snippet) <= config.snippet_max_chars for e in result.evidence)


def test_guidance_for_long_query_is_bounded(config) -> None:
    provider = FakeProvider("primary", answer="It is encouraged and permissible to help a relative.")
    result = DeedVerifier(config, providers=[provider]).verify(LONG_QUERY)

    assert result.evidence[0].source == "Islamic Guidance"
    assert len(result.evidence[0].snippet) <= config.snippet_max_chars
