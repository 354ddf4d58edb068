"""Deed verification: provider fallback chain plus the verdict, evidence and summary pipeline."""

from __future__ import annotations

import logging
from typing import Sequence

from .config import AppConfig
from .errors import InvalidQueryError, UpstreamError
from .evidence import cross_verify_quran, fill_query, format_evidence, guidance_evidence
from .http import FetchJson, fetch_json
from .models import Evidence, VerificationResult, Verdict
from .providers import Provider, ProviderAnswer, build_providers
from .summary import summarize
from .verdict import classify

logger = logging.getLogger(__name__)

LANGUAGES = ("en", "ar")

FALLBACK_SNIPPET = (
    'For guidance on "{query}", please consult with a qualified Islamic scholar '
    "or refer to authentic Islamic sources such as the Quran and Hadith."
)
FALLBACK_SUMMARY = 'Unable to provide specific guidance on "{query}". Please consult authentic Islamic sources.'


def fallback_result(query: str, snippet_max_chars: int = 180, summary_max_chars: int = 120) -> VerificationResult:
    return VerificationResult(
        verdict=Verdict.SIN,
        evidence=(
            Evidence(
                source="Islamic Guidance",
                snippet=fill_query(FALLBACK_SNIPPET, query, snippet_max_chars),
            ),
        ),
        summary=fill_query(FALLBACK_SUMMARY, query, summary_max_chars),
    )


class DeedVerifier:
    """Answers "is this deed a sin?" without ever raising for upstream trouble.

    Providers are tried in order and the first usable answer wins. If none answers, the caller
    gets the conservative `fallback_result`.
    """

    def __init__(
        self,
        config: AppConfig,
        providers: Sequence[Provider] | None = None,
        fetch: FetchJson = fetch_json,
    ) -> None:
        self.config = config
        self.fetch = fetch
        self.providers = list(providers) if providers is not None else build_providers(config, fetch)

    def verify(self, query: str, language: str = "en") -> VerificationResult:
        query = " ".join((query or "").split())
        if not query:
            raise InvalidQueryError("Please enter a deed to verify")
        if language not in LANGUAGES:
            language = "en"

        logger.debug("Verifying deed query %r (%s)", query, language)
        for provider in self.providers:
            try:
                answer = provider.ask(query, language)
            except UpstreamError as exc:
                logger.warning("Provider %s unavailable: %s", provider.name, exc)
                continue
            except Exception:
                logger.exception("Provider %s failed unexpectedly", provider.name)
                continue

            try:
                return self.build_result(query, language, answer)
            except Exception:
                logger.exception("Could not process answer from %s", provider.name)
                return self.fallback(query)

        logger.warning("All %d providers failed, returning conservative result", len(self.providers))
        return self.fallback(query)

    def fallback(self, query: str) -> VerificationResult:
        return fallback_result(query, self.config.snippet_max_chars, self.config.summary_max_chars)

    def build_result(self, query: str, language: str, answer: ProviderAnswer) -> VerificationResult:
        verdict = classify(answer.answer, query, language)
        evidence = format_evidence(
            answer.references,
            query,
            snippet_max_chars=self.config.snippet_max_chars,
        )
        if not evidence:
            evidence = [guidance_evidence(query, self.config.snippet_max_chars)]

        primary_count = len(evidence)
        if self.config.cross_verify:
            evidence = cross_verify_quran(
                query,
                evidence,
                self.config.alquran_api_url,
                snippet_max_chars=self.config.snippet_max_chars,
                timeout=self.config.http_timeout_s,
                fetch=self.fetch,
            )

        return VerificationResult(
            verdict=verdict,
            evidence=tuple(evidence),
            summary=summarize(answer.answer, verdict, self.config.summary_max_chars, language),
            cross_verified=len(evidence) > primary_count,
            provider=answer.provider,
        )
