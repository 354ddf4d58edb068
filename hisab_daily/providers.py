"""Upstream text-answer providers for the deed checker.

Each provider turns a deed query into a raw answer plus raw references in the common shape
``{"text": str, "metadata": {...}}``. Any failure is raised as UpstreamError so the verifier can
move on to the next provider.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import AppConfig
from .errors import UpstreamError
from .http import FetchJson, fetch_json

logger = logging.getLogger(__name__)

QUESTION_TEMPLATES = {
    "en": (
        "Is {query} permissible (halal) or forbidden (haram) in Islam? "
        "Please provide evidence from Quran and Hadith."
    ),
    "ar": "هل {query} حلال أم حرام في الإسلام؟ يرجى تقديم أدلة من القرآن والسنة.",
}

FANAR_SYSTEM_PROMPTS = {
    "en": (
        "You are an Islamic scholar specialized in Islamic jurisprudence. When asked about a deed, "
        "state clearly whether it is permissible (halal) or forbidden (haram), give a one sentence "
        "explanation, then cite evidence from the Quran and Sunnah. If scholars differ, say so."
    ),
    "ar": (
        "أنت عالم إسلامي متخصص في الفقه. سيسألك المستخدم عن حكم فعل معين. "
        "بين بوضوح هل هو حلال أم حرام، مع تفسير موجز والأدلة من القرآن والسنة. "
        "إذا اختلف العلماء فاذكر ذلك."
    ),
}

FANAR_USER_PROMPTS = {
    "en": "What is the Islamic ruling on: {query}? Provide evidence.",
    "ar": "ما حكم: {query}؟ مع الأدلة.",
}


@dataclass(frozen=True)
class ProviderAnswer:
    provider: str
    answer: str
    references: list[dict] = field(default_factory=list)


class Provider:
    name = "provider"

    def ask(self, query: str, language: str = "en") -> ProviderAnswer:
        raise NotImplementedError


class ReminderProvider(Provider):
    """Reminder.dev search API. Free, no key."""

    name = "reminder.dev"

    def __init__(self, url: str, timeout: float = 10.0, fetch: FetchJson = fetch_json) -> None:
        self.url = url
        self.timeout = timeout
        self.fetch = fetch

    def ask(self, query: str, language: str = "en") -> ProviderAnswer:
        question = QUESTION_TEMPLATES.get(language, QUESTION_TEMPLATES["en"]).format(query=query)
        payload = self.fetch(self.url, payload={"q": question}, timeout=self.timeout)

        answer = payload.get("answer")
        if not isinstance(answer, str) or not answer.strip():
            raise UpstreamError("No answer in Reminder.dev response", provider=self.name)

        references = payload.get("references")
        if not isinstance(references, list):
            references = []
        return ProviderAnswer(
            provider=self.name,
            answer=answer,
            references=[r for r in references if isinstance(r, dict)],
        )


class FanarProvider(Provider):
    """Fanar chat completions with the Islamic-RAG model. Needs an API key."""

    name = "fanar"

    def __init__(
        self,
        url: str,
        api_key: str,
        model: str = "Islamic-RAG",
        timeout: float = 10.0,
        fetch: FetchJson = fetch_json,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.fetch = fetch

    def request_body(self, query: str, language: str) -> dict:
        lang = language if language in FANAR_SYSTEM_PROMPTS else "en"
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": FANAR_SYSTEM_PROMPTS[lang]},
                {"role": "user", "content": FANAR_USER_PROMPTS[lang].format(query=query)},
            ],
            "max_tokens": 1000,
            "temperature": 0.1,
        }

    def ask(self, query: str, language: str = "en") -> ProviderAnswer:
        payload = self.fetch(
            self.url,
            payload=self.request_body(query, language),
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise UpstreamError("No choices in Fanar response", provider=self.name)
        message = choices[0].get("message")
        if not isinstance(message, dict):
            raise UpstreamError("No message in Fanar response", provider=self.name)
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise UpstreamError("Empty Fanar answer", provider=self.name)

        references = []
        for ref in message.get("references") or []:
            if not isinstance(ref, dict):
                continue
            references.append(
                {
                    "text": str(ref.get("content") or ""),
                    "metadata": {"source": str(ref.get("source") or "")},
                }
            )
        return ProviderAnswer(provider=self.name, answer=content, references=references)


def build_providers(config: AppConfig, fetch: FetchJson = fetch_json) -> list[Provider]:
    providers: list[Provider] = []
    if config.fanar_enabled:
        providers.append(
            FanarProvider(
                config.fanar_api_url,
                config.fanar_api_key or "",
                model=config.fanar_model,
                timeout=config.http_timeout_s,
                fetch=fetch,
            )
        )
    else:
        logger.info("FANAR_API_KEY not configured, using Reminder.dev only")
    providers.append(ReminderProvider(config.reminder_api_url, timeout=config.http_timeout_s, fetch=fetch))
    return providers
