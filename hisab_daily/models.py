from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Verdict(str, Enum):
    SIN = "sin"
    NOT_SIN = "not_sin"
    CONTRADICTORY = "contradictory"


VERDICT_LABELS = {
    Verdict.SIN: "Sin (haram)",
    Verdict.NOT_SIN: "Not a sin (halal)",
    Verdict.CONTRADICTORY: "Scholars differ",
}


@dataclass(frozen=True)
class Evidence:
    source: str
    snippet: str

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "snippet": self.snippet}


@dataclass(frozen=True)
class VerificationResult:
    verdict: Verdict
    evidence: tuple[Evidence, ...] = field(default_factory=tuple)
    summary: str = ""
    cross_verified: bool = False
    provider: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "verdict": self.verdict.value,
            "evidence": [e.to_dict() for e in self.evidence],
            "summary": self.summary,
            "cross_verified": self.cross_verified,
        }


@dataclass(frozen=True)
class DailyCount:
    day: str
    count: int
    updated_at: str


@dataclass(frozen=True)
class TrendPoint:
    date: str
    count: int


@dataclass(frozen=True)
class User:
    id: int
    email: str
    created_at: str
