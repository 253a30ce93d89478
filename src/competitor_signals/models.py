"""Data models for competitor signals.

Canonical record shapes every source adapter emits and the scoring
engine consumes: Competitor -> SignalRecord -> RecordResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class SignalCategory(str, Enum):
    """Closed set of signal categories.

    Declaration order is the scoring evaluation order.
    """

    FUNDING = "funding"
    HIRING = "hiring"
    MARKETPLACE_INSTALL = "marketplace-install"
    NEWS = "news"
    SOCIAL = "social"
    CHANGELOG = "changelog"
    PRICING = "pricing"
    COMMUNITY_SIZE = "community-size"


class RecordOutcome(str, Enum):
    """What happened to a single record during scoring."""

    APPLIED = "applied"                  # Points awarded
    NO_CONTRIBUTION = "no_contribution"  # Attributed, but below every rule
    UNRESOLVED = "unresolved"            # Text matched no competitor
    MALFORMED = "malformed"              # Missing/non-numeric magnitude


@dataclass(frozen=True)
class Competitor:
    """One tracked competitor product.

    common_word marks a product whose slug and name are ordinary words
    ("continue"); it is then matched through its aliases only.
    """

    slug: str
    name: str
    aliases: tuple[str, ...] = ()
    common_word: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Competitor":
        return cls(
            slug=data["slug"],
            name=data.get("name", data["slug"]),
            aliases=tuple(data.get("aliases", ())),
            common_word=bool(data.get("common_word", False)),
        )


@dataclass
class SignalRecord:
    """Atomic unit of evidence about a competitor.

    Attributes:
        category: Which kind of signal this is.
        raw_text: Text used for entity matching (title, extension id, name).
        entity_slug: Resolved competitor slug, or None until matched.
        magnitude: Category-specific numeric payload (job delta, weekly
            install growth, member count). Left as received; the scorer
            validates it.
        timestamp: When the underlying event happened, if known.
        source: Adapter-level origin (vscode, chrome, hackernews, ...).
        metadata: Everything else the adapter kept (url, points, ...).
    """

    category: SignalCategory
    raw_text: str = ""
    entity_slug: Optional[str] = None
    magnitude: Any = None
    timestamp: Optional[datetime] = None
    source: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "raw_text": self.raw_text,
            "entity_slug": self.entity_slug,
            "magnitude": self.magnitude,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "source": self.source,
        }


@dataclass
class RecordResult:
    """Scoring outcome for one record."""

    record: SignalRecord
    outcome: RecordOutcome
    entity_slug: Optional[str] = None
    points: int = 0
    reason: str = ""

    @property
    def skipped(self) -> bool:
        return self.outcome in (RecordOutcome.UNRESOLVED, RecordOutcome.MALFORMED)
