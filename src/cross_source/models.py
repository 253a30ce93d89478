"""Pattern records produced by the correlator."""

from dataclasses import dataclass, field
from typing import Any, Optional

from src.cross_source.config import PatternType


@dataclass
class Pattern:
    """A correlation spanning several signal categories or several entities.

    Attributes:
        pattern_type: Which finder produced it.
        entities: Involved competitor slugs, in discovery order.
        message: One-line human summary.
        strength: Ordering weight; only some finders assign one.
        details: Finder-specific extras.
    """
    pattern_type: PatternType
    entities: list[str] = field(default_factory=list)
    message: str = ""
    strength: Optional[float] = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def sort_weight(self) -> float:
        return self.strength if self.strength is not None else 0.0

    def to_dict(self) -> dict:
        data = {
            "type": self.pattern_type.value,
            "entities": list(self.entities),
            "message": self.message,
        }
        if self.strength is not None:
            data["strength"] = self.strength
        if self.details:
            data["details"] = dict(self.details)
        return data


@dataclass
class SentimentTally:
    """Discussion points by polarity for one entity."""
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    posts: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral

    def to_dict(self) -> dict:
        return {
            "positive": self.positive,
            "negative": self.negative,
            "neutral": self.neutral,
            "posts": self.posts,
        }
