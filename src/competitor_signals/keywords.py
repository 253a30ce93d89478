"""Keyword tables used by scoring, detection and correlation.

Kept as data so callers can swap a table without touching control flow.
"""

import re
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_MAJOR_FUNDING_PATTERN = r"\$\d+[MB]|\braises\b|acquisition|acquired"

DEFAULT_FUNDING_KEYWORDS = [
    "funding", "raised", "series", "valuation", "acquired", "acquisition", "ipo",
]

DEFAULT_NEGATIVE_WORDS = [
    "problem", "issue", "wrong", "fail", "bad", "terrible", "broken", "bug",
]

DEFAULT_POSITIVE_WORDS = [
    "great", "awesome", "amazing", "love", "best", "excellent", "fantastic",
]

DEFAULT_THEME_BUCKETS = {
    "agent": ["agent", "autonomous", "agentic"],
    "safety": ["safety", "ethics", "constraint", "violation"],
    "local": ["local", "offline", "privacy", "on-device"],
    "enterprise": ["enterprise", "business", "team", "corporate"],
    "opensource": ["open source", "oss", "community", "free"],
}

DEFAULT_FEATURE_BUCKETS = {
    "agent": ["agent", "autonomous", "workflow"],
    "chat": ["chat", "conversation", "assistant"],
    "multimodel": ["gpt-4", "claude", "multi-model", "model selection"],
    "collaboration": ["team", "share", "collaborative", "multiplayer"],
}

DEFAULT_CATEGORY_BUCKETS = {
    "agent": ["agent", "cline"],
    "chat": ["chat", "copilot"],
    "completion": ["autocomplete", "tabnine"],
    "review": ["review", "pull request"],
}


@dataclass
class KeywordTables:
    """Swappable keyword heuristics.

    Attributes:
        major_funding_pattern: Regex marking a funding headline as major.
        funding_keywords: Substrings that make a news title funding news.
        negative_words: Checked first when classifying a discussion title.
        positive_words: Checked when no negative word matched.
        theme_buckets: Theme name -> substrings, for discussion clustering.
        feature_buckets: Feature name -> substrings, for release convergence.
        category_buckets: Category name -> substrings, for marketplace
            extension names.
    """

    major_funding_pattern: str = DEFAULT_MAJOR_FUNDING_PATTERN
    funding_keywords: list[str] = field(
        default_factory=lambda: list(DEFAULT_FUNDING_KEYWORDS)
    )
    negative_words: list[str] = field(
        default_factory=lambda: list(DEFAULT_NEGATIVE_WORDS)
    )
    positive_words: list[str] = field(
        default_factory=lambda: list(DEFAULT_POSITIVE_WORDS)
    )
    theme_buckets: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_THEME_BUCKETS.items()}
    )
    feature_buckets: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_FEATURE_BUCKETS.items()}
    )
    category_buckets: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORY_BUCKETS.items()}
    )
    _major_regex: Optional[re.Pattern] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def major_funding_regex(self) -> re.Pattern:
        if self._major_regex is None:
            self._major_regex = re.compile(self.major_funding_pattern, re.IGNORECASE)
        return self._major_regex

    def is_major_funding(self, title: str) -> bool:
        return bool(self.major_funding_regex.search(title or ""))

    def is_funding_title(self, title: str) -> bool:
        lower = (title or "").lower()
        return any(kw in lower for kw in self.funding_keywords)

    def buckets_for(self, text: str, buckets: dict[str, list[str]]) -> list[str]:
        """Return every bucket name with at least one keyword in text."""
        lower = (text or "").lower()
        return [
            name for name, words in buckets.items()
            if any(w in lower for w in words)
        ]


DEFAULT_KEYWORDS = KeywordTables()
