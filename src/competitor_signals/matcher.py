"""Entity matcher: resolve free text to a competitor slug.

Case-insensitive matching against an ordered alias table. The first
declared entity whose alias appears in the text wins, so the result never
depends on dict iteration or input order.
"""

import logging
import re
from typing import Iterable, Optional, Sequence

from src.competitor_signals.models import Competitor

logger = logging.getLogger(__name__)

# Not inside a longer word, and not the head of a version string ("v0.9")
_WORD_START = r"(?<![a-z0-9])"
_WORD_END = r"(?![a-z0-9])(?!\.\d)"


class EntityMatcher:
    """Resolves text to a slug via an ordered alias table.

    Args:
        alias_table: Ordered (slug, aliases) pairs. Earlier pairs win ties.
        denylist: Phrases stripped from the text before matching, for
            ordinary words that collide with a product name.
        whole_words: Match aliases only as whole words ("bolt" does not
            match "Thunderbolt"). Plain substring matching otherwise.

    Example:
        matcher = EntityMatcher([("windsurf", ["windsurf", "codeium"])])
        matcher.match("Codeium ships new IDE")  # -> "windsurf"
    """

    def __init__(
        self,
        alias_table: Sequence[tuple[str, Sequence[str]]],
        denylist: Optional[Iterable[str]] = None,
        whole_words: bool = False,
    ) -> None:
        self.whole_words = whole_words
        self._table: list[tuple[str, tuple[str, ...]]] = []
        self._patterns: dict[str, re.Pattern] = {}
        for slug, aliases in alias_table:
            normalized = tuple(a.lower() for a in aliases if a)
            self._table.append((slug, normalized))
            if whole_words and normalized:
                alternation = "|".join(
                    re.escape(a) for a in sorted(set(normalized), key=len, reverse=True)
                )
                self._patterns[slug] = re.compile(
                    f"{_WORD_START}(?:{alternation}){_WORD_END}"
                )
        # Longest phrases first so a short phrase never splits a longer one
        self._denylist = sorted(
            {d.lower() for d in (denylist or []) if d}, key=len, reverse=True
        )

    @classmethod
    def from_competitors(
        cls,
        competitors: Iterable[Competitor],
        denylist: Optional[Iterable[str]] = None,
    ) -> "EntityMatcher":
        """Build a whole-word matcher over slug, display name, then aliases.

        A competitor flagged common_word is matched by its aliases only.
        """
        table = []
        for comp in competitors:
            aliases = [] if comp.common_word else [comp.slug, comp.name]
            aliases.extend(comp.aliases)
            table.append((comp.slug, aliases))
        return cls(table, denylist=denylist, whole_words=True)

    @property
    def slugs(self) -> list[str]:
        return [slug for slug, _ in self._table]

    def _matches(self, slug: str, aliases: tuple[str, ...], lower: str) -> bool:
        if self.whole_words:
            pattern = self._patterns.get(slug)
            return bool(pattern and pattern.search(lower))
        return any(alias in lower for alias in aliases)

    def match(self, text: Optional[str]) -> Optional[str]:
        """Return the slug for text, or None when nothing matches."""
        if not text:
            return None
        lower = str(text).lower()
        for phrase in self._denylist:
            if phrase in lower:
                lower = lower.replace(phrase, " ")
        for slug, aliases in self._table:
            if self._matches(slug, aliases, lower):
                return slug
        logger.debug("No competitor match for %r", text[:80] if isinstance(text, str) else text)
        return None

    def match_first(self, *texts: Optional[str]) -> Optional[str]:
        """Try each text in turn; return the first successful match."""
        for text in texts:
            slug = self.match(text)
            if slug:
                return slug
        return None
