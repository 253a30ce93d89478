"""Keyword sentiment for discussion titles.

A title is negative if any negative word appears, else positive if any
positive word appears, else neutral. Each post contributes its points to
its polarity bucket.
"""

import logging
from typing import Iterable, Optional

from src.competitor_signals.keywords import DEFAULT_KEYWORDS, KeywordTables
from src.competitor_signals.matcher import EntityMatcher
from src.competitor_signals.values import coerce_int
from src.cross_source.config import Polarity
from src.cross_source.models import SentimentTally

logger = logging.getLogger(__name__)


def classify_title(title: str, keywords: Optional[KeywordTables] = None) -> Polarity:
    keywords = keywords or DEFAULT_KEYWORDS
    lower = (title or "").lower()
    if any(w in lower for w in keywords.negative_words):
        return Polarity.NEGATIVE
    if any(w in lower for w in keywords.positive_words):
        return Polarity.POSITIVE
    return Polarity.NEUTRAL


def post_points(post: dict) -> int:
    """Discussion weight of a post; missing or non-numeric points count 0."""
    points = coerce_int(post.get("points", post.get("votesCount")))
    return points if points is not None and points > 0 else 0


def post_title(post: dict) -> str:
    return post.get("title") or post.get("name") or ""


def tally_by_entity(
    posts: Iterable[dict],
    matcher: EntityMatcher,
    keywords: Optional[KeywordTables] = None,
) -> dict[str, SentimentTally]:
    """Sum discussion points by polarity for every attributed entity.

    Posts that match no entity are ignored here; they still count toward
    theme clustering.
    """
    tallies: dict[str, SentimentTally] = {}
    for post in posts:
        if not isinstance(post, dict):
            continue
        title = post_title(post)
        slug = matcher.match(title)
        if slug is None:
            continue
        tally = tallies.setdefault(slug, SentimentTally())
        points = post_points(post)
        polarity = classify_title(title, keywords)
        if polarity == Polarity.NEGATIVE:
            tally.negative += points
        elif polarity == Polarity.POSITIVE:
            tally.positive += points
        else:
            tally.neutral += points
        tally.posts += 1
    return tallies
