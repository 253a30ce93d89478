"""Roster loading from the root configuration."""

from typing import Optional

import config
from src.competitor_signals.matcher import EntityMatcher
from src.competitor_signals.models import Competitor


def load_roster(entries: Optional[list[dict]] = None) -> list[Competitor]:
    """Build the immutable competitor roster (config.COMPETITORS by default)."""
    return [Competitor.from_dict(e) for e in (entries or config.COMPETITORS)]


def default_matcher(roster: Optional[list[Competitor]] = None) -> EntityMatcher:
    """Matcher over the roster with the configured denylist."""
    return EntityMatcher.from_competitors(
        roster or load_roster(), denylist=config.MATCH_DENYLIST
    )
