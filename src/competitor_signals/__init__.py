"""Competitor Signals.

Canonical signal records, the competitor roster, entity matching and the
source adapters that feed the momentum engine.

Example:
    from src.competitor_signals import (
        EntityMatcher, load_roster, load_sources, build_signal_records,
    )

    roster = load_roster()
    matcher = EntityMatcher.from_competitors(roster)
    bundle, report = load_sources("data", SOURCE_FILES)
    records = build_signal_records(bundle, matcher)
"""

from src.competitor_signals.models import (
    Competitor,
    RecordOutcome,
    RecordResult,
    SignalCategory,
    SignalRecord,
)
from src.competitor_signals.keywords import (
    DEFAULT_KEYWORDS,
    KeywordTables,
)
from src.competitor_signals.errors import HistoryStoreError, IntelError, OutputWriteError
from src.competitor_signals.matcher import EntityMatcher
from src.competitor_signals.roster import default_matcher, load_roster
from src.competitor_signals.values import coerce_int, date_key, parse_timestamp
from src.competitor_signals.adapters import (
    LoadReport,
    SourceBundle,
    build_signal_records,
    load_sources,
    read_document,
)

__all__ = [
    # Models
    "Competitor",
    "RecordOutcome",
    "RecordResult",
    "SignalCategory",
    "SignalRecord",
    # Keywords
    "DEFAULT_KEYWORDS",
    "KeywordTables",
    # Errors
    "HistoryStoreError",
    "IntelError",
    "OutputWriteError",
    # Matching
    "EntityMatcher",
    "default_matcher",
    "load_roster",
    # Values
    "coerce_int",
    "date_key",
    "parse_timestamp",
    # Adapters
    "LoadReport",
    "SourceBundle",
    "build_signal_records",
    "load_sources",
    "read_document",
]
