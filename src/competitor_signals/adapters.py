"""Source adapters: named JSON documents -> raw batches -> SignalRecords.

Each upstream scraper drops one JSON document per source into the data
directory. Shapes vary per source and across versions, so every loader
accepts the known variants, substitutes an empty collection for a missing
document and skips (and counts) records it cannot use.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from src.competitor_signals.matcher import EntityMatcher
from src.competitor_signals.models import SignalCategory, SignalRecord
from src.competitor_signals.values import coerce_int, parse_timestamp

logger = logging.getLogger(__name__)

SOCIAL_CHANNELS = {
    "hackerNews": "hackernews",
    "reddit": "reddit",
    "productHunt": "producthunt",
}


@dataclass
class LoadReport:
    """Observable record of what loading skipped."""

    missing: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    malformed: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def skip(self, source: str, reason: str) -> None:
        self.malformed[source] += 1
        logger.warning("Skipping malformed %s record: %s", source, reason)

    @property
    def malformed_count(self) -> int:
        return sum(self.malformed.values())

    def to_dict(self) -> dict:
        return {
            "missing": list(self.missing),
            "unreadable": list(self.unreadable),
            "malformed": dict(self.malformed),
        }


@dataclass
class SourceBundle:
    """Pre-aggregation per-source data for one run.

    Attributes:
        funding: Funding articles ({competitor|title, url, date}).
        hiring_current: slug -> open job count today.
        hiring_history: Dated count entries embedded in the hiring document.
        vscode: Extension id -> {installs, averageRating, weeklyGrowth}.
        chrome: Extension id -> {installs|users, weeklyGrowth}.
        news: News articles ({title, url, source, date}).
        social: Channel (hackerNews, reddit, productHunt) -> posts.
        releases: Releases ({company, tag, publishedAt, description}).
        pricing_changes: Pricing-page diff events ({company, date}).
        discord: slug -> {memberCount}.
    """

    funding: list[dict] = field(default_factory=list)
    hiring_current: dict[str, int] = field(default_factory=dict)
    hiring_history: list[dict] = field(default_factory=list)
    vscode: dict[str, dict] = field(default_factory=dict)
    chrome: dict[str, dict] = field(default_factory=dict)
    news: list[dict] = field(default_factory=list)
    social: dict[str, list[dict]] = field(default_factory=dict)
    releases: list[dict] = field(default_factory=list)
    pricing_changes: list[dict] = field(default_factory=list)
    discord: dict[str, dict] = field(default_factory=dict)

    @property
    def discussions(self) -> list[dict]:
        """All discussion posts across social channels, in channel order."""
        posts = []
        for channel in SOCIAL_CHANNELS:
            posts.extend(self.social.get(channel, []))
        return posts


# ── Document loading ─────────────────────────────────────────────────


def read_document(path: Path, report: Optional[LoadReport] = None) -> Any:
    """Read one JSON document. Missing or unreadable documents return None."""
    report = report if report is not None else LoadReport()
    if not path.exists():
        logger.info("Source document %s not found, treating as empty", path.name)
        report.missing.append(path.name)
        return None
    try:
        with open(path) as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read source document %s: %s", path.name, e)
        report.unreadable.append(path.name)
        return None


def _as_list(doc: Any, *keys: str) -> list:
    if isinstance(doc, list):
        return doc
    if isinstance(doc, dict):
        for key in keys:
            value = doc.get(key)
            if isinstance(value, list):
                return value
    return []


def _as_map(doc: Any, *keys: str) -> dict:
    if isinstance(doc, dict):
        for key in keys:
            value = doc.get(key)
            if isinstance(value, dict):
                return value
        if not keys or not any(k in doc for k in keys):
            return doc
    return {}


def _records(items: list, source: str, report: LoadReport, *required: str) -> list[dict]:
    """Keep dict items that carry at least one of the required keys."""
    kept = []
    for item in items:
        if not isinstance(item, dict):
            report.skip(source, f"expected object, got {type(item).__name__}")
            continue
        if required and not any(item.get(k) for k in required):
            report.skip(source, f"missing {'/'.join(required)}")
            continue
        kept.append(item)
    return kept


def _extensions(doc: Any, source: str, report: LoadReport) -> dict[str, dict]:
    """Normalize marketplace data to {extension_id: data}."""
    result: dict[str, dict] = {}
    if isinstance(doc, dict) and isinstance(doc.get("extensions"), list):
        doc = doc["extensions"]
    if isinstance(doc, list):
        for item in doc:
            ext_id = item.get("extensionId") or item.get("name") if isinstance(item, dict) else None
            if not ext_id:
                report.skip(source, "extension without id")
                continue
            result[str(ext_id)] = item
        return result
    for ext_id, data in _as_map(doc, "extensions").items():
        if not isinstance(data, dict):
            report.skip(source, f"extension {ext_id} is not an object")
            continue
        result[str(ext_id)] = data
    return result


def _hiring_counts(raw: Any, report: LoadReport) -> dict[str, int]:
    counts: dict[str, int] = {}
    if not isinstance(raw, dict):
        return counts
    for slug, value in raw.items():
        if isinstance(value, dict):
            value = value.get("count", value.get("estimatedCount"))
        count = coerce_int(value)
        if count is None:
            report.skip("hiring", f"non-numeric job count for {slug}")
            continue
        counts[slug] = count
    return counts


def load_sources(
    data_dir: str | Path,
    files: dict[str, str],
    report: Optional[LoadReport] = None,
) -> tuple[SourceBundle, LoadReport]:
    """Load every named source document from data_dir.

    Args:
        data_dir: Directory holding the source documents.
        files: Source name -> file name (see config.SOURCE_FILES).
        report: Existing report to extend.

    Returns:
        (SourceBundle, LoadReport). Never raises for bad input.
    """
    report = report if report is not None else LoadReport()
    base = Path(data_dir)
    docs = {
        name: read_document(base / filename, report)
        for name, filename in files.items()
    }
    bundle = SourceBundle()

    bundle.funding = _records(
        _as_list(docs.get("funding"), "funding", "articles"),
        "funding", report, "title", "competitor",
    )

    hiring = docs.get("hiring")
    if isinstance(hiring, dict):
        bundle.hiring_current = _hiring_counts(hiring.get("current"), report)
        bundle.hiring_history = _records(
            _as_list(hiring, "history", "entries"), "hiring", report, "date",
        )

    bundle.vscode = _extensions(docs.get("vscode"), "vscode", report)
    bundle.chrome = _extensions(docs.get("chrome"), "chrome", report)

    bundle.news = _records(
        _as_list(docs.get("news"), "articles", "allRelevantArticles"),
        "news", report, "title",
    )

    social = docs.get("social")
    if isinstance(social, dict):
        for channel in SOCIAL_CHANNELS:
            bundle.social[channel] = _records(
                _as_list(social.get(channel)), channel, report, "title", "name",
            )

    bundle.releases = _records(
        _as_list(docs.get("releases"), "recentReleases", "releases"),
        "releases", report, "company", "slug",
    )
    bundle.pricing_changes = _records(
        _as_list(docs.get("pricing"), "changes"),
        "pricing", report, "company", "slug",
    )

    for slug, server in _as_map(docs.get("discord"), "servers").items():
        if not isinstance(server, dict):
            report.skip("discord", f"server {slug} is not an object")
            continue
        bundle.discord[slug] = server

    logger.info(
        "Loaded sources: %d funding, %d news, %d releases, %d pricing changes, "
        "%d missing documents, %d malformed records",
        len(bundle.funding), len(bundle.news), len(bundle.releases),
        len(bundle.pricing_changes), len(report.missing), report.malformed_count,
    )
    return bundle, report


# ── Signal record construction ───────────────────────────────────────


def resolve_entity(
    matcher: EntityMatcher, item: dict, *text_keys: str
) -> Optional[str]:
    """Slug from an explicit known `slug` field, else the first matching text."""
    slug = item.get("slug")
    if slug and slug in matcher.slugs:
        return slug
    return matcher.match_first(*(item.get(k) for k in text_keys))


def build_signal_records(
    bundle: SourceBundle,
    matcher: EntityMatcher,
    hiring_deltas: Optional[dict[str, int]] = None,
) -> list[SignalRecord]:
    """Flatten a SourceBundle into SignalRecords.

    Entity resolution happens here; unresolved records are still emitted
    with entity_slug=None so the scorer can count them.

    Args:
        bundle: Loaded per-source data.
        matcher: Entity matcher shared with detection and correlation.
        hiring_deltas: slug -> net new postings vs the prior period.
    """
    records: list[SignalRecord] = []

    for item in bundle.funding:
        title = item.get("title") or ""
        records.append(SignalRecord(
            category=SignalCategory.FUNDING,
            raw_text=item.get("competitor") or title,
            entity_slug=resolve_entity(matcher, item, "competitor", "title"),
            timestamp=parse_timestamp(item.get("date")),
            source="funding",
            metadata={"title": title, "url": item.get("url", "")},
        ))

    for slug, delta in (hiring_deltas or {}).items():
        current = bundle.hiring_current.get(slug)
        records.append(SignalRecord(
            category=SignalCategory.HIRING,
            raw_text=f"{slug}: {current} jobs ({delta})",
            entity_slug=slug if slug in matcher.slugs else matcher.match(slug),
            magnitude=delta,
            source="hiring",
            metadata={"current": current},
        ))

    for source, extensions in (("vscode", bundle.vscode), ("chrome", bundle.chrome)):
        for ext_id, data in extensions.items():
            records.append(SignalRecord(
                category=SignalCategory.MARKETPLACE_INSTALL,
                raw_text=ext_id,
                entity_slug=matcher.match_first(
                    ext_id, data.get("name"), data.get("publisher"),
                ),
                magnitude=data.get("weeklyGrowth"),
                source=source,
                metadata={"installs": data.get("installs", data.get("users"))},
            ))

    for item in bundle.news:
        records.append(SignalRecord(
            category=SignalCategory.NEWS,
            raw_text=item["title"],
            entity_slug=resolve_entity(matcher, item, "title"),
            timestamp=parse_timestamp(item.get("date")),
            source=item.get("source", "news"),
            metadata={"url": item.get("url", "")},
        ))

    for channel, source in SOCIAL_CHANNELS.items():
        for item in bundle.social.get(channel, []):
            text = item.get("title") or item.get("name") or ""
            records.append(SignalRecord(
                category=SignalCategory.SOCIAL,
                raw_text=text,
                entity_slug=resolve_entity(matcher, item, "title", "name"),
                timestamp=parse_timestamp(item.get("date") or item.get("created_at")),
                source=source,
                metadata={"points": item.get("points", 0), "url": item.get("url", "")},
            ))

    for item in bundle.releases:
        records.append(SignalRecord(
            category=SignalCategory.CHANGELOG,
            raw_text=item.get("company") or item.get("slug") or "",
            entity_slug=resolve_entity(matcher, item, "company"),
            timestamp=parse_timestamp(item.get("publishedAt") or item.get("date")),
            source="releases",
            metadata={
                "tag": item.get("tag", ""),
                "description": item.get("description", ""),
            },
        ))

    for item in bundle.pricing_changes:
        records.append(SignalRecord(
            category=SignalCategory.PRICING,
            raw_text=item.get("company") or item.get("slug") or "",
            entity_slug=resolve_entity(matcher, item, "company"),
            timestamp=parse_timestamp(item.get("date")),
            source="pricing",
        ))

    for key, server in bundle.discord.items():
        records.append(SignalRecord(
            category=SignalCategory.COMMUNITY_SIZE,
            raw_text=server.get("name") or key,
            entity_slug=key if key in matcher.slugs else matcher.match_first(
                key, server.get("name"),
            ),
            magnitude=server.get("memberCount"),
            source="discord",
        ))

    return records
