"""Alert records emitted by the trend detectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from src.score_history.models import ScoreSnapshot
from src.trend_alerts.config import AlertSeverity, AlertType


@dataclass
class Alert:
    """A flagged significant change, recomputed every run.

    Attributes:
        alert_type: Which detector raised it.
        entity_slug: Competitor slug, or None when the subject is unattributed.
        severity: high / medium / low.
        message: One-line human summary.
        delta: Absolute change (jobs, installs, rank positions), if any.
        percent: Rounded percent change, if any.
        details: Detector-specific extras (url, ranks, counts).
    """

    alert_type: AlertType
    entity_slug: Optional[str]
    severity: AlertSeverity
    message: str
    delta: Optional[int] = None
    percent: Optional[int] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.alert_type.value,
            "entity": self.entity_slug,
            "severity": self.severity.value,
            "message": self.message,
        }
        if self.delta is not None:
            data["delta"] = self.delta
        if self.percent is not None:
            data["percent"] = self.percent
        if self.details:
            data["details"] = dict(self.details)
        return data


@dataclass
class TrendInputs:
    """Everything the detectors compare, gathered for one run.

    Attributes:
        hiring_series: Job-count snapshots, date ordered.
        momentum_series: Momentum score snapshots, date ordered.
        installs_current: Today's marketplace data {extension_id: {...}}.
        installs_previous: Most recent archived marketplace data, if any.
        pricing_changes: Pricing-page diff events ({company|slug, date}).
        articles: News and funding articles ({title, url, source}).
        as_of: Reference time for recency windows.
    """

    hiring_series: Sequence[ScoreSnapshot] = ()
    momentum_series: Sequence[ScoreSnapshot] = ()
    installs_current: dict[str, Any] = field(default_factory=dict)
    installs_previous: Optional[Any] = None
    pricing_changes: Sequence[dict] = ()
    articles: Sequence[dict] = ()
    as_of: Optional[datetime] = None
