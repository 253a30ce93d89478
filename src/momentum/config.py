"""Fixed point values for momentum scoring."""

from src.competitor_signals.models import SignalCategory


# Funding
MAJOR_FUNDING_POINTS = 50
MINOR_FUNDING_POINTS = 20

# Hiring: points per net new posting
POINTS_PER_NEW_JOB = 2

# Marketplace: weekly install growth per point, by store
INSTALLS_PER_POINT = {
    "vscode": 10_000,
    "chrome": 5_000,
}
DEFAULT_INSTALLS_PER_POINT = 10_000

# Mentions
NEWS_MENTION_POINTS = 5
SOCIAL_MENTION_POINTS = 3

# Changelog: one award per entity for a release inside the window
CHANGELOG_POINTS = 10
CHANGELOG_WINDOW_DAYS = 7

# Community size: (exclusive lower bound, points), highest tier first
COMMUNITY_TIERS = [
    (50_000, 15),
    (10_000, 10),
    (1_000, 5),
]

# Handler evaluation order; explanation lists follow it
SCORING_ORDER = [
    SignalCategory.FUNDING,
    SignalCategory.HIRING,
    SignalCategory.MARKETPLACE_INSTALL,
    SignalCategory.NEWS,
    SignalCategory.SOCIAL,
    SignalCategory.CHANGELOG,
    SignalCategory.COMMUNITY_SIZE,
]

SOURCE_LABELS = {
    "vscode": "VS Code",
    "chrome": "Chrome",
    "hackernews": "HN",
    "reddit": "Reddit",
    "producthunt": "Product Hunt",
}
