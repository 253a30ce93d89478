"""Configuration for the competitive momentum engine."""

# Competitor roster. Declaration order is the matcher tie-break: when two
# entities' aliases both appear in a text, the earlier entry wins.
# common_word entries are matched by their aliases only.
COMPETITORS = [
    {"slug": "cursor", "name": "Cursor", "aliases": ["cursor.sh", "cursor.com", "cursor ai"]},
    {"slug": "cognition", "name": "Devin", "aliases": ["devin ai", "cognition.ai", "cognition labs"]},
    {"slug": "replit", "name": "Replit", "aliases": ["replit.com"]},
    {"slug": "windsurf", "name": "Windsurf", "aliases": ["codeium", "codeium.com"]},
    {"slug": "copilot", "name": "GitHub Copilot", "aliases": ["copilot", "github copilot"]},
    {"slug": "tabnine", "name": "Tabnine", "aliases": ["tabnine.com"]},
    {"slug": "amazonq", "name": "Amazon Q", "aliases": ["amazon q developer", "codewhisperer", "aws q"]},
    {"slug": "cody", "name": "Sourcegraph Cody", "aliases": ["cody", "sourcegraph"]},
    {
        "slug": "continue",
        "name": "Continue",
        "aliases": ["continue.dev", "continuedev", "continue.continue"],
        "common_word": True,
    },
    {"slug": "supermaven", "name": "Supermaven", "aliases": ["supermaven.com"]},
    {"slug": "augment", "name": "Augment Code", "aliases": ["augmentcode", "augment code"]},
    {"slug": "lovable", "name": "Lovable", "aliases": ["lovable.dev", "gpt engineer"]},
    {"slug": "poolside", "name": "Poolside", "aliases": ["poolside.ai"]},
    {"slug": "bolt", "name": "Bolt", "aliases": ["bolt.new", "stackblitz bolt"]},
    {"slug": "v0", "name": "v0", "aliases": ["v0.dev", "vercel v0"]},
]

# Phrases where a competitor name is used as an ordinary word. They are
# removed from the text before alias matching, which is whole-word only.
MATCH_DENYLIST = [
    "mouse cursor",
    "text cursor",
    "cursor position",
    "cursor movement",
    "cursor blink",
    "database cursor",
    "bolt action",
    "nuts and bolt",
    "lightning bolt",
    "amazon q&a",
]

# Directories
DATA_DIR = "data"
HISTORY_DIR = "data/history"
OUTPUT_DIR = "data/output"

# Retention (entries, one per calendar date)
MOMENTUM_RETENTION = 90
HIRING_RETENTION = 30

# History files
MOMENTUM_HISTORY_FILE = "momentum-history.json"
HIRING_HISTORY_FILE = "hiring-history.json"
INSTALL_SNAPSHOT_PREFIX = "vscode-"

# Input documents, one per signal source
SOURCE_FILES = {
    "funding": "funding.json",
    "hiring": "hiring.json",
    "vscode": "vscode-marketplace.json",
    "chrome": "chrome-webstore.json",
    "news": "news.json",
    "social": "social.json",
    "releases": "releases.json",
    "pricing": "pricing-history.json",
    "discord": "discord.json",
}

# Output documents
SCORES_OUTPUT_FILE = "momentum-scores.json"
ALERTS_OUTPUT_FILE = "trend-alerts.json"
PATTERNS_OUTPUT_FILE = "patterns.json"
