"""
Path and constant configurations for pulse.

This module defines the file names, suffixes and default values shared by
the stores, the MCP tools and the command line.
"""

APP_NAME: str = "pulse"
APP_VERSION: str = "1.0.0"

# Journal roots default to these directory names
# (project: <cwd>/.private-journal, user: ~/.private-journal)
JOURNAL_DIRNAME: str = ".private-journal"

# Expected stored file structure: <root>/YYYY-MM-DD/HH-MM-SS-micros-<8 hex>.md
RECORD_SUFFIX: str = ".md"
EMBEDDING_SUFFIX: str = ".embedding"

# Social data lives in one directory: posts/ plus the identity file
POSTS_DIRNAME: str = "posts"
IDENTITY_FILENAME: str = "_identity.yaml"

CONFIG_FILENAME: str = "config.yaml"

# Default max. number of records returned by list and search operations
DEFAULT_LIMIT: int = 10

# Default look-back window for recent journal entries
DEFAULT_DAYS: int = 30

DEFAULT_EMBEDDING_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"

# Remote API request timeout in seconds
REMOTE_TIMEOUT: float = 30.0
