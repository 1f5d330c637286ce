import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from pulse.config.settings import (
    APP_NAME,
    CONFIG_FILENAME,
    DEFAULT_EMBEDDING_MODEL,
    JOURNAL_DIRNAME,
)

logger = logging.getLogger(__name__)


def expand_path(path: str) -> Path:
    """Expand a leading ``~`` to the user's home directory."""
    return Path(path).expanduser()


def config_path() -> Path:
    """Get the config file path, honouring XDG_CONFIG_HOME."""
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME / CONFIG_FILENAME


def social_data_dir() -> Path:
    """Get the social data directory, honouring XDG_DATA_HOME."""
    base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_NAME / "social"


@dataclass
class SocialConfig:
    """Remote social API settings."""

    api_key: str = ""
    team_id: str = ""
    api_url: str = ""


@dataclass
class JournalConfig:
    """Optional path overrides for the journal roots."""

    project_path: str = ""
    user_path: str = ""


@dataclass
class EmbeddingConfig:
    """Semantic search settings."""

    enabled: bool = False
    model: str = DEFAULT_EMBEDDING_MODEL
    use_gpu: bool = False


@dataclass
class Config:
    """Configuration for pulse."""

    social: SocialConfig = field(default_factory=SocialConfig)
    journal: JournalConfig = field(default_factory=JournalConfig)
    embeddings: EmbeddingConfig = field(default_factory=EmbeddingConfig)

    def __post_init__(self):
        """Apply environment overrides."""
        self._adjust_for_environment()

    def _adjust_for_environment(self):
        """Override file settings with environment variables if set."""
        if api_key := os.getenv("PULSE_API_KEY"):
            self.social.api_key = api_key

        if team_id := os.getenv("PULSE_TEAM_ID"):
            self.social.team_id = team_id

        if api_url := os.getenv("PULSE_API_URL"):
            self.social.api_url = api_url

        if project_path := os.getenv("PULSE_JOURNAL_PROJECT_PATH"):
            self.journal.project_path = project_path

        if user_path := os.getenv("PULSE_JOURNAL_USER_PATH"):
            self.journal.user_path = user_path

        if enabled := os.getenv("PULSE_EMBEDDINGS"):
            self.embeddings.enabled = enabled.lower() in ("true", "1", "yes")

        if model := os.getenv("PULSE_EMBEDDING_MODEL"):
            self.embeddings.model = model

    def has_remote(self) -> bool:
        """True when remote social posting is fully configured."""
        return bool(self.social.api_key and self.social.team_id and self.social.api_url)

    @property
    def journal_project_path(self) -> Path:
        """Project-local journal root, defaulting to .private-journal in cwd."""
        if self.journal.project_path:
            return expand_path(self.journal.project_path)
        return Path.cwd() / JOURNAL_DIRNAME

    @property
    def journal_user_path(self) -> Path:
        """User-global journal root, defaulting to ~/.private-journal."""
        if self.journal.user_path:
            return expand_path(self.journal.user_path)
        return Path.home() / JOURNAL_DIRNAME

    @property
    def social_data_dir(self) -> Path:
        return social_data_dir()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        data = data or {}
        return cls(
            social=SocialConfig(**_known(SocialConfig, data.get("social"))),
            journal=JournalConfig(**_known(JournalConfig, data.get("journal"))),
            embeddings=EmbeddingConfig(
                **_known(EmbeddingConfig, data.get("embeddings"))
            ),
        )


def _known(cls, section: Any) -> dict[str, Any]:
    """Keep only the keys the dataclass declares."""
    if not isinstance(section, dict):
        return {}
    names = cls.__dataclass_fields__.keys()
    return {key: value for key, value in section.items() if key in names}


def load_config(path: Path | None = None) -> Config:
    """
    Load configuration from the YAML config file with environment overrides.

    Args:
        path: Optional explicit config file; defaults to config_path()

    Returns:
        Config instance (defaults when the file does not exist)

    Raises:
        ValueError: If the file exists but is not valid YAML
    """
    path = path or config_path()
    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return Config()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    return Config.from_dict(data or {})
