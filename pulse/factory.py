import logging
from dataclasses import dataclass
from logging import Logger

from pulse.config import Config, load_config
from pulse.embeddings import Embedder, SentenceTransformerEmbedder
from pulse.storage import JournalMDStore, RemoteClient, SocialMDStore


@dataclass
class Services:
    """The stores and optional collaborators one invocation works with."""

    journal: JournalMDStore
    social: SocialMDStore
    remote: RemoteClient | None = None
    embedder: Embedder | None = None

    def close(self) -> None:
        if self.remote is not None:
            self.remote.close()
        self.journal.close()
        self.social.close()


def create_remote_client(config: Config) -> RemoteClient | None:
    """Remote client when the social API is fully configured, else None."""
    if not config.has_remote():
        return None
    return RemoteClient(
        api_url=config.social.api_url,
        api_key=config.social.api_key,
        team_id=config.social.team_id,
    )


def create_embedder(config: Config) -> Embedder | None:
    """Embedder when semantic search is enabled, else None."""
    if not config.embeddings.enabled:
        return None
    return SentenceTransformerEmbedder(
        model_name=config.embeddings.model, use_gpu=config.embeddings.use_gpu
    )


def create_services(
    config: Config | None = None, logger: Logger | None = None
) -> Services:
    """Build stores and collaborators from configuration."""
    config = config or load_config()
    logger = logger or logging.getLogger(__name__)

    services = Services(
        journal=JournalMDStore(config.journal_project_path, config.journal_user_path),
        social=SocialMDStore(config.social_data_dir),
        remote=create_remote_client(config),
        embedder=create_embedder(config),
    )

    logger.debug(
        f"Journal roots: project={services.journal.project_path} "
        f"user={services.journal.user_path}"
    )
    if services.remote is not None:
        logger.debug(f"Remote sync enabled: {services.remote.api_url}")
    return services
