import hashlib
import logging
from abc import ABC, abstractmethod

import numpy as np

from pulse.config.settings import DEFAULT_EMBEDDING_MODEL


class Embedder(ABC):
    """Generates vector embeddings from text."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Return a vector embedding for the given text."""
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Dimensionality of the output vectors."""
        pass


class SentenceTransformerEmbedder(Embedder):
    """
    Local embeddings from a sentence-transformers model with an in-memory cache.

    The model is loaded lazily on the first call to embed().
    """

    def __init__(
        self,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        use_gpu: bool = False,
        embedding_dimension: int = 384,
    ):
        self.logger = logging.getLogger(__name__)
        self.model_name = model_name
        self.use_gpu = use_gpu
        self.embedding_dimension = embedding_dimension

        self.model = None
        self.device: str | None = None
        self._cache: dict[str, np.ndarray] = {}

    @property
    def dimension(self) -> int:
        return self.embedding_dimension

    def initialize(self) -> None:
        """Load the embedding model on the best available device."""
        if self.model is not None:
            return

        self.logger.info(f"Initializing embedding model: {self.model_name}")
        self.device = self._get_best_device()
        self.logger.info(f"Using device: {self.device}")

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError:
            raise ImportError(
                "sentence-transformers not installed. "
                "Install with: pip install 'pulse[embeddings]'"
            )

        self.model = SentenceTransformer(self.model_name, device=self.device)
        self.embedding_dimension = self.model.get_sentence_embedding_dimension()

    def _get_best_device(self) -> str:
        """Determine the best available device."""
        if not self.use_gpu:
            return "cpu"

        try:
            import torch

            if torch.cuda.is_available():
                return "cuda"
        except ImportError:
            self.logger.warning("PyTorch not available, falling back to CPU")

        return "cpu"

    def _get_cache_key(self, text: str) -> str:
        return hashlib.md5(f"{self.model_name}:{text}".encode()).hexdigest()

    def embed(self, text: str) -> list[float]:
        if not text.strip():
            return [0.0] * self.embedding_dimension

        cache_key = self._get_cache_key(text)
        if cache_key not in self._cache:
            self.initialize()
            embedding = self.model.encode(
                [text], show_progress_bar=False, convert_to_numpy=True
            )[0]
            self._cache[cache_key] = embedding.astype(np.float32)

        return self._cache[cache_key].tolist()
