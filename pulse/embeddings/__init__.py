from .embedder import Embedder, SentenceTransformerEmbedder
from .search import (
    SearchOptions,
    SearchResult,
    cosine_similarity,
    search_with_embeddings,
    write_embedding,
)

__all__ = [
    "Embedder",
    "SentenceTransformerEmbedder",
    "SearchOptions",
    "SearchResult",
    "cosine_similarity",
    "search_with_embeddings",
    "write_embedding",
]
