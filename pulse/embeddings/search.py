"""Semantic search over journal entries using embedding sidecar files.

Each journal ``.md`` file may have an ``.embedding`` JSON sidecar with the
same stem. Search scans the sidecars under the given roots and ranks them by
cosine similarity to the query. Sidecars are not checked against their
record files, so an orphaned sidecar still shows up in results.
"""

import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from pulse.config.settings import DEFAULT_LIMIT, EMBEDDING_SUFFIX
from pulse.embeddings.embedder import Embedder
from pulse.models import Embedding
from pulse.storage.atomic import atomic_write
from pulse.storage.layout import sidecar_path

logger = logging.getLogger(__name__)


@dataclass
class SearchOptions:
    """
    Configures a search operation.

    Journal type filtering happens when the caller picks the roots to scan.
    """

    limit: int = DEFAULT_LIMIT
    sections: list[str] = field(default_factory=list)


@dataclass
class SearchResult:
    """A sidecar match with its relevance score."""

    score: float
    path: str
    text: str = ""
    sections: list[str] = field(default_factory=list)


def cosine_similarity(a: Iterable[float], b: Iterable[float]) -> float:
    """
    Cosine similarity between two vectors.

    Returns 0.0 when either vector is empty, the lengths differ or either
    norm is zero.
    """
    va = np.asarray(list(a), dtype=np.float64)
    vb = np.asarray(list(b), dtype=np.float64)

    if va.size == 0 or va.shape != vb.shape:
        return 0.0

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(va, vb) / (norm_a * norm_b))


def load_embedding(path: Path) -> Embedding:
    """
    Read a sidecar file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a valid embedding object
    """
    return Embedding.from_dict(json.loads(path.read_text(encoding="utf-8")))


def search_with_embeddings(
    embedder: Embedder,
    roots: Iterable[Path | str],
    query: str,
    opts: SearchOptions | None = None,
) -> list[SearchResult]:
    """
    Rank embedding sidecars under the roots by similarity to the query.

    Args:
        embedder: Produces the query vector
        roots: Directories to scan; missing ones are skipped
        query: Search text
        opts: Limit and section filter

    Returns:
        Results sorted by score descending, at most opts.limit long
    """
    opts = opts or SearchOptions()
    query_vector = embedder.embed(query)
    wanted = set(opts.sections)

    results: list[SearchResult] = []
    for root in roots:
        root = Path(root)
        if not root.is_dir():
            continue

        for path in sorted(root.rglob(f"*{EMBEDDING_SUFFIX}")):
            if not path.is_file():
                continue
            try:
                emb = load_embedding(path)
            except (OSError, ValueError, TypeError) as e:
                logger.debug(f"Skipping sidecar {path}: {e}")
                continue

            if wanted and not wanted.intersection(emb.sections):
                continue

            results.append(
                SearchResult(
                    score=cosine_similarity(query_vector, emb.vector),
                    path=emb.path,
                    text=emb.text,
                    sections=emb.sections,
                )
            )

    results.sort(key=lambda r: r.score, reverse=True)

    limit = opts.limit if opts.limit > 0 else DEFAULT_LIMIT
    return results[:limit]


def write_embedding(
    md_path: Path | str, embedder: Embedder, sections: dict[str, str]
) -> Path:
    """
    Embed a journal entry's sections and write the sidecar next to it.

    Non-empty section texts are joined with blank lines in the mapping's
    iteration order.

    Returns:
        Path of the written sidecar
    """
    names = [name for name, text in sections.items() if text]
    text = "\n\n".join(sections[name] for name in names)

    embedding = Embedding(
        vector=list(embedder.embed(text)),
        text=text,
        sections=names,
        timestamp=int(time.time()),
        path=str(md_path),
    )

    path = sidecar_path(md_path)
    atomic_write(path, json.dumps(embedding.to_dict()))
    logger.debug(f"Wrote embedding sidecar {path}")
    return path
