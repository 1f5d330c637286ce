import numpy as np

from pulse.embeddings import Embedder, SentenceTransformerEmbedder


class StubModel:
    """Stands in for a loaded SentenceTransformer."""

    def __init__(self):
        self.calls = 0

    def encode(self, texts, show_progress_bar=False, convert_to_numpy=True):
        self.calls += 1
        return np.array([[float(len(t)), 1.0, 0.0] for t in texts])


def test_is_an_embedder():
    assert isinstance(SentenceTransformerEmbedder(), Embedder)


def test_blank_text_returns_zero_vector_without_loading():
    embedder = SentenceTransformerEmbedder(embedding_dimension=8)

    assert embedder.embed("   ") == [0.0] * 8
    assert embedder.model is None


def test_cpu_when_gpu_disabled():
    embedder = SentenceTransformerEmbedder(use_gpu=False)

    assert embedder._get_best_device() == "cpu"


def test_cache_key_depends_on_model():
    a = SentenceTransformerEmbedder(model_name="model-a")
    b = SentenceTransformerEmbedder(model_name="model-b")

    assert a._get_cache_key("text") != b._get_cache_key("text")
    assert a._get_cache_key("text") == a._get_cache_key("text")


def test_embed_uses_cache():
    embedder = SentenceTransformerEmbedder()
    embedder.model = StubModel()

    first = embedder.embed("hello")
    second = embedder.embed("hello")

    assert first == [5.0, 1.0, 0.0]
    assert second == first
    assert embedder.model.calls == 1
