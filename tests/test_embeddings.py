"""SentenceTransformerProvider tests with a stand-in sentence_transformers module."""

import sys
import types

import numpy as np
import pytest

from topicseg.chunking.pipeline import segment_and_chunk
from topicseg.config import ChunkingConfig
from topicseg.embeddings.interface import EmbeddingProvider
from topicseg.embeddings.sentence_transformer import SentenceTransformerProvider
from topicseg.errors import EmbeddingUnavailable


class FakeSentenceTransformer:
    instances = []

    def __init__(self, model_name, device=None):
        self.model_name = model_name
        self.device = device
        self.encode_kwargs = []
        FakeSentenceTransformer.instances.append(self)

    def get_sentence_embedding_dimension(self):
        return 3

    def encode(self, texts, **kwargs):
        self.encode_kwargs.append(kwargs)
        out = np.zeros((len(texts), 3), dtype=np.float32)
        for i, text in enumerate(texts):
            out[i, 0 if "ocean" in text.lower() else 1] = 1.0
        return out


class BrokenEncoder(FakeSentenceTransformer):
    def encode(self, texts, **kwargs):
        raise RuntimeError("CUDA out of memory")


def install(monkeypatch, cls):
    module = types.ModuleType("sentence_transformers")
    module.SentenceTransformer = cls
    monkeypatch.setitem(sys.modules, "sentence_transformers", module)


def test_generate_batch_shape_and_encode_options(monkeypatch):
    install(monkeypatch, FakeSentenceTransformer)
    provider = SentenceTransformerProvider(batch_size=8, device="cpu")

    vectors = provider.generate_batch(["The ocean.", "Markets fell."])
    assert vectors.shape == (2, 3)
    assert vectors.dtype == np.float32
    assert provider.dimension == 3
    assert isinstance(provider, EmbeddingProvider)

    model = FakeSentenceTransformer.instances[-1]
    assert model.model_name == "sentence-transformers/all-MiniLM-L6-v2"
    assert model.device == "cpu"
    assert model.encode_kwargs[-1]["batch_size"] == 8
    assert model.encode_kwargs[-1]["normalize_embeddings"] is True


def test_empty_batch(monkeypatch):
    install(monkeypatch, FakeSentenceTransformer)
    assert SentenceTransformerProvider().generate_batch([]).shape == (0, 3)


def test_invalid_batch_size(monkeypatch):
    install(monkeypatch, FakeSentenceTransformer)
    with pytest.raises(ValueError):
        SentenceTransformerProvider(batch_size=0)


def test_encode_failure_is_embedding_unavailable(monkeypatch):
    install(monkeypatch, BrokenEncoder)
    provider = SentenceTransformerProvider()
    with pytest.raises(EmbeddingUnavailable) as info:
        provider.generate_batch(["a", "b"])
    assert isinstance(info.value.__cause__, RuntimeError)


def test_model_load_failure_is_embedding_unavailable(monkeypatch):
    def refuse(model_name, device=None):
        raise OSError(f"{model_name} not found")

    install(monkeypatch, refuse)
    with pytest.raises(EmbeddingUnavailable):
        SentenceTransformerProvider("no/such-model")


def test_missing_library_is_embedding_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "sentence_transformers", None)
    with pytest.raises(EmbeddingUnavailable):
        SentenceTransformerProvider()


def test_provider_drives_the_chunker(monkeypatch, two_topic_text):
    install(monkeypatch, FakeSentenceTransformer)
    chunks = segment_and_chunk(two_topic_text, ChunkingConfig.parent(), SentenceTransformerProvider())
    assert [(c.start_token, c.end_token) for c in chunks] == [(0, 370), (370, 500), (500, 870), (870, 1000)]
