"""Pytest configuration and shared fakes.

Adds the repository root to sys.path so tests can `import topicseg` without
installing the package, and provides deterministic embedding providers so
the chunker can be exercised without a model.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Sequence

import numpy as np
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


class KeywordProvider:
    """Embeds a text as the one-hot vector of the first keyword it contains.

    Texts matching no keyword get the last axis, so unrelated text still has
    a well-defined direction.
    """

    def __init__(self, keywords: Sequence[str]) -> None:
        self.keywords = list(keywords)
        self.calls: List[List[str]] = []

    def generate_batch(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        dim = len(self.keywords) + 1
        out: List[List[float]] = []
        for text in texts:
            vec = [0.0] * dim
            lowered = text.lower()
            hit = next((i for i, kw in enumerate(self.keywords) if kw in lowered), dim - 1)
            vec[hit] = 1.0
            out.append(vec)
        return out


class ConstantProvider:
    """Every text maps to the same vector: no topic shifts anywhere."""

    def __init__(self, dim: int = 384) -> None:
        self.dim = dim
        self.calls: List[List[str]] = []

    def generate_batch(self, texts: Sequence[str]) -> np.ndarray:
        self.calls.append(list(texts))
        return np.ones((len(texts), self.dim), dtype=np.float32)


class AlternatingProvider:
    """Consecutive texts are orthogonal: a topic shift between every pair."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []

    def generate_batch(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [[1.0, 0.0] if i % 2 == 0 else [0.0, 1.0] for i in range(len(texts))]


class FailingProvider:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def generate_batch(self, texts: Sequence[str]) -> List[List[float]]:
        raise self.exc


class ShortProvider:
    """Drops the last vector, violating the one-vector-per-text contract."""

    def generate_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return [[1.0, 0.0] for _ in texts][:-1]


@pytest.fixture
def keyword_provider():
    return KeywordProvider


@pytest.fixture
def constant_provider():
    return ConstantProvider()


@pytest.fixture
def alternating_provider():
    return AlternatingProvider()


@pytest.fixture
def failing_provider():
    return FailingProvider


@pytest.fixture
def short_provider():
    return ShortProvider()


@pytest.fixture
def two_topic_text() -> str:
    """50 ten-token ocean sentences followed by 50 ten-token finance sentences."""
    ocean = "The ocean waves crash against the rocky shore every night."
    markets = "Stock markets rallied after the central bank cut interest rates."
    return " ".join([ocean] * 50 + [markets] * 50)


@pytest.fixture
def unpunctuated_text():
    def make(n_tokens: int) -> str:
        return " ".join(f"word{i}" for i in range(n_tokens))

    return make


def spans(chunks) -> List[tuple]:
    return [(c.start_token, c.end_token) for c in chunks]


@pytest.fixture
def as_spans():
    return spans


def make_segments(sizes: Sequence[int]) -> list:
    from topicseg.models import Segment

    out = []
    position = 0
    for size in sizes:
        words = [f"w{i}" for i in range(position, position + size)]
        out.append(Segment(text=" ".join(words), start_token=position, end_token=position + size))
        position += size
    return out


@pytest.fixture
def segments_of():
    return make_segments

