"""Minimal embedding provider protocol.

topicseg never generates embeddings itself. Callers inject an object that
turns a batch of texts into vectors; any backend (sentence-transformers, a
hosted API, a test fake) can be adapted to this protocol.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

__all__ = ["EmbeddingProvider"]


@runtime_checkable
class EmbeddingProvider(Protocol):
	"""Batch text-to-vector interface.

	Implementations must return exactly one vector per input text, in input
	order, all of the same dimension. The chunker calls ``generate_batch``
	at most once per document.
	"""

	def generate_batch(self, texts: Sequence[str]) -> Sequence[Sequence[float]]:
		"""Embed ``texts`` and return their vectors in the same order."""
		...
