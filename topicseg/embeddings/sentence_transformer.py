"""Embedding provider backed by sentence-transformers.

The reference deployment embeds with ``all-MiniLM-L6-v2`` (384-dimension
vectors). The library is imported lazily so the rest of topicseg works
without it; constructing the provider without it installed raises
:class:`~topicseg.errors.EmbeddingUnavailable`.

Install with ``pip install topicseg[embeddings]``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import numpy as np

from topicseg.errors import EmbeddingUnavailable

__all__ = ["DEFAULT_MODEL", "SentenceTransformerProvider"]

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


def _load_sentence_transformer(model_name: str, device: Optional[str]) -> Any:
	try:
		from sentence_transformers import SentenceTransformer
	except ImportError as exc:
		raise EmbeddingUnavailable(
			"sentence-transformers is not installed; install topicseg[embeddings]"
		) from exc
	try:
		return SentenceTransformer(model_name, device=device)
	except Exception as exc:
		raise EmbeddingUnavailable(f"failed to load SentenceTransformer({model_name}): {exc}") from exc


class SentenceTransformerProvider:
	"""Batch embedding provider wrapping a ``SentenceTransformer`` model.

	Parameters
	----------
	model_name : str
		Model to load (default ``sentence-transformers/all-MiniLM-L6-v2``).
	batch_size : int
		Texts per forward pass inside one ``generate_batch`` call.
	normalize : bool
		Return unit-length vectors.
	device : str | None
		Torch device; ``None`` lets the library choose.
	"""

	def __init__(
		self,
		model_name: str = DEFAULT_MODEL,
		batch_size: int = 32,
		normalize: bool = True,
		device: Optional[str] = None,
	) -> None:
		if batch_size <= 0:
			raise ValueError(f"batch_size must be > 0, got {batch_size}")
		self.model_name = model_name
		self.batch_size = batch_size
		self.normalize = normalize
		self._model = _load_sentence_transformer(model_name, device)
		self._dim = int(self._model.get_sentence_embedding_dimension())
		logger.info("Loaded SentenceTransformer %s (dim=%d)", model_name, self._dim)

	@property
	def dimension(self) -> int:
		return self._dim

	def generate_batch(self, texts: Sequence[str]) -> np.ndarray:
		"""Embed ``texts`` in order; returns a ``(len(texts), dimension)`` float32 array."""
		if not texts:
			return np.zeros((0, self._dim), dtype=np.float32)
		try:
			vectors = self._model.encode(
				list(texts),
				batch_size=self.batch_size,
				convert_to_numpy=True,
				normalize_embeddings=self.normalize,
				show_progress_bar=False,
			)
		except Exception as exc:
			raise EmbeddingUnavailable(f"SentenceTransformer encode failed: {exc}") from exc
		vectors = np.asarray(vectors, dtype=np.float32)
		if vectors.ndim != 2 or len(vectors) != len(texts):
			raise EmbeddingUnavailable(
				f"expected {len(texts)} vectors, got array of shape {vectors.shape}"
			)
		return vectors
