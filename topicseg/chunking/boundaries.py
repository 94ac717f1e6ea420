"""Topic-boundary detection from adjacent-segment similarity.

Given one embedding per segment (obtained from a single batch call to the
embedding provider), compute the cosine similarity of every adjacent pair and
flag a boundary where it drops below a threshold. A boundary at index ``j``
means a new chunk should begin with segment ``j``.

Size-driven boundaries are not decided here; the assembler owns them.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence, Set

import numpy as np

from topicseg.errors import InvalidArgument
from topicseg.models import Segment, SimilarityEdge

__all__ = ["as_matrix", "cosine_similarity", "adjacent_similarities", "detect_boundaries"]

logger = logging.getLogger(__name__)


def as_matrix(embeddings: Any) -> np.ndarray:
	"""Coerce embeddings into a 2-D float32 matrix (one row per segment)."""
	try:
		matrix = np.asarray(embeddings, dtype=np.float32)
	except (TypeError, ValueError) as exc:
		raise InvalidArgument(f"embeddings must be a rectangular numeric array: {exc}") from exc
	if matrix.size == 0:
		return matrix.reshape(0, 0)
	if matrix.ndim != 2:
		raise InvalidArgument(f"embeddings must be 2-D, got shape {matrix.shape}")
	return matrix


def cosine_similarity(a: Any, b: Any) -> float:
	"""Cosine similarity of two vectors; 0.0 when either has zero norm."""
	va = np.asarray(a, dtype=np.float32)
	vb = np.asarray(b, dtype=np.float32)
	if va.shape != vb.shape:
		raise InvalidArgument(f"vectors differ in dimension: {va.shape} vs {vb.shape}")
	na = float(np.linalg.norm(va))
	nb = float(np.linalg.norm(vb))
	if na == 0.0 or nb == 0.0:
		return 0.0
	return float(np.dot(va, vb) / (na * nb))


def adjacent_similarities(embeddings: Any) -> List[SimilarityEdge]:
	"""Return one :class:`SimilarityEdge` per adjacent pair ``(i, i+1)``."""
	matrix = as_matrix(embeddings)
	if len(matrix) < 2:
		return []
	norms = np.linalg.norm(matrix, axis=1)
	dots = np.einsum("ij,ij->i", matrix[:-1], matrix[1:])
	denom = norms[:-1] * norms[1:]
	scores = np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)
	return [
		SimilarityEdge(segment_index_a=i, segment_index_b=i + 1, score=float(s))
		for i, s in enumerate(scores)
	]


def detect_boundaries(
	segments: Sequence[Segment],
	embeddings: Any,
	threshold: float = 0.5,
) -> Set[int]:
	"""Flag segment indices where a new topic begins.

	Parameters
	----------
	segments : Sequence[Segment]
		Ordered segments from the segmenter.
	embeddings : array-like
		``embeddings[i]`` is the vector for ``segments[i]``.
	threshold : float, optional
		Cosine cutoff (default 0.5). A boundary is flagged at ``i + 1`` when
		``similarity(i, i + 1) < threshold``.

	Returns
	-------
	set[int]
		Boundary indices in ``[1, len(segments) - 1]``. Empty for zero or one
		segment.

	Raises
	------
	InvalidArgument
		If the number of embeddings differs from the number of segments, or
		the embeddings are not a 2-D numeric array.
	"""
	matrix = as_matrix(embeddings)
	if len(matrix) != len(segments):
		raise InvalidArgument(
			f"got {len(matrix)} embeddings for {len(segments)} segments"
		)
	if len(segments) < 2:
		return set()

	boundaries = {
		edge.segment_index_b
		for edge in adjacent_similarities(matrix)
		if edge.score < threshold
	}
	logger.debug(
		"Detected %d topic boundaries across %d segments (threshold=%.2f)",
		len(boundaries),
		len(segments),
		threshold,
	)
	return boundaries
