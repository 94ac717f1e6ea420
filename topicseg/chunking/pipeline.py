"""End-to-end chunking: the public entry points of topicseg.

Pipeline
--------
1) Segment the raw text into sentences or overlapping windows.
2) Embed all segments with ONE batch call to the injected provider.
3) Detect topic boundaries from adjacent-segment similarity.
4) Assemble segments into drafts under semantic and size boundaries.
5) Normalize token positions and enforce the hard size ceiling.

The engine holds no state between calls. The embedding request is the only
blocking step; if it fails the error propagates and no partial chunk list is
produced, so retrying a whole call is always safe.

``chunk_two_level`` runs the pipeline twice: once over the whole text with a
parent configuration, then over each parent's text with a child
configuration, so child chunks tile their parent.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from topicseg.chunking.assemble import assemble
from topicseg.chunking.boundaries import as_matrix, detect_boundaries
from topicseg.chunking.normalize import normalize
from topicseg.config import ChunkingConfig
from topicseg.embeddings.interface import EmbeddingProvider
from topicseg.errors import EmbeddingUnavailable, InvalidArgument
from topicseg.ingestion.segmentation import segment_text, tokenize
from topicseg.models import Chunk, Segment

__all__ = ["embed_segments", "segment_and_chunk", "chunk_two_level"]

logger = logging.getLogger(__name__)


def embed_segments(provider: EmbeddingProvider, segments: Sequence[Segment]) -> np.ndarray:
	"""Embed all segment texts with a single batch request.

	Raises
	------
	EmbeddingUnavailable
		If the provider raises, or returns a result that is not one vector
		per segment.
	"""
	texts = [s.text for s in segments]
	try:
		vectors = provider.generate_batch(texts)
	except EmbeddingUnavailable:
		raise
	except Exception as exc:
		raise EmbeddingUnavailable(f"embedding provider failed: {exc!r}") from exc

	try:
		matrix = as_matrix(vectors)
	except InvalidArgument as exc:
		raise EmbeddingUnavailable(f"embedding provider returned malformed vectors: {exc}") from exc
	if len(matrix) != len(texts):
		raise EmbeddingUnavailable(
			f"embedding provider returned {len(matrix)} vectors for {len(texts)} texts"
		)
	return matrix


def _check_call(config: ChunkingConfig, provider: EmbeddingProvider, source_entity_id: str) -> None:
	if not isinstance(config, ChunkingConfig):
		raise InvalidArgument(f"config must be a ChunkingConfig, got {type(config).__name__}")
	if not isinstance(provider, EmbeddingProvider):
		raise InvalidArgument("provider must implement generate_batch(texts)")
	if not isinstance(source_entity_id, str) or not source_entity_id:
		raise TypeError("source_entity_id must be a non-empty str")


def _chunk(
	text: str,
	config: ChunkingConfig,
	provider: EmbeddingProvider,
	source_entity_id: str,
	source_entity_type: str,
	parent_id: Optional[str] = None,
	offset: int = 0,
) -> List[Chunk]:
	segments = segment_text(text, config.window_size, config.window_overlap)
	if not segments:
		return []

	if len(segments) > 1:
		embeddings = embed_segments(provider, segments)
		boundaries = detect_boundaries(segments, embeddings, config.similarity_threshold)
	else:
		# Nothing adjacent to compare.
		boundaries = set()

	drafts = assemble(
		segments,
		boundaries,
		target_size=config.target_size,
		min_size=config.min_size,
		max_size=config.max_size,
	)
	return normalize(
		drafts,
		tokenize(text),
		config.max_size,
		source_entity_id=source_entity_id,
		source_entity_type=source_entity_type,
		granularity=config.granularity,
		parent_id=parent_id,
		offset=offset,
	)


def segment_and_chunk(
	text: str,
	config: ChunkingConfig,
	provider: EmbeddingProvider,
	source_entity_id: str = "doc",
	source_entity_type: str = "Document",
) -> List[Chunk]:
	"""Split ``text`` into semantically coherent, size-bounded chunks.

	Parameters
	----------
	text : str
		Raw natural-language text; punctuation is optional.
	config : ChunkingConfig
		Sizes, threshold and windowing for one granularity.
	provider : EmbeddingProvider
		Embeds the segments with one batch call per document. A document
		that yields zero or one segment has no adjacent pair to compare and
		makes no call at all.
	source_entity_id : str, optional
		Identifier of the source entity, copied onto each chunk and used to
		derive chunk ids (default ``"doc"``).
	source_entity_type : str, optional
		Type name of the source entity (default ``"Document"``).

	Returns
	-------
	list[Chunk]
		Chunks whose ranges tile the text's whitespace tokens, each at most
		``config.max_size`` tokens. Empty input yields ``[]``.

	Raises
	------
	InvalidArgument
		Malformed configuration or arguments.
	EmbeddingUnavailable
		The embedding provider failed.
	"""
	if not isinstance(text, str):
		raise TypeError("text must be a str")
	_check_call(config, provider, source_entity_id)

	chunks = _chunk(text, config, provider, source_entity_id, source_entity_type)
	logger.info(
		"Chunked %s/%s into %d %s chunks",
		source_entity_type,
		source_entity_id,
		len(chunks),
		config.granularity.value,
	)
	return chunks


def chunk_two_level(
	text: str,
	provider: EmbeddingProvider,
	parent_config: Optional[ChunkingConfig] = None,
	child_config: Optional[ChunkingConfig] = None,
	source_entity_id: str = "doc",
	source_entity_type: str = "Document",
) -> List[Chunk]:
	"""Produce parent chunks and, inside each, child chunks.

	Child positions are expressed in the original text, so the children of a
	parent tile exactly that parent's range. The output lists each parent
	followed by its children.
	"""
	if not isinstance(text, str):
		raise TypeError("text must be a str")
	parent_config = parent_config if parent_config is not None else ChunkingConfig.parent()
	child_config = child_config if child_config is not None else ChunkingConfig.child()
	_check_call(parent_config, provider, source_entity_id)
	_check_call(child_config, provider, source_entity_id)

	out: List[Chunk] = []
	parents = _chunk(text, parent_config, provider, source_entity_id, source_entity_type)
	for parent in parents:
		out.append(parent)
		out.extend(
			_chunk(
				parent.text,
				child_config,
				provider,
				source_entity_id,
				source_entity_type,
				parent_id=parent.id,
				offset=parent.start_token,
			)
		)
	logger.info(
		"Two-level chunking of %s/%s: %d parents, %d children",
		source_entity_type,
		source_entity_id,
		len(parents),
		len(out) - len(parents),
	)
	return out
