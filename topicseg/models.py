"""Data model shared by the segmentation and chunking stages.

Segment and SimilarityEdge are intermediate values that never leave a single
``segment_and_chunk`` call. Chunk is the unit handed back to callers; it
carries token positions into the original text so an indexing collaborator
can map ``(source_entity_id, start_token, end_token)`` back to literal text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidArgument

__all__ = ["Granularity", "Segment", "SimilarityEdge", "Chunk"]


class Granularity(str, Enum):
	"""Target chunk granularity requested by the caller."""

	PARENT = "parent"  # ~200 tokens, for context
	CHILD = "child"  # ~25 tokens, for scanning


@dataclass(frozen=True)
class Segment:
	"""An atomic span of text (sentence or window) with token positions.

	The whitespace tokens of ``text`` are exactly the original tokens
	``[start_token, end_token)``.
	"""

	text: str
	start_token: int
	end_token: int
	is_windowed: bool = False

	def __post_init__(self) -> None:
		if self.start_token < 0:
			raise InvalidArgument(f"start_token must be >= 0, got {self.start_token}")
		if self.end_token <= self.start_token:
			raise InvalidArgument(
				f"end_token ({self.end_token}) must be > start_token ({self.start_token})"
			)

	@property
	def token_count(self) -> int:
		return self.end_token - self.start_token

	def slice(self, start: int, end: int) -> "Segment":
		"""Return the sub-segment covering original positions ``[start, end)``."""
		if start < self.start_token or end > self.end_token or end <= start:
			raise InvalidArgument(
				f"[{start}, {end}) is not inside segment [{self.start_token}, {self.end_token})"
			)
		words = self.text.split()
		offset = self.start_token
		return Segment(
			text=" ".join(words[start - offset:end - offset]),
			start_token=start,
			end_token=end,
			is_windowed=self.is_windowed,
		)


@dataclass(frozen=True)
class SimilarityEdge:
	"""Cosine similarity between two adjacent segments."""

	segment_index_a: int
	segment_index_b: int
	score: float


@dataclass(frozen=True)
class Chunk:
	"""A retrieval-sized span of the source text.

	Attributes
	----------
	id : str
		Deterministic identifier, unique within one source entity.
	source_entity_id : str
		Identifier of the entity the text came from.
	source_entity_type : str
		Type name of that entity, used to route reconstruction lookups.
	start_token : int
		Inclusive start position in the original text.
	end_token : int
		Exclusive end position in the original text.
	config : Granularity
		Granularity the chunk was produced for.
	text : str
		Single-space join of the original tokens in range.
	parent_id : str | None
		Id of the enclosing parent chunk (child chunks only).
	"""

	id: str
	source_entity_id: str
	source_entity_type: str
	start_token: int
	end_token: int
	config: Granularity
	text: str = ""
	parent_id: Optional[str] = None

	def __post_init__(self) -> None:
		if self.start_token < 0:
			raise InvalidArgument("start_token must be >= 0")
		if self.end_token <= self.start_token:
			raise InvalidArgument("end_token must be > start_token")
		if not isinstance(self.config, Granularity):
			raise InvalidArgument(f"config must be a Granularity, got {self.config!r}")

	@property
	def token_count(self) -> int:
		return self.end_token - self.start_token
