"""Final token-position normalization.

Draft chunks built from overlapping windows can claim the same original
tokens twice. Normalization walks the drafts in order and reassigns each a
range that starts exactly where the previous chunk ended, so the returned
chunks tile the original token stream with no gaps and no duplication. Chunk
text is rebuilt from the original tokens with single-space joins.

The pass then re-checks the hard size ceiling and splits any range longer
than ``max_size`` at word boundaries. This is the last guarantee that no
chunk ever exceeds ``max_size``; it always runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence, Tuple

from topicseg.errors import InvalidArgument, InvariantViolation
from topicseg.models import Chunk, Granularity

if TYPE_CHECKING:  # pragma: no cover
	from topicseg.chunking.assemble import DraftChunk

__all__ = ["split_range", "normalize"]

logger = logging.getLogger(__name__)


def split_range(start: int, end: int, max_size: int) -> Iterator[Tuple[int, int]]:
	"""Split ``[start, end)`` into the fewest near-equal pieces of <= ``max_size``.

	>>> list(split_range(0, 10, 4))
	[(0, 4), (4, 7), (7, 10)]
	"""
	if max_size <= 0:
		raise InvalidArgument(f"max_size must be > 0, got {max_size}")
	length = end - start
	if length <= 0:
		return
	pieces = -(-length // max_size)
	base, extra = divmod(length, pieces)
	position = start
	for i in range(pieces):
		size = base + (1 if i < extra else 0)
		yield position, position + size
		position += size


def normalize(
	drafts: Sequence["DraftChunk"],
	tokens: Sequence[str],
	max_size: int,
	*,
	source_entity_id: str = "doc",
	source_entity_type: str = "Document",
	granularity: Granularity = Granularity.PARENT,
	parent_id: Optional[str] = None,
	offset: int = 0,
) -> List[Chunk]:
	"""Turn draft chunks into sequential, non-overlapping, size-bounded chunks.

	Parameters
	----------
	drafts : Sequence[DraftChunk]
		Assembler output, in document order. Ranges may overlap.
	tokens : Sequence[str]
		Whitespace tokens of the original text.
	max_size : int
		Hard ceiling on tokens per chunk.
	source_entity_id, source_entity_type : str
		Copied onto every chunk.
	granularity : Granularity
		Level stamped on every chunk.
	parent_id : str | None
		When set, chunks are children of that parent. Their ids are derived
		from it.
	offset : int
		Added to every position, for chunking a slice of a larger text.

	Returns
	-------
	list[Chunk]
		Chunks whose ranges tile ``[offset, offset + len(tokens))`` exactly.

	Raises
	------
	InvariantViolation
		If coverage or the size ceiling cannot be guaranteed.
	"""
	if max_size <= 0:
		raise InvalidArgument(f"max_size must be > 0, got {max_size}")

	ranges: List[Tuple[int, int]] = []
	position = 0
	for draft in drafts:
		end = min(draft.end_token, len(tokens))
		if end <= position:
			# Entirely covered by the previous chunk.
			continue
		for piece in split_range(position, end, max_size):
			ranges.append(piece)
		if end - position > max_size:
			logger.debug("Split oversized range [%d, %d) during normalization", position, end)
		position = end

	if position != len(tokens):
		raise InvariantViolation(
			f"chunks cover {position} of {len(tokens)} tokens"
		)

	level = Granularity(granularity)
	prefix = f"{parent_id}-{level.value}" if parent_id else f"{source_entity_id}-{level.value}"
	chunks: List[Chunk] = []
	for index, (start, end) in enumerate(ranges):
		if end - start > max_size:
			raise InvariantViolation(
				f"chunk [{start}, {end}) exceeds max_size={max_size}"
			)
		chunks.append(
			Chunk(
				id=f"{prefix}-{index}",
				source_entity_id=source_entity_id,
				source_entity_type=source_entity_type,
				start_token=offset + start,
				end_token=offset + end,
				config=level,
				text=" ".join(tokens[start:end]),
				parent_id=parent_id,
			)
		)
	return chunks
