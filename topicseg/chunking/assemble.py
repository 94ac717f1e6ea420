"""Group segments into draft chunks under semantic and size boundaries.

The assembler walks segments in order and closes the running buffer when

1. the next segment starts a new topic (a flagged boundary), or
2. appending the next segment would push the buffer past ``max_size``, or
3. the input is exhausted.

An emitted draft shorter than ``min_size`` is merged backward into the
previous draft. If that merge overshoots ``max_size`` the merged draft is
re-split (see :func:`_cut`). When both rules apply the size rule wins, so no
draft ever exceeds ``max_size``, not even transiently.

With ``max_size < 2 * min_size`` a re-split can still leave a short tail. A
last pass re-cuts the surrounding run of drafts into even pieces, so only a
document too short to tile within ``[min_size, max_size]`` keeps one.

Sizes are effective sizes: windowed segments overlap, and tokens already
owned by the previous draft are not counted again. Drafts keep their raw
segment ranges; :func:`topicseg.chunking.normalize.normalize` clips them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Set, Tuple

from topicseg.errors import InvalidArgument
from topicseg.models import Segment

from .normalize import split_range

__all__ = ["DraftChunk", "assemble"]

logger = logging.getLogger(__name__)


@dataclass
class DraftChunk:
	"""Provisional chunk: consecutive segments with ascending end positions."""

	segments: List[Segment]

	@property
	def start_token(self) -> int:
		return self.segments[0].start_token

	@property
	def end_token(self) -> int:
		return self.segments[-1].end_token

	@property
	def text(self) -> str:
		return " ".join(s.text for s in self.segments)

	def span(self, floor: int = 0) -> int:
		"""Tokens this draft owns once the first ``floor`` tokens are taken."""
		return self.end_token - max(self.start_token, floor)


def _check_sizes(target_size: int, min_size: int, max_size: int) -> None:
	if min_size < 1:
		raise InvalidArgument(f"min_size must be >= 1, got {min_size}")
	if min_size > max_size:
		raise InvalidArgument(f"min_size ({min_size}) must be <= max_size ({max_size})")
	if not min_size <= target_size <= max_size:
		raise InvalidArgument(
			f"target_size ({target_size}) must lie within [{min_size}, {max_size}]"
		)


def _fit_segments(
	segments: Sequence[Segment],
	boundaries: Iterable[int],
	target_size: int,
	max_size: int,
) -> Tuple[List[Segment], Set[int]]:
	"""Break segments longer than ``max_size`` into target-sized pieces.

	Pieces already covered by earlier pieces (possible when oversized windows
	overlap) are dropped. Boundary indices are remapped to the first kept
	piece of each flagged segment.
	"""
	flagged = set(boundaries)
	pieces: List[Segment] = []
	piece_boundaries: Set[int] = set()
	covered = 0
	for index, seg in enumerate(segments):
		if seg.token_count > max_size:
			parts = [seg.slice(a, b) for a, b in split_range(seg.start_token, seg.end_token, target_size)]
		else:
			parts = [seg]
		first = True
		for part in parts:
			if part.end_token <= covered:
				continue
			if first and index in flagged and pieces:
				piece_boundaries.add(len(pieces))
			first = False
			pieces.append(part)
			covered = part.end_token
	return pieces, piece_boundaries


def _cut(draft: DraftChunk, floor: int, min_size: int, max_size: int) -> Tuple[DraftChunk, DraftChunk]:
	"""Split an oversized draft in two.

	Prefer the latest segment boundary whose head fits ``max_size`` while both
	halves reach ``min_size``. Otherwise cut inside a segment: the largest head
	<= ``max_size`` that leaves a tail of at least ``min_size``, or a plain
	``max_size`` head when the draft is too short for two full chunks.
	"""
	segs = draft.segments
	start = max(draft.start_token, floor)
	end = draft.end_token
	total = end - start

	best = -1
	for k, seg in enumerate(segs[:-1]):
		cut = seg.end_token
		if cut <= start:
			continue
		if cut - start > max_size:
			break
		if cut - start >= min_size and end - cut >= min_size:
			best = k
	if best >= 0:
		return DraftChunk(list(segs[:best + 1])), DraftChunk(list(segs[best + 1:]))

	if total >= 2 * min_size:
		cut = start + min(max_size, total - min_size)
	else:
		cut = start + max_size

	head: List[Segment] = [s for s in segs if s.end_token <= cut]
	if not head or head[-1].end_token < cut:
		straddler = next(s for s in segs if s.start_token < cut < s.end_token)
		head.append(straddler.slice(straddler.start_token, cut))
	tail: List[Segment] = []
	for s in segs:
		if s.end_token <= cut:
			continue
		tail.append(s if s.start_token >= cut else s.slice(cut, s.end_token))
	return DraftChunk(head), DraftChunk(tail)


def _resplit(draft: DraftChunk, floor: int, min_size: int, max_size: int) -> List[DraftChunk]:
	out: List[DraftChunk] = []
	current = draft
	while current.span(floor) > max_size:
		head, current = _cut(current, floor, min_size, max_size)
		logger.debug("Re-split merged draft at token %d", head.end_token)
		out.append(head)
		floor = head.end_token
	out.append(current)
	return out


def _tileable(total: int, min_size: int, max_size: int) -> bool:
	"""True when ``total`` tokens split into pieces all within ``[min_size, max_size]``."""
	pieces = -(-total // max_size)
	return total // pieces >= min_size


def _retile(run: Sequence[DraftChunk], floor: int, max_size: int) -> List[DraftChunk]:
	"""Re-cut a run of drafts into the fewest near-equal token ranges."""
	start = max(run[0].start_token, floor)
	segs = [s for d in run for s in d.segments]
	out: List[DraftChunk] = []
	for a, b in split_range(start, run[-1].end_token, max_size):
		covered = a
		part: List[Segment] = []
		for s in segs:
			lo = max(s.start_token, covered)
			hi = min(s.end_token, b)
			if hi > lo:
				part.append(s.slice(lo, hi))
				covered = hi
		out.append(DraftChunk(part))
	return out


def _rebalance(drafts: List[DraftChunk], min_size: int, max_size: int) -> None:
	"""Absorb undersized drafts left over when ``max_size < 2 * min_size``.

	An undersized draft is grown into a run of neighbours, earlier drafts
	first, until the run's tokens can be re-cut evenly into pieces of
	``[min_size, max_size]``. When even the whole document cannot be tiled
	that way the drafts are left as they are.
	"""
	i = 0
	while len(drafts) > 1 and i < len(drafts):
		floor = drafts[i - 1].end_token if i else 0
		if drafts[i].span(floor) >= min_size:
			i += 1
			continue
		lo = hi = i
		while True:
			run_floor = drafts[lo - 1].end_token if lo else 0
			total = drafts[hi].end_token - max(drafts[lo].start_token, run_floor)
			if hi > lo and _tileable(total, min_size, max_size):
				break
			if lo > 0:
				lo -= 1
			elif hi < len(drafts) - 1:
				hi += 1
			else:
				logger.debug("%d tokens cannot be tiled within [%d, %d]", total, min_size, max_size)
				return
		pieces = _retile(drafts[lo:hi + 1], run_floor, max_size)
		logger.debug("Re-tiled %d drafts into %d over %d tokens", hi - lo + 1, len(pieces), total)
		drafts[lo:hi + 1] = pieces
		i = lo + len(pieces)


def _emit(drafts: List[DraftChunk], buffer: List[Segment], min_size: int, max_size: int) -> None:
	draft = DraftChunk(list(buffer))
	floor = drafts[-1].end_token if drafts else 0
	if not drafts or draft.span(floor) >= min_size:
		drafts.append(draft)
		return

	# Undersized: merge backward, re-splitting if the merge overshoots.
	previous = drafts.pop()
	previous_floor = drafts[-1].end_token if drafts else 0
	merged = DraftChunk(previous.segments + draft.segments)
	logger.debug(
		"Merging %d-token draft into previous draft ending at token %d",
		draft.span(floor),
		previous.end_token,
	)
	drafts.extend(_resplit(merged, previous_floor, min_size, max_size))


def assemble(
	segments: Sequence[Segment],
	boundaries: Iterable[int],
	target_size: int,
	min_size: int,
	max_size: int,
) -> List[DraftChunk]:
	"""Group segments into draft chunks.

	Parameters
	----------
	segments : Sequence[Segment]
		Ordered segments from the segmenter.
	boundaries : Iterable[int]
		Segment indices that must start a new chunk (topic shifts).
	target_size : int
		Preferred size; oversized segments are broken into pieces of at most
		this many tokens.
	min_size : int
		Soft floor; undersized drafts are merged into a neighbour.
	max_size : int
		Hard ceiling on a draft's effective size.

	Returns
	-------
	list[DraftChunk]
		Drafts in document order. A sole short document yields one draft
		below ``min_size``.
	"""
	_check_sizes(target_size, min_size, max_size)
	pieces, piece_boundaries = _fit_segments(segments, boundaries, target_size, max_size)

	drafts: List[DraftChunk] = []
	buffer: List[Segment] = []
	for index, seg in enumerate(pieces):
		if buffer:
			floor = drafts[-1].end_token if drafts else 0
			grown = seg.end_token - max(buffer[0].start_token, floor)
			if index in piece_boundaries or grown > max_size:
				_emit(drafts, buffer, min_size, max_size)
				buffer = []
		buffer.append(seg)
	if buffer:
		_emit(drafts, buffer, min_size, max_size)

	# A short first draft kept for lack of a predecessor joins its successor.
	if len(drafts) > 1 and drafts[0].span(0) < min_size:
		merged = DraftChunk(drafts[0].segments + drafts[1].segments)
		drafts[:2] = _resplit(merged, 0, min_size, max_size)

	_rebalance(drafts, min_size, max_size)

	logger.debug("Assembled %d drafts from %d segments", len(drafts), len(pieces))
	return drafts
