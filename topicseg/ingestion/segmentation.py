"""Text segmentation: the first stage of the chunking pipeline.

Raw text is split into ordered candidate segments before any embedding work
happens. Two strategies are used, chosen per document:

1. Structured text (sentence-terminal punctuation followed by whitespace and
   an uppercase letter at a density of at least 5% of the word gaps): split
   after each such punctuation mark. Each sentence becomes one segment.
2. Unstructured text (voice transcripts, stream-of-consciousness notes):
   overlapping fixed-size windows of ``window_size`` tokens advancing by
   ``window_size - window_overlap``. The last window may be shorter.

Every segment records its token range in the original text, where a token is
a run of non-whitespace characters. The words of a segment's text are exactly
the original tokens of that range, so later stages can slice segments and
rebuild text without drifting from the source.

Design notes:
- Deterministic: identical input yields identical segmentation.
- Pure: no I/O and no failure modes beyond argument checks.
- Short documents are not special-cased here; a single segment shorter than
  any minimum size is returned as-is and the assembler decides what to do.
"""

from __future__ import annotations

import logging
import re
from typing import List

from topicseg.errors import InvalidArgument
from topicseg.models import Segment

__all__ = [
	"MIN_PUNCTUATION_RATIO",
	"tokenize",
	"count_tokens",
	"is_punctuated",
	"segment_text",
	"split_sentences",
	"sliding_windows",
	"text_from_tokens",
]

logger = logging.getLogger(__name__)

# Fraction of word gaps that must be sentence breaks for sentence splitting.
MIN_PUNCTUATION_RATIO = 0.05

# Terminal punctuation, whitespace, then an uppercase letter.
_SENTENCE_BREAK = re.compile(r"[.!?]\s+(?=[A-Z])")
# Same boundary, but the split consumes only the whitespace.
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
_TOKEN = re.compile(r"\S+")


def tokenize(text: str) -> List[str]:
	"""Whitespace tokenization (contiguous non-whitespace runs)."""
	if not text:
		return []
	return _TOKEN.findall(text)


def count_tokens(text: str) -> int:
	return len(tokenize(text))


def is_punctuated(text: str) -> bool:
	"""Return True when ``text`` has enough sentence breaks for sentence splitting.

	The natural break points of a text are the gaps between its tokens. A text
	counts as punctuated when at least ``MIN_PUNCTUATION_RATIO`` of those gaps
	are sentence breaks. A single-token text has no gaps and is unpunctuated.

	The ratio is roughly one over the mean sentence length, so prose whose
	sentences average more than 20 words falls below the threshold and is
	segmented into windows like a transcript.
	"""
	gaps = count_tokens(text) - 1
	if gaps <= 0:
		return False
	breaks = len(_SENTENCE_BREAK.findall(text))
	return breaks / gaps >= MIN_PUNCTUATION_RATIO


def split_sentences(text: str) -> List[Segment]:
	"""Split punctuated text into sentence segments with token positions."""
	segments: List[Segment] = []
	position = 0
	for sentence in _SENTENCE_SPLIT.split(text.strip()):
		words = tokenize(sentence)
		if not words:
			continue
		segments.append(
			Segment(
				text=" ".join(words),
				start_token=position,
				end_token=position + len(words),
			)
		)
		position += len(words)
	return segments


def sliding_windows(tokens: List[str], window_size: int = 200, window_overlap: int = 50) -> List[Segment]:
	"""Cover ``tokens`` with overlapping windows.

	Parameters
	----------
	tokens : list[str]
		Whitespace tokens of the whole document.
	window_size : int, optional
		Tokens per window (default 200).
	window_overlap : int, optional
		Tokens shared by consecutive windows (default 50).

	Returns
	-------
	list[Segment]
		Windows flagged ``is_windowed=True``. Starts advance by
		``window_size - window_overlap``; the final window ends at
		``len(tokens)`` and may be shorter than ``window_size``.
	"""
	_check_window(window_size, window_overlap)
	segments: List[Segment] = []
	start = 0
	step = window_size - window_overlap
	while start < len(tokens):
		end = min(start + window_size, len(tokens))
		segments.append(
			Segment(
				text=" ".join(tokens[start:end]),
				start_token=start,
				end_token=end,
				is_windowed=True,
			)
		)
		if end == len(tokens):
			break
		start += step
	return segments


def segment_text(text: str, window_size: int = 200, window_overlap: int = 50) -> List[Segment]:
	"""Segment raw text into sentences or overlapping windows.

	Parameters
	----------
	text : str
		The raw input document text.
	window_size : int, optional
		Window length for unpunctuated text (default 200 tokens).
	window_overlap : int, optional
		Overlap between consecutive windows (default 50 tokens).

	Returns
	-------
	list[Segment]
		Ordered segments. Empty or whitespace-only input yields ``[]``.

	Examples
	--------
	>>> [s.text for s in segment_text("One fish. Two fish. Red fish.")]
	['One fish.', 'Two fish.', 'Red fish.']
	"""
	if not isinstance(text, str):
		raise TypeError("text must be a str")
	_check_window(window_size, window_overlap)

	if not text.strip():
		return []

	if is_punctuated(text):
		segments = split_sentences(text)
		logger.debug("Sentence segmentation produced %d segments", len(segments))
	else:
		segments = sliding_windows(tokenize(text), window_size, window_overlap)
		logger.debug(
			"Text below punctuation density %.2f; produced %d windows (size=%d, overlap=%d)",
			MIN_PUNCTUATION_RATIO,
			len(segments),
			window_size,
			window_overlap,
		)
	return segments


def text_from_tokens(text: str, start: int, end: int) -> str:
	"""Rebuild the literal text of token range ``[start, end)``.

	Tokens are joined with single spaces, so the result is the
	whitespace-normalized form of the original span.
	"""
	tokens = tokenize(text)
	if start < 0 or end > len(tokens) or end < start:
		raise InvalidArgument(
			f"token range [{start}, {end}) is outside a {len(tokens)}-token text"
		)
	return " ".join(tokens[start:end])


def _check_window(window_size: int, window_overlap: int) -> None:
	if window_size <= 0:
		raise InvalidArgument(f"window_size must be > 0, got {window_size}")
	if window_overlap < 0 or window_overlap >= window_size:
		raise InvalidArgument(
			f"window_overlap ({window_overlap}) must be >= 0 and < window_size ({window_size})"
		)


if __name__ == "__main__":  # Simple manual smoke test
	sample = "so i was thinking about chunking and how windows help when nobody punctuates"
	for seg in segment_text(sample, window_size=6, window_overlap=2):
		print(seg)
