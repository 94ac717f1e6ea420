"""Exception taxonomy for topicseg.

Every failure surfaces synchronously to the caller of
:func:`topicseg.chunking.pipeline.segment_and_chunk`; nothing is logged and
swallowed inside the engine.
"""

from __future__ import annotations

__all__ = [
	"ChunkingError",
	"InvalidArgument",
	"EmbeddingUnavailable",
	"InvariantViolation",
]


class ChunkingError(Exception):
	"""Base class for all topicseg errors."""


class InvalidArgument(ChunkingError, ValueError):
	"""Malformed configuration or arguments; raised before any processing."""


class EmbeddingUnavailable(ChunkingError, RuntimeError):
	"""The embedding provider failed or returned a mismatched result set."""


class InvariantViolation(ChunkingError, AssertionError):
	"""Normalization could not guarantee the output invariants (a bug)."""
