"""Chunking configuration.

``ChunkingConfig`` is an explicit, eagerly validated value object. Invalid
combinations fail fast with :class:`~topicseg.errors.InvalidArgument`
instead of being coerced into something usable.

Two presets mirror the two granularities used for indexing:

- ``ChunkingConfig.parent()``: broad topic chunks (~200 tokens) for context.
- ``ChunkingConfig.child()``: fine-grained chunks (~25 tokens) for scanning.

Configurations can also be read from YAML::

	parent:
	  similarity_threshold: 0.45
	child:
	  max_size: 50

Keys not given in the file fall back to the preset of the requested
granularity.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from .errors import InvalidArgument
from .models import Granularity

__all__ = ["ChunkingConfig", "load_chunking_config"]


@dataclass(frozen=True)
class ChunkingConfig:
	"""Sizes and thresholds for one chunking granularity (all sizes in tokens).

	Attributes
	----------
	target_size : int
		Preferred chunk size; must lie within ``[min_size, max_size]``.
	min_size : int
		Soft floor. Undersized chunks are merged into a neighbour.
	max_size : int
		Hard ceiling. Never exceeded by any returned chunk.
	similarity_threshold : float
		Cosine cutoff in ``[0, 1]``; adjacent segments below it start a new chunk.
	window_size : int
		Window length used when the text is unpunctuated.
	window_overlap : int
		Tokens shared by consecutive windows; ``0 <= overlap < window_size``.
	granularity : Granularity
		Level stamped on every produced chunk.
	"""

	target_size: int = 200
	min_size: int = 128
	max_size: int = 400
	similarity_threshold: float = 0.5
	window_size: int = 200
	window_overlap: int = 50
	granularity: Granularity = Granularity.PARENT

	def __post_init__(self) -> None:
		try:
			object.__setattr__(self, "granularity", Granularity(self.granularity))
		except ValueError:
			raise InvalidArgument(
				f"granularity must be 'parent' or 'child', got {self.granularity!r}"
			) from None

		for name in ("target_size", "min_size", "max_size", "window_size", "window_overlap"):
			value = getattr(self, name)
			if isinstance(value, bool) or not isinstance(value, int):
				raise InvalidArgument(f"{name} must be an int, got {value!r}")

		if self.min_size < 1:
			raise InvalidArgument(f"min_size must be >= 1, got {self.min_size}")
		if self.min_size > self.max_size:
			raise InvalidArgument(
				f"min_size ({self.min_size}) must be <= max_size ({self.max_size})"
			)
		if not self.min_size <= self.target_size <= self.max_size:
			raise InvalidArgument(
				f"target_size ({self.target_size}) must lie within "
				f"[{self.min_size}, {self.max_size}]"
			)
		if self.window_size < 1:
			raise InvalidArgument(f"window_size must be > 0, got {self.window_size}")
		if not 0 <= self.window_overlap < self.window_size:
			raise InvalidArgument(
				f"window_overlap ({self.window_overlap}) must be >= 0 and "
				f"< window_size ({self.window_size})"
			)
		threshold = self.similarity_threshold
		if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
			raise InvalidArgument(f"similarity_threshold must be a number, got {threshold!r}")
		if not 0.0 <= float(threshold) <= 1.0:
			raise InvalidArgument(
				f"similarity_threshold must be within [0, 1], got {threshold}"
			)

	@classmethod
	def parent(cls, **overrides: Any) -> "ChunkingConfig":
		"""Broad topic detection: fewer, larger chunks."""
		base = cls(
			target_size=200,
			min_size=128,
			max_size=400,
			similarity_threshold=0.5,
			window_size=200,
			window_overlap=50,
			granularity=Granularity.PARENT,
		)
		return replace(base, **overrides) if overrides else base

	@classmethod
	def child(cls, **overrides: Any) -> "ChunkingConfig":
		"""Fine-grained semantic units for precise retrieval."""
		base = cls(
			target_size=25,
			min_size=10,
			max_size=60,
			similarity_threshold=0.5,
			window_size=30,
			window_overlap=10,
			granularity=Granularity.CHILD,
		)
		return replace(base, **overrides) if overrides else base

	@classmethod
	def for_granularity(cls, granularity: Union[str, Granularity]) -> "ChunkingConfig":
		try:
			level = Granularity(granularity)
		except ValueError:
			raise InvalidArgument(f"unknown granularity: {granularity!r}") from None
		return cls.parent() if level is Granularity.PARENT else cls.child()

	@classmethod
	def from_mapping(
		cls,
		data: Mapping[str, Any],
		granularity: Union[str, Granularity] = Granularity.PARENT,
	) -> "ChunkingConfig":
		"""Layer ``data`` over the preset for ``granularity``.

		Raises
		------
		InvalidArgument
			If ``data`` is not a mapping, has unknown keys, or produces an
			invalid configuration.
		"""
		if not isinstance(data, Mapping):
			raise InvalidArgument("configuration section must be a mapping")
		known = {f.name for f in fields(cls)}
		unknown = sorted(set(data) - known)
		if unknown:
			raise InvalidArgument(f"unknown chunking config keys: {', '.join(unknown)}")
		base = cls.for_granularity(data.get("granularity", granularity))
		return replace(base, **dict(data))

	def to_dict(self) -> Dict[str, Any]:
		out = asdict(self)
		out["granularity"] = self.granularity.value
		return out


def load_chunking_config(
	path: Union[str, Path],
	granularity: Union[str, Granularity] = Granularity.PARENT,
) -> ChunkingConfig:
	"""Read a YAML file and return the config for ``granularity``.

	The file may hold ``parent:`` / ``child:`` sections, or a single flat
	mapping that applies to the requested granularity. An empty file yields
	the preset.
	"""
	cfg_path = Path(path)
	if not cfg_path.is_file():
		raise InvalidArgument(f"config file not found: {cfg_path}")
	try:
		data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
	except yaml.YAMLError as exc:
		raise InvalidArgument(f"invalid YAML in {cfg_path}: {exc}") from exc

	level = ChunkingConfig.for_granularity(granularity).granularity
	if data is None:
		return ChunkingConfig.for_granularity(level)
	if not isinstance(data, dict):
		raise InvalidArgument(f"{cfg_path} must contain a mapping at the top level")

	if any(key in data for key in ("parent", "child")):
		section = data.get(level.value) or {}
	else:
		section = data
	return ChunkingConfig.from_mapping(section, granularity=level)
