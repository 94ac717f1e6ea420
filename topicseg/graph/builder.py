"""Chunk hierarchy graph for two-level chunking output.

This module links a source entity to its parent chunks and each parent to its
child chunks, producing a ``networkx.DiGraph``. An indexing collaborator can
use it to widen a child hit to its parent's context or to step to the
neighbouring chunk, without re-running the chunker.

Node Types
----------
- entity: single root node (``id=source_entity_id``)
- chunk: one per chunk; ``level`` is ``"parent"`` or ``"child"``

Edge Relations
--------------
- entity -> parent chunk: ``relation="has_chunk"``
- parent chunk -> child chunk: ``relation="has_child"``
- chunk_i -> chunk_{i+1} among siblings of one level: ``relation="next"``
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import networkx as nx

from topicseg.models import Chunk, Granularity

__all__ = ["GraphBuildConfig", "build_chunk_graph"]


@dataclass
class GraphBuildConfig:
	"""Configuration for chunk graph construction.

	Attributes
	----------
	add_next_edges : bool
		Add sequential ``next`` edges between sibling chunks. Default: True.
	include_text : bool
		Copy chunk text onto chunk nodes. Default: True.
	"""

	add_next_edges: bool = True
	include_text: bool = True


def build_chunk_graph(
	source_entity_id: str,
	chunks: Sequence[Chunk],
	config: Optional[GraphBuildConfig] = None,
) -> nx.DiGraph:
	"""Build a directed graph linking an entity to its parent and child chunks.

	Parameters
	----------
	source_entity_id : str
		Identifier for the root node; every chunk must belong to it.
	chunks : Sequence[Chunk]
		Output of ``chunk_two_level`` (or plain single-level chunks).

	Returns
	-------
	networkx.DiGraph
		Nodes carry ``type``, ``level``, ``start_token``, ``end_token`` and
		``text`` attributes.

	Notes
	-----
	Chunks without a ``parent_id`` hang directly off the entity node. A
	child whose parent is not among ``chunks`` raises ``ValueError``.
	"""
	if not isinstance(source_entity_id, str) or not source_entity_id:
		raise TypeError("source_entity_id must be a non-empty str")
	if config is None:
		config = GraphBuildConfig()

	graph = nx.DiGraph()
	graph.add_node(source_entity_id, type="entity", level="", text="")

	if not all(isinstance(ch, Chunk) for ch in chunks):
		raise TypeError("chunks must contain Chunk objects")
	known = {c.id for c in chunks}
	siblings: Dict[str, List[str]] = {}
	for ch in chunks:
		if ch.source_entity_id != source_entity_id:
			raise ValueError(
				f"chunk {ch.id} belongs to {ch.source_entity_id}, not {source_entity_id}"
			)
		graph.add_node(
			ch.id,
			type="chunk",
			level=Granularity(ch.config).value,
			start_token=ch.start_token,
			end_token=ch.end_token,
			text=ch.text if config.include_text else "",
		)
		if ch.parent_id is None:
			graph.add_edge(source_entity_id, ch.id, relation="has_chunk")
			siblings.setdefault(source_entity_id, []).append(ch.id)
		else:
			if ch.parent_id not in known:
				raise ValueError(f"chunk {ch.id} references unknown parent {ch.parent_id}")
			graph.add_edge(ch.parent_id, ch.id, relation="has_child")
			siblings.setdefault(ch.parent_id, []).append(ch.id)

	if config.add_next_edges:
		for ids in siblings.values():
			ordered = sorted(ids, key=lambda cid: graph.nodes[cid]["start_token"])
			for a, b in zip(ordered, ordered[1:]):
				graph.add_edge(a, b, relation="next")

	return graph
