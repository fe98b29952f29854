"""Block ordering and layer (rank) assignment.

Blocks are ordered input first, then ``stratum N`` blocks by N, then every
other block in one shared band, then inspect/output blocks last. A block's
band index is the base rank of its nodes; ranks are then pushed down so that
each node sits strictly below all of its parents.
"""

from __future__ import annotations

import heapq
from typing import Dict, Iterable, List, Tuple

from flowprof.config import LAYOUT_CONFIG, LayoutConfig
from flowprof.logging import get_logger
from flowprof.topology.models import Graph

logger = get_logger(__name__)

# Band classes
_INPUT, _STRATUM, _OTHER, _INSPECT = 0, 1, 2, 3


def block_sort_key(block: str, config: LayoutConfig = LAYOUT_CONFIG) -> Tuple[int, int, str]:
    """Total order over block names: ``(band class, stratum index, name)``."""
    name = block.strip().lower()
    if name in config.input_blocks:
        return (_INPUT, 0, block)
    stratum = config.stratum_index(block)
    if stratum is not None:
        return (_STRATUM, stratum, block)
    if name in config.inspect_blocks:
        return (_INSPECT, 0, block)
    return (_OTHER, 0, block)


def block_order(blocks: Iterable[str], config: LayoutConfig = LAYOUT_CONFIG) -> List[str]:
    """Distinct block names in canonical order."""
    return sorted(set(blocks), key=lambda b: block_sort_key(b, config))


def base_ranks(blocks: Iterable[str], config: LayoutConfig = LAYOUT_CONFIG) -> Dict[str, int]:
    """Map each block to the index of its band among the bands present."""
    keys = {b: block_sort_key(b, config)[:2] for b in set(blocks)}
    bands = sorted(set(keys.values()))
    band_rank = {band: i for i, band in enumerate(bands)}
    return {b: band_rank[k] for b, k in keys.items()}


def assign_ranks(graph: Graph, config: LayoutConfig = LAYOUT_CONFIG) -> Dict[int, int]:
    """Compute ``rank(v) = max(base(v), max(rank(p) + 1 for parents p))``.

    Nodes are visited in Kahn order, smallest ready id first. Nodes left
    unresolved (only possible on a cyclic graph) are ranked in id order from
    whichever parents already have a rank.
    """
    base_of_block = base_ranks((n.block for n in graph), config)
    indegree = {n.id: len(n.parents) for n in graph}
    ready = [nid for nid, deg in indegree.items() if deg == 0]
    heapq.heapify(ready)

    ranks: Dict[int, int] = {}
    while ready:
        nid = heapq.heappop(ready)
        node = graph.node(nid)
        ranks[nid] = max(
            [base_of_block[node.block]] + [ranks[p] + 1 for p in node.parents]
        )
        for child in node.children:
            indegree[child] -= 1
            if indegree[child] == 0:
                heapq.heappush(ready, child)

    unresolved = sorted(set(graph.nodes) - set(ranks))
    if unresolved:
        logger.warning(
            f"Layout found {len(unresolved)} nodes on a cycle; ranking them by id"
        )
    for nid in unresolved:
        node = graph.node(nid)
        ranks[nid] = max(
            [base_of_block[node.block]]
            + [ranks[p] + 1 for p in node.parents if p in ranks]
        )
    return dict(sorted(ranks.items()))


def compact_ranks(ranks: Dict[int, int]) -> Dict[int, int]:
    """Renumber ranks to consecutive integers, dropping empty layers."""
    distinct = sorted(set(ranks.values()))
    index = {r: i for i, r in enumerate(distinct)}
    return {nid: index[r] for nid, r in ranks.items()}
