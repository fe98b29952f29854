"""Within-layer ordering by the barycenter heuristic.

Three sweeps are applied: down (by parent positions in the layer above), up
(by child positions in the layer below), and down again. Nodes without
neighbors in the reference layer sort after those with, and node id breaks
every remaining tie.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

Layers = List[List[int]]


def build_layers(ranks: Dict[int, int]) -> Layers:
    """Bucket node ids by rank; each layer sorted by id."""
    if not ranks:
        return []
    layers: Layers = [[] for _ in range(max(ranks.values()) + 1)]
    for nid in sorted(ranks):
        layers[ranks[nid]].append(nid)
    return layers


def _barycenter_sort(
    layer: List[int],
    neighbors: Dict[int, Sequence[int]],
    reference: List[int],
) -> List[int]:
    position = {nid: i for i, nid in enumerate(reference)}

    def key(nid: int) -> Tuple[int, float, int]:
        idx = [position[n] for n in neighbors.get(nid, ()) if n in position]
        if not idx:
            return (1, 0.0, nid)
        return (0, sum(idx) / len(idx), nid)

    return sorted(layer, key=key)


def _sweep_down(layers: Layers, parents: Dict[int, Sequence[int]]) -> None:
    for i in range(1, len(layers)):
        layers[i] = _barycenter_sort(layers[i], parents, layers[i - 1])


def _sweep_up(layers: Layers, children: Dict[int, Sequence[int]]) -> None:
    for i in range(len(layers) - 2, -1, -1):
        layers[i] = _barycenter_sort(layers[i], children, layers[i + 1])


def reduce_crossings(
    layers: Layers,
    parents: Dict[int, Sequence[int]],
    children: Dict[int, Sequence[int]],
) -> Layers:
    """Return a reordered copy of ``layers`` (down, up, down sweeps)."""
    out = [list(layer) for layer in layers]
    _sweep_down(out, parents)
    _sweep_up(out, children)
    _sweep_down(out, parents)
    return out


def count_crossings(layers: Layers, children: Dict[int, Sequence[int]]) -> int:
    """Count crossings between edges joining consecutive layers."""
    total = 0
    for upper, lower in zip(layers, layers[1:]):
        lower_pos = {nid: i for i, nid in enumerate(lower)}
        segments = [
            (i, lower_pos[c])
            for i, nid in enumerate(upper)
            for c in children.get(nid, ())
            if c in lower_pos
        ]
        for a in range(len(segments)):
            for b in range(a + 1, len(segments)):
                (u1, l1), (u2, l2) = segments[a], segments[b]
                if (u1 - u2) * (l1 - l2) < 0:
                    total += 1
    return total
