"""Conversion of a validated topology into NetworkX graphs.

The NetworkX views are for external analysis (notebooks, ad-hoc queries);
the pipeline itself works on ``Graph`` directly.
"""

from typing import Optional

import networkx as nx

from flowprof.topology.models import Graph
from flowprof.topology.spanning import SpanningTree


def to_networkx(graph: Graph, tree: Optional[SpanningTree] = None) -> nx.DiGraph:
    """Convert a validated graph to a NetworkX DiGraph.

    Node attributes mirror ``ValidatedNode`` (operators as integer lists).
    Each edge carries ``primary=True`` when it is the child's primary-parent
    edge in the spanning tree.

    Args:
        graph: Validated topology.
        tree: Precomputed spanning tree; derived from ``graph`` when None.

    Returns:
        A DiGraph with one node per topology node and one edge per
        parent -> child relation.
    """
    tree = tree or graph.spanning_tree()
    nx_graph = nx.DiGraph(roots=list(graph.roots))
    for node in graph:
        nx_graph.add_node(
            node.id,
            label=node.label,
            block=node.block,
            fingerprint=node.fingerprint,
            tags=list(node.tags),
            rule=node.rule,
            operators=[a.to_list() for a in node.operators],
        )
    for parent, child in graph.edges():
        nx_graph.add_edge(
            parent, child, primary=tree.primary_parent.get(child) == parent
        )
    return nx_graph


def tree_to_networkx(graph: Graph, tree: Optional[SpanningTree] = None) -> nx.DiGraph:
    """Return only the primary-parent edges as a DiGraph (a forest)."""
    full = to_networkx(graph, tree)
    forest = nx.DiGraph(roots=list(graph.roots))
    forest.add_nodes_from(full.nodes(data=True))
    forest.add_edges_from(
        (u, v) for u, v, primary in full.edges(data="primary") if primary
    )
    return forest
