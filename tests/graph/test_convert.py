import networkx as nx

from flowprof.graph.convert import to_networkx, tree_to_networkx


def test_to_networkx_carries_node_attributes(flat_graph) -> None:
    g = to_networkx(flat_graph)

    assert isinstance(g, nx.DiGraph)
    assert sorted(g.nodes) == [0, 1, 2, 3]
    assert g.nodes[1]["label"] == "join orders with customers"
    assert g.nodes[1]["block"] == "stratum 0"
    assert g.nodes[1]["fingerprint"] == "fpA"
    assert g.nodes[1]["rule"] == "r1"
    assert g.nodes[1]["operators"] == [[0, 2], [0, 3]]
    assert g.graph["roots"] == [0]


def test_to_networkx_flags_primary_edges(flat_graph) -> None:
    g = to_networkx(flat_graph)

    assert g.edges[1, 3]["primary"] is True
    assert g.edges[2, 3]["primary"] is False
    assert g.number_of_edges() == 4


def test_tree_to_networkx_drops_extra_edges(flat_graph) -> None:
    forest = tree_to_networkx(flat_graph)

    assert not forest.has_edge(2, 3)
    assert forest.number_of_nodes() == 4
    assert nx.is_forest(forest)
    assert forest.nodes[3]["block"] == "inspect"
