"""Tests for Jaccard distances and UPGMA clustering of enrichment terms."""

import numpy as np
import pytest
from scipy.cluster.hierarchy import is_valid_linkage, linkage
from scipy.spatial.distance import squareform

from generelate.clustering import (
    ClusterNode,
    ClusterTree,
    cluster_records,
    distance_matrix,
    jaccard_distance,
    upgma,
)
from generelate.enrichment import EnrichmentRecord


def make_record(term, genes, p_value=0.01):
    return EnrichmentRecord(
        term=term,
        description=f"{term} description",
        category="Biological Process",
        p_value=p_value,
        fdr=p_value,
        fold=2.0,
        gene_count=len(genes),
        bg_count=len(genes) + 5,
        genes=tuple(genes),
    )


@pytest.fixture
def two_groups():
    """Two tight pairs of terms that share no genes with each other."""
    return [
        make_record("A", ["g1", "g2", "g3"], 0.001),
        make_record("B", ["g1", "g2", "g3", "g4"], 0.002),
        make_record("C", ["g7", "g8"], 0.003),
        make_record("D", ["g7", "g8", "g9"], 0.004),
    ]


@pytest.fixture
def overlapping_records():
    gene_sets = [
        ["a", "b", "c", "d"],
        ["a", "b", "e"],
        ["c", "d", "f", "g"],
        ["f", "g", "h"],
        ["a", "h", "i", "j"],
        ["i", "j"],
        ["b", "c", "d", "e", "f"],
    ]
    return [make_record(f"T{i}", genes, 0.001 * (i + 1)) for i, genes in enumerate(gene_sets)]


# ============================================================================
# Jaccard
# ============================================================================

def test_jaccard_identity():
    assert jaccard_distance({"a", "b"}, {"a", "b"}) == 0.0


def test_jaccard_disjoint():
    assert jaccard_distance({"a"}, {"b"}) == 1.0


def test_jaccard_partial_overlap():
    assert jaccard_distance(["a", "b", "c"], ["b", "c", "d"]) == pytest.approx(0.5)


def test_jaccard_both_empty():
    assert jaccard_distance([], []) == 0.0


def test_jaccard_symmetric_and_bounded(overlapping_records):
    sets = [r.genes for r in overlapping_records]
    for a in sets:
        for b in sets:
            d = jaccard_distance(a, b)
            assert d == jaccard_distance(b, a)
            assert 0.0 <= d <= 1.0


def test_distance_matrix(overlapping_records):
    matrix = distance_matrix([r.genes for r in overlapping_records])

    assert matrix.shape == (7, 7)
    assert np.allclose(matrix, matrix.T)
    assert np.all(np.diag(matrix) == 0.0)


# ============================================================================
# UPGMA
# ============================================================================

def test_two_groups_merge_order(two_groups):
    tree = cluster_records(two_groups, top_n=10)

    expected = np.array([
        [0, 1, 0.25, 2],
        [2, 3, 1 / 3, 2],
        [4, 5, 1.0, 4],
    ])
    assert np.allclose(tree.to_linkage(), expected)
    assert tree.root.height == pytest.approx(1.0)


def test_tie_break_prefers_smallest_indices():
    records = [make_record(f"T{i}", ["x", "y"]) for i in range(3)]
    tree = cluster_records(records, top_n=3)

    # All distances are 0: (0, 1) first, then the merged cluster with leaf 2
    assert tree.to_linkage().tolist() == [[0, 1, 0.0, 2], [3, 2, 0.0, 3]]


def test_node_counts(overlapping_records):
    tree = cluster_records(overlapping_records, top_n=20)
    k = len(overlapping_records)

    assert tree.leaf_count == k
    assert len(tree.merges) == k - 1
    assert tree.node_count == 2 * k - 1
    assert tree.root.size == k


def test_root_height_is_maximum(overlapping_records):
    tree = cluster_records(overlapping_records, top_n=20)

    assert tree.root.height == max(node.height for node in tree.merges)
    assert tree.max_height == tree.root.height


def test_heights_monotone_towards_root(overlapping_records):
    tree = cluster_records(overlapping_records, top_n=20)

    for node in tree.root.iter_nodes():
        if not node.is_leaf:
            assert node.height >= node.left.height
            assert node.height >= node.right.height


def test_matches_scipy_average_linkage(overlapping_records):
    """UPGMA merge heights agree with scipy's average linkage."""
    tree = cluster_records(overlapping_records, top_n=20)
    matrix = distance_matrix([r.genes for r in overlapping_records])
    reference = linkage(squareform(matrix, checks=False), method="average")

    ours = tree.to_linkage()
    assert is_valid_linkage(ours)
    assert np.allclose(sorted(ours[:, 2]), sorted(reference[:, 2]))


def test_leaf_order_covers_all_records(overlapping_records):
    tree = cluster_records(overlapping_records, top_n=20)

    assert sorted(r.term for r in tree.leaf_order()) == sorted(r.term for r in overlapping_records)


def test_top_n_limits_leaves(overlapping_records):
    tree = cluster_records(overlapping_records, top_n=4)

    assert tree.leaf_count == 4
    assert [r.term for r in tree.records] == ["T0", "T1", "T2", "T3"]


@pytest.mark.parametrize("top_n", [0, 1])
def test_top_n_below_two_returns_none(overlapping_records, top_n):
    assert cluster_records(overlapping_records, top_n=top_n) is None


def test_single_record_returns_none():
    assert cluster_records([make_record("A", ["a"])], top_n=20) is None


def test_upgma_shape_mismatch():
    leaves = [ClusterNode.leaf(make_record("A", ["a"]), 0)]
    with pytest.raises(ValueError, match="does not match"):
        upgma(np.zeros((2, 2)), leaves)


# ============================================================================
# Tree output
# ============================================================================

def test_newick(two_groups):
    tree = cluster_records(two_groups, top_n=10)
    newick = tree.to_newick()

    assert newick.endswith(";")
    assert newick.count("(") == newick.count(")") == 3
    for term in "ABCD":
        assert term in newick


def test_newick_quotes_labels(two_groups):
    tree = cluster_records(two_groups, top_n=10)
    newick = tree.to_newick(label_attr="description")

    assert "'A description'" in newick


def test_single_leaf_tree_newick():
    record = make_record("ONLY", ["a"])
    tree = ClusterTree(root=ClusterNode.leaf(record, 0), records=[record])

    assert tree.to_newick() == "ONLY;"
    assert tree.node_count == 1
    assert tree.max_height == 0.0
