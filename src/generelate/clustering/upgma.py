"""UPGMA (average-linkage) clustering of enrichment terms by gene-set similarity."""

from collections.abc import Sequence

import numpy as np
import structlog

from generelate.clustering.jaccard import distance_matrix
from generelate.clustering.tree import ClusterNode, ClusterTree
from generelate.enrichment.models import EnrichmentRecord

logger = structlog.get_logger(__name__)


def _closest_pair(distances: np.ndarray) -> tuple[int, int, float]:
    """
    Globally closest pair (i, j), i < j, of the current clusters.

    Ties on distance go to the smallest i + j, then the smallest i.
    """
    rows, cols = np.triu_indices(distances.shape[0], k=1)
    values = distances[rows, cols]
    best = values.min()
    tied = np.flatnonzero(values == best)
    tied_rows = rows[tied]
    tied_cols = cols[tied]
    pick = np.lexsort((tied_rows, tied_rows + tied_cols))[0]
    return int(tied_rows[pick]), int(tied_cols[pick]), float(best)


def upgma(distances: np.ndarray, leaves: Sequence[ClusterNode]) -> tuple[ClusterNode, list[ClusterNode]]:
    """
    Agglomerate leaves by average linkage until one cluster remains.

    After merging clusters A and B, the distance from the new cluster to every
    other cluster C is the size-weighted mean
    ``(|A| d(A,C) + |B| d(B,C)) / (|A| + |B|)``. The merged cluster takes
    the lower slot i and slot j is removed.

    Args:
        distances: Symmetric (k, k) distance matrix over the leaves
        leaves: k leaf nodes aligned with the matrix rows

    Returns:
        Tuple of (root node, internal nodes in merge order)
    """
    k = len(leaves)
    if distances.shape != (k, k):
        raise ValueError(f"distance matrix shape {distances.shape} does not match {k} leaves")
    if k == 0:
        raise ValueError("Cannot cluster zero leaves")

    dist = np.array(distances, dtype=np.float64, copy=True)
    clusters = list(leaves)
    merges: list[ClusterNode] = []

    while len(clusters) > 1:
        i, j, height = _closest_pair(dist)
        a, b = clusters[i], clusters[j]

        merged = ClusterNode.merge(a, b, height=height, node_id=k + len(merges))
        merges.append(merged)

        row = (a.size * dist[i] + b.size * dist[j]) / (a.size + b.size)
        dist[i, :] = row
        dist[:, i] = row
        dist[i, i] = 0.0
        dist = np.delete(np.delete(dist, j, axis=0), j, axis=1)

        clusters[i] = merged
        del clusters[j]

        logger.debug(
            "upgma_merge",
            left=a.node_id,
            right=b.node_id,
            height=height,
            size=merged.size,
        )

    return clusters[0], merges


def cluster_records(records: Sequence[EnrichmentRecord], top_n: int) -> ClusterTree | None:
    """
    Build a UPGMA dendrogram over the first ``top_n`` ranked records.

    Distances are Jaccard distances between the records' matched gene lists.

    Args:
        records: Enrichment records, already in rank order
        top_n: Number of leading records to cluster

    Returns:
        ClusterTree, or None when fewer than two records would be clustered
    """
    if top_n < 2:
        logger.info("clustering_skipped", reason="top_n_below_two", top_n=top_n)
        return None

    selected = list(records[:top_n])
    if len(selected) < 2:
        logger.info("clustering_skipped", reason="too_few_records", record_count=len(selected))
        return None

    leaves = [ClusterNode.leaf(record, index) for index, record in enumerate(selected)]
    distances = distance_matrix([record.genes for record in selected])

    root, merges = upgma(distances, leaves)

    tree = ClusterTree(root=root, records=selected, merges=merges)
    logger.info(
        "clustering_complete",
        leaf_count=tree.leaf_count,
        merge_count=len(merges),
        root_height=root.height,
    )
    return tree
