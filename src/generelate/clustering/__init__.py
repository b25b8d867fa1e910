"""Hierarchical clustering of enrichment terms by Jaccard gene-set distance."""

from generelate.clustering.jaccard import distance_matrix, jaccard_distance
from generelate.clustering.tree import ClusterNode, ClusterTree
from generelate.clustering.upgma import cluster_records, upgma

__all__ = [
    "jaccard_distance",
    "distance_matrix",
    "ClusterNode",
    "ClusterTree",
    "upgma",
    "cluster_records",
]
