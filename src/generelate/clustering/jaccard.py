"""Jaccard set distance between term gene sets."""

from collections.abc import Collection, Sequence

import numpy as np


def jaccard_distance(a: Collection[str], b: Collection[str]) -> float:
    """
    Jaccard distance 1 - |a & b| / |a | b|.

    Two empty sets are treated as identical (distance 0).
    """
    a = set(a)
    b = set(b)
    union = len(a | b)
    if union == 0:
        return 0.0
    return 1.0 - len(a & b) / union


def distance_matrix(gene_sets: Sequence[Collection[str]]) -> np.ndarray:
    """Symmetric pairwise Jaccard distance matrix with a zero diagonal."""
    n = len(gene_sets)
    sets = [set(genes) for genes in gene_sets]
    matrix = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in range(i + 1, n):
            d = jaccard_distance(sets[i], sets[j])
            matrix[i, j] = d
            matrix[j, i] = d
    return matrix
