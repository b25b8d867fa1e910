"""Benjamini-Hochberg correction and deterministic rank ordering."""

from collections.abc import Sequence

import numpy as np
from statsmodels.stats.multitest import multipletests


def benjamini_hochberg(p_values: Sequence[float]) -> list[float]:
    """
    Benjamini-Hochberg step-up adjusted p-values (q-values).

    Sorts p-values ascending, scales rank i of m by m / i, enforces
    monotonicity with a running minimum from the largest rank down, clips to
    [0, 1] and returns q-values in the input order.

    Args:
        p_values: Raw p-values, one per tested term

    Returns:
        List of q-values aligned with the input (empty for empty input)
    """
    if len(p_values) == 0:
        return []

    _, adjusted, _, _ = multipletests(np.asarray(p_values, dtype=np.float64), method="fdr_bh")
    return np.clip(adjusted, 0.0, 1.0).tolist()


def rank_order(p_values: Sequence[float], terms: Sequence[str]) -> list[int]:
    """
    Indices of the inputs in significance order.

    Ordered by p-value ascending; equal p-values are ordered by term
    identifier so iteration order is reproducible.
    """
    if len(p_values) != len(terms):
        raise ValueError(
            f"p_values and terms differ in length ({len(p_values)} != {len(terms)})"
        )
    return sorted(range(len(p_values)), key=lambda i: (p_values[i], terms[i]))
