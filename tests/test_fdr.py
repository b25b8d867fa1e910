"""Tests for Benjamini-Hochberg correction and rank ordering."""

import pytest

from generelate.enrichment.fdr import benjamini_hochberg, rank_order


def test_empty_input():
    assert benjamini_hochberg([]) == []


def test_single_p_value_unchanged():
    assert benjamini_hochberg([0.03]) == pytest.approx([0.03])


def test_known_values_in_input_order():
    """q-values come back aligned with the unsorted input."""
    q = benjamini_hochberg([0.01, 0.04, 0.03, 0.005])
    assert q == pytest.approx([0.02, 0.04, 0.04, 0.02])


def test_all_equal_p_values_unchanged():
    p = [0.2] * 7
    assert benjamini_hochberg(p) == pytest.approx(p)


def test_q_values_never_below_p_values():
    p = [0.001, 0.2, 0.04, 0.5, 0.013, 0.9, 0.04]
    q = benjamini_hochberg(p)
    assert all(qi >= pi for pi, qi in zip(p, q))


def test_q_values_clipped_to_one():
    q = benjamini_hochberg([1.0, 0.99, 1.0])
    assert all(0.0 <= value <= 1.0 for value in q)
    assert max(q) == pytest.approx(1.0)


def test_monotone_along_rank_order():
    """Walking records in rank order, q-values never decrease."""
    p = [0.3, 0.001, 0.02, 0.02, 0.8, 0.0004, 0.05]
    terms = [f"T{i}" for i in range(len(p))]
    q = benjamini_hochberg(p)
    ordered = [q[i] for i in rank_order(p, terms)]
    assert ordered == sorted(ordered)


def test_rank_order_breaks_ties_by_term():
    p = [0.01, 0.01, 0.001, 0.01]
    terms = ["GO:3", "GO:1", "GO:9", "GO:2"]
    assert rank_order(p, terms) == [2, 1, 3, 0]


def test_rank_order_length_mismatch():
    with pytest.raises(ValueError, match="differ in length"):
        rank_order([0.1, 0.2], ["T1"])
