"""One-sided hypergeometric over-representation test in log space."""

import numpy as np
from scipy.special import gammaln, logsumexp


class InvalidParameters(ValueError):
    """Raised when hypergeometric test counts are inconsistent or out of range."""


def log_binomial(n, k):
    """Natural log of the binomial coefficient C(n, k); accepts scalars or arrays."""
    return gammaln(n + 1) - gammaln(k + 1) - gammaln(n - k + 1)


def validate_counts(
    query_hits: int,
    query_total: int,
    term_background: int,
    population_total: int,
) -> None:
    """
    Check that the four counts describe a valid hypergeometric draw.

    Raises:
        InvalidParameters: On negative counts, an empty population or term
            background, a query larger than the population, a term background
            larger than the population, or more hits than the query or the
            term background can hold.
    """
    counts = {
        "query_hits": query_hits,
        "query_total": query_total,
        "term_background": term_background,
        "population_total": population_total,
    }
    negative = [name for name, value in counts.items() if value < 0]
    if negative:
        raise InvalidParameters(f"Negative counts: {', '.join(negative)} ({counts})")
    if population_total == 0:
        raise InvalidParameters("population_total must be > 0")
    if term_background == 0:
        raise InvalidParameters("term_background must be > 0")
    if population_total < query_total:
        raise InvalidParameters(
            f"query_total ({query_total}) exceeds population_total ({population_total})"
        )
    if term_background > population_total:
        raise InvalidParameters(
            f"term_background ({term_background}) exceeds population_total ({population_total})"
        )
    if query_hits > min(query_total, term_background):
        raise InvalidParameters(
            f"query_hits ({query_hits}) exceeds min(query_total, term_background) "
            f"= {min(query_total, term_background)}"
        )


def hypergeometric_test(
    query_hits: int,
    query_total: int,
    term_background: int,
    population_total: int,
) -> float:
    """
    Upper-tail hypergeometric p-value P(X >= query_hits).

    Models drawing ``query_total`` genes without replacement from
    ``population_total`` genes of which ``term_background`` carry the term.

    Each tail probability is computed as
    ``log C(K, k) + log C(N-K, n-k) - log C(N, n)`` and the tail is summed
    with log-sum-exp; only the final sum is exponentiated.

    Args:
        query_hits: Observed query genes carrying the term (k)
        query_total: Query genes drawn (n)
        term_background: Population genes carrying the term (K)
        population_total: Population size (N)

    Returns:
        P-value in (0, 1]; exactly 1.0 when query_hits is 0

    Raises:
        InvalidParameters: See validate_counts
    """
    validate_counts(query_hits, query_total, term_background, population_total)

    if query_hits == 0:
        return 1.0

    # Support of X is [max(0, n + K - N), min(n, K)]
    lower = max(query_hits, query_total + term_background - population_total)
    upper = min(query_total, term_background)
    if lower > upper:
        return 1.0

    k = np.arange(lower, upper + 1, dtype=np.float64)
    log_terms = (
        log_binomial(term_background, k)
        + log_binomial(population_total - term_background, query_total - k)
        - log_binomial(population_total, query_total)
    )
    p_value = float(np.exp(logsumexp(log_terms)))

    # Rounding can push a full-support tail marginally above 1
    return min(p_value, 1.0)
