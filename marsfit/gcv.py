"""
Generalized cross-validation for a basis of ``M`` terms:

    C(M) = M + d * (M - 1)
    GCV  = (RSS / n) / (1 - C(M) / n) ** 2

The intercept is not charged for a knot, hence ``M - 1``.
"""

import numpy as np

from .exceptions import GCVDegenerateError


def effective_parameters(n_terms, penalty_d):
    """Effective number of parameters ``C(M)``."""
    return n_terms + penalty_d * (n_terms - 1)


def gcv_score(rss, n_samples, n_terms, penalty_d=3.0):
    """
    GCV of a fitted basis.

    Raises
    ------
    GCVDegenerateError
        When ``C(M) >= n``, where the criterion is undefined.
    """
    c = effective_parameters(n_terms, penalty_d)
    if c >= n_samples:
        raise GCVDegenerateError(
            f"effective parameters C({n_terms}) = {c:g} reach the number "
            f"of observations ({n_samples})"
        )
    return (rss / n_samples) / (1.0 - c / n_samples) ** 2


def model_gcv(model, penalty_d=None):
    """GCV of a fitted ``MarsModel``, optionally under another penalty."""
    d = model.penalty_d if penalty_d is None else penalty_d
    return gcv_score(model.rss, model.n_samples, model.n_terms, d)


def max_terms_for(n_samples, penalty_d):
    """Largest ``M`` for which ``C(M) < n`` (0 when even M=1 fails)."""
    m = int(np.floor((n_samples + penalty_d) / (1.0 + penalty_d)))
    while m > 0 and effective_parameters(m, penalty_d) >= n_samples:
        m -= 1
    return m
