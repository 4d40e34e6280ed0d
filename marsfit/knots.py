"""
Knot search: one step of the forward pass.

For every eligible parent term and every predictor it may be extended with,
enumerate knot candidates (distinct observed values for a continuous
predictor, binary partitions of the level set for a categorical one), score
the pair ``parent * left`` / ``parent * right`` against the current basis,
and return the addition with the smallest RSS.
"""

import time
from collections import namedtuple
from itertools import combinations

import numpy as np
from joblib import Parallel, delayed

from .basis import CategoricalFactor, HingeFactor


# RSS values within this fraction of the current RSS count as ties
TIE_RTOL = 1e-9

# upper bound on n * K for one block of candidate columns
_BLOCK_ELEMENTS = 1 << 21


Candidate = namedtuple(
    'Candidate',
    ['rss', 'parent', 'predictor', 'knot', 'orientations'],
)
Candidate.__doc__ = """\
Winning addition of one search step.

``knot`` is a float for a continuous predictor and a tuple of levels for a
categorical one.  ``orientations`` lists the hinge sides that are added
(``('right', 'left')`` for a pair, a single side when the other one
duplicates the current basis).
"""


SearchResult = namedtuple(
    'SearchResult', ['best', 'n_candidates', 'exhausted'],
)


def make_factor(predictor, knot, orientation):
    if isinstance(knot, tuple):
        return CategoricalFactor(predictor, knot, orientation)
    return HingeFactor(predictor, knot, orientation)


def new_terms(candidate, parent_term):
    """Terms contributed by ``candidate`` when grown from ``parent_term``."""
    return [
        parent_term.extend(make_factor(candidate.predictor, candidate.knot, o))
        for o in candidate.orientations
    ]


# ---------------------------------------------------------------------------
# Candidate enumeration
# ---------------------------------------------------------------------------

def knot_candidates(x, parent_col, endspan, minspan):
    """
    Selectable knots of a continuous predictor under one parent term.

    Only rows where the parent is non-zero count.  A value qualifies when
    at least ``endspan`` of those observations lie strictly below it and
    strictly above it; the qualifying values are then thinned so that at
    least ``minspan`` observations fall strictly between consecutive knots.

    Returns
    -------
    np.ndarray
        Sorted knot values (possibly empty).
    """
    xs = x[parent_col != 0]
    if len(xs) == 0:
        return np.empty(0)
    values, counts = np.unique(xs, return_counts=True)
    upto = np.cumsum(counts)
    below = upto - counts
    above = len(xs) - upto
    keep = (below >= endspan) & (above >= endspan)
    values, below, counts = values[keep], below[keep], counts[keep]
    if minspan <= 0 or len(values) <= 1:
        return values
    chosen = [0]
    last_end = below[0] + counts[0]
    for i in range(1, len(values)):
        if below[i] - last_end >= minspan:
            chosen.append(i)
            last_end = below[i] + counts[i]
    return values[chosen]


def category_partitions(levels):
    """
    All non-trivial binary partitions of ``levels``.

    Each partition is returned as the side that does not contain the
    largest level, so every split appears exactly once; the list is sorted
    lexicographically.  There are ``2**(L-1) - 1`` of them.
    """
    levels = tuple(sorted(levels))
    if len(levels) < 2:
        return []
    head = levels[:-1]
    parts = []
    for size in range(1, len(head) + 1):
        parts.extend(combinations(head, size))
    return sorted(parts)


def eligible_parents(terms, max_degree):
    return [j for j, t in enumerate(terms) if t.degree < max_degree]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def _columns(x, parent_col, knots):
    if isinstance(knots, list):
        inside = np.stack([np.isin(x, s) for s in knots], axis=1)
        right = inside.astype(np.float64)
        left = (~inside).astype(np.float64)
    else:
        diff = x[:, None] - knots[None, :]
        right = np.maximum(diff, 0.0)
        left = np.maximum(-diff, 0.0)
    right *= parent_col[:, None]
    left *= parent_col[:, None]
    return right, left


def _pick(scores, max_new_terms):
    """Best addition per candidate -> (rss, orientations) arrays."""
    rss_single = np.minimum(scores['rss_right'], scores['rss_left'])
    single = np.where(scores['rss_right'] <= scores['rss_left'],
                      0, 1)
    if max_new_terms >= 2:
        use_pair = scores['pair_ok']
        rss = np.where(use_pair, scores['rss_pair'], rss_single)
    else:
        use_pair = np.zeros_like(scores['pair_ok'])
        rss = rss_single
    kind = np.where(use_pair, 2, single)
    return rss, kind


_KINDS = {0: ('right',), 1: ('left',), 2: ('right', 'left')}


def _score_task(basis, task, max_new_terms, tie_tol, deadline):
    """
    Score one (parent, predictor) block of knots.

    Returns the candidates within ``tie_tol`` of the block minimum, or
    ``None`` when the deadline passed before the block was scored.
    """
    if deadline is not None and time.monotonic() > deadline:
        return None
    parent, predictor, x, knots = task
    parent_col = basis.B[:, parent]
    n = len(parent_col)
    step = max(1, _BLOCK_ELEMENTS // max(n, 1))
    rss_parts, kind_parts = [], []
    for start in range(0, len(knots), step):
        chunk = knots[start:start + step]
        right, left = _columns(x, parent_col, chunk)
        rss, kind = _pick(basis.score(right, left), max_new_terms)
        rss_parts.append(rss)
        kind_parts.append(kind)
    rss = np.concatenate(rss_parts)
    kind = np.concatenate(kind_parts)
    if not np.any(np.isfinite(rss)):
        return []
    best = np.min(rss)
    tied = np.flatnonzero(rss <= best + tie_tol)
    return [
        Candidate(float(rss[i]), parent, predictor,
                  knots[i] if isinstance(knots, list) else float(knots[i]),
                  _KINDS[int(kind[i])])
        for i in tied
    ]


def _tie_key(candidate):
    return (candidate.parent, candidate.predictor, candidate.knot)


def search(basis, terms, X, config, schema, max_new_terms=2,
           deadline=None, candidate_budget=None):
    """
    Find the best addition to the current model.

    Parameters
    ----------
    basis : OrthogonalBasis
        Factorisation of the current basis (columns aligned with ``terms``).
    terms : list of Term
        Current active terms; ``terms[0]`` is the intercept.
    X : np.ndarray of shape (n, p)
    config : MarsConfig
    schema : DataSchema
    max_new_terms : int
        1 when only a single term still fits under ``max_terms``.
    deadline : float or None
        ``time.monotonic()`` value after which scoring stops.
    candidate_budget : int or None
        Remaining number of knot candidates that may be scored.

    Returns
    -------
    SearchResult
        ``best`` is ``None`` when no non-degenerate candidate exists.
        ``exhausted`` is True when the budget ran out before the
        enumeration was complete; ``best`` is then ``None``.
        ``n_candidates`` counts only the candidates actually scored.
    """
    n, p = X.shape
    endspan = config.endspan_for(p)
    tasks = []
    for parent in eligible_parents(terms, config.max_degree):
        used = terms[parent].predictors
        parent_col = basis.B[:, parent]
        nz = int(np.count_nonzero(parent_col))
        for v in schema.searchable:
            if v in used:
                continue
            x = X[:, v]
            if schema.is_categorical(v):
                knots = category_partitions(schema.categorical[v])
            else:
                minspan = config.minspan_for(p, nz)
                knots = knot_candidates(x, parent_col, endspan, minspan)
            if len(knots):
                tasks.append((parent, v, x, knots))

    n_candidates = sum(len(t[3]) for t in tasks)
    if candidate_budget is not None and n_candidates > candidate_budget:
        # the step cannot be completed, so nothing is scored
        return SearchResult(None, 0, True)
    if not tasks:
        return SearchResult(None, 0, False)

    tie_tol = TIE_RTOL * basis.rss
    results = Parallel(n_jobs=config.n_jobs, prefer='threads')(
        delayed(_score_task)(basis, task, max_new_terms, tie_tol, deadline)
        for task in tasks
    )
    if any(r is None for r in results):
        scored = sum(len(t[3]) for t, r in zip(tasks, results)
                     if r is not None)
        return SearchResult(None, scored, True)

    pool = [c for r in results for c in r]
    if not pool:
        return SearchResult(None, n_candidates, False)
    best_rss = min(c.rss for c in pool)
    tied = [c for c in pool if c.rss <= best_rss + tie_tol]
    return SearchResult(min(tied, key=_tie_key), n_candidates, False)
