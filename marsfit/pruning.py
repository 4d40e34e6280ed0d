"""
Backward pass: nested elimination of forward-pass terms scored by GCV.
"""

import numpy as np
import pandas as pd

from .basis import basis_matrix
from .gcv import gcv_score
from .lstsq import drop_one_rss, fit_least_squares


# RSS increases within this fraction of the current RSS count as ties
TIE_RTOL = 1e-9


class PruningResult:
    """
    Outcome of the backward pass.

    Attributes
    ----------
    active : tuple of int
        Indices (into the forward term list) of the selected subset.
    coefficients : np.ndarray
    rss, gcv : float
    gcv_curve : pd.Series
        GCV of the best subset of every size, indexed by term count.
    subsets : dict
        Term count -> tuple of active indices, for every size visited.
    record : pd.DataFrame
        One row per removal step.
    """

    def __init__(self, active, coefficients, rss, gcv, gcv_curve, subsets,
                 record):
        self.active = active
        self.coefficients = coefficients
        self.rss = rss
        self.gcv = gcv
        self.gcv_curve = gcv_curve
        self.subsets = subsets
        self.record = record


def removal_order(deltas, positions):
    """
    Position (within the active list) of the term to remove.

    Smallest RSS increase wins; near-ties go to the most recently
    discovered term.  ``positions`` excludes the intercept.
    """
    best = min(deltas[i] for i in positions)
    tol = TIE_RTOL * max(abs(best), np.finfo(float).tiny)
    return max(i for i in positions if deltas[i] <= best + tol)


def prune(terms, X, y, config, verbose=False, feature_names=None):
    """
    Remove terms one at a time and keep the subset with the lowest GCV.

    With ``penalty_d == 0`` GCV carries no knot cost and selection reduces
    to RSS minimisation, which always keeps the largest subset.

    Parameters
    ----------
    terms : list of Term
        Forward-pass terms; ``terms[0]`` is the intercept and is never
        removed.
    X, y : np.ndarray
    config : MarsConfig
        ``penalty_d`` and ``enable_pruning`` are used.

    Returns
    -------
    PruningResult
    """
    n = len(y)
    d = config.penalty_d
    B_full = basis_matrix(terms, X)
    active = list(range(len(terms)))

    coef, rss = fit_least_squares(B_full, y)
    fits = {len(active): (tuple(active), coef, rss)}
    curve = {len(active): gcv_score(rss, n, len(active), d)}
    rows = []

    if verbose:
        print()
        print(f"  M={len(active):3d}  RSS={rss:.6g}  "
              f"GCV={curve[len(active)]:.6g}  (full forward model)")

    while config.enable_pruning and len(active) > 1:
        deltas = drop_one_rss(B_full[:, active], y)
        pos = removal_order(deltas, range(1, len(active)))
        removed = active.pop(pos)
        coef, rss = fit_least_squares(B_full[:, active], y)
        m = len(active)
        fits[m] = (tuple(active), coef, rss)
        curve[m] = gcv_score(rss, n, m, d)
        rows.append({
            'Terms': m,
            'Removed': terms[removed].label(feature_names),
            'RSS_increase': float(deltas[pos]),
            'RSS': rss,
            'GCV': curve[m],
        })
        if verbose:
            print(f"  M={m:3d}  RSS={rss:.6g}  GCV={curve[m]:.6g}  "
                  f"(dropped {terms[removed].label(feature_names)})")

    if d == 0:
        # no knot cost: pure RSS minimisation, and RSS only falls as the
        # nested subsets grow
        best_m = max(curve)
    else:
        # lowest GCV; equal scores go to the smaller model
        best_m = min(curve, key=lambda m: (curve[m], m))
    sel_active, sel_coef, sel_rss = fits[best_m]

    if verbose:
        print(f"\n  Selected M={best_m} (GCV={curve[best_m]:.6g})")

    gcv_curve = pd.Series(curve, name='GCV').sort_index()
    gcv_curve.index.name = 'Terms'
    return PruningResult(
        active=sel_active,
        coefficients=sel_coef,
        rss=sel_rss,
        gcv=curve[best_m],
        gcv_curve=gcv_curve,
        subsets={m: fits[m][0] for m in fits},
        record=pd.DataFrame(
            rows, columns=['Terms', 'Removed', 'RSS_increase', 'RSS', 'GCV']),
    )
