"""
Forward pass: grow the basis greedily, one knot search at a time.
"""

import time
import warnings

import numpy as np
import pandas as pd

from .basis import INTERCEPT
from .exceptions import BudgetExceededError
from .gcv import max_terms_for
from .knots import new_terms, search
from .lstsq import OrthogonalBasis


class ForwardResult:
    """
    Outcome of the forward pass.

    Attributes
    ----------
    terms : list of Term
        Every term added, in discovery order; ``terms[0]`` is the intercept.
    rss : float
        RSS of the full forward model.
    tss : float
        Total sum of squares (RSS of the intercept-only model).
    record : pd.DataFrame
        One row per step: parent, predictor, knot, terms added, RSS, R².
    stop_reason : str
    budget_exhausted : bool
    n_candidates : int
        Knot candidates scored over the whole pass.
    """

    def __init__(self, terms, rss, tss, record, stop_reason,
                 budget_exhausted, n_candidates):
        self.terms = terms
        self.rss = rss
        self.tss = tss
        self.record = record
        self.stop_reason = stop_reason
        self.budget_exhausted = budget_exhausted
        self.n_candidates = n_candidates

    @property
    def rss_path(self):
        return self.record['RSS'].to_numpy()


def forward_pass(X, y, config, schema, verbose=False):
    """
    Build the over-fit forward model.

    Stopping rules (first to fire wins): the term cap is reached, the
    model fits perfectly, no eligible candidate remains, the best addition
    improves RSS by no more than ``improvement_threshold * TSS``, or the
    time / candidate budget runs out (the model found so far is kept).

    Returns
    -------
    ForwardResult
    """
    n, p = X.shape
    max_terms = min(config.resolved_max_terms(p),
                    max_terms_for(n, config.penalty_d))
    deadline = (time.monotonic() + config.time_budget
                if config.time_budget is not None else None)
    remaining = config.max_candidates

    terms = [INTERCEPT]
    basis = OrthogonalBasis(np.ones((n, 1)), y)
    tss = basis.rss
    # rounding floor: residuals this small are indistinguishable from zero
    floor = n * (64 * np.finfo(np.float64).eps * np.max(np.abs(y))) ** 2
    threshold = max(config.improvement_threshold * tss, floor)
    names = schema.feature_names

    rows = [{
        'Step': 0, 'Parent': None, 'Predictor': None, 'Knot': None,
        'Added': INTERCEPT.label(names), 'Terms': 1,
        'RSS': basis.rss, 'R2': 0.0,
    }]
    n_candidates = 0
    exhausted = False
    stop_reason = None

    if verbose:
        print()
        print(f"  Term cap: {max_terms}  (user {config.resolved_max_terms(p)}"
              f", GCV limit {max_terms_for(n, config.penalty_d)})")

    # every step adds at least one term, so max_terms steps always suffice
    for step in range(1, max_terms + 1):
        if len(terms) >= max_terms:
            stop_reason = 'reached max_terms'
            break
        if basis.rss <= threshold:
            stop_reason = 'perfect fit'
            break
        if deadline is not None and time.monotonic() > deadline:
            exhausted = True
            stop_reason = 'time budget exhausted'
            break

        result = search(
            basis, terms, X, config, schema,
            max_new_terms=min(2, max_terms - len(terms)),
            deadline=deadline, candidate_budget=remaining,
        )
        n_candidates += result.n_candidates
        if remaining is not None:
            remaining -= result.n_candidates
        if result.exhausted:
            exhausted = True
            stop_reason = 'budget exhausted'
            break
        best = result.best
        if best is None:
            stop_reason = 'no eligible candidates'
            break
        if basis.rss - best.rss <= threshold:
            stop_reason = 'improvement below threshold'
            break

        added = new_terms(best, terms[best.parent])
        terms.extend(added)
        B = np.column_stack([basis.B] + [t.evaluate(X) for t in added])
        basis = OrthogonalBasis(B, y)

        r2 = 1.0 - basis.rss / tss if tss > 0 else 1.0
        knot = best.knot
        rows.append({
            'Step': step,
            'Parent': terms[best.parent].label(names),
            'Predictor': names[best.predictor],
            'Knot': knot,
            'Added': ', '.join(t.label(names) for t in added),
            'Terms': len(terms),
            'RSS': basis.rss,
            'R2': r2,
        })
        if verbose:
            knot_str = (f"{knot:.4g}" if not isinstance(knot, tuple)
                        else '{' + ', '.join(f"{v:g}" for v in knot) + '}')
            print(f"  Step {step:3d}: {names[best.predictor]:15s} "
                  f"knot={knot_str:12s} +{len(added)} -> M={len(terms):3d}  "
                  f"RSS={basis.rss:.6g}  R²={r2*100:6.2f}%")
    else:
        raise BudgetExceededError(
            f"forward pass did not stop within {max_terms} steps"
        )

    if exhausted:
        warnings.warn(
            f"forward pass stopped early ({stop_reason}) with "
            f"{len(terms)} terms; keeping the model found so far",
            UserWarning, stacklevel=3,
        )
    if verbose:
        print(f"  Stop: {stop_reason}  "
              f"({n_candidates} candidates scored)")

    return ForwardResult(
        terms=terms, rss=basis.rss, tss=tss,
        record=pd.DataFrame(rows), stop_reason=stop_reason,
        budget_exhausted=exhausted, n_candidates=n_candidates,
    )
