"""
Configuration of a single MARS fit.

The estimators in ``marsfit.regressor`` expose these options as constructor
parameters (so that scikit-learn tuners can sweep them) and build a
``MarsConfig`` at ``fit`` time.
"""

import numpy as np


class MarsConfig:
    """
    Recognised options for one invocation of the fitting engine.

    Parameters
    ----------
    max_degree : int, default=1
        Maximum number of factors per term (1 = additive model).
    max_terms : int or None, default=None
        Forward-pass cap on the number of terms, intercept included.
        ``None`` means ``min(200, max(20, 2 * p)) + 1``.  The cap is always
        further reduced so that GCV stays defined (see ``marsfit.gcv``).
    penalty_d : float, default=3.0
        GCV cost of each knot.  ``0`` makes pruning pure RSS minimisation,
        which keeps the full forward model.
    minspan, endspan : int or None
        Minimum number of observations strictly between two selectable
        knots / between a knot and the edge of the data.  ``None`` derives
        them from ``minspan_alpha`` / ``endspan_alpha``.
    minspan_alpha, endspan_alpha : float, default=0.05
        Tail probabilities used by the automatic span rules.
    improvement_threshold : float, default=1e-10
        Forward pass stops when the best addition reduces RSS by no more
        than this fraction of the total sum of squares.
    time_budget : float or None
        Wall-clock seconds allowed for the forward pass.
    max_candidates : int or None
        Number of candidate knots the forward pass may score in total.
    enable_pruning : bool, default=True
        Run the backward pass.
    max_categorical_levels : int, default=12
        Largest level set accepted for a categorical predictor
        (the search enumerates ``2**(L-1) - 1`` partitions).
    n_jobs : int, default=1
        Worker threads for the knot search (``-1`` = all cores).
    """

    def __init__(
        self,
        max_degree=1,
        max_terms=None,
        penalty_d=3.0,
        minspan=None,
        endspan=None,
        minspan_alpha=0.05,
        endspan_alpha=0.05,
        improvement_threshold=1e-10,
        time_budget=None,
        max_candidates=None,
        enable_pruning=True,
        max_categorical_levels=12,
        n_jobs=1,
    ):
        self.max_degree = max_degree
        self.max_terms = max_terms
        self.penalty_d = penalty_d
        self.minspan = minspan
        self.endspan = endspan
        self.minspan_alpha = minspan_alpha
        self.endspan_alpha = endspan_alpha
        self.improvement_threshold = improvement_threshold
        self.time_budget = time_budget
        self.max_candidates = max_candidates
        self.enable_pruning = enable_pruning
        self.max_categorical_levels = max_categorical_levels
        self.n_jobs = n_jobs
        self._validate()

    def _validate(self):
        if int(self.max_degree) != self.max_degree or self.max_degree < 1:
            raise ValueError(
                f"max_degree must be a positive integer, got {self.max_degree!r}"
            )
        if self.max_terms is not None and (
                int(self.max_terms) != self.max_terms or self.max_terms < 1):
            raise ValueError(
                f"max_terms must be a positive integer or None, "
                f"got {self.max_terms!r}"
            )
        if not np.isfinite(self.penalty_d) or self.penalty_d < 0:
            raise ValueError(
                f"penalty_d must be a finite non-negative number, "
                f"got {self.penalty_d!r}"
            )
        for name in ('minspan', 'endspan'):
            value = getattr(self, name)
            if value is not None and (int(value) != value or value < 0):
                raise ValueError(
                    f"{name} must be a non-negative integer or None, "
                    f"got {value!r}"
                )
        for name in ('minspan_alpha', 'endspan_alpha'):
            value = getattr(self, name)
            if not 0 < value < 1:
                raise ValueError(f"{name} must lie in (0, 1), got {value!r}")
        if self.improvement_threshold < 0:
            raise ValueError(
                f"improvement_threshold must be >= 0, "
                f"got {self.improvement_threshold!r}"
            )
        if self.time_budget is not None and self.time_budget <= 0:
            raise ValueError(
                f"time_budget must be positive or None, got {self.time_budget!r}"
            )
        if self.max_candidates is not None and self.max_candidates < 1:
            raise ValueError(
                f"max_candidates must be positive or None, "
                f"got {self.max_candidates!r}"
            )
        if self.max_categorical_levels < 2:
            raise ValueError(
                f"max_categorical_levels must be >= 2, "
                f"got {self.max_categorical_levels!r}"
            )
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero")

    def __repr__(self):
        opts = ', '.join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"MarsConfig({opts})"

    # ---- derived limits --------------------------------------------------

    def resolved_max_terms(self, n_features):
        """User cap on the number of terms, before the GCV cap."""
        if self.max_terms is not None:
            return int(self.max_terms)
        return min(200, max(20, 2 * n_features)) + 1

    def endspan_for(self, n_features):
        """Observations kept free of knots at each end of a predictor."""
        if self.endspan is not None:
            return int(self.endspan)
        return max(0, int(3 - np.log2(self.endspan_alpha / n_features)))

    def minspan_for(self, n_features, n_nonzero):
        """Observations required between consecutive knots."""
        if self.minspan is not None:
            return int(self.minspan)
        if n_nonzero <= 0:
            return 0
        rate = -np.log(1 - self.minspan_alpha) / (n_features * n_nonzero)
        return max(0, int(-np.log2(rate) / 2.5))
