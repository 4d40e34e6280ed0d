"""
MARS: Multivariate Adaptive Regression Splines

Automatic discovery of a piecewise-linear basis expansion: a greedy forward
pass adds pairs of hinge functions, and a backward pass prunes them with
generalized cross-validation.

Reference: J. H. Friedman, "Multivariate Adaptive Regression Splines",
           Annals of Statistics 19(1), 1991.
"""

import time

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin, RegressorMixin
from sklearn.utils.validation import check_is_fitted

from .basis import basis_matrix
from .config import MarsConfig
from .forward import forward_pass
from .lstsq import drop_one_rss
from .model import MarsModel
from .pruning import prune
from .schema import validate_training_data


# ---------------------------------------------------------------------------
# Core entry point
# ---------------------------------------------------------------------------

def fit(X, y, config=None, categorical=None, feature_names=None,
        verbose=False):
    """
    Fit a MARS model.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
        Numeric predictors (NumPy array or DataFrame).  Missing values are
        not accepted; clean the data upstream.
    y : array-like of shape (n_samples,)
        Continuous response, or a 0/1 indicator for binary outcomes.
    config : MarsConfig, optional
        Fitting options; defaults to ``MarsConfig()``.
    categorical : sequence of int or str, optional
        Columns to treat as categorical.  DataFrame columns with the
        ``category`` dtype are categorical as well.
    feature_names : sequence of str, optional
        Names used in labels when ``X`` is an array.
    verbose : bool, default=False
        Print progress.

    Returns
    -------
    MarsModel
    """
    config = MarsConfig() if config is None else config
    t0 = time.time()

    if verbose:
        print("=" * 70)
        print("MARS FIT")
        print("=" * 70)

    X, y, schema = validate_training_data(
        X, y, categorical=categorical, feature_names=feature_names,
        max_categorical_levels=config.max_categorical_levels,
        verbose=verbose,
    )
    n, p = X.shape

    if verbose:
        print(f"  Dataset : n={n}, p={p}  "
              f"(categorical: {len(schema.categorical)})")
        print(f"  max_degree={config.max_degree}  "
              f"penalty_d={config.penalty_d:g}  "
              f"max_terms={config.resolved_max_terms(p)}")
        print()
        print("FORWARD PASS")
        print("-" * 70)

    fwd = forward_pass(X, y, config, schema, verbose=verbose)

    if verbose:
        print()
        print("BACKWARD PASS (GCV)")
        print("-" * 70)

    pr = prune(fwd.terms, X, y, config, verbose=verbose,
               feature_names=schema.feature_names)

    terms = [fwd.terms[i] for i in pr.active]
    B = basis_matrix(terms, X)
    importances = np.full(len(terms), np.nan)
    if len(terms) > 1:
        importances[1:] = drop_one_rss(B, y)[1:]

    model = MarsModel(
        terms=terms,
        coefficients=pr.coefficients,
        rss=pr.rss,
        gcv=pr.gcv,
        n_samples=n,
        penalty_d=config.penalty_d,
        importances=importances,
        history=fwd.terms,
        active=pr.active,
        gcv_curve=pr.gcv_curve,
        forward_record=fwd.record,
        pruning_record=pr.record,
        schema=schema,
        fitted_values=B @ pr.coefficients,
        tss=fwd.tss,
        budget_exhausted=fwd.budget_exhausted,
    )

    if verbose:
        print()
        print(model.summary())
        print(f"  Runtime        : {time.time() - t0:.2f}s")
        print("=" * 70)

    return model


# ---------------------------------------------------------------------------
# scikit-learn estimators
# ---------------------------------------------------------------------------

class _MARSBase(BaseEstimator):
    """Parameters and fitted attributes shared by the MARS estimators."""

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
        categorical_features=None,
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
        self.categorical_features = categorical_features
        self.max_categorical_levels = max_categorical_levels
        self.n_jobs = n_jobs

    def _config(self):
        return MarsConfig(
            max_degree=self.max_degree,
            max_terms=self.max_terms,
            penalty_d=self.penalty_d,
            minspan=self.minspan,
            endspan=self.endspan,
            minspan_alpha=self.minspan_alpha,
            endspan_alpha=self.endspan_alpha,
            improvement_threshold=self.improvement_threshold,
            time_budget=self.time_budget,
            max_candidates=self.max_candidates,
            enable_pruning=self.enable_pruning,
            max_categorical_levels=self.max_categorical_levels,
            n_jobs=self.n_jobs,
        )

    def _fit_model(self, X, y, verbose):
        model = fit(X, y, config=self._config(),
                    categorical=self.categorical_features, verbose=verbose)
        self.model_ = model
        self.coef_ = np.array(model.coefficients)
        self.terms_ = list(model.terms)
        self.rss_ = model.rss
        self.gcv_ = model.gcv
        self.gcv_curve_ = model.gcv_curve
        self.n_features_in_ = model.schema.n_features
        if model.schema.named:
            self.feature_names_in_ = np.array(model.schema.feature_names,
                                              dtype=object)
        return self

    def _decision(self, X):
        check_is_fitted(self, 'model_')
        return self.model_.predict(X)

    def explain(self):
        """Table of selected terms with coefficients and importances."""
        check_is_fitted(self, 'model_')
        return self.model_.explain()

    def summary(self):
        check_is_fitted(self, 'model_')
        return self.model_.summary()


class MARSRegressor(RegressorMixin, _MARSBase):
    """
    Multivariate adaptive regression splines.

    Parameters
    ----------
    max_degree : int, default=1
        Maximum interaction degree (factors per term).
    max_terms : int or None, default=None
        Forward-pass cap on the number of terms including the intercept;
        ``None`` gives ``min(200, max(20, 2 * n_features)) + 1``.
    penalty_d : float, default=3.0
        GCV cost per knot.
    minspan, endspan : int or None, default=None
        Knot spacing rules; ``None`` derives them from the alphas.
    minspan_alpha, endspan_alpha : float, default=0.05
    improvement_threshold : float, default=1e-10
        Minimum relative RSS reduction for a forward step.
    time_budget : float or None
        Seconds allowed for the forward pass; on expiry the model found
        so far is kept and pruned.
    max_candidates : int or None
        Number of knot candidates the forward pass may score.
    enable_pruning : bool, default=True
    categorical_features : list of int or str, optional
        Predictors searched as categorical (binary partitions of levels).
    max_categorical_levels : int, default=12
    n_jobs : int, default=1
        Threads used by the knot search.
    """

    def fit(self, X, y, verbose=False):
        """
        Fit the model.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
        y : array-like of shape (n_samples,)
        verbose : bool, default=False
            Print progress.

        Returns
        -------
        self
        """
        return self._fit_model(X, y, verbose)

    def predict(self, X):
        """Predict the response for ``X`` (same columns as training)."""
        return self._decision(X)


class MARSClassifier(ClassifierMixin, _MARSBase):
    """
    Binary classification with MARS.

    The two classes are coded 0/1 and fitted by least squares; the fitted
    value clipped to [0, 1] is reported as the class-1 probability.
    Parameters are those of ``MARSRegressor``.
    """

    def fit(self, X, y, verbose=False):
        y = np.asarray(y).ravel()
        self.classes_ = np.unique(y)
        if len(self.classes_) != 2:
            raise ValueError(
                f"MARSClassifier needs exactly 2 classes, "
                f"got {len(self.classes_)}"
            )
        indicator = (y == self.classes_[1]).astype(np.float64)
        return self._fit_model(X, indicator, verbose)

    def decision_function(self, X):
        """Unclipped least-squares fit of the class-1 indicator."""
        return self._decision(X)

    def predict_proba(self, X):
        p1 = np.clip(self._decision(X), 0.0, 1.0)
        return np.column_stack([1.0 - p1, p1])

    def predict(self, X):
        p1 = self.predict_proba(X)[:, 1]
        return self.classes_[(p1 >= 0.5).astype(int)]


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def fit_mars(X, y, max_degree=1, max_terms=None, verbose=True, **options):
    """
    One-liner convenience function.

    Parameters
    ----------
    X : array-like
        Predictors.
    y : array-like
        Response.
    max_degree : int
        Maximum interaction degree.
    max_terms : int or None
        Forward-pass term cap.
    verbose : bool
        Print progress?
    **options
        Any other ``MARSRegressor`` parameter.

    Returns
    -------
    MARSRegressor
        Fitted model.
    """
    mdl = MARSRegressor(max_degree=max_degree, max_terms=max_terms, **options)
    mdl.fit(X, y, verbose=verbose)
    return mdl
