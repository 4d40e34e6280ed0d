"""
Input validation and the column schema shared by training and prediction.

Cleaning (imputation, dropping rows) is left to the caller; this module only
checks the input contract, converts to float arrays, and records which
predictors are categorical (with their level sets) and which cannot take
part in the knot search.
"""

import warnings

import numpy as np
import pandas as pd

from .exceptions import InputShapeError


# standardised columns closer than this are treated as the same predictor
ALIAS_TOL = 1e-9


class DataSchema:
    """
    Column schema of the training data.

    Attributes
    ----------
    n_features : int
    feature_names : tuple of str
    categorical : dict
        Predictor index -> sorted tuple of training levels.
    constant : frozenset
        Zero-variance predictors.
    aliases : dict
        Predictor index -> lower index it is an exact affine copy of.
    excluded : frozenset
        Predictors the search never uses (constant or aliased).
    """

    def __init__(self, feature_names, categorical=None, constant=(),
                 aliases=None, named=False):
        self.feature_names = tuple(str(f) for f in feature_names)
        self.named = named
        self.n_features = len(self.feature_names)
        self.categorical = dict(categorical or {})
        self.constant = frozenset(constant)
        self.aliases = dict(aliases or {})
        self.excluded = self.constant | frozenset(self.aliases)

    @property
    def searchable(self):
        return [j for j in range(self.n_features) if j not in self.excluded]

    def is_categorical(self, j):
        return j in self.categorical

    def check(self, X):
        """Validate a prediction matrix against the schema."""
        if self.named and isinstance(X, pd.DataFrame):
            names = [str(c) for c in X.columns]
            if names != list(self.feature_names):
                raise InputShapeError(
                    f"column names {names} do not match training columns "
                    f"{list(self.feature_names)}"
                )
        X = _as_float_matrix(X)
        if X.shape[1] != self.n_features:
            raise InputShapeError(
                f"X has {X.shape[1]} columns; the model was trained on "
                f"{self.n_features}"
            )
        for j, levels in self.categorical.items():
            unseen = np.setdiff1d(np.unique(X[:, j]), levels)
            if len(unseen):
                raise InputShapeError(
                    f"categorical column {self.feature_names[j]!r} has "
                    f"levels {unseen.tolist()} not seen during training"
                )
        return X

    def __repr__(self):
        return (f"DataSchema(n_features={self.n_features}, "
                f"categorical={sorted(self.categorical)}, "
                f"excluded={sorted(self.excluded)})")


def _as_float_matrix(X):
    if isinstance(X, pd.DataFrame):
        try:
            X = X.astype(np.float64).to_numpy()
        except (TypeError, ValueError) as exc:
            raise ValueError(
                "all predictor columns must be numeric "
                "(encode categories upstream)"
            ) from exc
    else:
        X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise InputShapeError(f"X must be 2-D, got shape {X.shape}")
    if not np.all(np.isfinite(X)):
        raise ValueError("X contains NaN or infinite values")
    return X


def _categorical_indices(categorical, names, from_dtype=()):
    idx = set(from_dtype)
    for c in categorical or ():
        if isinstance(c, (int, np.integer)):
            if not 0 <= c < len(names):
                raise InputShapeError(
                    f"categorical index {c} out of range for "
                    f"{len(names)} columns"
                )
            idx.add(int(c))
        elif str(c) in names:
            idx.add(names.index(str(c)))
        else:
            raise InputShapeError(f"unknown categorical column {c!r}")
    return sorted(idx)


def validate_training_data(X, y, categorical=None, feature_names=None,
                           max_categorical_levels=12, verbose=False):
    """
    Check the training input contract and build its schema.

    Steps
    -----
    1.  Convert X / y to float arrays (DataFrame columns must be numeric).
    2.  Check shapes: 2-D X, 1-D y, same number of rows, at least 2 rows.
    3.  Reject NaN / infinite values.
    4.  Record categorical columns (listed explicitly or with pandas
        ``category`` dtype) with their level sets.
    5.  Flag zero-variance columns and exact affine copies of an
        earlier column; the search skips both.

    Returns
    -------
    X : np.ndarray of shape (n, p)
    y : np.ndarray of shape (n,)
    schema : DataSchema
    """
    named = isinstance(X, pd.DataFrame)
    if named:
        names = [str(c) for c in X.columns]
        cat_dtype = [j for j, dtype in enumerate(X.dtypes)
                     if isinstance(dtype, pd.CategoricalDtype)]
    else:
        names = None
        cat_dtype = []

    Xa = _as_float_matrix(X)
    n, p = Xa.shape
    if names is None:
        names = (list(feature_names) if feature_names is not None
                 else [f"x{j}" for j in range(p)])
    if len(names) != p:
        raise InputShapeError(
            f"{len(names)} feature names given for {p} columns"
        )

    if isinstance(y, (pd.Series, pd.DataFrame)):
        y = y.to_numpy()
    y = np.asarray(y, dtype=np.float64)
    if y.ndim == 2 and y.shape[1] == 1:
        y = y[:, 0]
    if y.ndim != 1:
        raise InputShapeError(f"y must be 1-D, got shape {y.shape}")
    if y.shape[0] != n:
        raise InputShapeError(
            f"X has {n} rows but y has {y.shape[0]} entries"
        )
    if n < 2 or p < 1:
        raise InputShapeError(
            f"need at least 2 rows and 1 column, got X of shape {Xa.shape}"
        )
    if not np.all(np.isfinite(y)):
        raise ValueError("y contains NaN or infinite values")

    notes = []

    categorical_levels = {}
    for j in _categorical_indices(categorical, names, cat_dtype):
        levels = tuple(np.unique(Xa[:, j]).tolist())
        if len(levels) > max_categorical_levels:
            raise ValueError(
                f"categorical column {names[j]!r} has {len(levels)} levels; "
                f"at most {max_categorical_levels} are supported"
            )
        categorical_levels[j] = levels

    spread = np.ptp(Xa, axis=0)
    constant = [j for j in range(p) if spread[j] == 0]
    if constant:
        notes.append(
            f"{len(constant)} constant column(s) excluded from the search: "
            f"{[names[j] for j in constant]}"
        )

    aliases = {}
    reps = []
    for j in range(p):
        if j in categorical_levels or spread[j] == 0:
            continue
        zj = _standardise(Xa[:, j])
        for r, zr in reps:
            if (np.max(np.abs(zj - zr)) < ALIAS_TOL
                    or np.max(np.abs(zj + zr)) < ALIAS_TOL):
                aliases[j] = r
                break
        else:
            reps.append((j, zj))
    if aliases:
        notes.append(
            "perfectly collinear column(s) excluded from the search: "
            + ", ".join(f"{names[j]} (copy of {names[r]})"
                        for j, r in aliases.items())
        )

    for note in notes:
        warnings.warn(note, UserWarning, stacklevel=3)
    if verbose and notes:
        print("INPUT CHECKS")
        print("-" * 70)
        for note in notes:
            print(f"  * {note}")
        print()

    schema = DataSchema(names, categorical_levels, constant, aliases,
                        named=named)
    return Xa, y, schema


def _standardise(x):
    x = x - x.mean()
    return x / np.sqrt(x @ x)
