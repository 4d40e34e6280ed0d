"""
Basis-function data model: hinge factors, categorical indicator factors and
their products (terms).

All objects here are immutable values.  A knot, once chosen, is never moved;
growing a term returns a new ``Term``.
"""

import numpy as np


ORIENTATIONS = ('left', 'right')


def _format_number(value):
    return f"{value:.6g}"


class HingeFactor:
    """
    Piecewise-linear factor on a continuous predictor.

    ``'right'`` evaluates ``max(0, x - knot)``, ``'left'`` evaluates
    ``max(0, knot - x)``.
    """

    __slots__ = ('predictor', 'knot', 'orientation')

    def __init__(self, predictor, knot, orientation):
        if orientation not in ORIENTATIONS:
            raise ValueError(
                f"orientation must be 'left' or 'right', got {orientation!r}"
            )
        object.__setattr__(self, 'predictor', int(predictor))
        object.__setattr__(self, 'knot', float(knot))
        object.__setattr__(self, 'orientation', orientation)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        return (HingeFactor, (self.predictor, self.knot, self.orientation))

    def evaluate(self, X):
        x = np.asarray(X, dtype=np.float64)[:, self.predictor]
        if self.orientation == 'right':
            return np.maximum(0.0, x - self.knot)
        return np.maximum(0.0, self.knot - x)

    def mirror(self):
        """The same knot with the opposite orientation."""
        other = 'left' if self.orientation == 'right' else 'right'
        return HingeFactor(self.predictor, self.knot, other)

    def label(self, feature_names=None):
        name = _feature_name(self.predictor, feature_names)
        knot = _format_number(self.knot)
        if self.orientation == 'right':
            return f"h({name}-{knot})"
        return f"h({knot}-{name})"

    def _key(self):
        return ('hinge', self.predictor, self.knot, self.orientation)

    def __eq__(self, other):
        if not isinstance(other, HingeFactor):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (f"HingeFactor(predictor={self.predictor}, knot={self.knot!r}, "
                f"orientation={self.orientation!r})")


class CategoricalFactor:
    """
    Indicator factor on a categorical predictor.

    ``levels`` is one side of a binary partition of the predictor's level
    set.  ``'right'`` evaluates ``1[x in levels]``, ``'left'`` evaluates
    ``1[x not in levels]``.
    """

    __slots__ = ('predictor', 'levels', 'orientation')

    def __init__(self, predictor, levels, orientation):
        if orientation not in ORIENTATIONS:
            raise ValueError(
                f"orientation must be 'left' or 'right', got {orientation!r}"
            )
        levels = tuple(sorted(float(v) for v in levels))
        if not levels:
            raise ValueError("a categorical split needs at least one level")
        object.__setattr__(self, 'predictor', int(predictor))
        object.__setattr__(self, 'levels', levels)
        object.__setattr__(self, 'orientation', orientation)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        return (CategoricalFactor,
                (self.predictor, self.levels, self.orientation))

    def evaluate(self, X):
        x = np.asarray(X, dtype=np.float64)[:, self.predictor]
        inside = np.isin(x, self.levels)
        if self.orientation == 'right':
            return inside.astype(np.float64)
        return (~inside).astype(np.float64)

    def mirror(self):
        other = 'left' if self.orientation == 'right' else 'right'
        return CategoricalFactor(self.predictor, self.levels, other)

    def label(self, feature_names=None):
        name = _feature_name(self.predictor, feature_names)
        levels = ', '.join(_format_number(v) for v in self.levels)
        op = 'in' if self.orientation == 'right' else 'not in'
        return f"[{name} {op} {{{levels}}}]"

    def _key(self):
        return ('categorical', self.predictor, self.levels, self.orientation)

    def __eq__(self, other):
        if not isinstance(other, CategoricalFactor):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (f"CategoricalFactor(predictor={self.predictor}, "
                f"levels={self.levels!r}, orientation={self.orientation!r})")


class Term:
    """
    Product of factors on distinct predictors.

    The empty product is the intercept.
    """

    __slots__ = ('factors',)

    def __init__(self, factors=()):
        factors = tuple(factors)
        predictors = [f.predictor for f in factors]
        if len(set(predictors)) != len(predictors):
            raise ValueError(
                f"a term cannot use the same predictor twice: {predictors}"
            )
        object.__setattr__(self, 'factors', factors)

    def __setattr__(self, name, value):
        raise AttributeError("Term is immutable")

    def __reduce__(self):
        return (Term, (self.factors,))

    @property
    def degree(self):
        return len(self.factors)

    @property
    def is_intercept(self):
        return not self.factors

    @property
    def predictors(self):
        return frozenset(f.predictor for f in self.factors)

    def extend(self, factor):
        """Return ``self * factor`` as a new term."""
        return Term(self.factors + (factor,))

    def evaluate(self, X):
        X = np.asarray(X, dtype=np.float64)
        out = np.ones(X.shape[0])
        for factor in self.factors:
            out *= factor.evaluate(X)
        return out

    def label(self, feature_names=None):
        if self.is_intercept:
            return '(Intercept)'
        return '*'.join(f.label(feature_names) for f in self.factors)

    def __eq__(self, other):
        if not isinstance(other, Term):
            return NotImplemented
        return self.factors == other.factors

    def __hash__(self):
        return hash(self.factors)

    def __repr__(self):
        return f"Term({list(self.factors)!r})"


INTERCEPT = Term()


def basis_matrix(terms, X):
    """Evaluate ``terms`` column-wise on the rows of ``X`` (n x M)."""
    X = np.asarray(X, dtype=np.float64)
    B = np.empty((X.shape[0], len(terms)))
    for j, term in enumerate(terms):
        B[:, j] = term.evaluate(X)
    return B


def _feature_name(index, feature_names):
    if feature_names is None:
        return f"x{index}"
    return str(feature_names[index])
