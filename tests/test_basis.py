"""
Tests for the basis-function data model.

Run with:  python -m pytest tests/ -v
"""

import pickle
import sys
import os

import numpy as np
import pytest

# Allow running from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from marsfit.basis import (
    INTERCEPT, CategoricalFactor, HingeFactor, Term, basis_matrix,
)


def test_hinge_orientations():
    X = np.array([[0.0], [1.0], [2.0], [3.0]])
    right = HingeFactor(0, 1.5, 'right').evaluate(X)
    left = HingeFactor(0, 1.5, 'left').evaluate(X)
    np.testing.assert_allclose(right, [0, 0, 0.5, 1.5])
    np.testing.assert_allclose(left, [1.5, 0.5, 0, 0])
    # the pair always reconstructs the linear function x - knot
    np.testing.assert_allclose(right - left, X[:, 0] - 1.5)


def test_bad_orientation_rejected():
    with pytest.raises(ValueError):
        HingeFactor(0, 1.0, 'up')


def test_categorical_factor_is_indicator_split():
    X = np.array([[0.0], [1.0], [2.0], [3.0], [1.0]])
    inside = CategoricalFactor(0, [3, 1], 'right')
    outside = inside.mirror()
    assert inside.levels == (1.0, 3.0)
    np.testing.assert_array_equal(inside.evaluate(X), [0, 1, 0, 1, 1])
    np.testing.assert_array_equal(outside.evaluate(X), [1, 0, 1, 0, 0])


def test_term_products_and_degree():
    X = np.array([[2.0, 5.0], [0.0, 1.0], [3.0, 4.0]])
    a = HingeFactor(0, 1.0, 'right')
    b = HingeFactor(1, 3.0, 'right')
    term = INTERCEPT.extend(a).extend(b)
    assert term.degree == 2
    assert term.predictors == frozenset({0, 1})
    np.testing.assert_allclose(term.evaluate(X), [1 * 2, 0, 2 * 1])
    assert INTERCEPT.is_intercept and INTERCEPT.degree == 0
    np.testing.assert_array_equal(INTERCEPT.evaluate(X), np.ones(3))


def test_no_self_interaction():
    term = Term([HingeFactor(0, 1.0, 'right')])
    with pytest.raises(ValueError):
        term.extend(HingeFactor(0, 2.0, 'left'))


def test_values_are_immutable():
    factor = HingeFactor(0, 1.0, 'right')
    with pytest.raises(AttributeError):
        factor.knot = 2.0
    term = Term([factor])
    with pytest.raises(AttributeError):
        term.factors = ()


def test_equality_hash_and_pickle():
    t1 = Term([HingeFactor(0, 1.0, 'right'),
               CategoricalFactor(1, (2.0,), 'left')])
    t2 = Term([HingeFactor(0, 1.0, 'right'),
               CategoricalFactor(1, (2.0,), 'left')])
    assert t1 == t2 and hash(t1) == hash(t2)
    assert t1 != Term([HingeFactor(0, 1.0, 'left')])
    assert pickle.loads(pickle.dumps(t1)) == t1


def test_labels():
    names = ['age', 'kind']
    term = Term([HingeFactor(0, 30, 'left'),
                 CategoricalFactor(1, (1, 4), 'right')])
    assert term.label(names) == 'h(30-age)*[kind in {1, 4}]'
    assert INTERCEPT.label(names) == '(Intercept)'
    assert HingeFactor(2, 0.5, 'right').label() == 'h(x2-0.5)'


def test_basis_matrix_columns():
    rng = np.random.RandomState(0)
    X = rng.rand(20, 2)
    terms = [INTERCEPT, Term([HingeFactor(1, 0.5, 'right')])]
    B = basis_matrix(terms, X)
    assert B.shape == (20, 2)
    np.testing.assert_array_equal(B[:, 0], 1.0)
    np.testing.assert_allclose(B[:, 1], np.maximum(0, X[:, 1] - 0.5))
