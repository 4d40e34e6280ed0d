"""
Tests for input validation, the column schema and fit options.

Run with:  python -m pytest tests/ -v
"""

import sys
import os
import warnings

import numpy as np
import pandas as pd
import pytest

# Allow running from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from marsfit.config import MarsConfig
from marsfit.exceptions import InputShapeError
from marsfit.schema import validate_training_data


def test_arrays_get_default_names():
    X = np.random.RandomState(0).rand(20, 3)
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        Xa, ya, schema = validate_training_data(X, np.arange(20.0))
    assert schema.feature_names == ('x0', 'x1', 'x2')
    assert not schema.named
    assert schema.searchable == [0, 1, 2]
    assert Xa.dtype == np.float64 and ya.shape == (20,)


def test_dataframe_names_and_column_vector_response():
    X = pd.DataFrame({'a': [1.0, 2.0, 3.0], 'b': [0.5, 0.1, 0.7]})
    _, y, schema = validate_training_data(X, np.array([[1.0], [2.0], [4.0]]))
    assert schema.named and schema.feature_names == ('a', 'b')
    assert y.shape == (3,)


def test_shape_errors():
    X = np.ones((5, 2))
    with pytest.raises(InputShapeError):
        validate_training_data(X, np.ones(4))
    with pytest.raises(InputShapeError):
        validate_training_data(np.ones(5), np.ones(5))
    with pytest.raises(InputShapeError):
        validate_training_data(X, np.ones((5, 2)))
    with pytest.raises(InputShapeError):
        validate_training_data(X, np.ones(5), feature_names=['only'])
    assert issubclass(InputShapeError, ValueError)


def test_non_numeric_and_non_finite_values():
    X = pd.DataFrame({'a': [1.0, 2.0, 3.0], 'b': ['x', 'y', 'z']})
    with pytest.raises(ValueError):
        validate_training_data(X, np.ones(3))
    with pytest.raises(ValueError):
        validate_training_data(np.ones((3, 1)), [1.0, np.inf, 2.0])


def test_constant_and_aliased_columns_are_flagged():
    rng = np.random.RandomState(1)
    x = rng.rand(30)
    X = np.column_stack([x, np.full(30, 2.0), 1 - 3 * x, rng.rand(30)])
    with pytest.warns(UserWarning):
        _, _, schema = validate_training_data(X, rng.rand(30))
    assert schema.constant == frozenset({1})
    assert schema.aliases == {2: 0}
    assert schema.searchable == [0, 3]


def test_categorical_levels():
    X = np.column_stack([[2, 0, 1, 2, 0, 1], np.arange(6.0)])
    _, _, schema = validate_training_data(X, np.arange(6.0),
                                          categorical=[0])
    assert schema.categorical == {0: (0.0, 1.0, 2.0)}
    with pytest.raises(InputShapeError):
        validate_training_data(X, np.arange(6.0), categorical=[5])
    with pytest.raises(InputShapeError):
        validate_training_data(X, np.arange(6.0), categorical=['nope'])
    with pytest.raises(ValueError):
        validate_training_data(X, np.arange(6.0), categorical=[1],
                               max_categorical_levels=4)


def test_prediction_checks():
    X = pd.DataFrame({'g': [0.0, 1.0, 0.0, 1.0], 'x': [1.0, 2.0, 3.0, 4.0]})
    _, _, schema = validate_training_data(X, np.arange(4.0),
                                          categorical=['g'])
    np.testing.assert_array_equal(schema.check(X), X.to_numpy())
    with pytest.raises(InputShapeError):
        schema.check(X[['x', 'g']])
    with pytest.raises(InputShapeError):
        schema.check(np.ones((2, 3)))
    with pytest.raises(InputShapeError):
        schema.check(np.array([[2.0, 1.0]]))


def test_config_validation():
    for bad in (dict(max_degree=0), dict(max_terms=0), dict(penalty_d=-1),
                dict(minspan=-1), dict(endspan_alpha=1.0),
                dict(time_budget=0), dict(max_candidates=0), dict(n_jobs=0)):
        with pytest.raises(ValueError):
            MarsConfig(**bad)
    assert 'max_degree=2' in repr(MarsConfig(max_degree=2))


def test_config_derived_limits():
    config = MarsConfig()
    assert config.resolved_max_terms(3) == 21
    assert config.resolved_max_terms(150) == 201
    assert MarsConfig(max_terms=7).resolved_max_terms(150) == 7
    assert config.endspan_for(1) == 7
    assert config.minspan_for(1, 500) == 5
    assert config.minspan_for(1, 0) == 0
    assert MarsConfig(minspan=3, endspan=1).minspan_for(4, 100) == 3
