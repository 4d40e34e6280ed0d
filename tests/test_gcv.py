"""
Tests for the generalized cross-validation criterion.

Run with:  python -m pytest tests/ -v
"""

import sys
import os

import pytest

# Allow running from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from marsfit.exceptions import GCVDegenerateError, MarsError
from marsfit.gcv import effective_parameters, gcv_score, max_terms_for


def test_effective_parameters():
    assert effective_parameters(1, 3.0) == 1
    assert effective_parameters(5, 3.0) == 5 + 3 * 4
    assert effective_parameters(5, 0.0) == 5


def test_gcv_formula():
    rss, n, m, d = 12.0, 100, 5, 2.0
    c = m + d * (m - 1)
    expected = (rss / n) / (1 - c / n) ** 2
    assert gcv_score(rss, n, m, d) == pytest.approx(expected)


def test_zero_penalty_is_rss_per_degree_of_freedom():
    assert gcv_score(8.0, 40, 4, 0.0) == pytest.approx(
        (8.0 / 40) / (1 - 4 / 40) ** 2)


def test_degenerate_when_parameters_reach_n():
    with pytest.raises(GCVDegenerateError):
        gcv_score(1.0, 10, 4, 2.0)       # C = 10
    with pytest.raises(MarsError):
        gcv_score(1.0, 10, 11, 0.0)
    assert issubclass(GCVDegenerateError, ArithmeticError)


def test_max_terms_keeps_gcv_defined():
    assert max_terms_for(10, 3.0) == 3
    assert max_terms_for(10, 0.0) == 9
    assert max_terms_for(2, 3.0) == 1
    for n in (5, 17, 100, 1001):
        for d in (0.0, 1.5, 3.0):
            m = max_terms_for(n, d)
            assert effective_parameters(m, d) < n
            assert effective_parameters(m + 1, d) >= n
