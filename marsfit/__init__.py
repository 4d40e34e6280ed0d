"""
marsfit: Multivariate Adaptive Regression Splines

Greedy forward search over hinge-function knots and interactions, followed
by GCV-driven backward pruning.
"""

from .basis import INTERCEPT, CategoricalFactor, HingeFactor, Term
from .config import MarsConfig
from .exceptions import (
    BudgetExceededError,
    DegenerateBasisError,
    GCVDegenerateError,
    InputShapeError,
    MarsError,
)
from .gcv import gcv_score, model_gcv
from .lstsq import fit_least_squares
from .model import MarsModel, explain, predict
from .regressor import MARSClassifier, MARSRegressor, fit, fit_mars

__version__ = "0.1.0"

__all__ = [
    "MARSRegressor", "MARSClassifier", "fit", "fit_mars",
    "MarsModel", "MarsConfig", "predict", "explain",
    "HingeFactor", "CategoricalFactor", "Term", "INTERCEPT",
    "fit_least_squares", "gcv_score", "model_gcv",
    "MarsError", "InputShapeError", "DegenerateBasisError",
    "GCVDegenerateError", "BudgetExceededError",
]
