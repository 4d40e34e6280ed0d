"""
Error kinds raised by the MARS fitting engine.

Only input-contract violations (``InputShapeError``) are expected to reach
callers of ``fit`` / ``predict``.  The others come from the numerical
building blocks; the knot search skips degenerate candidates and the
forward-pass term cap keeps GCV defined, so a full fit does not raise them.
"""

import numpy as np


class MarsError(Exception):
    """Base class for every error raised by marsfit."""


class InputShapeError(MarsError, ValueError):
    """Row/column mismatch between X and y, or schema mismatch at predict."""


class DegenerateBasisError(MarsError, np.linalg.LinAlgError):
    """The basis matrix handed to the least-squares solver is rank-deficient."""


class GCVDegenerateError(MarsError, ArithmeticError):
    """Effective number of parameters reached the number of observations."""


class BudgetExceededError(MarsError, RuntimeError):
    """The forward pass failed to terminate and no budget was configured."""
