"""
The fitted MARS model: an immutable value with ``predict`` and ``explain``.
"""

import numpy as np
import pandas as pd

from .basis import basis_matrix
from .gcv import effective_parameters, gcv_score


def _frozen(a):
    a = np.array(a, dtype=np.float64, copy=True)
    a.flags.writeable = False
    return a


class MarsModel:
    """
    Result of one MARS fit.

    Attributes
    ----------
    terms : tuple of Term
        Active terms in discovery order; ``terms[0]`` is the intercept.
    coefficients : np.ndarray
        One coefficient per active term (read-only).
    rss, gcv : float
    n_samples : int
    penalty_d : float
    importances : np.ndarray
        RSS increase when each active term is removed from the final model
        and the rest refit (NaN for the intercept).
    history : tuple of Term
        Every term created by the forward pass.
    active : tuple of int
        Positions of ``terms`` inside ``history``.
    gcv_curve : pd.Series
        GCV by term count along the pruning sequence.
    forward_record, pruning_record : pd.DataFrame
    schema : DataSchema
    fitted_values : np.ndarray
    tss : float
        Total sum of squares of the training response.
    budget_exhausted : bool
        True when the forward pass was cut short by its budget.
    """

    def __init__(self, terms, coefficients, rss, gcv, n_samples, penalty_d,
                 importances, history, active, gcv_curve, forward_record,
                 pruning_record, schema, fitted_values, tss,
                 budget_exhausted=False):
        values = dict(
            terms=tuple(terms),
            coefficients=_frozen(coefficients),
            rss=float(rss),
            gcv=float(gcv),
            n_samples=int(n_samples),
            penalty_d=float(penalty_d),
            importances=_frozen(importances),
            history=tuple(history),
            active=tuple(int(i) for i in active),
            gcv_curve=gcv_curve.copy(),
            forward_record=forward_record.copy(),
            pruning_record=pruning_record.copy(),
            schema=schema,
            fitted_values=_frozen(fitted_values),
            tss=float(tss),
            budget_exhausted=bool(budget_exhausted),
        )
        if len(values['terms']) != len(values['coefficients']):
            raise ValueError("one coefficient per term is required")
        if not values['terms'][0].is_intercept:
            raise ValueError("the first term must be the intercept")
        for key, value in values.items():
            object.__setattr__(self, key, value)

    def __setattr__(self, name, value):
        raise AttributeError("MarsModel is immutable")

    def __delattr__(self, name):
        raise AttributeError("MarsModel is immutable")

    # ---- derived quantities ----------------------------------------------

    @property
    def n_terms(self):
        return len(self.terms)

    @property
    def effective_parameters(self):
        return effective_parameters(self.n_terms, self.penalty_d)

    @property
    def r2(self):
        return 1.0 - self.rss / self.tss if self.tss > 0 else 1.0

    @property
    def grsq(self):
        """``1 - GCV / GCV(intercept only)``."""
        if self.tss <= 0:
            return 1.0
        null = gcv_score(self.tss, self.n_samples, 1, self.penalty_d)
        return 1.0 - self.gcv / null

    # ---- evaluation --------------------------------------------------------

    def basis(self, X):
        """Evaluate the active terms on ``X`` (schema-checked)."""
        X = self.schema.check(X)
        return basis_matrix(self.terms, X)

    def predict(self, X):
        """Linear combination of the active terms on the rows of ``X``."""
        return self.basis(X) @ self.coefficients

    def explain(self):
        """Table of active terms with coefficients and importances."""
        names = self.schema.feature_names
        return pd.DataFrame({
            'Term': [t.label(names) for t in self.terms],
            'Degree': [t.degree for t in self.terms],
            'Coefficient': self.coefficients,
            'Importance': self.importances,
        })

    def summary(self):
        """Plain-text report of the fitted model."""
        lines = [
            "MARS model",
            "-" * 70,
        ]
        table = self.explain()
        width = max(12, max(len(t) for t in table['Term']))
        lines.append(f"  {'Term':{width}s}  {'Coefficient':>12s}  "
                     f"{'Importance':>12s}")
        for _, row in table.iterrows():
            imp = ('' if np.isnan(row['Importance'])
                   else f"{row['Importance']:.6g}")
            lines.append(f"  {row['Term']:{width}s}  "
                         f"{row['Coefficient']:>12.6g}  {imp:>12s}")
        lines.append("")
        lines.append(f"  Terms selected : {self.n_terms} of "
                     f"{len(self.history)} (forward pass)")
        lines.append(f"  RSS            : {self.rss:.6g}")
        lines.append(f"  GCV            : {self.gcv:.6g}  "
                     f"(penalty d={self.penalty_d:g}, "
                     f"C(M)={self.effective_parameters:g})")
        lines.append(f"  R²             : {self.r2*100:.2f}%")
        lines.append(f"  GRSq           : {self.grsq*100:.2f}%")
        return "\n".join(lines)

    def __repr__(self):
        return (f"MarsModel(n_terms={self.n_terms}, rss={self.rss:.6g}, "
                f"gcv={self.gcv:.6g})")


def predict(model, X_new):
    """Module-level alias of ``MarsModel.predict``."""
    return model.predict(X_new)


def explain(model):
    """Module-level alias of ``MarsModel.explain``."""
    return model.explain()
