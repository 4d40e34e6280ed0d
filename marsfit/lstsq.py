"""
Least-squares building blocks.

``fit_least_squares`` is the solver contract used whenever the active term
set changes.  ``OrthogonalBasis`` factorises the current basis once and
scores many candidate column additions against it; the RSS it reports for
``[B, new columns]`` is the exact least-squares RSS of that augmented basis.
``drop_one_rss`` gives, for every column, the exact RSS increase caused by
removing it and refitting the rest.
"""

import numpy as np
from scipy import linalg

from .exceptions import DegenerateBasisError


# |R_jj| of the column-normalised factor below which a basis is singular
RANK_TOL = 1e-10

# sin(angle) between a candidate column and the current span below which
# the column is treated as a duplicate of existing terms
NOVELTY_TOL = 1e-6


def _column_norms(B):
    norms = np.sqrt(np.einsum('ij,ij->j', B, B))
    zero = np.flatnonzero(norms == 0)
    if len(zero):
        raise DegenerateBasisError(
            f"basis column(s) {zero.tolist()} are identically zero"
        )
    return norms


def fit_least_squares(B, y):
    """
    Solve ``min ||y - B c||`` with a column-pivoted QR factorisation.

    Parameters
    ----------
    B : np.ndarray of shape (n, M)
        Basis matrix.
    y : np.ndarray of shape (n,)
        Response.

    Returns
    -------
    coefficients : np.ndarray of shape (M,)
    rss : float

    Raises
    ------
    DegenerateBasisError
        If ``B`` is rank-deficient (checked on the column-normalised
        factor, so the test is independent of column scale).
    """
    B = np.asarray(B, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64).ravel()
    if B.ndim != 2 or B.shape[0] != y.shape[0]:
        raise ValueError(
            f"basis of shape {B.shape} does not match response of "
            f"length {y.shape[0]}"
        )
    n, m = B.shape
    if m > n:
        raise DegenerateBasisError(
            f"{m} basis columns cannot be identified from {n} observations"
        )
    norms = _column_norms(B)
    Bs = B / norms
    Q, R, piv = linalg.qr(Bs, mode='economic', pivoting=True)
    diag = np.abs(np.diag(R))
    if diag[-1] <= RANK_TOL * diag[0]:
        rank = int(np.sum(diag > RANK_TOL * diag[0]))
        raise DegenerateBasisError(
            f"basis matrix is rank-deficient (rank {rank} < {m} columns)"
        )
    z = linalg.solve_triangular(R, Q.T @ y)
    coef = np.empty(m)
    coef[piv] = z
    coef /= norms
    resid = y - B @ coef
    return coef, float(resid @ resid)


class OrthogonalBasis:
    """
    Orthonormal factor of the current (full-rank) basis, used to score
    candidate additions without refactorising.

    Attributes
    ----------
    B : np.ndarray
        The basis matrix as given.
    Q : np.ndarray
        Orthonormal columns spanning ``B``.
    residual : np.ndarray
        ``y`` minus its projection on ``B``.
    rss : float
    """

    def __init__(self, B, y):
        B = np.asarray(B, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64).ravel()
        norms = _column_norms(B)
        Q, R = linalg.qr(B / norms, mode='economic')
        if np.min(np.abs(np.diag(R))) <= RANK_TOL:
            raise DegenerateBasisError("current basis is rank-deficient")
        self.B = B
        self.Q = Q
        self.residual = self._project_out(y[:, None])[:, 0]
        self.rss = float(self.residual @ self.residual)

    def _project_out(self, C):
        # two Gram-Schmidt sweeps keep the result orthogonal to working
        # precision even for columns nearly inside the span
        C = C - self.Q @ (self.Q.T @ C)
        return C - self.Q @ (self.Q.T @ C)

    def score(self, C_right, C_left):
        """
        Score K candidate column pairs against the current basis.

        Parameters
        ----------
        C_right, C_left : np.ndarray of shape (n, K)

        Returns
        -------
        dict of np.ndarray of length K
            ``rss_pair``, ``rss_right``, ``rss_left`` are the RSS after
            adding both / only one column (``inf`` where the addition is
            degenerate); ``novel_right``, ``novel_left`` and ``pair_ok``
            flag which additions are full rank.
        """
        norm_r = np.einsum('ij,ij->j', C_right, C_right)
        norm_l = np.einsum('ij,ij->j', C_left, C_left)
        Pr = self._project_out(C_right)
        Pl = self._project_out(C_left)
        a = np.einsum('ij,ij->j', Pr, Pr)
        b = np.einsum('ij,ij->j', Pl, Pl)
        m = np.einsum('ij,ij->j', Pr, Pl)
        gr = self.residual @ Pr
        gl = self.residual @ Pl

        tol2 = NOVELTY_TOL ** 2
        novel_r = (norm_r > 0) & (a > tol2 * norm_r)
        novel_l = (norm_l > 0) & (b > tol2 * norm_l)
        det = a * b - m * m
        pair_ok = novel_r & novel_l & (det > tol2 * a * b)

        with np.errstate(divide='ignore', invalid='ignore'):
            drop_r = np.where(novel_r, gr * gr / a, 0.0)
            drop_l = np.where(novel_l, gl * gl / b, 0.0)
            drop_pair = np.where(
                pair_ok,
                (b * gr * gr - 2.0 * m * gr * gl + a * gl * gl) / det,
                0.0,
            )

        # an added column can never raise the RSS; clip rounding overshoot
        def _after(drop, ok):
            return np.where(ok, np.maximum(self.rss - drop, 0.0), np.inf)

        return {
            'rss_pair': _after(drop_pair, pair_ok),
            'rss_right': _after(drop_r, novel_r),
            'rss_left': _after(drop_l, novel_l),
            'novel_right': novel_r,
            'novel_left': novel_l,
            'pair_ok': pair_ok,
        }


def drop_one_rss(B, y):
    """
    RSS increase caused by deleting each column of ``B`` and refitting.

    Uses ``delta_j = c_j**2 / [(B'B)^-1]_jj``, evaluated on the
    column-normalised QR factor, which equals the refit RSS difference.

    Returns
    -------
    np.ndarray of shape (M,)
    """
    B = np.asarray(B, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64).ravel()
    norms = _column_norms(B)
    Q, R = linalg.qr(B / norms, mode='economic')
    if np.min(np.abs(np.diag(R))) <= RANK_TOL:
        raise DegenerateBasisError("basis matrix is rank-deficient")
    coef = linalg.solve_triangular(R, Q.T @ y)
    R_inv = linalg.solve_triangular(R, np.eye(R.shape[0]))
    inv_diag = np.einsum('ij,ij->i', R_inv, R_inv)
    return coef * coef / inv_diag
