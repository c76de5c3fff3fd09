"""
Input checks for relational clustering.

Every check raises a subclass of InputValidationError (itself a ValueError) on
the first violation it finds and returns None otherwise.
"""

from numbers import Integral

import numpy as np

DOUBLE_TOLERANCE = 1e-8


class InputValidationError(ValueError):
    """Base class for all precondition failures of the relational neural gas."""


class ShapeError(InputValidationError):
    pass


class ReflexivityError(InputValidationError):
    def __init__(self, message, row=None, col=None):
        super().__init__(message)
        self.row = row
        self.col = col


class SymmetryError(InputValidationError):
    def __init__(self, message, row=None, col=None):
        super().__init__(message)
        self.row = row
        self.col = col


class ConvexityError(InputValidationError):
    def __init__(self, message, row=None):
        super().__init__(message)
        self.row = row


class ParameterError(InputValidationError):
    pass


class DimensionMismatchError(InputValidationError):
    pass


class AssignmentError(InputValidationError):
    pass


def _as_matrix(M, name='input matrix'):
    if M is None:
        raise ShapeError(f'The {name} is None.')
    if isinstance(M, np.ndarray):
        if M.ndim != 2:
            raise ShapeError(f'The {name} must be two-dimensional, got {M.ndim} dimensions.')
        if M.shape[0] == 0:
            raise ShapeError(f'The {name} is empty.')
        return M.astype(float, copy=False)
    rows = list(M)
    if len(rows) == 0:
        raise ShapeError(f'The {name} is empty.')
    if np.ndim(rows[0]) != 1:
        raise ShapeError(f'The {name} must be two-dimensional.')
    n_cols = len(rows[0])
    for i, row in enumerate(rows):
        if np.ndim(row) != 1 or len(row) != n_cols:
            raise ShapeError(f'In row {i} the {name} has {len(row)} columns, but we expected {n_cols} columns.')
    return np.asarray(rows, dtype=float)


def check_dissimilarity_matrix(D):
    """Check that D is square, reflexive and symmetric.

    The tolerance for the reflexivity and symmetry checks is scaled with the mean
    entry of D, so that the check does not depend on the unit of the dissimilarities.

    Parameters:
        D: array-like of shape (m, m)
    Returns:
        np.ndarray: D as a float array.
    Raises:
        ShapeError, ReflexivityError, SymmetryError
    """
    D = _as_matrix(D)
    m = D.shape[0]
    if D.shape[1] != m:
        raise ShapeError(f'The input matrix has {m} rows but {D.shape[1]} columns; expected a square matrix.')
    tolerance = np.mean(D) * DOUBLE_TOLERANCE

    diagonal = np.diagonal(D)
    bad = np.flatnonzero(diagonal > tolerance)
    if bad.size > 0:
        i = int(bad[0])
        raise ReflexivityError(f'The given matrix is not reflexive: Entry ({i}, {i}) is larger than zero.', row=i, col=i)

    asymmetric = np.abs(D - D.T) > tolerance
    # only the upper triangle, so the reported pair is (i, j) with i < j
    rows, cols = np.nonzero(np.triu(asymmetric, k=1))
    if rows.size > 0:
        i, j = int(rows[0]), int(cols[0])
        raise SymmetryError(f'The given matrix is not symmetric: Entry ({i}, {j}) and entry ({j}, {i}) do not equal.', row=i, col=j)
    return D


def check_convex_combination(m, alpha):
    """Check that alpha has m entries, is non-negative and sums to one."""
    if alpha is None:
        raise ConvexityError('Input vector is None.')
    alpha = np.asarray(alpha, dtype=float)
    if alpha.ndim != 1 or alpha.shape[0] != m:
        raise ConvexityError(f'Expected a convex combination for {m} data points, but the given vector had {alpha.size} entries.')
    negative = np.flatnonzero(alpha < 0)
    if negative.size > 0:
        raise ConvexityError(f'Entry {int(negative[0])} of the given vector is negative.')
    total = np.sum(alpha)
    if abs(total - 1.) > DOUBLE_TOLERANCE:
        raise ConvexityError(f'The given vector does not sum up to 1 but to {total}')
    return alpha


def check_convex_coefficients(m, K, Alpha):
    """Check that Alpha holds one proper convex combination over m points per prototype.

    Parameters:
        m (int): expected number of data points.
        K (int): expected number of prototypes.
        Alpha: array-like of shape (K, m)
    Returns:
        np.ndarray: Alpha as a float array.
    Raises:
        ConvexityError: carries the offending prototype in ``row`` and chains the per-row violation.
    """
    if Alpha is None:
        raise ConvexityError('Input matrix is None.')
    rows = list(Alpha)
    if len(rows) != K:
        raise ConvexityError(f'Expected a convex combination for each of the {K} prototypes, but the given matrix has {len(rows)} rows.')
    for k, row in enumerate(rows):
        try:
            check_convex_combination(m, row)
        except ConvexityError as ex:
            raise ConvexityError(f'The given vector for prototype {k} is not a proper convex combination.', row=k) from ex
    return np.asarray(rows, dtype=float).reshape(K, m)


def check_dissimilarities_to_prototypes(Dp):
    """Check that Dp is a non-empty, non-ragged matrix."""
    return _as_matrix(Dp)


def check_assignments(n, K, assignments):
    """Check that assignments maps each of the n data points to a cluster in [0, K)."""
    if assignments is None:
        raise AssignmentError('Input vector is None.')
    assignments = np.asarray(assignments)
    if assignments.ndim != 1 or assignments.shape[0] != n:
        raise AssignmentError(f'Expected an assignments vector for {n} data points, but the given vector had {assignments.size} entries.')
    bad = np.flatnonzero((assignments < 0) | (assignments >= K))
    if bad.size > 0:
        i = int(bad[0])
        raise AssignmentError(f'Expected {K} clusters, but data point {i} is assigned to cluster {assignments[i]}')
    return assignments


def check_positive(value, name):
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ParameterError(f'The number of {name} must be an integer, got {value!r}.')
    if value < 1:
        raise ParameterError(f'The number of {name} must be positive!')
