# Distances between data points and prototypes that are only given as convex
# combinations of the training data.
#
# If prototype w_k = sum_i alpha_{k,i} x_i with alpha_k a convex combination,
# then for every point x with distances d to the training data
#
#     d(w_k, x)^2 = alpha_k . d^2 - 0.5 * alpha_k . D^2 . alpha_k^T
#
# where D is the matrix of pairwise distances between the training points.
# The second term only depends on the prototype and is precomputed as the
# normalization term Z[k].
#
# References:
# - HAMMER, B., HASENFUSS, A., Topographic Mapping of Large Dissimilarity Data Sets 2010.

import numpy as np

from relgas.taxonomy.validation import (
    ShapeError,
    DimensionMismatchError,
    check_convex_coefficients,
    check_dissimilarity_matrix,
    check_dissimilarities_to_prototypes,
)


def _is_vector(D):
    if isinstance(D, np.ndarray):
        return D.ndim == 1
    # nested sequences may be ragged, so only look at the first entry
    return D is not None and len(D) > 0 and np.ndim(D[0]) == 0


def get_normalization_terms(D, Alpha):
    """Compute Z[k] = -0.5 * Alpha[k] . D^2 . Alpha[k]^T for every prototype.

    Only the support of each coefficient row enters the quadratic form, so sparse
    prototypes (which is what training converges to) are cheap.

    Parameters:
        D: array of shape (m, m), pairwise distances of the training data.
        Alpha: array of shape (K, m), convex coefficients.
    Returns:
        np.ndarray of shape (K,)
    Raises:
        ShapeError, ReflexivityError, SymmetryError, ConvexityError
    """
    D = check_dissimilarity_matrix(D)
    m = D.shape[0]
    if Alpha is not None and len(Alpha) > 0 and np.ndim(Alpha[0]) == 1 and len(Alpha[0]) != m:
        raise ShapeError(f'Expected convex coefficients over {m} data points, but the given matrix has {len(Alpha[0])} columns.')
    K = 0 if Alpha is None else len(Alpha)
    Alpha = check_convex_coefficients(m, K, Alpha)
    return _normalization_terms(D, Alpha)


def _normalization_terms(D, Alpha):
    # inputs are already validated float arrays
    K = Alpha.shape[0]
    Z = np.zeros(K)
    for k in range(K):
        support = np.flatnonzero(Alpha[k])
        if support.size == 0:
            continue
        a = Alpha[k, support]
        D_support = D[np.ix_(support, support)]
        Z[k] = -0.5 * (a @ (D_support ** 2) @ a)
    return Z


def get_distances_to_prototypes(D, Alpha, Z):
    """Squared distances of one or several data points to all prototypes.

    Parameters:
        D: distances from the data point(s) to the m training points, either a
            vector of shape (m,) or a matrix of shape (n, m).
        Alpha: array of shape (K, m), convex coefficients.
        Z: array of shape (K,), normalization terms of the prototypes.
    Returns:
        np.ndarray of shape (K,) for a single point, (n, K) otherwise.
    """
    Alpha = np.asarray(Alpha, dtype=float)
    Z = np.asarray(Z, dtype=float)
    K, m = Alpha.shape
    if Z.shape != (K,):
        raise DimensionMismatchError(f'Expected {K} normalization terms, one per prototype, but got {Z.size}.')

    if _is_vector(D):
        d = np.asarray(D, dtype=float)
        if d.shape[0] != m:
            raise ShapeError(f'Expected distances to {m} training data points, but the given vector had {d.shape[0]} entries.')
        return Alpha @ (d ** 2) + Z

    D = check_dissimilarities_to_prototypes(D)
    if D.shape[1] != m:
        raise ShapeError(f'Expected distances to {m} training data points, but the given matrix has {D.shape[1]} columns.')
    return (D ** 2) @ Alpha.T + Z


def get_model_distances(D, model):
    """Squared distances of new data to the prototypes of a trained model."""
    return get_distances_to_prototypes(D, model.convex_coefficients, model.normalization_terms)
