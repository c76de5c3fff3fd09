"""
Rank based soft assignments and the batch prototype update of neural gas.

For a data point i, the rank r(k|i) of prototype k is the number of prototypes
closer to i than k. Neural gas assigns point i to prototype k with strength

    h(k|i) = exp(-r(k|i) / lambda)

Ranks with r / lambda > -ln(1e-3) contribute less than 0.001 and are treated as
exactly zero, so only the closest few prototypes per point need to be ranked.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

APPROX_THRESHOLD = -np.log(1e-3)


def rank_weights(lam, K):
    """Assignment strengths exp(-r / lam) for ranks r = 0, 1, ... up to the cutoff.

    Parameters:
        lam (float): softness parameter lambda.
        K (int): number of prototypes, the largest possible number of ranks.
    Returns:
        np.ndarray: weights for the retained ranks; its length is the effective
            maximum rank and always at least 1.
    """
    inv_lambda = 1. / lam
    hs = [1.]
    for r in range(1, K):
        exponent = inv_lambda * r
        if exponent > APPROX_THRESHOLD:
            break
        hs.append(np.exp(-exponent))
    return np.array(hs)


def top_ranked_prototypes(Dp, max_rank):
    """Indices of the max_rank closest prototypes for every data point.

    Equal distances are ranked by ascending prototype index.

    Parameters:
        Dp: array of shape (m, K), squared distances of data points to prototypes.
        max_rank (int): number of ranks to keep.
    Returns:
        np.ndarray of shape (m, max_rank), where entry (i, r) is the prototype with rank r for point i.
    """
    Dp = np.asarray(Dp)
    if max_rank == 1:
        return np.argmin(Dp, axis=1)[:, np.newaxis]
    return np.argsort(Dp, axis=1, kind='stable')[:, :max_rank]


def assignment_strengths(Dp, lam):
    """Soft assignment matrix H of shape (K, m) with H[k, i] = h(k|i)."""
    Dp = np.asarray(Dp)
    m, K = Dp.shape
    hs = rank_weights(lam, K)
    ranking = top_ranked_prototypes(Dp, len(hs))
    H = np.zeros((K, m))
    H[ranking, np.arange(m)[:, np.newaxis]] = hs
    return H


def update_convex_coefficients(H, Dp, Alpha):
    """Batch neural gas update of the prototypes.

    The new prototype k is the H-weighted mean of the data, which in relational
    form means Alpha[k] = H[k] / sum(H[k]). Alongside, the soft quantization error
        E = sum_k sum_i H[k, i] * Dp[i, k]
    of the current prototypes is returned.

    A prototype that no data point ranks within the cutoff keeps its coefficients.

    Parameters:
        H: array of shape (K, m), soft assignments.
        Dp: array of shape (m, K), distances the assignments were computed from.
        Alpha: array of shape (K, m), current convex coefficients. Not modified.
    Returns:
        tuple: (new Alpha, soft quantization error)
    """
    nrml = np.sum(H, axis=1)
    soft_error = float(np.sum(H * Dp.T))

    new_alpha = np.array(Alpha, dtype=float)
    active = nrml > 0
    new_alpha[active] = H[active] / nrml[active, np.newaxis]
    if not np.all(active):
        logger.warning(f'Prototypes {np.flatnonzero(~active).tolist()} received no assignments and keep their coefficients')
    return new_alpha, soft_error
