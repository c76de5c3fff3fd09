import numpy as np

from relgas.taxonomy.validation import check_positive

FINAL_LAMBDA = 0.01


def get_lambda(t, K, T):
    """Softness parameter lambda for epoch t of T, with K prototypes.

    Exponential decay as recommended by Martinez et al. (1993):
        lambda_t = lambda_0 * (0.01 / lambda_0) ^ (t / (T - 1)),  lambda_0 = K / 2
    The last epoch always uses exactly 0.01, the first exactly K / 2.
    """
    check_positive(T, 'epochs')
    check_positive(K, 'prototypes')
    if t == T - 1:
        return FINAL_LAMBDA
    lambda_0 = K / 2
    if t == 0:
        return lambda_0
    return lambda_0 * np.power(FINAL_LAMBDA / lambda_0, t / (T - 1))


def lambda_schedule(K, T):
    return np.array([get_lambda(t, K, T) for t in range(T)])
