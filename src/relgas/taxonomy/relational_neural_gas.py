# This module implements batch relational neural gas (RNG), a clustering algorithm
# for data that is only given as a matrix of pairwise dissimilarities.
#
# Let x_1, ..., x_m be the data points and w_1, ..., w_K the prototypes. Neural gas
# minimizes the soft quantization error
#     E = \sum^m_{i=1} \sum^K_{k=1} h(k|i) d(x_i, w_k)^2,     h(k|i) = exp(-r(k|i) / lambda)
# where r(k|i) is the rank of prototype k for data point i. lambda starts at K/2 and
# is annealed to 0.01, at which point the algorithm coincides with K-means.
#
# In the relational setting every prototype is a convex combination
#     w_k = \sum^m_{i=1} alpha_{k,i} x_i
# and d(x_i, w_k)^2 is computed from the dissimilarity matrix alone (see
# relational_distances). The batch update w_k = \sum_i h(k|i) x_i / \sum_i h(k|i)
# then becomes alpha_k = h(k|.) / \sum_i h(k|i).
#
# Notes:
# - `train` and the query functions work on plain arrays and RNGModel objects.
# - RelationalNeuralGas wraps them in the Scikit-learn style, with fit, predict and transform methods.
#
# References:
# - MARTINETZ, T., BERKOVICH, S., SCHULTEN, K., "Neural-Gas" Network for Vector Quantization 1993.
# - HAMMER, B., HASENFUSS, A., Topographic Mapping of Large Dissimilarity Data Sets 2010.

import logging

import numpy as np
from sklearn.base import BaseEstimator, ClusterMixin, TransformerMixin
from sklearn.utils.validation import check_is_fitted

from relgas.taxonomy.annealing import get_lambda
from relgas.taxonomy.model import RNGErrorModel
from relgas.taxonomy.ranking import assignment_strengths, rank_weights, update_convex_coefficients
from relgas.taxonomy.relational_distances import (
    get_distances_to_prototypes,
    get_model_distances,
    _normalization_terms,
)
from relgas.taxonomy.validation import (
    ParameterError,
    check_assignments,
    check_dissimilarity_matrix,
    check_positive,
)

logger = logging.getLogger(__name__)

DEFAULT_EPOCHS = 30


def train(D, K, T=DEFAULT_EPOCHS, random_state=None):
    """Train a relational neural gas model with K prototypes for T epochs.

    Takes O(m * m * K * T) steps for m data points.

    Parameters:
        D: array of shape (m, m), symmetric pairwise dissimilarities with zero diagonal.
        K (int): number of prototypes.
        T (int): number of training epochs.
        random_state: None, an int seed or a np.random.Generator, used to draw the
            initial convex coefficients.
    Returns:
        RNGErrorModel
    """
    D = check_dissimilarity_matrix(D)
    check_positive(K, 'prototypes')
    check_positive(T, 'epochs')

    m = D.shape[0]
    rng = np.random.default_rng(random_state)
    # random convex combinations as initial prototypes
    Alpha = rng.uniform(0., 1., size=(K, m))
    Alpha /= np.sum(Alpha, axis=1, keepdims=True)

    logger.info(f'Training relational neural gas: {m} data points, {K} prototypes, {T} epochs')
    errors = np.zeros(T + 1)
    for t in range(T):
        lam = get_lambda(t, K, T)
        Z = _normalization_terms(D, Alpha)
        Dp = get_distances_to_prototypes(D, Alpha, Z)
        H = assignment_strengths(Dp, lam)
        Alpha, errors[t] = update_convex_coefficients(H, Dp, Alpha)
        logger.debug(f'Epoch {t}: lambda={lam:.4f}, max_rank={len(rank_weights(lam, K))}, error={errors[t]:.6f}')

    Z = _normalization_terms(D, Alpha)
    Dp = get_distances_to_prototypes(D, Alpha, Z)
    # crisp quantization error of the final model
    errors[T] = np.sum(np.min(Dp, axis=1))
    logger.info(f'Training finished with quantization error {errors[T]:.6f}')

    return RNGErrorModel(Alpha, Dp, Z, quantization_errors=errors)


def get_assignments(model):
    """Index of the closest prototype for every training data point; ties go to the smaller index."""
    return np.argmin(model.distances_to_prototypes, axis=1)


def classify(D, model):
    """Assign new data to the closest prototype of the model.

    Parameters:
        D: distances of the new data to the m training points, a vector of shape (m,)
            for a single point or a matrix of shape (n, m).
        model: RNGModel
    Returns:
        int for a single point, np.ndarray of shape (n,) otherwise.
    """
    dp = get_model_distances(D, model)
    if dp.ndim == 1:
        return int(np.argmin(dp))
    return np.argmin(dp, axis=1)


def get_cluster_members(model, k=None, assignments=None):
    """Indices of the data points assigned to prototype k, in ascending order.

    Without k, returns a list with the members of every prototype. Precomputed
    assignments (as returned by get_assignments) may be passed to avoid recomputation.
    """
    K = model.n_prototypes
    if assignments is None:
        assignments = get_assignments(model)
    else:
        assignments = check_assignments(model.n_datapoints, K, assignments)
    if k is None:
        return [np.flatnonzero(assignments == j) for j in range(K)]
    if k < 0 or k >= K:
        raise ParameterError(f'Prototype index {k} is out of range for a model with {K} prototypes.')
    return np.flatnonzero(assignments == k)


def get_exemplars(model):
    """For every prototype, the index of the closest data point; ties go to the smaller index."""
    return np.argmin(model.distances_to_prototypes, axis=0)


class RelationalNeuralGas(BaseEstimator, ClusterMixin, TransformerMixin):
    """Batch relational neural gas clustering.

    X is always a dissimilarity matrix: (m, m) pairwise dissimilarities of the
    training data for fit, and (n, m) dissimilarities of new data to the training
    data for predict, transform and score.

    Parameters:
        n_prototypes (int): The number of prototypes (clusters) to form.
        n_epochs (int): Number of training epochs; lambda is annealed over them.
        random_state: Seed or np.random.Generator for the initial prototypes.

    Attributes:
        model_ (RNGErrorModel): The trained model.
        labels_ (np.ndarray): Cluster index of each training point.
        exemplars_ (np.ndarray): Index of the training point closest to each prototype.
        quantization_errors_ (np.ndarray): Error before each epoch plus the final crisp error.
    """
    def __init__(self, n_prototypes=8, n_epochs=DEFAULT_EPOCHS, random_state=None):
        self.n_prototypes = n_prototypes
        self.n_epochs = n_epochs
        self.random_state = random_state

    def fit(self, X, y=None):
        self.model_ = train(X, self.n_prototypes, self.n_epochs, random_state=self.random_state)
        self.labels_ = get_assignments(self.model_)
        self.exemplars_ = get_exemplars(self.model_)
        self.quantization_errors_ = self.model_.quantization_errors
        return self

    def transform(self, X):
        check_is_fitted(self, 'model_')
        return get_model_distances(X, self.model_)

    def predict(self, X):
        check_is_fitted(self, 'model_')
        return classify(X, self.model_)

    def score(self, X, y=None):
        distances = np.atleast_2d(self.transform(X))
        return -np.sum(np.min(distances, axis=1))
