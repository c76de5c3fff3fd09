import numpy as np
from scipy.spatial.distance import cdist, pdist, squareform


def dissimilarity_matrix(X, metric='euclidean'):
    """Pairwise dissimilarities of the rows of X, shape (m, m).

    Coordinates are only needed to build the matrix; relational neural gas never
    sees them. Any metric accepted by scipy.spatial.distance.pdist may be used.
    """
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X[:, np.newaxis]
    return squareform(pdist(X, metric=metric))


def query_dissimilarities(X_query, X_train, metric='euclidean'):
    """Dissimilarities of new points to the training points, shape (n, m)."""
    X_query = np.asarray(X_query, dtype=float)
    X_train = np.asarray(X_train, dtype=float)
    if X_query.ndim == 1:
        X_query = X_query[:, np.newaxis]
    if X_train.ndim == 1:
        X_train = X_train[:, np.newaxis]
    return cdist(X_query, X_train, metric=metric)
