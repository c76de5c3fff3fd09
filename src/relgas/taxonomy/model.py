from dataclasses import dataclass, field

import numpy as np

from relgas.taxonomy.validation import (
    DimensionMismatchError,
    check_convex_coefficients,
    check_dissimilarity_matrix,
    check_dissimilarities_to_prototypes,
)
from relgas.taxonomy.relational_distances import get_normalization_terms, get_distances_to_prototypes


def _frozen(a, dtype=float):
    a = np.array(a, dtype=dtype)
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class RNGModel:
    """Relational neural gas model with K prototypes for m data points.

    Parameters:
        convex_coefficients: (K, m) array; row k is the convex combination of
            data points that represents prototype k.
        distances_to_prototypes: (m, K) array of squared distances of each data
            point to each prototype.
        normalization_terms: (K,) array with -0.5 * Alpha[k] . D^2 . Alpha[k]^T,
            where D is the distance matrix of the training data.

    All arrays are validated and stored as read-only copies.
    """
    convex_coefficients: np.ndarray
    distances_to_prototypes: np.ndarray
    normalization_terms: np.ndarray

    def __post_init__(self):
        Dp = check_dissimilarities_to_prototypes(self.distances_to_prototypes)
        m, K = Dp.shape
        Alpha = check_convex_coefficients(m, K, self.convex_coefficients)
        if self.normalization_terms is None or np.ndim(self.normalization_terms) != 1 \
                or len(self.normalization_terms) != K:
            raise DimensionMismatchError(f'Expected a vector of {K} normalization terms, one per prototype.')
        object.__setattr__(self, 'convex_coefficients', _frozen(Alpha))
        object.__setattr__(self, 'distances_to_prototypes', _frozen(Dp))
        object.__setattr__(self, 'normalization_terms', _frozen(self.normalization_terms))

    @classmethod
    def from_dissimilarities(cls, D, Alpha):
        """Model for the training distances D with prototypes given by Alpha."""
        D = check_dissimilarity_matrix(D)
        K = 0 if Alpha is None else len(Alpha)
        Alpha = check_convex_coefficients(D.shape[0], K, Alpha)
        Z = get_normalization_terms(D, Alpha)
        Dp = get_distances_to_prototypes(D, Alpha, Z)
        return cls(Alpha, Dp, Z)

    @property
    def n_datapoints(self) -> int:
        return self.distances_to_prototypes.shape[0]

    @property
    def n_prototypes(self) -> int:
        return self.convex_coefficients.shape[0]


@dataclass(frozen=True, eq=False)
class RNGErrorModel(RNGModel):
    """RNGModel produced by training, which also records the quantization error.

    quantization_errors[t] is the soft quantization error before epoch t; the last
    entry is the crisp quantization error of the final model.
    """
    quantization_errors: np.ndarray = field(kw_only=True)

    def __post_init__(self):
        super().__post_init__()
        if self.quantization_errors is None or np.ndim(self.quantization_errors) != 1 \
                or len(self.quantization_errors) < 2:
            raise DimensionMismatchError('Expected a vector with one error per epoch plus the final error.')
        object.__setattr__(self, 'quantization_errors', _frozen(self.quantization_errors))

    @property
    def n_epochs(self) -> int:
        return len(self.quantization_errors) - 1
