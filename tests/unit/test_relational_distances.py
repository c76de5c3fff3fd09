import numpy as np
import pytest

from relgas.taxonomy.relational_distances import (
    get_normalization_terms,
    get_distances_to_prototypes,
    get_model_distances,
)
from relgas.taxonomy.model import RNGModel
from relgas.taxonomy.dissimilarity import dissimilarity_matrix
from relgas.taxonomy.validation import ShapeError, DimensionMismatchError, SymmetryError, ConvexityError


X = np.array([-1., 0., 1.])
D = np.array([
    [0., 1., 2.],
    [1., 0., 1.],
    [2., 1., 0.],
])


def squared_distances_to_means(x, Alpha):
    means = Alpha @ x
    return (x[:, None] - means[None, :]) ** 2


def test_one_hot_prototypes_reproduce_squared_distances():
    Alpha = np.eye(3)
    Z = get_normalization_terms(D, Alpha)
    np.testing.assert_allclose(Z, np.zeros(3), atol=1e-12)
    Dp = get_distances_to_prototypes(D, Alpha, Z)
    np.testing.assert_allclose(Dp, (X[:, None] - X[None, :]) ** 2, atol=1e-3)


def test_mixed_prototypes_reproduce_distances_to_weighted_mean():
    Alpha = np.array([
        [0.5, 0.5, 0.],
        [1 / 3, 1 / 3, 1 / 3],
        [0., 0.25, 0.75],
    ])
    Z = get_normalization_terms(D, Alpha)
    Dp = get_distances_to_prototypes(D, Alpha, Z)
    assert Dp.shape == (3, 3)
    np.testing.assert_allclose(Dp, squared_distances_to_means(X, Alpha), atol=1e-3)


def test_normalization_terms_match_dense_quadratic_form():
    rng = np.random.RandomState(3)
    points = rng.randn(12, 2)
    D_points = np.linalg.norm(points[:, None] - points[None, :], axis=2)
    Alpha = rng.rand(4, 12)
    Alpha[Alpha < 0.5] = 0.  # sparse rows
    Alpha[:, 0] += 0.1
    Alpha /= Alpha.sum(axis=1, keepdims=True)
    expected = -0.5 * np.einsum('ki,ij,kj->k', Alpha, D_points ** 2, Alpha)
    np.testing.assert_allclose(get_normalization_terms(D_points, Alpha), expected)


def test_single_row_and_matrix_agree():
    Alpha = np.array([[0.5, 0.5, 0.], [0., 0., 1.]])
    Z = get_normalization_terms(D, Alpha)
    Dp = get_distances_to_prototypes(D, Alpha, Z)
    for i in range(3):
        dp = get_distances_to_prototypes(D[i], Alpha, Z)
        assert dp.shape == (2,)
        np.testing.assert_allclose(dp, Dp[i])


def test_query_points_outside_training_data():
    Alpha = np.array([[0.5, 0.5, 0.], [0., 0.5, 0.5]])
    Z = get_normalization_terms(D, Alpha)
    x_query = np.array([3., -2.])
    D_query = np.abs(x_query[:, None] - X[None, :])
    Dp = get_distances_to_prototypes(D_query, Alpha, Z)
    expected = (x_query[:, None] - (Alpha @ X)[None, :]) ** 2
    np.testing.assert_allclose(Dp, expected, atol=1e-9)


def test_inputs_are_not_modified():
    D_copy = D.copy()
    Alpha = np.array([[0.5, 0.5, 0.]])
    Alpha_copy = Alpha.copy()
    Z = get_normalization_terms(D, Alpha)
    get_distances_to_prototypes(D, Alpha, Z)
    np.testing.assert_array_equal(D, D_copy)
    np.testing.assert_array_equal(Alpha, Alpha_copy)


def test_malformed_query_matrix_raises():
    Alpha = np.eye(3)
    Z = np.zeros(3)
    with pytest.raises(ShapeError):
        get_distances_to_prototypes(None, Alpha, Z)
    with pytest.raises(ShapeError):
        get_distances_to_prototypes(np.zeros((0, 3)), Alpha, Z)
    with pytest.raises(ShapeError):
        get_distances_to_prototypes([[0., 1., 2.], [1., 0.]], Alpha, Z)
    with pytest.raises(ShapeError):
        get_distances_to_prototypes(np.zeros((2, 4)), Alpha, Z)
    with pytest.raises(ShapeError):
        get_distances_to_prototypes(np.zeros(4), Alpha, Z)


def test_normalization_terms_length_mismatch_raises():
    with pytest.raises(DimensionMismatchError):
        get_distances_to_prototypes(D, np.eye(3), np.zeros(2))


def test_model_distances():
    model = RNGModel.from_dissimilarities(D, [[0.5, 0.5, 0.], [0., 0., 1.]])
    np.testing.assert_allclose(get_model_distances(D, model), model.distances_to_prototypes)
    assert get_model_distances(D[0], model).shape == (2,)


def test_normalization_terms_reject_malformed_matrix():
    Alpha = [[0.5, 0.5, 0.]]
    with pytest.raises(ShapeError):
        get_normalization_terms(np.zeros((2, 3)), Alpha)
    with pytest.raises(ShapeError):
        get_normalization_terms(None, Alpha)
    asymmetric = D.copy()
    asymmetric[0, 2] = 5.
    with pytest.raises(SymmetryError):
        get_normalization_terms(asymmetric, Alpha)


def test_normalization_terms_reject_coefficients_of_wrong_width():
    with pytest.raises(ShapeError):
        get_normalization_terms(dissimilarity_matrix([0., 1., 2., 3.]), [[0.5, 0.5, 0.]])
    with pytest.raises(ShapeError):
        get_normalization_terms(D, np.full((2, 4), 0.25))
    with pytest.raises(ConvexityError):
        get_normalization_terms(D, [[0.5, 0.6, 0.]])
