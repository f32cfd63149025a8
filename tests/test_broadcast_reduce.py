import numpy as np
import pytest

from primvjp.tensors import TensorShapeError
from primvjp.tensors.numpy_backend import NumPyTensorOperations as T
from primvjp.vjp.utils import (
    broadcast_shape,
    get_reduce_dims,
    inverse_permutation,
    normalize_axes,
    normalize_axis,
    reduce_as,
    reduce_axes,
    unbroadcast,
    unsqueeze_dims,
)


def test_leading_axes_are_always_reduced():
    assert reduce_axes((2, 3, 4), (4,)) == (0, 1)
    assert reduce_axes((2, 3, 4), ()) == (0, 1, 2)


def test_size_one_axes_reduced_only_when_source_is_wider():
    assert reduce_axes((2, 3, 4), (1, 3, 1)) == (0, 2)
    assert reduce_axes((1, 3, 1), (1, 3, 1)) == ()


def test_same_shape_reduces_nothing():
    assert reduce_axes((5, 6), (5, 6)) == ()


def test_every_reduced_axis_has_target_extent_one_or_is_leading():
    from_shape, to_shape = (4, 1, 5, 6), (5, 1)
    bat = len(from_shape) - len(to_shape)
    for axis in reduce_axes(from_shape, to_shape):
        assert axis < bat or to_shape[axis - bat] == 1


def test_get_reduce_dims_from_input_shapes():
    assert get_reduce_dims((3, 1), (2, 3, 4)) == (0, 2)
    assert get_reduce_dims((2, 3, 4), (3, 1)) == ()


def test_incompatible_shapes_raise():
    with pytest.raises(TensorShapeError):
        broadcast_shape((2, 3), (4,))
    with pytest.raises(TensorShapeError):
        reduce_axes((3,), (2, 3))
    with pytest.raises(TensorShapeError):
        reduce_axes((2, 3), (2, 4))


def test_unbroadcast_sums_and_reshapes():
    g = T.tensor(np.ones((2, 3, 4)))
    out = unbroadcast(g, (3, 1))
    assert out.shape == (3, 1)
    assert np.allclose(out.data, 8.0)


def test_unbroadcast_identity_returns_same_tensor():
    g = T.tensor(np.ones((2, 3)))
    assert unbroadcast(g, (2, 3)) is g
    assert reduce_as(g, (2, 3), (2, 3)) is g


def test_normalize_axis():
    assert normalize_axis(-1, 3) == 2
    assert normalize_axis(0, 0) == 0
    assert normalize_axes([-1, 0, 2], 3) == (0, 2)
    with pytest.raises(TensorShapeError):
        normalize_axis(3, 3)


def test_unsqueeze_dims_reinserts_reduced_axes():
    assert unsqueeze_dims((2, 4), (1,)) == (2, 1, 4)
    assert unsqueeze_dims((), (0, 1)) == (1, 1)
    assert unsqueeze_dims((3,), (0, 2)) == (1, 3, 1)


def test_inverse_permutation_with_negative_entries():
    assert inverse_permutation((1, 2, 0)) == (2, 0, 1)
    assert inverse_permutation((-2, -1, 0)) == (2, 0, 1)
