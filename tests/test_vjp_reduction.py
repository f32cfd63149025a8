import numpy as np
import pytest

from primvjp.tensors.numpy_backend import NumPyTensorOperations as T
from primvjp.vjp import reduction as rd

CASES = [
    ((2, 3, 4), [1], False),
    ((2, 3, 4), [-1], True),
    ((2, 3, 4), [0, 2], False),
    ((2, 3, 4), [], False),
    ((2, 3), [0, 1], True),
    ((5,), [0], False),
    ((), [], False),
]


def _reduce(f, axis, keepdim):
    def apply(v):
        ax = tuple(axis) if axis else None
        return f(v, axis=ax, keepdims=keepdim)
    return apply


@pytest.mark.parametrize("x_shape,axis,keepdim", CASES)
def test_sum_grad(x_shape, axis, keepdim, rng, numeric_vjp):
    x = np.asarray(rng.normal(size=x_shape))
    fwd = _reduce(np.sum, axis, keepdim)
    g = np.asarray(rng.normal(size=np.shape(fwd(x))))
    got = rd.sum_grad(T.tensor(x), T.tensor(g), axis, keepdim)
    assert got.shape == x.shape
    assert np.allclose(got.data, numeric_vjp(fwd, x, g), atol=1e-5)


@pytest.mark.parametrize("x_shape,axis,keepdim", CASES)
def test_prod_grad(x_shape, axis, keepdim, rng, numeric_vjp):
    x = np.asarray(rng.uniform(0.5, 1.5, size=x_shape))
    fwd = _reduce(np.prod, axis, keepdim)
    out = np.asarray(fwd(x))
    g = np.asarray(rng.normal(size=out.shape))
    got = rd.prod_grad(T.tensor(x), T.tensor(out), T.tensor(g), axis, keepdim)
    assert np.allclose(got.data, numeric_vjp(fwd, x, g), atol=1e-5)


@pytest.mark.parametrize("x_shape,axis,keepdim", CASES)
def test_max_grad_without_ties(x_shape, axis, keepdim, rng, numeric_vjp):
    x = np.asarray(rng.permutation(max(int(np.prod(x_shape)), 1)).reshape(x_shape) * 1.0)
    fwd = _reduce(np.max, axis, keepdim)
    out = np.asarray(fwd(x))
    g = np.asarray(rng.normal(size=out.shape))
    got = rd.max_grad(T.tensor(x), T.tensor(out), T.tensor(g), axis, keepdim)
    assert np.allclose(got.data, numeric_vjp(fwd, x, g, eps=1e-3), atol=1e-5)


def test_max_grad_ties_each_receive_full_gradient():
    x = T.tensor([3.0, 3.0, 1.0])
    got = rd.max_grad(x, T.tensor(3.0), T.tensor(2.0), [0])
    assert np.allclose(got.data, [2.0, 2.0, 0.0])


def _cumsum(v, axis, flatten, exclusive, reverse):
    if flatten:
        v = v.reshape(-1)
        axis = 0
    if reverse:
        v = np.flip(v, axis)
    out = np.cumsum(v, axis=axis)
    if exclusive:
        out = out - v
    if reverse:
        out = np.flip(out, axis)
    return out


@pytest.mark.parametrize("flatten", [False, True])
@pytest.mark.parametrize("exclusive", [False, True])
@pytest.mark.parametrize("reverse", [False, True])
def test_cumsum_grad(flatten, exclusive, reverse, rng, numeric_vjp):
    x = rng.normal(size=(2, 3))
    fwd = lambda v: _cumsum(v, 1, flatten, exclusive, reverse)
    g = rng.normal(size=fwd(x).shape)
    got = rd.cumsum_grad(T.tensor(x), T.tensor(g), 1, flatten, exclusive, reverse)
    assert got.shape == x.shape
    assert np.allclose(got.data, numeric_vjp(fwd, x, g), atol=1e-5)


def test_need_x_false():
    x = T.tensor([1.0])
    assert rd.sum_grad(x, x, need_x=False) is None
