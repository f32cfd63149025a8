import numpy as np
import pytest

from primvjp.tensors.numpy_backend import NumPyTensorOperations as T
from primvjp.vjp import elementwise as ew

SHAPES = [
    ((2, 3), (2, 3)),
    ((2, 3), (3,)),
    ((2, 1), (1, 3)),
    ((), (4,)),
    ((4, 1, 3), (2, 3)),
]

FORWARD = {
    "add_grad": np.add,
    "subtract_grad": np.subtract,
    "multiply_grad": np.multiply,
    "divide_grad": np.divide,
    "maximum_grad": np.maximum,
    "minimum_grad": np.minimum,
}


def _inputs(rng, x_shape, y_shape, positive=False):
    x = rng.uniform(0.5, 2.0, size=x_shape) if positive else rng.normal(size=x_shape)
    y = rng.uniform(0.5, 2.0, size=y_shape)
    g = rng.normal(size=np.broadcast_shapes(x_shape, y_shape))
    return np.asarray(x), np.asarray(y), g


@pytest.mark.parametrize("rule", sorted(FORWARD))
@pytest.mark.parametrize("x_shape,y_shape", SHAPES)
def test_binary_rules_match_finite_differences(rule, x_shape, y_shape, rng, numeric_vjp):
    f = FORWARD[rule]
    x, y, g = _inputs(rng, x_shape, y_shape)
    res = getattr(ew, rule)(T.tensor(x), T.tensor(y), T.tensor(g))
    assert res.x_grad.shape == x.shape
    assert res.y_grad.shape == y.shape
    assert np.allclose(res.x_grad.data, numeric_vjp(lambda v: f(v, y), x, g), atol=1e-5)
    assert np.allclose(res.y_grad.data, numeric_vjp(lambda v: f(x, v), y, g), atol=1e-5)


@pytest.mark.parametrize("x_shape,y_shape", SHAPES)
def test_elementwise_pow_grad(x_shape, y_shape, rng, numeric_vjp):
    x, y, g = _inputs(rng, x_shape, y_shape, positive=True)
    res = ew.elementwise_pow_grad(T.tensor(x), T.tensor(y), T.tensor(g))
    assert np.allclose(res.x_grad.data, numeric_vjp(lambda v: np.power(v, y), x, g), atol=1e-5)
    assert np.allclose(res.y_grad.data, numeric_vjp(lambda v: np.power(x, v), y, g), atol=1e-5)


def test_unrequested_slot_is_none_and_other_unchanged(rng):
    x, y, g = _inputs(rng, (2, 3), (3,))
    both = ew.divide_grad(T.tensor(x), T.tensor(y), T.tensor(g))
    only_y = ew.divide_grad(T.tensor(x), T.tensor(y), T.tensor(g), need_x=False)
    assert only_y.x_grad is None
    assert np.array_equal(only_y.y_grad.data, both.y_grad.data)


def test_add_grad_same_shape_is_a_copy():
    g = T.tensor([1.0, 2.0])
    res = ew.add_grad(T.tensor([0.0, 0.0]), T.tensor([0.0, 0.0]), g)
    assert res.x_grad is not g
    assert np.array_equal(res.x_grad.data, g.data)


def test_maximum_tie_goes_to_y():
    x = T.tensor([1.0, 2.0, 3.0])
    y = T.tensor([1.0, 5.0, 0.0])
    g = T.tensor([10.0, 20.0, 30.0])
    res = ew.maximum_grad(x, y, g)
    assert np.allclose(res.x_grad.data, [0.0, 0.0, 30.0])
    assert np.allclose(res.y_grad.data, [10.0, 20.0, 0.0])
    res = ew.minimum_grad(x, y, g)
    assert np.allclose(res.x_grad.data, [0.0, 20.0, 0.0])
    assert np.allclose(res.y_grad.data, [10.0, 0.0, 30.0])
