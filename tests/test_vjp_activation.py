import math

import numpy as np
import pytest
from scipy import special

from primvjp.tensors import DataType
from primvjp.tensors.numpy_backend import NumPyTensorOperations as T
from primvjp.vjp import activation as act


def _gelu_exact(x):
    return 0.5 * x * (1.0 + special.erf(x / math.sqrt(2.0)))


def _gelu_tanh(x):
    return 0.5 * x * (1.0 + np.tanh(math.sqrt(2.0 / math.pi) * (x + 0.044715 * x ** 3)))


def _silu(x):
    return x * special.expit(x)


def _hardswish(x):
    return x * np.minimum(np.maximum(x + 3.0, 0.0), 6.0) / 6.0


@pytest.mark.parametrize("shape", [(), (5,), (2, 3)])
@pytest.mark.parametrize(
    "name,forward,takes",
    [
        ("sin_grad", np.sin, "x"),
        ("cos_grad", np.cos, "x"),
        ("tanh_grad", np.tanh, "out"),
        ("exp_grad", np.exp, "out"),
        ("sigmoid_grad", special.expit, "out"),
        ("erf_grad", special.erf, "x"),
    ],
)
def test_unary_rules(name, forward, takes, shape, rng, numeric_vjp):
    x = np.asarray(rng.normal(size=shape))
    g = np.asarray(rng.normal(size=shape))
    first = x if takes == "x" else forward(x)
    got = getattr(act, name)(T.tensor(first), T.tensor(g))
    assert got.shape == x.shape
    assert np.allclose(got.data, numeric_vjp(forward, x, g), atol=1e-5)


def test_log_and_sqrt(rng, numeric_vjp):
    x = rng.uniform(0.5, 3.0, size=(4,))
    g = rng.normal(size=(4,))
    assert np.allclose(act.log_grad(T.tensor(x), T.tensor(g)).data, numeric_vjp(np.log, x, g), atol=1e-5)
    got = act.sqrt_grad(T.tensor(np.sqrt(x)), T.tensor(g))
    assert np.allclose(got.data, numeric_vjp(np.sqrt, x, g), atol=1e-5)


def test_abs_floor_assign():
    x = T.tensor([-2.0, 0.0, 3.0])
    g = T.tensor([1.0, 2.0, 3.0])
    assert np.allclose(act.abs_grad(x, g).data, [-1.0, 0.0, 3.0])
    assert np.allclose(act.floor_grad(g).data, 0.0)
    copy = act.assign_grad(g)
    assert copy is not g and np.array_equal(copy.data, g.data)


def test_relu_and_leaky_relu():
    out = T.tensor([-0.5, 0.0, 2.0])
    g = T.tensor([1.0, 1.0, 1.0])
    assert np.allclose(act.relu_grad(out, g).data, [0.0, 0.0, 1.0])
    assert np.allclose(act.leaky_relu_grad(out, g, 0.1).data, [0.1, 0.1, 1.0])


def test_hardswish_branches(numeric_vjp):
    x = np.array([-5.0, -1.5, 0.0, 2.0, 4.5])
    g = np.ones_like(x)
    got = act.hardswish_grad(T.tensor(x), T.tensor(g))
    assert np.allclose(got.data, numeric_vjp(_hardswish, x, g), atol=1e-5)
    # boundary values follow the branch order: <= 3 first, then < -3 zeroing
    edge = act.hardswish_grad(T.tensor([3.0, -3.0]), T.tensor([1.0, 1.0]))
    assert np.allclose(edge.data, [1.5, -0.5])


def test_silu(rng, numeric_vjp):
    x = rng.normal(size=(3, 4))
    g = rng.normal(size=(3, 4))
    got = act.silu_grad(T.tensor(x), T.tensor(_silu(x)), T.tensor(g))
    assert np.allclose(got.data, numeric_vjp(_silu, x, g), atol=1e-5)


@pytest.mark.parametrize("approximate,forward", [(False, _gelu_exact), (True, _gelu_tanh)])
def test_gelu(approximate, forward, rng, numeric_vjp):
    x = rng.normal(size=(3, 4)) * 2.0
    g = rng.normal(size=(3, 4))
    got = act.gelu_grad(T.tensor(x), T.tensor(g), approximate)
    assert np.allclose(got.data, numeric_vjp(forward, x, g), atol=1e-5)


def test_need_x_false_returns_none():
    x = T.tensor([1.0])
    assert act.sin_grad(x, x, need_x=False) is None
    assert act.gelu_grad(x, x, need_x=False) is None


def test_float16_inputs_keep_float16_output():
    x = T.tensor([0.5, -1.0], dtype="float16")
    g = T.tensor([1.0, 1.0], dtype="float16")
    assert act.gelu_grad(x, g).dtype == DataType.FLOAT16
    assert act.relu_grad(x, g).dtype == DataType.FLOAT16
    assert act.exp_grad(x, g).dtype == DataType.FLOAT16
