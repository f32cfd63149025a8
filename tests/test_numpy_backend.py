import numpy as np
import pytest

from primvjp.tensors import AbstractTensor, DataType
from primvjp.tensors.numpy_backend import NumPyTensorOperations as T


def test_tensor_defaults_to_numpy_backend():
    x = AbstractTensor.tensor([1.0, 2.0], dtype="float32")
    assert isinstance(x, T)
    assert x.dtype == DataType.FLOAT32
    assert x.shape == (2,)


def test_scalar_arithmetic_keeps_float16():
    x = T.tensor([1.0, 2.0], dtype=DataType.FLOAT16)
    y = 1.0 - x * 0.5
    assert y.dtype == DataType.FLOAT16
    assert np.allclose(y.data, [0.5, 0.0])
    z = 2.0 / x
    assert z.dtype == DataType.FLOAT16


def test_bool_operand_promoted_to_other_dtype():
    g = T.tensor([1.0, 2.0, 3.0], dtype="float16")
    mask = T.tensor([1.0, 0.0, 2.0]) > 0.5
    assert mask.dtype == DataType.BOOL
    out = g * mask
    assert out.dtype == DataType.FLOAT16
    assert np.allclose(out.data, [1.0, 0.0, 3.0])


def test_zero_dim_results_stay_tensors():
    x = T.tensor(2.0)
    y = x.exp() * 3.0
    assert y.shape == ()
    assert isinstance(y.data, np.ndarray)
    assert np.isclose(y.item(), 3.0 * np.exp(2.0))


def test_bfloat16_not_available_on_numpy():
    x = T.tensor([1.0])
    with pytest.raises(TypeError):
        x.to_dtype(DataType.BFLOAT16)


def test_reductions_and_layout():
    x = T.tensor(np.arange(24, dtype=np.float64).reshape(2, 3, 4))
    assert x.sum(dim=(0, 2)).shape == (3,)
    assert x.sum(dim=1, keepdim=True).shape == (2, 1, 4)
    assert x.sum(dim=()).shape == (2, 3, 4)
    assert x.permute(2, 0, 1).shape == (4, 2, 3)
    assert x.transpose(0, 2).shape == (4, 3, 2)
    parts = x.split([1, 2], 1)
    assert [p.shape for p in parts] == [(2, 1, 4), (2, 2, 4)]
    assert np.array_equal(AbstractTensor.cat(parts, 1).data, x.data)


def test_tensor_carries_only_its_data():
    x = T.tensor([[1, 2], [3, 4]])
    assert list(vars(x)) == ["data"]
    assert x.ensure_tensor([5, 6]).tolist() == [5, 6]
    assert x.zeros_like(dtype="float32").dtype == DataType.FLOAT32
    for name in ("mean", "prod", "tile", "squeeze", "maximum", "numel", "mean_", "prod_", "tile_"):
        assert not hasattr(x, name)


def test_pad_and_slice_are_inverse():
    x = T.tensor(np.arange(6, dtype=np.float64).reshape(2, 3))
    padded = x.pad([(1, 0), (2, 1)])
    assert padded.shape == (3, 6)
    back = padded.slice([0, 1], [1, 2], [3, 5])
    assert np.array_equal(back.data, x.data)


def test_scatter_overwrite_false_accumulates():
    x = T.tensor(np.ones((3, 2)))
    updates = T.tensor(np.array([[1.0, 1.0], [2.0, 2.0]]))
    index = T.tensor([1, 1])
    out = x.scatter(index, updates, overwrite=False)
    assert np.allclose(out.data, [[1, 1], [3, 3], [1, 1]])
    # input untouched
    assert np.allclose(x.data, 1.0)


def test_gather_nd_and_scatter_nd_add():
    x = T.tensor(np.arange(12, dtype=np.float64).reshape(3, 4))
    index = T.tensor([[0, 1], [2, 3]])
    assert np.allclose(x.gather_nd(index).data, [1.0, 11.0])
    out = x.zeros_like().scatter_nd_add(T.tensor([[0, 1], [0, 1]]), T.tensor([1.0, 2.0]))
    assert out.data[0, 1] == 3.0


def test_put_along_axis_and_cumsum():
    x = T.zeros((2, 3), dtype="float64")
    idx = T.tensor([[2], [0]])
    out = x.put_along_axis(idx, T.tensor([[5.0], [7.0]]), 1)
    assert np.allclose(out.data, [[0, 0, 5], [7, 0, 0]])
    c = T.tensor([1.0, 2.0, 3.0]).cumsum(0)
    assert np.allclose(c.data, [1.0, 3.0, 6.0])
