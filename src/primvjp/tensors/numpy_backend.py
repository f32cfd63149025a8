"""NumPy implementation of :class:`AbstractTensor`."""

# TENSOR BACKEND IMPLEMENTATION GUIDELINES:
# ----------------------------------------
# 1. OPERATOR IMPLEMENTATION:
#    - DO NOT implement magic methods (__add__, __mul__, etc.)
#    - These are handled by AbstractTensor
#    - Only implement _apply_operator__ and the ``*_`` hooks
#
# 2. RESULTS:
#    - Every hook returns an ndarray, never a NumPy scalar, so 0-d
#      tensors keep their dtype through later arithmetic
#    - Python scalars are combined as-is; they never widen float16
#
# 3. DEPENDENCIES:
#    - NumPy is required; SciPy supplies the special functions
#    - There is no bfloat16 here, casting to it raises TypeError
#
# Remember: Magic methods and operator overloading are EXCLUSIVELY handled by
# AbstractTensor. Backend implementations provide only the raw
# tensor operations.

from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
from scipy import special

from .abstraction import AbstractTensor, register_backend
from .dtypes import DataType


_DTYPE_TO_NUMPY = {
    DataType.BOOL: np.bool_,
    DataType.UINT8: np.uint8,
    DataType.INT32: np.int32,
    DataType.INT64: np.int64,
    DataType.FLOAT16: np.float16,
    DataType.FLOAT32: np.float32,
    DataType.FLOAT64: np.float64,
}
_NUMPY_TO_DTYPE = {np.dtype(v): k for k, v in _DTYPE_TO_NUMPY.items()}


def _np_dtype(dtype: DataType):
    try:
        return _DTYPE_TO_NUMPY[dtype]
    except KeyError:
        raise TypeError(f"NumPy backend cannot represent {dtype.value}") from None


def _coords(index: np.ndarray) -> Tuple[np.ndarray, ...]:
    """Split a ``[..., k]`` coordinate array into a k-tuple usable for fancy indexing."""
    index = np.asarray(index)
    return tuple(np.moveaxis(index, -1, 0))


class NumPyTensorOperations(AbstractTensor):
    # --- construction -------------------------------------------------------
    def from_data_(self, data: Any, dtype: Optional[DataType]):
        if dtype is None:
            return np.array(data)
        return np.array(data, dtype=_np_dtype(dtype))

    def full_(self, shape: Tuple[int, ...], value: Any, dtype: DataType):
        return np.full(shape, value, dtype=_np_dtype(dtype))

    def clone_(self):
        return np.array(self.data, copy=True)

    # --- properties ---------------------------------------------------------
    def get_shape_(self):
        return self.data.shape

    def get_dtype_(self) -> DataType:
        try:
            return _NUMPY_TO_DTYPE[self.data.dtype]
        except KeyError:
            raise TypeError(f"Unsupported NumPy dtype {self.data.dtype}") from None

    def to_dtype_(self, dtype: DataType):
        return self.data.astype(_np_dtype(dtype))

    def tolist_(self):
        return self.data.tolist()

    def item_(self):
        return self.data.item()

    def numpy_(self):
        return np.asarray(self.data)

    # --- operators ----------------------------------------------------------
    def _apply_operator__(self, op: str, left: Any, right: Any):
        """Apply arithmetic and comparison operators on NumPy arrays."""
        a, b = left, right
        if op == "neg":
            return np.asarray(-a)
        if op in ("add", "radd"):
            return np.asarray(a + b)
        if op in ("sub", "rsub"):
            return np.asarray(a - b)
        if op in ("mul", "rmul"):
            return np.asarray(a * b)
        if op in ("truediv", "rtruediv"):
            return np.asarray(np.true_divide(a, b))
        if op in ("pow", "rpow"):
            return np.asarray(np.power(a, b))
        if op == "greater":
            return np.asarray(np.greater(a, b))
        if op == "greater_equal":
            return np.asarray(np.greater_equal(a, b))
        if op == "less":
            return np.asarray(np.less(a, b))
        if op == "less_equal":
            return np.asarray(np.less_equal(a, b))
        if op == "equal":
            return np.asarray(np.equal(a, b))
        raise NotImplementedError(f"Operator {op} not implemented for NumPy backend.")

    # --- elementwise --------------------------------------------------------
    def sign_(self):
        return np.asarray(np.sign(self.data))

    def exp_(self):
        return np.asarray(np.exp(self.data))

    def log_(self):
        return np.asarray(np.log(self.data))

    def sqrt_(self):
        return np.asarray(np.sqrt(self.data))

    def sin_(self):
        return np.asarray(np.sin(self.data))

    def cos_(self):
        return np.asarray(np.cos(self.data))

    def tanh_(self):
        return np.asarray(np.tanh(self.data))

    def erf_(self):
        return self._keep_float_dtype(special.erf(self.data))

    def sigmoid_(self):
        return self._keep_float_dtype(special.expit(self.data))

    def _keep_float_dtype(self, out):
        # scipy computes float16 in a wider type
        out = np.asarray(out)
        if self.data.dtype.kind == "f":
            return out.astype(self.data.dtype, copy=False)
        return out

    def where_(self, x, y):
        x = np.asarray(x)
        y = np.asarray(y)
        if x.ndim == 0 and y.ndim > 0:
            x = x.astype(y.dtype)
        elif y.ndim == 0 and x.ndim > 0:
            y = y.astype(x.dtype)
        return np.asarray(np.where(self.data, x, y))

    # --- reductions ---------------------------------------------------------
    def sum_(self, dim=None, keepdim=False):
        return np.asarray(np.sum(self.data, axis=dim, keepdims=keepdim, dtype=self._acc_dtype()))

    def cumsum_(self, dim: int):
        return np.cumsum(self.data, axis=dim, dtype=self._acc_dtype())

    def flip_(self, dims: Tuple[int, ...]):
        return np.flip(self.data, axis=dims).copy()

    def _acc_dtype(self):
        # floats accumulate in their own width; ints use numpy defaults
        return self.data.dtype if self.data.dtype.kind == "f" else None

    # --- layout -------------------------------------------------------------
    def reshape_(self, shape: Tuple[int, ...]):
        return np.reshape(self.data, shape)

    def permute_(self, dims: Tuple[int, ...]):
        return np.ascontiguousarray(np.transpose(self.data, dims))

    def expand_(self, shape: Tuple[int, ...]):
        return np.broadcast_to(self.data, shape).copy()

    def roll_(self, shifts, dims):
        return np.roll(self.data, shifts, axis=dims)

    def pad_(self, pairs: List[Tuple[int, int]], value: float):
        return np.pad(self.data, pairs, mode="constant", constant_values=value)

    def getitem_(self, idx):
        return np.asarray(self.data[idx])

    def cat_(self, datas: Sequence[np.ndarray], dim: int):
        return np.concatenate(datas, axis=dim)

    def split_(self, sizes: List[int], dim: int):
        cuts = np.cumsum(sizes)[:-1]
        return [part.copy() for part in np.split(self.data, cuts, axis=dim)]

    # --- indexing -----------------------------------------------------------
    def gather_(self, index, axis: int):
        return np.take(self.data, np.asarray(index).reshape(-1), axis=axis)

    def scatter_(self, index, updates, overwrite: bool):
        index = np.asarray(index).reshape(-1)
        out = np.array(self.data, copy=True)
        if overwrite:
            out[index] = updates
        else:
            out[index] = 0
            np.add.at(out, index, updates)
        return out

    def gather_nd_(self, index):
        return np.asarray(self.data[_coords(index)])

    def scatter_nd_add_(self, index, updates):
        out = np.array(self.data, copy=True)
        np.add.at(out, _coords(index), updates)
        return out

    def put_along_axis_(self, indices, values, axis: int):
        out = np.array(self.data, copy=True)
        np.put_along_axis(out, np.asarray(indices), values, axis=axis)
        return out


register_backend("numpy", NumPyTensorOperations)
