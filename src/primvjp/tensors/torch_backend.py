"""PyTorch implementation of :class:`AbstractTensor`."""

# TENSOR BACKEND IMPLEMENTATION GUIDELINES:
# ----------------------------------------
# 1. OPERATOR IMPLEMENTATION:
#    - DO NOT implement magic methods (__add__, __mul__, etc.)
#    - These are handled by AbstractTensor
#    - Only implement _apply_operator__ and the ``*_`` hooks
#
# 2. DEPENDENCIES:
#    - torch is optional; the backend registers itself only when it imports
#    - Do not add dummy fallbacks for missing dependencies
#
# Remember: Magic methods and operator overloading are EXCLUSIVELY handled by
# AbstractTensor. Backend implementations provide only the raw
# tensor operations.

from typing import Any, List, Optional, Sequence, Tuple

try:
    import torch
    import torch.nn.functional as F
except ModuleNotFoundError:
    torch = None  # type: ignore
    F = None  # type: ignore

from .abstraction import AbstractTensor, register_backend
from .dtypes import DataType


if torch is not None:
    _DTYPE_TO_TORCH = {
        DataType.BOOL: torch.bool,
        DataType.UINT8: torch.uint8,
        DataType.INT32: torch.int32,
        DataType.INT64: torch.int64,
        DataType.FLOAT16: torch.float16,
        DataType.BFLOAT16: torch.bfloat16,
        DataType.FLOAT32: torch.float32,
        DataType.FLOAT64: torch.float64,
    }
    _TORCH_TO_DTYPE = {v: k for k, v in _DTYPE_TO_TORCH.items()}
else:
    _DTYPE_TO_TORCH = {}
    _TORCH_TO_DTYPE = {}


def _as_torch(value: Any, like: "torch.Tensor"):
    if isinstance(value, torch.Tensor):
        return value
    return torch.as_tensor(value, device=like.device)


def _as_index(value: Any, like: "torch.Tensor"):
    return _as_torch(value, like).to(torch.long)


class PyTorchTensorOperations(AbstractTensor):
    # --- construction -------------------------------------------------------
    def from_data_(self, data: Any, dtype: Optional[DataType]):
        if isinstance(data, torch.Tensor):
            out = data.clone()
        else:
            out = torch.as_tensor(data).clone()
        if dtype is not None:
            out = out.to(_DTYPE_TO_TORCH[dtype])
        return out

    def full_(self, shape: Tuple[int, ...], value: Any, dtype: DataType):
        device = self.data.device if isinstance(self.data, torch.Tensor) else None
        return torch.full(shape, value, dtype=_DTYPE_TO_TORCH[dtype], device=device)

    def clone_(self):
        return self.data.clone()

    # --- properties ---------------------------------------------------------
    def get_shape_(self):
        return tuple(self.data.shape)

    def get_dtype_(self) -> DataType:
        try:
            return _TORCH_TO_DTYPE[self.data.dtype]
        except KeyError:
            raise TypeError(f"Unsupported torch dtype {self.data.dtype}") from None

    def to_dtype_(self, dtype: DataType):
        return self.data.to(_DTYPE_TO_TORCH[dtype])

    def tolist_(self):
        return self.data.tolist()

    def item_(self):
        return self.data.item()

    def numpy_(self):
        data = self.data.detach().cpu()
        if data.dtype == torch.bfloat16:
            data = data.to(torch.float32)
        return data.numpy()

    # --- operators ----------------------------------------------------------
    def _apply_operator__(self, op: str, left: Any, right: Any):
        """Apply arithmetic and comparison operators on torch tensors."""
        a, b = left, right
        if op == "neg":
            return -a
        if op in ("add", "radd"):
            return a + b
        if op in ("sub", "rsub"):
            return a - b
        if op in ("mul", "rmul"):
            return a * b
        if op in ("truediv", "rtruediv"):
            return torch.true_divide(a, b) if isinstance(a, torch.Tensor) else a / b
        if op in ("pow", "rpow"):
            return a ** b
        if op == "greater":
            return torch.gt(a, b)
        if op == "greater_equal":
            return torch.ge(a, b)
        if op == "less":
            return torch.lt(a, b)
        if op == "less_equal":
            return torch.le(a, b)
        if op == "equal":
            return torch.eq(a, b)
        raise NotImplementedError(f"Operator {op} not implemented for torch backend.")

    # --- elementwise --------------------------------------------------------
    def sign_(self):
        return torch.sign(self.data)

    def exp_(self):
        return torch.exp(self.data)

    def log_(self):
        return torch.log(self.data)

    def sqrt_(self):
        return torch.sqrt(self.data)

    def sin_(self):
        return torch.sin(self.data)

    def cos_(self):
        return torch.cos(self.data)

    def tanh_(self):
        return torch.tanh(self.data)

    def erf_(self):
        return torch.erf(self.data)

    def sigmoid_(self):
        return torch.sigmoid(self.data)

    def where_(self, x, y):
        x = _as_torch(x, self.data)
        y = _as_torch(y, self.data)
        if x.dim() == 0 and y.dim() > 0:
            x = x.to(y.dtype)
        elif y.dim() == 0 and x.dim() > 0:
            y = y.to(x.dtype)
        return torch.where(self.data, x, y)

    # --- reductions ---------------------------------------------------------
    def sum_(self, dim=None, keepdim=False):
        if dim is None:
            out = self.data.sum()
            return out.reshape([1] * self.data.dim()) if keepdim else out
        return self.data.sum(dim=dim, keepdim=keepdim)

    def cumsum_(self, dim: int):
        return torch.cumsum(self.data, dim=dim, dtype=self.data.dtype if self.data.is_floating_point() else None)

    def flip_(self, dims: Tuple[int, ...]):
        return torch.flip(self.data, dims=list(dims))

    # --- layout -------------------------------------------------------------
    def reshape_(self, shape: Tuple[int, ...]):
        return self.data.reshape(shape)

    def permute_(self, dims: Tuple[int, ...]):
        return self.data.permute(*dims).contiguous()

    def expand_(self, shape: Tuple[int, ...]):
        return self.data.expand(*shape).clone()

    def roll_(self, shifts, dims):
        if dims is None:
            return torch.roll(self.data, shifts)
        return torch.roll(self.data, shifts, dims)

    def pad_(self, pairs: List[Tuple[int, int]], value: float):
        # F.pad wants (last_before, last_after, prev_before, ...)
        flat: List[int] = []
        for before, after in reversed(pairs):
            flat.extend((before, after))
        return F.pad(self.data, flat, mode="constant", value=value)

    def getitem_(self, idx):
        return self.data[idx]

    def cat_(self, datas: Sequence["torch.Tensor"], dim: int):
        return torch.cat(list(datas), dim=dim)

    def split_(self, sizes: List[int], dim: int):
        return [part.clone() for part in torch.split(self.data, sizes, dim=dim)]

    # --- indexing -----------------------------------------------------------
    def gather_(self, index, axis: int):
        return torch.index_select(self.data, axis, _as_index(index, self.data).reshape(-1))

    def scatter_(self, index, updates, overwrite: bool):
        index = _as_index(index, self.data).reshape(-1)
        updates = _as_torch(updates, self.data).to(self.data.dtype)
        out = self.data.clone()
        if overwrite:
            out[index] = updates
        else:
            out.index_fill_(0, index, 0)
            out.index_add_(0, index, updates)
        return out

    def gather_nd_(self, index):
        index = _as_index(index, self.data)
        return self.data[tuple(index.unbind(-1))]

    def scatter_nd_add_(self, index, updates):
        index = _as_index(index, self.data)
        updates = _as_torch(updates, self.data).to(self.data.dtype)
        return self.data.clone().index_put_(tuple(index.unbind(-1)), updates, accumulate=True)

    def put_along_axis_(self, indices, values, axis: int):
        indices = _as_index(indices, self.data)
        values = _as_torch(values, self.data).to(self.data.dtype)
        return self.data.scatter(axis, indices, values)


if torch is not None:
    register_backend("torch", PyTorchTensorOperations)
