from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .dtypes import DataType
from .abstraction_methods import creation as _creation
from .abstraction_methods import elementwise as _elementwise
from .abstraction_methods import indexing as _indexing
from .abstraction_methods import properties as _properties
from .abstraction_methods import reduction as _reduction
from .abstraction_methods import reshape as _reshape_methods
from .abstraction_methods import trigonometry as _trigonometry
from .abstraction_methods import type_ops as _type_ops

from ..faculty import Faculty, DEFAULT_FACULTY
from ..logger import get_primvjp_logger

logger = get_primvjp_logger("primvjp.tensors")


# --- Diagnostics -------------------------------------------------------------
# PRIMVJP_DIAG: "concise" (no hints), "auto" (hint when one is given),
# "verbose" (always print the hint line).
DIAG_LEVEL = os.getenv("PRIMVJP_DIAG", "auto").lower()


@dataclass
class _Diag:
    op: str | None = None
    tensor: str | None = None
    expected: str | None = None
    actual: str | None = None
    hint: str | None = None


class TensorShapeError(ValueError):
    def __init__(self, message: str, diag: _Diag | None = None):
        self._message = message
        self._diag = diag
        super().__init__(str(self))

    def __str__(self) -> str:
        d = self._diag
        if d is None:
            return self._message
        head = self._message
        parts = []
        if d.op:     parts.append(d.op)
        if d.tensor: parts.append(d.tensor)
        prefix = f"{' in '.join(parts)}: " if parts else ""
        line1 = f"{prefix}expected {d.expected}, got {d.actual}."
        want_hint = (DIAG_LEVEL == "verbose") or (DIAG_LEVEL == "auto" and d.hint)
        if want_hint and d.hint:
            return head + "\n" + line1 + f"\nHint: {d.hint}"
        return head + "\n" + line1


# --- Backend Registry Pattern ---
# Each backend module registers itself here at import time, avoiding circular imports.
BACKEND_REGISTRY: dict[str, type] = {}


def register_backend(name: str, backend_cls: type) -> None:
    """
    Register a tensor backend class under a given name.
    Backends should call this after their class definition.
    """
    BACKEND_REGISTRY[name] = backend_cls


_FACULTY_BACKENDS = {Faculty.NUMPY: "numpy", Faculty.TORCH: "torch"}


def check_or_build_registry() -> None:
    """Import the bundled backends so they can register themselves."""
    from . import numpy_backend  # noqa: F401
    from . import torch_backend  # noqa: F401


def default_backend() -> type:
    check_or_build_registry()
    name = _FACULTY_BACKENDS.get(DEFAULT_FACULTY, "numpy")
    if name in BACKEND_REGISTRY:
        return BACKEND_REGISTRY[name]
    for fallback in ("numpy", "torch"):
        if fallback in BACKEND_REGISTRY:
            logger.debug("Backend %s unavailable, falling back to %s", name, fallback)
            return BACKEND_REGISTRY[fallback]
    raise RuntimeError("No tensor backend is registered")


def _concrete(cls: type) -> type:
    return default_backend() if cls is AbstractTensor else cls


ARITHMETIC_OPS = {
    "add", "sub", "mul", "truediv", "pow",
    "radd", "rsub", "rmul", "rtruediv", "rpow",
    "neg",
}


class AbstractTensor:
    """Backend-neutral tensor facade.

    Public methods build a new tensor of the same backend class and fill its
    ``data`` from the matching ``*_`` hook.  Backends subclass this and
    implement the hooks only; operator overloading lives here.
    """

    def __init__(self):
        self.data = None

    # --- construction -------------------------------------------------------
    @classmethod
    def tensor(cls, data: Any, dtype: Any = None) -> "AbstractTensor":
        """Build a tensor from nested Python data or a backend array.

        Called on :class:`AbstractTensor` itself this picks the default backend.
        """
        cls = _concrete(cls)
        if isinstance(data, AbstractTensor):
            data = data.numpy()
        result = cls()
        result.data = result.from_data_(data, None if dtype is None else DataType.parse(dtype))
        return result

    @classmethod
    def full(cls, shape: Sequence[int], value: float, dtype: Any = DataType.FLOAT32) -> "AbstractTensor":
        cls = _concrete(cls)
        result = cls()
        result.data = result.full_(tuple(int(s) for s in shape), value, DataType.parse(dtype))
        return result

    @classmethod
    def zeros(cls, shape: Sequence[int], dtype: Any = DataType.FLOAT32) -> "AbstractTensor":
        return cls.full(shape, 0, dtype=dtype)

    @staticmethod
    def cat(tensors: Sequence["AbstractTensor"], dim: int = 0) -> "AbstractTensor":
        """Concatenate ``tensors`` along ``dim`` using the first tensor's backend."""
        if not tensors:
            raise ValueError("cat() needs at least one tensor")
        first = tensors[0]
        datas = [first.ensure_tensor(t).data for t in tensors]
        return first._wrap(first.cat_(datas, dim))

    concat = cat

    def ensure_tensor(self, value: Any) -> "AbstractTensor":
        """Return ``value`` as a tensor of this tensor's backend."""
        if isinstance(value, type(self)):
            return value
        if isinstance(value, AbstractTensor):
            value = value.numpy()
        result = type(self)()
        result.data = result.from_data_(value, None)
        return result

    def _wrap(self, data: Any) -> "AbstractTensor":
        result = type(self)()
        result.data = data
        return result

    def __unwrap(self):
        return self.data

    # --- operator routing ---------------------------------------------------
    def _apply_operator(self, op: str, left: Any, right: Any):
        """
        Arithmetic with bool tensors:
        - bool operands are cast to the dtype of the other tensor operand
        - with a Python scalar or another bool tensor they become float32
        Promotion happens BEFORE unwrap; backends never see bool arithmetic.
        """
        if isinstance(left, AbstractTensor) and isinstance(right, (list, tuple)):
            right = left.ensure_tensor(right)
        elif isinstance(right, AbstractTensor) and isinstance(left, (list, tuple)):
            left = right.ensure_tensor(left)

        if op in ARITHMETIC_OPS:
            left, right = _promote_bool_operands(left, right)

        l = left._AbstractTensor__unwrap() if isinstance(left, AbstractTensor) else left
        r = right._AbstractTensor__unwrap() if isinstance(right, AbstractTensor) else right

        return self._wrap(self._apply_operator__(op, l, r))

    def __add__(self, other):
        return self._apply_operator("add", self, other)

    def __sub__(self, other):
        return self._apply_operator("sub", self, other)

    def __mul__(self, other):
        return self._apply_operator("mul", self, other)

    def __truediv__(self, other):
        return self._apply_operator("truediv", self, other)

    def __pow__(self, other):
        return self._apply_operator("pow", self, other)

    def __radd__(self, other):
        return self._apply_operator("radd", other, self)

    def __rsub__(self, other):
        return self._apply_operator("rsub", other, self)

    def __rmul__(self, other):
        return self._apply_operator("rmul", other, self)

    def __rtruediv__(self, other):
        return self._apply_operator("rtruediv", other, self)

    def __rpow__(self, other):
        return self._apply_operator("rpow", other, self)

    def __neg__(self):
        return self._apply_operator("neg", self, None)

    def __gt__(self, other):
        return self.greater(other)

    def __ge__(self, other):
        return self.greater_equal(other)

    def __lt__(self, other):
        return self.less(other)

    def __le__(self, other):
        return self.less_equal(other)

    # == and != stay identity based so tensors remain hashable; use equal().
    __hash__ = object.__hash__

    def __getitem__(self, idx):
        if isinstance(idx, AbstractTensor):
            idx = idx.data
        elif isinstance(idx, tuple):
            idx = tuple(i.data if isinstance(i, AbstractTensor) else i for i in idx)
        return self._wrap(self.getitem_(idx))

    def __len__(self):
        shape = self.shape
        if not shape:
            raise TypeError("len() of a 0-d tensor")
        return shape[0]

    def __repr__(self):
        return f"{type(self).__name__}(shape={self.shape}, dtype={self.dtype.value})"


def _promote_bool_operands(left: Any, right: Any) -> Tuple[Any, Any]:
    def is_bool(x):
        return isinstance(x, AbstractTensor) and x.dtype == DataType.BOOL

    def target_for(other):
        if isinstance(other, AbstractTensor) and other.dtype != DataType.BOOL:
            return other.dtype
        return DataType.FLOAT32

    if is_bool(left):
        left = left.to_dtype(target_for(right))
    if is_bool(right):
        right = right.to_dtype(target_for(left))
    if isinstance(left, bool):
        left = float(left)
    if isinstance(right, bool):
        right = float(right)
    return left, right


def _bind(mapping: Dict[str, Callable]) -> None:
    for _name, _func in mapping.items():
        setattr(AbstractTensor, _name, _func)


_bind({
    # creation
    "clone": _creation.clone,
    "full_like": _creation.full_like,
    "zeros_like": _creation.zeros_like,
    # elementwise
    "sign": _elementwise.sign,
    "exp": _elementwise.exp,
    "log": _elementwise.log,
    "sqrt": _elementwise.sqrt,
    "erf": _elementwise.erf,
    "sigmoid": _elementwise.sigmoid,
    "where": _elementwise.where,
    "greater": _elementwise.greater,
    "greater_equal": _elementwise.greater_equal,
    "less": _elementwise.less,
    "less_equal": _elementwise.less_equal,
    "equal": _elementwise.equal,
    # trigonometry
    "sin": _trigonometry.sin,
    "cos": _trigonometry.cos,
    "tanh": _trigonometry.tanh,
    # reduction
    "sum": _reduction.sum,
    "cumsum": _reduction.cumsum,
    "flip": _reduction.flip,
    # layout
    "reshape": _reshape_methods.reshape,
    "permute": _reshape_methods.permute,
    "transpose": _reshape_methods.transpose,
    "expand": _reshape_methods.expand,
    "roll": _reshape_methods.roll,
    "pad": _reshape_methods.pad,
    "slice": _reshape_methods.slice,
    "split": _reshape_methods.split,
    # indexing
    "gather": _indexing.gather,
    "scatter": _indexing.scatter,
    "gather_nd": _indexing.gather_nd,
    "scatter_nd_add": _indexing.scatter_nd_add,
    "put_along_axis": _indexing.put_along_axis,
    # types
    "to_dtype": _type_ops.to_dtype,
    # properties
    "tolist": _properties.tolist,
    "item": _properties.item,
    "numpy": _properties.numpy,
})

AbstractTensor.shape = property(_properties.get_shape)
AbstractTensor.ndim = property(_properties.get_ndim)
AbstractTensor.dtype = property(_properties.get_dtype)
