from __future__ import annotations

from typing import Any


def clone(self):
    """Return a fresh copy of this tensor."""
    return self._wrap(self.clone_())


def full_like(self, value: float, dtype: Any = None):
    """Return a tensor shaped like ``self`` filled with ``value``."""
    from ..dtypes import DataType

    dtype = self.dtype if dtype is None else DataType.parse(dtype)
    return self._wrap(self.full_(self.shape, value, dtype))


def zeros_like(self, dtype: Any = None):
    return full_like(self, 0, dtype=dtype)
