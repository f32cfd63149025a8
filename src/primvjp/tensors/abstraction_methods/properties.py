from __future__ import annotations

from typing import Any, Tuple


def get_shape(self) -> Tuple[int, ...]:
    """Return the shape as a tuple of Python ints."""
    return tuple(int(s) for s in self.get_shape_())


def get_ndim(self) -> int:
    return len(get_shape(self))


def get_dtype(self):
    return self.get_dtype_()


def tolist(self) -> Any:
    return self.tolist_()


def item(self) -> Any:
    return self.item_()


def numpy(self):
    """Return the data as a ``numpy.ndarray``."""
    return self.numpy_()
