from __future__ import annotations

from typing import Any


def _unwrap(value: Any) -> Any:
    from ..abstraction import AbstractTensor
    return value.data if isinstance(value, AbstractTensor) else value


def gather(self, index: Any, axis: int = 0):
    """Select the slices listed in the 1-D ``index`` along ``axis``."""
    return self._wrap(self.gather_(_unwrap(index), int(axis)))


def scatter(self, index: Any, updates: Any, overwrite: bool = True):
    """Write ``updates`` into the rows named by ``index`` along axis 0.

    With ``overwrite=False`` the addressed rows are first zeroed and then
    every update is accumulated, so repeated indices add up.
    """
    return self._wrap(self.scatter_(_unwrap(index), _unwrap(updates), bool(overwrite)))


def gather_nd(self, index: Any):
    """The last axis of ``index`` holds coordinates into the leading axes of ``self``."""
    return self._wrap(self.gather_nd_(_unwrap(index)))


def scatter_nd_add(self, index: Any, updates: Any):
    return self._wrap(self.scatter_nd_add_(_unwrap(index), _unwrap(updates)))


def put_along_axis(self, indices: Any, values: Any, axis: int):
    return self._wrap(self.put_along_axis_(_unwrap(indices), _unwrap(values), int(axis)))
