from __future__ import annotations

from typing import Optional, Sequence, Union

Dims = Union[int, Sequence[int], None]


def _as_dims(dim: Dims):
    if dim is None or isinstance(dim, int):
        return dim
    return tuple(int(d) for d in dim)


def sum(self, dim: Dims = None, keepdim: bool = False):
    """Sum over ``dim`` (an int, a sequence of ints, or ``None`` for all axes).

    An empty sequence reduces nothing and returns a copy.
    """
    dim = _as_dims(dim)
    if dim == ():
        return self.clone()
    return self._wrap(self.sum_(dim=dim, keepdim=keepdim))


def cumsum(self, dim: int):
    """Inclusive running sum along ``dim``; the dtype is preserved."""
    return self._wrap(self.cumsum_(int(dim)))


def flip(self, dims: Optional[Dims] = None):
    if dims is None:
        dims = tuple(range(self.ndim))
    elif isinstance(dims, int):
        dims = (dims,)
    return self._wrap(self.flip_(tuple(int(d) for d in dims)))
