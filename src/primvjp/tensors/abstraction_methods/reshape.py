from __future__ import annotations

from typing import List, Optional, Sequence, Tuple, Union


def _normalize_shape_args(*shape) -> Tuple[int, ...]:
    if len(shape) == 1 and isinstance(shape[0], (list, tuple)):
        shape = shape[0]
    return tuple(int(s) for s in shape)


def reshape(self, *shape):
    """Return a reshaped tensor; accepts ``reshape(2, 3)`` or ``reshape((2, 3))``."""
    return self._wrap(self.reshape_(_normalize_shape_args(*shape)))


def permute(self, *dims):
    dims = _normalize_shape_args(*dims)
    ndim = self.ndim
    if len(dims) != ndim or sorted(d % ndim for d in dims) != list(range(ndim)):
        raise ValueError(f"permute: {dims} is not a permutation of {self.ndim} axes")
    return self._wrap(self.permute_(dims))


def transpose(self, dim0: int = 0, dim1: int = 1):
    """Swap two axes."""
    ndim = self.ndim
    if not (-ndim <= dim0 < ndim) or not (-ndim <= dim1 < ndim):
        raise ValueError("dim0 or dim1 out of range")
    perm = list(range(ndim))
    perm[dim0 % ndim], perm[dim1 % ndim] = perm[dim1 % ndim], perm[dim0 % ndim]
    return self.permute(perm)


def expand(self, *shape):
    """Broadcast to ``shape`` and materialise the result."""
    return self._wrap(self.expand_(_normalize_shape_args(*shape)))


def roll(self, shifts: Union[int, Sequence[int]], dims: Union[int, Sequence[int], None] = None):
    if not isinstance(shifts, int):
        shifts = tuple(int(s) for s in shifts)
    if dims is not None and not isinstance(dims, int):
        dims = tuple(int(d) for d in dims)
    return self._wrap(self.roll_(shifts, dims))


def pad(self, paddings: Sequence[Tuple[int, int]], value: float = 0.0):
    """Constant-pad with one ``(before, after)`` pair per axis, in axis order."""
    pairs = [(int(b), int(a)) for b, a in paddings]
    if len(pairs) != self.ndim:
        raise ValueError(f"pad: expected {self.ndim} (before, after) pairs, got {len(pairs)}")
    return self._wrap(self.pad_(pairs, value))


def slice(self, axes: Sequence[int], starts: Sequence[int], ends: Sequence[int]):
    """Python-slice semantics per listed axis; other axes are kept whole."""
    import builtins

    index: List[builtins.slice] = [builtins.slice(None)] * self.ndim
    for axis, start, end in zip(axes, starts, ends):
        index[axis] = builtins.slice(int(start), int(end))
    return self[tuple(index)]


def split(self, sections: Union[int, Sequence[int]], dim: int = 0):
    """Split along ``dim`` into ``sections`` equal parts or parts of the given sizes."""
    extent = self.shape[dim]
    if isinstance(sections, int):
        if extent % sections:
            raise ValueError(f"split: axis of size {extent} is not divisible by {sections}")
        sizes = [extent // sections] * sections
    else:
        sizes = [int(s) for s in sections]
        if sum(sizes) != extent:
            raise ValueError(f"split: sizes {sizes} do not add up to {extent}")
    return [self._wrap(part) for part in self.split_(sizes, dim)]
