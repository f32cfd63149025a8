"""Gradient rules for shape and layout operators.

These rules only move or sum values, so none of them promote precision.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from ..tensors import AbstractTensor
from .utils import (
    as_shape,
    by_pass,
    get_reduce_dims,
    inverse_permutation,
    normalize_axis,
    sum_to_shape,
)


def reshape_grad(xshape: Union[AbstractTensor, Sequence[int]], out_grad: AbstractTensor,
                 *, need_x: bool = True) -> Optional[AbstractTensor]:
    """``xshape`` is ``[placeholder, *x.shape]``: a tensor with that shape or the ints themselves."""
    if not need_x:
        return None
    x_dims = as_shape(xshape)[1:]
    return out_grad.reshape(x_dims)


def transpose_grad(out_grad: AbstractTensor, perm: Sequence[int],
                   *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return out_grad.permute(inverse_permutation(perm))


def roll_grad(x: AbstractTensor, out_grad: AbstractTensor, shifts: Union[int, Sequence[int]],
              axis: Union[int, Sequence[int], None] = None,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    if isinstance(shifts, int):
        back = -shifts
    else:
        back = [-s for s in shifts]
    return out_grad.roll(back, axis)


def tile_grad(x: AbstractTensor, out_grad: AbstractTensor, repeat_times: Sequence[int],
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    """Tiling copies whole blocks, so each axis is split into equal sections that are summed."""
    if not need_x:
        return None
    repeats = [int(r) for r in repeat_times]
    repeats = [1] * (out_grad.ndim - len(repeats)) + repeats
    grad = out_grad
    for axis, times in enumerate(repeats):
        if times == 1:
            continue
        sections = grad.split(times, axis)
        acc = sections[0]
        for section in sections[1:]:
            acc = acc + section
        grad = acc
    return grad.reshape(x.shape)


def expand_grad(x: AbstractTensor, out_grad: AbstractTensor, shape: Sequence[int],
                *, need_x: bool = True) -> Optional[AbstractTensor]:
    """``-1`` entries of ``shape`` keep the input extent at that (right-aligned) position."""
    if not need_x:
        return None
    target = list(as_shape(shape))
    bat = len(target) - x.ndim
    for i, extent in enumerate(target):
        if extent == -1:
            target[i] = x.shape[i - bat]
    target = tuple(target)
    if target == x.shape:
        return by_pass(out_grad)
    axes = get_reduce_dims(x.shape, target)
    x_grad = sum_to_shape(out_grad, axes, x.shape)
    return by_pass(x_grad) if x_grad is out_grad else x_grad


def _concat_axis(axis: int, rank: int) -> int:
    axis = axis + rank if axis < 0 else axis
    return axis if axis >= 0 else 0


def concat_grad(x: Sequence[AbstractTensor], out_grad: AbstractTensor, axis: int,
                *, need_x: Optional[Sequence[bool]] = None) -> List[Optional[AbstractTensor]]:
    """Split ``out_grad`` back into one piece per input; ``need_x`` masks individual inputs."""
    axis = _concat_axis(int(axis), out_grad.ndim)
    sections = [t.shape[axis] for t in x]
    pieces = out_grad.split(sections, axis)
    if need_x is None:
        return list(pieces)
    if len(need_x) != len(pieces):
        raise ValueError(f"concat_grad: need_x has {len(need_x)} flags for {len(pieces)} inputs")
    return [piece if need else None for piece, need in zip(pieces, need_x)]


def split_grad(out_grads: Sequence[AbstractTensor], axis: int,
               *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    axis = _concat_axis(int(axis), out_grads[0].ndim)
    return AbstractTensor.cat(list(out_grads), axis)


def cast_grad(x: AbstractTensor, out_grad: AbstractTensor,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return out_grad.to_dtype(x.dtype).clone()


def pad_grad(input: AbstractTensor, out_grad: AbstractTensor, paddings: Sequence[int],
             pad_value: float = 0.0, *, need_x: bool = True) -> Optional[AbstractTensor]:
    """``paddings`` is flat: ``[before_0, after_0, before_1, after_1, ...]``."""
    if not need_x:
        return None
    out_dims = out_grad.shape
    rank = len(out_dims)
    axes = list(range(rank))
    starts = [int(paddings[2 * i]) for i in range(rank)]
    ends = [out_dims[i] - int(paddings[2 * i + 1]) for i in range(rank)]
    return out_grad.slice(axes, starts, ends)


def slice_grad(input: AbstractTensor, out_grad: AbstractTensor, axes: Sequence[int],
               starts: Sequence[int], ends: Sequence[int],
               infer_flags: Optional[Sequence[int]] = None,
               decrease_axis: Sequence[int] = (),
               *, need_x: bool = True) -> Optional[AbstractTensor]:
    """Zero-pad ``out_grad`` back to the input shape.

    Axes listed in ``decrease_axis`` were squeezed away by the forward slice
    and are reinserted as size 1 first.
    """
    if not need_x:
        return None
    in_dims = input.shape
    rank = len(in_dims)
    out_dims = out_grad.shape

    decrease = [normalize_axis(a, rank) for a in decrease_axis]
    if decrease:
        if len(decrease) == rank:
            out_dims = (1,) * rank
        else:
            origin: List[int] = [-1] * (len(out_dims) + len(decrease))
            for a in decrease:
                origin[a] = 1
            remaining = iter(out_dims)
            origin = [next(remaining) if extent == -1 else extent for extent in origin]
            out_dims = tuple(origin)
        out_grad = out_grad.reshape(out_dims)

    offsets = [0] * rank
    for axis, start in zip(axes, starts):
        axis = normalize_axis(axis, rank)
        start = int(start)
        if start < 0:
            start += in_dims[axis]
        offsets[axis] = min(max(start, 0), in_dims[axis])

    pairs = [(offsets[i], in_dims[i] - out_dims[i] - offsets[i]) for i in range(rank)]
    return out_grad.pad(pairs, 0.0)
