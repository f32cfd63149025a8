"""Gradient rules for reductions and scans.

``axis`` may be an int or a sequence; an empty sequence (the default) or one
naming every axis reduces the whole tensor.  Rank 0 and rank 1 inputs need no
reinsertion of reduced axes before broadcasting back.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

from ..tensors import AbstractTensor
from .utils import expand_reduced, normalize_axis, reduction_axes

Axis = Union[int, Sequence[int]]


def sum_grad(x: AbstractTensor, out_grad: AbstractTensor, axis: Axis = (),
             keepdim: bool = False, *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    axes = reduction_axes(axis, x.ndim)
    return expand_reduced(out_grad, x.shape, axes, keepdim)


def max_grad(x: AbstractTensor, out: AbstractTensor, out_grad: AbstractTensor,
             axis: Axis = (), keepdim: bool = False,
             *, need_x: bool = True) -> Optional[AbstractTensor]:
    """Every element equal to the maximum receives the full gradient."""
    if not need_x:
        return None
    axes = reduction_axes(axis, x.ndim)
    out_grad_tmp = expand_reduced(out_grad, x.shape, axes, keepdim)
    out_tmp = expand_reduced(out, x.shape, axes, keepdim)
    mask = x.equal(out_tmp)
    return mask.where(out_grad_tmp, out_grad_tmp.zeros_like())


def prod_grad(x: AbstractTensor, out: AbstractTensor, out_grad: AbstractTensor,
              axis: Axis = (), keepdim: bool = False,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    """d prod / dx_i = prod / x_i; undefined where ``x`` has zeros."""
    if not need_x:
        return None
    axes = reduction_axes(axis, x.ndim)
    out_grad_tmp = expand_reduced(out_grad, x.shape, axes, keepdim)
    out_tmp = expand_reduced(out, x.shape, axes, keepdim)
    return out_grad_tmp * out_tmp * (1.0 / x)


def cumsum(x: AbstractTensor, axis: int = -1, flatten: bool = False,
           exclusive: bool = False, reverse: bool = False) -> AbstractTensor:
    """Running sum with the ``flatten``, ``exclusive`` and ``reverse`` variants."""
    t = x
    if flatten or t.ndim == 0:
        t = t.reshape(-1)
        axis = 0
    else:
        axis = normalize_axis(axis, t.ndim)
    if reverse:
        t = t.flip(axis)
    out = t.cumsum(axis)
    if exclusive:
        out = out - t
    if reverse:
        out = out.flip(axis)
    return out


def cumsum_grad(x: AbstractTensor, out_grad: AbstractTensor, axis: int = -1,
                flatten: bool = False, exclusive: bool = False, reverse: bool = False,
                *, need_x: bool = True) -> Optional[AbstractTensor]:
    """The transpose of a running sum is the running sum in the other direction."""
    if not need_x:
        return None
    x_grad = cumsum(out_grad, axis, flatten, exclusive, not reverse)
    return x_grad.reshape(x.shape)
