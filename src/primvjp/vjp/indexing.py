"""Gradient rules for gather, scatter and top-k selection."""

from __future__ import annotations

from typing import Optional

from ..tensors import AbstractTensor
from .results import ScatterGrad
from .utils import by_pass, inverse_permutation, normalize_axis


def gather_grad(x: AbstractTensor, index: AbstractTensor, out_grad: AbstractTensor,
                axis: int = 0, *, need_x: bool = True) -> Optional[AbstractTensor]:
    """Scatter-add ``out_grad`` into zeros at the gathered positions.

    The gathered axis is moved to the front so the axis-0 scatter can be
    used, then moved back.  Repeated indices accumulate.
    """
    if not need_x:
        return None
    zeros = x.zeros_like(dtype=out_grad.dtype)
    if x.ndim == 0:
        return zeros.scatter(index, out_grad, overwrite=False)
    axis = normalize_axis(axis, x.ndim)
    perm = [axis] + [i for i in range(x.ndim) if i != axis]
    tmp = zeros.permute(perm).scatter(index, out_grad.permute(perm), overwrite=False)
    return tmp.permute(inverse_permutation(perm))


def gather_nd_grad(x: AbstractTensor, index: AbstractTensor, out_grad: AbstractTensor,
                   *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return x.zeros_like(dtype=out_grad.dtype).scatter_nd_add(index, out_grad)


def scatter_grad(index: AbstractTensor, updates: AbstractTensor, out_grad: AbstractTensor,
                 overwrite: bool = True, *, need_x: bool = True,
                 need_updates: bool = True) -> ScatterGrad:
    """Rows written by the forward scatter get no gradient on the ``x`` side.

    The ``updates`` side reads the gradient back from those rows.
    """
    x_grad = updates_grad = None
    if need_x:
        x_grad = out_grad.scatter(index, updates.zeros_like(dtype=out_grad.dtype), overwrite=False)
    if need_updates:
        updates_grad = out_grad.gather(index, 0)
    return ScatterGrad(x_grad, updates_grad)


def scatter_nd_add_grad(index: AbstractTensor, updates: AbstractTensor, out_grad: AbstractTensor,
                        *, need_x: bool = True, need_updates: bool = True) -> ScatterGrad:
    x_grad = updates_grad = None
    if need_x:
        x_grad = by_pass(out_grad)
    if need_updates:
        updates_grad = out_grad.gather_nd(index)
    return ScatterGrad(x_grad, updates_grad)


def topk_grad(x: AbstractTensor, indices: AbstractTensor, out_grad: AbstractTensor,
              k: int, axis: int = -1, largest: bool = True, sorted: bool = True,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    """Place each selected gradient back at the position the forward picked."""
    if not need_x:
        return None
    if x.ndim == 0:
        return by_pass(out_grad)
    axis = normalize_axis(axis, x.ndim)
    return x.zeros_like(dtype=out_grad.dtype).put_along_axis(indices, out_grad, axis)
