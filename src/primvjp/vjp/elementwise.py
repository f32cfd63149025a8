"""Gradient rules for broadcasting binary operators.

Each rule returns a :class:`BinaryGrad`.  When the forward inputs had
different shapes the gradient of each input is summed over the axes it was
broadcast along (see :mod:`primvjp.vjp.utils`).  ``multiply_grad`` works out
those axes from the product it actually formed; the other rules work them
out from the two input shapes.

Subgradients at ties: ``maximum`` sends the gradient to ``x`` when ``x > y``
and to ``y`` otherwise; ``minimum`` sends it to ``x`` when ``x < y``.
"""

from __future__ import annotations

from ..tensors import AbstractTensor
from .results import BinaryGrad
from .utils import by_pass, reduce_as, scale, unbroadcast


def add_grad(x: AbstractTensor, y: AbstractTensor, out_grad: AbstractTensor,
             *, need_x: bool = True, need_y: bool = True) -> BinaryGrad:
    x_grad = y_grad = None
    if need_x:
        x_grad = by_pass(reduce_as(out_grad, x.shape, y.shape))
    if need_y:
        y_grad = by_pass(reduce_as(out_grad, y.shape, x.shape))
    return BinaryGrad(x_grad, y_grad)


def subtract_grad(x: AbstractTensor, y: AbstractTensor, out_grad: AbstractTensor,
                  *, need_x: bool = True, need_y: bool = True) -> BinaryGrad:
    x_grad = y_grad = None
    if need_x:
        x_grad = by_pass(reduce_as(out_grad, x.shape, y.shape))
    if need_y:
        y_grad = reduce_as(scale(out_grad, -1.0), y.shape, x.shape)
    return BinaryGrad(x_grad, y_grad)


def multiply_grad(x: AbstractTensor, y: AbstractTensor, out_grad: AbstractTensor,
                  *, need_x: bool = True, need_y: bool = True) -> BinaryGrad:
    x_grad = y_grad = None
    if need_x:
        x_grad = unbroadcast(out_grad * y, x.shape)
    if need_y:
        y_grad = unbroadcast(out_grad * x, y.shape)
    return BinaryGrad(x_grad, y_grad)


def divide_grad(x: AbstractTensor, y: AbstractTensor, out_grad: AbstractTensor,
                *, need_x: bool = True, need_y: bool = True) -> BinaryGrad:
    x_grad = y_grad = None
    if need_y:
        # dy = -(x / y^2) * out_grad
        dy = scale(x / (y * y), -1.0) * out_grad
        y_grad = reduce_as(dy, y.shape, x.shape)
    if need_x:
        dx = (1.0 / y) * out_grad
        x_grad = reduce_as(dx, x.shape, y.shape)
    return BinaryGrad(x_grad, y_grad)


def elementwise_pow_grad(x: AbstractTensor, y: AbstractTensor, out_grad: AbstractTensor,
                         *, need_x: bool = True, need_y: bool = True) -> BinaryGrad:
    """d(x^y)/dx = y * x^(y-1), d(x^y)/dy = ln(x) * x^y.  ``dy`` needs ``x > 0``."""
    x_grad = y_grad = None
    if need_y:
        dy = x.log() * (x ** y) * out_grad
        y_grad = reduce_as(dy, y.shape, x.shape)
    if need_x:
        dx = y * (x ** (y - 1.0)) * out_grad
        x_grad = reduce_as(dx, x.shape, y.shape)
    return BinaryGrad(x_grad, y_grad)


def maximum_grad(x: AbstractTensor, y: AbstractTensor, out_grad: AbstractTensor,
                 *, need_x: bool = True, need_y: bool = True) -> BinaryGrad:
    x_grad = y_grad = None
    if need_x:
        mask = x.greater(y).to_dtype(out_grad.dtype)
        x_grad = reduce_as(out_grad * mask, x.shape, y.shape)
    if need_y:
        mask = x.less_equal(y).to_dtype(out_grad.dtype)
        y_grad = reduce_as(out_grad * mask, y.shape, x.shape)
    return BinaryGrad(x_grad, y_grad)


def minimum_grad(x: AbstractTensor, y: AbstractTensor, out_grad: AbstractTensor,
                 *, need_x: bool = True, need_y: bool = True) -> BinaryGrad:
    x_grad = y_grad = None
    if need_x:
        mask = x.less(y).to_dtype(out_grad.dtype)
        x_grad = reduce_as(out_grad * mask, x.shape, y.shape)
    if need_y:
        mask = x.greater_equal(y).to_dtype(out_grad.dtype)
        y_grad = reduce_as(out_grad * mask, y.shape, x.shape)
    return BinaryGrad(x_grad, y_grad)
