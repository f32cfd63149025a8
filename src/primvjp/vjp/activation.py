"""Gradient rules for unary elementwise operators and activations.

Rules that only need the forward output (``tanh``, ``exp``, ``sqrt``,
``sigmoid``, ``relu``, ``leaky_relu``) take ``out`` instead of ``x``.
``exp``, ``gelu`` and ``silu`` promote reduced-precision inputs.
"""

from __future__ import annotations

import math
from typing import Optional

from ..tensors import AbstractTensor
from . import promotion
from .utils import by_pass, scale


def abs_grad(x: AbstractTensor, out_grad: AbstractTensor,
             *, need_x: bool = True) -> Optional[AbstractTensor]:
    # sign(0) == 0, so the subgradient at 0 is 0
    if not need_x:
        return None
    return out_grad * x.sign()


def assign_grad(out_grad: AbstractTensor, *, need_x: bool = True) -> Optional[AbstractTensor]:
    return by_pass(out_grad) if need_x else None


def floor_grad(out_grad: AbstractTensor, *, need_x: bool = True) -> Optional[AbstractTensor]:
    return out_grad.zeros_like() if need_x else None


def sin_grad(x: AbstractTensor, out_grad: AbstractTensor,
             *, need_x: bool = True) -> Optional[AbstractTensor]:
    return x.cos() * out_grad if need_x else None


def cos_grad(x: AbstractTensor, out_grad: AbstractTensor,
             *, need_x: bool = True) -> Optional[AbstractTensor]:
    return scale(x.sin(), -1.0) * out_grad if need_x else None


def tanh_grad(out: AbstractTensor, out_grad: AbstractTensor,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return out_grad * scale(out * out, -1.0, 1.0)


def log_grad(x: AbstractTensor, out_grad: AbstractTensor,
             *, need_x: bool = True) -> Optional[AbstractTensor]:
    return out_grad / x if need_x else None


def exp_grad(out: AbstractTensor, out_grad: AbstractTensor,
             *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    dtype = out.dtype
    if promotion.needs_promotion("exp", dtype):
        out, out_grad = promotion.promote(out, out_grad)
        return promotion.restore(out_grad * out, dtype)
    return out_grad * out


def sqrt_grad(out: AbstractTensor, out_grad: AbstractTensor,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return (0.5 / out) * out_grad


def sigmoid_grad(out: AbstractTensor, out_grad: AbstractTensor,
                 *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return out_grad * out * (1.0 - out)


def erf_grad(x: AbstractTensor, out_grad: AbstractTensor,
             *, need_x: bool = True) -> Optional[AbstractTensor]:
    """d erf(x)/dx = 2/sqrt(pi) * exp(-x^2)."""
    if not need_x:
        return None
    m_2_sqrtpi = 2.0 / math.sqrt(math.pi)
    return out_grad * (m_2_sqrtpi * scale(x * x, -1.0).exp())


def relu_grad(out: AbstractTensor, out_grad: AbstractTensor,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return out.greater(0.0).where(out_grad, out_grad.zeros_like())


def leaky_relu_grad(out: AbstractTensor, out_grad: AbstractTensor, negative_slope: float,
                    *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    return out.greater(0.0).where(out_grad, out_grad * negative_slope)


def hardswish_grad(x: AbstractTensor, out_grad: AbstractTensor,
                   *, need_x: bool = True) -> Optional[AbstractTensor]:
    """hardswish(x) = x * relu6(x + 3) / 6.

    The ``x <= 3`` branch is picked first and the ``x < -3`` zeroing is
    applied on top of it.
    """
    if not need_x:
        return None
    offset, threshold = 3.0, 6.0
    inner = x.less_equal(threshold - offset).where(out_grad * (x / 3.0 + 0.5), out_grad)
    return x.less(-offset).where(out_grad.zeros_like(), inner)


def silu_grad(x: AbstractTensor, out: AbstractTensor, out_grad: AbstractTensor,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    """silu(x) = x * sigmoid(x); the derivative is sigmoid(x) * (1 + x - out)."""
    if not need_x:
        return None
    dtype = x.dtype
    promoted = promotion.needs_promotion("silu", dtype)
    if promoted:
        x, out, out_grad = promotion.promote(x, out, out_grad)
    x_grad = out_grad * x.sigmoid() * (1.0 + x - out)
    return promotion.restore(x_grad, dtype) if promoted else x_grad


def gelu_grad(x: AbstractTensor, out_grad: AbstractTensor, approximate: bool = False,
              *, need_x: bool = True) -> Optional[AbstractTensor]:
    """Gradient of GELU in its exact (erf) or tanh-approximated form.

    Exact: gelu(x) = x * cdf(x), so the derivative is cdf(x) + x * pdf(x).

    Tanh: gelu(x) = 0.5x * (1 + tanh(k_beta * (x + k_kappa * x^3))), and the
    derivative is built from the same left/right factors via the product rule.
    """
    if not need_x:
        return None
    dtype = x.dtype
    promoted = promotion.needs_promotion("gelu", dtype)
    if promoted:
        x, out_grad = promotion.promote(x, out_grad)

    if approximate:
        kbeta = math.sqrt(2.0) * (2.0 / math.sqrt(math.pi)) * 0.5
        kkappa = 0.044715
        x_sq = x * x
        x_cube = x_sq * x
        inner = kbeta * (x + kkappa * x_cube)
        tanh_inner = inner.tanh()

        left = x * 0.5
        right = tanh_inner + 1.0

        left_derivative = right * 0.5

        tanh_derivative = scale(tanh_inner * tanh_inner, -1.0, 1.0)
        inner_derivative = kbeta * (3.0 * kkappa * x_sq + 1.0)
        right_derivative = left * tanh_derivative * inner_derivative

        x_grad = out_grad * (left_derivative + right_derivative)
    else:
        kalpha = 1.0 / math.sqrt(2.0)
        kbeta = (2.0 / math.sqrt(math.pi)) * kalpha * 0.5
        cdf = ((x * kalpha).erf() + 1.0) * 0.5
        pdf = kbeta * scale(x * x, -0.5).exp()
        x_grad = out_grad * (cdf + x * pdf)

    return promotion.restore(x_grad, dtype) if promoted else x_grad
