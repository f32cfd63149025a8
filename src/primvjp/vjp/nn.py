"""Gradient rules for dropout, softmax and the normalization layers.

layer_norm and instance_norm promote float16/bfloat16 inputs to float32 and
cast each gradient back to the dtype of the tensor it belongs to.  Their
gradients share the normalized input ``x_hat``; it is computed once whatever
subset of gradients is requested.
"""

from __future__ import annotations

from typing import Optional

from ..logger import get_primvjp_logger
from ..tensors import AbstractTensor, TensorShapeError
from . import promotion
from .results import InstanceNormGrad, LayerNormGrad
from . import utils
from .utils import by_pass, normalize_axis

logger = get_primvjp_logger("primvjp.vjp")

UPSCALE_IN_TRAIN = "upscale_in_train"


def dropout_grad(mask: AbstractTensor, out_grad: AbstractTensor, p: float, is_test: bool,
                 mode: str = UPSCALE_IN_TRAIN, *, need_x: bool = True) -> Optional[AbstractTensor]:
    """
    ========  ================  =======  =========================
    is_test   mode              p        x_grad
    ========  ================  =======  =========================
    True      upscale_in_train  any      out_grad
    True      other             any      out_grad * (1 - p)
    False     upscale_in_train  1        zeros
    False     upscale_in_train  < 1      out_grad * mask / (1 - p)
    False     other             any      out_grad * mask
    ========  ================  =======  =========================
    """
    if not need_x:
        return None
    p = float(p)
    if is_test:
        if mode == UPSCALE_IN_TRAIN:
            return by_pass(out_grad)
        return utils.scale(out_grad, 1.0 - p)
    mask = mask.to_dtype(out_grad.dtype)
    if mode == UPSCALE_IN_TRAIN:
        if p == 1.0:
            return utils.scale(out_grad, 0.0)
        return out_grad * mask / (1.0 - p)
    return out_grad * mask


def softmax_grad(out: AbstractTensor, out_grad: AbstractTensor, axis: int = -1,
                 *, need_x: bool = True) -> Optional[AbstractTensor]:
    if not need_x:
        return None
    if out.ndim == 0:
        return out_grad.zeros_like()
    axis = normalize_axis(axis, out.ndim)
    new_out_grad = out_grad * out
    tmp = new_out_grad.sum(dim=axis, keepdim=True)
    return new_out_grad - out * tmp


def layer_norm_grad(x: AbstractTensor, scale: Optional[AbstractTensor], bias: Optional[AbstractTensor],
                    mean: AbstractTensor, variance: AbstractTensor, out_grad: AbstractTensor,
                    epsilon: float = 1e-5, begin_norm_axis: int = 1,
                    *, need_x: bool = True, need_scale: bool = True,
                    need_bias: bool = True) -> LayerNormGrad:
    """Gradients of ``y = (x - mean) / sqrt(variance + epsilon) * scale + bias``.

    ``x`` is viewed as ``(M, N)``: ``M`` rows from the axes before
    ``begin_norm_axis`` and ``N`` normalized columns from the rest.  ``mean``
    and ``variance`` hold one value per row; ``scale`` and ``bias`` one per
    column.  ``scale_grad`` and ``bias_grad`` are only produced when the
    matching input exists.
    """
    x_dims = x.shape
    begin = normalize_axis(begin_norm_axis, len(x_dims))
    rows = 1
    for extent in x_dims[:begin]:
        rows *= extent
    cols = 1
    for extent in x_dims[begin:]:
        cols *= extent

    x_cast = x.reshape(rows, cols)
    out_grad_cast = out_grad.reshape(rows, cols)
    mean_ = mean.reshape(rows, 1)
    variance_ = variance.reshape(rows, 1)
    scale_cast = scale.reshape(1, cols) if scale is not None else None

    promoted = promotion.needs_promotion("layer_norm", x.dtype)
    if promoted:
        x_cast, out_grad_cast, mean_, variance_, scale_cast = promotion.promote(
            x_cast, out_grad_cast, mean_, variance_, scale_cast
        )

    x_sub_mean = x_cast - mean_
    tmp = 1.0 / (variance_ + epsilon)
    sqrt_var_1 = tmp.sqrt()
    x_sub_mean_mul_sqrt_var_1 = x_sub_mean * sqrt_var_1

    x_grad = scale_grad = bias_grad = None
    if need_x:
        out_grad_scale = out_grad_cast * scale_cast if scale_cast is not None else out_grad_cast
        dx_end = sqrt_var_1 * out_grad_scale
        d_mean = dx_end.sum(dim=1, keepdim=True)

        d_std_1 = (tmp * x_sub_mean * out_grad_scale).sum(dim=1, keepdim=True)
        d_std = d_std_1 * x_sub_mean_mul_sqrt_var_1

        d_mean_d_std = (1.0 / cols) * (d_mean + d_std)
        x_grad = (dx_end - d_mean_d_std).reshape(x_dims)
        x_grad = promotion.restore(x_grad, x.dtype)

    if need_scale and scale is not None:
        scale_grad = (x_sub_mean_mul_sqrt_var_1 * out_grad_cast).sum(dim=0).reshape(scale.shape)
        scale_grad = promotion.restore(scale_grad, scale.dtype)

    if need_bias and bias is not None:
        bias_grad = out_grad_cast.sum(dim=0).reshape(bias.shape)
        bias_grad = promotion.restore(bias_grad, bias.dtype)

    return LayerNormGrad(x_grad, scale_grad, bias_grad)


def instance_norm_grad(x: AbstractTensor, scale: Optional[AbstractTensor],
                       saved_mean: AbstractTensor, saved_variance: AbstractTensor,
                       y_grad: AbstractTensor, epsilon: float = 1e-5,
                       *, need_x: bool = True, need_scale: bool = True,
                       need_bias: bool = True) -> InstanceNormGrad:
    """Gradients of instance normalization over ``x`` laid out ``(N, C, *spatial)``.

    ``saved_mean`` and ``saved_variance`` hold one value per ``(n, c)`` pair;
    ``saved_variance`` is the saved inverse standard deviation
    ``1 / sqrt(var + epsilon)``, so ``epsilon`` is not applied again.
    Without ``scale`` the layer behaves as if ``scale`` were all ones and no
    ``scale_grad`` is produced.
    """
    x_dims = x.shape
    if len(x_dims) < 3:
        raise TensorShapeError(f"instance_norm_grad expects (N, C, *spatial), got {x_dims}")
    n, c = x_dims[0], x_dims[1]
    spatial_axes = tuple(range(2, len(x_dims)))
    stat_shape = (n, c) + (1,) * len(spatial_axes)
    hw = 1
    for extent in x_dims[2:]:
        hw *= extent

    x_data, y_grad_data = x, y_grad
    mean = saved_mean.reshape(stat_shape)
    inv_std = saved_variance.reshape(stat_shape)
    scale_data = scale.reshape((1, c) + (1,) * len(spatial_axes)) if scale is not None else None

    promoted = promotion.needs_promotion("instance_norm", x.dtype)
    if promoted:
        x_data, y_grad_data, mean, inv_std, scale_data = promotion.promote(
            x_data, y_grad_data, mean, inv_std, scale_data
        )

    x_hat = (x_data - mean) * inv_std

    x_grad = scale_grad = bias_grad = None
    if need_x:
        sum_dy = y_grad_data.sum(dim=spatial_axes, keepdim=True)
        sum_dy_x_hat = (y_grad_data * x_hat).sum(dim=spatial_axes, keepdim=True)
        tmp = y_grad_data - sum_dy * (1.0 / hw) - x_hat * sum_dy_x_hat * (1.0 / hw)
        x_grad = inv_std * tmp
        if scale_data is not None:
            x_grad = scale_data * x_grad
        x_grad = promotion.restore(x_grad, x.dtype)

    channel_reduce = (0,) + spatial_axes
    param_dtype = scale.dtype if scale is not None else x.dtype
    if need_scale and scale is not None:
        scale_grad = (y_grad_data * x_hat).sum(dim=channel_reduce)
        scale_grad = promotion.restore(scale_grad, param_dtype)

    if need_bias:
        bias_grad = y_grad_data.sum(dim=channel_reduce)
        bias_grad = promotion.restore(bias_grad, param_dtype)

    logger.debug("instance_norm_grad over %s channels, %s elements each", c, hw)
    return InstanceNormGrad(x_grad, scale_grad, bias_grad)
