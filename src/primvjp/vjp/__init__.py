"""Vector-Jacobian product rules for primitive tensor operators."""
from __future__ import annotations

from .activation import (
    abs_grad, assign_grad, cos_grad, erf_grad, exp_grad, floor_grad, gelu_grad,
    hardswish_grad, leaky_relu_grad, log_grad, relu_grad, sigmoid_grad, silu_grad,
    sin_grad, sqrt_grad, tanh_grad,
)
from .elementwise import (
    add_grad, divide_grad, elementwise_pow_grad, maximum_grad, minimum_grad,
    multiply_grad, subtract_grad,
)
from .indexing import gather_grad, gather_nd_grad, scatter_grad, scatter_nd_add_grad, topk_grad
from .manipulation import (
    cast_grad, concat_grad, expand_grad, pad_grad, reshape_grad, roll_grad, slice_grad,
    split_grad, tile_grad, transpose_grad,
)
from .nn import dropout_grad, instance_norm_grad, layer_norm_grad, softmax_grad
from .reduction import cumsum_grad, max_grad, prod_grad, sum_grad
from .registry import VJP_REGISTRY, VjpRegistry, get_vjp
from .results import BinaryGrad, InstanceNormGrad, LayerNormGrad, ScatterGrad
