"""Result records for rules that produce more than one gradient.

Every field is ``None`` when the caller did not request that gradient.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from ..tensors import AbstractTensor


class BinaryGrad(NamedTuple):
    x_grad: Optional[AbstractTensor]
    y_grad: Optional[AbstractTensor]


class ScatterGrad(NamedTuple):
    x_grad: Optional[AbstractTensor]
    updates_grad: Optional[AbstractTensor]


class LayerNormGrad(NamedTuple):
    x_grad: Optional[AbstractTensor]
    scale_grad: Optional[AbstractTensor]
    bias_grad: Optional[AbstractTensor]


class InstanceNormGrad(NamedTuple):
    x_grad: Optional[AbstractTensor]
    scale_grad: Optional[AbstractTensor]
    bias_grad: Optional[AbstractTensor]
