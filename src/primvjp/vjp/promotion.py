"""Mixed-precision promotion for the numerically sensitive rules.

Rules named in :data:`PROMOTED_OPS` compute in float32 when their inputs are
float16 or bfloat16 and cast the gradient back at the end.  Everything else
computes in the input dtype.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..logger import get_primvjp_logger
from ..tensors import AbstractTensor, DataType

logger = get_primvjp_logger("primvjp.vjp")

PROMOTED_OPS = frozenset({"exp", "gelu", "instance_norm", "layer_norm", "silu"})


def needs_promotion(op: str, dtype: DataType) -> bool:
    # read the table at call time so it can be swapped out
    promote_op = op in PROMOTED_OPS and DataType.parse(dtype).is_reduced_precision
    if promote_op:
        logger.debug("%s: computing %s gradient in float32", op, DataType.parse(dtype).value)
    return promote_op


def promote(*tensors: Optional[AbstractTensor]) -> Tuple[Optional[AbstractTensor], ...]:
    """Cast every given tensor to float32; ``None`` entries pass through."""
    return tuple(None if t is None else t.to_dtype(DataType.FLOAT32) for t in tensors)


def restore(t: AbstractTensor, dtype: DataType) -> AbstractTensor:
    return t.to_dtype(dtype)
