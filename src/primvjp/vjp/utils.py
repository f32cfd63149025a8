"""Shape helpers shared by the gradient rules.

The broadcast-reduce resolver lives here: given the shape a gradient
currently has and the shape it must end up with, find the axes that the
forward pass broadcast over and sum them away.

Shapes are aligned from the right, NumPy style.  An axis is reduced when it
exists only in the larger shape, or when the target extent is 1 while the
source extent is not.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, Union

from ..logger import get_primvjp_logger
from ..tensors import AbstractTensor, TensorShapeError
from ..tensors.abstraction import _Diag

logger = get_primvjp_logger("primvjp.vjp")

Shape = Tuple[int, ...]


def as_shape(shape: Union[Sequence[int], AbstractTensor]) -> Shape:
    if isinstance(shape, AbstractTensor):
        return shape.shape
    return tuple(int(s) for s in shape)


def normalize_axis(axis: int, rank: int) -> int:
    """Resolve a possibly negative ``axis`` against ``rank``.

    A 0-d tensor accepts axis 0 and -1 so reductions over scalars stay legal.
    """
    axis = int(axis)
    bound = max(rank, 1)
    if not -bound <= axis < bound:
        raise TensorShapeError(
            "axis out of range",
            _Diag(op="normalize_axis", expected=f"axis in [{-bound}, {bound})", actual=str(axis)),
        )
    return axis + bound if axis < 0 else axis


def normalize_axes(axes: Union[int, Iterable[int]], rank: int) -> Tuple[int, ...]:
    """Normalize every entry of ``axes`` and return them sorted without duplicates."""
    if isinstance(axes, int):
        axes = (axes,)
    return tuple(sorted({normalize_axis(a, rank) for a in axes}))


def broadcast_shape(a: Sequence[int], b: Sequence[int]) -> Shape:
    a, b = as_shape(a), as_shape(b)
    rank = max(len(a), len(b))
    a_pad = (1,) * (rank - len(a)) + a
    b_pad = (1,) * (rank - len(b)) + b
    out = []
    for da, db in zip(a_pad, b_pad):
        if da == db or db == 1:
            out.append(da)
        elif da == 1:
            out.append(db)
        else:
            raise TensorShapeError(
                "shapes are not broadcast compatible",
                _Diag(op="broadcast_shape", expected=str(a), actual=str(b),
                      hint="aligned extents must match or one of them must be 1"),
            )
    return tuple(out)


def reduce_axes(from_shape: Sequence[int], to_shape: Sequence[int]) -> Tuple[int, ...]:
    """Axes of ``from_shape`` to sum over so the result broadcasts back from ``to_shape``."""
    from_shape, to_shape = as_shape(from_shape), as_shape(to_shape)
    bat = len(from_shape) - len(to_shape)
    if bat < 0:
        raise TensorShapeError(
            "cannot reduce to a higher rank",
            _Diag(op="reduce_axes", expected=f"rank <= {len(from_shape)}", actual=str(to_shape)),
        )
    axes: List[int] = list(range(bat))
    for i, extent in enumerate(to_shape):
        src = from_shape[i + bat]
        if extent == 1:
            if src != 1:
                axes.append(i + bat)
        elif extent != src:
            raise TensorShapeError(
                "target shape does not broadcast to source shape",
                _Diag(op="reduce_axes", tensor=f"axis {i}", expected=str(src), actual=str(extent)),
            )
    return tuple(axes)


get_reduce_dims_from_out = reduce_axes


def get_reduce_dims(x_shape: Sequence[int], y_shape: Sequence[int]) -> Tuple[int, ...]:
    """Axes to sum a gradient over to recover ``x`` when ``x`` was broadcast against ``y``."""
    return reduce_axes(broadcast_shape(x_shape, y_shape), x_shape)


def sum_to_shape(grad: AbstractTensor, axes: Sequence[int], shape: Sequence[int]) -> AbstractTensor:
    """Sum ``grad`` over ``axes`` and reshape to ``shape``; no axes means pass-through."""
    if not axes:
        return grad
    logger.debug("reducing gradient %s over axes %s to %s", grad.shape, tuple(axes), tuple(shape))
    reduced = grad.sum(dim=tuple(axes))
    if reduced.shape != as_shape(shape):
        reduced = reduced.reshape(as_shape(shape))
    return reduced


def unbroadcast(grad: AbstractTensor, shape: Sequence[int]) -> AbstractTensor:
    """Reduce ``grad`` back to ``shape`` using the axes implied by its own shape."""
    return sum_to_shape(grad, reduce_axes(grad.shape, shape), shape)


def reduce_as(grad: AbstractTensor, shape: Sequence[int], other_shape: Sequence[int]) -> AbstractTensor:
    """Reduce ``grad`` to ``shape`` where ``shape`` was broadcast against ``other_shape``."""
    shape, other_shape = as_shape(shape), as_shape(other_shape)
    if shape == other_shape:
        return grad
    return sum_to_shape(grad, get_reduce_dims(shape, other_shape), shape)


def unsqueeze_dims(shape: Sequence[int], axes: Sequence[int]) -> Shape:
    """Reinsert the size-1 extents a ``keepdim=False`` reduction dropped."""
    out = list(as_shape(shape))
    for axis in sorted(axes):
        out.insert(axis, 1)
    return tuple(out)


def inverse_permutation(perm: Sequence[int]) -> Tuple[int, ...]:
    rank = len(perm)
    inverse = [0] * rank
    for i, p in enumerate(perm):
        inverse[p + rank if p < 0 else p] = i
    return tuple(inverse)


def scale(x: AbstractTensor, scale: float, bias: float = 0.0, bias_after_scale: bool = True) -> AbstractTensor:
    if bias_after_scale:
        out = x * scale
        return out + bias if bias else out
    return (x + bias) * scale if bias else x * scale


def by_pass(t: AbstractTensor) -> AbstractTensor:
    """The assign primitive: a fresh copy."""
    return t.clone()


def expand_reduced(t: AbstractTensor, x_shape: Sequence[int], axes: Sequence[int], keepdim: bool) -> AbstractTensor:
    """Broadcast a reduction result back to ``x_shape``.

    Rank 0 and 1 inputs and ``keepdim=True`` results already align from the
    right; otherwise the reduced axes are reinserted as size-1 extents first.
    """
    x_shape = as_shape(x_shape)
    if len(x_shape) > 1 and not keepdim:
        t = t.reshape(unsqueeze_dims(t.shape, axes))
    return t.expand(x_shape)


def reduction_axes(axis: Union[int, Sequence[int], None], rank: int) -> Tuple[int, ...]:
    """Normalize a reduction's ``axis`` attribute; empty or ``None`` means every axis."""
    if axis is None:
        return tuple(range(rank))
    if isinstance(axis, int):
        axis = (axis,)
    axis = tuple(axis)
    if not axis or len(axis) == rank:
        return tuple(range(rank))
    return normalize_axes(axis, rank)
