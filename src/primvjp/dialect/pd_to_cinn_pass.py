"""Lower ``pd_op`` operators to their ``cinn_op`` counterparts.

The framework dialect passes axes, shapes and scalars as operands produced
by ``pd_op.full`` / ``pd_op.full_int_array``.  The compiler dialect wants them
as static attributes, so every pattern here folds those constant operands
into attributes.  An op whose attribute operands are not constants is left
alone.
"""

from __future__ import annotations

from typing import Any, List, Optional

from ..logger import get_primvjp_logger
from .pattern_rewrite import PatternRewritePass, PatternRewriter, RewritePattern, RewritePatternSet
from .program import MODULE_OP, Operation, Program, Value, producer_of

logger = get_primvjp_logger("primvjp.dialect")


def _full_value(value: Value) -> Optional[float]:
    op = producer_of(value)
    if op is None or op.name != "pd_op.full":
        return None
    return op.attributes["value"]


def _int_array(value: Value) -> Optional[List[int]]:
    op = producer_of(value)
    if op is None:
        return None
    if op.name == "pd_op.full_int_array":
        return [int(v) for v in op.attributes["value"]]
    if op.name == "pd_op.full":
        return [int(op.attributes["value"])]
    return None


class _ReduceOpPattern(RewritePattern):
    """``pd_op.<reduce>(x, axis)`` -> ``cinn_op.reduce_<reduce>(x) {dim, keep_dim}``."""

    def __init__(self, pd_name: str, cinn_name: str):
        self.root = pd_name
        self.target = cinn_name

    def match_and_rewrite(self, op: Operation, rewriter: PatternRewriter) -> bool:
        axis = _int_array(op.operands[1])
        if axis is None:
            return False
        new_op = rewriter.create_op(
            self.target, [op.operands[0]],
            {"dim": axis, "keep_dim": bool(op.attributes.get("keepdim", False))},
            before=op,
        )
        rewriter.replace_op(op, new_op.results)
        return True


class ScaleOpPattern(RewritePattern):
    root = "pd_op.scale"

    def match_and_rewrite(self, op: Operation, rewriter: PatternRewriter) -> bool:
        scale = _full_value(op.operands[1])
        if scale is None:
            return False
        attrs = {
            "scale": float(scale),
            "bias": float(op.attributes.get("bias", 0.0)),
            "bias_after_scale": bool(op.attributes.get("bias_after_scale", True)),
        }
        new_op = rewriter.create_op("cinn_op.scale", [op.operands[0]], attrs, before=op)
        rewriter.replace_op(op, new_op.results)
        return True


class ReshapeOpPattern(RewritePattern):
    root = "pd_op.reshape"

    def match_and_rewrite(self, op: Operation, rewriter: PatternRewriter) -> bool:
        shape = _int_array(op.operands[1])
        if shape is None:
            return False
        new_op = rewriter.create_op("cinn_op.reshape", [op.operands[0]], {"shape": shape}, before=op)
        rewriter.replace_op(op, new_op.results)
        return True


class SliceOpPattern(RewritePattern):
    root = "pd_op.slice"

    def match_and_rewrite(self, op: Operation, rewriter: PatternRewriter) -> bool:
        starts = _int_array(op.operands[1])
        ends = _int_array(op.operands[2])
        if starts is None or ends is None:
            return False
        attrs = {
            "axes": list(op.attributes.get("axes", [])),
            "starts": starts,
            "ends": ends,
            "infer_flags": list(op.attributes.get("infer_flags", [])),
            "decrease_axis": list(op.attributes.get("decrease_axis", [])),
        }
        new_op = rewriter.create_op("cinn_op.slice", [op.operands[0]], attrs, before=op)
        rewriter.replace_op(op, new_op.results)
        return True


class ConcatOpPattern(RewritePattern):
    """The last operand of ``pd_op.concat`` is the axis."""

    root = "pd_op.concat"

    def match_and_rewrite(self, op: Operation, rewriter: PatternRewriter) -> bool:
        axis = _int_array(op.operands[-1])
        if axis is None:
            return False
        new_op = rewriter.create_op("cinn_op.concat", op.operands[:-1], {"axis": axis[0]}, before=op)
        rewriter.replace_op(op, new_op.results)
        return True


class SplitWithNumOpPattern(RewritePattern):
    """Equal-size split; needs the input's static extent along the axis."""

    root = "pd_op.split_with_num"

    def match_and_rewrite(self, op: Operation, rewriter: PatternRewriter) -> bool:
        axis = _int_array(op.operands[1])
        x = op.operands[0]
        if axis is None or x.shape is None:
            return False
        num = int(op.attributes["num"])
        rank = len(x.shape)
        dim = axis[0] + rank if axis[0] < 0 else axis[0]
        extent = x.shape[dim]
        if extent < 0 or extent % num:
            return False
        attrs = {"num_or_sections": [extent // num] * num, "axis": dim}
        new_op = rewriter.create_op("cinn_op.split", [x], attrs, before=op, num_results=num)
        rewriter.replace_op(op, new_op.results)
        return True


class IsCloseOpPattern(RewritePattern):
    root = "pd_op.isclose"

    def match_and_rewrite(self, op: Operation, rewriter: PatternRewriter) -> bool:
        rtol = _full_value(op.operands[2])
        atol = _full_value(op.operands[3])
        if rtol is None or atol is None:
            return False
        attrs = {
            "rtol": float(rtol),
            "atol": float(atol),
            "equal_nan": bool(op.attributes.get("equal_nan", False)),
        }
        new_op = rewriter.create_op("cinn_op.isclose", op.operands[:2], attrs, before=op)
        rewriter.replace_op(op, new_op.results)
        return True


class PdOpToCinnOpPass(PatternRewritePass):
    def __init__(self):
        super().__init__("pd_to_cinn_pass", opt_level=1)

    def initialize_patterns(self, context: Any) -> RewritePatternSet:
        ps = RewritePatternSet(context)
        ps.add(
            _ReduceOpPattern("pd_op.sum", "cinn_op.reduce_sum"),
            _ReduceOpPattern("pd_op.max", "cinn_op.reduce_max"),
            _ReduceOpPattern("pd_op.min", "cinn_op.reduce_min"),
            _ReduceOpPattern("pd_op.prod", "cinn_op.reduce_prod"),
            ScaleOpPattern(),
            ReshapeOpPattern(),
            SliceOpPattern(),
            ConcatOpPattern(),
            SplitWithNumOpPattern(),
            IsCloseOpPattern(),
        )
        return ps

    def can_apply_on(self, op: Operation) -> bool:
        return op.name == MODULE_OP and op.num_regions > 0


def create_pd_op_to_cinn_op_pass() -> PdOpToCinnOpPass:
    return PdOpToCinnOpPass()


def pd_op_to_cinn_op_converter(program: Program) -> Program:
    """Run the conversion in place on ``program`` and return it."""
    pass_ = create_pd_op_to_cinn_op_pass()
    if pass_.can_apply_on(program.module):
        pass_.run(program.module)
    else:
        logger.warning("pd_to_cinn_pass skipped: %s is not a module", program.module.name)
    return program
