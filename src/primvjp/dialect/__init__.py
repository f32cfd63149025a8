"""Operator dialects and the pd_op to cinn_op conversion pass."""
from __future__ import annotations

from .pattern_rewrite import Pass, PatternRewritePass, PatternRewriter, RewritePattern, RewritePatternSet
from .pd_to_cinn_pass import PdOpToCinnOpPass, create_pd_op_to_cinn_op_pass, pd_op_to_cinn_op_converter
from .program import Block, Operation, Program, Region, Value, producer_of
