"""Greedy pattern rewriting over :mod:`primvjp.dialect.program` blocks."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..logger import get_primvjp_logger
from .program import Block, Operation, Value

logger = get_primvjp_logger("primvjp.dialect")

# Constant producers whose results are folded into attributes by patterns.
CONSTANT_OPS = frozenset({"pd_op.full", "pd_op.full_int_array"})


class RewritePattern:
    """Matches operations named :attr:`root` and rewrites them in place.

    Subclasses implement :meth:`match_and_rewrite` and return ``True`` only
    when they changed the program.
    """

    root: str = ""
    benefit: int = 1

    def match_and_rewrite(self, op: Operation, rewriter: "PatternRewriter") -> bool:
        raise NotImplementedError(f"{type(self).__name__} does not implement match_and_rewrite")


class RewritePatternSet:
    def __init__(self, context: Any = None):
        self.context = context
        self._patterns: List[RewritePattern] = []

    def add(self, *patterns: RewritePattern) -> "RewritePatternSet":
        self._patterns.extend(patterns)
        return self

    def patterns_for(self, name: str) -> List[RewritePattern]:
        matching = [p for p in self._patterns if p.root == name]
        return sorted(matching, key=lambda p: -p.benefit)

    def __iter__(self) -> Iterator[RewritePattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)


class PatternRewriter:
    """Edits one block on behalf of the patterns."""

    def __init__(self, block: Block):
        self.block = block

    def create_op(self, name: str, operands: Sequence[Value], attributes: Optional[Dict[str, Any]],
                  before: Operation, num_results: int = 1) -> Operation:
        op = Operation(name, operands, attributes, num_results)
        return self.block.insert_before(before, op)

    def replace_op(self, op: Operation, new_results: Sequence[Value]) -> None:
        if len(new_results) != len(op.results):
            raise ValueError(
                f"{op.name} has {len(op.results)} results, got {len(new_results)} replacements"
            )
        for old, new in zip(op.results, new_results):
            if new.shape is None:
                new.shape = old.shape
            if new.dtype is None:
                new.dtype = old.dtype
            self.block.replace_all_uses_with(old, new)
        self.erase_op(op)

    def erase_op(self, op: Operation) -> None:
        self.block.erase(op)


class Pass:
    """Base class for passes over a ``builtin.module`` operation."""

    def __init__(self, name: str, opt_level: int = 1):
        self.name = name
        self.opt_level = opt_level

    def can_apply_on(self, op: Operation) -> bool:
        return True

    def run(self, op: Operation) -> int:
        raise NotImplementedError(f"{type(self).__name__} does not implement run")


class PatternRewritePass(Pass):
    """Applies the pattern set from :meth:`initialize_patterns` until nothing matches."""

    max_iterations = 10

    def __init__(self, name: str, opt_level: int = 1):
        super().__init__(name, opt_level)
        self.patterns: Optional[RewritePatternSet] = None

    def initialize_patterns(self, context: Any) -> RewritePatternSet:
        raise NotImplementedError(f"{type(self).__name__} does not implement initialize_patterns")

    def initialize(self, context: Any = None) -> bool:
        self.patterns = self.initialize_patterns(context)
        return True

    def run(self, op: Operation) -> int:
        """Rewrite every block under ``op``, nested regions included.

        Returns the number of rewrites applied.
        """
        if self.patterns is None:
            self.initialize()
        total = self._run_on_regions(op)
        logger.debug("%s applied %d rewrites", self.name, total)
        return total

    def _run_on_regions(self, op: Operation) -> int:
        total = 0
        for region in op.regions:
            for block in region.blocks:
                total += self._rewrite_block(block)
                for nested in list(block.ops):
                    if nested.regions:
                        total += self._run_on_regions(nested)
                # outer constants may lose their last nested user above
                _erase_dead_constants(block)
        return total

    def _rewrite_block(self, block: Block) -> int:
        rewriter = PatternRewriter(block)
        applied = 0
        for _ in range(self.max_iterations):
            changed = False
            for op in list(block.ops):
                if op.parent is not block:
                    continue
                for pattern in self.patterns.patterns_for(op.name):
                    if pattern.match_and_rewrite(op, rewriter):
                        logger.debug("%s: %s rewrote %s", self.name, type(pattern).__name__, op.name)
                        applied += 1
                        changed = True
                        break
            if not changed:
                return applied
        raise RuntimeError(f"{self.name} did not converge after {self.max_iterations} iterations")


def _erase_dead_constants(block: Block) -> None:
    for op in reversed(list(block.ops)):
        if op.name in CONSTANT_OPS and not any(block.users(r) for r in op.results):
            block.erase(op)
