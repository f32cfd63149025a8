"""A small in-memory program IR for dialect rewrites.

Operations are named ``<dialect>.<op>`` (``pd_op.sum``, ``cinn_op.reduce_sum``)
and live in blocks.  Each operation owns its result :class:`Value` objects;
operands are references to values produced earlier in the same block or an
enclosing one.  A :class:`Program` wraps one ``builtin.module`` operation
whose single region holds the top-level block.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

MODULE_OP = "builtin.module"


class Value:
    """An SSA value: result ``index`` of ``owner``."""

    def __init__(self, owner: Optional["Operation"] = None, index: int = 0,
                 shape: Optional[Tuple[int, ...]] = None, dtype: Optional[str] = None):
        self.owner = owner
        self.index = index
        self.shape = tuple(shape) if shape is not None else None
        self.dtype = dtype

    def __repr__(self) -> str:
        owner = self.owner.name if self.owner is not None else "<arg>"
        return f"Value({owner}#{self.index}, shape={self.shape})"


class Operation:
    def __init__(self, name: str, operands: Sequence[Value] = (),
                 attributes: Optional[Dict[str, Any]] = None, num_results: int = 1,
                 regions: Sequence["Region"] = ()):
        self.name = name
        self.operands: List[Value] = list(operands)
        self.attributes: Dict[str, Any] = dict(attributes or {})
        self.results: List[Value] = [Value(self, i) for i in range(num_results)]
        self.regions: List[Region] = list(regions)
        self.parent: Optional[Block] = None
        for region in self.regions:
            region.parent = self

    @property
    def dialect(self) -> str:
        return self.name.split(".", 1)[0]

    @property
    def op_name(self) -> str:
        return self.name.split(".", 1)[-1]

    @property
    def num_regions(self) -> int:
        return len(self.regions)

    def result(self, index: int = 0) -> Value:
        return self.results[index]

    def walk(self) -> Iterator["Operation"]:
        """Pre-order walk over this operation and everything nested in it."""
        yield self
        for region in self.regions:
            for block in region.blocks:
                for op in list(block.ops):
                    yield from op.walk()

    def __repr__(self) -> str:
        return f"Operation({self.name}, attrs={self.attributes})"


class Block:
    def __init__(self, args: Sequence[Value] = ()):
        self.args: List[Value] = list(args)
        self.ops: List[Operation] = []
        self.parent: Optional[Region] = None

    def append(self, op: Operation) -> Operation:
        op.parent = self
        self.ops.append(op)
        return op

    def insert_before(self, anchor: Operation, op: Operation) -> Operation:
        op.parent = self
        self.ops.insert(self.ops.index(anchor), op)
        return op

    def erase(self, op: Operation) -> None:
        self.ops.remove(op)
        op.parent = None

    def users(self, value: Value) -> List[Operation]:
        """Every operation in this block (or nested below it) reading ``value``."""
        found = []
        for op in self.ops:
            for nested in op.walk():
                if any(operand is value for operand in nested.operands):
                    found.append(nested)
        return found

    def replace_all_uses_with(self, old: Value, new: Value) -> None:
        for op in self.ops:
            for nested in op.walk():
                nested.operands = [new if operand is old else operand for operand in nested.operands]


class Region:
    def __init__(self, blocks: Sequence[Block] = ()):
        self.blocks: List[Block] = []
        self.parent: Optional[Operation] = None
        for block in blocks:
            self.add_block(block)

    def add_block(self, block: Block) -> Block:
        block.parent = self
        self.blocks.append(block)
        return block


def producer_of(value: Value) -> Optional[Operation]:
    return value.owner


class Program:
    """A ``builtin.module`` with one block, plus a builder for appending ops."""

    def __init__(self):
        self.module = Operation(MODULE_OP, num_results=0, regions=[Region([Block()])])

    @property
    def block(self) -> Block:
        return self.module.regions[0].blocks[0]

    @property
    def ops(self) -> List[Operation]:
        return self.block.ops

    def add_argument(self, shape: Optional[Sequence[int]] = None, dtype: Optional[str] = None) -> Value:
        value = Value(None, len(self.block.args), shape=shape, dtype=dtype)
        self.block.args.append(value)
        return value

    def add_op(self, name: str, operands: Sequence[Value] = (),
               attributes: Optional[Dict[str, Any]] = None, num_results: int = 1) -> Operation:
        return self.block.append(Operation(name, operands, attributes, num_results))

    def full(self, shape: Sequence[int], value: float, dtype: str = "float32") -> Value:
        op = self.add_op("pd_op.full", attributes={"shape": list(shape), "value": value, "dtype": dtype})
        op.result().shape = tuple(shape)
        op.result().dtype = dtype
        return op.result()

    def full_int_array(self, value: Sequence[int], dtype: str = "int64") -> Value:
        op = self.add_op("pd_op.full_int_array", attributes={"value": list(value), "dtype": dtype})
        op.result().shape = (len(value),)
        op.result().dtype = dtype
        return op.result()

    def op_names(self) -> List[str]:
        return [op.name for op in self.ops]

    def __str__(self) -> str:
        names: Dict[int, str] = {}

        def name_of(value: Value) -> str:
            key = id(value)
            if key not in names:
                names[key] = f"%{len(names)}"
            return names[key]

        for arg in self.block.args:
            name_of(arg)
        lines = []
        for op in self.ops:
            outs = ", ".join(name_of(r) for r in op.results)
            ins = ", ".join(name_of(v) for v in op.operands)
            attrs = ", ".join(f"{k}: {v!r}" for k, v in sorted(op.attributes.items()))
            lhs = f"{outs} = " if outs else ""
            lines.append(f"  {lhs}\"{op.name}\"({ins}) {{{attrs}}}")
        return "{\n" + "\n".join(lines) + "\n}"
