"""Backend-neutral element types."""
from __future__ import annotations

from enum import Enum


class DataType(str, Enum):
    BOOL = "bool"
    UINT8 = "uint8"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT16 = "float16"
    BFLOAT16 = "bfloat16"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @classmethod
    def parse(cls, value) -> "DataType":
        """Accept a DataType, its string name, or the short aliases ``float``/``int``."""
        if isinstance(value, cls):
            return value
        name = str(value).lower()
        if name.startswith("torch."):
            name = name[len("torch."):]
        aliases = {"float": "float32", "double": "float64", "half": "float16",
                   "int": "int32", "long": "int64"}
        name = aliases.get(name, name)
        try:
            return cls(name)
        except ValueError as exc:
            raise TypeError(f"Unsupported dtype: {value!r}") from exc

    @property
    def is_reduced_precision(self) -> bool:
        return self in (DataType.FLOAT16, DataType.BFLOAT16)

