from __future__ import annotations

from typing import Any


def to_dtype(self, dtype: Any):
    """Cast to ``dtype`` (a :class:`DataType` or its name).

    Returns ``self`` unchanged when the tensor already has that dtype.
    """
    from ..dtypes import DataType

    dtype = DataType.parse(dtype)
    if self.dtype == dtype:
        return self
    return self._wrap(self.to_dtype_(dtype))
