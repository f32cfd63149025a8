"""Tensor backends and abstraction layer."""
from __future__ import annotations

from .dtypes import DataType
from .abstraction import (
    AbstractTensor,
    BACKEND_REGISTRY,
    TensorShapeError,
    check_or_build_registry,
    default_backend,
    register_backend,
)

# Backends register themselves on import; load the bundled ones now.
check_or_build_registry()

__all__ = [
    "AbstractTensor",
    "BACKEND_REGISTRY",
    "DataType",
    "TensorShapeError",
    "default_backend",
    "register_backend",
]
