"""Primitive vector-Jacobian product rules and a dialect conversion pass."""
from __future__ import annotations

from .tensors import AbstractTensor, DataType, TensorShapeError
from .vjp import VJP_REGISTRY, get_vjp

__version__ = "0.1.0"

__all__ = [
    "AbstractTensor",
    "DataType",
    "TensorShapeError",
    "VJP_REGISTRY",
    "get_vjp",
]
