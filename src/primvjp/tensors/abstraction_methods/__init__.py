"""Tensor-expression methods bound onto :class:`AbstractTensor` at import time."""
