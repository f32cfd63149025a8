from __future__ import annotations

from typing import Any


# ---- unary ----
def sign(self):
    return self._wrap(self.sign_())


def exp(self):
    return self._wrap(self.exp_())


def log(self):
    """Natural logarithm."""
    return self._wrap(self.log_())


def sqrt(self):
    return self._wrap(self.sqrt_())


def erf(self):
    """Gauss error function, computed in the tensor's own dtype."""
    return self._wrap(self.erf_())


def sigmoid(self):
    return self._wrap(self.sigmoid_())


# ---- selection ----
def _unwrap(value: Any) -> Any:
    from ..abstraction import AbstractTensor
    return value.data if isinstance(value, AbstractTensor) else value


def where(self, x: Any, y: Any):
    """Select ``x`` where ``self`` (a bool mask) is true, else ``y``."""
    return self._wrap(self.where_(_unwrap(x), _unwrap(y)))


# ---- comparisons (bool results) ----
def greater(self, other: Any):
    return self._apply_operator("greater", self, other)


def greater_equal(self, other: Any):
    return self._apply_operator("greater_equal", self, other)


def less(self, other: Any):
    return self._apply_operator("less", self, other)


def less_equal(self, other: Any):
    return self._apply_operator("less_equal", self, other)


def equal(self, other: Any):
    return self._apply_operator("equal", self, other)
