"""Registry mapping forward operator names to their gradient rules.

Rule modules are scanned for ``<op>_grad`` functions; each is registered
under ``<op>``.  The global :data:`VJP_REGISTRY` is filled at import time and
only read afterwards.
"""

from __future__ import annotations

from types import ModuleType
from typing import Callable, Dict, Iterator, List

from ..logger import get_primvjp_logger
from . import activation, elementwise, indexing, manipulation, nn, reduction

logger = get_primvjp_logger("primvjp.vjp")

SUFFIX = "_grad"


class VjpRegistry:
    def __init__(self) -> None:
        self._rules: Dict[str, Callable[..., object]] = {}

    def register(self, name: str, fn: Callable[..., object]) -> None:
        """Register ``fn`` as the gradient rule of forward op ``name``."""
        if name in self._rules and self._rules[name] is not fn:
            logger.warning("Replacing VJP rule for %s", name)
        self._rules[name] = fn

    def register_from_module(self, module: ModuleType) -> "VjpRegistry":
        """Discover and register all ``*_grad`` functions defined in ``module``.

        Returns the registry itself to allow chaining.
        """
        for attr in dir(module):
            fn = getattr(module, attr)
            if attr.endswith(SUFFIX) and callable(fn) and getattr(fn, "__module__", None) == module.__name__:
                self.register(attr[: -len(SUFFIX)], fn)
        return self

    def get(self, name: str) -> Callable[..., object]:
        try:
            return self._rules[name]
        except KeyError:
            raise KeyError(f"No VJP rule registered for '{name}'") from None

    def names(self) -> List[str]:
        return sorted(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._rules)


# Global registry used by callers that dispatch on op name
VJP_REGISTRY = VjpRegistry()
for _module in (activation, elementwise, indexing, manipulation, nn, reduction):
    VJP_REGISTRY.register_from_module(_module)


def get_vjp(op: str) -> Callable[..., object]:
    return VJP_REGISTRY.get(op)
