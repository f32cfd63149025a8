import os

import numpy as np
import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--vjp-debug",
        action="store_true",
        help="Log promotion decisions and reduction axes at DEBUG level",
    )


def pytest_configure(config):
    if config.getoption("--vjp-debug"):
        os.environ["PRIMVJP_LOG_LEVEL"] = "DEBUG"
    config.addinivalue_line(
        "markers",
        "torch: tests that need the optional torch backend",
    )


def pytest_collection_modifyitems(config, items):
    try:
        import torch  # noqa: F401
        return
    except ImportError:
        pass
    skip = pytest.mark.skip(reason="torch is not installed")
    for item in items:
        if "torch" in item.keywords:
            item.add_marker(skip)


# ---------------------------------------------------------------------------
# Finite-difference helper shared by the gradient tests

def _numeric_vjp(f, x, out_grad, eps=1e-6):
    """Central-difference estimate of ``sum(f(x) * out_grad)`` w.r.t. ``x``."""
    x = np.array(x, dtype=np.float64)
    out_grad = np.asarray(out_grad, dtype=np.float64)
    grad = np.zeros_like(x)
    for idx in np.ndindex(*x.shape):
        xp = x.copy()
        xp[idx] += eps
        xm = x.copy()
        xm[idx] -= eps
        grad[idx] = np.sum((np.asarray(f(xp)) - np.asarray(f(xm))) * out_grad) / (2 * eps)
    return grad


@pytest.fixture
def numeric_vjp():
    return _numeric_vjp


@pytest.fixture
def rng():
    return np.random.default_rng(0)
