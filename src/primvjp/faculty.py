"""Faculty levels for the tensor backends primvjp can run on."""
from __future__ import annotations

import importlib.util
import os
from enum import IntEnum


class Faculty(IntEnum):
    """Available compute tiers."""

    NUMPY = 1  # Reference backend, always required
    TORCH = 2  # Optional; adds bfloat16


FORCE_ENV = "PRIMVJP_FACULTY"


def detect_faculty() -> Faculty:
    """Return the default Faculty tier based on installed packages.

    The environment variable ``PRIMVJP_FACULTY`` may be set to force a
    specific tier regardless of the default ordering.
    """
    forced = os.environ.get(FORCE_ENV)
    if forced:
        try:
            return Faculty[forced.upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown faculty override: {forced}") from exc

    spec = importlib.util.find_spec
    if spec("numpy") is not None:
        return Faculty.NUMPY
    if spec("torch") is not None:
        return Faculty.TORCH
    raise RuntimeError("primvjp needs numpy or torch installed")


DEFAULT_FACULTY = detect_faculty()


def available_faculties() -> list[Faculty]:
    """Return all faculty tiers available in the current environment."""
    levels = []
    spec = importlib.util.find_spec
    if spec("numpy") is not None:
        levels.append(Faculty.NUMPY)
    if spec("torch") is not None:
        levels.append(Faculty.TORCH)
    return levels
