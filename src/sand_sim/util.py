# MIT License (see LICENSE)
"""
Utility functions for grid addressing and random tie-breaks.

Positions and velocities are 2D vectors stored as float64 numpy arrays of
shape (2,). A position addresses the grid cell obtained by truncating each
component to an integer.
"""
from __future__ import annotations
import os
from typing import Sequence, TypeVar

import numpy as np

from .constants import SEED_ENV_VAR

T = TypeVar("T")


def f64(x) -> np.ndarray:
    """
    Convert any array-like to a float64 numpy array.

    Allows tuple/list inputs for positions and velocities.
    """
    return np.array(x, dtype=np.float64)


def cell_of(position) -> tuple[int, int]:
    """
    Integer cell address (x, y) of a real-valued position.

    Components are truncated toward zero, so (3.9, 0.2) addresses (3, 0).
    """
    return int(position[0]), int(position[1])


def env_seed() -> int | None:
    """Read the default random seed from the environment, if set."""
    raw = os.environ.get(SEED_ENV_VAR)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


def make_rng(seed: int | None = None) -> np.random.Generator:
    """
    Create the random generator used for tie-breaks.

    An explicit seed wins over the environment; with neither, the generator
    is seeded from OS entropy.
    """
    if seed is None:
        seed = env_seed()
    return np.random.default_rng(seed)


def choose(rng: np.random.Generator, options: Sequence[T]) -> T:
    """Pick one element of a non-empty sequence uniformly at random."""
    if len(options) == 1:
        return options[0]
    return options[int(rng.integers(len(options)))]
