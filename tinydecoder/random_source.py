"""
Pluggable Randomness for Weight Sampling and Dropout

The decoder has no trained weights: every weight matrix is sampled when the
layer owning it is built, and dropout draws a fresh keep-mask on every call.
Both draws go through a RandomSource so tests can substitute a deterministic
sequence.

Classes:
    RandomSource: Protocol describing the two kinds of draws the engine needs
    NumpyRandomSource: Default implementation on numpy.random.Generator

Functions:
    random_matrix: Sample a weight matrix scaled by 1/sqrt(cols)
"""

from typing import Optional, Protocol, Tuple

import numpy as np


class RandomSource(Protocol):
    """Source of uniform and Bernoulli draws."""

    def uniform(self, shape: Tuple[int, ...]) -> np.ndarray:
        """Return float samples in [-1, 1) with the given shape."""
        ...

    def bernoulli(self, shape: Tuple[int, ...], probability: float) -> np.ndarray:
        """Return a boolean array, each entry True with the given probability."""
        ...


class NumpyRandomSource:
    """
    RandomSource backed by numpy.random.Generator.

    Example:
        >>> source = NumpyRandomSource(seed=0)
        >>> source.uniform((2, 3)).shape
        (2, 3)
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def uniform(self, shape: Tuple[int, ...]) -> np.ndarray:
        return self._generator.uniform(-1.0, 1.0, size=shape)

    def bernoulli(self, shape: Tuple[int, ...], probability: float) -> np.ndarray:
        return self._generator.random(size=shape) < probability


def random_matrix(rows: int, cols: int, random_source: RandomSource) -> np.ndarray:
    """
    Sample a (rows, cols) weight matrix.

    Entries are uniform in [-1, 1) scaled by 1/sqrt(cols), which keeps the
    variance of a projection's output bounded as the width grows.

    Args:
        rows: Number of rows (input features for a projection)
        cols: Number of columns (output features for a projection)
        random_source: Where the uniform draws come from

    Returns:
        Float array of shape (rows, cols)
    """
    return random_source.uniform((rows, cols)) / np.sqrt(cols)
