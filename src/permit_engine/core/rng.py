"""Seedable random source used for shuffles and AI choices."""
from __future__ import annotations

from typing import List, Optional, Sequence, TypeVar, Union

import numpy as np

T = TypeVar('T')

RandomSource = Union[np.random.Generator, int, None]


def make_rng(source: RandomSource = None) -> np.random.Generator:
    """
    Return a generator for the given seed, or the generator itself.

    :param source: A ready generator, an integer seed, or None for OS entropy.
    :type source: numpy.random.Generator | int | None
    :return: The generator to draw from.
    :rtype: numpy.random.Generator
    """
    if isinstance(source, np.random.Generator):
        return source
    return np.random.default_rng(source)


def shuffled(rng: np.random.Generator, items: Sequence[T]) -> List[T]:
    order = rng.permutation(len(items))
    return [items[int(i)] for i in order]


def choice(rng: np.random.Generator, items: Sequence[T]) -> Optional[T]:
    """Uniform pick from ``items``; None when there is nothing to pick."""
    if not items:
        return None
    return items[int(rng.integers(len(items)))]
