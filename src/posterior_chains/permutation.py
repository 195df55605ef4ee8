from __future__ import annotations

import numpy as np

from .errors import InvalidArgumentError


def permutation(n: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform random permutation of `range(n)` (Fisher-Yates).

    All randomness comes from `rng`, so a fixed generator state gives a fixed result.
    """
    n = int(n)
    if n < 0:
        raise InvalidArgumentError(f"permutation size must be non-negative; got {n}.")
    pi = np.arange(n, dtype=np.int64)
    for i in range(n - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        pi[i], pi[j] = pi[j], pi[i]
    return pi


def is_permutation(perm: np.ndarray) -> bool:
    perm = np.asarray(perm)
    if perm.ndim != 1:
        return False
    if perm.size == 0:
        return True
    if not np.issubdtype(perm.dtype, np.integer):
        return False
    seen = np.zeros(perm.size, dtype=bool)
    if np.any(perm < 0) or np.any(perm >= perm.size):
        return False
    seen[perm] = True
    return bool(np.all(seen))


def permute(perm: np.ndarray, source: np.ndarray) -> np.ndarray:
    """Return `dest` with `dest[i] = source[perm[i]]`."""
    perm = np.asarray(perm)
    source = np.asarray(source)
    if perm.shape[0] != source.shape[0]:
        raise InvalidArgumentError(f"permutation length {perm.shape[0]} does not match source length {source.shape[0]}.")
    if not is_permutation(perm):
        raise InvalidArgumentError("perm is not a permutation of range(len(perm)).")
    return source[perm.astype(np.int64, copy=False)]
