from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .config import DEFAULT_SEED
from .errors import InvalidArgumentError, check_index, check_integer
from .indexing import IndexSchema
from .permutation import permutation, permute

logger = logging.getLogger(__name__)


class _ChainBuffer:
    """Append-only (n_draws, num_params) float buffer with geometric growth."""

    def __init__(self, num_params: int, capacity: int = 16):
        self._data = np.empty((int(capacity), int(num_params)), dtype=float)
        self._n = 0

    def __len__(self) -> int:
        return self._n

    def _reserve(self, n: int) -> None:
        cap = self._data.shape[0]
        if n <= cap:
            return
        new_cap = max(n, 2 * cap, 16)
        data = np.empty((new_cap, self._data.shape[1]), dtype=float)
        data[: self._n] = self._data[: self._n]
        self._data = data

    def append(self, rows: np.ndarray) -> None:
        m = rows.shape[0]
        self._reserve(self._n + m)
        self._data[self._n : self._n + m] = rows
        self._n += m

    def column(self, j: int, lo: int = 0, hi: int | None = None) -> np.ndarray:
        hi = self._n if hi is None else min(int(hi), self._n)
        lo = min(int(lo), hi)
        return np.array(self._data[lo:hi, j], copy=True)


class Chains:
    """Draws from `num_chains` chains over a fixed set of named parameters.

    Each draw is one flat vector of length `num_params` laid out by the
    `IndexSchema`. A single warmup cutoff is shared by all chains; draws before it
    are warmup, the rest are kept.

    The permutation used to pool kept draws across chains is derived from
    `(seed, warmup, per-chain counts)` only and is reused for every parameter until
    the store changes.
    """

    def __init__(
        self,
        num_chains: int,
        names: Sequence[str],
        dimss: Sequence[Sequence[int]],
        *,
        seed: int = DEFAULT_SEED,
    ):
        self._init(num_chains, IndexSchema.from_names_dims(names, dimss), seed)

    @classmethod
    def from_schema(cls, num_chains: int, schema: IndexSchema, *, seed: int = DEFAULT_SEED) -> "Chains":
        self = cls.__new__(cls)
        self._init(num_chains, schema, seed)
        return self

    def _init(self, num_chains: int, schema: IndexSchema, seed: int) -> None:
        num_chains = check_integer(num_chains, "num_chains")
        if num_chains < 0:
            raise InvalidArgumentError(f"num_chains must be non-negative; got {num_chains}.")
        self._schema = schema
        self._seed = check_integer(seed, "seed")
        self._warmup = 0
        self._chains = [_ChainBuffer(schema.num_params) for _ in range(num_chains)]
        # Bumped by every successful mutation; the cached permutation is valid only
        # for the generation it was built at.
        self._generation = 0
        self._perm: np.ndarray | None = None
        self._perm_generation = -1

    def __repr__(self) -> str:
        counts = [len(c) for c in self._chains]
        return f"Chains(num_chains={self.num_chains}, num_params={self.num_params}, warmup={self._warmup}, counts={counts})"

    # --- schema -------------------------------------------------------------

    @property
    def schema(self) -> IndexSchema:
        return self._schema

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def num_chains(self) -> int:
        return len(self._chains)

    @property
    def num_params(self) -> int:
        return self._schema.num_params

    @property
    def num_param_names(self) -> int:
        return self._schema.num_param_names

    @property
    def param_names(self) -> list[str]:
        return self._schema.param_names

    def param_name(self, i: int) -> str:
        return self._schema.param_name(i)

    def param_start(self, i: int) -> int:
        return self._schema.param_start(i)

    def param_size(self, i: int) -> int:
        return self._schema.param_size(i)

    def param_dims(self, i: int) -> tuple[int, ...]:
        return self._schema.param_dims(i)

    def param_name_to_index(self, name: str) -> int:
        return self._schema.param_name_to_index(name)

    def get_total_param_index(self, param_index: int, idxs: Sequence[int]) -> int:
        return self._schema.get_total_param_index(param_index, idxs)

    # --- mutation -----------------------------------------------------------

    @property
    def warmup(self) -> int:
        return self._warmup

    def set_warmup(self, n: int) -> None:
        n = check_integer(n, "warmup")
        if n < 0:
            raise InvalidArgumentError(f"warmup must be non-negative; got {n}.")
        self._warmup = n
        self._generation += 1

    def add(self, chain: int, sample: Sequence[float] | np.ndarray) -> None:
        """Append one flat draw to `chain`."""
        k = self._check_chain(chain)
        x = np.asarray(sample, dtype=float)
        if x.ndim != 1 or x.shape[0] != self.num_params:
            raise InvalidArgumentError(f"sample must be a vector of length {self.num_params}; got shape {x.shape}.")
        self._chains[k].append(x.reshape((1, -1)))
        self._generation += 1

    def add_samples(self, chain: int, draws: np.ndarray) -> None:
        """Append a block of draws (one draw per row) to `chain` in one step."""
        k = self._check_chain(chain)
        x = np.asarray(draws, dtype=float)
        if x.ndim != 2 or x.shape[1] != self.num_params:
            raise InvalidArgumentError(f"draws must have shape (n, {self.num_params}); got {x.shape}.")
        if x.shape[0] == 0:
            return
        self._chains[k].append(x)
        self._generation += 1
        logger.debug("chain %d: appended %d draws (now %d)", k, x.shape[0], len(self._chains[k]))

    # --- counts -------------------------------------------------------------

    def _check_chain(self, chain: int) -> int:
        return check_index(chain, len(self._chains), "chain")

    def _check_param(self, param: int) -> int:
        return check_index(param, self.num_params, "parameter")

    def num_samples(self, chain: int | None = None) -> int:
        if chain is None:
            return sum(len(c) for c in self._chains)
        return len(self._chains[self._check_chain(chain)])

    def num_warmup_samples(self, chain: int | None = None) -> int:
        if chain is None:
            return sum(min(self._warmup, len(c)) for c in self._chains)
        return min(self._warmup, self.num_samples(chain))

    def num_kept_samples(self, chain: int | None = None) -> int:
        if chain is None:
            return sum(max(len(c) - self._warmup, 0) for c in self._chains)
        return self.num_samples(chain) - self.num_warmup_samples(chain)

    # --- retrieval ----------------------------------------------------------

    def _gather(self, chain: int | None, param: int, lo: int, hi: int | None) -> np.ndarray:
        j = self._check_param(param)
        if chain is not None:
            return self._chains[self._check_chain(chain)].column(j, lo, hi)
        parts = [c.column(j, lo, hi) for c in self._chains]
        return np.concatenate(parts) if parts else np.empty((0,), dtype=float)

    def get_samples(self, param: int, chain: int | None = None) -> np.ndarray:
        """All draws of flat element `param`, warmup included, in chain order."""
        return self._gather(chain, param, 0, None)

    def get_warmup_samples(self, param: int, chain: int | None = None) -> np.ndarray:
        return self._gather(chain, param, 0, self._warmup)

    def get_kept_samples(self, param: int, chain: int | None = None) -> np.ndarray:
        """Kept draws of `param`; pooled (chain order, unpermuted) when `chain` is None."""
        return self._gather(chain, param, self._warmup, None)

    def kept_permutation(self) -> np.ndarray:
        """Permutation applied by `get_kept_samples_permuted` for the current state."""
        if self._perm is None or self._perm_generation != self._generation:
            n = self.num_kept_samples()
            rng = np.random.default_rng(self._seed)
            self._perm = permutation(n, rng)
            self._perm_generation = self._generation
            logger.debug("rebuilt pooled permutation over %d kept draws (generation %d)", n, self._generation)
        return self._perm.copy()

    def get_kept_samples_permuted(self, param: int) -> np.ndarray:
        pooled = self.get_kept_samples(param)
        return permute(self.kept_permutation(), pooled)
