from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

import numpy as np

from .chains import Chains
from .config import DEFAULT_PROBS
from .errors import OutOfRangeError, check_probability


def _draws(chains: Chains, param: int, chain: int | None) -> np.ndarray:
    if chain is None:
        return chains.get_kept_samples_permuted(param)
    return chains.get_kept_samples(param, chain)


def _require_draws(x: np.ndarray, chains: Chains, param: int, chain: int | None) -> np.ndarray:
    if x.size == 0:
        where = "pooled chains" if chain is None else f"chain {int(chain)}"
        raise OutOfRangeError(f"no kept draws for parameter {int(param)} in {where} (warmup={chains.warmup}).")
    return x


def quantiles(chains: Chains, param: int, probs: Sequence[float], *, chain: int | None = None) -> np.ndarray:
    """Quantiles of the kept draws of `param`, per chain or pooled across chains.

    Indices are validated before the probabilities; the first probability outside
    [0, 1] raises InvalidArgumentError.
    """
    x = _draws(chains, param, chain)
    p = np.array([check_probability(q) for q in probs], dtype=float)
    x = _require_draws(x, chains, param, chain)
    if p.size == 0:
        return p
    # numpy's default "linear" method: rank q*(n-1), interpolated between neighbours.
    return np.quantile(x, p)


def quantile(chains: Chains, param: int, q: float, *, chain: int | None = None) -> float:
    return float(quantiles(chains, param, [q], chain=chain)[0])


def central_interval(chains: Chains, param: int, prob: float, *, chain: int | None = None) -> tuple[float, float]:
    """Interval holding mass `prob` around the median: (q[(1-p)/2], q[(1+p)/2])."""
    x = _draws(chains, param, chain)
    p = check_probability(prob)
    x = _require_draws(x, chains, param, chain)
    lo, hi = np.quantile(x, np.array([0.5 * (1.0 - p), 0.5 * (1.0 + p)]))
    return float(lo), float(hi)


def mean(chains: Chains, param: int, *, chain: int | None = None) -> float:
    x = _require_draws(_draws(chains, param, chain), chains, param, chain)
    return float(np.mean(x))


def variance(chains: Chains, param: int, *, chain: int | None = None) -> float:
    """Sample variance with Bessel's correction; nan for a single draw."""
    x = _require_draws(_draws(chains, param, chain), chains, param, chain)
    if x.size < 2:
        return float("nan")
    return float(np.var(x, ddof=1))


def sd(chains: Chains, param: int, *, chain: int | None = None) -> float:
    return float(np.sqrt(variance(chains, param, chain=chain)))


@dataclass(frozen=True)
class ParamSummary:
    """Pooled summary of one flat element."""

    label: str
    n_kept: int
    mean: float
    sd: float
    probs: tuple[float, ...]
    quantiles: tuple[float, ...]

    def to_jsonable(self) -> dict[str, Any]:
        d = asdict(self)
        d["probs"] = list(self.probs)
        d["quantiles"] = list(self.quantiles)
        return d


def summarize(chains: Chains, probs: Sequence[float] = DEFAULT_PROBS, *, index_base: int = 1) -> list[ParamSummary]:
    """One pooled `ParamSummary` per flat element, in flat order."""
    probs = tuple(check_probability(p) for p in probs)
    labels = chains.schema.flat_names(base=index_base)
    n_kept = chains.num_kept_samples()
    out: list[ParamSummary] = []
    for j, label in enumerate(labels):
        out.append(
            ParamSummary(
                label=label,
                n_kept=n_kept,
                mean=mean(chains, j),
                sd=sd(chains, j),
                probs=probs,
                quantiles=tuple(float(v) for v in quantiles(chains, j, probs)),
            )
        )
    return out
