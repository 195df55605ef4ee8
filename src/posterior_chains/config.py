from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Sequence

from .errors import InvalidArgumentError, check_integer, check_probability

# Seed for the pooled-draw permutation when the caller does not choose one.
DEFAULT_SEED = 187049587

DEFAULT_PROBS: tuple[float, ...] = (0.025, 0.5, 0.975)


@dataclass(frozen=True)
class ChainsConfig:
    """Settings for building and summarizing a chains store."""

    seed: int = DEFAULT_SEED
    warmup: int = 0
    index_base: int = 1
    probs: tuple[float, ...] = DEFAULT_PROBS

    def __post_init__(self) -> None:
        for name in ("seed", "warmup", "index_base"):
            object.__setattr__(self, name, check_integer(getattr(self, name), name))
        if self.seed < 0:
            raise InvalidArgumentError(f"seed must be non-negative; got {self.seed}.")
        if self.warmup < 0:
            raise InvalidArgumentError(f"warmup must be non-negative; got {self.warmup}.")
        if self.index_base not in (0, 1):
            raise InvalidArgumentError(f"index_base must be 0 or 1; got {self.index_base}.")
        if isinstance(self.probs, (str, bytes)) or not isinstance(self.probs, Sequence):
            raise InvalidArgumentError(f"probs must be a list of probabilities; got {self.probs!r}.")
        object.__setattr__(self, "probs", tuple(check_probability(p) for p in self.probs))

    @classmethod
    def from_mapping(cls, m: Mapping[str, Any]) -> "ChainsConfig":
        if not isinstance(m, Mapping):
            raise InvalidArgumentError(f"config must be a mapping; got {type(m).__name__}.")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(m) - known)
        if unknown:
            raise InvalidArgumentError(f"unknown config keys: {unknown}.")
        return cls(**dict(m))

    def to_jsonable(self) -> dict[str, Any]:
        d = asdict(self)
        d["probs"] = list(self.probs)
        return d
