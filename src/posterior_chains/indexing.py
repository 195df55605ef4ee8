from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Iterable, Sequence

from .errors import InvalidArgumentError, OutOfRangeError, check_index, check_integer


def validate_dims_idxs(dims: Sequence[int], idxs: Sequence[int]) -> None:
    """Check a multi-index against dimension extents.

    Raises InvalidArgumentError on a rank mismatch and OutOfRangeError if any
    component is not below its extent.
    """
    if len(idxs) != len(dims):
        raise InvalidArgumentError(f"index rank {len(idxs)} does not match dims rank {len(dims)}.")
    for i, (d, k) in enumerate(zip(dims, idxs, strict=True)):
        k = check_integer(k, f"index for dimension {i}")
        if k < 0 or k >= int(d):
            raise OutOfRangeError(f"index {k} out of range for dimension {i} of extent {int(d)}.")


def get_offset(dims: Sequence[int], idxs: Sequence[int]) -> int:
    """Column-major (first index fastest) offset of `idxs`. No bounds checking."""
    offset = 0
    stride = 1
    for d, k in zip(dims, idxs):
        offset += int(k) * stride
        stride *= int(d)
    return offset


def increment_indexes(dims: Sequence[int], idxs: Sequence[int]) -> list[int]:
    """Return the multi-index following `idxs` in first-fastest order.

    Incrementing the last combination wraps every component back to zero.
    """
    validate_dims_idxs(dims, idxs)
    out = [int(k) for k in idxs]
    for i, d in enumerate(dims):
        out[i] += 1
        if out[i] < int(d):
            break
        out[i] = 0
    return out


def _size(dims: Sequence[int]) -> int:
    n = 1
    for d in dims:
        n *= int(d)
    return n


@dataclass(frozen=True)
class ParamSpec:
    """One registered parameter: its dims and where its elements start in the flat layout."""

    name: str
    dims: tuple[int, ...]
    start: int

    @property
    def size(self) -> int:
        return _size(self.dims)


class IndexSchema:
    """Ordered parameter registry mapping (parameter, multi-index) to flat indices."""

    def __init__(self, specs: Iterable[tuple[str, Sequence[int]]]):
        params: list[ParamSpec] = []
        seen: dict[str, int] = {}
        start = 0
        for name, dims in specs:
            name = str(name)
            if name in seen:
                raise InvalidArgumentError(f"duplicate parameter name '{name}'.")
            dims_t = tuple(int(d) for d in dims)
            if any(d <= 0 for d in dims_t):
                raise InvalidArgumentError(f"parameter '{name}' has non-positive dims {dims_t}.")
            seen[name] = len(params)
            p = ParamSpec(name=name, dims=dims_t, start=start)
            params.append(p)
            start += p.size
        self._params = tuple(params)
        self._by_name = seen
        self._num_params = start

    @classmethod
    def from_names_dims(cls, names: Sequence[str], dimss: Sequence[Sequence[int]]) -> "IndexSchema":
        if len(names) != len(dimss):
            raise InvalidArgumentError(f"{len(names)} names but {len(dimss)} dims entries.")
        return cls(zip(names, dimss))

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        body = ", ".join(f"{p.name}{list(p.dims)}" for p in self._params)
        return f"IndexSchema({body})"

    @property
    def params(self) -> tuple[ParamSpec, ...]:
        return self._params

    @property
    def num_params(self) -> int:
        """Total number of flat elements."""
        return self._num_params

    @property
    def num_param_names(self) -> int:
        return len(self._params)

    @property
    def param_names(self) -> list[str]:
        return [p.name for p in self._params]

    @property
    def param_starts(self) -> list[int]:
        return [p.start for p in self._params]

    @property
    def param_sizes(self) -> list[int]:
        return [p.size for p in self._params]

    @property
    def param_dimss(self) -> list[tuple[int, ...]]:
        return [p.dims for p in self._params]

    def _spec(self, i: int) -> ParamSpec:
        return self._params[check_index(i, len(self._params), "parameter")]

    def param_name(self, i: int) -> str:
        return self._spec(i).name

    def param_start(self, i: int) -> int:
        return self._spec(i).start

    def param_size(self, i: int) -> int:
        return self._spec(i).size

    def param_dims(self, i: int) -> tuple[int, ...]:
        return self._spec(i).dims

    def param_name_to_index(self, name: str) -> int:
        try:
            return self._by_name[str(name)]
        except KeyError:
            raise OutOfRangeError(f"unknown parameter name '{name}'.") from None

    def get_total_param_index(self, param_index: int, idxs: Sequence[int]) -> int:
        p = self._spec(param_index)
        validate_dims_idxs(p.dims, idxs)
        return p.start + get_offset(p.dims, idxs)

    def flat_index_to_param(self, flat: int) -> tuple[int, tuple[int, ...]]:
        """Inverse of `get_total_param_index`: (parameter index, multi-index)."""
        flat = check_index(flat, self._num_params, "flat index")
        # Starts strictly increase since every extent is positive.
        i = bisect.bisect_right(self.param_starts, flat) - 1
        p = self._params[i]
        rem = flat - p.start
        idxs = []
        for d in p.dims:
            idxs.append(rem % d)
            rem //= d
        return i, tuple(idxs)

    def flat_names(self, base: int = 1) -> list[str]:
        """Labels for every flat element, e.g. `['b', 'a.1', 'a.2', 'c.1.1', ...]`."""
        out: list[str] = []
        for p in self._params:
            if not p.dims:
                out.append(p.name)
                continue
            idxs = [0] * len(p.dims)
            for _ in range(p.size):
                out.append(p.name + "".join(f".{k + int(base)}" for k in idxs))
                idxs = increment_indexes(p.dims, idxs)
        return out
