from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from .chains import Chains
from .config import ChainsConfig
from .errors import InvalidArgumentError
from .indexing import IndexSchema, get_offset

logger = logging.getLogger(__name__)

# `name.i1.i2...`; the base name is everything before the trailing numeric suffixes.
_COLUMN_RE = re.compile(r"^(?P<base>.+?)(?P<idx>(?:\.\d+)+)$")


def split_column(column: str) -> tuple[str, tuple[int, ...]]:
    """Split `'theta.2.3'` into `('theta', (2, 3))`; unsuffixed names give `()`."""
    column = str(column).strip()
    m = _COLUMN_RE.match(column)
    if not m:
        return column, ()
    idx = tuple(int(s) for s in m.group("idx").split(".")[1:])
    return str(m.group("base")), idx


def parse_variables(columns: Sequence[str], *, index_base: int = 1) -> tuple[list[str], list[tuple[int, ...]]]:
    """Infer `(names, dimss)` from flattened column names, in first-appearance order.

    Each extent is `max_index - index_base + 1` over all columns sharing the base name.
    Columns without index suffixes are scalars (empty dims).
    """
    base = int(index_base)
    order: list[str] = []
    maxes: dict[str, list[int]] = {}
    for col in columns:
        name, idx = split_column(col)
        if any(i < base for i in idx):
            raise InvalidArgumentError(f"column '{col}' has an index below base {base}.")
        if name not in maxes:
            order.append(name)
            maxes[name] = [i - base for i in idx]
            continue
        cur = maxes[name]
        if len(cur) != len(idx):
            raise InvalidArgumentError(f"column '{col}' does not match the rank of earlier '{name}' columns.")
        if not idx:
            raise InvalidArgumentError(f"duplicate scalar column '{col}'.")
        maxes[name] = [max(a, i - base) for a, i in zip(cur, idx, strict=True)]
    return order, [tuple(m + 1 for m in maxes[n]) for n in order]


def _read_csv(path: Path, **kwargs) -> pd.DataFrame:
    try:
        return pd.read_csv(path, comment="#", skip_blank_lines=True, **kwargs)
    except pd.errors.EmptyDataError as e:
        raise InvalidArgumentError(f"{path}: no header line found.") from e


def read_header(path: str | Path) -> list[str]:
    """Column names of a sampler CSV file (`#` comment lines are skipped)."""
    path = Path(path).expanduser().resolve()
    return [str(c).strip() for c in _read_csv(path, nrows=0).columns]


def read_variables(path: str | Path, *, index_base: int = 1) -> tuple[list[str], list[tuple[int, ...]]]:
    return parse_variables(read_header(path), index_base=index_base)


def read_draws(path: str | Path) -> tuple[list[str], np.ndarray]:
    """Read `(columns, draws)` from a sampler CSV; draws has one row per draw."""
    path = Path(path).expanduser().resolve()
    df = _read_csv(path)
    columns = [str(c).strip() for c in df.columns]
    try:
        draws = df.to_numpy(dtype=float)
    except ValueError as e:
        raise InvalidArgumentError(f"{path}: non-numeric draw values ({e}).") from e
    return columns, draws


def flat_column_order(columns: Sequence[str], schema: IndexSchema, *, index_base: int = 1) -> np.ndarray:
    """Position in `columns` of each flat element of `schema`."""
    base = int(index_base)
    order = np.full(schema.num_params, -1, dtype=np.int64)
    for pos, col in enumerate(columns):
        name, idx = split_column(col)
        i = schema.param_name_to_index(name)
        p = schema.params[i]
        flat = p.start + get_offset(p.dims, [k - base for k in idx])
        if order[flat] >= 0:
            raise InvalidArgumentError(f"duplicate column '{col}'.")
        order[flat] = pos
    if np.any(order < 0):
        labels = schema.flat_names(base)
        missing = [labels[j] for j in np.flatnonzero(order < 0)]
        raise InvalidArgumentError(f"columns missing for flat elements: {missing[:10]}.")
    return order


def load_chains(paths: Sequence[str | Path], *, config: ChainsConfig | None = None) -> Chains:
    """Build a `Chains` store with one chain per CSV file."""
    config = ChainsConfig() if config is None else config
    if not paths:
        raise InvalidArgumentError("at least one chain file is required.")

    header = read_header(paths[0])
    blocks: list[np.ndarray] = []
    for p in paths:
        columns, draws = read_draws(p)
        if columns != header:
            raise InvalidArgumentError(f"{p}: header differs from the first chain file.")
        blocks.append(draws)
        logger.info("read %d draws x %d columns from %s", draws.shape[0], draws.shape[1], p)

    names, dimss = parse_variables(header, index_base=config.index_base)
    schema = IndexSchema.from_names_dims(names, dimss)
    order = flat_column_order(header, schema, index_base=config.index_base)

    chains = Chains.from_schema(len(blocks), schema, seed=config.seed)
    for k, draws in enumerate(blocks):
        chains.add_samples(k, draws[:, order])
    chains.set_warmup(config.warmup)
    return chains
