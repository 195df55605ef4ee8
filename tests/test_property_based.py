import numpy as np
import pytest

from posterior_chains.indexing import get_offset, increment_indexes
from posterior_chains.permutation import permutation, permute

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, settings
from hypothesis import strategies as st


@given(dims=st.lists(st.integers(min_value=1, max_value=4), min_size=1, max_size=4))
@settings(max_examples=50)
def test_increment_enumerates_every_offset_once_in_order(dims):
    total = int(np.prod(dims))
    idxs = [0] * len(dims)
    for expected in range(total):
        assert get_offset(dims, idxs) == expected
        idxs = increment_indexes(dims, idxs)
    assert idxs == [0] * len(dims)


@given(
    n=st.integers(min_value=0, max_value=300),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
@settings(max_examples=50)
def test_permutation_and_permute_preserve_values(n, seed):
    pi = permutation(n, np.random.default_rng(seed))
    assert sorted(pi.tolist()) == list(range(n))
    x = np.arange(n, dtype=float) * 0.5
    assert np.sum(permute(pi, x)) == np.sum(x)
