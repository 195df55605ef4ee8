from pathlib import Path

import numpy as np
import pytest

from posterior_chains import stats
from posterior_chains.config import ChainsConfig
from posterior_chains.errors import InvalidArgumentError
from posterior_chains.variables import (
    load_chains,
    parse_variables,
    read_draws,
    read_header,
    read_variables,
    split_column,
)


def _blocker_columns() -> list[str]:
    cols = ["lp__", "treedepth__", "d", "sigmasq_delta"]
    cols += [f"mu.{i}" for i in range(1, 23)]
    cols += [f"delta.{i}" for i in range(1, 23)]
    cols += ["sigma_delta"]
    return cols


def _write_csv(path: Path, columns: list[str], draws: np.ndarray) -> Path:
    lines = [
        "# model = toy_model",
        "# seed = 1",
        ",".join(columns),
        "# Adaptation terminated",
        "# Step size = 0.8",
    ]
    lines += [",".join(f"{v:.17g}" for v in row) for row in draws]
    lines += ["", "#  Elapsed Time: 0.1 seconds"]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_split_column():
    assert split_column("lp__") == ("lp__", ())
    assert split_column("mu.12") == ("mu", (12,))
    assert split_column("theta.2.3") == ("theta", (2, 3))


def test_parse_variables_like_sampler_header():
    names, dimss = parse_variables(_blocker_columns())
    assert names == ["lp__", "treedepth__", "d", "sigmasq_delta", "mu", "delta", "sigma_delta"]
    assert dimss == [(), (), (), (), (22,), (22,), ()]


def test_parse_variables_multidim_and_index_base():
    cols = ["a.1.1", "a.2.1", "a.1.3", "a.2.3", "b"]
    assert parse_variables(cols) == (["a", "b"], [(2, 3), ()])
    cols0 = ["a.0.0", "a.1.0", "a.1.2"]
    assert parse_variables(cols0, index_base=0) == (["a"], [(2, 3)])


def test_parse_variables_errors():
    with pytest.raises(InvalidArgumentError):
        parse_variables(["a.0"], index_base=1)
    with pytest.raises(InvalidArgumentError):
        parse_variables(["a.1", "a.1.1"])
    with pytest.raises(InvalidArgumentError):
        parse_variables(["a", "a"])


def test_read_header_and_variables(tmp_path):
    cols = _blocker_columns()
    path = _write_csv(tmp_path / "blocker1.csv", cols, np.zeros((2, len(cols))))
    assert read_header(path) == cols
    names, dimss = read_variables(path)
    assert names[4] == "mu"
    assert dimss[4] == (22,)


def test_read_draws_skips_comment_lines(tmp_path):
    cols = ["lp__", "x.1", "x.2"]
    draws = np.array([[-1.0, 0.5, 1.5], [-2.0, 0.25, 2.5], [-3.0, 0.125, 3.5]])
    path = _write_csv(tmp_path / "c.csv", cols, draws)
    got_cols, got = read_draws(path)
    assert got_cols == cols
    assert np.array_equal(got, draws)


def test_load_chains(tmp_path):
    cols = ["lp__", "x.1.1", "x.2.1", "x.1.2", "x.2.2"]
    rng = np.random.default_rng(3)
    paths = []
    blocks = []
    for k in range(3):
        draws = rng.normal(size=(20 + k, len(cols)))
        blocks.append(draws)
        paths.append(_write_csv(tmp_path / f"chain_{k}.csv", cols, draws))

    chains = load_chains(paths, config=ChainsConfig(warmup=5, seed=11))
    assert chains.num_chains == 3
    assert chains.param_names == ["lp__", "x"]
    assert chains.param_dims(1) == (2, 2)
    assert [chains.num_kept_samples(k) for k in range(3)] == [15, 16, 17]
    j = chains.get_total_param_index(1, [1, 0])
    assert np.allclose(chains.get_kept_samples(j, chain=2), blocks[2][5:, 2])
    assert stats.mean(chains, 0) == pytest.approx(np.mean(np.concatenate([b[5:, 0] for b in blocks])))


def test_load_chains_reorders_columns_into_flat_order(tmp_path):
    cols = ["x.1.2", "x.1.1", "x.2.1", "x.2.2"]
    draws = np.array([[3.0, 1.0, 2.0, 4.0]])
    path = _write_csv(tmp_path / "c.csv", cols, draws)
    chains = load_chains([path])
    assert [float(chains.get_samples(j)[0]) for j in range(4)] == [1.0, 2.0, 3.0, 4.0]


def test_load_chains_errors(tmp_path):
    a = _write_csv(tmp_path / "a.csv", ["x", "y"], np.zeros((2, 2)))
    b = _write_csv(tmp_path / "b.csv", ["x", "z"], np.zeros((2, 2)))
    with pytest.raises(InvalidArgumentError):
        load_chains([a, b])
    with pytest.raises(InvalidArgumentError):
        load_chains([])
    sparse = _write_csv(tmp_path / "s.csv", ["x.1", "x.3"], np.zeros((2, 2)))
    with pytest.raises(InvalidArgumentError):
        load_chains([sparse])
    empty = tmp_path / "e.csv"
    empty.write_text("# only comments\n", encoding="utf-8")
    with pytest.raises(InvalidArgumentError):
        read_header(empty)


def test_quoted_header_names_are_unquoted(tmp_path):
    path = tmp_path / "quoted.csv"
    path.write_text('# comment\n"lp__","mu.1","mu.2"\n1,2,3\n', encoding="utf-8")
    assert read_header(path) == ["lp__", "mu.1", "mu.2"]
    assert read_variables(path) == (["lp__", "mu"], [(), (2,)])
    cols, draws = read_draws(path)
    assert cols == ["lp__", "mu.1", "mu.2"]
    assert np.array_equal(draws, [[1.0, 2.0, 3.0]])
    chains = load_chains([path])
    assert chains.param_names == ["lp__", "mu"]
    assert [float(chains.get_samples(j)[0]) for j in range(3)] == [1.0, 2.0, 3.0]


def test_read_draws_rejects_non_numeric_values(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("lp__,x\n1,oops\n", encoding="utf-8")
    with pytest.raises(InvalidArgumentError):
        read_draws(path)


def test_load_chains_takes_header_from_first_file(tmp_path):
    empty = tmp_path / "e.csv"
    empty.write_text("# only comments\n", encoding="utf-8")
    good = _write_csv(tmp_path / "g.csv", ["x"], np.zeros((2, 1)))
    with pytest.raises(InvalidArgumentError):
        load_chains([empty, good])
    with pytest.raises(InvalidArgumentError):
        load_chains([good, empty])
    chains = load_chains([good, good])
    assert chains.num_chains == 2
    assert chains.num_samples() == 4
