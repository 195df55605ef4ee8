from __future__ import annotations

import argparse
import json
import logging
import shlex
import sys
from pathlib import Path

from posterior_chains.config import ChainsConfig
from posterior_chains.errors import InvalidArgumentError, attempt
from posterior_chains.report import ReportPaths, summary_markdown, summary_table, write_markdown_report
from posterior_chains.stats import summarize
from posterior_chains.variables import load_chains

logger = logging.getLogger("summarize_chains")


def _load_config(args: argparse.Namespace) -> ChainsConfig:
    base: dict = {}
    if args.config is not None:
        try:
            base = json.loads(Path(args.config).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidArgumentError(f"{args.config}: not valid JSON ({e}).") from e
        if not isinstance(base, dict):
            raise InvalidArgumentError(f"{args.config}: expected a JSON object.")
    if args.seed is not None:
        base["seed"] = int(args.seed)
    if args.warmup is not None:
        base["warmup"] = int(args.warmup)
    if args.index_base is not None:
        base["index_base"] = int(args.index_base)
    if args.prob:
        base["probs"] = [float(p) for p in args.prob]
    return ChainsConfig.from_mapping(base)


def main() -> int:
    ap = argparse.ArgumentParser(description="Summarize posterior draws from one CSV file per chain.")
    ap.add_argument("csv", nargs="+", type=Path, help="Sampler CSV files, one per chain.")
    ap.add_argument("--config", type=Path, default=None, help="JSON file with seed/warmup/index_base/probs.")
    ap.add_argument("--warmup", type=int, default=None, help="Draws to discard at the start of every chain.")
    ap.add_argument("--seed", type=int, default=None, help="Seed for the pooled-draw permutation.")
    ap.add_argument("--index-base", type=int, default=None, choices=[0, 1])
    ap.add_argument("--prob", type=float, action="append", default=None, help="Quantile to report (repeatable).")
    ap.add_argument("--out", type=Path, default=None, help="Write report.md and tables/summary.json here.")
    ap.add_argument("--json", action="store_true", help="Print JSON instead of a markdown table.")
    ap.add_argument("--verbose", "-v", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    cfg = attempt(_load_config, args)
    if not cfg.ok:
        print(f"error ({cfg.kind.value}): {cfg.message}", file=sys.stderr)
        return 2
    config = cfg.value

    loaded = attempt(load_chains, args.csv, config=config)
    if not loaded.ok:
        print(f"error ({loaded.kind.value}): {loaded.message}", file=sys.stderr)
        return 2
    chains = loaded.value
    logger.info("loaded %r", chains)

    res = attempt(summarize, chains, config.probs, index_base=config.index_base)
    if not res.ok:
        print(f"error ({res.kind.value}): {res.message}", file=sys.stderr)
        return 2
    summaries = res.value

    payload = {
        "config": config.to_jsonable(),
        "num_chains": chains.num_chains,
        "num_kept_samples": chains.num_kept_samples(),
        "params": [s.to_jsonable() for s in summaries],
    }
    if args.json:
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        print(summary_table(summaries))

    if args.out is not None:
        paths = ReportPaths(out_dir=args.out.expanduser().resolve())
        paths.tables_dir.mkdir(parents=True, exist_ok=True)
        paths.summary_json.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        command = " ".join(shlex.quote(str(a)) for a in sys.argv)
        write_markdown_report(paths=paths, markdown=summary_markdown(chains, summaries, command=command))
        print(f"Wrote {paths.report_md}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
