from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .chains import Chains
from .stats import ParamSummary


@dataclass(frozen=True)
class ReportPaths:
    out_dir: Path

    @property
    def tables_dir(self) -> Path:
        return self.out_dir / "tables"

    @property
    def summary_json(self) -> Path:
        return self.tables_dir / "summary.json"

    @property
    def report_md(self) -> Path:
        return self.out_dir / "report.md"


def write_markdown_report(*, paths: ReportPaths, markdown: str) -> None:
    paths.out_dir.mkdir(parents=True, exist_ok=True)
    paths.report_md.write_text(markdown, encoding="utf-8")


def format_table(rows: list[list], headers: list[str]) -> str:
    """Minimal markdown table formatter."""
    if len(headers) == 0:
        raise ValueError("headers must be non-empty")
    widths = [len(h) for h in headers]
    for r in rows:
        if len(r) != len(headers):
            raise ValueError("Row length mismatch.")
        widths = [max(w, len(str(v))) for w, v in zip(widths, r, strict=True)]
    def fmt_row(r):
        return "| " + " | ".join(str(v).ljust(w) for v, w in zip(r, widths, strict=True)) + " |"
    out = [fmt_row(headers), "| " + " | ".join("-" * w for w in widths) + " |"]
    out += [fmt_row(r) for r in rows]
    return "\n".join(out)


def _prob_header(p: float) -> str:
    return f"{100.0 * p:g}%"


def summary_table(summaries: Sequence[ParamSummary], *, digits: int = 4) -> str:
    if not summaries:
        raise ValueError("summaries must be non-empty")
    probs = summaries[0].probs
    headers = ["param", "mean", "sd"] + [_prob_header(p) for p in probs]
    rows = []
    for s in summaries:
        rows.append(
            [s.label, f"{s.mean:.{digits}g}", f"{s.sd:.{digits}g}"] + [f"{q:.{digits}g}" for q in s.quantiles]
        )
    return format_table(rows=rows, headers=headers)


def summary_markdown(chains: Chains, summaries: Sequence[ParamSummary], *, command: str | None = None) -> str:
    md = ["# Posterior summary\n"]
    counts = [
        [k, chains.num_samples(k), chains.num_warmup_samples(k), chains.num_kept_samples(k)]
        for k in range(chains.num_chains)
    ]
    md.append(format_table(rows=counts, headers=["chain", "draws", "warmup", "kept"]) + "\n")
    md.append(f"Pooled kept draws: {chains.num_kept_samples()} (warmup={chains.warmup}, seed={chains.seed})\n")
    md.append(summary_table(summaries) + "\n")
    if command:
        md.append(f"Command: `{command}`\n")
    return "\n".join(md)
