from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, Any, List, Optional
from ..config import SimConfig
from ..runtime.stats import StatsReport
from . import viz


def _fmt(value: Optional[float], suffix: str = "") -> str:
    return "n/a" if value is None else f"{value:.2f}{suffix}"


def generate_report_json(report: StatsReport, config: SimConfig) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary from the statistics snapshot."""
    levels = []
    for lvl in report.levels:
        entry = {
            "name": lvl.name,
            "policy": lvl.policy,
            "accesses": lvl.accesses,
            "hits": lvl.hits,
            "misses": lvl.misses,
        }
        # Miss rate is undefined for a level that was never probed
        if lvl.miss_rate_pct is not None:
            entry["miss_rate_pct"] = round(lvl.miss_rate_pct, 4)
        levels.append(entry)

    average_latency = {}
    if report.avg_latency_instr is not None:
        average_latency["instruction"] = report.avg_latency_instr
    if report.avg_latency_data is not None:
        average_latency["data"] = report.avg_latency_data

    return {
        "total_accesses": report.total_accesses,
        "instruction_accesses": report.instruction_accesses,
        "data_accesses": report.data_accesses,
        "average_latency": average_latency,
        "levels": levels,
        "prefetches": report.prefetches,
        "prefetch_latency_sum": report.prefetch_latency_sum,
        "clock": report.clock,
        "config": config.to_dict(),
    }


def format_report_text(report: StatsReport) -> str:
    """Human-readable summary, one line per level."""
    lines: List[str] = ["--- Simulation Statistics ---"]
    lines.append(f"Memory accesses: {report.total_accesses} "
                 f"(instruction: {report.instruction_accesses}, data: {report.data_accesses})")
    lines.append(f"Average instruction latency: {_fmt(report.avg_latency_instr, ' cycles')}")
    lines.append(f"Average data latency: {_fmt(report.avg_latency_data, ' cycles')}")
    for lvl in report.levels:
        lines.append(f"{lvl.name} [{lvl.policy}] hits: {lvl.hits}, misses: {lvl.misses}, "
                     f"miss rate: {_fmt(lvl.miss_rate_pct, '%')}")
    if report.prefetches:
        lines.append(f"Prefetches: {report.prefetches}, total prefetch latency: {report.prefetch_latency_sum} cycles")
    return "\n".join(lines) + "\n"


def generate_report(report: StatsReport, config: SimConfig):
    """Generates all report artifacts."""
    report_data = generate_report_json(report, config)
    output_dir = Path(config.report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "report.json", "w") as f:
        json.dump(report_data, f, indent=4)

    text = format_report_text(report)
    with open(output_dir / "report.txt", "w") as f:
        f.write(text)

    viz.export_miss_rate_chart(report_data['levels'], str(output_dir / "report.html"))

    print(text)
    print(viz.export_miss_rate_ascii(report_data['levels']))

    print(f"Reports generated in {output_dir.absolute()}")
