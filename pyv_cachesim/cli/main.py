from __future__ import annotations
import argparse
import logging
import sys
from ..config import SimConfig, ConfigurationError, LEVEL_KEYS, POLICY_NAMES
from ..ir.trace_importer import load_trace, TraceFormatError
from ..runtime.simulator import CacheSimulator
from ..utils.reporting import generate_report


def cmd_run(args):
    """Handles the 'run' command."""
    try:
        config = SimConfig.from_args(args)
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    if config.verbose:
        logging.getLogger("pyv_cachesim").setLevel(logging.DEBUG)

    print("--- Simulator Configuration ---")
    print(config.to_yaml(), end="")
    print("-----------------------------")

    # 1. Load the trace
    try:
        ops = load_trace(args.trace)
    except (OSError, TraceFormatError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    # 2. Build the hierarchy; bad geometry is fatal
    sim = CacheSimulator()
    try:
        sim.init_hierarchy(config)
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    # 3. Run simulation
    results = sim.run_trace(ops, warmup=config.warmup)
    if config.verbose:
        for result in results:
            print(result.describe())

    # 4. Generate all reports
    generate_report(sim.snapshot_statistics(), config)
    sim.teardown_hierarchy()

    print(f"[OK] Simulation finished. Reports are in {config.report_dir}")
    return 0


def cmd_config(args):
    """Handles the 'config' command: prints the effective configuration."""
    try:
        config = SimConfig.from_args(args)
        for level in config.levels().values():
            level.validate()
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    print(config.to_yaml(), end="")
    return 0


def _add_config_args(p):
    p.add_argument("-c", "--config", type=str, default=None,
                   help="Path to YAML config file to override defaults")
    p.add_argument("--policy", type=str.upper, default=None, choices=POLICY_NAMES,
                   help="Replacement policy for every cache level")
    p.add_argument("--mem-latency", type=int, default=None, dest="mem_latency_cycles",
                   help="Memory access latency in cycles")
    p.add_argument("--seed", type=int, default=None,
                   help="Seed for the RANDOM and BIP policies")
    p.add_argument("--enable", action="append", default=None, dest="enable_levels",
                   choices=LEVEL_KEYS, help="Enable a cache level (repeatable)")
    p.add_argument("--disable", action="append", default=None, dest="disable_levels",
                   choices=LEVEL_KEYS, help="Disable a cache level (repeatable)")


def build_parser():
    p = argparse.ArgumentParser(
        prog="pyv-cachesim",
        description="PyV-CacheSim multi-level cache hierarchy simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- Run Command ---
    pr = sub.add_parser("run", help="Replay a memory access trace",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    pr.add_argument("trace", help="Path to the access trace")
    _add_config_args(pr)
    pr.add_argument("--report", type=str, default=None,
                    help="Directory to save simulation reports")
    pr.add_argument("--warmup", type=int, default=None,
                    help="Number of leading trace operations excluded from statistics")
    pr.add_argument("-v", "--verbose", action="store_true", default=None,
                    help="Print the outcome of every trace operation")
    pr.set_defaults(func=cmd_run)

    # --- Config Command ---
    pc = sub.add_parser("config", help="Print the effective configuration as YAML",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    _add_config_args(pc)
    pc.set_defaults(func=cmd_config)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
