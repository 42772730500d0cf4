from __future__ import annotations
from typing import List, Optional
import argparse
import logging
import os
import sys

from rqsim.engine.config import ARG_NAMES, RunConfig, load_config
from rqsim.engine.coordinator import Coordinator
from rqsim.engine.errors import ConfigurationError
from rqsim.engine.item import ITEM_STRIDE
from rqsim.engine.artifact import RunArtifact
from rqsim.logs import format_timestamp, setup_logging

USAGE = "rqsim run #_of_consumer_threads #_of_producer_threads rate_of_consumption_per_tick #_of_resources_to_produce_per_thread"
LIMITS = f"All values must be > 0; #_of_resources_to_produce_per_thread must be <= {ITEM_STRIDE}."
EXAMPLE = "Example: rqsim run 5 5 10 100"

def build_config(values: List[str], config_path: Optional[str], **overrides) -> RunConfig:
    if config_path is None:
        return RunConfig.from_args(values, **overrides)

    config, _ = load_config(config_path)
    fields = config.to_dict()
    fields.pop("capacity")
    if values:
        positional = RunConfig.from_args(values)
        fields.update({k: getattr(positional, k) for k in ARG_NAMES})
    fields.update({k: v for k, v in overrides.items() if v is not None})
    return RunConfig(**fields)

def cmd_init() -> None:
    os.makedirs("run_examples", exist_ok=True)
    sample = """name: five_by_five
workers:
  consumers: 5
  producers: 5
consumption:
  rate: 10
  tick_s: 1.0
production:
  count_per_producer: 100
queue:
  closed_put_policy: drop
timeouts:
  join_s: 3600
"""
    out = os.path.join("run_examples", "five_by_five.yaml")
    if not os.path.exists(out):
        with open(out, "w", encoding="utf-8") as f:
            f.write(sample)
    print(f"Wrote {out}")

def cmd_run(args: argparse.Namespace) -> None:
    try:
        config = build_config(
            args.values,
            args.config,
            tick_s=args.tick,
            join_timeout_s=args.timeout,
            closed_put_policy=args.policy,
        )
    except ConfigurationError as exc:
        # Nothing has been launched yet.
        print(f"Invalid input: {exc}", file=sys.stderr)
        print("The correct usage is:", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        print(LIMITS, file=sys.stderr)
        print(EXAMPLE)
        return

    artifact = Coordinator(config).run()

    if not args.no_save:
        out_path = os.path.join(args.runs_dir, f"{artifact.run_id}.json")
        artifact.save(out_path)
        print(f"Run saved: {out_path}")
    print("Summary:", artifact.metrics["counters"])
    failed = [r for r in artifact.results if not r["ok"]]
    if failed:
        print(f"{len(failed)} task(s) did not complete")

def cmd_report(run_path: str) -> None:
    artifact = RunArtifact.load(run_path)
    m = artifact.metrics
    print(f"Run:      {artifact.name}")
    print(f"Run ID:   {artifact.run_id}")
    print(f"Created:  {format_timestamp(artifact.created_ts)}")
    print(f"Duration: {m.get('duration_s', 0.0):.3f}s")
    if artifact.timed_out:
        print("Timed out: tasks were cancelled")
    print("Counters:")
    for k, v in sorted(m.get("counters", {}).items()):
        print(f"  {k}: {v}")
    print("Cycles:", m.get("cycles", {}))
    print("Tasks:")
    for r in artifact.results:
        status = "ok" if r["ok"] else f"failed ({r.get('error')})"
        print(f"  {r['kind']} [{r['identity']}]: {r['count']} resources, {status}")

def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="rqsim")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ap.add_argument("--log-file", default=None, help="Also log to a rotating file")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init")

    runp = sub.add_parser("run")
    runp.add_argument("values", nargs="*", help="consumers producers rate count_per_producer")
    runp.add_argument("--config", default=None, help="YAML run config path")
    runp.add_argument("--tick", type=float, default=None, help="Consumer pause per cycle, seconds")
    runp.add_argument("--timeout", type=float, default=None, help="Overall join timeout, seconds")
    runp.add_argument("--policy", choices=["drop", "raise"], default=None, help="Put behaviour once the queue is closed")
    runp.add_argument("--runs-dir", default="runs")
    runp.add_argument("--no-save", action="store_true")

    rep = sub.add_parser("report")
    rep.add_argument("runfile", help="Path to a run json artifact")

    args = ap.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    if args.cmd == "init":
        cmd_init()
    elif args.cmd == "run":
        cmd_run(args)
    elif args.cmd == "report":
        cmd_report(args.runfile)

if __name__ == "__main__":
    main()
