from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path

from .chain import DEFAULT_RPC_URL, RECEIPT_TIMEOUT_S_DEFAULT, Chain
from .charts import CHART_FILENAME, render_gas_chart
from .config import CLAIMING, MeasurementPlan, default_measurement_plan, plan_from_dict
from .errors import HarnessError
from .manifest import ContractResolver, DeploymentManifest
from .report import ResultsReporter
from .session import run_session

LOGGER = logging.getLogger("gasbench")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Progressive-load gas measurement harness")
    parser.add_argument(
        "--rpc-url", default=os.environ.get("GASBENCH_RPC_URL", DEFAULT_RPC_URL)
    )
    parser.add_argument(
        "--deployment-path",
        default=os.environ.get("GASBENCH_DEPLOYMENT_PATH", "./publish/deployed/local-ovm"),
        help="Directory holding deployment.json (or the manifest file itself)",
    )
    parser.add_argument(
        "--output-dir",
        default=os.environ.get("GASBENCH_OUTPUT_DIR", "test/gas"),
        help="Directory to store measurements.json, the sample CSV and the chart",
    )
    parser.add_argument(
        "--plan-path",
        default=os.environ.get("GASBENCH_PLAN_PATH"),
        help="Optional JSON file overriding the default measurement plan",
    )
    parser.add_argument("--max-assets", type=int, help="Highest synth count to measure")
    parser.add_argument("--repeat", type=int, help="Passes of the operation sequence per level")
    parser.add_argument(
        "--enable-claiming",
        action="store_true",
        help="Also measure fee claiming (fast-forwards the chain each pass)",
    )
    parser.add_argument(
        "--no-preconditions",
        action="store_true",
        help="Submit exchange/burn without checking the signer's balance first",
    )
    parser.add_argument("--no-charts", action="store_true", help="Skip chart rendering")
    parser.add_argument("--signer-index", type=int, default=0)
    parser.add_argument(
        "--receipt-timeout",
        type=float,
        default=float(os.environ.get("GASBENCH_RECEIPT_TIMEOUT", RECEIPT_TIMEOUT_S_DEFAULT)),
        help="Seconds to wait for a transaction receipt",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the planned levels and operations without touching the chain",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("GASBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def load_plan(args: argparse.Namespace) -> MeasurementPlan:
    plan = default_measurement_plan()
    if args.plan_path:
        document = json.loads(Path(args.plan_path).read_text(encoding="utf-8"))
        plan = plan_from_dict(document)

    overrides = {}
    if args.max_assets is not None:
        overrides["max_assets"] = args.max_assets
    if args.repeat is not None:
        overrides["repeat_count"] = args.repeat
    if args.no_preconditions:
        overrides["check_preconditions"] = False
    if overrides:
        plan = dataclasses.replace(plan, **overrides)
    if args.enable_claiming:
        enabled = {spec.name for spec in plan.categories if spec.enabled}
        plan = plan.with_enabled(enabled | {CLAIMING})
    return plan


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        plan = load_plan(args)
    except (OSError, ValueError, TypeError) as exc:
        LOGGER.error("Invalid measurement plan: %s", exc)
        return 2

    output_dir = Path(args.output_dir)
    LOGGER.info("Results directory: %s", output_dir)
    LOGGER.info("Deployment manifest: %s", args.deployment_path)

    if args.dry_run:
        _print_plan(plan)
        return 0

    reporter = ResultsReporter.for_directory(output_dir)
    reporter.reset()
    try:
        manifest = DeploymentManifest.load(Path(args.deployment_path))
        chain = Chain.connect(
            args.rpc_url,
            signer_index=args.signer_index,
            receipt_timeout_s=args.receipt_timeout,
        )
        LOGGER.info("Signer: %s", chain.signer)
        report = run_session(chain, ContractResolver(manifest, chain.signer), plan, reporter)
    except HarnessError:
        LOGGER.exception("Gas measurement session aborted")
        return 1

    if not args.no_charts:
        render_gas_chart(report.build_dataframe(), output_dir / CHART_FILENAME)
    return 0


def _print_plan(plan: MeasurementPlan) -> None:
    quantities = plan.quantities
    print(
        f"Levels 1..{plan.max_assets}, {plan.repeat_count} pass(es) per level, "
        f"sentinel={plan.sentinel_gas_cost}"
    )
    print(
        f"  quantities: mint={quantities.mint} exchange={quantities.exchange} "
        f"burn={quantities.burn}"
    )
    for spec in plan.categories:
        state = "enabled" if spec.enabled else "disabled"
        print(f"  - {spec.name}: {state}")
    for level in plan.levels():
        target = plan.target_symbol(level)
        suffix = f", exchanging {plan.base_asset}<->{target}" if target else ""
        print(f"  level {level}: {level} synth(s){suffix}")


if __name__ == "__main__":
    sys.exit(main())
