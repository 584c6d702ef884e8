from __future__ import annotations

import logging

from .baseline import SystemConfigurator
from .chain import Chain
from .collector import RunReport
from .config import CLAIMING, MeasurementPlan
from .load import LoadEscalator
from .manifest import ContractResolver, ProtocolContracts
from .provision import AssetProvisioner
from .report import ResultsReporter
from .runner import MeasurementRunner

LOGGER = logging.getLogger("gasbench.session")


def run_session(
    chain: Chain,
    resolver: ContractResolver,
    plan: MeasurementPlan,
    reporter: ResultsReporter,
) -> RunReport:
    """Baseline the protocol, then measure every load level in increasing order.

    The caller clears the previous results before connecting; the file is
    rewritten only after a level completes, so any fatal error leaves the
    snapshot of the finished levels.
    """

    contracts = ProtocolContracts.from_resolver(
        resolver, plan.contracts, include_fee_pool=plan.is_enabled(CLAIMING)
    )
    SystemConfigurator(chain, contracts, plan).establish_baseline()

    provisioner = AssetProvisioner(chain, resolver, contracts, plan)
    escalator = LoadEscalator(chain, resolver, contracts, provisioner, plan)
    runner = MeasurementRunner(chain, contracts, plan)
    report = RunReport(plan.category_names)

    for level in plan.levels():
        LOGGER.info("Taking measurements with %d synth(s)...", level)
        escalator.ensure_load_level(level)
        aggregator = report.begin_level(level)
        runner.run_level(aggregator, escalator.base_asset, escalator.target_asset(level))
        reporter.flush(report)

    return report

