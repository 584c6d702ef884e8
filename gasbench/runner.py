from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .chain import Chain, to_units
from .collector import ResultAggregator
from .config import BURNING, CLAIMING, EXCHANGING, MINTING, MeasurementPlan
from .errors import ChainError, OperationFailure
from .manifest import ProtocolContracts
from .provision import AssetHandle

LOGGER = logging.getLogger("gasbench.runner")


@dataclass(frozen=True)
class BalanceRequirement:
    """The signer must hold at least ``amount`` base units of ``asset``."""

    asset: AssetHandle
    amount: int


@dataclass(frozen=True)
class Stage:
    category: str
    label: str
    submit: Callable[[], Any]
    requirement: BalanceRequirement | None = None


class MeasurementRunner:
    """Runs the mint, exchange, claim, burn sequence and records gas per stage.

    A failing stage is recorded with the sentinel cost and the sequence moves on;
    only chain errors raised while submitting or checking a stage are recovered.
    """

    def __init__(self, chain: Chain, contracts: ProtocolContracts, plan: MeasurementPlan) -> None:
        self._chain = chain
        self._contracts = contracts
        self._plan = plan

    def run_level(
        self,
        aggregator: ResultAggregator,
        base: AssetHandle,
        target: AssetHandle | None = None,
        repeat_count: int | None = None,
    ) -> ResultAggregator:
        repeat_count = self._plan.repeat_count if repeat_count is None else repeat_count
        pipeline = self.build_pipeline(aggregator.level, base, target)
        LOGGER.info(
            "Measuring level %d: %d pass(es) of %s",
            aggregator.level,
            repeat_count,
            " -> ".join(stage.label for stage in pipeline),
        )
        for iteration in range(1, repeat_count + 1):
            LOGGER.debug("Level %d pass %d/%d", aggregator.level, iteration, repeat_count)
            for stage in pipeline:
                self.measure(aggregator, stage)
        return aggregator

    def build_pipeline(
        self, level: int, base: AssetHandle, target: AssetHandle | None
    ) -> list[Stage]:
        quantities = self._plan.quantities
        synthetix = self._contracts.synthetix
        pipeline = [
            Stage(
                category=MINTING,
                label="issueSynths",
                submit=lambda: self._chain.send(
                    synthetix, "issueSynths", to_units(quantities.mint, base.descriptor.decimals)
                ),
            )
        ]

        if level >= 2 and self._plan.is_enabled(EXCHANGING):
            if target is None:
                raise ValueError(f"level {level} needs a target synth to exchange against")
            pipeline.append(self._exchange_stage(base, target, quantities.exchange))
            pipeline.append(self._exchange_stage(target, base, quantities.exchange))

        if self._plan.is_enabled(CLAIMING):
            pipeline.append(Stage(category=CLAIMING, label="claimFees", submit=self._claim_fees))

        burn_amount = to_units(quantities.burn, base.descriptor.decimals)
        pipeline.append(
            Stage(
                category=BURNING,
                label="burnSynths",
                submit=lambda: self._chain.send(synthetix, "burnSynths", burn_amount),
                requirement=BalanceRequirement(base, burn_amount),
            )
        )
        return [stage for stage in pipeline if self._plan.is_enabled(stage.category)]

    def measure(self, aggregator: ResultAggregator, stage: Stage) -> int:
        try:
            receipt = self._execute(stage)
        except OperationFailure as exc:
            LOGGER.warning("%s; recording %d", exc, self._plan.sentinel_gas_cost)
            aggregator.record(stage.category, self._plan.sentinel_gas_cost, succeeded=False)
            return self._plan.sentinel_gas_cost
        gas_used = int(receipt["cumulativeGasUsed"])
        aggregator.record(stage.category, gas_used)
        return gas_used

    def _execute(self, stage: Stage):
        if self._plan.check_preconditions and stage.requirement is not None:
            self._check(stage)
        try:
            return stage.submit()
        except ChainError as exc:
            raise OperationFailure(stage.category, stage.label, str(exc)) from exc

    def _check(self, stage: Stage) -> None:
        requirement = stage.requirement
        symbol = requirement.asset.descriptor.symbol
        try:
            balance = int(self._chain.call(requirement.asset.synth, "balanceOf", self._chain.signer))
        except ChainError as exc:
            raise OperationFailure(stage.category, stage.label, f"balance check failed: {exc}") from exc
        if balance < requirement.amount:
            raise OperationFailure(
                stage.category,
                stage.label,
                f"signer holds {balance} {symbol}, needs {requirement.amount}",
            )

    def _exchange_stage(self, source: AssetHandle, destination: AssetHandle, quantity: int) -> Stage:
        synthetix = self._contracts.synthetix
        amount = to_units(quantity, source.descriptor.decimals)
        return Stage(
            category=EXCHANGING,
            label=f"exchange {source.descriptor.symbol}->{destination.descriptor.symbol}",
            submit=lambda: self._chain.send(
                synthetix,
                "exchange",
                source.descriptor.currency_key,
                amount,
                destination.descriptor.currency_key,
            ),
            requirement=BalanceRequirement(source, amount),
        )

    def _claim_fees(self):
        fee_pool = self._contracts.fee_pool
        if fee_pool is None:
            raise ChainError("claiming is enabled but FeePool was not resolved")
        period = int(self._chain.call(self._contracts.system_settings, "feePeriodDuration"))
        self._chain.fast_forward(period)
        self._chain.send(self._contracts.debt_cache, "takeDebtSnapshot")
        self._chain.send(self._contracts.synthetix, "mint")
        self._chain.send(fee_pool, "closeCurrentFeePeriod")
        return self._chain.send(fee_pool, "claimFees")

