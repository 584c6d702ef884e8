from __future__ import annotations

import logging

from .chain import Chain, from_bytes32, to_bytes32, to_units
from .config import MeasurementPlan
from .errors import BaselineSetupError, ChainError
from .manifest import ProtocolContracts

LOGGER = logging.getLogger("gasbench.baseline")


class SystemConfigurator:
    """Puts the protocol into the state every session starts from.

    Each step is its own mined transaction; later steps read state written by
    earlier ones. Any failure is fatal: measurements taken against a half
    configured protocol are meaningless.
    """

    def __init__(self, chain: Chain, contracts: ProtocolContracts, plan: MeasurementPlan) -> None:
        self._chain = chain
        self._contracts = contracts
        self._plan = plan

    def establish_baseline(self) -> None:
        steps = (
            ("remove settlement delays", self._remove_delays),
            ("relax rate staleness", self._relax_staleness),
            ("remove extra synths", self._remove_extra_synths),
            ("seed rates", self._seed_rates),
            ("take debt snapshot", self._take_debt_snapshot),
        )
        for description, step in steps:
            LOGGER.debug("Baseline step: %s", description)
            try:
                step()
            except ChainError as exc:
                raise BaselineSetupError(f"baseline step '{description}' failed: {exc}") from exc
        LOGGER.info("Baseline established")

    def _remove_delays(self) -> None:
        settings = self._contracts.system_settings
        self._chain.send(settings, "setMinimumStakeTime", 0)
        self._chain.send(settings, "setWaitingPeriodSecs", 0)

    def _relax_staleness(self) -> None:
        self._chain.send(self._contracts.system_settings, "setRateStalePeriod", self._plan.stale_period)

    def _remove_extra_synths(self) -> None:
        issuer = self._contracts.issuer
        currency_keys = self._chain.call(issuer, "availableCurrencyKeys")
        to_remove = [key for key in currency_keys if from_bytes32(key) != self._plan.base_asset]
        if not to_remove:
            return
        LOGGER.info("Removing synths: %s", ", ".join(from_bytes32(key) for key in to_remove))
        self._chain.send(issuer, "removeSynths", to_remove)

    def _seed_rates(self) -> None:
        keys = [to_bytes32(symbol) for symbol in self._plan.seed_rate_keys]
        rates = [to_units(1) for _ in keys]
        timestamp = self._chain.latest_timestamp()
        self._chain.send(self._contracts.exchange_rates, "updateRates", keys, rates, timestamp)

    def _take_debt_snapshot(self) -> None:
        self._chain.send(self._contracts.debt_cache, "takeDebtSnapshot")

