from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

SENTINEL_GAS_COST = 9_000_000
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
BASE_ASSET = "sUSD"
UNBOUNDED_STALE_PERIOD = 1_000_000_000_000_000

MINTING = "minting"
BURNING = "burning"
EXCHANGING = "exchanging"
CLAIMING = "claiming"
CATEGORIES: tuple[str, ...] = (MINTING, BURNING, EXCHANGING, CLAIMING)


@dataclass(frozen=True)
class ContractNames:
    """Manifest names of the protocol contracts the harness talks to."""

    synthetix: str = "Synthetix"
    issuer: str = "Issuer"
    exchange_rates: str = "ExchangeRates"
    debt_cache: str = "DebtCache"
    address_resolver: str = "ReadProxyAddressResolver"
    system_settings: str = "SystemSettings"
    fee_pool: str = "FeePool"
    base_synth: str = "SynthsUSD"
    token_state_artifact: str = "TokenStatesUSD"
    proxy_artifact: str = "ProxysUSD"
    synth_artifact: str = "SynthsUSD"


@dataclass(frozen=True)
class OperationQuantities:
    """Whole-unit amounts submitted by each measured operation."""

    mint: int = 100
    exchange: int = 1
    burn: int = 50

    def __post_init__(self) -> None:
        for name in ("mint", "exchange", "burn"):
            if getattr(self, name) <= 0:
                raise ValueError(f"OperationQuantities.{name} must be > 0")
        if self.burn >= self.mint:
            raise ValueError("OperationQuantities.burn must be smaller than mint")


@dataclass(frozen=True)
class CategorySpec:
    name: str
    enabled: bool = True


def default_categories() -> tuple[CategorySpec, ...]:
    return tuple(CategorySpec(name, enabled=name != CLAIMING) for name in CATEGORIES)


@dataclass(frozen=True)
class MeasurementPlan:
    """Everything that shapes a session: load levels, repetitions and amounts."""

    max_assets: int = 10
    repeat_count: int = 3
    quantities: OperationQuantities = field(default_factory=OperationQuantities)
    categories: tuple[CategorySpec, ...] = field(default_factory=default_categories)
    check_preconditions: bool = True
    base_asset: str = BASE_ASSET
    asset_symbol_prefix: str = "s"
    seed_rate_keys: tuple[str, ...] = ("SNX", "ETH")
    stale_period: int = UNBOUNDED_STALE_PERIOD
    sentinel_gas_cost: int = SENTINEL_GAS_COST
    contracts: ContractNames = field(default_factory=ContractNames)

    def __post_init__(self) -> None:
        if self.max_assets < 1:
            raise ValueError("MeasurementPlan.max_assets must be >= 1")
        if self.repeat_count < 1:
            raise ValueError("MeasurementPlan.repeat_count must be >= 1")
        unknown = {spec.name for spec in self.categories} - set(CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown measurement categories: {sorted(unknown)}")

    @property
    def category_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.categories)

    def is_enabled(self, category: str) -> bool:
        return any(spec.name == category and spec.enabled for spec in self.categories)

    def levels(self) -> range:
        return range(1, self.max_assets + 1)

    def asset_symbol(self, index: int) -> str:
        return f"{self.asset_symbol_prefix}{index}"

    def target_symbol(self, level: int) -> str | None:
        """Symbol of the newest synth at ``level``; ``None`` when only the base exists."""
        if level < 2:
            return None
        return self.asset_symbol(level - 1)

    def with_enabled(self, enabled: Iterable[str]) -> "MeasurementPlan":
        wanted = set(enabled)
        categories = tuple(
            CategorySpec(spec.name, enabled=spec.name in wanted) for spec in self.categories
        )
        return dataclasses.replace(self, categories=categories)


def level_label(level: int) -> str:
    return f"{level}_synths"


def default_measurement_plan() -> MeasurementPlan:
    """Return the stock plan: 1..10 synths, three passes per level, claiming off."""

    return MeasurementPlan()


def plan_from_dict(document: Mapping[str, Any]) -> MeasurementPlan:
    plan = default_measurement_plan()
    overrides: dict[str, Any] = {}
    for key in ("max_assets", "repeat_count"):
        if key in document:
            overrides[key] = int(document[key])
    if "check_preconditions" in document:
        overrides["check_preconditions"] = bool(document["check_preconditions"])
    if "quantities" in document:
        overrides["quantities"] = dataclasses.replace(
            plan.quantities,
            **{key: int(value) for key, value in document["quantities"].items()},
        )
    plan = dataclasses.replace(plan, **overrides)
    if "enabled_categories" in document:
        plan = plan.with_enabled(document["enabled_categories"])
    return plan

