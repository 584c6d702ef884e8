from __future__ import annotations

import logging
from dataclasses import dataclass

from .chain import Chain, to_bytes32, to_units
from .config import ZERO_ADDRESS, MeasurementPlan
from .errors import ChainError, ProvisioningError
from .manifest import ContractHandle, ContractResolver, ProtocolContracts

LOGGER = logging.getLogger("gasbench.provision")

SYNTH_NAME = "Mock Synth"


@dataclass(frozen=True)
class AssetDescriptor:
    symbol: str
    decimals: int = 18
    is_base: bool = False

    @property
    def currency_key(self) -> bytes:
        return to_bytes32(self.symbol)


@dataclass(frozen=True)
class AssetHandle:
    """A synth known to the harness; proxy and state are only set when deployed here."""

    descriptor: AssetDescriptor
    synth: ContractHandle
    proxy: ContractHandle | None = None
    token_state: ContractHandle | None = None


class AssetProvisioner:
    """Deploys a synth (state, proxy, logic), wires it up and registers it."""

    def __init__(
        self,
        chain: Chain,
        resolver: ContractResolver,
        contracts: ProtocolContracts,
        plan: MeasurementPlan,
    ) -> None:
        self._chain = chain
        self._resolver = resolver
        self._contracts = contracts
        self._plan = plan

    def provision_asset(self, index: int) -> AssetHandle:
        descriptor = AssetDescriptor(symbol=self._plan.asset_symbol(index))
        LOGGER.info("Adding a synth: %s", descriptor.symbol)
        try:
            asset = self._deploy(descriptor)
            self._register(asset)
        except ChainError as exc:
            raise ProvisioningError(f"provisioning synth {descriptor.symbol} failed: {exc}") from exc
        return asset

    def _deploy(self, descriptor: AssetDescriptor) -> AssetHandle:
        names = self._plan.contracts
        signer = self._resolver.signer

        token_state = self._chain.deploy(
            self._resolver.resolve_factory(names.token_state_artifact), signer, ZERO_ADDRESS
        )
        proxy = self._chain.deploy(self._resolver.resolve_factory(names.proxy_artifact), signer)
        synth = self._chain.deploy(
            self._resolver.resolve_factory(names.synth_artifact),
            proxy.address,
            token_state.address,
            SYNTH_NAME,
            descriptor.symbol,
            signer,
            descriptor.currency_key,
            0,
            self._contracts.address_resolver.address,
        )

        self._chain.send(token_state, "setAssociatedContract", synth.address)
        self._chain.send(proxy, "setTarget", synth.address)
        self._chain.send(synth, "setProxy", proxy.address)
        self._chain.send(synth, "rebuildCache")
        return AssetHandle(descriptor=descriptor, synth=synth, proxy=proxy, token_state=token_state)

    def _register(self, asset: AssetHandle) -> None:
        self._chain.send(self._contracts.issuer, "addSynth", asset.synth.address)
        timestamp = self._chain.latest_timestamp()
        self._chain.send(
            self._contracts.exchange_rates,
            "updateRates",
            [asset.descriptor.currency_key],
            [to_units(1)],
            timestamp,
        )
        self._chain.send(self._contracts.debt_cache, "takeDebtSnapshot")

