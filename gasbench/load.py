from __future__ import annotations

import logging

from .chain import Chain, to_bytes32
from .config import ZERO_ADDRESS, MeasurementPlan
from .errors import ChainError, ProvisioningError
from .manifest import ContractResolver, ProtocolContracts
from .provision import AssetDescriptor, AssetHandle, AssetProvisioner

LOGGER = logging.getLogger("gasbench.load")


class LoadEscalator:
    """Grows the live synth count one asset at a time, never shrinking it.

    ``ensure_load_level`` is an "at least N" operation against the issuer's
    count, so calling it again for a level that is already satisfied sends no
    transactions.
    """

    def __init__(
        self,
        chain: Chain,
        resolver: ContractResolver,
        contracts: ProtocolContracts,
        provisioner: AssetProvisioner,
        plan: MeasurementPlan,
    ) -> None:
        self._chain = chain
        self._resolver = resolver
        self._contracts = contracts
        self._provisioner = provisioner
        self._plan = plan
        base = AssetHandle(
            descriptor=AssetDescriptor(symbol=plan.base_asset, is_base=True),
            synth=contracts.base_synth,
        )
        self._assets: dict[str, AssetHandle] = {plan.base_asset: base}

    @property
    def assets(self) -> list[AssetDescriptor]:
        return [asset.descriptor for asset in self._assets.values()]

    @property
    def base_asset(self) -> AssetHandle:
        return self._assets[self._plan.base_asset]

    def active_count(self) -> int:
        try:
            return int(self._chain.call(self._contracts.issuer, "availableSynthCount"))
        except ChainError as exc:
            raise ProvisioningError(f"unable to read live synth count: {exc}") from exc

    def ensure_load_level(self, level: int) -> None:
        active = self.active_count()
        LOGGER.info("System synths: %d (target %d)", active, level)
        if active >= level:
            return

        asset = self._provisioner.provision_asset(level - 1)
        self._assets[asset.descriptor.symbol] = asset

        updated = self.active_count()
        LOGGER.info("Updated system synths: %d", updated)
        if updated < level:
            LOGGER.warning(
                "Synth count %d still below level %d; levels must be requested one step at a time",
                updated,
                level,
            )

    def target_asset(self, level: int) -> AssetHandle | None:
        """The newest synth for ``level``, used as the exchange counterparty."""
        symbol = self._plan.target_symbol(level)
        if symbol is None:
            return None
        asset = self._assets.get(symbol)
        if asset is not None:
            return asset
        return self._lookup_registered(symbol)

    def _lookup_registered(self, symbol: str) -> AssetHandle:
        try:
            address = self._chain.call(self._contracts.issuer, "synths", to_bytes32(symbol))
        except ChainError as exc:
            raise ProvisioningError(f"unable to look up synth {symbol}: {exc}") from exc
        if not address or address == ZERO_ADDRESS:
            raise ProvisioningError(f"synth {symbol} is not registered with the issuer")
        synth = self._resolver.attach(self._plan.contracts.synth_artifact, address, name=f"Synth{symbol}")
        asset = AssetHandle(descriptor=AssetDescriptor(symbol=symbol), synth=synth)
        self._assets[symbol] = asset
        return asset

