from __future__ import annotations

import collections
from typing import Any

import pytest

from gasbench.chain import from_bytes32, to_bytes32
from gasbench.config import ContractNames, MeasurementPlan
from gasbench.errors import TransactionFailed
from gasbench.manifest import (
    ContractHandle,
    ContractResolver,
    DeployableFactory,
    DeploymentManifest,
    ProtocolContracts,
)

SIGNER = "0x00000000000000000000000000000000000000a1"
DEFAULT_GAS = 100_000
PLENTY = 10**30

CONTRACT_TARGETS = {
    "Synthetix": "0x0000000000000000000000000000000000001001",
    "Issuer": "0x0000000000000000000000000000000000001002",
    "ExchangeRates": "0x0000000000000000000000000000000000001003",
    "DebtCache": "0x0000000000000000000000000000000000001004",
    "ReadProxyAddressResolver": "0x0000000000000000000000000000000000001005",
    "SystemSettings": "0x0000000000000000000000000000000000001006",
    "FeePool": "0x0000000000000000000000000000000000001007",
    "SynthsUSD": "0x0000000000000000000000000000000000001008",
    "TokenStatesUSD": "0x0000000000000000000000000000000000001009",
    "ProxysUSD": "0x000000000000000000000000000000000000100a",
}


def manifest_document() -> dict[str, Any]:
    targets = {}
    sources = {}
    for name, address in CONTRACT_TARGETS.items():
        targets[name] = {"source": name, "address": address}
        sources[name] = {
            "abi": [{"type": "function", "name": f"{name}Marker"}],
            "bytecode": f"0x{name.encode().hex()}",
        }
    return {"targets": targets, "sources": sources}


class FakeChain:
    """Scripted stand-in for :class:`gasbench.chain.Chain`.

    Tracks the issuer's synth registry so escalation can be observed, hands out
    queued gas values per method, and fails methods on demand.
    """

    def __init__(self, signer: str = SIGNER, currency_keys: list[str] | None = None) -> None:
        self.signer = signer
        self.timestamp = 1_700_000_000
        self.currency_keys = [to_bytes32(symbol) for symbol in (currency_keys or ["sUSD"])]
        self.registered: dict[str, str] = {}
        self.sent: list[tuple[str, str, tuple]] = []
        self.deployed: list[tuple[str, tuple, str]] = []
        self.forwarded: list[int] = []
        self.balances: dict[str, int] = {}
        self.views: dict[str, Any] = {"feePeriodDuration": 604_800}
        self._gas: dict[str, collections.deque] = collections.defaultdict(collections.deque)
        self._failures: collections.Counter[str] = collections.Counter()
        self._always_fail: set[str] = set()
        self._fail_on_call: dict[str, set[int]] = collections.defaultdict(set)
        self._call_counts: collections.Counter[str] = collections.Counter()
        self._next_address = 0x2000

    # scripting -------------------------------------------------------------

    def queue_gas(self, method: str, values: list[int]) -> None:
        self._gas[method].extend(values)

    def fail_next(self, method: str, times: int = 1) -> None:
        self._failures[method] += times

    def fail_always(self, method: str) -> None:
        self._always_fail.add(method)

    def fail_on_call(self, method: str, number: int) -> None:
        """Fail only the ``number``-th (1-based) invocation of ``method``."""
        self._fail_on_call[method].add(number)

    def methods_sent(self) -> list[str]:
        return [method for _, method, _ in self.sent]

    @property
    def synth_count(self) -> int:
        return len(self.currency_keys)

    # Chain interface -------------------------------------------------------

    def call(self, handle: ContractHandle, method: str, *args: Any) -> Any:
        self._maybe_fail(handle.name, method)
        if method == "availableSynthCount":
            return self.synth_count
        if method == "availableCurrencyKeys":
            return list(self.currency_keys)
        if method == "synths":
            return self.registered.get(from_bytes32(args[0]), "0x" + "0" * 40)
        if method == "balanceOf":
            return self.balances.get(handle.address, PLENTY)
        value = self.views[method]
        return value(*args) if callable(value) else value

    def send(self, handle: ContractHandle, method: str, *args: Any) -> dict[str, Any]:
        self._maybe_fail(handle.name, method)
        self.sent.append((handle.name, method, args))
        if method == "removeSynths":
            self.currency_keys = [key for key in self.currency_keys if key not in args[0]]
        elif method == "addSynth":
            symbol = self._symbol_for(args[0])
            self.currency_keys.append(to_bytes32(symbol))
            self.registered[symbol] = args[0]
        queue = self._gas.get(method)
        gas = queue.popleft() if queue else DEFAULT_GAS
        return {"status": 1, "cumulativeGasUsed": gas}

    def deploy(self, factory: DeployableFactory, *args: Any) -> ContractHandle:
        self._maybe_fail(factory.name, "deploy")
        self._next_address += 1
        address = f"0x{self._next_address:040x}"
        self.deployed.append((factory.name, args, address))
        return factory.at(address)

    def latest_timestamp(self) -> int:
        return self.timestamp

    def fast_forward(self, seconds: int) -> None:
        self.forwarded.append(seconds)

    # helpers ---------------------------------------------------------------

    def _maybe_fail(self, name: str, method: str) -> None:
        self._call_counts[method] += 1
        if self._call_counts[method] in self._fail_on_call.get(method, ()):
            raise TransactionFailed(f"{name}.{method}", "reverted")
        if method in self._always_fail:
            raise TransactionFailed(f"{name}.{method}", "reverted")
        if self._failures[method] > 0:
            self._failures[method] -= 1
            raise TransactionFailed(f"{name}.{method}", "reverted")

    def _symbol_for(self, synth_address: str) -> str:
        for name, args, address in self.deployed:
            if name == "SynthsUSD" and address == synth_address:
                return args[3]
        raise AssertionError(f"addSynth for unknown synth {synth_address}")


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def manifest() -> DeploymentManifest:
    return DeploymentManifest.from_document(manifest_document())


@pytest.fixture
def resolver(manifest: DeploymentManifest) -> ContractResolver:
    return ContractResolver(manifest, SIGNER)


@pytest.fixture
def contracts(resolver: ContractResolver) -> ProtocolContracts:
    return ProtocolContracts.from_resolver(resolver, ContractNames(), include_fee_pool=True)


@pytest.fixture
def plan() -> MeasurementPlan:
    return MeasurementPlan()
