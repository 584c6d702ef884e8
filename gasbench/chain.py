from __future__ import annotations

import logging
import time
from typing import Any

from web3 import Web3
from web3.exceptions import Web3Exception

from .errors import ChainError, TransactionFailed
from .manifest import ContractHandle, DeployableFactory

LOGGER = logging.getLogger("gasbench.chain")

DEFAULT_RPC_URL = "http://localhost:8545"
RECEIPT_TIMEOUT_S_DEFAULT = 600.0
CONNECT_TIMEOUT_S = 60.0

# web3 v6 surfaces JSON-RPC error responses as plain ValueError; transport
# failures from the HTTP provider are requests exceptions, i.e. OSError.
_WEB3_ERRORS = (Web3Exception, ValueError, OSError)


def to_bytes32(text: str) -> bytes:
    raw = Web3.to_bytes(text=text)
    if len(raw) > 32:
        raise ValueError(f"{text!r} does not fit in bytes32")
    return raw.ljust(32, b"\0")


def from_bytes32(value: bytes) -> str:
    return bytes(value).rstrip(b"\0").decode("utf-8")


def to_units(quantity: int | float, decimals: int = 18) -> int:
    if decimals == 18:
        return Web3.to_wei(quantity, "ether")
    return int(quantity * 10**decimals)


def create_web3(rpc_url: str, timeout_s: float = CONNECT_TIMEOUT_S) -> Web3:
    backoff = 1.0
    max_backoff = 10.0
    deadline = time.time() + timeout_s

    while True:
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        if w3.is_connected():
            return w3
        if time.time() >= deadline:
            raise ChainError(
                f"failed to connect to JSON-RPC node at {rpc_url} within {timeout_s:.0f} seconds"
            )
        LOGGER.debug("Node at %s not reachable yet, retrying in %.1fs", rpc_url, backoff)
        time.sleep(backoff)
        backoff = min(backoff * 1.5, max_backoff)


class Chain:
    """Signer-bound view of a JSON-RPC node.

    Every write goes through :meth:`send` or :meth:`deploy`, both of which block
    until the transaction is mined. Nothing here is concurrent: the signer's
    nonce is only ever advanced by one outstanding transaction at a time.
    """

    def __init__(
        self,
        w3: Web3,
        signer: str,
        receipt_timeout_s: float = RECEIPT_TIMEOUT_S_DEFAULT,
    ) -> None:
        self._w3 = w3
        self._signer = signer
        self._receipt_timeout_s = receipt_timeout_s

    @classmethod
    def connect(
        cls,
        rpc_url: str,
        signer_index: int = 0,
        receipt_timeout_s: float = RECEIPT_TIMEOUT_S_DEFAULT,
    ) -> "Chain":
        w3 = create_web3(rpc_url)
        try:
            accounts = w3.eth.accounts
        except _WEB3_ERRORS as exc:
            raise ChainError(f"unable to list node accounts: {exc}") from exc
        if len(accounts) <= signer_index:
            raise ChainError(
                f"node exposes {len(accounts)} account(s); signer index {signer_index} unavailable"
            )
        signer = accounts[signer_index]
        w3.eth.default_account = signer
        return cls(w3, signer, receipt_timeout_s)

    @property
    def signer(self) -> str:
        return self._signer

    def contract(self, handle: ContractHandle):
        return self._w3.eth.contract(
            address=Web3.to_checksum_address(handle.address), abi=handle.abi
        )

    def call(self, handle: ContractHandle, method: str, *args: Any) -> Any:
        function = getattr(self.contract(handle).functions, method)
        try:
            return function(*args).call({"from": handle.signer})
        except _WEB3_ERRORS as exc:
            raise ChainError(f"{handle.name}.{method}: {exc}") from exc

    def send(self, handle: ContractHandle, method: str, *args: Any):
        label = f"{handle.name}.{method}"
        function = getattr(self.contract(handle).functions, method)
        try:
            tx_hash = function(*args).transact({"from": handle.signer})
        except _WEB3_ERRORS as exc:
            raise TransactionFailed(label, f"rejected on submission: {exc}") from exc
        return self._wait(label, tx_hash)

    def deploy(self, factory: DeployableFactory, *args: Any) -> ContractHandle:
        label = f"deploy {factory.name}"
        contract = self._w3.eth.contract(abi=factory.abi, bytecode=factory.bytecode)
        try:
            tx_hash = contract.constructor(*args).transact({"from": factory.signer})
        except _WEB3_ERRORS as exc:
            raise TransactionFailed(label, f"rejected on submission: {exc}") from exc
        receipt = self._wait(label, tx_hash)
        address = receipt["contractAddress"]
        if not address:
            raise TransactionFailed(label, "receipt carries no contract address")
        LOGGER.debug("Deployed %s at %s", factory.name, address)
        return factory.at(address)

    def latest_timestamp(self) -> int:
        try:
            return int(self._w3.eth.get_block("latest")["timestamp"])
        except _WEB3_ERRORS as exc:
            raise ChainError(f"unable to read latest block: {exc}") from exc

    def fast_forward(self, seconds: int) -> None:
        for method, params in (("evm_increaseTime", [int(seconds)]), ("evm_mine", [])):
            try:
                response = self._w3.provider.make_request(method, params)
            except _WEB3_ERRORS as exc:
                raise ChainError(f"{method} failed: {exc}") from exc
            if response.get("error"):
                raise ChainError(f"{method} failed: {response['error']}")

    def _wait(self, label: str, tx_hash):
        try:
            receipt = self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._receipt_timeout_s
            )
        except _WEB3_ERRORS as exc:
            raise TransactionFailed(label, f"no receipt: {exc}") from exc
        if receipt["status"] != 1:
            raise TransactionFailed(label, f"reverted in tx {Web3.to_hex(tx_hash)}")
        return receipt


__all__ = [
    "Chain",
    "DEFAULT_RPC_URL",
    "RECEIPT_TIMEOUT_S_DEFAULT",
    "create_web3",
    "from_bytes32",
    "to_bytes32",
    "to_units",
]
