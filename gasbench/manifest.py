from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config import ContractNames
from .errors import ManifestError, ManifestLookupError

MANIFEST_FILENAME = "deployment.json"


@dataclass(frozen=True)
class ContractHandle:
    """Address plus interface of a deployed contract, bound to a signer."""

    name: str
    address: str
    abi: list[dict[str, Any]]
    signer: str


@dataclass(frozen=True)
class DeployableFactory:
    """Artifact interface and bytecode used to deploy fresh instances."""

    name: str
    abi: list[dict[str, Any]]
    bytecode: str
    signer: str

    def at(self, address: str) -> ContractHandle:
        return ContractHandle(name=self.name, address=address, abi=self.abi, signer=self.signer)


class DeploymentManifest:
    """Read-only view over ``deployment.json``.

    ``targets`` maps a contract name to ``{"source", "address"}`` and ``sources``
    maps a source artifact id to ``{"abi", "bytecode"}``.
    """

    def __init__(self, targets: dict[str, dict], sources: dict[str, dict]) -> None:
        self._targets = targets
        self._sources = sources

    @classmethod
    def load(cls, path: Path) -> "DeploymentManifest":
        if path.is_dir():
            path = path / MANIFEST_FILENAME
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ManifestError(f"deployment manifest not found at {path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise ManifestError(f"unable to read deployment manifest {path}: {exc}") from exc
        return cls.from_document(document)

    @classmethod
    def from_document(cls, document: Any) -> "DeploymentManifest":
        if not isinstance(document, dict):
            raise ManifestError("deployment manifest must be a JSON object")
        targets = document.get("targets")
        sources = document.get("sources")
        if not isinstance(targets, dict) or not isinstance(sources, dict):
            raise ManifestError("deployment manifest needs 'targets' and 'sources' mappings")
        return cls(targets, sources)

    def target(self, name: str) -> dict:
        target = self._targets.get(name)
        if target is None:
            raise ManifestLookupError("contract", name)
        return target

    def source(self, source_id: str) -> dict:
        source = self._sources.get(source_id)
        if source is None:
            raise ManifestLookupError("source", source_id)
        return source

    def target_source(self, name: str) -> dict:
        target = self.target(name)
        if "source" not in target:
            raise ManifestError(f"target {name!r} has no source artifact")
        source = self.source(target["source"])
        if "abi" not in source:
            raise ManifestError(f"source {target['source']!r} has no abi")
        return source


class ContractResolver:
    """Turns logical contract names into signer-bound handles and factories."""

    def __init__(self, manifest: DeploymentManifest, signer: str) -> None:
        self._manifest = manifest
        self._signer = signer

    @property
    def signer(self) -> str:
        return self._signer

    def resolve(self, name: str) -> ContractHandle:
        target = self._manifest.target(name)
        source = self._manifest.target_source(name)
        address = target.get("address")
        if not address:
            raise ManifestError(f"target {name!r} has no address")
        return ContractHandle(name=name, address=address, abi=source["abi"], signer=self._signer)

    def resolve_factory(self, artifact_name: str) -> DeployableFactory:
        source = self._manifest.target_source(artifact_name)
        if "bytecode" not in source:
            raise ManifestError(f"artifact {artifact_name!r} has no bytecode")
        return DeployableFactory(
            name=artifact_name,
            abi=source["abi"],
            bytecode=source["bytecode"],
            signer=self._signer,
        )

    def attach(self, artifact_name: str, address: str, name: str | None = None) -> ContractHandle:
        """Bind an artifact's interface to an address not listed in the manifest."""
        source = self._manifest.target_source(artifact_name)
        return ContractHandle(
            name=name or artifact_name,
            address=address,
            abi=source["abi"],
            signer=self._signer,
        )


@dataclass(frozen=True)
class ProtocolContracts:
    synthetix: ContractHandle
    issuer: ContractHandle
    exchange_rates: ContractHandle
    debt_cache: ContractHandle
    address_resolver: ContractHandle
    system_settings: ContractHandle
    base_synth: ContractHandle
    fee_pool: ContractHandle | None = None

    @classmethod
    def from_resolver(
        cls,
        resolver: ContractResolver,
        names: ContractNames,
        include_fee_pool: bool = False,
    ) -> "ProtocolContracts":
        return cls(
            synthetix=resolver.resolve(names.synthetix),
            issuer=resolver.resolve(names.issuer),
            exchange_rates=resolver.resolve(names.exchange_rates),
            debt_cache=resolver.resolve(names.debt_cache),
            address_resolver=resolver.resolve(names.address_resolver),
            system_settings=resolver.resolve(names.system_settings),
            base_synth=resolver.resolve(names.base_synth),
            fee_pool=resolver.resolve(names.fee_pool) if include_fee_pool else None,
        )

