from __future__ import annotations


class HarnessError(Exception):
    """Base class for failures that abort a measurement session."""


class ManifestError(HarnessError):
    """Raised when the deployment manifest cannot be read or is malformed."""


class ManifestLookupError(ManifestError):
    """Raised when a contract or artifact name is absent from the manifest."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} {name!r} not found in deployment manifest")
        self.kind = kind
        self.name = name


class ChainError(HarnessError):
    """Raised when the JSON-RPC node cannot be reached or a call fails."""


class TransactionFailed(ChainError):
    """Raised when a transaction errors on submission, reverts, or never lands."""

    def __init__(self, label: str, reason: str) -> None:
        super().__init__(f"{label}: {reason}")
        self.label = label
        self.reason = reason


class BaselineSetupError(HarnessError):
    """Raised when bringing the protocol to its baseline state fails."""


class ProvisioningError(HarnessError):
    """Raised when deploying, wiring or registering a new synth fails."""


class OperationFailure(HarnessError):
    """A measured operation failed; recovered locally by recording the sentinel."""

    def __init__(self, category: str, label: str, reason: str) -> None:
        super().__init__(f"{label} ({category}) failed: {reason}")
        self.category = category
        self.label = label
        self.reason = reason

