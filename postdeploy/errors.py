"""
Error taxonomy for post-deployment initialization.

Validation errors stop a run before any transaction is built. Transaction
errors halt the remaining queue; confirmed tasks are never rolled back.
"""

from typing import Any, List, Optional


class PostDeployError(Exception):
    """Base class for every failure raised by this package"""


class UnknownEnvironment(PostDeployError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown environment: {key!r}. Available: local, dev, testnet, fuji, mainnet")


class ConfigInvalid(PostDeployError):
    """One or more configuration rules were violated."""

    def __init__(self, reasons: List[str]):
        self.reasons = list(reasons)
        super().__init__("Invalid configuration: " + "; ".join(self.reasons))


class AddressUnresolved(PostDeployError):
    """A logical contract name resolved to the zero-address sentinel."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Address for {name} is unresolved (zero address)")


class DeploymentRecordUnavailable(PostDeployError):
    def __init__(self, path: Any, reason: str = "not found"):
        self.path = path
        self.reason = reason
        super().__init__(f"Deployment record unavailable at {path}: {reason}")


class ChainUnavailable(PostDeployError):
    """The RPC endpoint could not be reached."""


class SubmissionRejected(PostDeployError):
    """The signer or the node refused the transaction. Never retried."""


class TransactionReverted(PostDeployError):
    """The transaction was mined but reverted. Never retried."""

    def __init__(self, tx_hash: str, receipt: Optional[Any] = None):
        self.tx_hash = tx_hash
        self.receipt = receipt
        super().__init__(f"Transaction {tx_hash} reverted")


class TransactionTimeout(PostDeployError):
    """Confirmation was not observed within one wait attempt."""


class TransactionFailed(PostDeployError):
    """Confirmation retries were exhausted."""

    def __init__(self, description: str, attempts: int, cause: Exception):
        self.description = description
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"{description} failed after {attempts} attempts: {cause}")
