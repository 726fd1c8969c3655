from __future__ import annotations

from typing import Any


class StakingError(Exception):
    """Base class for every failure raised by the staking pipeline."""


class EncodingError(StakingError, ValueError):
    """Call data could not be built from the ABI and arguments given."""


class WalletConnectionError(StakingError, ConnectionError):
    """The RPC endpoint or the signing credential cannot drive the Safe."""


class ExecutionError(StakingError, RuntimeError):
    """The Safe transaction was rejected, reverted or never confirmed.

    ``reason`` is the underlying message, surfaced verbatim to the caller.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class TransactionRevertedError(ExecutionError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


class ParameterResolutionError(StakingError, ValueError):
    """The intent could not be turned into a valid stake request."""
