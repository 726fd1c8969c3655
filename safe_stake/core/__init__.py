from safe_stake.core.adapters.BaseAdapter import BaseAdapter
from safe_stake.core.adapters.models import ExecutionReceipt, StakeRequest
from safe_stake.core.errors import (
    EncodingError,
    ExecutionError,
    ParameterResolutionError,
    StakingError,
    TransactionRevertedError,
    WalletConnectionError,
)

__all__ = [
    "BaseAdapter",
    "EncodingError",
    "ExecutionError",
    "ExecutionReceipt",
    "ParameterResolutionError",
    "StakeRequest",
    "StakingError",
    "TransactionRevertedError",
    "WalletConnectionError",
]
