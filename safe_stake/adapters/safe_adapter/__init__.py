from safe_stake.adapters.safe_adapter.adapter import (
    SafeAdapter,
    SafeExecution,
    SafeTransaction,
    SafeWallet,
)
from safe_stake.adapters.safe_adapter.batch import (
    Batch,
    MetaTransaction,
    OperationType,
    build_batch,
    encode_multisend,
)

__all__ = [
    "Batch",
    "MetaTransaction",
    "OperationType",
    "SafeAdapter",
    "SafeExecution",
    "SafeTransaction",
    "SafeWallet",
    "build_batch",
    "encode_multisend",
]
