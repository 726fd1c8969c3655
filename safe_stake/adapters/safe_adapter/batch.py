from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import IntEnum

from eth_abi.packed import encode_packed
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from safe_stake.core.constants.safe_abi import MULTISEND_CALL_ONLY_ABI
from safe_stake.core.utils.transaction import encode_function_call


class OperationType(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


@dataclass(frozen=True)
class MetaTransaction:
    target: str
    value: int
    data: HexBytes
    operation: OperationType = OperationType.CALL

    def packed(self) -> bytes:
        return encode_packed(
            ["uint8", "address", "uint256", "uint256", "bytes"],
            [
                int(self.operation),
                self.target,
                int(self.value),
                len(self.data),
                bytes(self.data),
            ],
        )


@dataclass(frozen=True)
class Batch:
    """Ordered meta-transactions executed as one Safe transaction.

    Order is significant (an approval must land before the call that spends
    it) and is never changed after construction.
    """

    calls: tuple[MetaTransaction, ...]

    def __iter__(self) -> Iterator[MetaTransaction]:
        return iter(self.calls)

    def __len__(self) -> int:
        return len(self.calls)

    def __getitem__(self, index: int) -> MetaTransaction:
        return self.calls[index]

    @property
    def has_delegate_calls(self) -> bool:
        return any(c.operation != OperationType.CALL for c in self.calls)


def build_call(target: str, data: bytes | str) -> MetaTransaction:
    return MetaTransaction(
        target=to_checksum_address(target),
        value=0,
        data=HexBytes(data),
        operation=OperationType.CALL,
    )


def build_batch(calls: Iterable[tuple[str, bytes | str]]) -> Batch:
    """Wrap ``(target, data)`` pairs as zero-value plain calls, keeping order."""
    return Batch(calls=tuple(build_call(target, data) for target, data in calls))


def encode_multisend(batch: Batch) -> HexBytes:
    """Call data for ``MultiSendCallOnly.multiSend`` carrying every batch entry."""
    transactions = b"".join(call.packed() for call in batch)
    return encode_function_call(MULTISEND_CALL_ONLY_ABI, "multiSend", [transactions])
