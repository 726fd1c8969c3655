import asyncio
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError as AbiEncodingError
from eth_utils import function_abi_to_4byte_selector
from eth_utils.abi import collapse_if_tuple
from hexbytes import HexBytes
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted

from safe_stake.core.constants.base import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_RECEIPT_POLL_INTERVAL,
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_GAS_PRICE_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from safe_stake.core.constants.chains import PRE_EIP_1559_CHAIN_IDS
from safe_stake.core.errors import (
    EncodingError,
    ExecutionError,
    TransactionRevertedError,
)
from safe_stake.core.utils.web3 import get_transaction_chain_id

SignCallback = Callable[[dict], Awaitable[bytes]]


def _find_function_abi(
    abi: Sequence[dict[str, Any]], fn_name: str, arg_count: int
) -> dict[str, Any]:
    candidates = [
        item
        for item in abi
        if isinstance(item, dict)
        and item.get("type", "function") == "function"
        and item.get("name") == fn_name
    ]
    if not candidates:
        raise EncodingError(f"Function {fn_name!r} not found in ABI")
    for item in candidates:
        if len(item.get("inputs") or []) == arg_count:
            return item
    expected = sorted({len(c.get("inputs") or []) for c in candidates})
    raise EncodingError(
        f"Argument count mismatch for {fn_name}: got {arg_count}, expected {expected}"
    )


def encode_function_call(
    abi: Sequence[dict[str, Any]], fn_name: str, args: Sequence[Any]
) -> HexBytes:
    """ABI-encode a function call: 4-byte selector followed by the arguments.

    Pure and deterministic. Values are never coerced, so an amount that does not
    fit its integer width is rejected instead of being truncated.

    Raises:
        EncodingError: The function is missing from the ABI, no overload takes
            ``len(args)`` arguments, or an argument does not fit its type.
    """
    args = list(args)
    fn_abi = _find_function_abi(abi, fn_name, len(args))
    types = [collapse_if_tuple(i) for i in fn_abi.get("inputs") or []]
    try:
        selector = function_abi_to_4byte_selector(fn_abi)
        encoded_args = abi_encode(types, args)
    except (AbiEncodingError, TypeError, ValueError) as exc:
        raise EncodingError(f"Failed to encode {fn_name}: {exc}") from exc
    return HexBytes(selector + encoded_args)


def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> dict[str, Any]:
    data = encode_function_call(abi, fn_name, args)
    return {
        "chainId": int(chain_id),
        "from": AsyncWeb3.to_checksum_address(from_address),
        "to": AsyncWeb3.to_checksum_address(target),
        "data": data.to_0x_hex(),
        "value": int(value),
    }


def _raise_revert_error(
    txn_hash: str,
    receipt: dict[str, Any],
    transaction: dict[str, Any],
    cause: Exception | None = None,
) -> None:
    gas_used = int(receipt.get("gasUsed") or 0)
    gas_limit = int(transaction.get("gas") or 0)

    oogs = bool(gas_used and gas_limit and gas_used >= gas_limit)
    suffix = (
        f" gasUsed={gas_used} gasLimit={gas_limit}"
        + (" (likely out of gas)" if oogs else "")
        if gas_used or gas_limit
        else ""
    )
    error = TransactionRevertedError(
        txn_hash,
        receipt,
        message=f"Transaction reverted (status=0): {txn_hash}{suffix}",
    )
    if cause:
        raise error from cause
    raise error


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


async def nonce_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()
    from_address = _get_transaction_from_address(transaction)
    transaction["nonce"] = await web3.eth.get_transaction_count(
        from_address, block_identifier="pending"
    )
    return transaction


async def gas_price_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()
    chain_id = get_transaction_chain_id(transaction)

    if chain_id in PRE_EIP_1559_CHAIN_IDS:
        gas_price = await web3.eth.gas_price
        transaction["gasPrice"] = int(gas_price * SUGGESTED_GAS_PRICE_MULTIPLIER)
        return transaction

    latest_block = await web3.eth.get_block("latest")
    base_fee = int(latest_block["baseFeePerGas"])

    lookback_blocks = 10
    percentile = 80
    fee_history = await web3.eth.fee_history(lookback_blocks, "latest", [percentile])
    historical_priority_fees = [int(i[0]) for i in fee_history["reward"]]
    priority_fee = (
        sum(historical_priority_fees) // len(historical_priority_fees)
        if historical_priority_fees
        else 0
    )

    transaction["maxFeePerGas"] = int(
        base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER
        + priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    transaction["maxPriorityFeePerGas"] = int(
        priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    return transaction


async def gas_limit_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()

    # prevents RPCs from taking this as a serious limit
    transaction.pop("gas", None)

    gas_limit = await web3.eth.estimate_gas(
        dict(transaction), block_identifier="latest"
    )
    if not gas_limit:
        raise ExecutionError("Gas estimation returned zero")

    # safeTxGas=0 forwards all remaining gas to the inner calls; the 63/64 rule
    # needs headroom on top of the raw estimate.
    transaction["gas"] = int(math.ceil(gas_limit * GAS_BUFFER_MULTIPLIER))
    return transaction


async def simulate_transaction(web3: AsyncWeb3, transaction: dict) -> bytes:
    """Dry-run ``transaction`` with ``eth_call``; reverts raise from web3."""
    call = {
        k: v for k, v in transaction.items() if k in ("from", "to", "data", "value")
    }
    return await web3.eth.call(call, block_identifier="latest")


async def broadcast_transaction(web3: AsyncWeb3, signed_transaction: bytes) -> str:
    tx_hash = await web3.eth.send_raw_transaction(signed_transaction)
    return HexBytes(tx_hash).to_0x_hex()


async def wait_for_transaction_receipt(
    web3: AsyncWeb3,
    txn_hash: str,
    poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    confirmations: int = DEFAULT_CONFIRMATIONS,
) -> dict:
    if isinstance(txn_hash, str) and not txn_hash.startswith("0x"):
        txn_hash = f"0x{txn_hash}"

    try:
        receipt = dict(
            await web3.eth.wait_for_transaction_receipt(
                txn_hash, timeout=timeout, poll_latency=poll_interval
            )
        )
    except TimeExhausted as exc:
        # The transaction may still land later; it is not resubmitted here.
        raise ExecutionError(
            f"Transaction {txn_hash} not mined within {timeout}s: {exc}"
        ) from exc

    if receipt.get("status") == 0:
        raise TransactionRevertedError(txn_hash, receipt)

    target_block = receipt["blockNumber"] + confirmations - 1
    while await web3.eth.block_number < target_block:
        await asyncio.sleep(poll_interval)
    return receipt


async def send_transaction(
    web3: AsyncWeb3,
    transaction: dict,
    sign_callback: SignCallback,
    *,
    wait_for_receipt: bool = True,
    receipt_timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    confirmations: int = DEFAULT_CONFIRMATIONS,
) -> tuple[str, dict[str, Any]]:
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    logger.info(
        f"Broadcasting transaction to={transaction.get('to')} "
        f"chain={transaction.get('chainId')}..."
    )
    transaction = await gas_limit_transaction(web3, transaction)
    transaction = await nonce_transaction(web3, transaction)
    transaction = await gas_price_transaction(web3, transaction)
    signed_transaction = await sign_callback(transaction)
    txn_hash = await broadcast_transaction(web3, signed_transaction)
    logger.info(f"Transaction broadcasted: {txn_hash}")

    receipt: dict[str, Any] = {}
    if wait_for_receipt:
        try:
            receipt = await wait_for_transaction_receipt(
                web3,
                txn_hash,
                timeout=receipt_timeout,
                confirmations=confirmations,
            )
        except TransactionRevertedError as exc:
            _raise_revert_error(txn_hash, exc.receipt, transaction, cause=exc)

        if receipt.get("status") is not None and int(receipt["status"]) == 0:
            _raise_revert_error(txn_hash, receipt, transaction)
    return txn_hash, receipt
