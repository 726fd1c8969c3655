from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_utils import keccak, to_checksum_address
from hexbytes import HexBytes
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from safe_stake.adapters.safe_adapter.batch import (
    Batch,
    OperationType,
    encode_multisend,
)
from safe_stake.core.adapters.BaseAdapter import BaseAdapter
from safe_stake.core.constants.base import (
    ADAPTER_SAFE,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_TRANSACTION_TIMEOUT,
    ZERO_ADDRESS,
)
from safe_stake.core.constants.safe_abi import SAFE_ABI, SAFE_TX_TYPES
from safe_stake.core.constants.safe_contracts import (
    MULTISEND_CALL_ONLY_BY_VERSION,
    normalize_safe_version,
)
from safe_stake.core.errors import (
    ExecutionError,
    StakingError,
    WalletConnectionError,
)
from safe_stake.core.utils import web3 as web3_utils
from safe_stake.core.utils.transaction import (
    encode_call,
    send_transaction,
    simulate_transaction,
)


@dataclass(frozen=True)
class SafeWallet:
    """A connected session for one Safe and one owner key.

    Holds no on-chain state. Acquire one per execution and ``close()`` it when
    done; concurrent submissions for the same Safe must be serialized by the
    caller since they compete for the same Safe nonce.
    """

    address: str
    chain_id: int
    version: str
    multisend_address: str
    signer: LocalAccount = field(repr=False)
    web3: AsyncWeb3 = field(repr=False)

    @property
    def signer_address(self) -> str:
        return self.signer.address

    async def close(self) -> None:
        await self.web3.provider.disconnect()


@dataclass(frozen=True)
class SafeTransaction:
    to: str
    value: int
    data: HexBytes
    operation: OperationType
    nonce: int
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS

    def typed_data(self, *, chain_id: int, safe_address: str) -> dict[str, Any]:
        return {
            "types": SAFE_TX_TYPES,
            "primaryType": "SafeTx",
            "domain": {
                "chainId": int(chain_id),
                "verifyingContract": to_checksum_address(safe_address),
            },
            "message": {
                "to": self.to,
                "value": int(self.value),
                "data": bytes(self.data),
                "operation": int(self.operation),
                "safeTxGas": int(self.safe_tx_gas),
                "baseGas": int(self.base_gas),
                "gasPrice": int(self.gas_price),
                "gasToken": self.gas_token,
                "refundReceiver": self.refund_receiver,
                "nonce": int(self.nonce),
            },
        }

    def exec_args(self, signatures: bytes) -> list[Any]:
        return [
            self.to,
            int(self.value),
            bytes(self.data),
            int(self.operation),
            int(self.safe_tx_gas),
            int(self.base_gas),
            int(self.gas_price),
            self.gas_token,
            self.refund_receiver,
            bytes(signatures),
        ]


@dataclass(frozen=True)
class SafeExecution:
    transaction_hash: str
    safe_tx_hash: str
    safe_nonce: int
    receipt: dict[str, Any] = field(repr=False, default_factory=dict)


def _safe_tx_hash(signable: SignableMessage) -> HexBytes:
    return HexBytes(
        keccak(b"\x19" + signable.version + signable.header + signable.body)
    )


class SafeAdapter(BaseAdapter):
    """Executes batches of calls through a pre-deployed Safe wallet.

    The agent key must be an owner of the Safe and the Safe threshold must be
    one, so a single signature is enough to execute. Batches of more than one
    call are routed through ``MultiSendCallOnly`` by delegate call, which makes
    the whole batch one atomic Safe transaction: every call lands or the Safe
    transaction reverts.

    Nothing here retries. A submission that fails, or that times out waiting
    for its receipt, is surfaced as ``ExecutionError`` and may still be mined
    later.
    """

    adapter_type = ADAPTER_SAFE

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__("safe_adapter", config or {})
        cfg = self.config
        self.receipt_timeout = float(
            cfg.get("receipt_timeout") or DEFAULT_TRANSACTION_TIMEOUT
        )
        self.rpc_timeout = float(cfg.get("rpc_timeout") or DEFAULT_HTTP_TIMEOUT)
        self.confirmations = max(
            1, int(cfg.get("confirmations") or DEFAULT_CONFIRMATIONS)
        )
        override = cfg.get("multisend_call_only_address")
        self.multisend_override: str | None = (
            to_checksum_address(override) if override else None
        )

    def _multisend_address(self, version: str) -> str:
        if self.multisend_override:
            return self.multisend_override
        address = MULTISEND_CALL_ONLY_BY_VERSION.get(normalize_safe_version(version))
        if not address:
            raise WalletConnectionError(
                f"No MultiSendCallOnly deployment known for Safe version {version}; "
                "set stake.multisend_call_only_address"
            )
        return address

    async def acquire(
        self, rpc_url: str, private_key: str, safe_address: str
    ) -> SafeWallet:
        if not private_key:
            raise WalletConnectionError("No signing credential configured")
        try:
            signer: LocalAccount = Account.from_key(private_key)
        except Exception:  # noqa: BLE001
            # Chained exceptions could echo the key material.
            raise WalletConnectionError(
                "Signing credential is not a valid private key"
            ) from None

        try:
            safe = to_checksum_address(safe_address)
        except (TypeError, ValueError) as exc:
            raise WalletConnectionError(
                f"Safe address is not a valid address: {safe_address!r}"
            ) from exc

        endpoint = web3_utils.redact_rpc_url(rpc_url)
        web3 = web3_utils.get_web3(rpc_url, timeout=self.rpc_timeout)
        try:
            wallet = await self._open(web3, signer, safe, endpoint)
        except WalletConnectionError:
            await web3.provider.disconnect()
            raise
        except Exception as exc:
            await web3.provider.disconnect()
            reason = str(exc).replace(str(rpc_url), endpoint)
            raise WalletConnectionError(
                f"Failed to open Safe {safe} via {endpoint}: {reason}"
            ) from exc

        self.logger.info(
            f"Acquired Safe {wallet.address} (v{wallet.version}) on chain "
            f"{wallet.chain_id} with signer {wallet.signer_address}"
        )
        return wallet

    async def _open(
        self, web3: AsyncWeb3, signer: LocalAccount, safe: str, endpoint: str
    ) -> SafeWallet:
        if not await web3.is_connected():
            raise WalletConnectionError(f"RPC endpoint {endpoint} is unreachable")

        chain_id = int(await web3.eth.chain_id)
        web3_utils.apply_chain_middleware(web3, chain_id)

        code = await web3.eth.get_code(safe)
        if not code:
            raise WalletConnectionError(
                f"No contract deployed at Safe address {safe} on chain {chain_id}"
            )

        contract = web3.eth.contract(address=safe, abi=SAFE_ABI)
        version = str(await contract.functions.VERSION().call())
        if not await contract.functions.isOwner(signer.address).call():
            raise WalletConnectionError(
                f"Signer {signer.address} is not an owner of Safe {safe}"
            )
        threshold = int(await contract.functions.getThreshold().call())
        if threshold != 1:
            raise WalletConnectionError(
                f"Safe {safe} requires {threshold} signatures; "
                "the agent key can only provide one"
            )

        return SafeWallet(
            address=safe,
            chain_id=chain_id,
            version=version,
            multisend_address=self._multisend_address(version),
            signer=signer,
            web3=web3,
        )

    def build_safe_transaction(
        self, wallet: SafeWallet, batch: Batch, *, nonce: int
    ) -> SafeTransaction:
        if len(batch) == 1:
            call = batch[0]
            return SafeTransaction(
                to=call.target,
                value=call.value,
                data=call.data,
                operation=call.operation,
                nonce=nonce,
            )
        return SafeTransaction(
            to=wallet.multisend_address,
            value=0,
            data=encode_multisend(batch),
            operation=OperationType.DELEGATE_CALL,
            nonce=nonce,
        )

    def sign_safe_transaction(
        self, wallet: SafeWallet, safe_tx: SafeTransaction
    ) -> tuple[HexBytes, HexBytes]:
        """Return ``(safe_tx_hash, signature)`` for the owner key on ``wallet``."""
        signable = encode_typed_data(
            full_message=safe_tx.typed_data(
                chain_id=wallet.chain_id, safe_address=wallet.address
            )
        )
        signed = wallet.signer.sign_message(signable)
        return _safe_tx_hash(signable), HexBytes(signed.signature)

    async def submit(
        self, wallet: SafeWallet, batch: Batch, *, only_calls: bool = True
    ) -> SafeExecution:
        if not len(batch):
            raise ExecutionError("Cannot submit an empty batch")
        if only_calls and batch.has_delegate_calls:
            raise ExecutionError(
                "Batch contains a delegate call; only plain calls may be executed"
            )

        try:
            return await self._execute(wallet, batch)
        except StakingError:
            raise
        except Exception as exc:
            raise ExecutionError(str(exc) or exc.__class__.__name__) from exc

    async def _execute(self, wallet: SafeWallet, batch: Batch) -> SafeExecution:
        contract = wallet.web3.eth.contract(address=wallet.address, abi=SAFE_ABI)
        nonce = int(await contract.functions.nonce().call())

        safe_tx = self.build_safe_transaction(wallet, batch, nonce=nonce)
        safe_tx_hash, signature = self.sign_safe_transaction(wallet, safe_tx)
        tx = encode_call(
            target=wallet.address,
            abi=SAFE_ABI,
            fn_name="execTransaction",
            args=safe_tx.exec_args(signature),
            from_address=wallet.signer_address,
            chain_id=wallet.chain_id,
        )
        self.logger.info(
            f"Executing Safe tx {safe_tx_hash.to_0x_hex()} nonce={nonce} "
            f"calls={len(batch)} safe={wallet.address}"
        )

        try:
            result = await simulate_transaction(wallet.web3, tx)
        except ContractLogicError as exc:
            raise ExecutionError(
                f"Safe transaction simulation reverted: {exc}"
            ) from exc
        if not result or not int.from_bytes(bytes(result)[-32:], "big"):
            raise ExecutionError("Safe transaction simulation reported failure")

        async def sign_callback(transaction: dict) -> bytes:
            signed = wallet.signer.sign_transaction(transaction)
            return signed.raw_transaction

        txn_hash, receipt = await send_transaction(
            wallet.web3,
            tx,
            sign_callback,
            receipt_timeout=self.receipt_timeout,
            confirmations=self.confirmations,
        )
        self.logger.info(f"Safe tx {safe_tx_hash.to_0x_hex()} mined in {txn_hash}")
        return SafeExecution(
            transaction_hash=txn_hash,
            safe_tx_hash=safe_tx_hash.to_0x_hex(),
            safe_nonce=nonce,
            receipt=receipt,
        )
