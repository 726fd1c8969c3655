from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from safe_stake.actions.metadata import ACTION_NAME
from safe_stake.actions.resolver import ParameterResolver
from safe_stake.adapters.aave_v3_adapter import AaveV3Adapter
from safe_stake.adapters.safe_adapter import SafeAdapter, SafeWallet, build_batch
from safe_stake.core import config as stake_config
from safe_stake.core.adapters.models import ExecutionReceipt, StakeRequest
from safe_stake.core.errors import WalletConnectionError
from safe_stake.core.utils.etherscan import get_etherscan_transaction_link

HandlerCallback = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True)
class StakeDeployment:
    safe_address: str
    pool_address: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "safe_address", to_checksum_address(self.safe_address))
        object.__setattr__(self, "pool_address", to_checksum_address(self.pool_address))

    @classmethod
    def from_config(cls) -> StakeDeployment:
        safe_address = stake_config.get_safe_address()
        if not safe_address:
            raise ValueError(
                "stake.safe_address (or SAFE_ADDRESS) must be configured"
            )
        pool_address = stake_config.get_pool_address()
        if not pool_address:
            chain_id = stake_config.get_chain_id()
            if chain_id is None:
                raise ValueError(
                    "Configure stake.pool_address, or stake.chain_id to use the "
                    "known Aave v3 pool"
                )
            pool_address = AaveV3Adapter.pool_address(chain_id)
        return cls(safe_address=safe_address, pool_address=pool_address)


@dataclass(frozen=True)
class StakeOutcome:
    success: bool
    text: str
    content: dict[str, Any]
    receipt: ExecutionReceipt | None = None
    error: BaseException | None = field(default=None, repr=False)

    def as_callback_payload(self) -> dict[str, Any]:
        return {"text": self.text, "content": self.content}


def _reason(exc: BaseException) -> str:
    return str(getattr(exc, "reason", None) or exc) or exc.__class__.__name__


class StakeAction:
    """Supplies an ERC-20 to an Aave v3 pool from a Safe in one atomic batch.

    Each call acquires its own Safe session and closes it afterwards. Two
    stakes against the same Safe must not overlap: they would read the same
    Safe nonce and one of them would revert.
    """

    name = ACTION_NAME

    def __init__(
        self,
        deployment: StakeDeployment,
        *,
        rpc_url: str,
        private_key: str,
        pool_adapter: AaveV3Adapter | None = None,
        wallet_adapter: SafeAdapter | None = None,
        verify_chain_id: bool = False,
    ) -> None:
        self.deployment = deployment
        self.rpc_url = rpc_url
        self._private_key = private_key
        self.pool_adapter = pool_adapter or AaveV3Adapter()
        self.wallet_adapter = wallet_adapter or SafeAdapter()
        self.verify_chain_id = verify_chain_id
        self.logger = logger.bind(action=self.name)

    def __repr__(self) -> str:
        return (
            f"StakeAction(safe={self.deployment.safe_address}, "
            f"pool={self.deployment.pool_address})"
        )

    @classmethod
    def from_config(cls) -> StakeAction:
        rpc_url = stake_config.get_rpc_url()
        if not rpc_url:
            raise ValueError("stake.rpc_url (or RPC_URL) must be configured")
        private_key = stake_config.get_agent_private_key()
        if not private_key:
            raise ValueError("AGENT_PRIVATE_KEY must be set")
        wallet_adapter = SafeAdapter(
            {
                "receipt_timeout": stake_config.get_receipt_timeout(),
                "rpc_timeout": stake_config.get_rpc_timeout(),
                "confirmations": stake_config.get_confirmations(),
                "multisend_call_only_address": (
                    stake_config.get_multisend_call_only_address()
                ),
            }
        )
        return cls(
            StakeDeployment.from_config(),
            rpc_url=rpc_url,
            private_key=private_key,
            wallet_adapter=wallet_adapter,
            verify_chain_id=stake_config.get_verify_chain_id(),
        )

    async def execute(self, request: StakeRequest) -> ExecutionReceipt:
        """Run the stake and return its receipt; any failure propagates."""
        safe = self.deployment.safe_address
        pool = self.deployment.pool_address

        calls = self.pool_adapter.build_supply_calls(
            token=request.token,
            amount=request.amount,
            pool=pool,
            on_behalf_of=safe,
        )
        batch = build_batch(calls)

        wallet = await self.wallet_adapter.acquire(
            self.rpc_url, self._private_key, safe
        )
        try:
            if wallet.chain_id != request.chain:
                message = (
                    f"RPC endpoint reports chain {wallet.chain_id} but the "
                    f"request targets chain {request.chain}"
                )
                if self.verify_chain_id:
                    raise WalletConnectionError(message)
                self.logger.warning(message)
            execution = await self.wallet_adapter.submit(
                wallet, batch, only_calls=True
            )
        finally:
            await self._close_wallet(wallet)

        return ExecutionReceipt(
            transaction_hash=execution.transaction_hash,
            from_address=safe,
            to_address=pool,
            amount=request.amount,
            chain_id=request.chain,
        )

    async def _close_wallet(self, wallet: SafeWallet) -> None:
        # A failed disconnect must not mask the submit result.
        try:
            await wallet.close()
        except Exception as exc:
            self.logger.warning(
                f"Failed to close Safe session {wallet.address}: {exc}"
            )

    async def stake(self, request: StakeRequest) -> StakeOutcome:
        self.logger.info(
            f"Staking {request.amount} of {request.token} on chain {request.chain} "
            f"from Safe {self.deployment.safe_address}"
        )
        try:
            receipt = await self.execute(request)
        except Exception as exc:
            return self._failure(exc)

        self.logger.info(f"Stake confirmed in {receipt.transaction_hash}")
        return StakeOutcome(
            success=True,
            text=(
                f"Successfully staked {request.amount} {request.token} to AAVE\n"
                f"Transaction Hash: {receipt.transaction_hash}"
            ),
            content={
                "success": True,
                "hash": receipt.transaction_hash,
                "amount": str(request.amount),
                "token": request.token,
                "chain": request.chain,
                "from": receipt.from_address,
                "to": receipt.to_address,
                "explorer_url": get_etherscan_transaction_link(
                    request.chain, receipt.transaction_hash
                ),
            },
            receipt=receipt,
        )

    def _failure(self, exc: BaseException) -> StakeOutcome:
        reason = _reason(exc)
        self.logger.error(f"Stake failed ({exc.__class__.__name__}): {reason}")
        return StakeOutcome(
            success=False,
            text=f"Error staking tokens: {reason}",
            content={"error": reason, "error_type": exc.__class__.__name__},
            error=exc,
        )

    async def handle(
        self,
        intent: str,
        state: Mapping[str, Any] | None = None,
        *,
        resolver: ParameterResolver,
        callback: HandlerCallback | None = None,
    ) -> bool:
        """Resolve parameters from ``intent``, stake, and report to ``callback``."""
        try:
            request = await resolver.resolve(intent, state)
        except Exception as exc:
            outcome = self._failure(exc)
        else:
            outcome = await self.stake(request)

        if callback is not None:
            result = callback(outcome.as_callback_payload())
            if isinstance(result, Awaitable):
                await result
        return outcome.success
