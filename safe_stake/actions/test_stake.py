import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

import safe_stake.core.config as config
from safe_stake.actions.stake import StakeAction, StakeDeployment
from safe_stake.adapters.safe_adapter import SafeExecution
from safe_stake.core.adapters.models import StakeRequest
from safe_stake.core.errors import (
    EncodingError,
    ExecutionError,
    ParameterResolutionError,
    WalletConnectionError,
)

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
POOL = "0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2"
SAFE = "0x1234567890123456789012345678901234567890"
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def restore_global_config():
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


def _wallet_adapter(*, chain_id=1, submit=None):
    wallet = MagicMock()
    wallet.chain_id = chain_id
    wallet.close = AsyncMock()
    adapter = MagicMock()
    adapter.acquire = AsyncMock(return_value=wallet)
    adapter.submit = submit or AsyncMock(
        return_value=SafeExecution(
            transaction_hash=TX_HASH, safe_tx_hash="0x" + "cd" * 32, safe_nonce=0
        )
    )
    return adapter, wallet


def _action(wallet_adapter, **kwargs):
    return StakeAction(
        StakeDeployment(safe_address=SAFE, pool_address=POOL),
        rpc_url="https://rpc.example.org",
        private_key=PRIVATE_KEY,
        wallet_adapter=wallet_adapter,
        **kwargs,
    )


@pytest.mark.asyncio
class TestStakeAction:
    async def test_execute_returns_receipt(self):
        adapter, wallet = _wallet_adapter()
        action = _action(adapter)

        receipt = await action.execute(
            StakeRequest(token=USDC, amount=1_000_000_000, chain=1)
        )

        assert receipt.transaction_hash == TX_HASH
        assert receipt.from_address == SAFE
        assert receipt.to_address == POOL
        assert receipt.amount == 1_000_000_000
        assert receipt.chain_id == 1
        adapter.acquire.assert_awaited_once_with(
            "https://rpc.example.org", PRIVATE_KEY, SAFE
        )
        wallet.close.assert_awaited_once()

    async def test_submits_approve_then_supply_as_calls(self):
        adapter, wallet = _wallet_adapter()
        action = _action(adapter)

        await action.execute(StakeRequest(token=USDC, amount=5, chain=1))

        submitted_wallet, batch = adapter.submit.await_args.args
        assert submitted_wallet is wallet
        assert adapter.submit.await_args.kwargs == {"only_calls": True}
        assert [call.target for call in batch] == [USDC, POOL]
        assert batch[0].data[:4].hex() == "095ea7b3"
        assert batch[1].data[:4].hex() == "617ba037"
        assert not batch.has_delegate_calls

    async def test_stake_success_outcome(self):
        adapter, _ = _wallet_adapter()
        action = _action(adapter)

        outcome = await action.stake(StakeRequest(token=USDC, amount=1000, chain=1))

        assert outcome.success
        assert outcome.error is None
        assert outcome.text == (
            f"Successfully staked 1000 {USDC} to AAVE\nTransaction Hash: {TX_HASH}"
        )
        assert outcome.content["hash"] == TX_HASH
        assert outcome.content["amount"] == "1000"
        assert outcome.content["chain"] == 1
        assert outcome.content["explorer_url"] == f"https://etherscan.io/tx/{TX_HASH}"

    async def test_encoding_failure_never_acquires(self):
        adapter, _ = _wallet_adapter()
        action = _action(adapter)
        # Built without validation so the overflow reaches the encoder.
        request = StakeRequest.model_construct(token=USDC, amount=2**256, chain=1)

        outcome = await action.stake(request)

        assert not outcome.success
        assert isinstance(outcome.error, EncodingError)
        assert outcome.content["error_type"] == "EncodingError"
        adapter.acquire.assert_not_awaited()

    async def test_execution_failure_closes_wallet(self):
        submit = AsyncMock(side_effect=ExecutionError("GS013"))
        adapter, wallet = _wallet_adapter(submit=submit)
        action = _action(adapter)

        outcome = await action.stake(StakeRequest(token=USDC, amount=1, chain=1))

        assert not outcome.success
        assert outcome.text == "Error staking tokens: GS013"
        assert outcome.content == {"error": "GS013", "error_type": "ExecutionError"}
        wallet.close.assert_awaited_once()

    async def test_close_failure_does_not_mask_execution_error(self):
        submit = AsyncMock(side_effect=ExecutionError("GS013"))
        adapter, wallet = _wallet_adapter(submit=submit)
        wallet.close = AsyncMock(side_effect=OSError("session already closed"))
        action = _action(adapter)

        with pytest.raises(ExecutionError, match="GS013"):
            await action.execute(StakeRequest(token=USDC, amount=1, chain=1))

        outcome = await action.stake(StakeRequest(token=USDC, amount=1, chain=1))
        assert outcome.content == {"error": "GS013", "error_type": "ExecutionError"}

    async def test_close_failure_keeps_successful_receipt(self):
        adapter, wallet = _wallet_adapter()
        wallet.close = AsyncMock(side_effect=OSError("session already closed"))
        action = _action(adapter)

        receipt = await action.execute(StakeRequest(token=USDC, amount=1, chain=1))

        assert receipt.transaction_hash == TX_HASH
        wallet.close.assert_awaited_once()

    async def test_chain_mismatch_warns_by_default(self):
        adapter, _ = _wallet_adapter(chain_id=11155111)
        action = _action(adapter)

        receipt = await action.execute(StakeRequest(token=USDC, amount=1, chain=1))

        assert receipt.chain_id == 1
        adapter.submit.assert_awaited_once()

    async def test_chain_mismatch_aborts_when_verified(self):
        adapter, wallet = _wallet_adapter(chain_id=11155111)
        action = _action(adapter, verify_chain_id=True)

        outcome = await action.stake(StakeRequest(token=USDC, amount=1, chain=1))

        assert isinstance(outcome.error, WalletConnectionError)
        assert "11155111" in outcome.content["error"]
        adapter.submit.assert_not_awaited()
        wallet.close.assert_awaited_once()

    async def test_private_key_not_in_repr(self):
        adapter, _ = _wallet_adapter()
        assert PRIVATE_KEY not in repr(_action(adapter))


@pytest.mark.asyncio
class TestHandle:
    async def test_handle_success_invokes_callback(self):
        adapter, _ = _wallet_adapter()
        action = _action(adapter)
        resolver = MagicMock()
        resolver.resolve = AsyncMock(
            return_value=StakeRequest(token=USDC, amount=7, chain=1)
        )
        callback = AsyncMock()

        ok = await action.handle(
            "stake 7", {"roomId": "r1"}, resolver=resolver, callback=callback
        )

        assert ok is True
        resolver.resolve.assert_awaited_once_with("stake 7", {"roomId": "r1"})
        payload = callback.await_args.args[0]
        assert set(payload) == {"text", "content"}
        assert payload["content"]["success"] is True

    async def test_handle_resolution_failure(self):
        adapter, _ = _wallet_adapter()
        action = _action(adapter)
        resolver = MagicMock()
        resolver.resolve = AsyncMock(
            side_effect=ParameterResolutionError("Invalid stake parameters: amount")
        )
        payloads = []

        ok = await action.handle("stake", resolver=resolver, callback=payloads.append)

        assert ok is False
        assert payloads[0]["text"].startswith("Error staking tokens: Invalid stake")
        assert payloads[0]["content"]["error_type"] == "ParameterResolutionError"
        adapter.acquire.assert_not_awaited()

    async def test_handle_without_callback(self):
        submit = AsyncMock(side_effect=ExecutionError("boom"))
        adapter, _ = _wallet_adapter(submit=submit)
        action = _action(adapter)
        resolver = MagicMock()
        resolver.resolve = AsyncMock(
            return_value=StakeRequest(token=USDC, amount=7, chain=1)
        )

        assert await action.handle("stake 7", resolver=resolver) is False


class TestFromConfig:
    def test_deployment_falls_back_to_known_pool(
        self, restore_global_config, monkeypatch
    ):
        monkeypatch.delenv("AAVE_POOL_ADDRESS", raising=False)
        config.set_config({"stake": {"safe_address": SAFE.lower(), "chain_id": 1}})

        deployment = StakeDeployment.from_config()

        assert deployment.safe_address == SAFE
        assert deployment.pool_address == POOL

    def test_deployment_requires_safe(self, restore_global_config, monkeypatch):
        monkeypatch.delenv("SAFE_ADDRESS", raising=False)
        config.set_config({"stake": {"pool_address": POOL}})

        with pytest.raises(ValueError, match="safe_address"):
            StakeDeployment.from_config()

    def test_action_from_config(self, restore_global_config, monkeypatch):
        monkeypatch.setenv("AGENT_PRIVATE_KEY", PRIVATE_KEY)
        config.set_config(
            {
                "stake": {
                    "rpc_url": "https://rpc.example.org",
                    "safe_address": SAFE,
                    "pool_address": POOL,
                    "receipt_timeout": 90,
                    "confirmations": 3,
                    "verify_chain_id": True,
                }
            }
        )

        action = StakeAction.from_config()

        assert action.rpc_url == "https://rpc.example.org"
        assert action.verify_chain_id is True
        assert action.deployment.pool_address == POOL
        assert action.wallet_adapter.receipt_timeout == 90
        assert action.wallet_adapter.confirmations == 3

    def test_action_requires_key(self, restore_global_config, monkeypatch):
        monkeypatch.delenv("AGENT_PRIVATE_KEY", raising=False)
        config.set_config(
            {"stake": {"rpc_url": "https://rpc.example.org", "safe_address": SAFE}}
        )

        with pytest.raises(ValueError, match="AGENT_PRIVATE_KEY"):
            StakeAction.from_config()
