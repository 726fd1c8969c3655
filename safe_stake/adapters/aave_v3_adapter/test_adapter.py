import pytest
from eth_abi import decode as abi_decode
from eth_utils import to_checksum_address

from safe_stake.adapters.aave_v3_adapter.adapter import AaveV3Adapter
from safe_stake.core.constants.aave_v3_contracts import AAVE_V3_BY_CHAIN
from safe_stake.core.errors import EncodingError

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
POOL = "0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2"
SAFE = "0x1234567890123456789012345678901234567890"

APPROVE_SELECTOR = "095ea7b3"
SUPPLY_SELECTOR = "617ba037"


class TestAaveV3Adapter:
    @pytest.fixture
    def adapter(self):
        return AaveV3Adapter(config={})

    def test_adapter_type(self, adapter):
        assert adapter.adapter_type == "AAVE_V3"

    def test_encode_approve(self, adapter):
        data = adapter.encode_approve(spender=POOL, amount=1_000_000)

        assert data[:4].hex() == APPROVE_SELECTOR
        spender, amount = abi_decode(["address", "uint256"], bytes(data[4:]))
        assert to_checksum_address(spender) == POOL
        assert amount == 1_000_000

    def test_encode_supply(self, adapter):
        data = adapter.encode_supply(asset=USDC, amount=42, on_behalf_of=SAFE)

        assert data[:4].hex() == SUPPLY_SELECTOR
        asset, amount, on_behalf_of, referral = abi_decode(
            ["address", "uint256", "address", "uint16"], bytes(data[4:])
        )
        assert to_checksum_address(asset) == USDC
        assert amount == 42
        assert to_checksum_address(on_behalf_of) == SAFE
        assert referral == 0

    def test_build_supply_calls_order_and_amounts(self, adapter):
        calls = adapter.build_supply_calls(
            token=USDC.lower(), amount=1_000_000_000, pool=POOL, on_behalf_of=SAFE
        )

        assert [target for target, _ in calls] == [USDC, POOL]
        (_, approve_data), (_, supply_data) = calls
        assert approve_data[:4].hex() == APPROVE_SELECTOR
        assert supply_data[:4].hex() == SUPPLY_SELECTOR

        _, approved = abi_decode(["address", "uint256"], bytes(approve_data[4:]))
        _, supplied, _, _ = abi_decode(
            ["address", "uint256", "address", "uint16"], bytes(supply_data[4:])
        )
        assert approved == supplied == 1_000_000_000

    def test_overflowing_amount_raises(self, adapter):
        with pytest.raises(EncodingError):
            adapter.build_supply_calls(
                token=USDC, amount=2**256, pool=POOL, on_behalf_of=SAFE
            )

    def test_invalid_pool_raises(self, adapter):
        with pytest.raises(EncodingError, match="pool"):
            adapter.build_supply_calls(
                token=USDC, amount=1, pool="0xnotapool", on_behalf_of=SAFE
            )

    def test_pool_address_known_chains(self):
        assert AaveV3Adapter.pool_address(1) == POOL
        for chain_id, entry in AAVE_V3_BY_CHAIN.items():
            assert set(entry) == {"pool"}
            assert AaveV3Adapter.pool_address(chain_id) == to_checksum_address(
                entry["pool"]
            )

    def test_pool_address_unknown_chain(self):
        with pytest.raises(ValueError, match="Unsupported"):
            AaveV3Adapter.pool_address(999_999)
