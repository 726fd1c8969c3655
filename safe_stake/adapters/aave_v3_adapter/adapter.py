from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address
from hexbytes import HexBytes

from safe_stake.core.adapters.BaseAdapter import BaseAdapter
from safe_stake.core.constants.aave_v3_abi import POOL_ABI
from safe_stake.core.constants.aave_v3_contracts import AAVE_V3_BY_CHAIN
from safe_stake.core.constants.base import ADAPTER_AAVE_V3
from safe_stake.core.constants.erc20_abi import ERC20_ABI
from safe_stake.core.errors import EncodingError
from safe_stake.core.utils.transaction import encode_function_call

REFERRAL_CODE = 0


def _address(value: Any, field: str) -> str:
    try:
        return to_checksum_address(value)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"{field} is not a valid address: {value!r}") from exc


class AaveV3Adapter(BaseAdapter):
    """Builds the call data needed to deposit an ERC-20 into an Aave v3 pool.

    Encoding only: nothing here touches the network, so the same adapter can
    prepare calls for any executor (EOA or Safe).
    """

    adapter_type = ADAPTER_AAVE_V3

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__("aave_v3_adapter", config or {})

    @staticmethod
    def _entry(chain_id: int) -> dict[str, str]:
        entry = AAVE_V3_BY_CHAIN.get(int(chain_id))
        if not entry:
            raise ValueError(f"Unsupported Aave v3 chain_id={chain_id}")
        return entry

    @classmethod
    def pool_address(cls, chain_id: int) -> str:
        return to_checksum_address(cls._entry(int(chain_id))["pool"])

    def encode_approve(self, *, spender: str, amount: int) -> HexBytes:
        return encode_function_call(
            ERC20_ABI, "approve", [_address(spender, "spender"), amount]
        )

    def encode_supply(
        self,
        *,
        asset: str,
        amount: int,
        on_behalf_of: str,
        referral_code: int = REFERRAL_CODE,
    ) -> HexBytes:
        return encode_function_call(
            POOL_ABI,
            "supply",
            [
                _address(asset, "asset"),
                amount,
                _address(on_behalf_of, "on_behalf_of"),
                referral_code,
            ],
        )

    def build_supply_calls(
        self,
        *,
        token: str,
        amount: int,
        pool: str,
        on_behalf_of: str,
    ) -> list[tuple[str, HexBytes]]:
        """Return ``[(token, approve), (pool, supply)]`` in execution order.

        The approval is sized to exactly ``amount``; no unlimited allowance is
        left behind on the pool.
        """
        token = _address(token, "token")
        pool = _address(pool, "pool")
        approve_data = self.encode_approve(spender=pool, amount=amount)
        supply_data = self.encode_supply(
            asset=token, amount=amount, on_behalf_of=on_behalf_of
        )
        self.logger.debug(
            f"Encoded supply of {amount} {token} to pool {pool} "
            f"on behalf of {on_behalf_of}"
        )
        return [(token, approve_data), (pool, supply_data)]
