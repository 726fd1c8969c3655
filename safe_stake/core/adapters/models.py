from typing import Any

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator

from safe_stake.core.constants import CHAIN_CODE_TO_ID, SUPPORTED_CHAINS
from safe_stake.core.constants.base import ZERO_ADDRESS

_NATIVE_SENTINELS = {
    ZERO_ADDRESS,
    "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee",
}


class StakeRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str = Field(..., description="ERC-20 contract address to supply")
    amount: int = Field(..., description="Amount in the token's base units")
    chain: int = Field(..., description="Chain id the stake targets")

    @field_validator("token", mode="before")
    @classmethod
    def _validate_token(cls, value: Any) -> str:
        if not isinstance(value, str) or not is_address(value.strip()):
            raise ValueError(f"token must be a contract address, got {value!r}")
        token = value.strip()
        if token.lower() in _NATIVE_SENTINELS:
            raise ValueError("token must be an ERC-20 contract, not the native asset")
        return to_checksum_address(token)

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, value: Any) -> int:
        # Base units only: no floats, no decimals, no booleans.
        if isinstance(value, bool):
            raise ValueError("amount must be an integer number of base units")
        if isinstance(value, str):
            raw = value.strip().replace("_", "")
            if not raw.isdigit():
                raise ValueError(f"amount must be an integer string, got {value!r}")
            value = int(raw)
        if not isinstance(value, int):
            raise ValueError("amount must be an integer number of base units")
        if value <= 0:
            raise ValueError("amount must be positive")
        return value

    @field_validator("chain", mode="before")
    @classmethod
    def _validate_chain(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("chain must be a chain id or chain name")
        if isinstance(value, str):
            raw = value.strip().lower()
            if raw in CHAIN_CODE_TO_ID:
                value = CHAIN_CODE_TO_ID[raw]
            elif raw.isdigit():
                value = int(raw)
            else:
                raise ValueError(f"unknown chain {value!r}")
        if not isinstance(value, int) or value not in SUPPORTED_CHAINS:
            raise ValueError(f"unsupported chain {value!r}")
        return value


class ExecutionReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_hash: str
    from_address: str
    to_address: str
    amount: int
    chain_id: int
