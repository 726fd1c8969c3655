from safe_stake.core.constants.base import MAX_UINT256, ZERO_ADDRESS
from safe_stake.core.constants.chains import CHAIN_CODE_TO_ID, SUPPORTED_CHAINS

__all__ = [
    "CHAIN_CODE_TO_ID",
    "MAX_UINT256",
    "SUPPORTED_CHAINS",
    "ZERO_ADDRESS",
]
