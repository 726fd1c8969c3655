from __future__ import annotations

from eth_utils import to_checksum_address

# Aave v3 per-chain deployments.
#
# Only consulted when a deployment does not pin its own pool address.
AAVE_V3_BY_CHAIN: dict[int, dict[str, str]] = {
    # Ethereum
    1: {
        "pool": to_checksum_address("0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2"),
    },
    # Optimism
    10: {
        "pool": to_checksum_address("0x794a61358D6845594F94dc1DB02A252b5b4814aD"),
    },
    # BNB Smart Chain
    56: {
        "pool": to_checksum_address("0x6807dc923806fE8Fd134338EABCA509979a7e0cB"),
    },
    # Polygon PoS
    137: {
        "pool": to_checksum_address("0x794a61358D6845594F94dc1DB02A252b5b4814aD"),
    },
    # Base
    8453: {
        "pool": to_checksum_address("0xA238Dd80C259a72e81d7e4664a9801593F98d1c5"),
    },
    # Arbitrum One
    42161: {
        "pool": to_checksum_address("0x794a61358D6845594F94dc1DB02A252b5b4814aD"),
    },
    # Avalanche C-Chain
    43114: {
        "pool": to_checksum_address("0x794a61358D6845594F94dc1DB02A252b5b4814aD"),
    },
    # Sepolia testnet
    11155111: {
        "pool": to_checksum_address("0x6Ae43d3271ff6888e7Fc43Fd7321a503ff738951"),
    },
}
