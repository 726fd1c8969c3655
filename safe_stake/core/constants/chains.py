CHAIN_ID_ETHEREUM = 1
CHAIN_ID_OPTIMISM = 10
CHAIN_ID_BSC = 56
CHAIN_ID_POLYGON = 137
CHAIN_ID_BASE = 8453
CHAIN_ID_ARBITRUM = 42161
CHAIN_ID_AVALANCHE = 43114
CHAIN_ID_SEPOLIA = 11155111
CHAIN_ID_BASE_SEPOLIA = 84532

CHAIN_CODE_TO_ID = {
    "ethereum": CHAIN_ID_ETHEREUM,
    "mainnet": CHAIN_ID_ETHEREUM,
    "optimism": CHAIN_ID_OPTIMISM,
    "bsc": CHAIN_ID_BSC,
    "polygon": CHAIN_ID_POLYGON,
    "base": CHAIN_ID_BASE,
    "arbitrum": CHAIN_ID_ARBITRUM,
    "arbitrum-one": CHAIN_ID_ARBITRUM,
    "avalanche": CHAIN_ID_AVALANCHE,
    "sepolia": CHAIN_ID_SEPOLIA,
    "base-sepolia": CHAIN_ID_BASE_SEPOLIA,
}

SUPPORTED_CHAINS = [
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_OPTIMISM,
    CHAIN_ID_BSC,
    CHAIN_ID_POLYGON,
    CHAIN_ID_BASE,
    CHAIN_ID_ARBITRUM,
    CHAIN_ID_AVALANCHE,
    CHAIN_ID_SEPOLIA,
    CHAIN_ID_BASE_SEPOLIA,
]

POA_MIDDLEWARE_CHAIN_IDS: set[int] = {
    CHAIN_ID_BSC,
    CHAIN_ID_POLYGON,
    CHAIN_ID_AVALANCHE,
}

PRE_EIP_1559_CHAIN_IDS: set[int] = {
    CHAIN_ID_BSC,
    CHAIN_ID_ARBITRUM,
}

CHAIN_EXPLORER_URLS: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "https://etherscan.io/",
    CHAIN_ID_OPTIMISM: "https://optimistic.etherscan.io/",
    CHAIN_ID_BSC: "https://bscscan.com/",
    CHAIN_ID_POLYGON: "https://polygonscan.com/",
    CHAIN_ID_BASE: "https://basescan.org/",
    CHAIN_ID_ARBITRUM: "https://arbiscan.io/",
    CHAIN_ID_AVALANCHE: "https://snowtrace.io/",
    CHAIN_ID_SEPOLIA: "https://sepolia.etherscan.io/",
    CHAIN_ID_BASE_SEPOLIA: "https://sepolia.basescan.org/",
}
