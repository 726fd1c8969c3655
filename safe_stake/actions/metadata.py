ACTION_NAME = "STAKE"

DESCRIPTION = "Supplies/stakes tokens to the Aave lending protocol to earn yield"

SIMILES = [
    "SUPPLY_TO_AAVE",
    "DEPOSIT_TO_AAVE",
    "LEND_ON_AAVE",
    "STAKE_ON_AAVE",
    "PROVIDE_LIQUIDITY_AAVE",
    "AAVE_DEPOSIT",
    "AAVE_SUPPLY",
    "AAVE_STAKE",
]


def _exchange(user_text: str, agent_text: str) -> list[dict]:
    return [
        {"user": "{{user1}}", "content": {"text": user_text}},
        {
            "user": "{{agentName}}",
            "content": {"text": agent_text, "action": ACTION_NAME},
        },
    ]


EXAMPLES = [
    _exchange(
        "I want to supply 1000 USDT to Aave",
        "I'll supply your USDT to the Aave lending pool so it starts earning yield",
    ),
    _exchange(
        "How do I earn yield on my USDC using Aave?",
        "I can supply your USDC to Aave's lending pool. You'll earn interest and "
        "receive aUSDC in return",
    ),
    _exchange(
        "Supply 500 DAI to Aave please",
        "I'll process your DAI deposit to Aave. It starts earning right away",
    ),
    _exchange(
        "I'd like to become an Aave liquidity provider with my WBTC",
        "I'll supply your WBTC to Aave. You'll receive aWBTC representing your "
        "position",
    ),
    _exchange(
        "Put my stablecoins into Aave's lending pool",
        "I'll supply your stablecoins to Aave's lending pool to start earning yield",
    ),
]
