GAS_BUFFER_MULTIPLIER = 1.2
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
SUGGESTED_GAS_PRICE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Timeout constants (seconds)
# These are defaults only; deployments override them through the "stake" config
# section. The pipeline itself never retries a timed-out submission.
DEFAULT_HTTP_TIMEOUT = 30.0  # HTTP client timeout
DEFAULT_TRANSACTION_TIMEOUT = 180  # Transaction receipt timeout (seconds)
DEFAULT_RECEIPT_POLL_INTERVAL = 0.5
DEFAULT_CONFIRMATIONS = 1

ADAPTER_AAVE_V3 = "AAVE_V3"
ADAPTER_SAFE = "SAFE"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2**256 - 1
