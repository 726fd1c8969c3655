from urllib.parse import urlsplit

from aiohttp import ClientTimeout
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from safe_stake.core.constants.base import DEFAULT_HTTP_TIMEOUT
from safe_stake.core.constants.chains import POA_MIDDLEWARE_CHAIN_IDS


def redact_rpc_url(rpc_url: str) -> str:
    """Strip path, query and credentials; hosted RPC URLs usually embed API keys."""
    parts = urlsplit(str(rpc_url))
    if not parts.scheme or not parts.hostname:
        return "<invalid rpc url>"
    port = f":{parts.port}" if parts.port else ""
    return f"{parts.scheme}://{parts.hostname}{port}"


def get_web3(rpc_url: str, *, timeout: float = DEFAULT_HTTP_TIMEOUT) -> AsyncWeb3:
    provider = AsyncHTTPProvider(
        rpc_url,
        request_kwargs={
            "headers": AsyncHTTPProvider.get_request_headers(),
            "timeout": ClientTimeout(total=timeout),
        },
        # no automatic retries
        exception_retry_configuration=None,
    )
    return AsyncWeb3(provider)


def apply_chain_middleware(web3: AsyncWeb3, chain_id: int) -> AsyncWeb3:
    if chain_id in POA_MIDDLEWARE_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


def get_transaction_chain_id(transaction: dict) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])
