from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from loguru import logger
from pydantic import ValidationError

from safe_stake.core.adapters.models import StakeRequest
from safe_stake.core.errors import ParameterResolutionError

STAKE_TEMPLATE = """Given the recent messages below, extract the details of the
token deposit the user wants to make into the Aave lending pool.

{{recentMessages}}

Respond with a single JSON object and nothing else:

```json
{
    "token": "<ERC-20 contract address of the token to supply>",
    "amount": "<amount in the token's smallest unit, digits only>",
    "chain": "<chain id or chain name, e.g. 1, base, sepolia>"
}
```
"""

GenerateObject = Callable[[str], Awaitable[Mapping[str, Any] | str]]


class ParameterResolver(Protocol):
    async def resolve(
        self, intent: str, state: Mapping[str, Any] | None = None
    ) -> StakeRequest: ...


def parse_stake_params(payload: Mapping[str, Any] | str) -> StakeRequest:
    """Validate model output (a dict or a JSON string) into a ``StakeRequest``."""
    if isinstance(payload, str):
        text = payload.strip()
        if text.startswith("```"):
            text = text.strip("`").removeprefix("json").strip()
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParameterResolutionError(
                f"Stake parameters are not valid JSON: {exc}"
            ) from exc
    if not isinstance(payload, Mapping):
        raise ParameterResolutionError(
            f"Stake parameters must be an object, got {type(payload).__name__}"
        )
    try:
        return StakeRequest.model_validate(dict(payload))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or 'request'}: {e['msg']}"
            for e in exc.errors()
        )
        raise ParameterResolutionError(f"Invalid stake parameters: {problems}") from exc


def compose_context(
    template: str, intent: str, state: Mapping[str, Any] | None = None
) -> str:
    state = dict(state or {})
    recent = state.get("recentMessages") or intent
    context = template.replace("{{recentMessages}}", str(recent))
    for key, value in state.items():
        context = context.replace(f"{{{{{key}}}}}", str(value))
    return context


class ModelParameterResolver:
    """Resolves stake parameters with an injected structured-output model call."""

    def __init__(
        self, generate_object: GenerateObject, template: str = STAKE_TEMPLATE
    ) -> None:
        self.generate_object = generate_object
        self.template = template

    async def resolve(
        self, intent: str, state: Mapping[str, Any] | None = None
    ) -> StakeRequest:
        context = compose_context(self.template, intent, state)
        payload = await self.generate_object(context)
        request = parse_stake_params(payload)
        logger.debug(
            f"Resolved stake request token={request.token} "
            f"amount={request.amount} chain={request.chain}"
        )
        return request
