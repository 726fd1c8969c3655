from safe_stake.actions.metadata import ACTION_NAME, DESCRIPTION, EXAMPLES, SIMILES
from safe_stake.actions.resolver import (
    STAKE_TEMPLATE,
    ModelParameterResolver,
    ParameterResolver,
    parse_stake_params,
)
from safe_stake.actions.stake import StakeAction, StakeDeployment, StakeOutcome

__all__ = [
    "ACTION_NAME",
    "DESCRIPTION",
    "EXAMPLES",
    "ModelParameterResolver",
    "ParameterResolver",
    "SIMILES",
    "STAKE_TEMPLATE",
    "StakeAction",
    "StakeDeployment",
    "StakeOutcome",
    "parse_stake_params",
]
