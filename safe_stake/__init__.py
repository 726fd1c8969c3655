__version__ = "0.1.0"

from safe_stake.actions import StakeAction, StakeDeployment, StakeOutcome
from safe_stake.core import (
    BaseAdapter,
    ExecutionReceipt,
    StakeRequest,
    StakingError,
)

__all__ = [
    "__version__",
    "BaseAdapter",
    "ExecutionReceipt",
    "StakeAction",
    "StakeDeployment",
    "StakeOutcome",
    "StakeRequest",
    "StakingError",
]
