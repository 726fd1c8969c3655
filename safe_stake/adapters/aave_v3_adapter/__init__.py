from safe_stake.adapters.aave_v3_adapter.adapter import AaveV3Adapter

__all__ = ["AaveV3Adapter"]
