"""Vhagar Reward Pool staking client."""

__version__ = "1.0.0"
