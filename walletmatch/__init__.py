"""Farcaster follow discovery ranked by on-chain portfolio overlap."""

__version__ = "0.1.0"
