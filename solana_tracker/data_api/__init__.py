"""
Data API - REST access to Solana Tracker token, price, wallet and trade data
"""

from .client import DataApiClient

__all__ = ["DataApiClient"]
