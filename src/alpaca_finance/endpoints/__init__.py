"""
Endpoint groupings live here to keep API surface area segmented by domain.
"""

from .account import AccountAPI
from .account_async import AccountAsyncAPI

__all__ = ["AccountAPI", "AccountAsyncAPI"]
