"""Shared slowapi rate limiter.

Disabled when ENVIRONMENT=test so API tests are not throttled.
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

# Search and quote lookups reach the market data provider; UI typing
# produces bursts, 60/min leaves headroom for 2-3 users.
MARKET_DATA_RATE_LIMIT = "60/minute"

if os.getenv("ENVIRONMENT") == "test":
    limiter = Limiter(key_func=get_remote_address, enabled=False)
else:
    limiter = Limiter(key_func=get_remote_address)
