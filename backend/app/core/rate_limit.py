"""
Shared slowapi limiter.

Routes opt in with ``@limiter.limit(...)``; the decorated endpoint must take a
``request: Request`` argument. Setting RATE_LIMIT_ENABLED=false turns every
limit off.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
