"""
api/limiter.py -- The one slowapi Limiter shared by api/main.py and the routers.

Counters are keyed by client IP. Every router must decorate with this
instance; a second Limiter would keep separate counters that the middleware
never consults.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri=get_settings().rate_limit_storage_uri)
