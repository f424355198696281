"""Rate limiting for the public PawRefer endpoints.

Limits only apply in production; the limiter is a no-op elsewhere so tests
and local development never hit 429s.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from pawrefer.settings import settings

# Per-client limits for unauthenticated writes
SESSION_LIMIT = "10/minute"
SUBMIT_FORM_LIMIT = "20/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    storage_uri="memory://",
    enabled=settings.is_production,
)
