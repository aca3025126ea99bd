"""Per-client request limits (SlowAPI, keyed by remote address)."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from schoolhub.config import settings

# memory:// storage, so counters are per process and reset on restart.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri="memory://",
)

# Credential-guessing endpoints get a tighter budget than the default.
login_rate_limit = limiter.limit(f"{settings.LOGIN_RATE_LIMIT_PER_MINUTE}/minute")
