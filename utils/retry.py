"""Shared transport retry and operation polling defaults."""

# Transport-level retries (connection errors, timeouts).
DEFAULT_MAX_ATTEMPTS: int = 5
INITIAL_BACKOFF_SECONDS: float = 0.5
MAX_BACKOFF_SECONDS: float = 8.0

# Long-running operation polling.
DEFAULT_POLL_INTERVAL_SECONDS: float = 1.0
DEFAULT_POLL_MAX_INTERVAL_SECONDS: float = 10.0
DEFAULT_POLL_MAX_ATTEMPTS: int = 60
