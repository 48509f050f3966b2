"""Global constants for storesync.

Centralizes magic numbers used throughout the codebase,
making them discoverable, consistent, and easy to modify.
"""

# =============================================================================
# Admin API
# =============================================================================

API_VERSION = "2023-10"
"""Admin API version used for every REST and GraphQL request."""

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
"""Header carrying the admin API access token."""

GRAPHQL_ENDPOINT = "graphql.json"
"""GraphQL endpoint path relative to the versioned admin base URL."""

DEFAULT_PAGE_SIZE = 250
"""Largest page size accepted by both REST and GraphQL listings."""

REQUEST_TIMEOUT_SECONDS = 30.0
"""Default timeout for a single HTTP request."""

# =============================================================================
# Credentials
# =============================================================================

ENV_STORE_DOMAIN = "SHOPIFY_STORE_DOMAIN"
"""Environment variable holding the store domain."""

ENV_ACCESS_TOKEN = "SHOPIFY_ACCESS_TOKEN"
"""Environment variable holding the admin API access token."""

# =============================================================================
# Retry Defaults
# =============================================================================

DEFAULT_MAX_ATTEMPTS = 5
"""Total attempts (including the first) for the shared default policy."""

DEFAULT_BASE_DELAY_SECONDS = 1.0
"""Delay before the second attempt."""

DEFAULT_MAX_DELAY_SECONDS = 30.0
"""Upper bound for any single backoff delay."""

DEFAULT_BACKOFF_MULTIPLIER = 2.0
"""Growth factor applied to the delay per attempt."""

DEFAULT_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
"""HTTP statuses that indicate a transient failure."""

DEFAULT_RETRYABLE_ERROR_PATTERNS = ("ECONNRESET", "ENOTFOUND", "ECONNREFUSED", "ETIMEDOUT")
"""Transport error codes that indicate a transient failure."""

JITTER_FRACTION_MAX = 0.1
"""Jitter is drawn uniformly from [0, JITTER_FRACTION_MAX) of the exponential delay."""

COMMAND_MAX_ATTEMPTS = 3
"""Attempts per item inside a pull or push loop."""

COMMAND_MAX_DELAY_SECONDS = 10.0
"""Backoff cap per item inside a pull or push loop."""

# =============================================================================
# Rate Limiting (minimum seconds between calls)
# =============================================================================

RATE_LIMIT_SHOPIFY_API = 0.6
"""Spacing that keeps a single client under the REST bucket leak rate."""

RATE_LIMIT_CONSERVATIVE = 1.0
"""Spacing for shared or heavily used stores."""

RATE_LIMIT_AGGRESSIVE = 0.2
"""Spacing for Plus stores with a larger bucket."""

# =============================================================================
# Text Truncation Limits (characters)
# =============================================================================

TRUNCATE_ERROR_MESSAGE_CHARS = 200
"""Maximum characters for error message summaries in retry warnings."""

# =============================================================================
# Local Layout
# =============================================================================

META_EXTENSION = ".meta"
"""Suffix of the YAML sidecar stored next to each primary file."""
