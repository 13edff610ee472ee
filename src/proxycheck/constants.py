"""
Constants shared across the proxycheck package.

Endpoints are relative to the API host and always end with a slash so they
can be joined with an action or an address.
"""

# API endpoints
CHECK_ENDPOINT = "v2/"
LISTS_ENDPOINT = "dashboard/lists/"
RULES_ENDPOINT = "dashboard/rules/"
EXPORT_ENDPOINT = "dashboard/export/"

# Default client configuration
DEFAULT_BASE_URL = "proxycheck.io"
DEFAULT_TIMEOUT = 30000  # milliseconds
DEFAULT_RETRIES = 3
DEFAULT_RETRY_DELAY = 1000  # milliseconds
DEFAULT_TLS_SECURITY = True
DEFAULT_USER_AGENT = "proxycheck-python/0.9.0"

# Upper bound of the random jitter added to every backoff delay (ms)
RETRY_JITTER_MS = 1000

# Fallback retry-after for a 429 without the header (seconds)
DEFAULT_RETRY_AFTER = 60

# Stable error codes carried by every ProxyCheckError
API_ERROR = "API_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
RATE_LIMIT = "RATE_LIMIT"
AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
VALIDATION_ERROR = "VALIDATION_ERROR"
TIMEOUT_ERROR = "TIMEOUT_ERROR"

# HTTP status codes the client reasons about
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_TOO_MANY_REQUESTS = 429
HTTP_INTERNAL_SERVER_ERROR = 500

# Rate limit response headers
HEADER_RATELIMIT_LIMIT = "x-ratelimit-limit"
HEADER_RATELIMIT_REMAINING = "x-ratelimit-remaining"
HEADER_RATELIMIT_RESET = "x-ratelimit-reset"
HEADER_RETRY_AFTER = "retry-after"
HEADER_REQUEST_ID = "x-request-id"
