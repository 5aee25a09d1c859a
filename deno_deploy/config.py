API_BASE_URL: str = "https://api.deno.com/v1"
USER_AGENT: str = "DenoDeployAdapter/1.0 (deployment-events)"
REQUEST_TIMEOUT_SECONDS: int = 30

PAGE_SIZE: int = 100            # page-based strategy always asks for full pages
DEFAULT_LIST_LIMIT: int = 50    # list operations when returnAll is off
MAX_CURSOR_PAGES: int = 1000    # hard stop for APIs that never drop nextCursor

MAX_RETRIES: int = 5
RETRY_BASE_DELAY_MS: int = 1000   # delay = base * 2^attempt, capped at MAX_RETRY_DELAY_MS
MAX_RETRY_DELAY_MS: int = 60000   # 1 minute

POLL_INTERVAL_SECONDS: int = 60
POLL_DEPLOYMENT_LIMIT: int = 10

# envelope keys checked in order when a list response is wrapped in an object
DATA_KEYS: tuple[str, ...] = (
    "data",
    "items",
    "results",
    "deployments",
    "projects",
    "domains",
    "databases",
    "logs",
    "certificates",
    "regions",
)
